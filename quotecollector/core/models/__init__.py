"""Core data models."""

from .market import Exchange, KLinePeriod
from .records import (
    RECORD_TYPES,
    DailyData,
    KLineRecord,
    MonthlyData,
    PerformanceReport,
    QuarterlyData,
    Record,
    ShareholderCount,
    Stock,
    WeeklyData,
    YearlyData,
    clamp_growth_rate,
    date_to_int,
    int_to_date,
    latest_by,
    record_type_for,
)

__all__ = [
    "Exchange",
    "KLinePeriod",
    "RECORD_TYPES",
    "Record",
    "Stock",
    "KLineRecord",
    "DailyData",
    "WeeklyData",
    "MonthlyData",
    "QuarterlyData",
    "YearlyData",
    "PerformanceReport",
    "ShareholderCount",
    "clamp_growth_rate",
    "date_to_int",
    "int_to_date",
    "latest_by",
    "record_type_for",
]
