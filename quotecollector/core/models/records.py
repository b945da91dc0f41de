"""Canonical record models returned by collectors."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .market import KLinePeriod

MAX_GROWTH_RATE = 9999.0


def _now() -> datetime:
    return datetime.now()


def date_to_int(value: date) -> int:
    """Encode a calendar date as YYYYMMDD."""
    return value.year * 10000 + value.month * 100 + value.day


def int_to_date(value: int) -> date:
    """Decode a YYYYMMDD integer into a calendar date."""
    return date(value // 10000, value // 100 % 100, value % 100)


class Record(BaseModel):
    """不可变记录基类."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @field_serializer("created_at", "updated_at", when_used="json")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to isoformat string."""
        return value.isoformat()


class Stock(Record):
    """股票基础信息."""

    ts_code: str
    symbol: str
    name: str
    area: str = ""
    industry: str = ""
    market: str = ""
    list_date: date | None = None
    is_active: bool = True


class KLineRecord(Record):
    """单个周期的OHLCV记录.

    价格区间不变式: ``high`` 不低于其余三个价格, ``low`` 不高于其余三个价格.
    """

    period: ClassVar[KLinePeriod]

    ts_code: str
    trade_date: int = Field(ge=10000101, le=99991231)
    open: float
    high: float
    low: float
    close: float
    volume: int = Field(default=0, ge=0)
    amount: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def check_price_range(self) -> KLineRecord:
        if self.high < max(self.open, self.close, self.low):
            raise ValueError(f"high {self.high} below open/close/low on {self.trade_date}")
        if self.low > min(self.open, self.close, self.high):
            raise ValueError(f"low {self.low} above open/close/high on {self.trade_date}")
        return self

    @property
    def trade_day(self) -> date:
        return int_to_date(self.trade_date)


class DailyData(KLineRecord):
    """日K线."""

    period: ClassVar[KLinePeriod] = KLinePeriod.DAILY


class WeeklyData(KLineRecord):
    """周K线."""

    period: ClassVar[KLinePeriod] = KLinePeriod.WEEKLY


class MonthlyData(KLineRecord):
    """月K线."""

    period: ClassVar[KLinePeriod] = KLinePeriod.MONTHLY


class QuarterlyData(KLineRecord):
    """季K线."""

    period: ClassVar[KLinePeriod] = KLinePeriod.QUARTERLY


class YearlyData(KLineRecord):
    """年K线."""

    period: ClassVar[KLinePeriod] = KLinePeriod.YEARLY


RECORD_TYPES: dict[KLinePeriod, type[KLineRecord]] = {
    KLinePeriod.DAILY: DailyData,
    KLinePeriod.WEEKLY: WeeklyData,
    KLinePeriod.MONTHLY: MonthlyData,
    KLinePeriod.QUARTERLY: QuarterlyData,
    KLinePeriod.YEARLY: YearlyData,
}


def record_type_for(period: KLinePeriod | str) -> type[KLineRecord]:
    return RECORD_TYPES[KLinePeriod(period)]


def clamp_growth_rate(value: float) -> float:
    """Clamp growth-rate-like values into [-9999, 9999]."""
    return max(-MAX_GROWTH_RATE, min(MAX_GROWTH_RATE, value))


class PerformanceReport(Record):
    """业绩报表."""

    ts_code: str
    report_date: int = 0
    eps: float = 0.0
    weight_eps: float = 0.0
    revenue: float = 0.0
    revenue_qoq: float = 0.0
    revenue_yoy: float = 0.0
    net_profit: float = 0.0
    net_profit_qoq: float = 0.0
    net_profit_yoy: float = 0.0
    bvps: float = 0.0
    gross_margin: float = 0.0
    dividend_yield: float = 0.0
    latest_announcement_date: datetime | None = None
    first_announcement_date: datetime | None = None

    @field_validator(
        "revenue_qoq",
        "revenue_yoy",
        "net_profit_qoq",
        "net_profit_yoy",
        "gross_margin",
        "dividend_yield",
    )
    @classmethod
    def clamp_rate(cls, value: float) -> float:
        return clamp_growth_rate(value)


class ShareholderCount(Record):
    """股东户数."""

    ts_code: str
    security_code: str = ""
    security_name: str = ""
    end_date: int = 0
    holder_num: int = 0
    pre_holder_num: int = 0
    holder_num_change: int = 0
    holder_num_ratio: float = 0.0
    avg_market_cap: float = 0.0
    avg_hold_num: float = 0.0
    total_market_cap: float = 0.0
    total_a_shares: int = 0
    interval_chrate: float = 0.0
    change_shares: int = 0
    change_reason: str = ""
    hold_notice_date: datetime | None = None
    pre_end_date: int | None = None


def latest_by(records: list[Any], key: str) -> Any | None:
    """Return the record with the greatest ``key`` value, or None."""
    if not records:
        return None
    return max(records, key=lambda item: getattr(item, key))
