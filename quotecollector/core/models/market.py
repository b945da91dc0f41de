"""Market-related enums and types."""

from enum import Enum


class Exchange(str, Enum):
    """交易所后缀枚举."""

    SH = "SH"  # 上海
    SZ = "SZ"  # 深圳


class KLinePeriod(str, Enum):
    """K线周期枚举."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
