"""Securities data collectors."""

from .base import BaseCollector, DataCollector, split_ts_code
from .deadline import Deadline
from .eastmoney import EastMoneyCollector
from .factory import CollectorFactory
from .identity import Identity, IdentityRotator
from .kline_parser import KLineParser, KLineRow
from .manager import CollectorManager
from .rate_limiter import RateLimiter
from .tonghuashun import TongHuaShunCollector

__all__ = [
    "BaseCollector",
    "CollectorFactory",
    "CollectorManager",
    "DataCollector",
    "Deadline",
    "EastMoneyCollector",
    "Identity",
    "IdentityRotator",
    "KLineParser",
    "KLineRow",
    "RateLimiter",
    "TongHuaShunCollector",
    "split_ts_code",
]
