"""
quotecollector - A-share market data collection.

Collects stock lists, K-lines and fundamentals from EastMoney and
TongHuaShun behind one collector contract, with per-source rate limiting,
rotating browser identities and multi-source fallback.
"""

__version__ = "0.1.0"

from quotecollector.collectors import (
    CollectorFactory,
    CollectorManager,
    DataCollector,
    Deadline,
    EastMoneyCollector,
    TongHuaShunCollector,
)
from quotecollector.core.config import ConfigManager, Settings
from quotecollector.core.exceptions import QuoteCollectorError
from quotecollector.core.models import DailyData, KLinePeriod, KLineRecord, Stock

__all__ = [
    "__version__",
    "CollectorFactory",
    "CollectorManager",
    "ConfigManager",
    "DailyData",
    "DataCollector",
    "Deadline",
    "EastMoneyCollector",
    "KLinePeriod",
    "KLineRecord",
    "QuoteCollectorError",
    "Settings",
    "Stock",
    "TongHuaShunCollector",
]
