"""EastMoney data source."""

from .collector import EastMoneyCollector, build_secid
from .decoder import classify_board, decode_envelope, decode_kline

__all__ = ["EastMoneyCollector", "build_secid", "classify_board", "decode_envelope", "decode_kline"]
