"""TongHuaShun data source."""

from .collector import TongHuaShunCollector, list_cookie, today_cookie
from .decoder import KLINE_TYPES, decode_kline, decode_kline_payload, decode_today
from .html import extract_stock_name, is_valid_stock_name, parse_stock_list_page

__all__ = [
    "KLINE_TYPES",
    "TongHuaShunCollector",
    "decode_kline",
    "decode_kline_payload",
    "decode_today",
    "extract_stock_name",
    "is_valid_stock_name",
    "list_cookie",
    "parse_stock_list_page",
    "today_cookie",
]
