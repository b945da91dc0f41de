"""EastMoney JSONP response decoding."""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import ValidationError

from quotecollector.core.config import EASTMONEY
from quotecollector.core.exceptions import ProtocolError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import DailyData, KLinePeriod, KLineRecord, PerformanceReport, ShareholderCount, Stock

from ..kline_parser import KLineParser
from ..parsing import (
    load_object,
    parse_date_int,
    parse_datetime,
    safe_float,
    safe_int,
    safe_str,
    strip_jsonp,
    strip_parentheses,
)

logger = get_logger(__name__)

JQUERY_CALLBACK = re.compile(r"jQuery\d+_\d+\((.*)\)", re.S)
JSONP_CALLBACK = re.compile(r"jsonp\d+\((.*)\)", re.S)

MARKET_SUFFIX = {0: "SZ", 1: "SH"}

# (前缀, 板块, 地区), 按顺序匹配
BOARD_PREFIXES: tuple[tuple[tuple[str, ...], str, str], ...] = (
    (("000", "001", "002"), "主板", "深圳"),
    (("300",), "创业板", "深圳"),
    (("600", "601", "603", "605"), "主板", "上海"),
    (("688",), "科创板", "上海"),
    (("8", "4"), "北交所", "北京"),
)

HOLDER_RATIO_LIMIT = 999999.0


def classify_board(symbol: str) -> tuple[str, str]:
    """Board and area implied by a symbol prefix."""
    for prefixes, board, area in BOARD_PREFIXES:
        if symbol.startswith(prefixes):
            return board, area
    return "其他", "未知"


def decode_envelope(body: str, source: str = EASTMONEY) -> dict[str, Any]:
    """Strip the JSONP callback, parse JSON and check the ``rc`` status."""
    payload = load_object(strip_jsonp(body, (JQUERY_CALLBACK, JSONP_CALLBACK), source), source)
    rc = payload.get("rc", 0)
    if rc != 0:
        raise ProtocolError(f"API error: rc={rc}", source, details={"rc": rc})
    return payload


def _unexpected_shape(field: str, value: Any, source: str, body: str | None) -> ProtocolError:
    return ProtocolError(
        f"unexpected payload shape: {field} is {type(value).__name__}",
        source,
        payload=body,
        details={"field": field},
    )


def list_rows(payload: dict[str, Any], source: str = EASTMONEY, body: str | None = None) -> list[dict[str, Any]]:
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise _unexpected_shape("data", data, source, body)
    diff = data.get("diff") or []
    if isinstance(diff, dict):
        diff = list(diff.values())
    if not isinstance(diff, list):
        raise _unexpected_shape("data.diff", diff, source, body)
    return [row for row in diff if isinstance(row, dict)]


def row_ts_code(row: dict[str, Any]) -> tuple[str, str] | None:
    market = MARKET_SUFFIX.get(safe_int(row.get("f13", -1)))
    symbol = safe_str(row.get("f12"))
    if market is None or not symbol:
        return None
    return symbol, market


def row_to_stock(row: dict[str, Any]) -> Stock | None:
    parts = row_ts_code(row)
    if parts is None:
        logger.warning(f"Skipping stock list row with unknown market: {row.get('f12')!r} f13={row.get('f13')!r}")
        return None
    symbol, market = parts
    board, area = classify_board(symbol)
    return Stock(
        ts_code=f"{symbol}.{market}",
        symbol=symbol,
        name=safe_str(row.get("f14")),
        market=market,
        industry=board,
        area=area,
    )


def row_to_realtime(row: dict[str, Any], trade_date: int) -> DailyData | None:
    """Latest price snapshot; only the price is known so OHLC collapse onto it."""
    parts = row_ts_code(row)
    if parts is None:
        return None
    price = safe_float(row.get("f2"))
    symbol, market = parts
    return DailyData(
        ts_code=f"{symbol}.{market}",
        trade_date=trade_date,
        open=price,
        high=price,
        low=price,
        close=price,
        volume=0,
        amount=0.0,
    )


def decode_stock_detail(body: str, ts_code: str, source: str = EASTMONEY) -> Stock:
    payload = decode_envelope(body, source)
    data = payload.get("data")
    if not isinstance(data, dict):
        raise ProtocolError(f"no detail data for {ts_code}", source, payload=body)
    symbol, market = ts_code.split(".")
    board, area = classify_board(symbol)
    return Stock(
        ts_code=ts_code,
        symbol=symbol,
        name=safe_str(data.get("f58")),
        market=market,
        industry=board,
        area=area,
    )


def decode_kline(
    body: str,
    ts_code: str,
    period: KLinePeriod,
    start: date | None = None,
    end: date | None = None,
    parser: KLineParser | None = None,
    source: str = EASTMONEY,
) -> list[KLineRecord]:
    payload = decode_envelope(body, source)
    data = payload.get("data")
    if not data:
        return []
    if not isinstance(data, dict):
        raise _unexpected_shape("data", data, source, body)
    klines = data.get("klines") or []
    if not isinstance(klines, list):
        raise ProtocolError("klines is not a list", source, payload=body)
    parser = parser or KLineParser(source)
    return parser.parse_many(ts_code, (str(row) for row in klines), period, start, end)


def decode_datacenter(body: str, source: str = EASTMONEY) -> list[dict[str, Any]]:
    """Rows from a datacenter ``{result: {data: [...]}, success, message}`` reply."""
    payload = load_object(strip_parentheses(body, source), source)
    result = payload.get("result")
    if not result:
        # 无数据时 success=false 且 result 为空, 不视为错误
        logger.debug(f"datacenter returned no rows: {payload.get('message')}")
        return []
    if not isinstance(result, dict):
        raise _unexpected_shape("result", result, source, body)
    rows = result.get("data") or []
    if not isinstance(rows, list):
        raise _unexpected_shape("result.data", rows, source, body)
    return [row for row in rows if isinstance(row, dict)]


def to_performance_report(ts_code: str, row: dict[str, Any]) -> PerformanceReport:
    return PerformanceReport(
        ts_code=ts_code,
        report_date=parse_date_int(row.get("REPORTDATE")) or 0,
        eps=safe_float(row.get("BASIC_EPS")),
        weight_eps=safe_float(row.get("DEDUCT_BASIC_EPS")),
        revenue=safe_float(row.get("TOTAL_OPERATE_INCOME")),
        revenue_qoq=safe_float(row.get("YSHZ")),
        revenue_yoy=safe_float(row.get("YSTZ")),
        net_profit=safe_float(row.get("PARENT_NETPROFIT")),
        net_profit_qoq=safe_float(row.get("SJLHZ")),
        net_profit_yoy=safe_float(row.get("SJLTZ")),
        bvps=safe_float(row.get("BPS")),
        gross_margin=safe_float(row.get("XSMLL")),
        dividend_yield=safe_float(row.get("ZXGXL")),
        latest_announcement_date=parse_datetime(row.get("NOTICE_DATE")),
        first_announcement_date=parse_datetime(row.get("UPDATE_DATE")),
    )


def to_shareholder_count(ts_code: str, row: dict[str, Any]) -> ShareholderCount:
    ratio = safe_float(row.get("HOLDER_NUM_RATIO"))
    if abs(ratio) > HOLDER_RATIO_LIMIT:
        logger.warning(f"Holder num ratio out of range for {ts_code}: {ratio}, setting to 0")
        ratio = 0.0
    return ShareholderCount(
        ts_code=ts_code,
        security_code=safe_str(row.get("SECURITY_CODE")),
        security_name=safe_str(row.get("SECURITY_NAME_ABBR")),
        end_date=parse_date_int(row.get("END_DATE")) or 0,
        holder_num=safe_int(row.get("HOLDER_NUM")),
        pre_holder_num=safe_int(row.get("PRE_HOLDER_NUM")),
        holder_num_change=safe_int(row.get("HOLDER_NUM_CHANGE")),
        holder_num_ratio=ratio,
        avg_market_cap=safe_float(row.get("AVG_MARKET_CAP")),
        avg_hold_num=safe_float(row.get("AVG_HOLD_NUM")),
        total_market_cap=safe_float(row.get("TOTAL_MARKET_CAP")),
        total_a_shares=safe_int(row.get("TOTAL_A_SHARES")),
        interval_chrate=safe_float(row.get("INTERVAL_CHRATE")),
        change_shares=safe_int(row.get("CHANGE_SHARES")),
        change_reason=safe_str(row.get("CHANGE_REASON")),
        hold_notice_date=parse_datetime(row.get("HOLD_NOTICE_DATE")),
        pre_end_date=parse_date_int(row.get("PRE_END_DATE")),
    )


def convert_rows(ts_code: str, rows: list[dict[str, Any]], converter: Any, label: str) -> list[Any]:
    """Apply ``converter`` to each row, skipping rows that fail validation."""
    records = []
    for row in rows:
        try:
            records.append(converter(ts_code, row))
        except ValidationError as exc:
            logger.warning(f"Skipping invalid {label} row for {ts_code}: {exc.errors()[0]['msg']}")
    return records
