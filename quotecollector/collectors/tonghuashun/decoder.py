"""
TongHuaShun K-line payload decoding.

The ``all.js`` payload is ``quotebridge_v6_line_{code}_{type}_all({...})``
where the object holds flat, delta-encoded arrays::

    sortYear  [[2024, 242], [2025, 180], ...]   days per calendar year, in order
    dates     "0102010301040105..."            MMDD per day (4-char fixed width)
    price     "1050,20,35,10,..."              low, open-low, high-low, close-low per day
    volumn    "123400,98700,..."               volume per day

Prices are in hundredths of the currency unit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from pydantic import ValidationError

from quotecollector.core.config import TONGHUASHUN
from quotecollector.core.exceptions import ProtocolError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import KLinePeriod, KLineRecord, record_type_for

from ..parsing import in_date_range, load_object, safe_float, safe_int, safe_str

logger = get_logger(__name__)

PRICE_SCALE = 100

# 同花顺K线类型代码
KLINE_TYPES = {
    KLinePeriod.DAILY: "01",
    KLinePeriod.WEEKLY: "11",
    KLinePeriod.MONTHLY: "21",
    KLinePeriod.QUARTERLY: "91",
    KLinePeriod.YEARLY: "81",
}


@dataclass(frozen=True)
class TodayField:
    code: str
    convert: Callable[[Any], Any]


# today.js 扁平对象的字段代码
TODAY_FIELDS = {
    "trade_date": TodayField("1", safe_int),
    "open": TodayField("7", safe_float),
    "high": TodayField("8", safe_float),
    "low": TodayField("9", safe_float),
    "close": TodayField("11", safe_float),
    "volume": TodayField("13", safe_int),
    "amount": TodayField("19", safe_float),
}
NAME_FIELD = "name"


def ths_code(symbol: str) -> str:
    return f"hs_{symbol}"


def strip_callback(body: str, prefix: str, source: str = TONGHUASHUN) -> str:
    """Remove ``prefix...(`` and the trailing ``)`` around the JSON object."""
    start = body.find(prefix)
    if start == -1:
        raise ProtocolError("callback function not found in response", source, payload=body)
    paren = body.find("(", start + len(prefix) - 1)
    end = body.rfind(")")
    if paren == -1 or end <= paren:
        raise ProtocolError("invalid callback format", source, payload=body)
    return body[paren + 1 : end]


def split_dates(dates: str) -> list[str]:
    """MMDD fragments, comma separated or packed at fixed width."""
    dates = dates.strip()
    if not dates:
        return []
    if "," in dates:
        return [part.strip() for part in dates.split(",")]
    return [dates[i : i + 4] for i in range(0, len(dates), 4)]


def split_numbers(text: str) -> list[str]:
    text = text.strip()
    return text.split(",") if text else []


def decode_kline_payload(
    payload: dict[str, Any],
    ts_code: str,
    period: KLinePeriod,
    start: date | None = None,
    end: date | None = None,
    source: str = TONGHUASHUN,
) -> list[KLineRecord]:
    """Walk ``sortYear`` buckets consuming one date, price quadruple and volume per day."""
    sort_year = payload.get("sortYear")
    if not isinstance(sort_year, list):
        raise ProtocolError("sortYear missing from kline payload", source)

    dates = split_dates(safe_str(payload.get("dates")))
    prices = split_numbers(safe_str(payload.get("price")))
    volume_text = payload.get("volumn", payload.get("volume"))
    volumes = split_numbers(safe_str(volume_text))
    record_type = record_type_for(period)

    records: list[KLineRecord] = []
    index = 0
    for bucket in sort_year:
        if not isinstance(bucket, list) or len(bucket) < 2:
            raise ProtocolError(f"malformed sortYear bucket: {bucket!r}", source)
        year, count = safe_int(bucket[0]), safe_int(bucket[1])
        for _ in range(count):
            if index >= len(dates) or (index + 1) * 4 > len(prices) or index >= len(volumes):
                break
            fragment = dates[index]
            quad = prices[index * 4 : index * 4 + 4]
            volume = safe_int(volumes[index])
            index += 1

            if len(fragment) != 4 or not fragment.isdigit():
                logger.warning(f"Skipping day with malformed date fragment {fragment!r} for {ts_code}")
                continue
            trade_date = year * 10000 + int(fragment)
            if not in_date_range(trade_date, start, end):
                continue

            low_base, open_delta, high_delta, close_delta = (safe_int(value) for value in quad)
            try:
                records.append(
                    record_type(
                        ts_code=ts_code,
                        trade_date=trade_date,
                        low=low_base / PRICE_SCALE,
                        open=(low_base + open_delta) / PRICE_SCALE,
                        high=(low_base + high_delta) / PRICE_SCALE,
                        close=(low_base + close_delta) / PRICE_SCALE,
                        volume=volume,
                        amount=0.0,
                    )
                )
            except ValidationError as exc:
                logger.warning(f"Skipping inconsistent {period.value} kline on {trade_date} for {ts_code}: {exc.errors()[0]['msg']}")
    return records


def decode_kline(
    body: str,
    ts_code: str,
    symbol: str,
    period: KLinePeriod,
    start: date | None = None,
    end: date | None = None,
    source: str = TONGHUASHUN,
) -> list[KLineRecord]:
    prefix = f"quotebridge_v6_line_{ths_code(symbol)}_{KLINE_TYPES[period]}_all("
    payload = load_object(strip_callback(body, prefix, source), source)
    return decode_kline_payload(payload, ts_code, period, start, end, source)


def decode_today(
    body: str,
    ts_code: str,
    symbol: str,
    period: KLinePeriod = KLinePeriod.DAILY,
    source: str = TONGHUASHUN,
) -> tuple[KLineRecord, str]:
    """Decode ``defer/today.js``: ``{"hs_600000": {"1": "20250930", "7": "27.48", ...}}``."""
    code = ths_code(symbol)
    payload = load_object(strip_callback(body, f"quotebridge_v6_line_{code}_", source), source)
    data = payload.get(code)
    if not isinstance(data, dict):
        raise ProtocolError(f"stock data not found for {code}", source, payload=body)

    values = {name: field.convert(data.get(field.code)) for name, field in TODAY_FIELDS.items()}
    if not safe_str(data.get(TODAY_FIELDS["trade_date"].code)).isdigit():
        raise ProtocolError("failed to parse trade date", source, payload=body)
    try:
        record = record_type_for(period)(ts_code=ts_code, **values)
    except ValidationError as exc:
        raise ProtocolError(f"inconsistent snapshot for {ts_code}: {exc.errors()[0]['msg']}", source) from exc
    return record, safe_str(data.get(NAME_FIELD))
