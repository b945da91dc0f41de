"""Lenient value coercion and callback-envelope helpers shared by decoders."""

from __future__ import annotations

import json
import math
import re
from datetime import date, datetime
from typing import Any, Iterable

from quotecollector.core.exceptions import ProtocolError

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%Y%m%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
)

_MISSING = {"", "-", "--"}


def safe_float(value: Any) -> float:
    """Coerce str/int/float (or None) into a finite float, 0 on failure."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if text in _MISSING:
            return 0.0
        try:
            result = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return result if math.isfinite(result) else 0.0


def safe_int(value: Any) -> int:
    """Like :func:`safe_float` but integral; exact for integer strings."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
    return int(safe_float(value))


def safe_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_datetime(value: Any) -> datetime | None:
    """Parse the timestamp layouts used by the data providers."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for layout in _DATETIME_FORMATS:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue
    return None


def parse_date_int(value: Any) -> int | None:
    """Timestamp text to a YYYYMMDD integer, None when unparseable."""
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return parsed.year * 10000 + parsed.month * 100 + parsed.day


def in_date_range(trade_date: int, start: date | None, end: date | None) -> bool:
    """Inclusive range check on a YYYYMMDD integer; None bounds are open."""
    if start is not None and trade_date < start.year * 10000 + start.month * 100 + start.day:
        return False
    if end is not None and trade_date > end.year * 10000 + end.month * 100 + end.day:
        return False
    return True


def strip_jsonp(body: str, patterns: Iterable[re.Pattern[str]], source: str) -> str:
    """Return the JSON text inside the first matching ``callback(...)`` envelope."""
    for pattern in patterns:
        match = pattern.search(body)
        if match:
            return match.group(1)
    raise ProtocolError("invalid JSONP response format", source, payload=body)


def strip_parentheses(body: str, source: str) -> str:
    """Take the text between the first ``(`` and the last ``)``."""
    start = body.find("(")
    end = body.rfind(")")
    if start == -1 or end <= start:
        raise ProtocolError("invalid callback wrapper", source, payload=body)
    return body[start + 1 : end]


def load_json(text: str, source: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"failed to parse JSON: {exc}", source, payload=text) from exc


def load_object(text: str, source: str) -> dict[str, Any]:
    payload = load_json(text, source)
    if not isinstance(payload, dict):
        raise ProtocolError("unexpected payload shape, expected an object", source, payload=text)
    return payload
