"""TongHuaShun fund-flow list page (HTML fragment) parsing."""

from __future__ import annotations

from quotecollector.core.config import TONGHUASHUN
from quotecollector.core.exceptions import ProtocolError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import Stock

logger = get_logger(__name__)

CODE_START = 'stockCode">'
CODE_END = "</a>"

EXCLUDED_FRAGMENTS = ("http", "www", "javascript", "function", "var ", "return", "null", "undefined")
DATA_ATTRIBUTES = ('data-name="', 'data-title="', 'data-stock-name="')

ATTRIBUTE_LOOKAHEAD = 5
TEXT_LOOKAHEAD = 10


def contains_cjk(text: str) -> bool:
    return any("\u4e00" <= char <= "\u9fff" for char in text)


def is_english_name(text: str) -> bool:
    return any(char.isascii() and char.isalpha() for char in text) and 2 <= len(text) <= 15


def is_valid_stock_name(name: str) -> bool:
    if not name or len(name) > 20:
        return False
    if "<" in name or ">" in name:
        return False
    lowered = name.lower()
    if any(fragment in lowered for fragment in EXCLUDED_FRAGMENTS):
        return False
    return contains_cjk(name) or is_english_name(name)


def _quoted_value(line: str, prefix: str, quote: str) -> str:
    start = line.find(prefix)
    if start == -1:
        return ""
    start += len(prefix)
    end = line.find(quote, start)
    if end == -1:
        return ""
    name = line[start:end].strip()
    return name if is_valid_stock_name(name) else ""


def _from_attribute(line: str, attribute: str) -> str:
    for quote in ('"', "'"):
        name = _quoted_value(line, f"{attribute}={quote}", quote)
        if name:
            return name
    return ""


def _from_data_attributes(line: str) -> str:
    for prefix in DATA_ATTRIBUTES:
        name = _quoted_value(line, prefix, '"')
        if name:
            return name
    return ""


def extract_stock_name(lines: list[str], index: int, code: str) -> str:
    """Find a display name for the row at ``index``, falling back to ``code``.

    Tried in order: ``title`` on the row then the next lines, ``alt`` likewise,
    a plain CJK text line below the row, then ``data-*`` attributes.
    """
    line = lines[index]
    nearby = lines[index + 1 : index + ATTRIBUTE_LOOKAHEAD]

    for attribute in ("title", "alt"):
        for candidate in (line, *nearby):
            name = _from_attribute(candidate, attribute)
            if name:
                return name

    for candidate in lines[index + 1 : index + TEXT_LOOKAHEAD]:
        text = candidate.strip()
        if is_valid_stock_name(text):
            return text

    for candidate in (line, *nearby):
        name = _from_data_attributes(candidate)
        if name:
            return name

    return code


def market_for(code: str) -> str:
    return "SH" if code.startswith(("60", "68")) else "SZ"


def parse_stock_row(lines: list[str], index: int) -> Stock:
    line = lines[index].strip()
    start = line.find(CODE_START)
    if start == -1:
        raise ProtocolError("stock code not found", TONGHUASHUN, payload=line)
    start += len(CODE_START)
    end = line.find(CODE_END, start)
    if end == -1:
        raise ProtocolError("stock code end tag not found", TONGHUASHUN, payload=line)
    code = line[start:end].strip()
    if len(code) != 6:
        raise ProtocolError(f"invalid stock code: {code}", TONGHUASHUN, payload=line)

    market = market_for(code)
    return Stock(
        ts_code=f"{code}.{market}",
        symbol=code,
        name=extract_stock_name(lines, index, code),
        market=market,
    )


def parse_stock_list_page(html: str) -> tuple[list[Stock], bool]:
    """Stocks on one list page and whether another page should be requested.

    A page is assumed to have a successor whenever it yielded at least one row.
    """
    lines = html.split("\n")
    stocks: list[Stock] = []
    for index, raw in enumerate(lines):
        if "stockCode" not in raw or "linkToGghq" not in raw:
            continue
        try:
            stocks.append(parse_stock_row(lines, index))
        except ProtocolError as exc:
            logger.warning(f"Skipping stock row: {exc.message}")
    return stocks, len(stocks) > 0
