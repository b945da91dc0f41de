"""
Canonical parsing of comma-delimited K-line rows.

Rows look like ``date,open,close,high,low,volume,amount[,...]`` with the date
written as ``YYYY-MM-DD``. Numeric fields are lenient (blank, ``-`` or
garbage become zero); the date and the field count are strict.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from pydantic import ValidationError

from quotecollector.core.exceptions import ProtocolError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import KLinePeriod, KLineRecord, record_type_for

from .parsing import in_date_range, safe_float, safe_int

logger = get_logger(__name__)

MIN_FIELDS = 7


@dataclass(frozen=True)
class KLineRow:
    """One decoded row, before the price-range invariant is enforced."""

    ts_code: str
    trade_date: int
    open: float
    close: float
    high: float
    low: float
    volume: int
    amount: float

    def to_record(self, period: KLinePeriod = KLinePeriod.DAILY) -> KLineRecord:
        """Build the canonical record; raises ``ValidationError`` on a broken range."""
        return record_type_for(period)(
            ts_code=self.ts_code,
            trade_date=self.trade_date,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
            amount=self.amount,
        )


class KLineParser:
    """Parses provider K-line text rows into canonical records."""

    def __init__(self, source: str = "kline"):
        self.source = source

    def parse_trade_date(self, text: str) -> int:
        try:
            day = datetime.strptime(text.strip(), "%Y-%m-%d")
        except ValueError as exc:
            raise ProtocolError(f"failed to parse date {text!r}", self.source, payload=text) from exc
        return day.year * 10000 + day.month * 100 + day.day

    def parse_row(self, ts_code: str, row: str) -> KLineRow:
        fields = row.split(",")
        if len(fields) < MIN_FIELDS:
            raise ProtocolError(f"invalid kline data format: {row}", self.source, payload=row)
        return KLineRow(
            ts_code=ts_code,
            trade_date=self.parse_trade_date(fields[0]),
            open=safe_float(fields[1]),
            close=safe_float(fields[2]),
            high=safe_float(fields[3]),
            low=safe_float(fields[4]),
            volume=safe_int(fields[5]),
            amount=safe_float(fields[6]),
        )

    def parse(self, ts_code: str, row: str, period: KLinePeriod = KLinePeriod.DAILY) -> KLineRecord:
        return self.parse_row(ts_code, row).to_record(period)

    def parse_daily(self, ts_code: str, row: str) -> KLineRecord:
        return self.parse(ts_code, row, KLinePeriod.DAILY)

    def parse_weekly(self, ts_code: str, row: str) -> KLineRecord:
        return self.parse(ts_code, row, KLinePeriod.WEEKLY)

    def parse_monthly(self, ts_code: str, row: str) -> KLineRecord:
        return self.parse(ts_code, row, KLinePeriod.MONTHLY)

    def parse_yearly(self, ts_code: str, row: str) -> KLineRecord:
        return self.parse(ts_code, row, KLinePeriod.YEARLY)

    def parse_many(
        self,
        ts_code: str,
        rows: Iterable[str],
        period: KLinePeriod = KLinePeriod.DAILY,
        start: date | None = None,
        end: date | None = None,
    ) -> list[KLineRecord]:
        """Parse rows, skipping (and logging) any that fail, then filter by date."""
        records: list[KLineRecord] = []
        for row in rows:
            try:
                record = self.parse(ts_code, row, period)
            except ProtocolError as exc:
                logger.warning(f"Skipping malformed {period.value} kline row for {ts_code}: {exc.message}")
                continue
            except ValidationError as exc:
                logger.warning(f"Skipping inconsistent {period.value} kline row for {ts_code}: {exc.errors()[0]['msg']}")
                continue
            if in_date_range(record.trade_date, start, end):
                records.append(record)
        return records
