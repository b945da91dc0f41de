"""
Collector manager.

Name-keyed registry of collectors plus ordered fallback retrieval. The
registry is guarded by a readers-writer lock: lookups share the lock,
registration takes it exclusively. Collector calls themselves run outside
the lock, so unrelated collectors never serialize each other.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date
from typing import Any, Callable, Iterator, Sequence, TypeVar

from quotecollector.core.exceptions import (
    AllSourcesFailedError,
    CollectorConnectionError,
    CollectorNotFoundError,
    QuoteCollectorError,
)
from quotecollector.core.logging import get_logger, log_context
from quotecollector.core.models import DailyData, KLinePeriod, KLineRecord, PerformanceReport, Stock

from .base import DataCollector
from .deadline import Deadline

logger = get_logger(__name__)

T = TypeVar("T")


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class CollectorManager:
    """采集器管理器."""

    def __init__(self) -> None:
        self._collectors: dict[str, DataCollector] = {}
        self._lock = ReadWriteLock()

    # 注册表

    def register(self, name: str, collector: DataCollector) -> None:
        with self._lock.write():
            if name in self._collectors:
                logger.warning(f"Overriding existing collector: {name}")
            self._collectors[name] = collector
        logger.info(f"Registered collector: {name}")

    def unregister(self, name: str) -> DataCollector | None:
        with self._lock.write():
            collector = self._collectors.pop(name, None)
        if collector is not None:
            logger.info(f"Unregistered collector: {name}")
        return collector

    def get(self, name: str) -> DataCollector:
        with self._lock.read():
            collector = self._collectors.get(name)
        if collector is None:
            raise CollectorNotFoundError(name)
        return collector

    def names(self) -> list[str]:
        with self._lock.read():
            return list(self._collectors)

    def _snapshot(self) -> dict[str, DataCollector]:
        with self._lock.read():
            return dict(self._collectors)

    def available_collectors(self) -> list[str]:
        """Names of the collectors that are currently connected."""
        return [name for name, collector in self._snapshot().items() if collector.is_connected]

    def connect_all(self) -> None:
        """Connect every registered collector.

        Raises:
            CollectorConnectionError: one or more collectors failed; the others
                are still attempted and stay connected
        """
        failures: dict[str, str] = {}
        for name, collector in self._snapshot().items():
            try:
                collector.connect()
            except Exception as exc:
                logger.error(f"Failed to connect collector {name}: {exc}")
                failures[name] = str(exc)
        if failures:
            raise CollectorConnectionError(
                f"failed to connect some collectors: {', '.join(sorted(failures))}",
                failures=failures,
            )

    def disconnect_all(self) -> None:
        for name, collector in self._snapshot().items():
            try:
                collector.disconnect()
            except Exception as exc:
                logger.error(f"Failed to disconnect collector {name}: {exc}")

    # 指定数据源

    def get_stock_list_from_source(self, source: str, *, deadline: Deadline | None = None) -> list[Stock]:
        return self.get(source).get_stock_list(deadline=deadline)

    def get_stock_data_from_source(
        self,
        source: str,
        ts_code: str,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        return self.get(source).get_stock_data(ts_code, start, end, deadline=deadline)

    def get_stock_detail_from_source(self, source: str, ts_code: str, *, deadline: Deadline | None = None) -> Stock:
        return self.get(source).get_stock_detail(ts_code, deadline=deadline)

    def get_kline_from_source(
        self,
        source: str,
        ts_code: str,
        period: KLinePeriod,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        return self.get(source).get_kline(ts_code, period, start, end, deadline=deadline)

    def get_realtime_data_from_source(
        self, source: str, ts_codes: list[str], *, deadline: Deadline | None = None
    ) -> list[DailyData]:
        return self.get(source).get_realtime_data(ts_codes, deadline=deadline)

    def get_performance_reports_from_source(
        self, source: str, ts_code: str, *, deadline: Deadline | None = None
    ) -> list[PerformanceReport]:
        return self.get(source).get_performance_reports(ts_code, deadline=deadline)

    # 回退

    def _with_fallback(
        self,
        primary: str,
        fallbacks: Sequence[str],
        fetch: Callable[[str], T],
        subject: str,
    ) -> T:
        """Try ``primary`` then each fallback in order until one succeeds.

        Individual failures are logged; only exhausting every source raises.
        """
        sources = [primary, *(name for name in fallbacks if name != primary)]
        failed: list[dict[str, Any]] = []
        with log_context(operation=subject):
            for index, source in enumerate(sources):
                with log_context(collector=source):
                    try:
                        result = fetch(source)
                    except QuoteCollectorError as exc:
                        role = "Primary" if index == 0 else "Fallback"
                        logger.bind(error_code=exc.error_code).warning(
                            f"{role} source {source} failed for {subject}: {exc.message}"
                        )
                        failed.append({"source": source, "code": exc.error_code, "error": exc.message})
                        continue
                    if index > 0:
                        logger.info(f"Using fallback source {source} for {subject}")
                    return result

            logger.error(f"All data sources failed for {subject}")
        raise AllSourcesFailedError(f"all data sources failed for {subject}", failed_sources=failed)

    def get_stock_list_with_fallback(
        self, primary: str, fallbacks: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[Stock]:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_stock_list_from_source(source, deadline=deadline),
            "stock list",
        )

    def get_stock_data_with_fallback(
        self,
        primary: str,
        fallbacks: Sequence[str],
        ts_code: str,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_stock_data_from_source(source, ts_code, start, end, deadline=deadline),
            ts_code,
        )

    def get_stock_detail_with_fallback(
        self, primary: str, fallbacks: Sequence[str], ts_code: str, *, deadline: Deadline | None = None
    ) -> Stock:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_stock_detail_from_source(source, ts_code, deadline=deadline),
            ts_code,
        )

    def get_kline_with_fallback(
        self,
        primary: str,
        fallbacks: Sequence[str],
        ts_code: str,
        period: KLinePeriod,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_kline_from_source(source, ts_code, period, start, end, deadline=deadline),
            f"{ts_code} {KLinePeriod(period).value} kline",
        )

    def get_realtime_data_with_fallback(
        self, primary: str, fallbacks: Sequence[str], ts_codes: list[str], *, deadline: Deadline | None = None
    ) -> list[DailyData]:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_realtime_data_from_source(source, ts_codes, deadline=deadline),
            "realtime data",
        )

    def get_performance_reports_with_fallback(
        self, primary: str, fallbacks: Sequence[str], ts_code: str, *, deadline: Deadline | None = None
    ) -> list[PerformanceReport]:
        return self._with_fallback(
            primary,
            fallbacks,
            lambda source: self.get_performance_reports_from_source(source, ts_code, deadline=deadline),
            f"{ts_code} performance reports",
        )
