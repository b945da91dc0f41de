"""
Collector contract and shared connection state.

Every data source implements :class:`DataCollector`. Retrieval operations a
source does not offer raise :class:`NotSupportedError` instead of returning an
empty result. :class:`BaseCollector` composes the per-collector state: the
connection flag, the rate limiter, the identity rotator and the HTTP client.
"""

from __future__ import annotations

import re
import threading
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Mapping

import httpx

from quotecollector.core.config import CollectorConfig
from quotecollector.core.exceptions import DataValidationError, NotConnectedError, NotSupportedError
from quotecollector.core.logging import get_logger
from quotecollector.core.models import (
    DailyData,
    KLinePeriod,
    KLineRecord,
    PerformanceReport,
    ShareholderCount,
    Stock,
    latest_by,
)

from .deadline import Deadline
from .http_client import HttpClient
from .identity import Identity, IdentityRotator
from .rate_limiter import RateLimiter

logger = get_logger(__name__)

TS_CODE_PATTERN = re.compile(r"^(\d{6})\.(SH|SZ)$")

HeaderBuilder = Callable[[Identity], Mapping[str, str]]


def split_ts_code(ts_code: str) -> tuple[str, str]:
    """Split ``600000.SH`` into symbol and exchange suffix.

    Raises:
        DataValidationError: the code is not six digits plus ``.SH``/``.SZ``
    """
    match = TS_CODE_PATTERN.match(ts_code or "")
    if not match:
        raise DataValidationError(
            f"invalid ts_code format: {ts_code}",
            validation_errors={"ts_code": "expected six digits followed by .SH or .SZ"},
        )
    return match.group(1), match.group(2)


class DataCollector(ABC):
    """数据采集器接口."""

    @property
    @abstractmethod
    def name(self) -> str:
        """数据源名称."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """是否已连接."""

    @abstractmethod
    def connect(self) -> None:
        """连接数据源, 已连接时不做任何事."""

    @abstractmethod
    def disconnect(self) -> None:
        """断开连接, 未连接时不做任何事."""

    def _unsupported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(operation, self.name)

    def get_stock_list(self, *, deadline: Deadline | None = None) -> list[Stock]:
        raise self._unsupported("get_stock_list")

    def get_stock_detail(self, ts_code: str, *, deadline: Deadline | None = None) -> Stock:
        raise self._unsupported("get_stock_detail")

    def get_kline(
        self,
        ts_code: str,
        period: KLinePeriod,
        start: date | None = None,
        end: date | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> list[KLineRecord]:
        raise self._unsupported(f"get_kline[{KLinePeriod(period).value}]")

    def get_realtime_data(self, ts_codes: list[str], *, deadline: Deadline | None = None) -> list[DailyData]:
        raise self._unsupported("get_realtime_data")

    def get_performance_reports(self, ts_code: str, *, deadline: Deadline | None = None) -> list[PerformanceReport]:
        raise self._unsupported("get_performance_reports")

    def get_shareholder_counts(self, ts_code: str, *, deadline: Deadline | None = None) -> list[ShareholderCount]:
        raise self._unsupported("get_shareholder_counts")

    def get_today_data(self, ts_code: str, *, deadline: Deadline | None = None) -> tuple[DailyData, str]:
        raise self._unsupported("get_today_data")

    def get_current_period(
        self, ts_code: str, period: KLinePeriod, *, deadline: Deadline | None = None
    ) -> KLineRecord:
        raise self._unsupported("get_current_period")

    # 以下为基于上面操作的便捷方法

    def get_stock_data(
        self, ts_code: str, start: date | None = None, end: date | None = None, *, deadline: Deadline | None = None
    ) -> list[KLineRecord]:
        """股票历史数据, 即日K线."""
        return self.get_kline(ts_code, KLinePeriod.DAILY, start, end, deadline=deadline)

    def get_daily_kline(self, ts_code: str, start: date | None = None, end: date | None = None, **kwargs: Any) -> list[KLineRecord]:
        return self.get_kline(ts_code, KLinePeriod.DAILY, start, end, **kwargs)

    def get_weekly_kline(self, ts_code: str, start: date | None = None, end: date | None = None, **kwargs: Any) -> list[KLineRecord]:
        return self.get_kline(ts_code, KLinePeriod.WEEKLY, start, end, **kwargs)

    def get_monthly_kline(self, ts_code: str, start: date | None = None, end: date | None = None, **kwargs: Any) -> list[KLineRecord]:
        return self.get_kline(ts_code, KLinePeriod.MONTHLY, start, end, **kwargs)

    def get_quarterly_kline(self, ts_code: str, start: date | None = None, end: date | None = None, **kwargs: Any) -> list[KLineRecord]:
        return self.get_kline(ts_code, KLinePeriod.QUARTERLY, start, end, **kwargs)

    def get_yearly_kline(self, ts_code: str, start: date | None = None, end: date | None = None, **kwargs: Any) -> list[KLineRecord]:
        return self.get_kline(ts_code, KLinePeriod.YEARLY, start, end, **kwargs)

    def get_latest_performance_report(self, ts_code: str, *, deadline: Deadline | None = None) -> PerformanceReport | None:
        """报告期最新的一期业绩报表, 没有数据时返回 None."""
        return latest_by(self.get_performance_reports(ts_code, deadline=deadline), "report_date")

    def get_latest_shareholder_count(self, ts_code: str, *, deadline: Deadline | None = None) -> ShareholderCount | None:
        """截止日期最新的一期股东户数, 没有数据时返回 None."""
        return latest_by(self.get_shareholder_counts(ts_code, deadline=deadline), "end_date")


class BaseCollector(DataCollector):
    """HTTP数据源的公共状态: 连接标志、限流器、身份轮换与HTTP客户端."""

    def __init__(
        self,
        config: CollectorConfig,
        rotator: IdentityRotator | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.config = config
        self.limiter = RateLimiter(config.rate_limit, owner=config.name)
        self.identity = rotator or IdentityRotator(owner=config.name)
        self.http = HttpClient(config, transport=transport)
        self._state_lock = threading.Lock()
        self._connected = False

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        with self._state_lock:
            if self._connected:
                return
            logger.info(f"Connecting to {self.name}...")
            try:
                self._check_reachable()
            except Exception as exc:
                logger.bind(collector=self.name).error(f"Failed to connect to {self.name}: {exc}")
                raise
            self._connected = True
        logger.info(f"Successfully connected to {self.name}")

    def disconnect(self) -> None:
        with self._state_lock:
            if not self._connected:
                return
            self._connected = False
            self.http.close()
        logger.info(f"Disconnected from {self.name}")

    def _check_reachable(self) -> None:
        """Connectivity check run by :meth:`connect`; subclasses may override."""

    def __enter__(self) -> BaseCollector:
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise NotConnectedError(self.name)

    def _default_headers(self, identity: Identity) -> dict[str, str]:
        return {**identity.headers(), "Cookie": identity.cookie}

    def _url(self, path: str) -> str:
        """``path`` resolved against the configured ``base_url``."""
        return self.config.base_url.rstrip("/") + path

    def _request(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        *,
        build_headers: HeaderBuilder | None = None,
        refresh_token: bool = False,
        deadline: Deadline | None = None,
    ) -> str:
        """Rate-limited GET carrying the current identity."""
        self._ensure_connected()
        self.limiter.acquire(deadline)
        identity = self.identity.current(refresh_token=refresh_token)
        headers = dict(self.config.headers)
        headers.update(build_headers(identity) if build_headers else self._default_headers(identity))
        return self.http.get(url, params=params, headers=headers, deadline=deadline)

    # 限流与身份

    def set_rate_limit(self, requests_per_second: int) -> None:
        self.limiter.set_rate(requests_per_second)
        logger.info(f"{self.name} rate limit set to {self.limiter.rate} req/s (burst {self.limiter.burst})")

    def get_rate_limit(self) -> int:
        return self.limiter.rate

    def get_rate_limit_stats(self) -> dict[str, Any]:
        return self.limiter.stats()

    def current_identity(self) -> Identity:
        return self.identity.peek()

    def force_rotate_identity(self) -> Identity:
        return self.identity.force_rotate()
