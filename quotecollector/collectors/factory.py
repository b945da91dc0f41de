"""Composition root: builds configured collectors and the manager that holds them."""

from __future__ import annotations

import threading

import httpx

from quotecollector.core.config import EASTMONEY, TONGHUASHUN, Settings
from quotecollector.core.exceptions import CollectorNotFoundError
from quotecollector.core.logging import get_logger

from .base import BaseCollector
from .eastmoney import EastMoneyCollector
from .identity import IdentityRotator
from .manager import CollectorManager
from .tonghuashun import TongHuaShunCollector

logger = get_logger(__name__)

# 数据源名称 -> (采集器类, 是否需要 hexin-v 令牌)
COLLECTOR_TYPES: dict[str, tuple[type[BaseCollector], bool]] = {
    EASTMONEY: (EastMoneyCollector, False),
    TONGHUASHUN: (TongHuaShunCollector, True),
}


class CollectorFactory:
    """按配置创建采集器, 每个名称在工厂生命周期内只创建一次."""

    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.settings = settings or Settings()
        self.transport = transport
        self._instances: dict[str, BaseCollector] = {}
        self._lock = threading.Lock()

    def available(self) -> list[str]:
        return [name for name in COLLECTOR_TYPES if name in self.settings.sources]

    def create(self, name: str) -> BaseCollector:
        with self._lock:
            collector = self._instances.get(name)
            if collector is None:
                collector = self._build(name)
                self._instances[name] = collector
            return collector

    def _build(self, name: str) -> BaseCollector:
        if name not in COLLECTOR_TYPES or name not in self.settings.sources:
            raise CollectorNotFoundError(name)
        collector_type, with_token = COLLECTOR_TYPES[name]
        config = self.settings.sources[name].to_collector_config(name)
        rotator = IdentityRotator(
            interval=self.settings.identity.rotation_interval,
            with_token=with_token,
            owner=name,
        )
        logger.debug(f"Creating {name} collector (rate {config.rate_limit} req/s, timeout {config.timeout}s)")
        return collector_type(config, rotator=rotator, transport=self.transport)

    def build_manager(self) -> CollectorManager:
        """Manager with every enabled source registered."""
        manager = CollectorManager()
        for name in self.available():
            if not self.settings.sources[name].enabled:
                logger.info(f"Skipping disabled collector: {name}")
                continue
            manager.register(name, self.create(name))
        return manager
