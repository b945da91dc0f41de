"""Pytest configuration for the quotecollector test suite."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from quotecollector.collectors import EastMoneyCollector, IdentityRotator, TongHuaShunCollector
from quotecollector.core.config import EASTMONEY, TONGHUASHUN, Settings


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--quotecollector-run-integration",
        action="store_true",
        default=False,
        help="Run quotecollector integration tests that hit the live data sources.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker."""

    config.addinivalue_line(
        "markers",
        "integration: marks tests requiring network access to the live data sources",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--quotecollector-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --quotecollector-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


class FakeSite:
    """Routes requests to canned bodies by URL substring and records them."""

    def __init__(self) -> None:
        self.routes: list[tuple[str, Callable[[httpx.Request], httpx.Response]]] = []
        self.requests: list[httpx.Request] = []

    def add(self, fragment: str, body: str | Callable[[httpx.Request], httpx.Response], status: int = 200) -> None:
        if callable(body):
            self.routes.append((fragment, body))
        else:
            self.routes.append((fragment, lambda request, text=body: httpx.Response(status, text=text)))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for fragment, respond in self.routes:
            if fragment in str(request.url):
                return respond(request)
        return httpx.Response(404, text="not found")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, fragment: str) -> list[httpx.Request]:
        return [request for request in self.requests if fragment in str(request.url)]


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def settings() -> Settings:
    settings = Settings()
    # 测试中不限速
    settings.sources[EASTMONEY].rate_limit = 1000
    settings.sources[TONGHUASHUN].rate_limit = 1000
    return settings


@pytest.fixture
def eastmoney(site: FakeSite, settings: Settings) -> EastMoneyCollector:
    collector = EastMoneyCollector(
        settings.sources[EASTMONEY].to_collector_config(EASTMONEY),
        transport=site.transport(),
    )
    collector.page_delay = 0
    collector.connect()
    yield collector
    collector.disconnect()


@pytest.fixture
def tonghuashun(site: FakeSite, settings: Settings) -> TongHuaShunCollector:
    collector = TongHuaShunCollector(
        settings.sources[TONGHUASHUN].to_collector_config(TONGHUASHUN),
        rotator=IdentityRotator(with_token=True, owner=TONGHUASHUN),
        transport=site.transport(),
    )
    collector.page_delay = 0
    collector.connect()
    yield collector
    collector.disconnect()
