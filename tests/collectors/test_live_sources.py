"""Smoke tests against the live data sources.

Skipped unless ``--quotecollector-run-integration`` is given.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from quotecollector.collectors import CollectorFactory, Deadline
from quotecollector.core.config import EASTMONEY, TONGHUASHUN
from quotecollector.core.models import DailyData

pytestmark = pytest.mark.integration

TS_CODE = "600000.SH"


@pytest.fixture
def factory():
    factory = CollectorFactory()
    yield factory
    factory.build_manager().disconnect_all()


def test_eastmoney_daily_kline(factory):
    collector = factory.create(EASTMONEY)
    collector.connect()

    records = collector.get_daily_kline(TS_CODE, date.today() - timedelta(days=30), deadline=Deadline(30))

    assert records
    assert all(isinstance(record, DailyData) and record.ts_code == TS_CODE for record in records)
    assert [record.trade_date for record in records] == sorted(record.trade_date for record in records)


def test_tonghuashun_today_snapshot(factory):
    collector = factory.create(TONGHUASHUN)
    collector.connect()

    record, name = collector.get_today_data(TS_CODE, deadline=Deadline(30))

    assert name
    assert record.ts_code == TS_CODE
    assert record.low <= record.close <= record.high
