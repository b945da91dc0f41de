"""Tests for the EastMoney decoder and collector over a mocked transport."""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from quotecollector.collectors import EastMoneyCollector
from quotecollector.collectors.eastmoney import build_secid, classify_board, decode_envelope
from quotecollector.collectors.eastmoney.collector import DATACENTER_REFERER
from quotecollector.core.config import EASTMONEY, Settings
from quotecollector.core.exceptions import (
    DataValidationError,
    NetworkError,
    NotConnectedError,
    NotSupportedError,
    ProtocolError,
    RequestTimeoutError,
)
from quotecollector.core.models import DailyData, KLinePeriod, WeeklyData


def jquery(payload: dict) -> str:
    return f"jQuery112303251051388385584_1700000000000({json.dumps(payload, ensure_ascii=False)});"


def list_row(symbol: str, name: str, market: int, price: float = 10.0) -> dict:
    return {"f12": symbol, "f14": name, "f13": market, "f2": price, "f3": 1.2}


KLINE_BODY = "jsonp1700000000000(" + json.dumps(
    {
        "rc": 0,
        "data": {
            "code": "600000",
            "klines": [
                "2025-09-18,10.00,10.20,10.40,9.90,100,1000.0,1.0,0.5,0.1,0.2",
                "2025-09-19,8.50,-,8.80,8.40,500000,4250000.00,1.0,0.5,0.1,0.2",
                "2025-09-20,10.50,10.80,11.00,10.30,1000000,10500000.00,1.0,0.5,0.1,0.2",
                "garbage",
            ],
        },
    }
) + ")"


class TestDecoder:
    def test_envelope_rc_error(self):
        with pytest.raises(ProtocolError) as exc_info:
            decode_envelope(jquery({"rc": 102, "data": None}))

        assert exc_info.value.details["rc"] == 102

    def test_envelope_requires_callback(self):
        with pytest.raises(ProtocolError):
            decode_envelope('{"rc": 0}')

    def test_envelope_bad_json(self):
        with pytest.raises(ProtocolError):
            decode_envelope("jQuery1_2({not json})")

    @pytest.mark.parametrize(
        "symbol,expected",
        [
            ("000001", ("主板", "深圳")),
            ("300750", ("创业板", "深圳")),
            ("600000", ("主板", "上海")),
            ("688981", ("科创板", "上海")),
            ("830799", ("北交所", "北京")),
            ("900901", ("其他", "未知")),
        ],
    )
    def test_classify_board(self, symbol, expected):
        assert classify_board(symbol) == expected

    def test_build_secid(self):
        assert build_secid("600000.SH") == "1.600000"
        assert build_secid("000001.SZ") == "0.000001"

    @pytest.mark.parametrize("code", ["600000", "600000.HK", "60000.SH", ""])
    def test_build_secid_rejects_malformed_codes(self, code):
        with pytest.raises(DataValidationError):
            build_secid(code)


class TestStockList:
    def test_paginates_until_short_page(self, site, eastmoney):
        pages = {
            "1": [list_row("600000", "浦发银行", 1), list_row("000001", "平安银行", 0)],
            "2": [list_row("300750", "宁德时代", 0), list_row("999999", "未知市场", 7)],
            "3": [list_row("688981", "中芯国际", 1)],
        }

        def respond(request: httpx.Request) -> httpx.Response:
            page = request.url.params["pn"]
            return httpx.Response(200, text=jquery({"rc": 0, "data": {"total": 5, "diff": pages[page]}}))

        site.add("api/qt/clist/get", respond)
        eastmoney.page_size = 2

        stocks = eastmoney.get_stock_list()

        assert [stock.ts_code for stock in stocks] == ["600000.SH", "000001.SZ", "300750.SZ", "688981.SH"]
        assert stocks[2].industry == "创业板"
        assert stocks[2].area == "深圳"
        assert len(site.requests_to("clist")) == 3

    def test_stops_on_empty_page(self, site, eastmoney):
        site.add("api/qt/clist/get", jquery({"rc": 0, "data": {"total": 0, "diff": []}}))

        assert eastmoney.get_stock_list() == []
        assert len(site.requests) == 1

    def test_api_error_propagates(self, site, eastmoney):
        site.add("api/qt/clist/get", jquery({"rc": 1, "data": None}))

        with pytest.raises(ProtocolError):
            eastmoney.get_stock_list()

    def test_sends_identity_headers(self, site, eastmoney):
        site.add("api/qt/clist/get", jquery({"rc": 0, "data": {"diff": []}}))

        eastmoney.get_stock_list()

        request = site.requests[0]
        identity = eastmoney.current_identity()
        assert request.headers["User-Agent"] == identity.user_agent
        assert request.headers["sec-ch-ua"] == identity.sec_ch_ua
        assert request.headers["Cookie"] == identity.cookie
        assert request.headers["Referer"] == "https://data.eastmoney.com/"


class TestKLine:
    def test_daily_skips_bad_rows(self, site, eastmoney):
        site.add("stock/kline/get", KLINE_BODY)

        records = eastmoney.get_kline("600000.SH", KLinePeriod.DAILY)

        assert [record.trade_date for record in records] == [20250918, 20250920]
        assert all(isinstance(record, DailyData) for record in records)
        params = site.requests[0].url.params
        assert params["secid"] == "1.600000"
        assert params["klt"] == "101"

    def test_date_range_filter(self, site, eastmoney):
        site.add("stock/kline/get", KLINE_BODY)

        records = eastmoney.get_stock_data("600000.SH", date(2025, 9, 19), date(2025, 9, 20))

        assert [record.trade_date for record in records] == [20250920]

    def test_weekly_uses_weekly_type(self, site, eastmoney):
        site.add("stock/kline/get", KLINE_BODY)

        records = eastmoney.get_weekly_kline("600000.SH")

        assert all(isinstance(record, WeeklyData) for record in records)
        assert site.requests[0].url.params["klt"] == "102"

    def test_quarterly_not_supported(self, site, eastmoney):
        with pytest.raises(NotSupportedError):
            eastmoney.get_quarterly_kline("600000.SH")
        assert site.requests == []

    def test_null_data_is_empty(self, site, eastmoney):
        site.add("stock/kline/get", "jsonp1(" + json.dumps({"rc": 0, "data": None}) + ")")

        assert eastmoney.get_kline("600000.SH", KLinePeriod.DAILY) == []


class TestDetailAndRealtime:
    def test_stock_detail(self, site, eastmoney):
        site.add("api/qt/stock/get", jquery({"rc": 0, "data": {"f57": "600000", "f58": "浦发银行", "f43": 10.5}}))

        stock = eastmoney.get_stock_detail("600000.SH")

        assert stock.ts_code == "600000.SH"
        assert stock.name == "浦发银行"
        assert stock.market == "SH"

    def test_stock_detail_without_data(self, site, eastmoney):
        site.add("api/qt/stock/get", jquery({"rc": 0, "data": None}))

        with pytest.raises(ProtocolError):
            eastmoney.get_stock_detail("600000.SH")

    def test_realtime_filters_requested_codes(self, site, eastmoney):
        rows = [list_row("600000", "浦发银行", 1, 10.5), list_row("000001", "平安银行", 0, 12.3)]
        site.add("api/qt/clist/get", jquery({"rc": 0, "data": {"diff": rows}}))

        records = eastmoney.get_realtime_data(["000001.SZ"])

        assert len(records) == 1
        record = records[0]
        assert record.ts_code == "000001.SZ"
        assert record.open == record.high == record.low == record.close == 12.3
        assert record.volume == 0
        assert record.amount == 0.0

    def test_list_and_detail_follow_base_url(self, site):
        settings = Settings.from_dict({"sources": {EASTMONEY: {"base_url": "https://mirror.test/", "rate_limit": 1000}}})
        site.add("api/qt/stock/get", jquery({"rc": 0, "data": {"f57": "600000", "f58": "浦发银行"}}))
        site.add("api/qt/clist/get", jquery({"rc": 0, "data": {"diff": []}}))

        with EastMoneyCollector(settings.sources[EASTMONEY].to_collector_config(EASTMONEY), transport=site.transport()) as collector:
            collector.get_stock_detail("600000.SH")
            collector.get_stock_list()

        assert [(request.url.host, request.url.path) for request in site.requests] == [
            ("mirror.test", "/api/qt/stock/get"),
            ("mirror.test", "/api/qt/clist/get"),
        ]


class TestDatacenter:
    def test_performance_reports_clamped(self, site, eastmoney):
        rows = [
            {
                "REPORTDATE": "2025-06-30 00:00:00",
                "BASIC_EPS": 0.52,
                "TOTAL_OPERATE_INCOME": 1.5e10,
                "YSTZ": 123456.0,
                "SJLTZ": -20000.0,
                "XSMLL": 35.5,
                "NOTICE_DATE": "2025-08-20 00:00:00",
            },
            {"REPORTDATE": "2025-03-31 00:00:00", "BASIC_EPS": 0.25, "YSTZ": 5.0},
        ]
        site.add("datacenter-web", jquery({"result": {"data": rows}, "success": True}))

        reports = eastmoney.get_performance_reports("600000.SH")

        assert [report.report_date for report in reports] == [20250630, 20250331]
        assert reports[0].revenue_yoy == 9999.0
        assert reports[0].net_profit_yoy == -9999.0
        assert reports[0].latest_announcement_date.year == 2025
        request = site.requests[0]
        assert request.url.params["filter"] == '(SECURITY_CODE="600000")'
        assert request.headers["Referer"] == DATACENTER_REFERER

    def test_latest_performance_report(self, site, eastmoney):
        rows = [{"REPORTDATE": "2024-12-31"}, {"REPORTDATE": "2025-06-30"}, {"REPORTDATE": "2025-03-31"}]
        site.add("datacenter-web", jquery({"result": {"data": rows}, "success": True}))

        latest = eastmoney.get_latest_performance_report("600000.SH")

        assert latest.report_date == 20250630

    def test_null_result_is_empty(self, site, eastmoney):
        site.add("datacenter-web", jquery({"result": None, "success": False, "message": "返回数据为空"}))

        assert eastmoney.get_shareholder_counts("600000.SH") == []
        assert eastmoney.get_latest_shareholder_count("600000.SH") is None

    def test_shareholder_ratio_out_of_range(self, site, eastmoney):
        rows = [
            {
                "SECURITY_CODE": "600000",
                "SECURITY_NAME_ABBR": "浦发银行",
                "END_DATE": "2025-06-30 00:00:00",
                "HOLDER_NUM": 120000,
                "PRE_HOLDER_NUM": 100000,
                "HOLDER_NUM_CHANGE": 20000,
                "HOLDER_NUM_RATIO": 12345678.0,
                "PRE_END_DATE": "2025-03-31 00:00:00",
            },
            {"SECURITY_CODE": "600000", "END_DATE": "2025-03-31 00:00:00", "HOLDER_NUM_RATIO": -3.5},
        ]
        site.add("datacenter-web", jquery({"result": {"data": rows}, "success": True}))

        counts = eastmoney.get_shareholder_counts("600000.SH")

        assert counts[0].holder_num_ratio == 0.0
        assert counts[0].holder_num == 120000
        assert counts[0].pre_end_date == 20250331
        assert counts[1].holder_num_ratio == -3.5
        assert eastmoney.get_latest_shareholder_count("600000.SH").end_date == 20250630


class TestUnexpectedShapes:
    def test_kline_data_not_an_object(self, site, eastmoney):
        site.add("stock/kline/get", "jsonp1(" + json.dumps({"rc": 0, "data": [1, 2]}) + ")")

        with pytest.raises(ProtocolError) as exc_info:
            eastmoney.get_daily_kline("600000.SH")

        assert exc_info.value.details["field"] == "data"

    @pytest.mark.parametrize("data", ["x", {"diff": "x"}])
    def test_stock_list_data_not_an_object(self, site, eastmoney, data):
        site.add("qt/clist/get", jquery({"rc": 0, "data": data}))

        with pytest.raises(ProtocolError):
            eastmoney.get_stock_list()

    @pytest.mark.parametrize("result", [[1], {"data": "x"}])
    def test_datacenter_result_not_an_object(self, site, eastmoney, result):
        site.add("datacenter-web", jquery({"result": result, "success": True}))

        with pytest.raises(ProtocolError):
            eastmoney.get_performance_reports("600000.SH")

    def test_realtime_data_not_an_object(self, site, eastmoney):
        site.add("qt/clist/get", jquery({"rc": 0, "data": 42}))

        with pytest.raises(ProtocolError):
            eastmoney.get_realtime_data(["600000.SH"])


class TestTransportErrors:
    def test_http_status_error(self, site, eastmoney):
        site.add("api/qt/clist/get", "server error", status=500)

        with pytest.raises(NetworkError) as exc_info:
            eastmoney.get_stock_list()

        assert exc_info.value.status_code == 500

    def test_timeout(self, site, eastmoney):
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        site.add("api/qt/clist/get", timeout)

        with pytest.raises(RequestTimeoutError):
            eastmoney.get_stock_list()

    def test_transport_failure(self, site, eastmoney):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        site.add("api/qt/clist/get", refuse)

        with pytest.raises(NetworkError):
            eastmoney.get_stock_list()

    def test_not_connected_makes_no_request(self, site):
        settings = Settings()
        collector = EastMoneyCollector(
            settings.sources[EASTMONEY].to_collector_config(EASTMONEY),
            transport=site.transport(),
        )

        with pytest.raises(NotConnectedError):
            collector.get_stock_list()
        assert site.requests == []

    def test_disconnect_then_reconnect(self, site, eastmoney):
        site.add("api/qt/clist/get", jquery({"rc": 0, "data": {"diff": []}}))
        eastmoney.disconnect()
        eastmoney.disconnect()
        assert not eastmoney.is_connected

        eastmoney.connect()
        eastmoney.connect()

        assert eastmoney.get_stock_list() == []


class TestRateLimitSurface:
    def test_set_and_get_rate_limit(self, eastmoney):
        eastmoney.set_rate_limit(4)

        assert eastmoney.get_rate_limit() == 4
        stats = eastmoney.get_rate_limit_stats()
        assert stats["rate_limit"] == 4
        assert stats["burst_size"] == 8

    def test_force_rotate_identity(self, eastmoney):
        before = eastmoney.current_identity()

        assert eastmoney.force_rotate_identity() is not before
