"""Tests for the exception hierarchy and error responses."""

from __future__ import annotations

import pytest

from quotecollector.core.exceptions import (
    AllSourcesFailedError,
    CollectorError,
    CollectorNotFoundError,
    DataValidationError,
    ErrorMessageTemplate,
    NetworkError,
    NotSupportedError,
    ProtocolError,
    QuoteCollectorError,
    RateLimitWaitError,
    RequestTimeoutError,
    format_error_response,
)


class TestErrorCodes:
    @pytest.mark.parametrize(
        "error,code",
        [
            (NetworkError("down", "eastmoney", status_code=502), "NETWORK_ERROR"),
            (RequestTimeoutError("slow", "eastmoney"), "REQUEST_TIMEOUT"),
            (ProtocolError("bad body", "tonghuashun"), "PROTOCOL_ERROR"),
            (RateLimitWaitError("gave up", "eastmoney", waited=0.25), "RATE_LIMIT_WAIT"),
            (NotSupportedError("get_today_data", "eastmoney"), "NOT_SUPPORTED"),
            (CollectorNotFoundError("sina"), "COLLECTOR_NOT_FOUND"),
            (DataValidationError("bad ts_code"), "VALIDATION_ERROR"),
            (AllSourcesFailedError("everything failed"), "ALL_SOURCES_FAILED"),
        ],
    )
    def test_codes(self, error, code):
        assert isinstance(error, QuoteCollectorError)
        assert error.error_code == code

    def test_timeout_is_a_network_error(self):
        error = RequestTimeoutError("slow", "eastmoney")

        assert isinstance(error, NetworkError)
        assert isinstance(error, CollectorError)
        assert error.collector_name == "eastmoney"

    def test_details(self):
        assert NetworkError("down", "eastmoney", status_code=502).details == {
            "collector": "eastmoney",
            "status_code": 502,
        }
        assert RateLimitWaitError("gave up", "eastmoney", waited=0.12345).details["waited"] == 0.123
        assert NotSupportedError("get_kline[quarterly]", "eastmoney").details["operation"] == "get_kline[quarterly]"

    def test_protocol_error_truncates_payload(self):
        error = ProtocolError("bad body", "tonghuashun", payload="x" * 500)

        assert len(error.details["payload"]) == 100


class TestErrorResponse:
    def test_plain(self):
        error = DataValidationError("invalid ts_code format: 600000", validation_errors={"ts_code": "bad"})

        assert format_error_response(error) == {
            "code": "VALIDATION_ERROR",
            "message": "invalid ts_code format: 600000",
            "details": {"validation_errors": {"ts_code": "bad"}},
        }

    def test_localized(self):
        response = format_error_response(NotSupportedError("get_today_data", "eastmoney"), localized=True)

        assert response["message"] == "采集器eastmoney不支持操作: get_today_data"

    def test_localized_all_failed(self):
        error = AllSourcesFailedError("stock list", failed_sources=[{"source": "a", "code": "NETWORK_ERROR"}])

        assert format_error_response(error, localized=True)["message"] == "所有数据源均失败: stock list"

    def test_template_missing_variable(self):
        assert ErrorMessageTemplate.get_message("NOT_CONNECTED") == "发生未知错误 (错误代码: NOT_CONNECTED)"

    def test_unknown_code_uses_general_message(self):
        assert ErrorMessageTemplate.get_message("SOMETHING_ELSE") == "发生未知错误"
