"""quotecollector核心异常类."""

from typing import Any


class QuoteCollectorError(Exception):
    """quotecollector基础异常类."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """初始化异常.

        Args:
            message: 错误消息
            error_code: 错误代码
            details: 额外详情
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class CollectorError(QuoteCollectorError):
    """采集器相关异常."""

    def __init__(
        self,
        message: str,
        collector_name: str,
        error_code: str = "COLLECTOR_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details.setdefault("collector", collector_name)
        super().__init__(message, error_code, super_details)
        self.collector_name = collector_name


class NetworkError(CollectorError):
    """网络异常: 传输失败或非2xx状态码."""

    def __init__(
        self,
        message: str,
        collector_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        error_code: str = "NETWORK_ERROR",
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, collector_name, error_code, super_details)
        self.status_code = status_code


class RequestTimeoutError(NetworkError):
    """请求在截止时间前未完成."""

    def __init__(
        self,
        message: str,
        collector_name: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, collector_name, None, details, "REQUEST_TIMEOUT")


class ProtocolError(CollectorError):
    """响应格式异常: 回调包装、JSON、字段数量或未知结构."""

    def __init__(
        self,
        message: str,
        collector_name: str,
        payload: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if payload is not None:
            super_details["payload"] = payload[:100]
        super().__init__(message, collector_name, "PROTOCOL_ERROR", super_details)


class RateLimitWaitError(CollectorError):
    """等待令牌时被取消或超时."""

    def __init__(
        self,
        message: str,
        collector_name: str,
        waited: float | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if waited is not None:
            super_details["waited"] = round(waited, 3)
        super().__init__(message, collector_name, "RATE_LIMIT_WAIT", super_details)
        self.waited = waited


class NotSupportedError(CollectorError):
    """采集器不支持该操作."""

    def __init__(
        self,
        operation: str,
        collector_name: str,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        super_details["operation"] = operation
        super().__init__(
            f"{operation} is not supported by {collector_name}",
            collector_name,
            "NOT_SUPPORTED",
            super_details,
        )
        self.operation = operation


class NotConnectedError(CollectorError):
    """采集器未连接."""

    def __init__(self, collector_name: str, details: dict[str, Any] | None = None):
        super().__init__(
            f"Collector {collector_name} is not connected",
            collector_name,
            "NOT_CONNECTED",
            details,
        )


class DataValidationError(QuoteCollectorError):
    """数据验证异常."""

    def __init__(
        self,
        message: str,
        validation_errors: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if validation_errors:
            super_details["validation_errors"] = validation_errors
        super().__init__(message, "VALIDATION_ERROR", super_details)
        self.validation_errors = validation_errors or {}


class CollectorNotFoundError(QuoteCollectorError):
    """未注册的采集器."""

    def __init__(self, collector_name: str, details: dict[str, Any] | None = None):
        super_details = details or {}
        super_details["collector"] = collector_name
        super().__init__(f"Collector not found: {collector_name}", "COLLECTOR_NOT_FOUND", super_details)
        self.collector_name = collector_name


class AllSourcesFailedError(QuoteCollectorError):
    """所有数据源都失败."""

    def __init__(
        self,
        message: str,
        failed_sources: list[dict[str, Any]] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if failed_sources:
            super_details["failed_sources"] = failed_sources
        super().__init__(message, "ALL_SOURCES_FAILED", super_details)
        self.failed_sources = failed_sources or []


class CollectorConnectionError(QuoteCollectorError):
    """部分采集器连接失败."""

    def __init__(
        self,
        message: str,
        failures: dict[str, str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if failures:
            super_details["failures"] = failures
        super().__init__(message, "CONNECT_FAILED", super_details)
        self.failures = failures or {}
