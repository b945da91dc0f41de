"""标准化错误消息模板."""

from typing import Any

from quotecollector.core.exceptions.base import QuoteCollectorError


class ErrorMessageTemplate:
    """错误消息模板管理器."""

    _templates: dict[str, str] = {
        "GENERAL_ERROR": "发生未知错误",
        "VALIDATION_ERROR": "数据验证失败: {message}",
        "COLLECTOR_ERROR": "采集器{collector}发生错误: {message}",
        "NETWORK_ERROR": "采集器{collector}网络错误: {message}",
        "REQUEST_TIMEOUT": "采集器{collector}请求超时",
        "PROTOCOL_ERROR": "采集器{collector}响应格式错误: {message}",
        "RATE_LIMIT_WAIT": "采集器{collector}等待限流令牌失败",
        "NOT_SUPPORTED": "采集器{collector}不支持操作: {operation}",
        "NOT_CONNECTED": "采集器{collector}未连接",
        "COLLECTOR_NOT_FOUND": "找不到采集器: {collector}",
        "ALL_SOURCES_FAILED": "所有数据源均失败: {message}",
        "CONNECT_FAILED": "部分采集器连接失败: {message}",
    }

    @classmethod
    def get_message(cls, error_code: str, **kwargs: Any) -> str:
        """获取标准化错误消息.

        Args:
            error_code: 错误代码
            **kwargs: 模板变量

        Returns:
            格式化后的错误消息
        """
        template = cls._templates.get(error_code, cls._templates["GENERAL_ERROR"])
        try:
            return template.format(**kwargs)
        except KeyError:
            return f"{cls._templates['GENERAL_ERROR']} (错误代码: {error_code})"


def format_error_response(error: QuoteCollectorError, localized: bool = False) -> dict[str, Any]:
    """格式化错误响应.

    Args:
        error: 采集器异常
        localized: 是否使用模板消息替代原始消息

    Returns:
        包含 code、message、details 的字典
    """
    message = error.message
    if localized:
        message = ErrorMessageTemplate.get_message(error.error_code, message=error.message, **error.details)
    return {
        "code": error.error_code,
        "message": message,
        "details": error.details,
    }
