"""Exception handling module."""

from quotecollector.core.exceptions.base import (
    AllSourcesFailedError,
    CollectorConnectionError,
    CollectorError,
    CollectorNotFoundError,
    DataValidationError,
    NetworkError,
    NotConnectedError,
    NotSupportedError,
    ProtocolError,
    QuoteCollectorError,
    RateLimitWaitError,
    RequestTimeoutError,
)
from quotecollector.core.exceptions.messages import ErrorMessageTemplate, format_error_response

__all__ = [
    "QuoteCollectorError",
    "CollectorError",
    "NetworkError",
    "RequestTimeoutError",
    "ProtocolError",
    "RateLimitWaitError",
    "NotSupportedError",
    "NotConnectedError",
    "DataValidationError",
    "CollectorNotFoundError",
    "AllSourcesFailedError",
    "CollectorConnectionError",
    "ErrorMessageTemplate",
    "format_error_response",
]
