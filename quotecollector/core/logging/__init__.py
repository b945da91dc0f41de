"""Logging utilities for collectors and the command line."""

from quotecollector.core.logging.config import LogConfig
from quotecollector.core.logging.logger import (
    configure_logging,
    current_trace_id,
    get_logger,
    log_context,
    logger,
)

__all__ = [
    "LogConfig",
    "current_trace_id",
    "get_logger",
    "configure_logging",
    "log_context",
    "logger",
]
