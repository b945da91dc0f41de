"""Helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Sequence

import typer

from quotecollector.core.exceptions import (
    AllSourcesFailedError,
    CollectorConnectionError,
    CollectorError,
    CollectorNotFoundError,
    DataValidationError,
    QuoteCollectorError,
    format_error_response,
)
from quotecollector.core.logging import log_context

from .constants import COLLECTOR_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE
from .formatters import OutputFormatter, create_formatter

COLLECTOR_FAILURES = (CollectorError, CollectorNotFoundError, AllSourcesFailedError, CollectorConnectionError)


@dataclass(slots=True)
class CLIOptions:
    """Resolved options derived from the Typer context."""

    format: str = "table"
    no_color: bool = False
    source: str | None = None
    config_path: Path | None = None
    log_level: str = "WARNING"


def get_cli_options(ctx: typer.Context) -> CLIOptions:
    ctx.ensure_object(dict)
    data = ctx.obj or {}
    return CLIOptions(
        format=str(data.get("format", "table")),
        no_color=bool(data.get("no_color", False)),
        source=data.get("source"),
        config_path=data.get("config_path"),
        log_level=str(data.get("log_level", "WARNING")),
    )


def get_formatter(ctx: typer.Context) -> OutputFormatter:
    options = get_cli_options(ctx)
    return create_formatter(options.format, no_color=options.no_color)


def render(ctx: typer.Context, rows: Sequence[Mapping[str, object]], columns: Sequence[str] | None = None) -> None:
    get_formatter(ctx).render(rows, stream=sys.stdout, columns=columns)


def emit_error(
    message: str,
    code: str,
    *,
    details: Mapping[str, object] | None = None,
    trace_id: str | None = None,
) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    if trace_id:
        payload["trace_id"] = trace_id
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def exit_code_for(error: QuoteCollectorError) -> int:
    if isinstance(error, DataValidationError):
        return VALIDATION_EXIT_CODE
    if isinstance(error, COLLECTOR_FAILURES):
        return COLLECTOR_EXIT_CODE
    return SYSTEM_EXIT_CODE


@contextmanager
def handle_errors(command: str | None = None) -> Iterator[str]:
    """Run a command under its own trace and translate library errors.

    Errors become a JSON line on stderr carrying the command's trace id, then
    an exit code.
    """

    with log_context(command=command) as trace_id:
        try:
            yield trace_id
        except QuoteCollectorError as error:
            response = format_error_response(error)
            emit_error(response["message"], response["code"], details=response["details"], trace_id=trace_id)
            raise typer.Exit(code=exit_code_for(error)) from error
        except ValueError as error:
            emit_error(str(error), "VALIDATION_ERROR", trace_id=trace_id)
            raise typer.Exit(code=VALIDATION_EXIT_CODE) from error


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Mapping):
            sanitized[key] = {str(k): str(v) for k, v in value.items()}
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [item if isinstance(item, Mapping) else str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = ["CLIOptions", "emit_error", "exit_code_for", "get_cli_options", "get_formatter", "handle_errors", "render"]
