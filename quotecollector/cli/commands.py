"""Collector commands for the quotecollector CLI."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

import typer

from quotecollector.collectors import CollectorFactory, CollectorManager, DataCollector
from quotecollector.core.config import ConfigManager, Settings
from quotecollector.core.exceptions import CollectorConnectionError
from quotecollector.core.logging import configure_logging, get_logger
from quotecollector.core.models import KLinePeriod

from .utils import get_cli_options, handle_errors, render

logger = get_logger(__name__)

STOCK_COLUMNS = ["ts_code", "symbol", "name", "market", "industry", "area"]
KLINE_COLUMNS = ["ts_code", "trade_date", "open", "high", "low", "close", "volume", "amount"]
PERFORMANCE_COLUMNS = [
    "ts_code",
    "report_date",
    "eps",
    "revenue",
    "revenue_yoy",
    "net_profit",
    "net_profit_yoy",
    "gross_margin",
]
SHAREHOLDER_COLUMNS = ["ts_code", "end_date", "holder_num", "pre_holder_num", "holder_num_change", "holder_num_ratio"]


def build_factory(config_path: Path | None) -> CollectorFactory:
    """Factory hook for obtaining a configured :class:`CollectorFactory`."""

    return CollectorFactory(ConfigManager(config_path).get_config())


@contextmanager
def open_session(ctx: typer.Context) -> Iterator[tuple[CollectorManager, Settings, str]]:
    """Manager plus the selected source, disconnected on exit."""

    options = get_cli_options(ctx)
    factory = build_factory(options.config_path)
    if factory.settings.logging.file:
        configure_logging(level=options.log_level, file_output=True, file_path=factory.settings.logging.file)
    manager = factory.build_manager()
    source = options.source or factory.settings.fallback.primary
    try:
        yield manager, factory.settings, source
    finally:
        manager.disconnect_all()


def _connected(manager: CollectorManager, source: str) -> DataCollector:
    collector = manager.get(source)
    collector.connect()
    return collector


def _parse_date(value: str | None, hint: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD", param_hint=hint) from exc


def _parse_period(value: str) -> KLinePeriod:
    try:
        return KLinePeriod(value.lower())
    except ValueError as exc:
        allowed = ", ".join(period.value for period in KLinePeriod)
        raise typer.BadParameter(f"Unsupported period '{value}'. Allowed values: {allowed}", param_hint="--period") from exc


def sources_command(ctx: typer.Context) -> None:
    """List configured collectors and their rate limits."""

    with handle_errors(ctx.info_name), open_session(ctx) as (manager, settings, _):
        rows = []
        for name in manager.names():
            stats = manager.get(name).get_rate_limit_stats()
            rows.append(
                {
                    "name": name,
                    "base_url": settings.sources[name].base_url,
                    "rate_limit": stats["rate_limit"],
                    "burst_size": stats["burst_size"],
                    "primary": name == settings.fallback.primary,
                }
            )
        render(ctx, rows, ["name", "base_url", "rate_limit", "burst_size", "primary"])


def stocks_command(
    ctx: typer.Context,
    fallback: bool = typer.Option(False, "--fallback", help="Try the configured fallback sources on failure."),
) -> None:
    """Fetch the stock list."""

    with handle_errors(ctx.info_name), open_session(ctx) as (manager, settings, source):
        if fallback:
            try:
                manager.connect_all()
            except CollectorConnectionError as error:
                logger.warning(f"Continuing without {', '.join(error.failures)}")
            stocks = manager.get_stock_list_with_fallback(source, settings.fallback.fallbacks)
        else:
            stocks = _connected(manager, source).get_stock_list()
        render(ctx, [stock.model_dump(mode="json") for stock in stocks], STOCK_COLUMNS)


def kline_command(
    ctx: typer.Context,
    ts_code: str = typer.Argument(..., help="Security code such as 600000.SH."),
    period: str = typer.Option("daily", "--period", "-p", help="daily, weekly, monthly, quarterly or yearly."),
    start: str | None = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)."),
    end: str | None = typer.Option(None, "--end", help="End date (YYYY-MM-DD)."),
) -> None:
    """Fetch K-line records for one security."""

    resolved_period = _parse_period(period)
    start_date = _parse_date(start, "--start")
    end_date = _parse_date(end, "--end")
    with handle_errors(ctx.info_name), open_session(ctx) as (manager, _, source):
        records = _connected(manager, source).get_kline(ts_code, resolved_period, start_date, end_date)
        render(ctx, [record.model_dump(mode="json") for record in records], KLINE_COLUMNS)


def today_command(
    ctx: typer.Context,
    ts_code: str = typer.Argument(..., help="Security code such as 600000.SH."),
) -> None:
    """Current-day snapshot and security name."""

    with handle_errors(ctx.info_name), open_session(ctx) as (manager, _, source):
        record, name = _connected(manager, source).get_today_data(ts_code)
        render(ctx, [{**record.model_dump(mode="json"), "name": name}], ["name", *KLINE_COLUMNS])


def performance_command(
    ctx: typer.Context,
    ts_code: str = typer.Argument(..., help="Security code such as 600000.SH."),
    latest: bool = typer.Option(False, "--latest", help="Only the most recent report."),
) -> None:
    """Performance reports for one security."""

    with handle_errors(ctx.info_name), open_session(ctx) as (manager, _, source):
        collector = _connected(manager, source)
        if latest:
            report = collector.get_latest_performance_report(ts_code)
            reports = [report] if report is not None else []
        else:
            reports = collector.get_performance_reports(ts_code)
        render(ctx, [report.model_dump(mode="json") for report in reports], PERFORMANCE_COLUMNS)


def shareholders_command(
    ctx: typer.Context,
    ts_code: str = typer.Argument(..., help="Security code such as 600000.SH."),
    latest: bool = typer.Option(False, "--latest", help="Only the most recent period."),
) -> None:
    """Shareholder counts for one security."""

    with handle_errors(ctx.info_name), open_session(ctx) as (manager, _, source):
        collector = _connected(manager, source)
        if latest:
            count = collector.get_latest_shareholder_count(ts_code)
            counts = [count] if count is not None else []
        else:
            counts = collector.get_shareholder_counts(ts_code)
        render(ctx, [count.model_dump(mode="json") for count in counts], SHAREHOLDER_COLUMNS)


def register(app: typer.Typer) -> None:
    """Register the collector commands on the provided application."""

    app.command("sources")(sources_command)
    app.command("stocks")(stocks_command)
    app.command("kline")(kline_command)
    app.command("today")(today_command)
    app.command("performance")(performance_command)
    app.command("shareholders")(shareholders_command)


__all__ = ["build_factory", "register"]
