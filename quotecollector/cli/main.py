"""Main entry point for the quotecollector command line interface."""

from __future__ import annotations

from pathlib import Path

import typer

from quotecollector.core.logging import configure_logging

from .commands import register as register_commands
from .formatters import create_formatter


def create_app() -> typer.Typer:
    """Create a Typer application instance for quotecollector."""

    app = typer.Typer(add_completion=False, help="quotecollector command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        source: str | None = typer.Option(
            None,
            "--source",
            "-s",
            help="Collector to query; defaults to the configured primary source.",
        ),
        config: Path | None = typer.Option(
            None,
            "--config",
            help="Path to a TOML configuration file.",
        ),
        log_level: str = typer.Option(
            "WARNING",
            "--log-level",
            help="Logging level.",
            show_default=True,
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        ctx.obj.update(
            {
                "format": normalized_format,
                "source": source,
                "config_path": config,
                "no_color": no_color,
                "log_level": log_level.upper(),
            }
        )
        configure_logging(level=log_level.upper())

    register_commands(app)
    return app


app = create_app()
