# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

import typer

from baitwatch import __version__
from baitwatch.cli.commands import db, export
from baitwatch.cli.commands.indicators import indicators
from baitwatch.cli.commands.ingest import ingest

app = typer.Typer(
    name="baitwatch",
    help="Phishing threat intelligence and campaign detection",
    no_args_is_help=True,
)

app.add_typer(db.app, name="db", help="Database management")
app.add_typer(export.app, name="export", help="Export threat indicators (STIX/CSV)")

app.command(name="indicators")(indicators)
app.command(name="ingest")(ingest)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override BAITWATCH_LOG_LEVEL"),
) -> None:
    from baitwatch.core.config import get_settings
    from baitwatch.core.logging import setup_logging

    settings = get_settings()
    setup_logging(log_level or settings.log_level, settings.log_format)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    workers: int = typer.Option(1, "--workers", "-w", help="Worker count"),
) -> None:
    """Start the baitwatch API server."""
    import uvicorn

    from baitwatch.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "baitwatch.api.app:create_app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        workers=workers,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show the installed version."""
    typer.echo(f"baitwatch {__version__}")
