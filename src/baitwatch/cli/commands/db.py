# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Database management commands."""

from __future__ import annotations

import asyncio

import typer

app = typer.Typer()


@app.command()
def init() -> None:
    """Create the database schema and apply pending migrations."""
    asyncio.run(_init_db())


async def _init_db() -> None:
    from baitwatch.core.config import get_settings
    from baitwatch.storage.database import create_backend

    settings = get_settings().model_copy(update={"auto_migrate": True})
    target = settings.db_path if settings.db_backend == "sqlite" else settings.db_backend
    typer.echo(f"Initializing database at {target}...")
    backend = await create_backend(settings)
    await backend.close()
    typer.echo("Database initialized.")


@app.command()
def stats() -> None:
    """Show intelligence store statistics."""
    asyncio.run(_show_stats())


async def _show_stats() -> None:
    from baitwatch.core.config import get_settings
    from baitwatch.storage.store import IntelligenceStore

    settings = get_settings()
    async with await IntelligenceStore.open(settings) as store:
        summary = await store.get_stats()

    typer.echo(f"Database: {settings.db_path if settings.db_backend == 'sqlite' else 'postgres'}")
    typer.echo()
    typer.echo(f"  Total analyses:     {summary.total_analyses}")
    typer.echo(f"  Phishing detected:  {summary.phishing_detected}")
    typer.echo(f"  Last 24h:           {summary.analyses_last_24h}")
    typer.echo(f"  Last 7d:            {summary.analyses_last_7d}")
    typer.echo(f"  Active indicators:  {summary.active_indicators}")
    typer.echo(f"  Detected patterns:  {summary.detected_patterns}")
    if summary.top_threatened_domains:
        typer.echo()
        typer.echo("Top phishing domains:")
        for entry in summary.top_threatened_domains:
            typer.echo(f"  {entry.domain}: {entry.count}")
