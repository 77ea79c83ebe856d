# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI command: ``baitwatch indicators`` - active indicators as a Rich table."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer

from baitwatch.core.constants import DEFAULT_QUERY_LIMIT

_SEVERITY_STYLE = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}


def indicators(
    indicator_type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="domain, ip, url, email, or hash"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum rows to show"),
    ] = DEFAULT_QUERY_LIMIT,
) -> None:
    """List active threat indicators, most recently seen first."""
    asyncio.run(_async_indicators(indicator_type, limit))


async def _async_indicators(indicator_type: str | None, limit: int) -> None:
    from rich.console import Console
    from rich.table import Table

    from baitwatch.core.config import get_settings
    from baitwatch.core.exceptions import ValidationError
    from baitwatch.storage.store import IntelligenceStore

    async with await IntelligenceStore.open(get_settings()) as store:
        try:
            rows = await store.get_active_indicators(indicator_type, limit)
        except ValidationError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

    console = Console()
    if not rows:
        console.print("[dim]No active indicators.[/dim]")
        return

    table = Table(title=f"Active indicators ({len(rows)})")
    table.add_column("Type")
    table.add_column("Value", overflow="fold")
    table.add_column("Confidence", justify="right")
    table.add_column("Severity")
    table.add_column("Seen", justify="right")
    table.add_column("Last seen")

    for ind in rows:
        severity = str(ind.severity)
        style = _SEVERITY_STYLE.get(severity, "")
        table.add_row(
            str(ind.indicator_type),
            ind.indicator_value,
            f"{ind.confidence_score:.2f}",
            f"[{style}]{severity}[/{style}]" if style else severity,
            str(ind.times_seen),
            ind.last_seen_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)
