# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI commands for exporting threat indicators as STIX 2.1 or CSV."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer

from baitwatch.core.constants import MAX_QUERY_LIMIT

app = typer.Typer()

TypeOption = Annotated[
    str | None,
    typer.Option("--type", "-t", help="Only export indicators of this type"),
]
LimitOption = Annotated[
    int,
    typer.Option("--limit", "-n", help="Maximum number of indicators (1-1000)"),
]
OutputOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Write output to file instead of stdout"),
]


@app.command(name="stix")
def export_stix(
    indicator_type: TypeOption = None,
    limit: LimitOption = MAX_QUERY_LIMIT,
    output: OutputOption = None,
) -> None:
    """Export active indicators as a STIX 2.1 bundle."""
    asyncio.run(_async_export("stix", indicator_type, limit, output))


@app.command(name="csv")
def export_csv(
    indicator_type: TypeOption = None,
    limit: LimitOption = MAX_QUERY_LIMIT,
    output: OutputOption = None,
) -> None:
    """Export active indicators as CSV."""
    asyncio.run(_async_export("csv", indicator_type, limit, output))


async def _async_export(
    fmt: str,
    indicator_type: str | None,
    limit: int,
    output: Path | None,
) -> None:
    from baitwatch.core.config import get_settings
    from baitwatch.core.exceptions import ValidationError
    from baitwatch.export import build_stix_bundle, indicators_to_csv
    from baitwatch.storage.store import IntelligenceStore

    async with await IntelligenceStore.open(get_settings()) as store:
        try:
            indicators = await store.get_active_indicators(indicator_type, limit)
        except ValidationError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

    if fmt == "stix":
        text = json.dumps(build_stix_bundle(indicators), indent=2)
    else:
        text = indicators_to_csv(indicators)

    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Exported {len(indicators)} indicators to {output}")
    else:
        typer.echo(text)
