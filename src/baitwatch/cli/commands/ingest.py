# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CLI command for feeding classified emails through the intelligence pipeline."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import BaseModel, TypeAdapter

from baitwatch.models.verdict import InboundEmail, TokenUsage, Verdict


class IngestRecord(BaseModel):
    """One classified email as read from an ingest file."""

    email: InboundEmail
    verdict: Verdict
    recipient: str = ""
    ai_provider: str = ""
    ai_model: str = ""
    processing_time_ms: int = 0
    profile_id: str | None = None
    vip_impersonation: bool = False
    token_usage: TokenUsage | None = None


_records_adapter = TypeAdapter(list[IngestRecord])


def load_records(file: Path) -> list[IngestRecord]:
    """Read a single record or a list of records from a JSON file."""
    data = json.loads(file.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    return _records_adapter.validate_python(data)


def ingest(
    file: Annotated[
        Path,
        typer.Argument(help="JSON file holding one record or a list of records"),
    ],
) -> None:
    """Record classified emails and run IOC, pattern, and campaign stages."""
    if not file.exists():
        typer.echo(f"File not found: {file}", err=True)
        raise typer.Exit(1)
    try:
        records = load_records(file)
    except ValueError as exc:
        typer.echo(f"Invalid ingest file: {exc}", err=True)
        raise typer.Exit(1) from exc
    asyncio.run(_async_ingest(records))


async def _async_ingest(records: list[IngestRecord]) -> None:
    from baitwatch.core.config import get_settings
    from baitwatch.intel.pipeline import ThreatIntelPipeline
    from baitwatch.storage.store import IntelligenceStore

    settings = get_settings()
    async with await IntelligenceStore.open(settings) as store:
        pipeline = ThreatIntelPipeline.from_settings(store, settings)
        for record in records:
            outcome = await pipeline.record(
                record.email,
                record.verdict,
                recipient=record.recipient,
                ai_provider=record.ai_provider,
                ai_model=record.ai_model,
                processing_time_ms=record.processing_time_ms,
                profile_id=record.profile_id,
                vip_impersonation=record.vip_impersonation,
                token_usage=record.token_usage,
            )
            if outcome.duplicate:
                typer.echo(f"{outcome.message_id}: already analyzed, skipped")
                continue
            typer.echo(
                f"{outcome.message_id}: risk={outcome.risk_level} "
                f"indicators={len(outcome.indicator_ids)} "
                f"patterns={len(outcome.patterns)} "
                f"alert={'sent' if outcome.alert_sent else 'no'}"
            )
