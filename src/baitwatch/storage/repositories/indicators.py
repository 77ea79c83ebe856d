# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for threat indicator records."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import Any

from baitwatch.core.constants import SEVERITY_RANK
from baitwatch.core.exceptions import StorageError
from baitwatch.core.timestamps import from_db, to_db
from baitwatch.models.indicator import IndicatorCandidate, ThreatIndicator, indicator_hash
from baitwatch.storage.backend import QueryExecutor
from baitwatch.storage.query_adapter import placeholders


def severity_rank_sql(column: str) -> str:
    """SQL expression ranking a severity column (critical highest)."""
    whens = " ".join(f"WHEN '{name}' THEN {rank}" for name, rank in SEVERITY_RANK.items())
    return f"(CASE {column} {whens} ELSE 0 END)"


_UPSERT_SQL = f"""
INSERT INTO threat_indicators (
    id, indicator_type, indicator_value, indicator_hash, confidence_score,
    severity, times_seen, first_seen_at, last_seen_at, is_active, expires_at, metadata
) VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?, TRUE, ?, ?)
ON CONFLICT (indicator_type, indicator_hash) DO UPDATE SET
    times_seen = threat_indicators.times_seen + 1,
    last_seen_at = excluded.last_seen_at,
    confidence_score = CASE
        WHEN excluded.confidence_score > threat_indicators.confidence_score
        THEN excluded.confidence_score
        ELSE threat_indicators.confidence_score
    END,
    severity = CASE
        WHEN {severity_rank_sql("excluded.severity")} > {severity_rank_sql("threat_indicators.severity")}
        THEN excluded.severity
        ELSE threat_indicators.severity
    END
RETURNING id
"""


def _row_to_indicator(row: dict[str, Any]) -> ThreatIndicator:
    return ThreatIndicator(
        id=row["id"],
        indicator_type=row["indicator_type"],
        indicator_value=row["indicator_value"],
        indicator_hash=row["indicator_hash"],
        confidence_score=float(row["confidence_score"]),
        severity=row["severity"],
        times_seen=int(row["times_seen"]),
        first_seen_at=from_db(row["first_seen_at"]),
        last_seen_at=from_db(row["last_seen_at"]),
        is_active=bool(row["is_active"]),
        expires_at=from_db(row["expires_at"]),
        metadata=json.loads(row["metadata"] or "{}"),
    )


class IndicatorRepository:
    """Merge-on-insert storage for indicators of compromise."""

    def __init__(self, db: QueryExecutor) -> None:
        self._db = db

    async def upsert(self, candidate: IndicatorCandidate, now: datetime) -> str:
        """Insert *candidate* or merge it into the existing row; return the row ID."""
        stamp = to_db(now)
        row = await self._db.fetch_one(
            _UPSERT_SQL,
            (
                str(uuid.uuid4()),
                str(candidate.type),
                candidate.value,
                candidate.hash,
                candidate.confidence,
                str(candidate.severity),
                stamp,
                stamp,
                to_db(candidate.expires_at) if candidate.expires_at else None,
                json.dumps(candidate.metadata, default=str),
            ),
        )
        if row is None:
            raise StorageError("Indicator upsert returned no row")
        return str(row["id"])

    async def lookup(self, indicator_type: str, values: list[str]) -> list[ThreatIndicator]:
        """Return active indicators of *indicator_type* matching any of *values*."""
        hashes = sorted({indicator_hash(indicator_type, v) for v in values})
        if not hashes:
            return []
        rows = await self._db.fetch_all(
            "SELECT * FROM threat_indicators "  # noqa: S608
            f"WHERE indicator_type = ? AND indicator_hash IN ({placeholders(len(hashes))}) "
            "AND is_active = TRUE ORDER BY last_seen_at DESC",
            (indicator_type, *hashes),
        )
        return [_row_to_indicator(r) for r in rows]

    async def list_active(
        self,
        now: datetime,
        *,
        indicator_type: str | None = None,
        limit: int,
    ) -> list[ThreatIndicator]:
        """Active, unexpired indicators ordered by most recently seen."""
        clauses = ["is_active = TRUE", "(expires_at IS NULL OR expires_at > ?)"]
        params: list[Any] = [to_db(now)]
        if indicator_type is not None:
            clauses.append("indicator_type = ?")
            params.append(indicator_type)
        params.append(limit)
        rows = await self._db.fetch_all(
            f"SELECT * FROM threat_indicators WHERE {' AND '.join(clauses)} "  # noqa: S608
            "ORDER BY last_seen_at DESC LIMIT ?",
            tuple(params),
        )
        return [_row_to_indicator(r) for r in rows]

    async def count_active(self) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) AS n FROM threat_indicators WHERE is_active = TRUE"
        )
        return int(row["n"]) if row else 0
