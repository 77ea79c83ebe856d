# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for detected cross-email patterns."""

from __future__ import annotations

import uuid
from typing import Any

from baitwatch.core.exceptions import StorageError
from baitwatch.core.timestamps import from_db, to_db
from baitwatch.models.pattern import DetectedPattern, criteria_adapter
from baitwatch.storage.backend import QueryExecutor


def _row_to_pattern(row: dict[str, Any]) -> DetectedPattern:
    return DetectedPattern(
        id=row["id"],
        pattern_type=row["pattern_type"],
        pattern_name=row["pattern_name"],
        criteria=criteria_adapter.validate_json(row["criteria"]),
        match_count=int(row["match_count"]),
        is_confirmed_threat=bool(row["is_confirmed_threat"]),
        first_detected_at=from_db(row["first_detected_at"]),
        last_detected_at=from_db(row["last_detected_at"]),
    )


class PatternRepository:
    """Upsert and list detected patterns."""

    def __init__(self, db: QueryExecutor) -> None:
        self._db = db

    async def upsert(self, pattern: DetectedPattern) -> str:
        """Insert *pattern*, or bump ``match_count`` on an existing (type, name)."""
        row = await self._db.fetch_one(
            """
            INSERT INTO detected_patterns (
                id, pattern_type, pattern_name, criteria, match_count,
                is_confirmed_threat, first_detected_at, last_detected_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (pattern_type, pattern_name) DO UPDATE SET
                match_count = detected_patterns.match_count + 1,
                last_detected_at = excluded.last_detected_at
            RETURNING id
            """,
            (
                pattern.id or str(uuid.uuid4()),
                str(pattern.pattern_type),
                pattern.pattern_name,
                criteria_adapter.dump_json(pattern.criteria).decode(),
                pattern.match_count,
                pattern.is_confirmed_threat,
                to_db(pattern.first_detected_at),
                to_db(pattern.last_detected_at),
            ),
        )
        if row is None:
            raise StorageError("Pattern upsert returned no row")
        return str(row["id"])

    async def list_recent(self, *, pattern_type: str | None = None, limit: int) -> list[DetectedPattern]:
        """Patterns ordered by most recent detection."""
        where = " WHERE pattern_type = ?" if pattern_type is not None else ""
        params: tuple[Any, ...] = (pattern_type, limit) if pattern_type is not None else (limit,)
        rows = await self._db.fetch_all(
            f"SELECT * FROM detected_patterns{where} "  # noqa: S608
            "ORDER BY last_detected_at DESC LIMIT ?",
            params,
        )
        return [_row_to_pattern(r) for r in rows]

    async def count(self) -> int:
        row = await self._db.fetch_one("SELECT COUNT(*) AS n FROM detected_patterns")
        return int(row["n"]) if row else 0
