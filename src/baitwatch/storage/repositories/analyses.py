# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for email analysis records."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from baitwatch.core.timestamps import from_db, to_db
from baitwatch.models.analysis import AnalysisSearchFilters, DomainCount, EmailAnalysis
from baitwatch.storage.backend import QueryExecutor

_TOP_DOMAINS = 10


def _row_to_analysis(row: dict[str, Any]) -> EmailAnalysis:
    return EmailAnalysis(
        id=row["id"],
        profile_id=row["profile_id"],
        message_id=row["message_id"],
        from_email=row["from_email"],
        from_domain=row["from_domain"],
        subject=row["subject"],
        is_phishing=bool(row["is_phishing"]),
        confidence_score=float(row["confidence_score"]),
        risk_level=row["risk_level"],
        analysis_result=json.loads(row["analysis_result"] or "{}"),
        indicators=json.loads(row["indicators"] or "[]"),
        vip_impersonation_detected=bool(row["vip_impersonation_detected"]),
        ai_provider=row["ai_provider"],
        ai_model=row["ai_model"],
        processing_time_ms=int(row["processing_time_ms"]),
        created_at=from_db(row["created_at"]),
    )


class AnalysisRepository:
    """Persist and query per-email verdicts."""

    def __init__(self, db: QueryExecutor) -> None:
        self._db = db

    async def create(self, analysis: EmailAnalysis) -> str:
        """Insert *analysis* and return its ID."""
        await self._db.execute(
            """
            INSERT INTO email_analyses (
                id, profile_id, message_id, from_email, from_domain, subject,
                is_phishing, confidence_score, risk_level, analysis_result,
                indicators, vip_impersonation_detected, ai_provider, ai_model,
                processing_time_ms, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                analysis.id,
                analysis.profile_id,
                analysis.message_id,
                analysis.from_email,
                analysis.from_domain,
                analysis.subject,
                analysis.is_phishing,
                analysis.confidence_score,
                str(analysis.risk_level),
                json.dumps(analysis.analysis_result, default=str),
                json.dumps(analysis.indicators),
                analysis.vip_impersonation_detected,
                analysis.ai_provider,
                analysis.ai_model,
                analysis.processing_time_ms,
                to_db(analysis.created_at),
            ),
        )
        return analysis.id

    async def get(self, analysis_id: str) -> EmailAnalysis | None:
        row = await self._db.fetch_one(
            "SELECT * FROM email_analyses WHERE id = ?", (analysis_id,)
        )
        return _row_to_analysis(row) if row else None

    async def search(self, filters: AnalysisSearchFilters) -> list[EmailAnalysis]:
        """Return analyses matching *filters*, newest first."""
        clauses: list[str] = []
        params: list[Any] = []

        if filters.from_date is not None:
            clauses.append("created_at >= ?")
            params.append(to_db(filters.from_date))
        if filters.to_date is not None:
            clauses.append("created_at <= ?")
            params.append(to_db(filters.to_date))
        if filters.is_phishing is not None:
            clauses.append("is_phishing = ?")
            params.append(filters.is_phishing)
        if filters.risk_level is not None:
            clauses.append("risk_level = ?")
            params.append(str(filters.risk_level))
        if filters.from_domain is not None:
            clauses.append("from_domain = ?")
            params.append(filters.from_domain.lower())
        if filters.profile_id is not None:
            clauses.append("profile_id = ?")
            params.append(filters.profile_id)

        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        params.extend([filters.limit, filters.offset])
        rows = await self._db.fetch_all(
            f"SELECT * FROM email_analyses{where} "  # noqa: S608
            "ORDER BY created_at DESC LIMIT ? OFFSET ?",
            tuple(params),
        )
        return [_row_to_analysis(r) for r in rows]

    async def exists_for_message(self, message_id: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 AS found FROM email_analyses WHERE message_id = ? LIMIT 1",
            (message_id,),
        )
        return row is not None

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def counts(self, since_24h: datetime, since_7d: datetime) -> dict[str, int]:
        row = await self._db.fetch_one(
            """
            SELECT
                COUNT(*) AS total,
                COALESCE(SUM(CASE WHEN is_phishing = TRUE THEN 1 ELSE 0 END), 0) AS phishing,
                COALESCE(SUM(CASE WHEN created_at > ? THEN 1 ELSE 0 END), 0) AS last_24h,
                COALESCE(SUM(CASE WHEN created_at > ? THEN 1 ELSE 0 END), 0) AS last_7d
            FROM email_analyses
            """,
            (to_db(since_24h), to_db(since_7d)),
        )
        row = row or {}
        return {key: int(row.get(key) or 0) for key in ("total", "phishing", "last_24h", "last_7d")}

    async def top_phishing_domains(self, limit: int = _TOP_DOMAINS) -> list[DomainCount]:
        rows = await self._db.fetch_all(
            """
            SELECT from_domain AS domain, COUNT(*) AS count
            FROM email_analyses
            WHERE is_phishing = TRUE
            GROUP BY from_domain
            ORDER BY count DESC, domain ASC
            LIMIT ?
            """,
            (limit,),
        )
        return [DomainCount(domain=r["domain"], count=int(r["count"])) for r in rows]

    async def risk_distribution(self) -> dict[str, int]:
        rows = await self._db.fetch_all(
            "SELECT risk_level, COUNT(*) AS count FROM email_analyses GROUP BY risk_level"
        )
        return {r["risk_level"]: int(r["count"]) for r in rows}
