# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for AI token and cost usage records."""

from __future__ import annotations

from datetime import datetime

from baitwatch.core.timestamps import to_db
from baitwatch.models.analysis import AIUsage, AIUsageStats, ModelUsage
from baitwatch.storage.backend import QueryExecutor


class UsageRepository:
    """Ledger of classification token usage."""

    def __init__(self, db: QueryExecutor) -> None:
        self._db = db

    async def create(self, usage: AIUsage) -> str:
        await self._db.execute(
            """
            INSERT INTO ai_usage (
                id, analysis_id, provider, model, input_tokens, output_tokens,
                total_tokens, estimated_cost_usd, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                usage.id,
                usage.analysis_id,
                usage.provider,
                usage.model,
                usage.input_tokens,
                usage.output_tokens,
                usage.total_tokens or usage.input_tokens + usage.output_tokens,
                usage.estimated_cost_usd,
                to_db(usage.created_at),
            ),
        )
        return usage.id

    async def stats(self, since_24h: datetime, since_7d: datetime) -> AIUsageStats:
        """Aggregate totals, averages, recent windows, and a per-model breakdown."""
        day, week = to_db(since_24h), to_db(since_7d)
        row = await self._db.fetch_one(
            """
            SELECT
                COUNT(*) AS requests,
                COALESCE(SUM(input_tokens), 0) AS input_tokens,
                COALESCE(SUM(output_tokens), 0) AS output_tokens,
                COALESCE(SUM(total_tokens), 0) AS total_tokens,
                COALESCE(SUM(estimated_cost_usd), 0) AS cost,
                COALESCE(SUM(CASE WHEN created_at > ? THEN 1 ELSE 0 END), 0) AS requests_24h,
                COALESCE(SUM(CASE WHEN created_at > ? THEN 1 ELSE 0 END), 0) AS requests_7d,
                COALESCE(SUM(CASE WHEN created_at > ? THEN estimated_cost_usd ELSE 0 END), 0)
                    AS cost_24h,
                COALESCE(SUM(CASE WHEN created_at > ? THEN estimated_cost_usd ELSE 0 END), 0)
                    AS cost_7d
            FROM ai_usage
            """,
            (day, week, day, week),
        )
        model_rows = await self._db.fetch_all(
            """
            SELECT model, COUNT(*) AS requests,
                   COALESCE(SUM(total_tokens), 0) AS total_tokens,
                   COALESCE(SUM(estimated_cost_usd), 0) AS cost
            FROM ai_usage
            GROUP BY model
            ORDER BY requests DESC, model ASC
            """
        )

        row = row or {}
        requests = int(row.get("requests") or 0)
        input_tokens = int(row.get("input_tokens") or 0)
        output_tokens = int(row.get("output_tokens") or 0)
        cost = float(row.get("cost") or 0.0)

        def _avg(total: float) -> float:
            return total / requests if requests else 0.0

        return AIUsageStats(
            total_requests=requests,
            total_input_tokens=input_tokens,
            total_output_tokens=output_tokens,
            total_tokens=int(row.get("total_tokens") or 0),
            estimated_total_cost_usd=cost,
            avg_input_tokens_per_request=_avg(input_tokens),
            avg_output_tokens_per_request=_avg(output_tokens),
            avg_cost_per_request=_avg(cost),
            requests_last_24h=int(row.get("requests_24h") or 0),
            requests_last_7d=int(row.get("requests_7d") or 0),
            cost_last_24h=float(row.get("cost_24h") or 0.0),
            cost_last_7d=float(row.get("cost_7d") or 0.0),
            usage_by_model=[
                ModelUsage(
                    model=r["model"],
                    requests=int(r["requests"]),
                    total_tokens=int(r["total_tokens"]),
                    estimated_cost_usd=float(r["cost"]),
                )
                for r in model_rows
            ],
        )
