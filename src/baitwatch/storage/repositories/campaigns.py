# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository for campaign tracking records."""

from __future__ import annotations

import json
import uuid
from collections import defaultdict
from datetime import datetime
from typing import Any

from baitwatch.core.exceptions import StorageError
from baitwatch.core.timestamps import from_db, to_db
from baitwatch.models.campaign import Campaign, CampaignState
from baitwatch.storage.backend import QueryExecutor
from baitwatch.storage.query_adapter import placeholders
from baitwatch.storage.repositories.indicators import severity_rank_sql

_UPSERT_CAMPAIGN_SQL = f"""
INSERT INTO campaigns (
    id, signature, sender_domain, subject_pattern, detection_count, risk_level,
    sample_indicators, first_seen_at, last_seen_at, is_active
) VALUES (?, ?, ?, ?, 1, ?, ?, ?, ?, TRUE)
ON CONFLICT (signature) DO UPDATE SET
    detection_count = campaigns.detection_count + 1,
    risk_level = CASE
        WHEN {severity_rank_sql("excluded.risk_level")} > {severity_rank_sql("campaigns.risk_level")}
        THEN excluded.risk_level
        ELSE campaigns.risk_level
    END,
    last_seen_at = excluded.last_seen_at,
    is_active = TRUE
RETURNING id, signature, detection_count, first_seen_at, alert_sent_at
"""


def _row_to_campaign(row: dict[str, Any], recipients: list[str]) -> Campaign:
    return Campaign(
        id=row["id"],
        signature=row["signature"],
        sender_domain=row["sender_domain"],
        subject_pattern=row["subject_pattern"],
        detection_count=int(row["detection_count"]),
        unique_recipients=recipients,
        risk_level=row["risk_level"],
        sample_indicators=json.loads(row["sample_indicators"] or "[]"),
        first_seen_at=from_db(row["first_seen_at"]),
        last_seen_at=from_db(row["last_seen_at"]),
        alert_sent_at=from_db(row["alert_sent_at"]),
        is_active=bool(row["is_active"]),
    )


class CampaignRepository:
    """Track campaign detections and their unique recipients.

    :meth:`track_detection` issues several statements and must be called
    with an executor bound to an open transaction.
    """

    def __init__(self, db: QueryExecutor) -> None:
        self._db = db

    async def track_detection(
        self,
        *,
        signature: str,
        sender_domain: str,
        subject_pattern: str,
        recipient: str,
        risk_level: str,
        sample_indicators: list[str],
        now: datetime,
    ) -> CampaignState:
        stamp = to_db(now)
        row = await self._db.fetch_one(
            _UPSERT_CAMPAIGN_SQL,
            (
                str(uuid.uuid4()),
                signature,
                sender_domain,
                subject_pattern,
                risk_level,
                json.dumps(sample_indicators),
                stamp,
                stamp,
            ),
        )
        if row is None:
            raise StorageError("Campaign upsert returned no row")
        campaign_id = str(row["id"])

        if recipient:
            await self._db.execute(
                "INSERT INTO campaign_recipients (campaign_id, recipient, added_at) "
                "VALUES (?, ?, ?) ON CONFLICT (campaign_id, recipient) DO NOTHING",
                (campaign_id, recipient, stamp),
            )
        count_row = await self._db.fetch_one(
            "SELECT COUNT(*) AS n FROM campaign_recipients WHERE campaign_id = ?",
            (campaign_id,),
        )

        return CampaignState(
            campaign_id=campaign_id,
            signature=row["signature"],
            detection_count=int(row["detection_count"]),
            unique_recipient_count=int(count_row["n"]) if count_row else 0,
            first_seen_at=from_db(row["first_seen_at"]),
            alert_sent_at=from_db(row["alert_sent_at"]),
        )

    async def mark_alerted(self, campaign_id: str, now: datetime) -> None:
        await self._db.execute(
            "UPDATE campaigns SET alert_sent_at = ? WHERE id = ?",
            (to_db(now), campaign_id),
        )

    async def claim_alert(self, campaign_id: str, now: datetime, cutoff: datetime) -> bool:
        """Stamp ``alert_sent_at`` unless an alert newer than *cutoff* holds it.

        Only one of several concurrent callers can win the claim.
        """
        row = await self._db.fetch_one(
            "UPDATE campaigns SET alert_sent_at = ? "
            "WHERE id = ? AND (alert_sent_at IS NULL OR alert_sent_at < ?) "
            "RETURNING id",
            (to_db(now), campaign_id, to_db(cutoff)),
        )
        return row is not None

    async def release_alert(
        self, campaign_id: str, claimed_at: datetime, previous: datetime | None
    ) -> None:
        await self._db.execute(
            "UPDATE campaigns SET alert_sent_at = ? WHERE id = ? AND alert_sent_at = ?",
            (to_db(previous) if previous is not None else None, campaign_id, to_db(claimed_at)),
        )

    async def get(self, campaign_id: str) -> Campaign | None:
        row = await self._db.fetch_one("SELECT * FROM campaigns WHERE id = ?", (campaign_id,))
        if row is None:
            return None
        recipients = await self._recipients([campaign_id])
        return _row_to_campaign(row, recipients.get(campaign_id, []))

    async def list_recent(self, *, active_only: bool, limit: int) -> list[Campaign]:
        where = " WHERE is_active = TRUE" if active_only else ""
        rows = await self._db.fetch_all(
            f"SELECT * FROM campaigns{where} ORDER BY last_seen_at DESC LIMIT ?",  # noqa: S608
            (limit,),
        )
        recipients = await self._recipients([r["id"] for r in rows])
        return [_row_to_campaign(r, recipients.get(r["id"], [])) for r in rows]

    async def _recipients(self, campaign_ids: list[str]) -> dict[str, list[str]]:
        if not campaign_ids:
            return {}
        rows = await self._db.fetch_all(
            "SELECT campaign_id, recipient FROM campaign_recipients "  # noqa: S608
            f"WHERE campaign_id IN ({placeholders(len(campaign_ids))}) "
            "ORDER BY added_at, recipient",
            tuple(campaign_ids),
        )
        grouped: dict[str, list[str]] = defaultdict(list)
        for r in rows:
            grouped[r["campaign_id"]].append(r["recipient"])
        return grouped
