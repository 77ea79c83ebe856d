# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Campaign tracking and flood-alert models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from baitwatch.core.constants import Severity


class Campaign(BaseModel):
    """A cluster of detections sharing sender domain and normalized subject."""

    id: str
    signature: str
    sender_domain: str
    subject_pattern: str
    detection_count: int
    unique_recipients: list[str] = Field(default_factory=list)
    risk_level: Severity
    sample_indicators: list[str] = Field(default_factory=list)
    first_seen_at: datetime
    last_seen_at: datetime
    alert_sent_at: datetime | None = None
    is_active: bool = True


class CampaignState(BaseModel):
    """Post-update campaign state returned by the tracking transaction.

    ``alert_sent_at`` is the alert timestamp as it stood before this
    detection; alerting is decided by the caller from these fields.
    """

    campaign_id: str
    signature: str
    detection_count: int
    unique_recipient_count: int
    first_seen_at: datetime
    alert_sent_at: datetime | None = None


class CampaignMatch(BaseModel):
    campaign_id: str
    signature: str
    detection_count: int
    unique_recipient_count: int
    hours_active: float
    should_alert: bool
    alert_sent_at: datetime | None = None


class AlertMessage(BaseModel):
    """A rendered flood alert ready for a notifier."""

    destination: str
    subject: str
    html_body: str
    text_body: str
    campaign_id: str | None = None
