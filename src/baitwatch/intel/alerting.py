# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Flood-alert threshold policy for tracked campaigns."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from baitwatch.core.constants import ALERTABLE_RISK_LEVELS
from baitwatch.core.timestamps import hours_between
from baitwatch.models.campaign import CampaignState


@dataclass(frozen=True, slots=True)
class AlertThresholds:
    """Numbers that decide when a campaign is loud enough to alert on."""

    min_detections: int = 3
    min_recipients: int = 2
    window_hours: float = 4.0
    cooldown_hours: float = 24.0


def should_alert(
    state: CampaignState,
    risk_level: str,
    now: datetime,
    thresholds: AlertThresholds = AlertThresholds(),  # noqa: B008
) -> bool:
    """Return True when every alert clause holds for *state*.

    The clauses: enough detections, enough distinct recipients, the
    campaign is still inside its burst window, the triggering detection
    is high or critical, and no alert went out within the cooldown.
    """
    if state.detection_count < thresholds.min_detections:
        return False
    if state.unique_recipient_count < thresholds.min_recipients:
        return False
    if hours_between(state.first_seen_at, now) > thresholds.window_hours:
        return False
    if risk_level not in ALERTABLE_RISK_LEVELS:
        return False
    if state.alert_sent_at is None:
        return True
    return hours_between(state.alert_sent_at, now) > thresholds.cooldown_hours
