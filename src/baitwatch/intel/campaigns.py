# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Campaign tracking and deduplicated flood alerts.

:class:`CampaignAlertService` keeps no state between calls: the store
returns the campaign counters and the previous alert time, the threshold
policy decides, and the alert is claimed in the store before it is sent
so that concurrent detections deliver it at most once.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Sequence
from datetime import datetime

from baitwatch.core.constants import ALERT_SAMPLE_INDICATORS, ALERTABLE_RISK_LEVELS
from baitwatch.core.timestamps import Clock, hours_between, utc_now
from baitwatch.intel.alerting import AlertThresholds, should_alert
from baitwatch.models.campaign import AlertMessage, Campaign, CampaignMatch
from baitwatch.notifications.base import AlertNotifier
from baitwatch.storage.store import IntelligenceStore

logger = logging.getLogger("baitwatch.intel.campaigns")


def sender_label(domain: str) -> str:
    """Humanize a sender domain: ``mail.acme.com`` -> ``Acme``."""
    parts = [p for p in domain.strip().lower().split(".") if p]
    if len(parts) < 2:
        return domain
    main = parts[-2]
    return main[:1].upper() + main[1:]


# ---------------------------------------------------------------------------
# Alert rendering
# ---------------------------------------------------------------------------

_ACTIONS = (
    "Don't click links or open attachments",
    "Don't reply or provide information",
    "Delete the email",
)


def _text_body(campaign: Campaign, label: str, flags: list[str]) -> str:
    lines = [
        "PHISHING ALERT",
        "",
        f"We're seeing fraudulent emails appearing to come from {label}.",
        "",
        "WHAT TO LOOK FOR:",
        f"- Sender addresses ending in @{campaign.sender_domain}",
        f'- Subject lines like: "{campaign.subject_pattern}"',
    ]
    if flags:
        lines += ["", "RED FLAGS:", *(f"- {f}" for f in flags)]
    lines += [
        "",
        "WHAT TO DO:",
        *(f"- {a}" for a in _ACTIONS),
        "",
        "Already interacted with one of these emails? Contact IT.",
        "",
        "---",
        f"We detected {campaign.detection_count} of these in the last few hours.",
        "",
    ]
    return "\n".join(lines)


def _html_body(campaign: Campaign, label: str, flags: list[str]) -> str:
    esc = html.escape
    flag_section = ""
    if flags:
        items = "".join(f"<li>{esc(f)}</li>" for f in flags)
        flag_section = f"""
    <h3 style="color:#1a237e;margin-bottom:8px">Red Flags</h3>
    <ul>{items}</ul>"""
    actions = "".join(f"<li>{esc(a)}</li>" for a in _ACTIONS)

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family:Arial,sans-serif;line-height:1.6;color:#333;max-width:600px;margin:0 auto">
  <div style="background:#1a237e;color:white;padding:20px;text-align:center">
    <h1 style="margin:0;font-size:22px">Phishing Alert</h1>
  </div>
  <div style="padding:20px">
    <p>We're seeing <strong>fraudulent emails</strong> appearing to come from <strong>{esc(label)}</strong>.</p>
    <h3 style="color:#1a237e;margin-bottom:8px">What to Look For</h3>
    <div style="background:#e3f2fd;border-left:4px solid #1976d2;padding:12px">
      <ul>
        <li>Sender addresses ending in <strong>@{esc(campaign.sender_domain)}</strong></li>
        <li>Subject lines like: <em>"{esc(campaign.subject_pattern)}"</em></li>
      </ul>
    </div>{flag_section}
    <h3 style="color:#1a237e;margin-bottom:8px">What to Do</h3>
    <div style="background:#f5f5f5;border-left:4px solid #616161;padding:12px">
      <ul>{actions}</ul>
    </div>
    <div style="background:#fff3e0;border-left:4px solid #f57c00;padding:12px;margin-top:10px">
      <strong>Already interacted with one of these emails?</strong> Contact IT.
    </div>
    <p style="font-size:12px;color:#666;border-top:1px solid #ddd;padding-top:15px;margin-top:20px">
      We detected {campaign.detection_count} of these in the last few hours.
    </p>
  </div>
</body>
</html>"""


def render_alert(campaign: Campaign, destination: str) -> AlertMessage:
    """Render the employee-facing alert for *campaign*."""
    label = sender_label(campaign.sender_domain)
    flags = campaign.sample_indicators[:ALERT_SAMPLE_INDICATORS]
    return AlertMessage(
        destination=destination,
        subject=f"Phishing Alert: Suspicious emails from {label}",
        html_body=_html_body(campaign, label, flags),
        text_body=_text_body(campaign, label, flags),
        campaign_id=campaign.id,
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CampaignAlertService:
    """Track high-risk detections per campaign and alert once per cooldown."""

    def __init__(
        self,
        store: IntelligenceStore,
        notifier: AlertNotifier | None,
        *,
        enabled: bool = True,
        distribution_list: str = "",
        thresholds: AlertThresholds | None = None,
        clock: Clock = utc_now,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._enabled = enabled
        self._distribution_list = distribution_list
        self._thresholds = thresholds or AlertThresholds()
        self._clock = clock
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def process_detection(
        self,
        sender_domain: str,
        subject: str,
        recipient: str,
        risk_level: str,
        indicators: Sequence[str],
    ) -> bool:
        """Track one detection; return True only if this call delivered the alert."""
        if not self._enabled:
            return False
        if risk_level not in ALERTABLE_RISK_LEVELS:
            return False

        try:
            match = await self.track(sender_domain, subject, recipient, risk_level, indicators)
        except Exception:
            logger.exception("Failed to track campaign detection from %s", sender_domain)
            return False

        if not match.should_alert:
            return False
        return await self._alert(match)

    async def track(
        self,
        sender_domain: str,
        subject: str,
        recipient: str,
        risk_level: str,
        indicators: Sequence[str],
    ) -> CampaignMatch:
        """Record the detection and evaluate the alert policy without sending anything."""
        state = await self._store.track_campaign_detection(
            sender_domain, subject, recipient, risk_level, indicators, timeout=self._timeout
        )
        now = self._clock()
        match = CampaignMatch(
            campaign_id=state.campaign_id,
            signature=state.signature,
            detection_count=state.detection_count,
            unique_recipient_count=state.unique_recipient_count,
            hours_active=hours_between(state.first_seen_at, now),
            should_alert=should_alert(state, risk_level, now, self._thresholds),
            alert_sent_at=state.alert_sent_at,
        )
        logger.info(
            "Campaign detection tracked: signature=%s detections=%d recipients=%d alert=%s",
            match.signature,
            match.detection_count,
            match.unique_recipient_count,
            match.should_alert,
        )
        return match

    async def _alert(self, match: CampaignMatch) -> bool:
        if self._notifier is None or not self._distribution_list:
            logger.warning(
                "Campaign %s crossed the alert threshold but no notifier or distribution list is set",
                match.signature,
            )
            return False

        try:
            claimed_at = await self._store.claim_campaign_alert(
                match.campaign_id,
                cooldown_hours=self._thresholds.cooldown_hours,
                timeout=self._timeout,
            )
        except Exception:
            logger.exception("Failed to claim alert for campaign %s", match.campaign_id)
            return False
        if claimed_at is None:
            return False

        try:
            campaign = await self._store.get_campaign_details(
                match.campaign_id, timeout=self._timeout
            )
        except Exception:
            logger.exception("Failed to load campaign %s", match.campaign_id)
            campaign = None
        if campaign is None:
            await self._release(match, claimed_at)
            return False

        message = render_alert(campaign, self._distribution_list)
        try:
            provider_id = await self._notifier.send(message)
        except Exception:
            logger.exception("Alert delivery failed for campaign %s", match.campaign_id)
            await self._release(match, claimed_at)
            return False

        try:
            await self._store.mark_campaign_alerted(match.campaign_id, timeout=self._timeout)
        except Exception:
            logger.warning(
                "Alert %s sent but campaign %s kept its claim time %s",
                provider_id,
                match.campaign_id,
                claimed_at.isoformat(),
                exc_info=True,
            )

        logger.info(
            "Campaign alert %s sent for %s to %s via %s",
            provider_id,
            campaign.sender_domain,
            self._distribution_list,
            self._notifier.name,
        )
        return True

    async def _release(self, match: CampaignMatch, claimed_at: datetime) -> None:
        try:
            await self._store.release_campaign_alert(
                match.campaign_id, claimed_at, match.alert_sent_at, timeout=self._timeout
            )
        except Exception:
            logger.exception("Failed to release alert claim on campaign %s", match.campaign_id)
