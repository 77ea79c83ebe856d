# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Slack alert channel using Block Kit formatting."""

from __future__ import annotations

import logging
import uuid

import httpx

from baitwatch.core.exceptions import DeliveryError
from baitwatch.models.campaign import AlertMessage
from baitwatch.notifications.base import AlertNotifier

logger = logging.getLogger("baitwatch.notifications.slack")

_TIMEOUT_SECONDS = 10.0
_MAX_SECTION_CHARS = 2900


def build_blocks(message: AlertMessage) -> list[dict]:
    """Build Slack Block Kit blocks from the plain-text alert body."""
    return [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f":rotating_light: {message.subject}"[:150],
                "emoji": True,
            },
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": message.text_body[:_MAX_SECTION_CHARS]},
        },
    ]


class SlackNotifier(AlertNotifier):
    """Send alerts to Slack via an incoming webhook."""

    def __init__(self, webhook_url: str) -> None:
        self._webhook_url = webhook_url

    @property
    def name(self) -> str:
        return "slack"

    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    async def send(self, message: AlertMessage) -> str:
        if not self._webhook_url:
            raise DeliveryError("Slack webhook URL not configured")

        payload = {"text": message.subject, "blocks": build_blocks(message)}
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                response = await client.post(self._webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Slack delivery failed: {exc}") from exc

        # Incoming webhooks answer "ok" with no message ID of their own.
        message_id = f"slack-{uuid.uuid4()}"
        logger.info("Slack alert %s sent", message_id)
        return message_id
