# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Generic webhook alert channel for custom HTTP POST endpoints."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import uuid

import httpx

from baitwatch.core.exceptions import DeliveryError
from baitwatch.models.campaign import AlertMessage
from baitwatch.notifications.base import AlertNotifier

logger = logging.getLogger("baitwatch.notifications.webhook")

_TIMEOUT_SECONDS = 10.0
SIGNATURE_HEADER = "X-Baitwatch-Signature"


def compute_signature(payload_bytes: bytes, secret: str) -> str:
    """Compute HMAC-SHA256 signature for a payload."""
    return hmac.new(
        secret.encode("utf-8"),
        payload_bytes,
        hashlib.sha256,
    ).hexdigest()


class WebhookNotifier(AlertNotifier):
    """POST the alert as JSON, optionally signed with a shared secret.

    The returned message ID is the ``id`` (or ``message_id``) field of a
    JSON response when the receiver supplies one, otherwise a generated
    UUID.
    """

    def __init__(
        self,
        url: str,
        *,
        secret: str = "",
        headers: dict[str, str] | None = None,
    ) -> None:
        self._url = url
        self._secret = secret
        self._extra_headers = headers or {}

    @property
    def name(self) -> str:
        return "webhook"

    def is_configured(self) -> bool:
        return bool(self._url)

    async def send(self, message: AlertMessage) -> str:
        if not self._url:
            raise DeliveryError("Webhook URL not configured")

        payload = {"event": "campaign_alert", **message.model_dump(mode="json")}
        payload_bytes = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode()

        headers: dict[str, str] = {"Content-Type": "application/json"}
        headers.update(self._extra_headers)
        if self._secret:
            headers[SIGNATURE_HEADER] = compute_signature(payload_bytes, self._secret)

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                response = await client.post(self._url, content=payload_bytes, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            msg = f"Webhook delivery to {self._url} failed: {exc}"
            raise DeliveryError(msg) from exc

        message_id = _response_id(response) or str(uuid.uuid4())
        logger.info("Alert webhook %s delivered to %s", message_id, self._url)
        return message_id


def _response_id(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        value = body.get("id") or body.get("message_id")
        return str(value) if value else None
    return None
