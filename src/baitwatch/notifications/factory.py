# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Factory to build the alert notifier from application settings."""

from __future__ import annotations

import logging

from baitwatch.core.config import Settings
from baitwatch.core.exceptions import ConfigurationError
from baitwatch.notifications.base import AlertNotifier
from baitwatch.notifications.email_channel import EmailNotifier
from baitwatch.notifications.slack import SlackNotifier
from baitwatch.notifications.webhook import WebhookNotifier

logger = logging.getLogger("baitwatch.notifications.factory")

CHANNELS = ("email", "webhook", "slack")


def build_notifier(settings: Settings) -> AlertNotifier | None:
    """Create the :class:`AlertNotifier` named by ``settings.notification_channel``.

    With no channel named, the first channel whose credentials are present
    wins, in the order email, slack, webhook.  Returns ``None`` when nothing
    is configured.

    Raises:
        ConfigurationError: If an unknown channel is requested.
    """
    channel = settings.notification_channel.strip().lower()
    if channel and channel not in CHANNELS:
        msg = f"Unknown notification channel: {channel!r}. Expected one of {', '.join(CHANNELS)}."
        raise ConfigurationError(msg)

    if not channel:
        if settings.smtp_host and settings.smtp_from:
            channel = "email"
        elif settings.slack_webhook_url:
            channel = "slack"
        elif settings.webhook_url:
            channel = "webhook"
        else:
            return None

    notifier: AlertNotifier
    if channel == "email":
        notifier = EmailNotifier(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password,
            smtp_use_tls=settings.smtp_use_tls,
            from_addr=settings.smtp_from,
            from_name=settings.smtp_from_name,
        )
    elif channel == "slack":
        notifier = SlackNotifier(settings.slack_webhook_url)
    else:
        notifier = WebhookNotifier(settings.webhook_url, secret=settings.webhook_secret)

    if not notifier.is_configured():
        logger.warning("Notification channel '%s' requested but not configured", channel)
    return notifier
