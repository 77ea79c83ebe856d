# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Alert delivery channels -- SMTP email, Slack, and generic webhooks."""

from baitwatch.notifications.base import AlertNotifier
from baitwatch.notifications.email_channel import EmailNotifier
from baitwatch.notifications.factory import build_notifier
from baitwatch.notifications.slack import SlackNotifier
from baitwatch.notifications.webhook import WebhookNotifier

__all__ = [
    "AlertNotifier",
    "EmailNotifier",
    "SlackNotifier",
    "WebhookNotifier",
    "build_notifier",
]
