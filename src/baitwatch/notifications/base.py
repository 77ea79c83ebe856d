# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract base class for alert delivery channels."""

from __future__ import annotations

import abc

from baitwatch.models.campaign import AlertMessage


class AlertNotifier(abc.ABC):
    """Base class for all alert channels.

    Each concrete channel implements ``send()`` to hand an
    :class:`AlertMessage` to its backing service (SMTP, Slack, a generic
    webhook).  Delivery is attempted once; there are no retries.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable channel name (e.g. ``'slack'``)."""

    @abc.abstractmethod
    async def send(self, message: AlertMessage) -> str:
        """Deliver *message* and return the provider's message ID.

        Raises:
            DeliveryError: If the provider rejected or never received it.
        """

    def is_configured(self) -> bool:
        """Return ``True`` if the channel has the settings it needs."""
        return True
