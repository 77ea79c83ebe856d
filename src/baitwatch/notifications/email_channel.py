# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Email alert channel via SMTP with HTML and plain-text parts."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid

from baitwatch.core.exceptions import DeliveryError
from baitwatch.models.campaign import AlertMessage
from baitwatch.notifications.base import AlertNotifier

logger = logging.getLogger("baitwatch.notifications.email")


class EmailNotifier(AlertNotifier):
    """Send alert emails via SMTP as ``multipart/alternative``."""

    def __init__(
        self,
        *,
        smtp_host: str,
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        smtp_use_tls: bool = True,
        from_addr: str = "",
        from_name: str = "",
    ) -> None:
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._smtp_use_tls = smtp_use_tls
        self._from_addr = from_addr or smtp_user
        self._from_name = from_name

    @property
    def name(self) -> str:
        return "email"

    def is_configured(self) -> bool:
        return bool(self._smtp_host and self._from_addr)

    def _build(self, message: AlertMessage, message_id: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((self._from_name, self._from_addr)) if self._from_name else self._from_addr
        msg["To"] = message.destination
        msg["Message-ID"] = message_id
        # Plain text first, preferred HTML part last
        msg.attach(MIMEText(message.text_body, "plain", "utf-8"))
        msg.attach(MIMEText(message.html_body, "html", "utf-8"))
        return msg

    def _deliver(self, msg: MIMEMultipart, to_addrs: list[str]) -> None:
        with smtplib.SMTP(self._smtp_host, self._smtp_port) as server:
            if self._smtp_use_tls:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
            if self._smtp_user:
                server.login(self._smtp_user, self._smtp_password)
            server.sendmail(self._from_addr, to_addrs, msg.as_string())

    async def send(self, message: AlertMessage) -> str:
        if not self.is_configured():
            raise DeliveryError("Email channel not configured (missing SMTP host or sender)")

        to_addrs = [a.strip() for a in message.destination.split(",") if a.strip()]
        if not to_addrs:
            raise DeliveryError("Alert has no destination address")

        domain = self._from_addr.rsplit("@", 1)[-1] if "@" in self._from_addr else None
        message_id = make_msgid(domain=domain)
        msg = self._build(message, message_id)

        try:
            await asyncio.to_thread(self._deliver, msg, to_addrs)
        except (smtplib.SMTPException, OSError) as exc:
            msg_text = f"SMTP delivery to {message.destination} failed: {exc}"
            raise DeliveryError(msg_text) from exc

        logger.info("Alert email %s sent to %s", message_id, message.destination)
        return message_id
