# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Log setup for baitwatch.

Handlers attach to the ``baitwatch`` logger only.  Every formatted line
passes through :func:`redact_sensitive`, so credentials from the store
DSN, the SMTP relay, notifier endpoints and API callers stay out of logs.
"""

import json
import logging
import re
import sys
from typing import Any

_MASK = "[REDACTED]"

# Each pattern keeps group 1 and masks the remainder of the match.
REDACT_PATTERNS = [
    re.compile(r"\b((?:postgres(?:ql)?|smtps?)://[^:/@\s]+:)[^@\s]+(?=@)"),
    re.compile(r"(sk-ant-[a-zA-Z0-9\-]{10})[a-zA-Z0-9\-]*"),
    re.compile(r"(xox[abp]-[a-zA-Z0-9]{4})[a-zA-Z0-9\-]*"),
    re.compile(r"(hooks\.slack\.com/services/[A-Z0-9]{4})[A-Za-z0-9/]*"),
    re.compile(r"(Bearer\s+[a-zA-Z0-9\-._~+/]{10})[a-zA-Z0-9\-._~+/]*"),
    re.compile(r"(X-API-Key[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+", re.IGNORECASE),
]

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Client libraries that log full request URLs, webhook secrets included.
QUIET_LOGGERS = ("httpx", "httpcore")


def redact_sensitive(text: str) -> str:
    for pattern in REDACT_PATTERNS:
        text = pattern.sub(rf"\1{_MASK}", text)
    return text


class JsonFormatter(logging.Formatter):
    """One JSON object per line, message and exception text redacted."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_sensitive(record.getMessage()),
        }
        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            entry["exception"] = redact_sensitive(str(exc))
            entry["exception_type"] = type(exc).__name__
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return redact_sensitive(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install a single stderr handler on the ``baitwatch`` logger.

    Unknown level names fall back to INFO.  Any format other than
    ``json`` produces plain text lines.
    """
    log_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    root = logging.getLogger("baitwatch")
    root.setLevel(log_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if fmt == "json" else TextFormatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
