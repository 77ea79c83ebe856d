# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Subject normalization and campaign signatures."""

from __future__ import annotations

import hashlib
import re

from baitwatch.core.constants import CAMPAIGN_SIGNATURE_LENGTH, SUBJECT_PATTERN_MAX_LENGTH

_REPLY_PREFIX = re.compile(r"^(?:(?:re|fwd?)\s*:\s*)+", re.IGNORECASE)
_DIGITS = re.compile(r"\d+")
_PUNCTUATION = re.compile(r"[^\w\s#]")
_WHITESPACE = re.compile(r"\s+")


def normalize_subject(subject: str) -> str:
    """Reduce *subject* to its campaign-stable shape.

    Lowercases, strips leading ``Re:``/``Fw:``/``Fwd:`` markers, replaces
    each digit run with ``#``, drops punctuation other than ``#``, collapses
    whitespace, and truncates to 100 characters.  Idempotent.

    >>> normalize_subject("RE: Invoice #12345 - Payment Due!")
    'invoice ## payment due'
    """
    text = subject.lower().strip()
    text = _REPLY_PREFIX.sub("", text)
    text = _DIGITS.sub("#", text)
    text = _PUNCTUATION.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:SUBJECT_PATTERN_MAX_LENGTH].strip()


def campaign_signature(sender_domain: str, subject: str) -> str:
    """First 16 hex chars of SHA-256 over ``domain:normalized_subject``."""
    payload = f"{sender_domain.strip().lower()}:{normalize_subject(subject)}"
    return hashlib.sha256(payload.encode()).hexdigest()[:CAMPAIGN_SIGNATURE_LENGTH]
