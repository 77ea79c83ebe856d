# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat indicator models."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from baitwatch.core.constants import IndicatorType, Severity


def indicator_hash(indicator_type: str, value: str) -> str:
    """Uniqueness key of an indicator: SHA-256 over ``type:lowercase(value)``."""
    return hashlib.sha256(f"{indicator_type}:{value.lower()}".encode()).hexdigest()


class IndicatorCandidate(BaseModel):
    """An indicator proposed by the extractor, not yet persisted."""

    type: IndicatorType
    value: str
    confidence: float = Field(ge=0.0, le=1.0)
    severity: Severity
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: datetime | None = None

    @property
    def hash(self) -> str:
        return indicator_hash(self.type, self.value)


class ThreatIndicator(BaseModel):
    """A persisted indicator row."""

    id: str
    indicator_type: IndicatorType
    indicator_value: str
    indicator_hash: str
    confidence_score: float
    severity: Severity
    times_seen: int = 1
    first_seen_at: datetime
    last_seen_at: datetime
    is_active: bool = True
    expires_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
