# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Email analysis records, search filters, and aggregate statistics."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from baitwatch.core.constants import DEFAULT_QUERY_LIMIT, RiskLevel, clamp_limit
from baitwatch.core.timestamps import utc_now


class EmailAnalysis(BaseModel):
    """A persisted verdict for one email. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    profile_id: str | None = None
    message_id: str
    from_email: str
    from_domain: str
    subject: str = ""
    is_phishing: bool
    confidence_score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    analysis_result: dict[str, Any] = Field(default_factory=dict)
    indicators: list[str] = Field(default_factory=list)
    vip_impersonation_detected: bool = False
    ai_provider: str = ""
    ai_model: str = ""
    processing_time_ms: int = 0
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("from_domain", mode="after")
    @classmethod
    def _lower_domain(cls, v: str) -> str:
        return v.strip().lower()


class AnalysisSearchFilters(BaseModel):
    """Filters for :meth:`IntelligenceStore.search_analyses`.

    ``limit`` and ``offset`` are clamped rather than rejected.
    """

    from_date: datetime | None = None
    to_date: datetime | None = None
    is_phishing: bool | None = None
    risk_level: RiskLevel | None = None
    from_domain: str | None = None
    profile_id: str | None = None
    limit: int = DEFAULT_QUERY_LIMIT
    offset: int = 0

    @field_validator("limit", mode="after")
    @classmethod
    def _clamp_limit(cls, v: int) -> int:
        return clamp_limit(v)

    @field_validator("offset", mode="after")
    @classmethod
    def _clamp_offset(cls, v: int) -> int:
        return max(0, v)


class DomainCount(BaseModel):
    domain: str
    count: int


class IntelligenceStats(BaseModel):
    total_analyses: int = 0
    phishing_detected: int = 0
    active_indicators: int = 0
    detected_patterns: int = 0
    analyses_last_24h: int = 0
    analyses_last_7d: int = 0
    top_threatened_domains: list[DomainCount] = Field(default_factory=list)
    risk_distribution: dict[str, int] = Field(default_factory=dict)


class AIUsage(BaseModel):
    """Token and cost ledger entry for one classification call."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    analysis_id: str | None = None
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ModelUsage(BaseModel):
    model: str
    requests: int
    total_tokens: int
    estimated_cost_usd: float


class AIUsageStats(BaseModel):
    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_tokens: int = 0
    estimated_total_cost_usd: float = 0.0
    avg_input_tokens_per_request: float = 0.0
    avg_output_tokens_per_request: float = 0.0
    avg_cost_per_request: float = 0.0
    requests_last_24h: int = 0
    requests_last_7d: int = 0
    cost_last_24h: float = 0.0
    cost_last_7d: float = 0.0
    usage_by_model: list[ModelUsage] = Field(default_factory=list)
