# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Inputs handed to the engine: the classification verdict and the parsed email."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from baitwatch.core.constants import ConfidenceLabel

_LABEL_LOOKUP = {label.value.lower(): label for label in ConfidenceLabel}


class Verdict(BaseModel):
    """Classification result produced upstream for a single email."""

    is_phishing: bool
    confidence: ConfidenceLabel = ConfidenceLabel.UNKNOWN
    indicators: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    summary: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _parse_label(cls, v: object) -> object:
        # Accept "Very High", "very_high", "VERYHIGH", ...
        if isinstance(v, str):
            key = v.replace(" ", "").replace("_", "").replace("-", "").lower()
            return _LABEL_LOOKUP.get(key, ConfidenceLabel.UNKNOWN)
        return v


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    estimated_cost_usd: float | None = None

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class InboundEmail(BaseModel):
    """Fields supplied by the ingestion collaborator."""

    message_id: str
    from_email: str
    from_domain: str = ""
    subject: str = ""
    links: list[str] = Field(default_factory=list)
    text: str = ""
    html: str = ""

    @model_validator(mode="after")
    def _derive_domain(self) -> InboundEmail:
        if not self.from_domain and "@" in self.from_email:
            self.from_domain = self.from_email.rsplit("@", 1)[1].strip().lower()
        return self
