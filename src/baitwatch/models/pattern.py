# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detected cross-email pattern models.

Each pattern type carries its own criteria shape; the union is tagged by
``kind`` and only serialized to JSON at the persistence boundary.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from baitwatch.core.constants import PatternType


class DomainCampaignCriteria(BaseModel):
    kind: Literal["domain_campaign"] = "domain_campaign"
    domain: str
    matching_emails: int
    first_seen: datetime | None = None
    last_seen: datetime | None = None


class SubjectPatternCriteria(BaseModel):
    kind: Literal["subject_pattern"] = "subject_pattern"
    key_phrases: list[str]
    matching_emails: int
    sample_subject: str = ""


class ImpersonationCriteria(BaseModel):
    kind: Literal["impersonation"] = "impersonation"
    matching_emails: int
    sample_indicators: list[str] = Field(default_factory=list)


class UrlCampaignCriteria(BaseModel):
    kind: Literal["url_campaign"] = "url_campaign"
    domains: list[str]
    matching_emails: int


PatternCriteria = Annotated[
    DomainCampaignCriteria | SubjectPatternCriteria | ImpersonationCriteria | UrlCampaignCriteria,
    Field(discriminator="kind"),
]

criteria_adapter: TypeAdapter[PatternCriteria] = TypeAdapter(PatternCriteria)


class DetectedPattern(BaseModel):
    """A persisted pattern row."""

    id: str | None = None
    pattern_type: PatternType
    pattern_name: str
    criteria: PatternCriteria
    match_count: int = 1
    is_confirmed_threat: bool = False
    first_detected_at: datetime
    last_detected_at: datetime


class PatternMatch(BaseModel):
    """A pattern reported back to the caller of the detector."""

    type: PatternType
    name: str
    description: str
    criteria: PatternCriteria
    match_count: int
    is_new: bool
