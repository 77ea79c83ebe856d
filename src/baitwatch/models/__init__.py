# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Pydantic models for verdicts, analyses, indicators, patterns, and campaigns."""

from baitwatch.models.analysis import (
    AIUsage,
    AIUsageStats,
    AnalysisSearchFilters,
    EmailAnalysis,
    IntelligenceStats,
)
from baitwatch.models.campaign import AlertMessage, Campaign, CampaignMatch, CampaignState
from baitwatch.models.indicator import IndicatorCandidate, ThreatIndicator, indicator_hash
from baitwatch.models.pattern import DetectedPattern, PatternMatch
from baitwatch.models.verdict import InboundEmail, TokenUsage, Verdict

__all__ = [
    "AIUsage",
    "AIUsageStats",
    "AlertMessage",
    "AnalysisSearchFilters",
    "Campaign",
    "CampaignMatch",
    "CampaignState",
    "DetectedPattern",
    "EmailAnalysis",
    "InboundEmail",
    "IndicatorCandidate",
    "IntelligenceStats",
    "PatternMatch",
    "ThreatIndicator",
    "TokenUsage",
    "Verdict",
    "indicator_hash",
]
