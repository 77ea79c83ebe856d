# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, severity ranks, and threshold constants."""

from enum import StrEnum


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    SAFE = "safe"


class IndicatorType(StrEnum):
    DOMAIN = "domain"
    IP = "ip"
    URL = "url"
    EMAIL = "email"
    HASH = "hash"
    FILE_NAME = "file_name"
    SUBJECT_PATTERN = "subject_pattern"


class PatternType(StrEnum):
    DOMAIN_CAMPAIGN = "domain_campaign"
    SUBJECT_PATTERN = "subject_pattern"
    IMPERSONATION = "impersonation"
    URL_CAMPAIGN = "url_campaign"


class ConfidenceLabel(StrEnum):
    """Confidence label attached to a classification verdict."""

    VERY_HIGH = "VeryHigh"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    VERY_LOW = "VeryLow"
    UNKNOWN = "Unknown"


SEVERITY_RANK: dict[str, int] = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

CONFIDENCE_RANK: dict[ConfidenceLabel, int] = {
    ConfidenceLabel.VERY_HIGH: 5,
    ConfidenceLabel.HIGH: 4,
    ConfidenceLabel.MEDIUM: 3,
    ConfidenceLabel.LOW: 2,
    ConfidenceLabel.VERY_LOW: 1,
    ConfidenceLabel.UNKNOWN: 0,
}

# Numeric score stored alongside an analysis for each verdict label
CONFIDENCE_SCORES: dict[ConfidenceLabel, float] = {
    ConfidenceLabel.VERY_HIGH: 0.95,
    ConfidenceLabel.HIGH: 0.85,
    ConfidenceLabel.MEDIUM: 0.65,
    ConfidenceLabel.LOW: 0.4,
    ConfidenceLabel.VERY_LOW: 0.2,
    ConfidenceLabel.UNKNOWN: 0.0,
}

ALERTABLE_RISK_LEVELS = frozenset({RiskLevel.CRITICAL, RiskLevel.HIGH})

MAX_QUERY_LIMIT = 1000
DEFAULT_QUERY_LIMIT = 100
CAMPAIGN_SAMPLE_INDICATORS = 5
ALERT_SAMPLE_INDICATORS = 3
SUBJECT_PATTERN_MAX_LENGTH = 100
CAMPAIGN_SIGNATURE_LENGTH = 16
CONFIRMED_PATTERN_COUNT = 5


def max_severity(a: str, b: str) -> Severity:
    """Return the more severe of two severity labels."""
    return Severity(a) if SEVERITY_RANK[a] >= SEVERITY_RANK[b] else Severity(b)


def clamp_limit(limit: int | None, default: int = DEFAULT_QUERY_LIMIT) -> int:
    """Clamp a caller-supplied row limit into ``[1, MAX_QUERY_LIMIT]``."""
    if limit is None:
        return default
    return min(max(1, int(limit)), MAX_QUERY_LIMIT)
