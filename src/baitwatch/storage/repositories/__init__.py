# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Table-level repositories used by :class:`~baitwatch.storage.store.IntelligenceStore`."""

from baitwatch.storage.repositories.analyses import AnalysisRepository
from baitwatch.storage.repositories.campaigns import CampaignRepository
from baitwatch.storage.repositories.indicators import IndicatorRepository
from baitwatch.storage.repositories.patterns import PatternRepository
from baitwatch.storage.repositories.usage import UsageRepository

__all__ = [
    "AnalysisRepository",
    "CampaignRepository",
    "IndicatorRepository",
    "PatternRepository",
    "UsageRepository",
]
