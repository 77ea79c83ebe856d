# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Aggregate statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from baitwatch.api.auth import require_api_key
from baitwatch.api.deps import get_store
from baitwatch.models.analysis import AIUsageStats, IntelligenceStats
from baitwatch.storage.store import IntelligenceStore

router = APIRouter()


@router.get("/stats", response_model=IntelligenceStats)
async def get_stats(
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> IntelligenceStats:
    return await store.get_stats()


@router.get("/usage", response_model=AIUsageStats)
async def get_usage(
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> AIUsageStats:
    """Token and cost totals for classification calls."""
    return await store.get_ai_usage_stats()
