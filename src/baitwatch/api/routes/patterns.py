# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detected pattern API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from baitwatch.api.auth import require_api_key
from baitwatch.api.deps import get_store
from baitwatch.core.constants import DEFAULT_QUERY_LIMIT
from baitwatch.models.pattern import DetectedPattern
from baitwatch.storage.store import IntelligenceStore

router = APIRouter()


class PatternListResponse(BaseModel):
    patterns: list[DetectedPattern]
    count: int


@router.get("/patterns", response_model=PatternListResponse)
async def list_patterns(
    pattern_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=DEFAULT_QUERY_LIMIT),
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> PatternListResponse:
    """Detected patterns, most recently matched first."""
    patterns = await store.list_patterns(pattern_type, limit)
    return PatternListResponse(patterns=patterns, count=len(patterns))
