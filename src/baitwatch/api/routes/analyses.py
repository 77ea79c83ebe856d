# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Email analysis API endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from baitwatch.api.auth import require_api_key
from baitwatch.api.deps import get_store
from baitwatch.core.constants import DEFAULT_QUERY_LIMIT, RiskLevel
from baitwatch.models.analysis import AnalysisSearchFilters, EmailAnalysis
from baitwatch.storage.store import IntelligenceStore

router = APIRouter()


class AnalysisListResponse(BaseModel):
    analyses: list[EmailAnalysis]
    count: int


@router.get("/analyses", response_model=AnalysisListResponse)
async def list_analyses(
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    is_phishing: bool | None = None,
    risk_level: RiskLevel | None = None,
    from_domain: str | None = None,
    profile_id: str | None = None,
    limit: int = Query(default=DEFAULT_QUERY_LIMIT),
    offset: int = Query(default=0),
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> AnalysisListResponse:
    """List stored analyses, newest first."""
    filters = AnalysisSearchFilters(
        from_date=from_date,
        to_date=to_date,
        is_phishing=is_phishing,
        risk_level=risk_level,
        from_domain=from_domain,
        profile_id=profile_id,
        limit=limit,
        offset=offset,
    )
    analyses = await store.search_analyses(filters)
    return AnalysisListResponse(analyses=analyses, count=len(analyses))


@router.post("/analyses/search", response_model=AnalysisListResponse)
async def search_analyses(
    filters: AnalysisSearchFilters,
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> AnalysisListResponse:
    analyses = await store.search_analyses(filters)
    return AnalysisListResponse(analyses=analyses, count=len(analyses))


@router.get("/analyses/{analysis_id}", response_model=EmailAnalysis)
async def get_analysis(
    analysis_id: str,
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> EmailAnalysis:
    analysis = await store.get_analysis(analysis_id)
    if analysis is None:
        raise HTTPException(status_code=404, detail=f"Analysis {analysis_id} not found")
    return analysis
