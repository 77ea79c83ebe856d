# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Campaign API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from baitwatch.api.auth import require_api_key
from baitwatch.api.deps import get_store
from baitwatch.core.constants import DEFAULT_QUERY_LIMIT
from baitwatch.models.campaign import Campaign
from baitwatch.storage.store import IntelligenceStore

router = APIRouter()


class CampaignListResponse(BaseModel):
    campaigns: list[Campaign]
    count: int


@router.get("/campaigns", response_model=CampaignListResponse)
async def list_campaigns(
    active_only: bool = True,
    limit: int = Query(default=DEFAULT_QUERY_LIMIT),
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> CampaignListResponse:
    campaigns = await store.list_campaigns(active_only, limit)
    return CampaignListResponse(campaigns=campaigns, count=len(campaigns))


@router.get("/campaigns/{campaign_id}", response_model=Campaign)
async def get_campaign(
    campaign_id: str,
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> Campaign:
    """Retrieve a single campaign with its recipient list."""
    campaign = await store.get_campaign_details(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail=f"Campaign {campaign_id} not found")
    return campaign
