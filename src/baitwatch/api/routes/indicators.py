# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat indicator API endpoints, including STIX and CSV export."""

from __future__ import annotations

from enum import StrEnum

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from baitwatch.api.auth import require_api_key
from baitwatch.api.deps import get_store
from baitwatch.core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from baitwatch.models.indicator import ThreatIndicator
from baitwatch.storage.store import IntelligenceStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------


class IndicatorListResponse(BaseModel):
    indicators: list[ThreatIndicator]
    count: int


class LookupRequest(BaseModel):
    type: str
    values: list[str]


class LookupResponse(BaseModel):
    indicators: list[ThreatIndicator]
    matched: int
    total: int


class ExportFormat(StrEnum):
    STIX = "stix"
    CSV = "csv"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/indicators", response_model=IndicatorListResponse)
async def list_indicators(
    indicator_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=DEFAULT_QUERY_LIMIT),
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> IndicatorListResponse:
    """Active indicators, most recently seen first."""
    indicators = await store.get_active_indicators(indicator_type, limit)
    return IndicatorListResponse(indicators=indicators, count=len(indicators))


@router.post("/indicators/lookup", response_model=LookupResponse)
async def lookup_indicators(
    body: LookupRequest,
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> LookupResponse:
    """Bulk lookup of values against active indicators of one type."""
    indicators = await store.lookup_indicators(body.type, body.values)
    return LookupResponse(indicators=indicators, matched=len(indicators), total=len(body.values))


@router.get("/indicators/export")
async def export_indicators(
    fmt: ExportFormat = Query(default=ExportFormat.STIX, alias="format"),
    indicator_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=MAX_QUERY_LIMIT),
    store: IntelligenceStore = Depends(get_store),
    _api_key: str = Depends(require_api_key),
) -> Response:
    """Download active indicators as a STIX 2.1 bundle or CSV."""
    from baitwatch.export import build_stix_bundle, indicators_to_csv

    indicators = await store.get_active_indicators(indicator_type, limit)

    if fmt == ExportFormat.CSV:
        return Response(
            content=indicators_to_csv(indicators),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="indicators.csv"'},
        )
    return JSONResponse(
        content=build_stix_bundle(indicators),
        headers={"Content-Disposition": 'attachment; filename="indicators.json"'},
    )
