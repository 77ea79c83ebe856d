# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Health check endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from baitwatch import __version__

logger = logging.getLogger("baitwatch.api.health")

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


class ReadyResponse(BaseModel):
    status: str
    database: str
    backend: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", service="baitwatch", version=__version__)


@router.get("/ready", response_model=ReadyResponse)
async def ready() -> ReadyResponse | JSONResponse:
    from baitwatch.core.exceptions import StorageError
    from baitwatch.storage.database import get_backend

    try:
        backend = await get_backend()
        await backend.fetch_one("SELECT 1")
    except (StorageError, OSError) as exc:
        logger.warning("Readiness check failed: %s", exc)
        return JSONResponse(
            status_code=503,
            content=ReadyResponse(status="not_ready", database="disconnected").model_dump(),
        )
    return ReadyResponse(status="ready", database="connected", backend=backend.backend_name)
