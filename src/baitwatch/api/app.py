# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from baitwatch import __version__
from baitwatch.api.routes import analyses, campaigns, health, indicators, patterns, stats
from baitwatch.core.exceptions import StoreUnavailableError, ValidationError

logger = logging.getLogger("baitwatch.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    from baitwatch.core.config import get_settings
    from baitwatch.core.logging import setup_logging
    from baitwatch.storage.database import close_backend, init_backend

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    await init_backend(settings)

    yield

    await close_backend()


async def _validation_error(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Store unavailable for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Intelligence store unavailable"})


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="baitwatch",
        description="Phishing threat intelligence and campaign detection",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable)
    app.add_exception_handler(Exception, _unhandled)

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(analyses.router, prefix="/api/v1", tags=["analyses"])
    app.include_router(indicators.router, prefix="/api/v1", tags=["indicators"])
    app.include_router(patterns.router, prefix="/api/v1", tags=["patterns"])
    app.include_router(campaigns.router, prefix="/api/v1", tags=["campaigns"])
    app.include_router(stats.router, prefix="/api/v1", tags=["stats"])

    return app
