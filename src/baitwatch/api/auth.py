# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared-secret guard for the intelligence API.

Callers present one of the configured ``api_keys`` in ``X-API-Key``.
The dependency resolves to a caller label (``anonymous`` or
``key-<n>``) that is safe to log; the key itself is never logged.
"""

from __future__ import annotations

import logging
import secrets

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from baitwatch.core.config import get_settings

logger = logging.getLogger("baitwatch.api.auth")

API_KEY_HEADER = "X-API-Key"

_api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def match_api_key(presented: str, configured: list[str]) -> int | None:
    """Index of the configured key equal to *presented*, compared in constant time."""
    found = None
    candidate = presented.encode()
    for index, key in enumerate(configured):
        if secrets.compare_digest(candidate, key.encode()):
            found = index
    return found


async def require_api_key(
    request: Request,
    api_key: str | None = Security(_api_key_header),
) -> str:
    """Resolve the caller of an intelligence endpoint.

    The API is open while no keys are configured.  A missing header is
    401; an unknown key is 403.
    """
    configured = get_settings().api_keys
    if not configured:
        return "anonymous"

    if not api_key:
        logger.warning("Rejected %s %s: no API key", request.method, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {API_KEY_HEADER} header",
            headers={"WWW-Authenticate": "APIKey"},
        )

    index = match_api_key(api_key, configured)
    if index is None:
        logger.warning("Rejected %s %s: unknown API key", request.method, request.url.path)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")

    return f"key-{index + 1}"
