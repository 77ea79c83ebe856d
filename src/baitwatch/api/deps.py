# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Request-scoped dependencies."""

from __future__ import annotations

from baitwatch.storage.database import get_backend
from baitwatch.storage.store import IntelligenceStore


async def get_store() -> IntelligenceStore:
    """Wrap the process-wide backend opened by the app lifespan."""
    return IntelligenceStore(await get_backend())
