# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Storage layer -- database backends, migrations, repositories, and the store."""

from baitwatch.storage.backend import DatabaseBackend, QueryExecutor
from baitwatch.storage.database import close_backend, create_backend, get_backend, init_backend
from baitwatch.storage.query_adapter import adapt_query
from baitwatch.storage.store import IntelligenceStore

__all__ = [
    "DatabaseBackend",
    "IntelligenceStore",
    "QueryExecutor",
    "adapt_query",
    "close_backend",
    "create_backend",
    "get_backend",
    "init_backend",
]
