# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract database backend interface for pluggable storage engines.

Both the SQLite (aiosqlite) and PostgreSQL (asyncpg) backends implement
this interface so that repositories and the intelligence store can remain
backend-agnostic.  Queries are always written with ``?`` placeholders.
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from typing import Any


class QueryExecutor(abc.ABC):
    """Anything that can run a query: a backend or an open transaction."""

    @abc.abstractmethod
    async def execute(self, query: str, params: tuple[Any, ...] | None = None) -> Any:
        """Execute a single SQL statement.

        Args:
            query: SQL query string with ``?`` placeholders.
            params: Optional tuple of bind parameters.

        Returns:
            A backend-specific status/result object.
        """

    @abc.abstractmethod
    async def fetch_one(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        """Execute a query and return the first row as a dict, or ``None``."""

    @abc.abstractmethod
    async def fetch_all(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        """Execute a query and return all rows as a list of dicts."""


class DatabaseBackend(QueryExecutor):
    """Abstract base class for async database backends.

    Concrete implementations wrap a connection (SQLite) or connection pool
    (PostgreSQL) and expose a uniform query interface.
    """

    # ------------------------------------------------------------------
    # Transaction / connection lifecycle
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[QueryExecutor]:
        """Open a transaction and yield an executor bound to it.

        The transaction commits when the block exits normally and rolls
        back when it raises.
        """

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the underlying connection or pool."""

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def backend_name(self) -> str:
        """Return ``'sqlite'`` or ``'postgres'``."""
