# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""SQLite implementation of the abstract :class:`DatabaseBackend`.

Wraps a single :mod:`aiosqlite` connection opened in autocommit mode.
Every statement holds the backend lock, and a transaction holds it for
its whole lifetime so that concurrent callers never interleave inside a
``BEGIN IMMEDIATE`` block.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from baitwatch.core.exceptions import StoreUnavailableError
from baitwatch.storage.backend import DatabaseBackend, QueryExecutor

logger = logging.getLogger(__name__)


async def _fetch_all(
    conn: aiosqlite.Connection, query: str, params: tuple[Any, ...] | None
) -> list[dict[str, Any]]:
    async with conn.execute(query, params or ()) as cursor:
        rows = await cursor.fetchall()
    return [dict(r) for r in rows]


class _SQLiteTransaction(QueryExecutor):
    """Executor bound to an open ``BEGIN IMMEDIATE`` block."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection

    async def execute(self, query: str, params: tuple[Any, ...] | None = None) -> Any:
        async with self._conn.execute(query, params or ()) as cursor:
            return cursor.rowcount

    async def fetch_one(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        rows = await _fetch_all(self._conn, query, params)
        return rows[0] if rows else None

    async def fetch_all(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        return await _fetch_all(self._conn, query, params)


class SQLiteBackend(DatabaseBackend):
    """Async SQLite backend backed by an :class:`aiosqlite.Connection`."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    async def connect(cls, db_path: Path | str) -> SQLiteBackend:
        """Open *db_path* and enable WAL mode and foreign keys.

        Raises:
            StoreUnavailableError: If the database file cannot be opened.
        """
        try:
            conn = await aiosqlite.connect(str(db_path), isolation_level=None)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
        except (OSError, aiosqlite.Error) as exc:
            msg = f"Failed to open SQLite database at {db_path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        logger.info("Opened SQLite database at %s", db_path)
        return cls(conn)

    # ------------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------------

    async def execute(self, query: str, params: tuple[Any, ...] | None = None) -> Any:
        async with self._lock:
            async with self._conn.execute(query, params or ()) as cursor:
                return cursor.rowcount

    async def fetch_one(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        async with self._lock:
            rows = await _fetch_all(self._conn, query, params)
        return rows[0] if rows else None

    async def fetch_all(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        async with self._lock:
            return await _fetch_all(self._conn, query, params)

    # ------------------------------------------------------------------
    # Transaction / connection lifecycle
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[QueryExecutor]:
        async with self._lock:
            begin = asyncio.ensure_future(self._run("BEGIN IMMEDIATE"))
            try:
                await asyncio.shield(begin)
                yield _SQLiteTransaction(self._conn)
            except BaseException:
                await self._rollback(begin)
                raise
            commit = asyncio.ensure_future(self._run("COMMIT"))
            try:
                await asyncio.shield(commit)
            except BaseException:
                await self._rollback(commit)
                raise

    async def _run(self, statement: str) -> None:
        async with self._conn.execute(statement):
            pass

    async def _rollback(self, pending: asyncio.Future[None]) -> None:
        """Let *pending* land on the worker thread, then undo any open transaction.

        The lock is never released with a ``BEGIN`` still open, even when
        the caller was cancelled mid-statement.
        """
        await asyncio.wait([pending])
        if self._conn.in_transaction:
            await asyncio.shield(self._run("ROLLBACK"))

    async def close(self) -> None:
        await self._conn.close()

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def backend_name(self) -> str:
        return "sqlite"
