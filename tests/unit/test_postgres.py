# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for PostgreSQL backend support: query adaptation, config, and a mocked pool."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from baitwatch.core.config import Settings
from baitwatch.core.exceptions import ConfigurationError, StoreUnavailableError
from baitwatch.storage.backend import DatabaseBackend
from baitwatch.storage.database import create_backend
from baitwatch.storage.postgres import PostgresDatabase
from baitwatch.storage.query_adapter import adapt_query, placeholders
from baitwatch.storage.sqlite_backend import SQLiteBackend

# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class TestDatabaseBackendInterface:
    def test_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            DatabaseBackend()  # type: ignore[abstract]

    def test_backends_are_subclasses(self) -> None:
        assert issubclass(SQLiteBackend, DatabaseBackend)
        assert issubclass(PostgresDatabase, DatabaseBackend)


# ---------------------------------------------------------------------------
# Query adapter
# ---------------------------------------------------------------------------


class TestQueryAdapter:
    def test_sqlite_unchanged(self) -> None:
        sql = "SELECT * FROM t WHERE a = ? AND b = ?"
        assert adapt_query(sql, "sqlite") == sql

    def test_postgres_numbered(self) -> None:
        sql = "SELECT * FROM t WHERE a = ? AND b IN (?, ?)"
        assert adapt_query(sql, "postgres") == "SELECT * FROM t WHERE a = $1 AND b IN ($2, $3)"

    def test_question_mark_inside_literal_is_kept(self) -> None:
        sql = "SELECT 'why?' AS q, 'it''s?' AS r FROM t WHERE a = ?"
        assert adapt_query(sql, "postgres") == "SELECT 'why?' AS q, 'it''s?' AS r FROM t WHERE a = $1"

    def test_unknown_dialect(self) -> None:
        with pytest.raises(ValueError, match="mysql"):
            adapt_query("SELECT 1", "mysql")

    def test_placeholders(self) -> None:
        assert placeholders(3) == "?, ?, ?"
        assert placeholders(1) == "?"


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------


class TestCreateBackend:
    async def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError, match="oracle"):
            await create_backend(Settings(_env_file=None, db_backend="oracle"))

    async def test_postgres_requires_url(self) -> None:
        with pytest.raises(ConfigurationError, match="BAITWATCH_POSTGRES_URL"):
            await create_backend(Settings(_env_file=None, db_backend="postgres"))

    async def test_sqlite_migrates(self, tmp_path) -> None:
        backend = await create_backend(
            Settings(_env_file=None, db_path=tmp_path / "intel.db")
        )
        try:
            assert backend.backend_name == "sqlite"
            row = await backend.fetch_one("SELECT MAX(version) AS v FROM schema_migrations")
            assert row["v"] == 2
        finally:
            await backend.close()

    async def test_postgres_pool_settings(self) -> None:
        pool = MagicMock()
        settings = Settings(
            _env_file=None,
            db_backend="postgres",
            postgres_url="postgresql://intel:pw@db.internal/intel",
            postgres_pool_min=2,
            postgres_pool_max=8,
            postgres_idle_timeout=60.0,
            auto_migrate=False,
        )
        with patch(
            "baitwatch.storage.postgres.asyncpg.create_pool", AsyncMock(return_value=pool)
        ) as create_pool:
            backend = await create_backend(settings)

        assert backend.backend_name == "postgres"
        kwargs = create_pool.call_args.kwargs
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 8
        assert kwargs["max_inactive_connection_lifetime"] == 60.0

    async def test_unreachable_server(self) -> None:
        with patch(
            "baitwatch.storage.postgres.asyncpg.create_pool",
            AsyncMock(side_effect=OSError("connection refused")),
        ):
            with pytest.raises(StoreUnavailableError):
                await PostgresDatabase.create("postgresql://intel@nowhere/intel")


# ---------------------------------------------------------------------------
# Mocked pool
# ---------------------------------------------------------------------------


def _mock_pool(conn: MagicMock) -> MagicMock:
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=conn)
    pool.release = AsyncMock()
    pool.close = AsyncMock()
    return pool


class TestPostgresDatabase:
    async def test_fetch_one_adapts_placeholders(self) -> None:
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value={"id": "a1", "n": 3})
        pool = _mock_pool(conn)
        db = PostgresDatabase(pool)

        row = await db.fetch_one("SELECT * FROM t WHERE id = ? AND n > ?", ("a1", 1))

        assert row == {"id": "a1", "n": 3}
        conn.fetchrow.assert_awaited_once_with("SELECT * FROM t WHERE id = $1 AND n > $2", "a1", 1)
        pool.release.assert_awaited_once_with(conn)

    async def test_fetch_all_and_missing_row(self) -> None:
        conn = MagicMock()
        conn.fetch = AsyncMock(return_value=[{"v": 1}, {"v": 2}])
        conn.fetchrow = AsyncMock(return_value=None)
        db = PostgresDatabase(_mock_pool(conn))

        assert await db.fetch_all("SELECT v FROM t") == [{"v": 1}, {"v": 2}]
        assert await db.fetch_one("SELECT v FROM t WHERE v = ?", (9,)) is None

    async def test_acquire_timeout_is_unavailable(self) -> None:
        pool = MagicMock()
        pool.acquire = AsyncMock(side_effect=TimeoutError())
        db = PostgresDatabase(pool, acquire_timeout=0.5)

        with pytest.raises(StoreUnavailableError):
            await db.execute("SELECT 1")
        pool.acquire.assert_awaited_once_with(timeout=0.5)

    async def test_transaction_uses_one_connection(self) -> None:
        conn = MagicMock()
        conn.execute = AsyncMock(return_value="INSERT 0 1")
        tx = MagicMock()
        tx.__aenter__ = AsyncMock(return_value=tx)
        tx.__aexit__ = AsyncMock(return_value=False)
        conn.transaction = MagicMock(return_value=tx)
        pool = _mock_pool(conn)
        db = PostgresDatabase(pool)

        async with db.transaction() as executor:
            await executor.execute("INSERT INTO t (a) VALUES (?)", ("x",))
            await executor.execute("UPDATE t SET a = ? WHERE a = ?", ("y", "x"))

        pool.acquire.assert_awaited_once()
        tx.__aenter__.assert_awaited_once()
        conn.execute.assert_any_await("UPDATE t SET a = $1 WHERE a = $2", "y", "x")
        pool.release.assert_awaited_once_with(conn)

    async def test_close(self) -> None:
        pool = _mock_pool(MagicMock())
        await PostgresDatabase(pool).close()
        pool.close.assert_awaited_once()
