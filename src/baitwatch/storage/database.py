# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Database connection management with pluggable backend support.

Supports both SQLite (aiosqlite, default) and PostgreSQL (asyncpg).
The active backend is controlled by ``BAITWATCH_DB_BACKEND``.
"""

from __future__ import annotations

import logging

from baitwatch.core.config import Settings, get_settings
from baitwatch.core.exceptions import ConfigurationError, StorageError
from baitwatch.storage.backend import DatabaseBackend

logger = logging.getLogger(__name__)

_backend: DatabaseBackend | None = None


async def create_backend(settings: Settings) -> DatabaseBackend:
    """Open the backend selected by *settings* and migrate it when configured.

    The backend is closed again if migration fails.

    Raises:
        ConfigurationError: Unknown backend or missing PostgreSQL URL.
        StoreUnavailableError: The database cannot be reached.
        StorageError: A schema migration failed.
    """
    chosen = settings.db_backend.lower()

    if chosen == "sqlite":
        from baitwatch.storage.migrations import run_migrations
        from baitwatch.storage.sqlite_backend import SQLiteBackend

        backend: DatabaseBackend = await SQLiteBackend.connect(settings.db_path)
        migrate = run_migrations
    elif chosen == "postgres":
        if not settings.postgres_url:
            msg = (
                "PostgreSQL backend selected but no connection URL provided. "
                "Set BAITWATCH_POSTGRES_URL."
            )
            raise ConfigurationError(msg)

        from baitwatch.storage.pg_migrations import run_pg_migrations
        from baitwatch.storage.postgres import PostgresDatabase

        backend = await PostgresDatabase.create(
            settings.postgres_url,
            min_size=settings.postgres_pool_min,
            max_size=settings.postgres_pool_max,
            idle_timeout=settings.postgres_idle_timeout,
            acquire_timeout=settings.postgres_acquire_timeout,
            command_timeout=settings.postgres_command_timeout,
        )
        migrate = run_pg_migrations
    else:
        msg = f"Unknown database backend: {chosen!r}. Expected 'sqlite' or 'postgres'."
        raise ConfigurationError(msg)

    if settings.auto_migrate:
        try:
            await migrate(backend)
        except StorageError:
            await backend.close()
            raise

    return backend


async def init_backend(settings: Settings | None = None) -> DatabaseBackend:
    """Initialise the process-wide backend, or return the existing one."""
    global _backend

    if _backend is None:
        _backend = await create_backend(settings or get_settings())
        logger.info("Database backend initialised: %s", _backend.backend_name)
    return _backend


async def get_backend() -> DatabaseBackend:
    """Get the active :class:`DatabaseBackend`.

    Raises :class:`StorageError` if no backend has been initialised.
    """
    if _backend is None:
        raise StorageError("Database backend not initialized. Call init_backend() first.")
    return _backend


async def close_backend() -> None:
    """Close the process-wide backend if one is open."""
    global _backend

    if _backend is not None:
        await _backend.close()
        _backend = None
