# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from baitwatch.core.logging import QUIET_LOGGERS
from baitwatch.storage.migrations import run_migrations
from baitwatch.storage.sqlite_backend import SQLiteBackend
from baitwatch.storage.store import IntelligenceStore

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for time-window tests."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def backend():
    """In-memory SQLite backend with the full schema applied."""
    db = await SQLiteBackend.connect(":memory:")
    await run_migrations(db)
    yield db
    await db.close()


@pytest.fixture
def store(backend: SQLiteBackend, clock: FakeClock) -> IntelligenceStore:
    return IntelligenceStore(backend, clock=clock)


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Drop the process-wide backend and any installed log handlers between tests."""
    import baitwatch.storage.database as db_mod

    db_mod._backend = None
    yield
    db_mod._backend = None
    logger = logging.getLogger("baitwatch")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)
