# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Versioned schema migrations for the intelligence database.

Applied versions are tracked in a ``schema_migrations`` table.  Each
migration runs inside its own transaction together with its bookkeeping
row, so a failed migration leaves no partial version behind.  The SQLite
history lives here; ``pg_migrations`` mirrors it with PostgreSQL types.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from baitwatch.core.exceptions import StorageError
from baitwatch.storage.backend import DatabaseBackend

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Migration registry infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Migration:
    """A single database migration."""

    version: int
    name: str
    statements: tuple[str, ...]


# Ordered list of all SQLite migrations.  New migrations are appended here.
_MIGRATIONS: list[Migration] = []


def _register(version: int, name: str) -> Callable[[Callable[[], list[str]]], Callable[[], list[str]]]:
    """Decorator that registers the statements returned by *fn* as a migration."""

    def decorator(fn: Callable[[], list[str]]) -> Callable[[], list[str]]:
        _MIGRATIONS.append(Migration(version=version, name=name, statements=tuple(fn())))
        return fn

    return decorator


# ---------------------------------------------------------------------------
# Runner (shared by both dialects)
# ---------------------------------------------------------------------------


async def get_current_version(db: DatabaseBackend, create_table_sql: str) -> int:
    """Return the highest applied migration version, or 0 if none."""
    await db.execute(create_table_sql)
    row = await db.fetch_one("SELECT COALESCE(MAX(version), 0) AS v FROM schema_migrations")
    return int(row["v"]) if row else 0


async def apply_migrations(
    db: DatabaseBackend,
    migrations: list[Migration],
    create_table_sql: str,
) -> list[Migration]:
    """Apply every migration in *migrations* newer than the recorded version.

    Raises:
        StorageError: If any statement fails; earlier migrations stay applied.
    """
    current = await get_current_version(db, create_table_sql)
    applied: list[Migration] = []

    for migration in sorted(migrations, key=lambda m: m.version):
        if migration.version <= current:
            continue

        logger.info("Applying migration %03d: %s", migration.version, migration.name)
        try:
            async with db.transaction() as tx:
                for stmt in migration.statements:
                    await tx.execute(stmt)
                await tx.execute(
                    "INSERT INTO schema_migrations (version, name, applied_at) "
                    "VALUES (?, ?, CURRENT_TIMESTAMP) ON CONFLICT (version) DO NOTHING",
                    (migration.version, migration.name),
                )
        except StorageError:
            raise
        except Exception as exc:
            msg = f"Migration {migration.version:03d} ({migration.name}) failed: {exc}"
            raise StorageError(msg) from exc

        applied.append(migration)
        logger.info("Migration %03d applied successfully.", migration.version)

    return applied


# ---------------------------------------------------------------------------
# SQLite schema
# ---------------------------------------------------------------------------

_CREATE_SCHEMA_MIGRATIONS = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    applied_at TEXT NOT NULL
);
"""


async def run_migrations(db: DatabaseBackend) -> list[Migration]:
    """Run all pending SQLite migrations in order and return those applied."""
    return await apply_migrations(db, _MIGRATIONS, _CREATE_SCHEMA_MIGRATIONS)


@_register(1, "initial_schema")
def _migration_001_initial_schema() -> list[str]:
    """Analyses, indicators, patterns, and AI usage."""
    return [
        """
        CREATE TABLE IF NOT EXISTS email_analyses (
            id TEXT PRIMARY KEY,
            profile_id TEXT,
            message_id TEXT NOT NULL,
            from_email TEXT NOT NULL,
            from_domain TEXT NOT NULL,
            subject TEXT NOT NULL DEFAULT '',
            is_phishing INTEGER NOT NULL,
            confidence_score REAL NOT NULL,
            risk_level TEXT NOT NULL,
            analysis_result TEXT NOT NULL DEFAULT '{}',
            indicators TEXT NOT NULL DEFAULT '[]',
            vip_impersonation_detected INTEGER NOT NULL DEFAULT 0,
            ai_provider TEXT NOT NULL DEFAULT '',
            ai_model TEXT NOT NULL DEFAULT '',
            processing_time_ms INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS threat_indicators (
            id TEXT PRIMARY KEY,
            indicator_type TEXT NOT NULL,
            indicator_value TEXT NOT NULL,
            indicator_hash TEXT NOT NULL,
            confidence_score REAL NOT NULL,
            severity TEXT NOT NULL,
            times_seen INTEGER NOT NULL DEFAULT 1,
            first_seen_at TEXT NOT NULL,
            last_seen_at TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            expires_at TEXT,
            metadata TEXT NOT NULL DEFAULT '{}',
            UNIQUE (indicator_type, indicator_hash)
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS detected_patterns (
            id TEXT PRIMARY KEY,
            pattern_type TEXT NOT NULL,
            pattern_name TEXT NOT NULL,
            criteria TEXT NOT NULL,
            match_count INTEGER NOT NULL DEFAULT 1,
            is_confirmed_threat INTEGER NOT NULL DEFAULT 0,
            first_detected_at TEXT NOT NULL,
            last_detected_at TEXT NOT NULL,
            UNIQUE (pattern_type, pattern_name)
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS ai_usage (
            id TEXT PRIMARY KEY,
            analysis_id TEXT REFERENCES email_analyses(id) ON DELETE SET NULL,
            provider TEXT NOT NULL,
            model TEXT NOT NULL,
            input_tokens INTEGER NOT NULL DEFAULT 0,
            output_tokens INTEGER NOT NULL DEFAULT 0,
            total_tokens INTEGER NOT NULL DEFAULT 0,
            estimated_cost_usd REAL,
            created_at TEXT NOT NULL
        );
        """,
        "CREATE INDEX IF NOT EXISTS idx_analyses_created ON email_analyses(created_at);",
        "CREATE INDEX IF NOT EXISTS idx_analyses_message ON email_analyses(message_id);",
        "CREATE INDEX IF NOT EXISTS idx_analyses_domain ON email_analyses(from_domain);",
        "CREATE INDEX IF NOT EXISTS idx_analyses_phishing "
        "ON email_analyses(is_phishing, created_at);",
        "CREATE INDEX IF NOT EXISTS idx_indicators_active "
        "ON threat_indicators(is_active, last_seen_at);",
        "CREATE INDEX IF NOT EXISTS idx_patterns_detected "
        "ON detected_patterns(last_detected_at);",
        "CREATE INDEX IF NOT EXISTS idx_ai_usage_created ON ai_usage(created_at);",
    ]


@_register(2, "campaigns")
def _migration_002_campaigns() -> list[str]:
    """Campaign tracking with a deduplicated recipient set."""
    return [
        """
        CREATE TABLE IF NOT EXISTS campaigns (
            id TEXT PRIMARY KEY,
            signature TEXT NOT NULL UNIQUE,
            sender_domain TEXT NOT NULL,
            subject_pattern TEXT NOT NULL,
            detection_count INTEGER NOT NULL DEFAULT 1,
            risk_level TEXT NOT NULL,
            sample_indicators TEXT NOT NULL DEFAULT '[]',
            first_seen_at TEXT NOT NULL,
            last_seen_at TEXT NOT NULL,
            alert_sent_at TEXT,
            is_active INTEGER NOT NULL DEFAULT 1
        );
        """,
        """
        CREATE TABLE IF NOT EXISTS campaign_recipients (
            campaign_id TEXT NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
            recipient TEXT NOT NULL,
            added_at TEXT NOT NULL,
            PRIMARY KEY (campaign_id, recipient)
        );
        """,
        "CREATE INDEX IF NOT EXISTS idx_campaigns_last_seen ON campaigns(is_active, last_seen_at);",
    ]
