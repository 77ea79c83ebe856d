# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""PostgreSQL-specific schema migrations.

Mirrors the SQLite migration history in ``migrations.py`` but uses
PostgreSQL-native types: ``VARCHAR`` for bounded columns, ``DOUBLE
PRECISION`` for scores, and ``BOOLEAN`` for flags.  Timestamps stay
fixed-width ``VARCHAR(32)`` strings so that both dialects compare them
the same way.
"""

from __future__ import annotations

from baitwatch.storage.backend import DatabaseBackend
from baitwatch.storage.migrations import Migration, apply_migrations

_CREATE_SCHEMA_MIGRATIONS = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    applied_at TIMESTAMP NOT NULL DEFAULT NOW()
);
"""

# ---------------------------------------------------------------------------
# Migration 001 -- analyses, indicators, patterns, AI usage
# ---------------------------------------------------------------------------

_PG_MIGRATION_001 = [
    """
    CREATE TABLE IF NOT EXISTS email_analyses (
        id VARCHAR(64) PRIMARY KEY,
        profile_id VARCHAR(255),
        message_id VARCHAR(998) NOT NULL,
        from_email VARCHAR(320) NOT NULL,
        from_domain VARCHAR(255) NOT NULL,
        subject TEXT NOT NULL DEFAULT '',
        is_phishing BOOLEAN NOT NULL,
        confidence_score DOUBLE PRECISION NOT NULL,
        risk_level VARCHAR(16) NOT NULL,
        analysis_result TEXT NOT NULL DEFAULT '{}',
        indicators TEXT NOT NULL DEFAULT '[]',
        vip_impersonation_detected BOOLEAN NOT NULL DEFAULT FALSE,
        ai_provider VARCHAR(64) NOT NULL DEFAULT '',
        ai_model VARCHAR(128) NOT NULL DEFAULT '',
        processing_time_ms INTEGER NOT NULL DEFAULT 0,
        created_at VARCHAR(32) NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS threat_indicators (
        id VARCHAR(64) PRIMARY KEY,
        indicator_type VARCHAR(32) NOT NULL,
        indicator_value TEXT NOT NULL,
        indicator_hash VARCHAR(64) NOT NULL,
        confidence_score DOUBLE PRECISION NOT NULL,
        severity VARCHAR(16) NOT NULL,
        times_seen INTEGER NOT NULL DEFAULT 1,
        first_seen_at VARCHAR(32) NOT NULL,
        last_seen_at VARCHAR(32) NOT NULL,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        expires_at VARCHAR(32),
        metadata TEXT NOT NULL DEFAULT '{}',
        UNIQUE (indicator_type, indicator_hash)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS detected_patterns (
        id VARCHAR(64) PRIMARY KEY,
        pattern_type VARCHAR(32) NOT NULL,
        pattern_name VARCHAR(512) NOT NULL,
        criteria TEXT NOT NULL,
        match_count INTEGER NOT NULL DEFAULT 1,
        is_confirmed_threat BOOLEAN NOT NULL DEFAULT FALSE,
        first_detected_at VARCHAR(32) NOT NULL,
        last_detected_at VARCHAR(32) NOT NULL,
        UNIQUE (pattern_type, pattern_name)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ai_usage (
        id VARCHAR(64) PRIMARY KEY,
        analysis_id VARCHAR(64) REFERENCES email_analyses(id) ON DELETE SET NULL,
        provider VARCHAR(64) NOT NULL,
        model VARCHAR(128) NOT NULL,
        input_tokens INTEGER NOT NULL DEFAULT 0,
        output_tokens INTEGER NOT NULL DEFAULT 0,
        total_tokens INTEGER NOT NULL DEFAULT 0,
        estimated_cost_usd DOUBLE PRECISION,
        created_at VARCHAR(32) NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_analyses_created ON email_analyses(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_analyses_message ON email_analyses(message_id);",
    "CREATE INDEX IF NOT EXISTS idx_analyses_domain ON email_analyses(from_domain);",
    "CREATE INDEX IF NOT EXISTS idx_analyses_phishing ON email_analyses(is_phishing, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_indicators_active ON threat_indicators(is_active, last_seen_at);",
    "CREATE INDEX IF NOT EXISTS idx_patterns_detected ON detected_patterns(last_detected_at);",
    "CREATE INDEX IF NOT EXISTS idx_ai_usage_created ON ai_usage(created_at);",
]

# ---------------------------------------------------------------------------
# Migration 002 -- campaigns
# ---------------------------------------------------------------------------

_PG_MIGRATION_002 = [
    """
    CREATE TABLE IF NOT EXISTS campaigns (
        id VARCHAR(64) PRIMARY KEY,
        signature VARCHAR(16) NOT NULL UNIQUE,
        sender_domain VARCHAR(255) NOT NULL,
        subject_pattern VARCHAR(128) NOT NULL,
        detection_count INTEGER NOT NULL DEFAULT 1,
        risk_level VARCHAR(16) NOT NULL,
        sample_indicators TEXT NOT NULL DEFAULT '[]',
        first_seen_at VARCHAR(32) NOT NULL,
        last_seen_at VARCHAR(32) NOT NULL,
        alert_sent_at VARCHAR(32),
        is_active BOOLEAN NOT NULL DEFAULT TRUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS campaign_recipients (
        campaign_id VARCHAR(64) NOT NULL REFERENCES campaigns(id) ON DELETE CASCADE,
        recipient VARCHAR(320) NOT NULL,
        added_at VARCHAR(32) NOT NULL,
        PRIMARY KEY (campaign_id, recipient)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_campaigns_last_seen ON campaigns(is_active, last_seen_at);",
]

PG_MIGRATIONS: list[Migration] = [
    Migration(1, "initial_schema", tuple(_PG_MIGRATION_001)),
    Migration(2, "campaigns", tuple(_PG_MIGRATION_002)),
]


async def run_pg_migrations(db: DatabaseBackend) -> list[Migration]:
    """Run all pending PostgreSQL migrations and return those applied."""
    return await apply_migrations(db, PG_MIGRATIONS, _CREATE_SCHEMA_MIGRATIONS)
