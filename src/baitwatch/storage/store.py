# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Intelligence store: durable verdicts, indicators, patterns, and campaigns.

:class:`IntelligenceStore` is the single entry point the rest of the
engine uses for persistence.  Every operation accepts a ``timeout``
deadline in seconds; when it expires the call raises
:class:`~baitwatch.core.exceptions.StoreUnavailableError`.  Query errors
propagate unchanged and nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from datetime import datetime, timedelta
from typing import TypeVar

from baitwatch.core.config import Settings
from baitwatch.core.constants import (
    CAMPAIGN_SAMPLE_INDICATORS,
    IndicatorType,
    PatternType,
    clamp_limit,
)
from baitwatch.core.exceptions import StoreUnavailableError, ValidationError
from baitwatch.core.timestamps import Clock, utc_now
from baitwatch.intel.subjects import campaign_signature, normalize_subject
from baitwatch.models.analysis import (
    AIUsage,
    AIUsageStats,
    AnalysisSearchFilters,
    EmailAnalysis,
    IntelligenceStats,
)
from baitwatch.models.campaign import Campaign, CampaignState
from baitwatch.models.indicator import IndicatorCandidate, ThreatIndicator
from baitwatch.models.pattern import DetectedPattern
from baitwatch.storage.backend import DatabaseBackend
from baitwatch.storage.repositories import (
    AnalysisRepository,
    CampaignRepository,
    IndicatorRepository,
    PatternRepository,
    UsageRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _indicator_type(value: str) -> IndicatorType:
    try:
        return IndicatorType(value)
    except ValueError:
        msg = f"Unknown indicator type: {value!r}"
        raise ValidationError(msg) from None


def _pattern_type(value: str) -> PatternType:
    try:
        return PatternType(value)
    except ValueError:
        msg = f"Unknown pattern type: {value!r}"
        raise ValidationError(msg) from None


class IntelligenceStore:
    """Persistence facade over a :class:`DatabaseBackend`.

    Parameters:
        backend: An opened (and migrated) backend.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(self, backend: DatabaseBackend, *, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._clock = clock
        self._analyses = AnalysisRepository(backend)
        self._indicators = IndicatorRepository(backend)
        self._patterns = PatternRepository(backend)
        self._campaigns = CampaignRepository(backend)
        self._usage = UsageRepository(backend)

    @classmethod
    async def open(cls, settings: Settings, *, clock: Clock = utc_now) -> IntelligenceStore:
        """Connect to the configured backend and run pending migrations."""
        from baitwatch.storage.database import create_backend

        return cls(await create_backend(settings), clock=clock)

    async def close(self) -> None:
        await self._backend.close()

    async def __aenter__(self) -> IntelligenceStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @property
    def backend(self) -> DatabaseBackend:
        return self._backend

    async def _bounded(self, operation: str, timeout: float | None, call: Awaitable[T]) -> T:
        try:
            async with asyncio.timeout(timeout):
                return await call
        except TimeoutError as exc:
            msg = f"{operation} did not complete within {timeout}s"
            raise StoreUnavailableError(msg) from exc

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def store_analysis(self, analysis: EmailAnalysis, *, timeout: float | None = None) -> str:
        analysis_id = await self._bounded(
            "store_analysis", timeout, self._analyses.create(analysis)
        )
        logger.debug("Stored analysis %s for message %s", analysis_id, analysis.message_id)
        return analysis_id

    async def get_analysis(
        self, analysis_id: str, *, timeout: float | None = None
    ) -> EmailAnalysis | None:
        return await self._bounded("get_analysis", timeout, self._analyses.get(analysis_id))

    async def search_analyses(
        self, filters: AnalysisSearchFilters | None = None, *, timeout: float | None = None
    ) -> list[EmailAnalysis]:
        """Analyses matching *filters*, newest first; limit/offset are clamped."""
        return await self._bounded(
            "search_analyses", timeout, self._analyses.search(filters or AnalysisSearchFilters())
        )

    async def has_been_analyzed(self, message_id: str, *, timeout: float | None = None) -> bool:
        return await self._bounded(
            "has_been_analyzed", timeout, self._analyses.exists_for_message(message_id)
        )

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    async def upsert_indicator(
        self, candidate: IndicatorCandidate, *, timeout: float | None = None
    ) -> str:
        """Insert or merge an indicator in one atomic statement.

        On conflict ``times_seen`` increments, confidence and severity keep
        the maximum of old and new, and ``last_seen_at`` moves to now.
        """
        indicator_id = await self._bounded(
            "upsert_indicator", timeout, self._indicators.upsert(candidate, self._clock())
        )
        logger.debug("Upserted %s indicator %s", candidate.type, indicator_id)
        return indicator_id

    async def lookup_indicators(
        self,
        indicator_type: str,
        values: Sequence[str],
        *,
        timeout: float | None = None,
    ) -> list[ThreatIndicator]:
        """Active indicators of *indicator_type* whose value matches (case-insensitive).

        Raises:
            ValidationError: If *indicator_type* is not a known type.
        """
        kind = _indicator_type(indicator_type)
        return await self._bounded(
            "lookup_indicators", timeout, self._indicators.lookup(kind, list(values))
        )

    async def get_active_indicators(
        self,
        indicator_type: str | None = None,
        limit: int = 100,
        *,
        timeout: float | None = None,
    ) -> list[ThreatIndicator]:
        """Active, unexpired indicators, most recently seen first (limit clamped to 1-1000)."""
        kind = _indicator_type(indicator_type) if indicator_type is not None else None
        return await self._bounded(
            "get_active_indicators",
            timeout,
            self._indicators.list_active(
                self._clock(), indicator_type=kind, limit=clamp_limit(limit)
            ),
        )

    # ------------------------------------------------------------------
    # Patterns
    # ------------------------------------------------------------------

    async def upsert_pattern(
        self, pattern: DetectedPattern, *, timeout: float | None = None
    ) -> str:
        pattern_id = await self._bounded(
            "upsert_pattern", timeout, self._patterns.upsert(pattern)
        )
        logger.debug("Upserted pattern %s/%s", pattern.pattern_type, pattern.pattern_name)
        return pattern_id

    async def list_patterns(
        self,
        pattern_type: str | None = None,
        limit: int = 100,
        *,
        timeout: float | None = None,
    ) -> list[DetectedPattern]:
        kind = _pattern_type(pattern_type) if pattern_type is not None else None
        return await self._bounded(
            "list_patterns",
            timeout,
            self._patterns.list_recent(pattern_type=kind, limit=clamp_limit(limit)),
        )

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def get_stats(self, *, timeout: float | None = None) -> IntelligenceStats:
        return await self._bounded("get_stats", timeout, self._collect_stats())

    async def _collect_stats(self) -> IntelligenceStats:
        now = self._clock()
        counts = await self._analyses.counts(now - timedelta(hours=24), now - timedelta(days=7))
        return IntelligenceStats(
            total_analyses=counts["total"],
            phishing_detected=counts["phishing"],
            active_indicators=await self._indicators.count_active(),
            detected_patterns=await self._patterns.count(),
            analyses_last_24h=counts["last_24h"],
            analyses_last_7d=counts["last_7d"],
            top_threatened_domains=await self._analyses.top_phishing_domains(),
            risk_distribution=await self._analyses.risk_distribution(),
        )

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    async def track_campaign_detection(
        self,
        sender_domain: str,
        subject: str,
        recipient: str,
        risk_level: str,
        indicators: Sequence[str],
        *,
        timeout: float | None = None,
    ) -> CampaignState:
        """Record one detection against its campaign inside a single transaction.

        Returns the post-update counters together with the ``alert_sent_at``
        value as it stood before this detection.  No alerting decision is
        made here.
        """
        return await self._bounded(
            "track_campaign_detection",
            timeout,
            self._track_campaign(sender_domain, subject, recipient, risk_level, indicators),
        )

    async def _track_campaign(
        self,
        sender_domain: str,
        subject: str,
        recipient: str,
        risk_level: str,
        indicators: Sequence[str],
    ) -> CampaignState:
        domain = sender_domain.strip().lower()
        signature = campaign_signature(domain, subject)
        async with self._backend.transaction() as tx:
            state = await CampaignRepository(tx).track_detection(
                signature=signature,
                sender_domain=domain,
                subject_pattern=normalize_subject(subject),
                recipient=recipient.strip().lower(),
                risk_level=str(risk_level),
                sample_indicators=list(indicators)[:CAMPAIGN_SAMPLE_INDICATORS],
                now=self._clock(),
            )
        logger.debug(
            "Campaign %s now at %d detections / %d recipients",
            signature,
            state.detection_count,
            state.unique_recipient_count,
        )
        return state

    async def mark_campaign_alerted(
        self, campaign_id: str, *, timeout: float | None = None
    ) -> None:
        await self._bounded(
            "mark_campaign_alerted",
            timeout,
            self._campaigns.mark_alerted(campaign_id, self._clock()),
        )
        logger.debug("Campaign %s marked as alerted", campaign_id)

    async def claim_campaign_alert(
        self, campaign_id: str, *, cooldown_hours: float, timeout: float | None = None
    ) -> datetime | None:
        """Atomically reserve the right to alert on *campaign_id*.

        Stamps ``alert_sent_at`` with the current time unless another alert
        was claimed within *cooldown_hours*.  Returns the stamp written, or
        None when someone else already holds the claim.
        """
        now = self._clock()
        claimed = await self._bounded(
            "claim_campaign_alert",
            timeout,
            self._campaigns.claim_alert(campaign_id, now, now - timedelta(hours=cooldown_hours)),
        )
        if not claimed:
            logger.debug("Alert for campaign %s already claimed", campaign_id)
            return None
        return now

    async def release_campaign_alert(
        self,
        campaign_id: str,
        claimed_at: datetime,
        previous: datetime | None,
        *,
        timeout: float | None = None,
    ) -> None:
        """Hand back a claim whose alert was never delivered.

        ``alert_sent_at`` reverts to *previous* only while it still holds
        *claimed_at*.
        """
        await self._bounded(
            "release_campaign_alert",
            timeout,
            self._campaigns.release_alert(campaign_id, claimed_at, previous),
        )
        logger.debug("Released alert claim on campaign %s", campaign_id)

    async def get_campaign_details(
        self, campaign_id: str, *, timeout: float | None = None
    ) -> Campaign | None:
        return await self._bounded(
            "get_campaign_details", timeout, self._campaigns.get(campaign_id)
        )

    async def list_campaigns(
        self,
        active_only: bool = True,
        limit: int = 100,
        *,
        timeout: float | None = None,
    ) -> list[Campaign]:
        return await self._bounded(
            "list_campaigns",
            timeout,
            self._campaigns.list_recent(active_only=active_only, limit=clamp_limit(limit)),
        )

    # ------------------------------------------------------------------
    # AI usage
    # ------------------------------------------------------------------

    async def store_ai_usage(self, usage: AIUsage, *, timeout: float | None = None) -> str:
        return await self._bounded("store_ai_usage", timeout, self._usage.create(usage))

    async def get_ai_usage_stats(self, *, timeout: float | None = None) -> AIUsageStats:
        now = self._clock()
        return await self._bounded(
            "get_ai_usage_stats",
            timeout,
            self._usage.stats(now - timedelta(hours=24), now - timedelta(days=7)),
        )
