# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""End-to-end handling of one classified email.

Storing the analysis is the primary step and its errors propagate.
Indicator upserts, pattern detection, and campaign alerting are
enrichment: failures are logged and the outcome records what succeeded.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from baitwatch.core.config import Settings
from baitwatch.core.constants import CONFIDENCE_SCORES, ConfidenceLabel, RiskLevel
from baitwatch.core.timestamps import Clock, utc_now
from baitwatch.intel.alerting import AlertThresholds
from baitwatch.intel.campaigns import CampaignAlertService
from baitwatch.intel.ioc_extractor import DEFAULT_MIN_CONFIDENCE, extract_iocs
from baitwatch.intel.patterns import PatternDetector
from baitwatch.models.analysis import AIUsage, EmailAnalysis
from baitwatch.models.indicator import IndicatorCandidate
from baitwatch.models.pattern import PatternMatch
from baitwatch.models.verdict import InboundEmail, TokenUsage, Verdict
from baitwatch.notifications.factory import build_notifier
from baitwatch.storage.store import IntelligenceStore

logger = logging.getLogger("baitwatch.intel.pipeline")

_LABEL_RISK = {
    ConfidenceLabel.VERY_HIGH: RiskLevel.CRITICAL,
    ConfidenceLabel.HIGH: RiskLevel.HIGH,
    ConfidenceLabel.MEDIUM: RiskLevel.MEDIUM,
}


def risk_level_for(verdict: Verdict) -> RiskLevel:
    """Map a verdict to the risk level stored with its analysis."""
    if not verdict.is_phishing:
        return RiskLevel.SAFE
    return _LABEL_RISK.get(verdict.confidence, RiskLevel.LOW)


class PipelineOutcome(BaseModel):
    """What happened to one email."""

    message_id: str
    duplicate: bool = False
    analysis_id: str | None = None
    risk_level: RiskLevel | None = None
    confidence_score: float | None = None
    indicators: list[IndicatorCandidate] = Field(default_factory=list)
    indicator_ids: list[str] = Field(default_factory=list)
    patterns: list[PatternMatch] = Field(default_factory=list)
    alert_sent: bool = False


class ThreatIntelPipeline:
    """Record a verdict and run the correlation stages over it."""

    def __init__(
        self,
        store: IntelligenceStore,
        *,
        detector: PatternDetector | None = None,
        alerts: CampaignAlertService | None = None,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._detector = detector
        self._alerts = alerts
        self._min_confidence = min_confidence
        self._clock = clock

    @classmethod
    def from_settings(
        cls, store: IntelligenceStore, settings: Settings, *, clock: Clock = utc_now
    ) -> ThreatIntelPipeline:
        detector = None
        if settings.pattern_detection_enabled:
            detector = PatternDetector(
                store,
                min_match_count=settings.pattern_min_match_count,
                lookback_hours=settings.pattern_lookback_hours,
                clock=clock,
            )
        alerts = CampaignAlertService(
            store,
            build_notifier(settings) if settings.campaign_alerts_enabled else None,
            enabled=settings.campaign_alerts_enabled,
            distribution_list=settings.campaign_alert_distribution_list,
            thresholds=AlertThresholds(
                min_detections=settings.campaign_min_detections,
                min_recipients=settings.campaign_min_recipients,
                window_hours=settings.campaign_window_hours,
                cooldown_hours=settings.campaign_cooldown_hours,
            ),
            clock=clock,
        )
        return cls(
            store,
            detector=detector,
            alerts=alerts,
            min_confidence=settings.ioc_min_confidence,
            clock=clock,
        )

    async def record(
        self,
        email: InboundEmail,
        verdict: Verdict,
        *,
        recipient: str = "",
        ai_provider: str = "",
        ai_model: str = "",
        processing_time_ms: int = 0,
        profile_id: str | None = None,
        vip_impersonation: bool = False,
        token_usage: TokenUsage | None = None,
    ) -> PipelineOutcome:
        if await self._store.has_been_analyzed(email.message_id):
            logger.info("Skipping already analyzed message %s", email.message_id)
            return PipelineOutcome(message_id=email.message_id, duplicate=True)

        risk_level = risk_level_for(verdict)
        analysis = EmailAnalysis(
            profile_id=profile_id,
            message_id=email.message_id,
            from_email=email.from_email,
            from_domain=email.from_domain,
            subject=email.subject,
            is_phishing=verdict.is_phishing,
            confidence_score=CONFIDENCE_SCORES[verdict.confidence],
            risk_level=risk_level,
            analysis_result=verdict.model_dump(mode="json"),
            indicators=verdict.indicators,
            vip_impersonation_detected=vip_impersonation,
            ai_provider=ai_provider,
            ai_model=ai_model,
            processing_time_ms=processing_time_ms,
            created_at=self._clock(),
        )
        analysis_id = await self._store.store_analysis(analysis)
        outcome = PipelineOutcome(
            message_id=email.message_id,
            analysis_id=analysis_id,
            risk_level=risk_level,
            confidence_score=analysis.confidence_score,
        )

        if token_usage is not None:
            await self._store_usage(analysis_id, ai_provider, ai_model, token_usage)

        outcome.indicators = extract_iocs(
            email.text,
            email.links,
            email.subject,
            email.from_email,
            verdict,
            min_confidence=self._min_confidence,
            html=email.html,
        )
        for candidate in outcome.indicators:
            try:
                outcome.indicator_ids.append(await self._store.upsert_indicator(candidate))
            except Exception:
                logger.exception("Failed to upsert %s indicator %s", candidate.type, candidate.value)

        if self._detector is not None:
            outcome.patterns = await self._detector.detect_patterns(email, verdict)

        if self._alerts is not None and verdict.is_phishing and recipient:
            outcome.alert_sent = await self._alerts.process_detection(
                email.from_domain, email.subject, recipient, risk_level, verdict.indicators
            )

        logger.info(
            "Recorded analysis %s: risk=%s indicators=%d patterns=%d alert=%s",
            analysis_id,
            risk_level,
            len(outcome.indicator_ids),
            len(outcome.patterns),
            outcome.alert_sent,
        )
        return outcome

    async def _store_usage(
        self, analysis_id: str, provider: str, model: str, usage: TokenUsage
    ) -> None:
        record = AIUsage(
            analysis_id=analysis_id,
            provider=provider,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            total_tokens=usage.total_tokens,
            estimated_cost_usd=usage.estimated_cost_usd,
            created_at=self._clock(),
        )
        try:
            await self._store.store_ai_usage(record)
        except Exception:
            logger.exception("Failed to record AI usage for analysis %s", analysis_id)
