# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the end-to-end intelligence pipeline."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from baitwatch.core.config import Settings
from baitwatch.core.constants import ConfidenceLabel, PatternType, RiskLevel
from baitwatch.core.exceptions import StorageError
from baitwatch.intel.campaigns import CampaignAlertService
from baitwatch.intel.patterns import PatternDetector
from baitwatch.intel.pipeline import ThreatIntelPipeline, risk_level_for
from baitwatch.models.campaign import AlertMessage
from baitwatch.models.verdict import InboundEmail, TokenUsage, Verdict
from baitwatch.notifications.base import AlertNotifier
from baitwatch.storage.store import IntelligenceStore

PHISH = Verdict(
    is_phishing=True,
    confidence="High",
    indicators=["Lookalike sender domain", "Urgent payment request"],
)
BENIGN = Verdict(is_phishing=False, confidence="High")


class _Outbox(AlertNotifier):
    def __init__(self) -> None:
        self.sent: list[AlertMessage] = []

    @property
    def name(self) -> str:
        return "outbox"

    async def send(self, message: AlertMessage) -> str:
        self.sent.append(message)
        return "outbox-1"


def _email(message_id: str = "<m1@mal.example>", subject: str = "Invoice #1 Due") -> InboundEmail:
    return InboundEmail(
        message_id=message_id,
        from_email="billing@mal.example",
        subject=subject,
        links=["https://secure-paypa1.com/login"],
        text="Pay now at https://secure-paypa1.com/login or reply.",
    )


# ---------------------------------------------------------------------------
# Risk mapping
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("is_phishing", "label", "expected"),
    [
        (False, "VeryHigh", RiskLevel.SAFE),
        (True, "VeryHigh", RiskLevel.CRITICAL),
        (True, "High", RiskLevel.HIGH),
        (True, "Medium", RiskLevel.MEDIUM),
        (True, "Low", RiskLevel.LOW),
        (True, "Unknown", RiskLevel.LOW),
    ],
)
def test_risk_level_for(is_phishing: bool, label: str, expected: RiskLevel) -> None:
    assert risk_level_for(Verdict(is_phishing=is_phishing, confidence=label)) == expected


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestThreatIntelPipeline:
    async def test_records_analysis_and_indicators(self, store: IntelligenceStore, clock) -> None:
        pipeline = ThreatIntelPipeline(store, clock=clock)

        outcome = await pipeline.record(_email(), PHISH, ai_provider="anthropic", ai_model="m-1")

        assert outcome.duplicate is False
        assert outcome.risk_level == RiskLevel.HIGH
        assert outcome.confidence_score == pytest.approx(0.85)
        assert outcome.indicators
        assert len(outcome.indicator_ids) == len(outcome.indicators)

        analysis = await store.get_analysis(outcome.analysis_id)
        assert analysis is not None
        assert analysis.from_domain == "mal.example"
        assert analysis.indicators == PHISH.indicators
        assert analysis.analysis_result["confidence"] == ConfidenceLabel.HIGH

        domains = {i.indicator_value for i in await store.get_active_indicators("domain")}
        assert {"secure-paypa1.com", "mal.example"} <= domains

    async def test_duplicate_message_is_skipped(self, store: IntelligenceStore, clock) -> None:
        pipeline = ThreatIntelPipeline(store, clock=clock)
        await pipeline.record(_email(), PHISH)

        again = await pipeline.record(_email(), PHISH)

        assert again.duplicate is True
        assert again.analysis_id is None
        stats = await store.get_stats()
        assert stats.total_analyses == 1
        indicators = await store.get_active_indicators("domain")
        assert all(i.times_seen == 1 for i in indicators)

    async def test_benign_verdict(self, store: IntelligenceStore, clock) -> None:
        pipeline = ThreatIntelPipeline(store, clock=clock)
        outcome = await pipeline.record(_email(), BENIGN, recipient="a@corp.test")

        assert outcome.risk_level == RiskLevel.SAFE
        assert outcome.alert_sent is False
        assert all(c.confidence < 0.7 for c in outcome.indicators)

    async def test_token_usage_is_recorded(self, store: IntelligenceStore, clock) -> None:
        pipeline = ThreatIntelPipeline(store, clock=clock)
        await pipeline.record(
            _email(),
            PHISH,
            ai_provider="anthropic",
            ai_model="m-1",
            token_usage=TokenUsage(input_tokens=1200, output_tokens=300, estimated_cost_usd=0.01),
        )

        usage = await store.get_ai_usage_stats()
        assert usage.total_requests == 1
        assert usage.total_tokens == 1500
        assert usage.usage_by_model[0].model == "m-1"

    async def test_indicator_failure_does_not_abort(
        self, store: IntelligenceStore, clock, monkeypatch
    ) -> None:
        monkeypatch.setattr(
            store, "upsert_indicator", AsyncMock(side_effect=StorageError("disk full"))
        )
        pipeline = ThreatIntelPipeline(store, clock=clock)

        outcome = await pipeline.record(_email(), PHISH)

        assert outcome.analysis_id is not None
        assert outcome.indicators
        assert outcome.indicator_ids == []

    async def test_analysis_failure_propagates(self, clock) -> None:
        store = AsyncMock(spec=IntelligenceStore)
        store.has_been_analyzed.return_value = False
        store.store_analysis.side_effect = StorageError("disk full")
        pipeline = ThreatIntelPipeline(store, clock=clock)

        with pytest.raises(StorageError):
            await pipeline.record(_email(), PHISH)
        store.upsert_indicator.assert_not_awaited()

    async def test_patterns_and_campaign_alert(self, store: IntelligenceStore, clock) -> None:
        outbox = _Outbox()
        pipeline = ThreatIntelPipeline(
            store,
            detector=PatternDetector(store, clock=clock),
            alerts=CampaignAlertService(
                store, outbox, distribution_list="all-staff@corp.test", clock=clock
            ),
            clock=clock,
        )

        outcomes = []
        for i, recipient in enumerate(["alice@corp.test", "bob@corp.test", "alice@corp.test"], 1):
            outcomes.append(
                await pipeline.record(
                    _email(f"<m{i}@mal.example>", f"Invoice #{i} Due"), PHISH, recipient=recipient
                )
            )
            clock.advance(minutes=15)

        assert [o.alert_sent for o in outcomes] == [False, False, True]
        assert len(outbox.sent) == 1
        assert outbox.sent[0].subject == "Phishing Alert: Suspicious emails from Mal"
        domain_patterns = [
            p for p in outcomes[-1].patterns if p.type == PatternType.DOMAIN_CAMPAIGN
        ]
        assert domain_patterns
        assert domain_patterns[0].match_count == 3

    async def test_no_recipient_skips_campaign_tracking(
        self, store: IntelligenceStore, clock
    ) -> None:
        outbox = _Outbox()
        pipeline = ThreatIntelPipeline(
            store,
            alerts=CampaignAlertService(store, outbox, distribution_list="x@corp.test", clock=clock),
            clock=clock,
        )
        await pipeline.record(_email(), PHISH)
        assert await store.list_campaigns() == []


class TestFromSettings:
    def test_disabled_stages(self, store: IntelligenceStore) -> None:
        settings = Settings(
            _env_file=None, pattern_detection_enabled=False, campaign_alerts_enabled=False
        )
        pipeline = ThreatIntelPipeline.from_settings(store, settings)
        assert pipeline._detector is None
        assert pipeline._alerts is not None
        assert pipeline._alerts.enabled is False

    def test_enabled_stages(self, store: IntelligenceStore) -> None:
        settings = Settings(
            _env_file=None,
            campaign_alerts_enabled=True,
            campaign_alert_distribution_list="all-staff@corp.test",
            webhook_url="https://hooks.corp.test/alerts",
        )
        pipeline = ThreatIntelPipeline.from_settings(store, settings)
        assert pipeline._detector is not None
        assert pipeline._alerts.enabled is True
