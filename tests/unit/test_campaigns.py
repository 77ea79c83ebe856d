# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for campaign tracking, alert rendering, and the alert service."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from baitwatch.core.constants import Severity
from baitwatch.core.exceptions import DeliveryError, StorageError, StoreUnavailableError
from baitwatch.intel.campaigns import CampaignAlertService, render_alert, sender_label
from baitwatch.models.campaign import AlertMessage, Campaign
from baitwatch.notifications.base import AlertNotifier
from baitwatch.storage.store import IntelligenceStore

DIST = "all-staff@corp.test"


class RecordingNotifier(AlertNotifier):
    """Collects sent messages; optionally fails."""

    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[AlertMessage] = []
        self.fail = fail

    @property
    def name(self) -> str:
        return "recording"

    async def send(self, message: AlertMessage) -> str:
        if self.fail:
            raise DeliveryError("provider rejected the message")
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(store: IntelligenceStore, notifier: RecordingNotifier, clock) -> CampaignAlertService:
    return CampaignAlertService(store, notifier, distribution_list=DIST, clock=clock)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRendering:
    @pytest.mark.parametrize(
        ("domain", "label"),
        [
            ("mal.example", "Mal"),
            ("mail.paypa1.com", "Paypa1"),
            ("localhost", "localhost"),
        ],
    )
    def test_sender_label(self, domain: str, label: str) -> None:
        assert sender_label(domain) == label

    def test_render_alert(self) -> None:
        now = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
        campaign = Campaign(
            id="c-1",
            signature="0123456789abcdef",
            sender_domain="mal.example",
            subject_pattern="invoice ## due",
            detection_count=7,
            unique_recipients=["a@corp.test", "b@corp.test"],
            risk_level=Severity.HIGH,
            sample_indicators=["Spoofed <sender>", "Urgent tone", "Lookalike domain", "Fourth"],
            first_seen_at=now,
            last_seen_at=now,
        )
        message = render_alert(campaign, DIST)

        assert message.subject == "Phishing Alert: Suspicious emails from Mal"
        assert message.destination == DIST
        assert message.campaign_id == "c-1"
        assert "@mal.example" in message.text_body
        assert "invoice ## due" in message.text_body
        assert "We detected 7 of these in the last few hours." in message.text_body
        assert "Lookalike domain" in message.text_body
        assert "Fourth" not in message.text_body
        assert "Spoofed &lt;sender&gt;" in message.html_body
        assert "<sender>" not in message.html_body


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TestCampaignAlertService:
    async def test_invoice_scenario(
        self, service: CampaignAlertService, notifier: RecordingNotifier, clock
    ) -> None:
        calls = [
            ("Invoice #1 Due", "alice@corp.test"),
            ("Invoice #2 Due", "bob@corp.test"),
            ("Invoice #3 Due", "alice@corp.test"),
        ]
        matches = []
        for subject, recipient in calls:
            matches.append(await service.track("mal.example", subject, recipient, "high", []))
            clock.advance(minutes=20)

        assert [m.should_alert for m in matches] == [False, False, True]
        assert len({m.signature for m in matches}) == 1
        assert matches[-1].detection_count == 3
        assert matches[-1].unique_recipient_count == 2

    async def test_alerts_once_per_cooldown(
        self, service: CampaignAlertService, notifier: RecordingNotifier, clock
    ) -> None:
        results = []
        for i, recipient in enumerate(["a@corp.test", "b@corp.test", "a@corp.test", "c@corp.test"]):
            results.append(
                await service.process_detection(
                    "mal.example", f"Invoice #{i} Due", recipient, "high", ["Spoofed sender"]
                )
            )
            clock.advance(minutes=10)

        assert results == [False, False, True, False]
        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message.destination == DIST
        assert "Spoofed sender" in message.text_body

        campaigns = await service._store.list_campaigns()
        assert campaigns[0].alert_sent_at is not None

    async def test_alerts_again_after_cooldown(
        self, service: CampaignAlertService, notifier: RecordingNotifier, clock
    ) -> None:
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            await service.process_detection("mal.example", "Reset now", recipient, "critical", [])
        assert len(notifier.sent) == 1

        clock.advance(hours=25)
        # The burst window is measured from first sighting, so it is now closed.
        assert await service.process_detection(
            "mal.example", "Reset now", "d@corp.test", "critical", []
        ) is False
        assert len(notifier.sent) == 1

    async def test_medium_risk_is_never_tracked(
        self, service: CampaignAlertService, store: IntelligenceStore
    ) -> None:
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            assert await service.process_detection(
                "mal.example", "Hi", recipient, "medium", []
            ) is False
        assert await store.list_campaigns() == []

    async def test_disabled_service_does_nothing(
        self, store: IntelligenceStore, notifier: RecordingNotifier, clock
    ) -> None:
        service = CampaignAlertService(
            store, notifier, enabled=False, distribution_list=DIST, clock=clock
        )
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            assert await service.process_detection("mal.example", "Hi", recipient, "high", []) is False
        assert await store.list_campaigns() == []
        assert notifier.sent == []

    async def test_delivery_failure_is_swallowed_and_retried_next_time(
        self, store: IntelligenceStore, clock
    ) -> None:
        failing = RecordingNotifier(fail=True)
        service = CampaignAlertService(store, failing, distribution_list=DIST, clock=clock)
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            assert await service.process_detection("mal.example", "Hi", recipient, "high", []) is False

        campaigns = await store.list_campaigns()
        assert campaigns[0].alert_sent_at is None

        failing.fail = False
        assert await service.process_detection("mal.example", "Hi", "d@corp.test", "high", []) is True
        assert len(failing.sent) == 1

    async def test_store_failure_is_swallowed(self, notifier: RecordingNotifier, clock) -> None:
        store = AsyncMock(spec=IntelligenceStore)
        store.track_campaign_detection.side_effect = StoreUnavailableError("timed out")
        service = CampaignAlertService(store, notifier, distribution_list=DIST, clock=clock)

        assert await service.process_detection("mal.example", "Hi", "a@corp.test", "high", []) is False
        assert notifier.sent == []

    async def test_mark_failure_after_send_keeps_claim(
        self, store: IntelligenceStore, notifier: RecordingNotifier, clock, monkeypatch
    ) -> None:
        service = CampaignAlertService(store, notifier, distribution_list=DIST, clock=clock)
        monkeypatch.setattr(
            store, "mark_campaign_alerted", AsyncMock(side_effect=StorageError("write failed"))
        )
        results = [
            await service.process_detection("mal.example", "Hi", r, "high", [])
            for r in ["a@corp.test", "b@corp.test", "c@corp.test", "d@corp.test"]
        ]
        assert results == [False, False, True, False]
        assert len(notifier.sent) == 1

        campaigns = await store.list_campaigns()
        assert campaigns[0].alert_sent_at == clock()

    async def test_claim_failure_skips_send(
        self, store: IntelligenceStore, notifier: RecordingNotifier, clock, monkeypatch
    ) -> None:
        service = CampaignAlertService(store, notifier, distribution_list=DIST, clock=clock)
        monkeypatch.setattr(
            store, "claim_campaign_alert", AsyncMock(side_effect=StoreUnavailableError("timed out"))
        )
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            assert await service.process_detection("mal.example", "Hi", recipient, "high", []) is False
        assert notifier.sent == []

    async def test_concurrent_qualifying_detections_alert_once(
        self, service: CampaignAlertService, notifier: RecordingNotifier
    ) -> None:
        for recipient in ["a@corp.test", "b@corp.test"]:
            await service.process_detection("mal.example", "Hi", recipient, "high", [])

        results = await asyncio.gather(
            service.process_detection("mal.example", "Hi", "c@corp.test", "high", []),
            service.process_detection("mal.example", "Hi", "d@corp.test", "high", []),
        )
        assert sorted(results) == [False, True]
        assert len(notifier.sent) == 1

    async def test_no_distribution_list_skips_send(
        self, store: IntelligenceStore, notifier: RecordingNotifier, clock
    ) -> None:
        service = CampaignAlertService(store, notifier, distribution_list="", clock=clock)
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            await service.process_detection("mal.example", "Hi", recipient, "high", [])
        assert notifier.sent == []

    async def test_outside_window_does_not_alert(
        self, service: CampaignAlertService, notifier: RecordingNotifier, clock
    ) -> None:
        await service.process_detection("mal.example", "Hi", "a@corp.test", "high", [])
        await service.process_detection("mal.example", "Hi", "b@corp.test", "high", [])
        clock.advance(hours=4, minutes=30)
        match = await service.track("mal.example", "Hi", "c@corp.test", "high", [])
        assert match.should_alert is False
        assert match.hours_active == pytest.approx(4.5)
        assert notifier.sent == []

    async def test_track_reports_prior_alert_time(
        self, service: CampaignAlertService, clock
    ) -> None:
        for recipient in ["a@corp.test", "b@corp.test", "c@corp.test"]:
            await service.process_detection("mal.example", "Hi", recipient, "high", [])
        alerted_at = clock()
        clock.advance(hours=1)
        match = await service.track("mal.example", "Hi", "d@corp.test", "high", [])
        assert match.alert_sent_at == alerted_at
        assert match.should_alert is False
        assert clock() - match.alert_sent_at == timedelta(hours=1)
