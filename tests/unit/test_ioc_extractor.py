# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for IOC extraction from classified emails."""

from __future__ import annotations

import pytest

from baitwatch.core.constants import ConfidenceLabel, IndicatorType, Severity
from baitwatch.intel.ioc_extractor import (
    extract_iocs,
    find_urls,
    is_excluded_ip,
    is_safe_domain,
    severity_for,
)
from baitwatch.models.verdict import Verdict

PHISH = Verdict(is_phishing=True, confidence=ConfidenceLabel.HIGH)
BENIGN = Verdict(is_phishing=False, confidence=ConfidenceLabel.LOW)

BODY = """
Dear customer, your account is locked.
Restore access at https://secure-paypa1.example/verify?token=abc now.
Backup link: http://198.51.100.7/login.php?id=1
Internal host 10.0.0.5 should be ignored, so should https://docs.google.com/form.
Attachment hash 44d88612fea8a8f36de82e1278abb02f
"""


def _extract(verdict: Verdict = PHISH, **kwargs):
    return extract_iocs(
        kwargs.pop("email_text", BODY),
        kwargs.pop("links", ["https://secure-paypa1.example/verify?token=abc"]),
        kwargs.pop("subject", "Account locked"),
        kwargs.pop("sender_email", "Support <support@paypa1-billing.example>"),
        verdict,
        **kwargs,
    )


def _by_type(candidates, kind: IndicatorType) -> set[str]:
    return {c.value for c in candidates if c.type == kind}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    @pytest.mark.parametrize("domain", ["google.com", "mail.google.com", "ZOOM.US"])
    def test_safe_domains(self, domain: str) -> None:
        assert is_safe_domain(domain)

    def test_lookalike_is_not_safe(self) -> None:
        assert not is_safe_domain("google.com.evil.example")
        assert not is_safe_domain("notgoogle.com")

    @pytest.mark.parametrize("ip", ["10.1.2.3", "172.16.0.1", "192.168.1.1", "127.0.0.1", "169.254.9.9"])
    def test_excluded_ips(self, ip: str) -> None:
        assert is_excluded_ip(ip)

    def test_public_ip_is_kept(self) -> None:
        assert not is_excluded_ip("198.51.100.7")
        assert not is_excluded_ip("172.32.0.1")

    @pytest.mark.parametrize(
        ("verdict", "expected"),
        [
            (Verdict(is_phishing=True, confidence="VeryHigh"), Severity.CRITICAL),
            (Verdict(is_phishing=True, confidence="High"), Severity.HIGH),
            (Verdict(is_phishing=True, confidence="Medium"), Severity.MEDIUM),
            (Verdict(is_phishing=True, confidence="Low"), Severity.MEDIUM),
            (Verdict(is_phishing=False, confidence="VeryHigh"), Severity.LOW),
        ],
    )
    def test_severity_mapping(self, verdict: Verdict, expected: Severity) -> None:
        assert severity_for(verdict) == expected

    def test_find_urls_dedups_and_trims(self) -> None:
        urls = find_urls("see https://a.example/x. and https://a.example/x#frag", [])
        assert urls == ["https://a.example/x"]

    def test_find_urls_skips_non_http(self) -> None:
        assert find_urls("", ["mailto:a@b.example", "ftp://x.example/f"]) == []


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


class TestExtractIocs:
    def test_extracts_each_kind(self) -> None:
        candidates = _extract()

        assert _by_type(candidates, IndicatorType.URL) == {
            "https://secure-paypa1.example/verify?token=abc",
            "http://198.51.100.7/login.php?id=1",
        }
        assert _by_type(candidates, IndicatorType.DOMAIN) == {
            "secure-paypa1.example",
            "paypa1-billing.example",
        }
        assert _by_type(candidates, IndicatorType.EMAIL) == {"support@paypa1-billing.example"}
        assert _by_type(candidates, IndicatorType.IP) == {"198.51.100.7"}
        assert _by_type(candidates, IndicatorType.HASH) == {"md5:44d88612fea8a8f36de82e1278abb02f"}

    def test_safe_and_private_values_are_skipped(self) -> None:
        values = {c.value for c in _extract()}
        assert not any("google.com" in v for v in values)
        assert "10.0.0.5" not in values

    def test_confidence_boosts_suspicious_values(self) -> None:
        candidates = {(c.type, c.value): c for c in _extract()}
        boosted_url = candidates[(IndicatorType.URL, "https://secure-paypa1.example/verify?token=abc")]
        assert boosted_url.confidence == pytest.approx(0.9)
        ip = candidates[(IndicatorType.IP, "198.51.100.7")]
        assert ip.confidence == pytest.approx(0.7)

    def test_severity_follows_verdict(self) -> None:
        assert {c.severity for c in _extract()} == {Severity.HIGH}

    def test_hash_metadata(self) -> None:
        (digest,) = [c for c in _extract() if c.type == IndicatorType.HASH]
        assert digest.metadata == {"hash_type": "md5"}

    def test_benign_verdict_uses_low_base(self) -> None:
        candidates = _extract(BENIGN, min_confidence=0.0)
        ip = next(c for c in candidates if c.type == IndicatorType.IP)
        assert ip.confidence == pytest.approx(0.3)
        assert {c.severity for c in candidates} == {Severity.LOW}

    def test_min_confidence_filters(self) -> None:
        strict = _extract(min_confidence=0.8)
        assert strict
        assert all(c.confidence >= 0.8 for c in strict)

    @pytest.mark.parametrize("high", [0.5, 0.75, 0.8, 0.95])
    def test_lowering_threshold_is_superset(self, high: float) -> None:
        at_high = {(c.type, c.value) for c in _extract(min_confidence=high)}
        at_low = {(c.type, c.value) for c in _extract(min_confidence=0.3)}
        assert at_high <= at_low

    def test_deterministic_and_sorted(self) -> None:
        first = _extract()
        assert first == _extract()
        keys = [(str(c.type), c.value.lower()) for c in first]
        assert keys == sorted(keys)

    def test_duplicate_values_are_merged(self) -> None:
        candidates = _extract(
            email_text="http://Evil.example/a http://evil.example/a",
            links=[],
            sender_email="",
        )
        assert len([c for c in candidates if c.type == IndicatorType.URL]) == 1

    def test_ip_literal_hosts_not_reported_as_domains(self) -> None:
        domains = _by_type(_extract(), IndicatorType.DOMAIN)
        assert "198.51.100.7" not in domains

    def test_empty_email(self) -> None:
        assert _extract(email_text="", links=[], subject="", sender_email="") == []
