# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for STIX 2.1 bundle generation and CSV export."""

from __future__ import annotations

import csv
import io
from datetime import UTC, datetime

import pytest

from baitwatch.core.constants import IndicatorType, Severity
from baitwatch.export import (
    CSV_COLUMNS,
    baitwatch_identity,
    build_stix_bundle,
    build_stix_pattern,
    indicator_to_stix,
    indicators_to_csv,
)
from baitwatch.models.indicator import ThreatIndicator, indicator_hash

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

FIRST = datetime(2026, 3, 1, 8, 30, 0, 123456, tzinfo=UTC)
LAST = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


def _indicator(
    kind: IndicatorType = IndicatorType.DOMAIN,
    value: str = "secure-paypa1.com",
    confidence: float = 0.9,
    severity: Severity = Severity.HIGH,
) -> ThreatIndicator:
    return ThreatIndicator(
        id=f"ind-{value}",
        indicator_type=kind,
        indicator_value=value,
        indicator_hash=indicator_hash(kind, value),
        confidence_score=confidence,
        severity=severity,
        times_seen=4,
        first_seen_at=FIRST,
        last_seen_at=LAST,
    )


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


class TestStixPatterns:
    @pytest.mark.parametrize(
        ("kind", "value", "expected"),
        [
            ("domain", "evil.example", "[domain-name:value = 'evil.example']"),
            ("ip", "203.0.113.9", "[ipv4-addr:value = '203.0.113.9']"),
            ("url", "https://evil.example/a", "[url:value = 'https://evil.example/a']"),
            ("email", "ceo@evil.example", "[email-addr:value = 'ceo@evil.example']"),
        ],
    )
    def test_observable_patterns(self, kind: str, value: str, expected: str) -> None:
        assert build_stix_pattern(kind, value) == expected

    @pytest.mark.parametrize(
        ("algo", "name"),
        [("md5", "MD5"), ("sha1", "SHA-1"), ("sha256", "SHA-256")],
    )
    def test_hash_pattern(self, algo: str, name: str) -> None:
        pattern = build_stix_pattern("hash", f"{algo}:abc123")
        assert pattern == f"[file:hashes.'{name}' = 'abc123']"

    def test_bare_hash_defaults_to_sha256(self) -> None:
        assert build_stix_pattern("hash", "ff00") == "[file:hashes.'SHA-256' = 'ff00']"

    def test_quotes_are_escaped(self) -> None:
        pattern = build_stix_pattern("url", "https://evil.example/?q='x'\\y")
        assert pattern == "[url:value = 'https://evil.example/?q=\\'x\\'\\\\y']"

    def test_unknown_type_uses_custom_object(self) -> None:
        assert build_stix_pattern("asn", "AS64500") == "[x-baitwatch-indicator:value = 'AS64500']"


# ---------------------------------------------------------------------------
# Indicator SDO and bundle
# ---------------------------------------------------------------------------


class TestStixIndicator:
    def test_indicator_fields(self) -> None:
        sdo = indicator_to_stix(_indicator())

        assert sdo["type"] == "indicator"
        assert sdo["spec_version"] == "2.1"
        assert sdo["id"].startswith("indicator--")
        assert sdo["created_by_ref"] == baitwatch_identity()["id"]
        assert sdo["created"] == "2026-03-01T08:30:00.123Z"
        assert sdo["valid_from"] == sdo["created"]
        assert sdo["modified"] == "2026-03-02T09:00:00.000Z"
        assert sdo["name"] == "domain: secure-paypa1.com"
        assert sdo["pattern"] == "[domain-name:value = 'secure-paypa1.com']"
        assert sdo["pattern_type"] == "stix"
        assert sdo["confidence"] == 90
        assert sdo["labels"] == ["high", "phishing"]
        assert "phishing" in sdo["indicator_types"]

    @pytest.mark.parametrize(("score", "expected"), [(0.0, 0), (0.3, 30), (1.0, 100)])
    def test_confidence_scale(self, score: float, expected: int) -> None:
        assert indicator_to_stix(_indicator(confidence=score))["confidence"] == expected

    def test_ids_are_deterministic(self) -> None:
        a = indicator_to_stix(_indicator())
        b = indicator_to_stix(_indicator())
        other = indicator_to_stix(_indicator(value="other.example"))
        assert a["id"] == b["id"]
        assert a["id"] != other["id"]


class TestStixBundle:
    def test_bundle_structure(self) -> None:
        indicators = [
            _indicator(),
            _indicator(IndicatorType.IP, "203.0.113.9", 0.7, Severity.MEDIUM),
        ]
        bundle = build_stix_bundle(indicators)

        assert bundle["type"] == "bundle"
        assert bundle["id"].startswith("bundle--")
        objects = bundle["objects"]
        assert objects[0]["type"] == "identity"
        assert [o["type"] for o in objects[1:]] == ["indicator", "indicator"]

    def test_bundle_is_stable(self) -> None:
        indicators = [_indicator()]
        assert build_stix_bundle(indicators) == build_stix_bundle(indicators)

    def test_empty_bundle_holds_only_identity(self) -> None:
        bundle = build_stix_bundle([])
        assert len(bundle["objects"]) == 1


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


class TestCsvExport:
    def test_header_only_when_empty(self) -> None:
        assert indicators_to_csv([]) == ",".join(CSV_COLUMNS) + "\n"

    def test_rows(self) -> None:
        text = indicators_to_csv(
            [_indicator(), _indicator(IndicatorType.URL, "https://evil.example/a,b", 0.7)]
        )
        rows = list(csv.DictReader(io.StringIO(text)))

        assert len(rows) == 2
        assert rows[0]["type"] == "domain"
        assert rows[0]["value"] == "secure-paypa1.com"
        assert rows[0]["confidence"] == "0.9000"
        assert rows[0]["severity"] == "high"
        assert rows[0]["times_seen"] == "4"
        assert rows[0]["first_seen"] == FIRST.isoformat()
        assert rows[1]["value"] == "https://evil.example/a,b"
