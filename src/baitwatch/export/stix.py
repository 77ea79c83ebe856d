# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""STIX 2.1 bundle generation from stored threat indicators.

Builds the JSON directly rather than through the ``stix2`` library.  IDs
are UUID-5 derived from the indicator hash, so exporting the same rows
twice yields the same bundle.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from datetime import datetime
from typing import Any

from baitwatch.models.indicator import ThreatIndicator

# ---------------------------------------------------------------------------
# Indicator type -> STIX 2.1 cyber-observable pattern mapping
# ---------------------------------------------------------------------------

IOC_PATTERN_MAP: dict[str, str] = {
    "domain": "[domain-name:value = '{value}']",
    "ip": "[ipv4-addr:value = '{value}']",
    "url": "[url:value = '{value}']",
    "email": "[email-addr:value = '{value}']",
}

_HASH_NAMES: dict[str, str] = {
    "md5": "MD5",
    "sha1": "SHA-1",
    "sha256": "SHA-256",
}

_IDENTITY_ID = "identity--4d0b6a9e-3c1f-5b8e-9a51-6f2c0e7d1b24"
_NAMESPACE = uuid.UUID("00abedb4-aa42-466c-9c01-fed23315a9b7")


def _deterministic_id(stix_type: str, seed: str) -> str:
    return f"{stix_type}--{uuid.uuid5(_NAMESPACE, seed)}"


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_stix_pattern(indicator_type: str, value: str) -> str:
    """Build a STIX pattern expression for one indicator value.

    Hash values are stored as ``algo:hex`` and map onto ``file:hashes``.
    Unknown types fall back to a custom ``x-baitwatch-indicator`` object.
    """
    if indicator_type in IOC_PATTERN_MAP:
        return IOC_PATTERN_MAP[indicator_type].format(value=_escape(value))
    if indicator_type == "hash":
        algo, sep, digest = value.partition(":")
        if not sep:
            algo, digest = "sha256", value
        name = _HASH_NAMES.get(algo.lower(), algo.upper())
        return f"[file:hashes.'{name}' = '{_escape(digest)}']"
    return f"[x-baitwatch-indicator:value = '{_escape(value)}']"


def baitwatch_identity() -> dict[str, Any]:
    """Return the STIX Identity object for the producing system."""
    return {
        "type": "identity",
        "spec_version": "2.1",
        "id": _IDENTITY_ID,
        "created": "2026-01-01T00:00:00.000Z",
        "modified": "2026-01-01T00:00:00.000Z",
        "name": "Baitwatch Threat Intelligence",
        "description": "Phishing indicators extracted from classified email.",
        "identity_class": "system",
    }


def indicator_to_stix(indicator: ThreatIndicator) -> dict[str, Any]:
    """Convert a stored indicator into a STIX ``indicator`` SDO."""
    indicator_type = str(indicator.indicator_type)
    return {
        "type": "indicator",
        "spec_version": "2.1",
        "id": _deterministic_id("indicator", indicator.indicator_hash),
        "created_by_ref": _IDENTITY_ID,
        "created": _iso(indicator.first_seen_at),
        "modified": _iso(indicator.last_seen_at),
        "name": f"{indicator_type}: {indicator.indicator_value}",
        "description": f"Phishing indicator - {indicator_type}",
        "indicator_types": ["malicious-activity", "phishing"],
        "pattern": build_stix_pattern(indicator_type, indicator.indicator_value),
        "pattern_type": "stix",
        "valid_from": _iso(indicator.first_seen_at),
        "confidence": round(indicator.confidence_score * 100),
        "labels": [str(indicator.severity), "phishing"],
    }


def build_stix_bundle(indicators: list[ThreatIndicator]) -> dict[str, Any]:
    """Build a STIX 2.1 Bundle holding the identity and one SDO per indicator."""
    objects: list[dict[str, Any]] = [baitwatch_identity()]
    objects.extend(indicator_to_stix(ind) for ind in indicators)

    content_hash = hashlib.sha256(json.dumps(objects, sort_keys=True).encode()).hexdigest()
    return {
        "type": "bundle",
        "id": f"bundle--{uuid.UUID(content_hash[:32])}",
        "objects": objects,
    }
