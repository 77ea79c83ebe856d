# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Extract indicators of compromise from a classified email.

The extractor is pure: the same email and verdict always yield the same
candidates in the same order.  Confidence starts at 0.7 for phishing
verdicts and 0.3 otherwise, and a kind-specific heuristic match adds 0.2.
``min_confidence`` is applied last, so lowering it can only add
candidates.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from email.utils import parseaddr
from urllib.parse import urldefrag, urlparse

from baitwatch.core.constants import ConfidenceLabel, IndicatorType, Severity
from baitwatch.models.indicator import IndicatorCandidate
from baitwatch.models.verdict import Verdict

logger = logging.getLogger(__name__)

PHISHING_BASE_CONFIDENCE = 0.7
BENIGN_BASE_CONFIDENCE = 0.3
HEURISTIC_BOOST = 0.2
DEFAULT_MIN_CONFIDENCE = 0.3

SAFE_DOMAINS: frozenset[str] = frozenset(
    {
        "google.com",
        "microsoft.com",
        "apple.com",
        "amazon.com",
        "facebook.com",
        "linkedin.com",
        "twitter.com",
        "github.com",
        "slack.com",
        "zoom.us",
        "salesforce.com",
        "office.com",
        "outlook.com",
    }
)

_EXCLUDED_NETWORKS = tuple(
    ipaddress.ip_network(n)
    for n in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16", "127.0.0.0/8", "169.254.0.0/16")
)

_URL_RE = re.compile(r"https?://[^\s<>\"'`)\]]+", re.IGNORECASE)
_IP_RE = re.compile(
    r"\b(?:(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\.){3}(?:25[0-5]|2[0-4]\d|[01]?\d\d?)\b"
)
_HASH_PATTERNS: dict[str, re.Pattern[str]] = {
    "md5": re.compile(r"\b[a-fA-F0-9]{32}\b"),
    "sha1": re.compile(r"\b[a-fA-F0-9]{40}\b"),
    "sha256": re.compile(r"\b[a-fA-F0-9]{64}\b"),
}

_SUSPICIOUS_URL = [
    re.compile(r"bit\.ly|tinyurl|goo\.gl", re.IGNORECASE),
    re.compile(r"@"),
    re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}"),
    re.compile(r"-login|signin-|secure-|verify-", re.IGNORECASE),
    re.compile(r"\.php\?.*=", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"[?&](?:password|passwd|pwd|token|session|login|username|account)=", re.IGNORECASE),
]
_SUSPICIOUS_DOMAIN = [
    re.compile(r"^[a-z0-9]{20,}\."),
    re.compile(r"-secure|-login|-verify|-account", re.IGNORECASE),
    re.compile(r"\d{3,}"),
    re.compile(r"^[0-9]+\."),
]
_SUSPICIOUS_SENDER = [
    re.compile(r"noreply|no-reply|donotreply", re.IGNORECASE),
    re.compile(r"admin@|support@|security@", re.IGNORECASE),
    re.compile(r"[a-z0-9]{20,}@", re.IGNORECASE),
]


# ---------------------------------------------------------------------------
# Classification helpers
# ---------------------------------------------------------------------------


def is_safe_domain(domain: str) -> bool:
    """True for an allow-listed domain or any of its subdomains."""
    host = domain.strip().lower().rstrip(".")
    return any(host == safe or host.endswith("." + safe) for safe in SAFE_DOMAINS)


def is_excluded_ip(value: str) -> bool:
    """True for RFC 1918, loopback, and link-local addresses."""
    try:
        addr = ipaddress.ip_address(value)
    except ValueError:
        return True
    return any(addr in net for net in _EXCLUDED_NETWORKS)


def severity_for(verdict: Verdict) -> Severity:
    if not verdict.is_phishing:
        return Severity.LOW
    if verdict.confidence == ConfidenceLabel.VERY_HIGH:
        return Severity.CRITICAL
    if verdict.confidence == ConfidenceLabel.HIGH:
        return Severity.HIGH
    return Severity.MEDIUM


def _boosted(base: float, value: str, patterns: list[re.Pattern[str]]) -> float:
    if any(p.search(value) for p in patterns):
        return min(base + HEURISTIC_BOOST, 1.0)
    return base


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def _clean_url(url: str) -> str:
    url = url.strip().rstrip(".,;:!?)]")
    url, _ = urldefrag(url)
    return url


def find_urls(content: str, links: list[str]) -> list[str]:
    """Valid http(s) URLs from explicit *links* and free text, first occurrence wins."""
    seen: set[str] = set()
    found: list[str] = []
    for raw in [*links, *_URL_RE.findall(content)]:
        try:
            url = _clean_url(raw)
            parsed = urlparse(url)
        except ValueError:
            continue
        if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
            continue
        if url.lower() not in seen:
            seen.add(url.lower())
            found.append(url)
    return found


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_iocs(
    email_text: str,
    links: list[str],
    subject: str,
    sender_email: str,
    verdict: Verdict,
    *,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    html: str = "",
) -> list[IndicatorCandidate]:
    """Return URL, domain, IP, hash, and sender indicators for one email.

    Output is deduplicated on (type, lowercase value), keeping the highest
    confidence, and sorted by type then value.
    """
    base = PHISHING_BASE_CONFIDENCE if verdict.is_phishing else BENIGN_BASE_CONFIDENCE
    severity = severity_for(verdict)
    content = " ".join([email_text, html, subject, *links])
    urls = find_urls(content, links)

    found: dict[tuple[str, str], IndicatorCandidate] = {}

    def _add(kind: IndicatorType, value: str, confidence: float, **metadata: str) -> None:
        key = (str(kind), value.lower())
        current = found.get(key)
        if current is None or confidence > current.confidence:
            found[key] = IndicatorCandidate(
                type=kind,
                value=value,
                confidence=confidence,
                severity=severity,
                metadata=metadata,
            )

    # URLs and their hosts
    hosts: set[str] = set()
    for url in urls:
        host = (urlparse(url).hostname or "").lower()
        if is_safe_domain(host):
            continue
        _add(IndicatorType.URL, url, _boosted(base, url, _SUSPICIOUS_URL))
        if host and not _is_ip_literal(host):
            hosts.add(host)

    # Sender
    address = parseaddr(sender_email)[1].strip().lower()
    sender_domain = address.rsplit("@", 1)[1] if "@" in address else ""
    if sender_domain and not is_safe_domain(sender_domain):
        hosts.add(sender_domain)
        _add(IndicatorType.EMAIL, address, _boosted(base, address, _SUSPICIOUS_SENDER))

    for host in hosts:
        _add(IndicatorType.DOMAIN, host, _boosted(base, host, _SUSPICIOUS_DOMAIN))

    # IPv4 literals
    for ip in set(_IP_RE.findall(content)):
        if not is_excluded_ip(ip):
            _add(IndicatorType.IP, ip, base)

    # Hash literals
    for algo, pattern in _HASH_PATTERNS.items():
        for digest in set(pattern.findall(content)):
            _add(IndicatorType.HASH, f"{algo}:{digest.lower()}", base, hash_type=algo)

    candidates = sorted(found.values(), key=lambda c: (str(c.type), c.value.lower(), c.value))
    kept = [c for c in candidates if c.confidence >= min_confidence]
    logger.info(
        "Extracted IOCs from email: total=%d kept=%d phishing=%s",
        len(candidates),
        len(kept),
        verdict.is_phishing,
    )
    return kept
