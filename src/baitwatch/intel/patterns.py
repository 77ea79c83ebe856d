# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Cross-email pattern detection over a bounded window of recent verdicts."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from urllib.parse import urlparse

from baitwatch.core.constants import CONFIRMED_PATTERN_COUNT, PatternType
from baitwatch.core.timestamps import Clock, utc_now
from baitwatch.models.analysis import AnalysisSearchFilters, EmailAnalysis
from baitwatch.models.pattern import (
    DetectedPattern,
    DomainCampaignCriteria,
    ImpersonationCriteria,
    PatternCriteria,
    PatternMatch,
    SubjectPatternCriteria,
    UrlCampaignCriteria,
)
from baitwatch.models.verdict import InboundEmail, Verdict
from baitwatch.storage.store import IntelligenceStore

logger = logging.getLogger("baitwatch.intel.patterns")

DEFAULT_MIN_MATCH_COUNT = 3
DEFAULT_LOOKBACK_HOURS = 168

# Row caps for each correlation query
_DOMAIN_WINDOW_ROWS = 100
_SUBJECT_WINDOW_ROWS = 500
_IMPERSONATION_WINDOW_ROWS = 200
_URL_WINDOW_ROWS = 300

_MAX_KEY_PHRASES = 3

SUBJECT_PHRASE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"urgent|immediate|action required", re.IGNORECASE),
    re.compile(r"password|reset|expired", re.IGNORECASE),
    re.compile(r"account.*(?:suspend|lock|verify)", re.IGNORECASE),
    re.compile(r"invoice|payment|receipt", re.IGNORECASE),
    re.compile(r"delivery|shipping|package", re.IGNORECASE),
    re.compile(r"security alert|suspicious activity", re.IGNORECASE),
    re.compile(r"your.*account", re.IGNORECASE),
    re.compile(r"verify your", re.IGNORECASE),
    re.compile(r"update.*information", re.IGNORECASE),
]

_VERDICT_IMPERSONATION_TERMS = ("impersonat", "spoof", "pretend")
_STORED_IMPERSONATION_TERMS = ("impersonat", "spoof")
_INDICATOR_HOST_RE = re.compile(r"https?://([^/\s:?#]+)", re.IGNORECASE)


def extract_key_phrases(subject: str) -> list[str]:
    """Up to three distinct phishing phrases found in *subject*, in category order."""
    phrases: list[str] = []
    for pattern in SUBJECT_PHRASE_PATTERNS:
        for match in pattern.finditer(subject.lower()):
            phrase = match.group(0)
            if phrase not in phrases:
                phrases.append(phrase)
    return phrases[:_MAX_KEY_PHRASES]


def _link_hosts(links: list[str]) -> list[str]:
    hosts: list[str] = []
    for link in links:
        try:
            host = (urlparse(link.strip()).hostname or "").lower()
        except ValueError:
            continue
        if host and host not in hosts:
            hosts.append(host)
    return hosts


def _mentions(texts: list[str], terms: tuple[str, ...]) -> bool:
    return any(term in text.lower() for text in texts for term in terms)


class PatternDetector:
    """Detect domain, subject, impersonation, and URL campaigns.

    Each detector queries at most a fixed number of phishing analyses from
    the last ``lookback_hours``; a pattern is persisted once its match count
    reaches ``min_match_count``.  A failing detector is logged and skipped.
    """

    def __init__(
        self,
        store: IntelligenceStore,
        *,
        min_match_count: int = DEFAULT_MIN_MATCH_COUNT,
        lookback_hours: float = DEFAULT_LOOKBACK_HOURS,
        clock: Clock = utc_now,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._min_match_count = min_match_count
        self._lookback = timedelta(hours=lookback_hours)
        self._clock = clock
        self._timeout = timeout

    async def detect_patterns(self, email: InboundEmail, verdict: Verdict) -> list[PatternMatch]:
        """Run every detector for one classified email; non-phishing yields nothing."""
        if not verdict.is_phishing:
            return []

        detectors: list[tuple[str, Callable[[], Awaitable[PatternMatch | None]]]] = [
            ("domain_campaign", lambda: self._detect_domain_campaign(email)),
            ("subject_pattern", lambda: self._detect_subject_pattern(email)),
            ("impersonation", lambda: self._detect_impersonation(verdict)),
            ("url_campaign", lambda: self._detect_url_campaign(email)),
        ]

        matches: list[PatternMatch] = []
        for name, detect in detectors:
            try:
                match = await detect()
            except Exception:
                logger.exception("Pattern detector %s failed for %s", name, email.message_id)
                continue
            if match is not None:
                matches.append(match)

        logger.info(
            "Pattern detection completed: %d pattern(s) for %s", len(matches), email.from_email
        )
        return matches

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    async def _recent_phishing(self, limit: int, from_domain: str | None = None) -> list[EmailAnalysis]:
        filters = AnalysisSearchFilters(
            from_date=self._clock() - self._lookback,
            is_phishing=True,
            from_domain=from_domain,
            limit=limit,
        )
        return await self._store.search_analyses(filters, timeout=self._timeout)

    async def _record(
        self,
        pattern_type: PatternType,
        name: str,
        description: str,
        criteria: PatternCriteria,
        matched: list[EmailAnalysis],
        *,
        confirmed: bool | None = None,
    ) -> PatternMatch:
        count = len(matched)
        now = self._clock()
        first_seen: datetime = min((a.created_at for a in matched), default=now)
        await self._store.upsert_pattern(
            DetectedPattern(
                pattern_type=pattern_type,
                pattern_name=name,
                criteria=criteria,
                match_count=count,
                is_confirmed_threat=(
                    confirmed if confirmed is not None else count >= CONFIRMED_PATTERN_COUNT
                ),
                first_detected_at=first_seen,
                last_detected_at=now,
            ),
            timeout=self._timeout,
        )
        logger.info("Pattern %s matched %d email(s)", name, count)
        return PatternMatch(
            type=pattern_type,
            name=name,
            description=description,
            criteria=criteria,
            match_count=count,
            is_new=count == self._min_match_count,
        )

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------

    async def _detect_domain_campaign(self, email: InboundEmail) -> PatternMatch | None:
        domain = email.from_domain.strip().lower()
        if not domain:
            return None

        recent = await self._recent_phishing(_DOMAIN_WINDOW_ROWS, from_domain=domain)
        if len(recent) < self._min_match_count:
            return None

        criteria = DomainCampaignCriteria(
            domain=domain,
            matching_emails=len(recent),
            first_seen=min(a.created_at for a in recent),
            last_seen=max(a.created_at for a in recent),
        )
        return await self._record(
            PatternType.DOMAIN_CAMPAIGN,
            f"domain_campaign_{domain}",
            f"Domain-based phishing campaign from {domain}",
            criteria,
            recent,
        )

    async def _detect_subject_pattern(self, email: InboundEmail) -> PatternMatch | None:
        phrases = extract_key_phrases(email.subject)
        if not phrases:
            return None

        recent = await self._recent_phishing(_SUBJECT_WINDOW_ROWS)
        matched = [a for a in recent if any(p in a.subject.lower() for p in phrases)]
        if len(matched) < self._min_match_count:
            return None

        criteria = SubjectPatternCriteria(
            key_phrases=phrases,
            matching_emails=len(matched),
            sample_subject=email.subject,
        )
        return await self._record(
            PatternType.SUBJECT_PATTERN,
            "subject_pattern_" + re.sub(r"\s+", "_", phrases[0]),
            f'Subject line pattern: "{phrases[0]}"',
            criteria,
            matched,
        )

    async def _detect_impersonation(self, verdict: Verdict) -> PatternMatch | None:
        if not _mentions(verdict.indicators, _VERDICT_IMPERSONATION_TERMS):
            return None

        recent = await self._recent_phishing(_IMPERSONATION_WINDOW_ROWS)
        matched = [
            a
            for a in recent
            if a.vip_impersonation_detected or _mentions(a.indicators, _STORED_IMPERSONATION_TERMS)
        ]
        if len(matched) < self._min_match_count:
            return None

        criteria = ImpersonationCriteria(
            matching_emails=len(matched),
            sample_indicators=verdict.indicators[:3],
        )
        return await self._record(
            PatternType.IMPERSONATION,
            "impersonation_campaign",
            "Active impersonation campaign detected",
            criteria,
            matched,
            confirmed=True,
        )

    async def _detect_url_campaign(self, email: InboundEmail) -> PatternMatch | None:
        hosts = _link_hosts(email.links)
        if not hosts:
            return None

        wanted = set(hosts)
        recent = await self._recent_phishing(_URL_WINDOW_ROWS)
        matched = [
            a
            for a in recent
            if any(
                host.lower() in wanted
                for text in a.indicators
                for host in _INDICATOR_HOST_RE.findall(text)
            )
        ]
        if len(matched) < self._min_match_count:
            return None

        criteria = UrlCampaignCriteria(domains=hosts, matching_emails=len(matched))
        return await self._record(
            PatternType.URL_CAMPAIGN,
            "url_campaign_" + hosts[0].replace(".", "_"),
            f"URL-based campaign using domains: {', '.join(hosts)}",
            criteria,
            matched,
        )
