"""
URL risk analyzer.

Runs every URL check in a fixed order, folds their score deltas into a
single 0-100 score and classifies it. The analyzer holds no mutable state,
so one instance can serve any number of concurrent callers.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Callable, List, Optional, Tuple

from qrshield.schemas.analysis_schemas import (
    AnalysisResult,
    Finding,
    FindingIcon,
    FindingStatus,
)
from qrshield.services.lists_service import ReferenceLists, default_lists
from qrshield.services import url_checks
from qrshield.utils.logging_config import StructuredLogger
from qrshield.utils.risk_levels import clamp_score, derive_risk_from_score

logger = StructuredLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class UrlRule:
    """
    One check plus what it contributes.

    `on_match`/`match_delta` apply when the check is true,
    `on_miss`/`miss_delta` when it is false. `fallback` is used in place of
    the check's answer if the check itself fails unexpectedly.
    """
    name: str
    check: Callable[[str], bool]
    on_match: Optional[Finding] = None
    match_delta: int = 0
    on_miss: Optional[Finding] = None
    miss_delta: int = 0
    fallback: bool = False

    def apply(self, url: str) -> Tuple[Optional[Finding], int]:
        try:
            matched = bool(self.check(url))
        except Exception as e:
            logger.warning(
                "URL check failed, using fallback",
                rule=self.name,
                fallback=self.fallback,
                error=str(e),
            )
            matched = self.fallback
        if matched:
            return self.on_match, self.match_delta
        return self.on_miss, self.miss_delta


# ============== FINDINGS ==============

SECURE_CONNECTION = Finding(
    title="Secure Connection",
    description="The URL uses HTTPS for secure data transfer.",
    status=FindingStatus.POSITIVE,
    icon=FindingIcon.LOCK,
)
INSECURE_CONNECTION = Finding(
    title="Insecure Connection",
    description="The URL doesn't use HTTPS, leaving data transfers potentially vulnerable.",
    status=FindingStatus.NEGATIVE,
    icon=FindingIcon.ALERT_OCTAGON,
)
IP_ADDRESS_DETECTED = Finding(
    title="IP Address Detected",
    description="The URL uses an IP address instead of a domain name, which is often associated with phishing.",
    status=FindingStatus.NEGATIVE,
    icon=FindingIcon.HASH,
)
SUSPICIOUS_LENGTH = Finding(
    title="Suspicious URL Length",
    description="The URL is unusually long, which may indicate obfuscation attempts.",
    status=FindingStatus.WARNING,
)
SUSPICIOUS_SUBDOMAIN = Finding(
    title="Suspicious Subdomain",
    description="The URL contains unusual or suspicious subdomains that might be attempting to impersonate trusted sites.",
    status=FindingStatus.NEGATIVE,
)
TRUSTED_DOMAIN = Finding(
    title="Trusted Domain",
    description="The URL belongs to a well-known and trusted domain.",
    status=FindingStatus.POSITIVE,
)
URL_SHORTENER = Finding(
    title="URL Shortener Detected",
    description="The URL uses a shortening service, which can disguise the actual destination.",
    status=FindingStatus.WARNING,
    icon=FindingIcon.TIMER,
)
SUSPICIOUS_PATTERN = Finding(
    title="Suspicious URL Pattern",
    description="The URL contains patterns commonly associated with phishing attempts.",
    status=FindingStatus.NEGATIVE,
)


def build_rules(lists: ReferenceLists) -> Tuple[UrlRule, ...]:
    """The closed, ordered rule set."""
    return (
        UrlRule(
            name="scheme",
            check=url_checks.has_https,
            on_match=SECURE_CONNECTION,
            on_miss=INSECURE_CONNECTION,
            miss_delta=25,
        ),
        UrlRule(
            name="ip_address",
            check=url_checks.contains_ip_address,
            on_match=IP_ADDRESS_DETECTED,
            match_delta=30,
        ),
        UrlRule(
            name="length",
            check=partial(url_checks.is_excessive_length, limit=lists.max_url_length),
            on_match=SUSPICIOUS_LENGTH,
            match_delta=15,
        ),
        UrlRule(
            name="subdomain",
            check=partial(url_checks.has_suspicious_subdomains, lists=lists),
            on_match=SUSPICIOUS_SUBDOMAIN,
            match_delta=25,
            fallback=True,
        ),
        UrlRule(
            name="trusted_domain",
            check=partial(url_checks.is_trusted_domain, lists=lists),
            on_match=TRUSTED_DOMAIN,
            match_delta=-20,
        ),
        UrlRule(
            name="shortener",
            check=partial(url_checks.is_url_shortener, lists=lists),
            on_match=URL_SHORTENER,
            match_delta=15,
        ),
        UrlRule(
            name="keyword_pattern",
            check=partial(url_checks.has_suspicious_pattern, lists=lists),
            on_match=SUSPICIOUS_PATTERN,
            match_delta=20,
        ),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlAnalyzer:
    """
    Maps a URL string to an AnalysisResult.

    Usage:
        analyzer = UrlAnalyzer()
        result = analyzer.evaluate("https://bit.ly/3xR4n2Z")
        result.risk_score  # 15
    """

    def __init__(
        self,
        lists: Optional[ReferenceLists] = None,
        clock: Optional[Clock] = None,
    ):
        self.lists = lists if lists is not None else default_lists
        self.rules = build_rules(self.lists)
        self._clock = clock or _utcnow

    def evaluate(self, url: str) -> AnalysisResult:
        url = "" if url is None else str(url)

        findings: List[Finding] = []
        score = 0
        for rule in self.rules:
            finding, delta = rule.apply(url)
            if finding is not None:
                findings.append(finding)
            # The running score never drops below zero
            score = max(0, score + delta)

        score = clamp_score(score)
        risk_level = derive_risk_from_score(score)
        scanned_at = self._clock()

        logger.debug(
            "URL evaluated",
            url_preview=url[:140],
            risk_score=score,
            risk_level=risk_level.value,
            findings=[f.title for f in findings],
        )

        return AnalysisResult(
            url=url,
            risk_score=score,
            risk_level=risk_level,
            findings=tuple(findings),
            scanned_at=scanned_at,
        )


default_analyzer = UrlAnalyzer()


def evaluate(url: str) -> AnalysisResult:
    """Score a URL with the default reference lists."""
    return default_analyzer.evaluate(url)
