"""
Reference lists for URL heuristics.
Trusted domains, shortening services, brand-impersonation tokens and
credential-themed keyword patterns.

Lists are immutable: extending them returns a new instance so that an
analyzer built from one set of lists is never affected by another.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from qrshield.config import Settings, settings
from qrshield.services.url_checks import parse_hostname


class ListType(str, Enum):
    TRUSTED = "trusted"
    SHORTENER = "shortener"
    BRAND = "brand"


@dataclass(frozen=True)
class ListMatch:
    """Result of a host check."""
    matched: bool
    list_type: Optional[ListType]
    pattern: Optional[str]
    hostname: Optional[str]


def _normalize(values: Iterable[str]) -> Tuple[str, ...]:
    """Lower-case, strip and de-duplicate, keeping first-seen order."""
    seen: Dict[str, None] = {}
    for value in values:
        value = value.strip().lower()
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


@dataclass(frozen=True)
class ReferenceLists:
    """
    Static configuration consumed by the URL checks.

    Supports:
    - Trusted domains (exact host or any subdomain)
    - Shortening services (exact host only)
    - Brand tokens (substring of the host, unless it is <token>.com)
    - Keyword patterns (case-insensitive regexes over the whole URL)
    """
    trusted_domains: Tuple[str, ...] = ()
    shorteners: Tuple[str, ...] = ()
    brand_tokens: Tuple[str, ...] = ()
    keyword_patterns: Tuple[str, ...] = ()
    max_url_length: int = 100
    _compiled: Tuple[re.Pattern, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "trusted_domains", _normalize(self.trusted_domains))
        object.__setattr__(self, "shorteners", _normalize(self.shorteners))
        object.__setattr__(self, "brand_tokens", _normalize(self.brand_tokens))
        object.__setattr__(self, "keyword_patterns", tuple(p for p in self.keyword_patterns if p))
        # Invalid regexes surface here, at configuration time, not per scan
        object.__setattr__(
            self,
            "_compiled",
            tuple(re.compile(p, re.I) for p in self.keyword_patterns),
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "ReferenceLists":
        return cls(
            trusted_domains=tuple(config.trusted_domains_list),
            shorteners=tuple(config.url_shorteners_list),
            brand_tokens=tuple(config.brand_tokens_list),
            keyword_patterns=tuple(config.suspicious_keywords_list),
            max_url_length=config.max_url_length,
        )

    def compiled_keywords(self) -> Tuple[re.Pattern, ...]:
        return self._compiled

    def extend(
        self,
        trusted_domains: Iterable[str] = (),
        shorteners: Iterable[str] = (),
        brand_tokens: Iterable[str] = (),
        keyword_patterns: Iterable[str] = (),
    ) -> "ReferenceLists":
        """Return a copy with extra entries appended to each list."""
        return replace(
            self,
            trusted_domains=self.trusted_domains + tuple(trusted_domains),
            shorteners=self.shorteners + tuple(shorteners),
            brand_tokens=self.brand_tokens + tuple(brand_tokens),
            keyword_patterns=self.keyword_patterns + tuple(keyword_patterns),
        )

    def check_host(self, url: str) -> ListMatch:
        """Report which list, if any, the URL's host belongs to."""
        hostname = parse_hostname(url)
        if hostname is None:
            return ListMatch(matched=False, list_type=None, pattern=None, hostname=None)

        for domain in self.trusted_domains:
            if hostname == domain or hostname.endswith("." + domain):
                return ListMatch(True, ListType.TRUSTED, domain, hostname)

        if hostname in self.shorteners:
            return ListMatch(True, ListType.SHORTENER, hostname, hostname)

        for token in self.brand_tokens:
            if token in hostname and not hostname.endswith(token + ".com"):
                return ListMatch(True, ListType.BRAND, token, hostname)

        return ListMatch(matched=False, list_type=None, pattern=None, hostname=hostname)

    def get_stats(self) -> Dict[str, int]:
        """Get list statistics."""
        return {
            "trusted_domains": len(self.trusted_domains),
            "shorteners": len(self.shorteners),
            "brand_tokens": len(self.brand_tokens),
            "keyword_patterns": len(self.keyword_patterns),
        }

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "trusted_domains": list(self.trusted_domains),
            "shorteners": list(self.shorteners),
            "brand_tokens": list(self.brand_tokens),
            "keyword_patterns": list(self.keyword_patterns),
        }


# Global instance
default_lists = ReferenceLists.from_settings(settings)
