"""
URL checks.

Each check is a pure function of the URL string, plus the reference lists
where it needs them. None of them raise: a URL that cannot be parsed yields
the conservative value documented on the check.
"""

import re
from typing import TYPE_CHECKING, Optional

from ada_url import URL

if TYPE_CHECKING:
    from qrshield.services.lists_service import ReferenceLists


MAX_URL_LENGTH = 100

IP_URL_RE = re.compile(r"https?://\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}", re.I)


def parse_hostname(url: str) -> Optional[str]:
    """
    Return the hostname as a browser would see it, or None if the URL does
    not parse.

    Parsing follows the WHATWG URL standard: numeric IPv4 forms such as
    `http://2130706433/` become dotted quads, `http:host` and backslashes
    are accepted for special schemes, percent-encoded and international
    hosts are decoded and converted to ASCII. Schemes without an authority
    (`mailto:`) give "".
    """
    try:
        return URL(url).hostname
    except ValueError:
        return None


def has_https(url: str) -> bool:
    return url.lower().startswith("https://")


def contains_ip_address(url: str) -> bool:
    """True if a scheme is followed by a dotted IPv4-looking literal."""
    return IP_URL_RE.search(url) is not None


def is_excessive_length(url: str, limit: int = MAX_URL_LENGTH) -> bool:
    """Length is measured in UTF-16 code units, as browsers report it."""
    return len(url.encode("utf-16-le", "surrogatepass")) // 2 > limit


def has_suspicious_subdomains(url: str, lists: "ReferenceLists") -> bool:
    """
    True for hosts with more than three labels, or hosts carrying a brand
    token without being that brand's .com domain. Unparseable URLs count
    as suspicious.
    """
    hostname = parse_hostname(url)
    if hostname is None:
        return True

    if len(hostname.split(".")) > 3:
        return True

    return any(
        token in hostname and not hostname.endswith(token + ".com")
        for token in lists.brand_tokens
    )


def is_trusted_domain(url: str, lists: "ReferenceLists") -> bool:
    hostname = parse_hostname(url)
    if hostname is None:
        return False
    return any(
        hostname == domain or hostname.endswith("." + domain)
        for domain in lists.trusted_domains
    )


def is_url_shortener(url: str, lists: "ReferenceLists") -> bool:
    hostname = parse_hostname(url)
    if hostname is None:
        return False
    return hostname in lists.shorteners


def has_suspicious_pattern(url: str, lists: "ReferenceLists") -> bool:
    """Keyword match anywhere in the URL, unless the host is trusted."""
    matched = any(pattern.search(url) for pattern in lists.compiled_keywords())
    return matched and not is_trusted_domain(url, lists)
