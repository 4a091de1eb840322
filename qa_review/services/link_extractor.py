"""Link extraction service.

Pulls HTTP(S) URLs out of raw message text. No network access.
"""

import re
from typing import Final
from urllib.parse import urlparse

URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"https?://[^\s<>\"'{}|\\^`\[\]]+", flags=re.IGNORECASE
)
"""Pattern to match HTTP/HTTPS URLs up to whitespace or wrapping characters."""

TRAILING_PUNCTUATION: Final[str] = ",.;:!?)"
"""Sentence punctuation stripped from the end of a matched URL."""

WELL_FORMED_SCHEMES: Final[tuple[str, ...]] = ("http://", "https://")


def extract_urls(text: str) -> list[str]:
    """Extract distinct URLs from text, in order of first appearance.

    Args:
        text: Message text

    Returns:
        List of unique URLs (empty for empty text)

    Example:
        >>> extract_urls("Docs: https://docs.example.com/oauth. Also https://docs.example.com/oauth")
        ['https://docs.example.com/oauth']
    """
    if not text:
        return []

    seen: set[str] = set()
    urls: list[str] = []
    for match in URL_PATTERN.findall(text):
        url = match.rstrip(TRAILING_PUNCTUATION)
        # "(see https://x.com/a_(b))" keeps its balanced parenthesis
        if match.endswith(")") and url.count("(") > url.count(")"):
            url += ")"
        # Hostless tokens are kept so the link checks can flag them
        if url.lower() in WELL_FORMED_SCHEMES or url in seen:
            continue
        seen.add(url)
        urls.append(url)

    return urls


def is_well_formed_url(url: str) -> bool:
    """Check that a link token is a usable HTTP(S) URL.

    Args:
        url: Candidate link token

    Returns:
        True if the token starts with a recognized scheme, has a host and
        contains no whitespace

    Example:
        >>> is_well_formed_url("https://example.com/page")
        True
        >>> is_well_formed_url("www.example.com")
        False
        >>> is_well_formed_url("https://example.com/a page")
        False
    """
    if not url or any(char.isspace() for char in url):
        return False
    if not url.lower().startswith(WELL_FORMED_SCHEMES):
        return False
    return _has_host(url)


def _has_host(url: str) -> bool:
    try:
        return bool(urlparse(url).netloc)
    except ValueError:
        return False
