"""
URL utilities for crawl bookkeeping.

These utilities provide:
- Content-addressed keys for screenshot files
- Canonical URLs for frontier deduplication
- Link resolution and classification
- Glob path matching for exclude patterns
"""

import hashlib
import re
from typing import Iterable, List, Optional, Set
from urllib.parse import urljoin, urlparse, ParseResult

HASH_LENGTH = 16

_NON_NAVIGABLE_PREFIXES = ("javascript:", "mailto:", "tel:", "#", "data:")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def url_hash(url: str) -> str:
    """
    Derive the screenshot cache key for a URL.

    Example:
        >>> len(url_hash("https://example.com/"))
        16
    """
    return hashlib.md5(url.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def _host(parsed: ParseResult) -> str:
    """Lowercased host with a non-default port, without user info."""
    host = (parsed.hostname or "").lower()
    try:
        port = parsed.port
    except ValueError:
        port = None
    if port and port != _DEFAULT_PORTS.get(parsed.scheme):
        return f"{host}:{port}"
    return host


def canonical_url(url: str) -> str:
    """
    Strip query string and fragment, keeping scheme, host and path.

    Returns the input unchanged when it cannot be parsed as an absolute URL.

    Example:
        >>> canonical_url("https://Site.test/a?ref=1#top")
        'https://site.test/a'
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{_host(parsed)}{parsed.path or '/'}"


def is_http_url(url: Optional[str]) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def is_navigable_href(href: Optional[str]) -> bool:
    """Return False for empty hrefs and script, mail, phone, fragment or data links."""
    if not href:
        return False
    return not href.strip().lower().startswith(_NON_NAVIGABLE_PREFIXES)


def resolve_href(href: str, base_url: str) -> Optional[str]:
    """Resolve an href against the page URL; None unless the result is http(s)."""
    try:
        resolved = urljoin(base_url, href.strip())
    except ValueError:
        return None
    return resolved if is_http_url(resolved) else None


def same_host(url: str, base_host: str) -> bool:
    """
    Check if a URL is served from the given host.

    Example:
        >>> same_host("https://site.test/about", "site.test")
        True
    """
    try:
        return _host(urlparse(url)) == base_host
    except ValueError:
        return False


def host_of(url: str) -> str:
    """Host (with non-default port) of an absolute URL."""
    return _host(urlparse(url))


def matches_path_pattern(pathname: str, pattern: str) -> bool:
    """
    Match a pathname against a glob where only ``*`` is special.

    Example:
        >>> matches_path_pattern("/blog/2024/post", "/blog/*")
        True
    """
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, pathname) is not None


def dedupe_urls_preserve_order(urls: Iterable[str]) -> List[str]:
    """
    Remove duplicate URLs while preserving their original order.

    Example:
        >>> dedupe_urls_preserve_order(["a", "b", "a", "c", "b"])
        ['a', 'b', 'c']
    """
    seen: Set[str] = set()
    result: List[str] = []

    for url in urls:
        if url not in seen:
            seen.add(url)
            result.append(url)

    return result
