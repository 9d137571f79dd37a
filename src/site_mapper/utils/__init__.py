"""
Utility helpers shared across the site mapper.
"""

from .url_utils import (
    url_hash,
    canonical_url,
    is_http_url,
    is_navigable_href,
    resolve_href,
    same_host,
    host_of,
    matches_path_pattern,
    dedupe_urls_preserve_order,
)

__all__ = [
    "url_hash",
    "canonical_url",
    "is_http_url",
    "is_navigable_href",
    "resolve_href",
    "same_host",
    "host_of",
    "matches_path_pattern",
    "dedupe_urls_preserve_order",
]
