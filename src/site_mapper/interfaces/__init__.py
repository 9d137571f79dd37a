"""
Shared API interfaces (DTOs) for the site mapper.
"""

from .crawl import (
    CrawlMode,
    RefreshMode,
    CrawlConfig,
    PageInfo,
    ScreenshotResult,
    CrawlProgress,
    CrawlDiff,
    CachedPage,
)

__all__ = [
    "CrawlMode",
    "RefreshMode",
    "CrawlConfig",
    "PageInfo",
    "ScreenshotResult",
    "CrawlProgress",
    "CrawlDiff",
    "CachedPage",
]
