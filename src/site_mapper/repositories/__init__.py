"""
Read-only repositories over the persistent store.
"""

from .base import BaseRepository
from .crawl_cache import CrawlCacheRepository

__all__ = ["BaseRepository", "CrawlCacheRepository"]
