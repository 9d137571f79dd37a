"""
SQLAlchemy models read by the site mapper.
"""

from .base import Base
from .site_crawl_cache import SiteCrawlCache
from .marker import Marker, ACTIVE_MARKER_STATUSES

__all__ = ["Base", "SiteCrawlCache", "Marker", "ACTIVE_MARKER_STATUSES"]
