"""
Context manager for database operations.
"""

from typing import Optional

from ..config import DatabaseConfig
from ..logging import setup_logger
from ..repositories.crawl_cache import CrawlCacheRepository
from .manager import DatabaseManager

logger = setup_logger("site_mapper.database.context")


class DatabaseContext:
    """Context manager for database operations."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.db = DatabaseManager()
        self.config = config
        self.crawl_cache: Optional[CrawlCacheRepository] = None

    async def __aenter__(self) -> "DatabaseContext":
        """Enter the async context manager."""
        await self.db.init(config=self.config)
        self.crawl_cache = CrawlCacheRepository(self.db)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit the async context manager."""
        await self.db.cleanup()
        self.crawl_cache = None
        logger.debug("Database context closed")
