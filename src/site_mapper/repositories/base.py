"""
Base repository class for all repositories.
"""

from typing import TYPE_CHECKING, Any, Optional

from ..logging import setup_logger

if TYPE_CHECKING:
    from ..database.manager import DatabaseManager

logger = setup_logger("site_mapper.repositories.base")


class BaseRepository:
    """Base repository with PostgreSQL access and optional Redis read-through cache."""

    cache_ttl_seconds = 300

    def __init__(self, db: "DatabaseManager"):
        """Initialize repository with database manager."""
        self.db = db
        self.redis = db.redis_client if db.redis_client else None

    def _get_prefix(self) -> str:
        raise NotImplementedError

    def _cache_key(self, key: str) -> str:
        return f"{self._get_prefix()}:{key}"

    async def _cache_get(self, key: str) -> Optional[Any]:
        """Cached value or None; Redis errors are logged and treated as a miss."""
        if not self.redis:
            return None
        try:
            return await self.redis.get_json(self._cache_key(key))
        except Exception as e:
            logger.warning(f"Redis fetch failed for {key}: {str(e)}")
            return None

    async def _cache_set(self, key: str, value: Any) -> None:
        if not self.redis:
            return
        try:
            await self.redis.set_json(self._cache_key(key), value, ex=self.cache_ttl_seconds)
        except Exception as e:
            logger.warning(f"Redis cache update failed for {key}: {str(e)}")
