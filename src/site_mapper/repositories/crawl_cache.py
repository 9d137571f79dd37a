"""
Repository for previous crawl snapshots and feedback marker URLs.
"""

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select

from ..logging import setup_logger
from ..models.marker import ACTIVE_MARKER_STATUSES, Marker
from ..models.site_crawl_cache import SiteCrawlCache
from .base import BaseRepository

logger = setup_logger("site_mapper.repositories.crawl_cache")


class CrawlCacheRepository(BaseRepository):
    """Reads ``site_crawl_cache`` nodes (Redis cached) and ``markers`` page URLs."""

    def _get_prefix(self) -> str:
        return "site_crawl_cache"

    async def get_site_nodes(self, site_id: str) -> Optional[List[Dict[str, Any]]]:
        """Nodes of the last sitemap saved for ``site_id``; None when there is none."""
        cached = await self._cache_get(site_id)
        if cached is not None:
            logger.debug(f"Crawl cache for site {site_id} served from Redis")
            return cached.get("nodes") or []

        async with self.db.get_session() as session:
            result = await session.execute(
                select(SiteCrawlCache).where(SiteCrawlCache.site_id == site_id)
            )
            row = result.scalar_one_or_none()

        if row is None:
            return None
        await self._cache_set(site_id, row.to_redis_data())
        return row.nodes or []

    async def get_marker_page_urls(
        self,
        site_id: str,
        statuses: Sequence[str] = ACTIVE_MARKER_STATUSES,
    ) -> List[str]:
        """Page URLs of markers on ``site_id`` whose status is in ``statuses`` (may repeat)."""
        async with self.db.get_session() as session:
            result = await session.execute(
                select(Marker.page_url).where(
                    Marker.site_id == site_id,
                    Marker.status.in_(list(statuses)),
                )
            )
            return [url for url in result.scalars().all() if url]
