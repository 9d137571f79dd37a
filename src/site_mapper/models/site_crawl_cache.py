"""
Snapshot of the last crawl of a site, written by the client after a run.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, String, func

from .base import Base


class SiteCrawlCache(Base):
    """One row per site: the node and edge lists of its latest sitemap."""
    __tablename__ = "site_crawl_cache"

    site_id = Column(String, primary_key=True)
    nodes = Column(JSON, nullable=False, default=list)  # [{"data": {"url", "title", "internalLinks", "thumbnailUrl"}}]
    edges = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_redis_data(self) -> Dict[str, Any]:
        return {"site_id": self.site_id, "nodes": self.nodes or []}
