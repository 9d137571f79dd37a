"""
Previous-crawl snapshots and the page diff between two crawls of one site.

Reads are best-effort: a missing or failing backend yields empty results so a crawl
can always fall back to a fresh run.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..interfaces.crawl import CachedPage, CrawlDiff, PageInfo
from ..logging import setup_logger
from ..repositories.crawl_cache import CrawlCacheRepository
from ..utils.url_utils import dedupe_urls_preserve_order

logger = setup_logger("site_mapper.core.crawl_cache")


def has_page_changed(current: PageInfo, previous: CachedPage) -> bool:
    """True when the title differs or the internal links differ as a set."""
    if current.title != previous.title:
        return True
    return set(current.internal_links) != set(previous.internal_links)


def diff_crawls(current_pages: Mapping[str, PageInfo], previous: Mapping[str, CachedPage]) -> CrawlDiff:
    """Classify URLs as new, modified or deleted relative to ``previous``.

    Unchanged pages appear in no list. Lists follow the iteration order of their source map.
    """
    new_pages: List[str] = []
    modified_pages: List[str] = []
    for url, page in current_pages.items():
        cached = previous.get(url)
        if cached is None:
            new_pages.append(url)
        elif has_page_changed(page, cached):
            modified_pages.append(url)

    deleted_pages = [url for url in previous if url not in current_pages]
    return CrawlDiff(new_pages=new_pages, deleted_pages=deleted_pages, modified_pages=modified_pages)


def _parse_nodes(nodes: Iterable[Any]) -> Dict[str, CachedPage]:
    pages: Dict[str, CachedPage] = {}
    for node in nodes:
        data = node.get("data") if isinstance(node, dict) else None
        if not isinstance(data, dict) or not data.get("url"):
            continue
        try:
            pages[data["url"]] = CachedPage.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Skipping malformed cached node {data.get('url')}: {e}")
    return pages


class CrawlCache:
    """Read side of the persistent crawl store."""

    def __init__(self, repository: Optional[CrawlCacheRepository] = None):
        self.repository = repository

    async def load_previous_graph(self, site_id: str) -> Dict[str, CachedPage]:
        nodes = await self._load_nodes(site_id)
        pages = _parse_nodes(nodes)
        logger.info(f"Loaded {len(pages)} cached pages for site {site_id}")
        return pages

    async def load_previous_urls(self, site_id: str) -> List[str]:
        nodes = await self._load_nodes(site_id)
        urls = [
            node["data"]["url"]
            for node in nodes
            if isinstance(node, dict) and isinstance(node.get("data"), dict) and node["data"].get("url")
        ]
        return dedupe_urls_preserve_order(urls)

    async def load_active_feedback_urls(self, site_id: str) -> List[str]:
        """Distinct page URLs carrying open or resolved feedback markers."""
        if self.repository is None:
            logger.debug(f"No crawl cache backend configured, no feedback for site {site_id}")
            return []
        try:
            urls = await self.repository.get_marker_page_urls(site_id)
        except Exception as e:
            logger.warning(f"Crawl cache backend unavailable, ignoring feedback for site {site_id}: {e}")
            return []
        return dedupe_urls_preserve_order(urls)

    async def _load_nodes(self, site_id: str) -> List[Any]:
        if self.repository is None:
            logger.debug(f"No crawl cache backend configured, no previous crawl for site {site_id}")
            return []
        try:
            nodes = await self.repository.get_site_nodes(site_id)
        except Exception as e:
            logger.warning(f"Crawl cache backend unavailable for site {site_id}: {e}")
            return []
        if not nodes:
            logger.debug(f"No previous crawl for site {site_id}")
            return []
        return list(nodes)
