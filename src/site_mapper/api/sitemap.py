"""
Node/edge graph view of a crawl session.
"""

from typing import Dict, Iterable, List, Optional

from ..core.models import CrawlSession
from ..interfaces.crawl import PageInfo
from .models import SitemapEdge, SitemapEdgeData, SitemapNode, SitemapNodeData, SitemapResponse


class SitemapIndex:
    """Two-way mapping between page URLs and node ids, numbered in page order."""

    def __init__(self, urls: Iterable[str]):
        self._by_url: Dict[str, str] = {}
        self._by_id: Dict[str, str] = {}
        for url in urls:
            if url in self._by_url:
                continue
            node_id = f"node-{len(self._by_url) + 1}"
            self._by_url[url] = node_id
            self._by_id[node_id] = url

    def __len__(self) -> int:
        return len(self._by_url)

    def node_id(self, url: str) -> Optional[str]:
        return self._by_url.get(url)

    def url(self, node_id: str) -> Optional[str]:
        return self._by_id.get(node_id)


def build_sitemap(session: CrawlSession, pages: List[PageInfo]) -> SitemapResponse:
    """One node per page and one edge per distinct internal link between two pages."""
    index = SitemapIndex(page.url for page in pages)

    nodes: List[SitemapNode] = []
    for page in pages:
        screenshot = session.screenshots.get(page.url)
        nodes.append(
            SitemapNode(
                id=index.node_id(page.url),
                data=SitemapNodeData(
                    url=page.url,
                    title=page.title,
                    depth=page.depth,
                    thumbnail_url=screenshot.thumbnail_url if screenshot else None,
                    screenshot_status="ready" if screenshot else "pending",
                    links=list(page.links),
                    internal_links=list(page.internal_links),
                    external_links=list(page.external_links),
                ),
            )
        )

    edges: Dict[str, SitemapEdge] = {}
    for page in pages:
        source = index.node_id(page.url)
        for link in page.internal_links:
            target = index.node_id(link)
            if target is None or target == source:
                continue
            edge_id = f"edge-{source}-{target}"
            if edge_id not in edges:
                edges[edge_id] = SitemapEdge(
                    id=edge_id,
                    source=source,
                    target=target,
                    data=SitemapEdgeData(source_url=page.url, target_url=link),
                )

    return SitemapResponse(nodes=nodes, edges=list(edges.values()))
