"""
Pydantic models for the site mapper API.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..interfaces.crawl import CamelModel, CrawlConfig, CrawlProgress


class StartCrawlResponse(CamelModel):
    """Acknowledgement returned before the crawl runs."""
    session_id: str = Field(..., description="Identifier of the crawl session")
    message: str = Field(default="Crawl started")


class SessionStatusBody(CamelModel):
    id: str
    config: CrawlConfig
    status: str
    progress: CrawlProgress
    started_at: datetime
    completed_at: Optional[datetime] = None
    error_count: int = 0


class SessionStatusResponse(CamelModel):
    session: SessionStatusBody


class CancelResponse(CamelModel):
    message: str = "Crawl cancelled"


class DeleteScreenshotsRequest(CamelModel):
    page_urls: List[str] = Field(
        default_factory=list,
        description="Page URLs whose cached screenshots should be removed",
        examples=[["https://example.com/about"]],
    )


class DeleteScreenshotsResponse(CamelModel):
    deleted: int


class Position(CamelModel):
    x: int = 0
    y: int = 0


class SitemapNodeData(CamelModel):
    url: str
    title: str
    depth: int
    thumbnail_url: Optional[str] = None
    screenshot_status: Literal["ready", "pending"] = "pending"
    links: List[str] = Field(default_factory=list)
    internal_links: List[str] = Field(default_factory=list)
    external_links: List[str] = Field(default_factory=list)


class SitemapNode(CamelModel):
    id: str
    type: str = "page"
    position: Position = Field(default_factory=Position)
    data: SitemapNodeData


class SitemapEdgeData(CamelModel):
    source_url: str
    target_url: str


class SitemapEdge(CamelModel):
    id: str
    source: str
    target: str
    type: str = "smoothstep"
    data: SitemapEdgeData


class SitemapResponse(CamelModel):
    nodes: List[SitemapNode] = Field(default_factory=list)
    edges: List[SitemapEdge] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    browser_ready: bool
    database: str
    sessions: int = 0
    active_runs: int = 0
