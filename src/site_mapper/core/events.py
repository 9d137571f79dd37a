"""
Crawl events and the broker that fans them out to live clients.

Every event is a pydantic model with a literal ``type`` tag; ``CrawlEvent`` is the
closed union of all of them. Transports (WebSocket, log sink, tests) subscribe to the
broker and never touch crawl logic.
"""

import asyncio
from collections import defaultdict
from typing import Annotated, Callable, Dict, List, Literal, Optional, Set, Union

from pydantic import BaseModel, Field

from ..interfaces.crawl import CamelModel, CrawlDiff, CrawlProgress, PageInfo
from ..logging import setup_logger

logger = setup_logger("site_mapper.core.events")


class PageDiscoveredData(CamelModel):
    url: str
    title: str
    depth: int
    parent_url: Optional[str] = None
    links: List[str] = Field(default_factory=list)
    internal_links: List[str] = Field(default_factory=list)
    external_links: List[str] = Field(default_factory=list)

    @classmethod
    def from_page(cls, page: PageInfo) -> "PageDiscoveredData":
        return cls(
            url=page.url,
            title=page.title,
            depth=page.depth,
            parent_url=page.parent_url,
            links=list(page.links),
            internal_links=list(page.internal_links),
            external_links=list(page.external_links),
        )


class PageScreenshotData(CamelModel):
    url: str
    thumbnail_url: str


class CrawlCompleteData(CamelModel):
    total_pages: int
    duration: int = Field(..., description="Wall-clock run time in milliseconds")


class CrawlErrorData(CamelModel):
    message: str
    url: Optional[str] = None


class PageDiscoveredEvent(BaseModel):
    type: Literal["page:discovered"] = "page:discovered"
    data: PageDiscoveredData


class PageScreenshotEvent(BaseModel):
    type: Literal["page:screenshot"] = "page:screenshot"
    data: PageScreenshotData


class CrawlProgressEvent(BaseModel):
    type: Literal["crawl:progress"] = "crawl:progress"
    data: CrawlProgress


class CrawlDiffEvent(BaseModel):
    type: Literal["crawl:diff"] = "crawl:diff"
    data: CrawlDiff


class CrawlCompleteEvent(BaseModel):
    type: Literal["crawl:complete"] = "crawl:complete"
    data: CrawlCompleteData


class CrawlErrorEvent(BaseModel):
    type: Literal["crawl:error"] = "crawl:error"
    data: CrawlErrorData


CrawlEvent = Annotated[
    Union[
        PageDiscoveredEvent,
        PageScreenshotEvent,
        CrawlProgressEvent,
        CrawlDiffEvent,
        CrawlCompleteEvent,
        CrawlErrorEvent,
    ],
    Field(discriminator="type"),
]

EventObserver = Callable[[str, BaseModel], None]


def event_payload(event: BaseModel) -> dict:
    """Wire form of an event: ``{"type": ..., "data": {...camelCase...}}``."""
    return event.model_dump(mode="json", by_alias=True)


class EventBroker:
    """Per-session fan-out of crawl events.

    Subscribers get an unbounded ``asyncio.Queue``; observers are plain callables invoked
    for every session. Publishing never raises into the caller.
    """

    def __init__(self):
        self._queues: Dict[str, Set[asyncio.Queue]] = defaultdict(set)
        self._observers: List[EventObserver] = []

    def subscribe(self, session_id: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[session_id].add(queue)
        logger.debug(f"Subscriber joined session {session_id}")
        return queue

    def unsubscribe(self, session_id: str, queue: asyncio.Queue) -> None:
        queues = self._queues.get(session_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._queues[session_id]
        logger.debug(f"Subscriber left session {session_id}")

    def has_subscribers(self, session_id: str) -> bool:
        return bool(self._queues.get(session_id))

    def add_observer(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def publish(self, session_id: str, event: BaseModel) -> None:
        logger.debug(f"[{session_id}] {event.type}")
        for queue in list(self._queues.get(session_id, ())):
            queue.put_nowait(event)
        for observer in list(self._observers):
            try:
                observer(session_id, event)
            except Exception as e:
                logger.error(f"Event observer failed for {event.type}: {e}")
