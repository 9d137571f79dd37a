"""
Session state models for crawl runs.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from ..interfaces.crawl import CrawlConfig, PageInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    CRAWLING = "crawling"
    SCREENSHOTTING = "screenshotting"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETE, SessionStatus.ERROR, SessionStatus.CANCELLED)


@dataclass(frozen=True)
class ScreenshotInfo:
    thumbnail_url: str
    full_page_url: Optional[str] = None


@dataclass
class CrawlSession:
    """Mutable state of one crawl run. Only the SessionManager mutates it."""
    id: str
    config: CrawlConfig
    status: SessionStatus = SessionStatus.CRAWLING
    pages: Dict[str, PageInfo] = field(default_factory=dict)
    screenshots: Dict[str, ScreenshotInfo] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    cancelled: bool = False

    @property
    def duration_ms(self) -> int:
        end = self.completed_at or utcnow()
        return int((end - self.started_at).total_seconds() * 1000)
