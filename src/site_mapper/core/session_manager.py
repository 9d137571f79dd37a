"""
In-memory store of crawl sessions.

All session mutation goes through these synchronous methods. Readers get copies, so a
snapshot taken before an ``await`` never changes under them; re-fetch after suspending.
"""

import uuid
from dataclasses import replace
from datetime import timedelta
from typing import Dict, List, Optional

from ..interfaces.crawl import CrawlConfig, CrawlProgress, PageInfo
from ..logging import setup_logger
from .models import CrawlSession, ScreenshotInfo, SessionStatus, utcnow

logger = setup_logger("site_mapper.core.session_manager")


class SessionManager:
    """Keyed store and state machine for crawl sessions.

    ``crawling -> screenshotting -> {complete | error | cancelled}``. Terminal states are
    final: later status changes, pages and screenshots are ignored.
    """

    def __init__(self):
        self._sessions: Dict[str, CrawlSession] = {}

    def create_session(self, config: CrawlConfig) -> CrawlSession:
        session = CrawlSession(id=str(uuid.uuid4()), config=config)
        self._sessions[session.id] = session
        logger.info(f"Created session {session.id} for {config.url}")
        return self._copy(session)

    def get_session(self, session_id: str) -> Optional[CrawlSession]:
        session = self._sessions.get(session_id)
        return self._copy(session) if session else None

    def find_active_session(self, url: str) -> Optional[CrawlSession]:
        """Return a non-terminal session already crawling ``url``, if any."""
        for session in self._sessions.values():
            if session.config.url == url and not session.status.is_terminal:
                return self._copy(session)
        return None

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def add_page(self, session_id: str, page: PageInfo) -> bool:
        session = self._writable(session_id)
        if session is None:
            return False
        session.pages[page.url] = page
        return True

    def add_screenshot(
        self,
        session_id: str,
        url: str,
        thumbnail_url: str,
        full_page_url: Optional[str] = None,
    ) -> bool:
        session = self._writable(session_id)
        if session is None:
            return False
        if url not in session.pages:
            logger.warning(f"Ignoring screenshot for unknown page {url} in session {session_id}")
            return False
        session.screenshots[url] = ScreenshotInfo(thumbnail_url, full_page_url)
        return True

    def add_error(self, session_id: str, error: str) -> None:
        session = self._sessions.get(session_id)
        if session:
            session.errors.append(error)

    def set_status(self, session_id: str, status: SessionStatus) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        if session.status.is_terminal:
            logger.debug(f"Session {session_id} already {session.status.value}, ignoring {status.value}")
            return False
        session.status = status
        if status.is_terminal:
            session.completed_at = utcnow()
            logger.info(f"Session {session_id} finished with status {status.value}")
        return True

    def cancel_session(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            return
        session.cancelled = True
        self.set_status(session_id, SessionStatus.CANCELLED)

    def is_cancelled(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        return bool(session and session.cancelled)

    def get_progress(self, session_id: str) -> CrawlProgress:
        session = self._sessions.get(session_id)
        if session is None:
            return CrawlProgress()
        # found and crawled both count fetched pages; kept separate for clients
        return CrawlProgress(
            found=len(session.pages),
            crawled=len(session.pages),
            screenshotted=len(session.screenshots),
        )

    def get_all_pages(self, session_id: str) -> List[PageInfo]:
        session = self._sessions.get(session_id)
        return list(session.pages.values()) if session else []

    def delete_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def reap_expired(self, ttl_seconds: int) -> int:
        """Delete terminal sessions that completed more than ``ttl_seconds`` ago."""
        cutoff = utcnow() - timedelta(seconds=ttl_seconds)
        expired = [
            sid for sid, s in self._sessions.items()
            if s.status.is_terminal and s.completed_at and s.completed_at < cutoff
        ]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info(f"Reaped {len(expired)} expired sessions")
        return len(expired)

    def _writable(self, session_id: str) -> Optional[CrawlSession]:
        session = self._sessions.get(session_id)
        if session is None or session.cancelled or session.status.is_terminal:
            return None
        return session

    @staticmethod
    def _copy(session: CrawlSession) -> CrawlSession:
        return replace(
            session,
            pages=dict(session.pages),
            screenshots=dict(session.screenshots),
            errors=list(session.errors),
        )
