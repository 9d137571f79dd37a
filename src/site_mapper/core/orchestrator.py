"""
Background crawl runs: discovery, diffing against the previous crawl, then screenshots.

One run per session. The strategy is fixed when the run starts:

- screenshot-only: replay the previous crawl's URLs and re-capture every one of them
- feedback-only: fetch only the pages that carry active feedback markers
- standard: breadth-first crawl from the root URL

With a site id and a non-full refresh mode, a standard run also reuses the previous
thumbnail of every page whose title and internal links are unchanged.
"""

import asyncio
from typing import Callable, Dict, List, Optional, Tuple

from ..config import MapperSettings
from ..interfaces.crawl import CachedPage, CrawlConfig, CrawlMode, PageInfo
from ..logging import setup_logger
from .crawl_cache import CrawlCache, diff_crawls, has_page_changed
from .crawler import CrawlCallbacks, SiteCrawler
from .events import (
    CrawlCompleteData,
    CrawlCompleteEvent,
    CrawlDiffEvent,
    CrawlErrorData,
    CrawlErrorEvent,
    CrawlProgressEvent,
    EventBroker,
    PageDiscoveredData,
    PageDiscoveredEvent,
    PageScreenshotData,
    PageScreenshotEvent,
)
from .models import SessionStatus
from .screenshot import ScreenshotEngine, full_page_url, thumbnail_url
from .session_manager import SessionManager

logger = setup_logger("site_mapper.core.orchestrator")

NO_PREVIOUS_CRAWL = "No previous crawl data found for this site"
NO_FEEDBACK_PAGES = "No pages with active feedback markers found"


class CrawlOrchestrator:
    """Starts crawl runs as background tasks and drives each one to a terminal state."""

    def __init__(
        self,
        settings: MapperSettings,
        sessions: SessionManager,
        events: EventBroker,
        screenshots: ScreenshotEngine,
        cache: CrawlCache,
        crawler_factory: Optional[Callable[[], SiteCrawler]] = None,
    ):
        self.settings = settings
        self.sessions = sessions
        self.events = events
        self.screenshots = screenshots
        self.cache = cache
        self._crawler_factory = crawler_factory or (lambda: SiteCrawler(settings))
        self._runs: Dict[str, asyncio.Task] = {}

    @property
    def active_runs(self) -> int:
        return len(self._runs)

    def start(self, config: CrawlConfig) -> Tuple[str, bool]:
        """Schedule a run for ``config``.

        Returns ``(session_id, created)``; an active session for the same root URL is
        handed back instead of starting a second crawl.
        """
        existing = self.sessions.find_active_session(config.url)
        if existing is not None:
            logger.info(f"Reusing active session {existing.id} for {config.url}")
            return existing.id, False

        session = self.sessions.create_session(config)
        task = asyncio.create_task(self.run(session.id), name=f"crawl-{session.id}")
        self._runs[session.id] = task
        task.add_done_callback(lambda _: self._runs.pop(session.id, None))
        return session.id, True

    async def run(self, session_id: str) -> None:
        """Execute one run; never raises except for task cancellation."""
        try:
            await self._run(session_id)
        except asyncio.CancelledError:
            self.sessions.cancel_session(session_id)
            raise
        except Exception as e:
            logger.exception(f"Crawl run {session_id} failed")
            self._fail(session_id, str(e) or "Unknown error")

    async def shutdown(self) -> None:
        """Cancel outstanding runs and wait for them to unwind."""
        runs = list(self._runs.items())
        for session_id, task in runs:
            self.sessions.cancel_session(session_id)
            task.cancel()
        tasks = [task for _, task in runs]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} crawl runs on shutdown")

    async def _run(self, session_id: str) -> None:
        session = self.sessions.get_session(session_id)
        if session is None:
            logger.warning(f"Session {session_id} vanished before its run started")
            return
        config = session.config
        callbacks = self._callbacks(session_id)
        previous: Dict[str, CachedPage] = {}
        recapture = False

        if config.crawl_mode == CrawlMode.SCREENSHOT_ONLY and config.site_id:
            urls = await self.cache.load_previous_urls(config.site_id)
            if not urls:
                self._fail(session_id, NO_PREVIOUS_CRAWL)
                return
            pages = self._replay(urls, callbacks)
            recapture = True
        elif config.crawl_mode == CrawlMode.FEEDBACK_ONLY and config.site_id:
            urls = await self.cache.load_active_feedback_urls(config.site_id)
            if not urls:
                self._fail(session_id, NO_FEEDBACK_PAGES)
                return
            logger.info(f"Feedback-only run {session_id} over {len(urls)} pages")
            pages = await self._crawler_factory().crawl_urls(config, urls, callbacks)
        else:
            if config.crawl_mode != CrawlMode.STANDARD:
                logger.warning(f"{config.crawl_mode.value} run {session_id} has no site id, crawling in full")
            if config.uses_smart_reuse:
                previous = await self.cache.load_previous_graph(config.site_id)
            pages = await self._crawler_factory().crawl(config, callbacks)

        if self.sessions.is_cancelled(session_id):
            logger.info(f"Run {session_id} cancelled after discovery")
            return

        if previous:
            diff = diff_crawls(pages, previous)
            if not diff.is_empty:
                logger.info(
                    f"Run {session_id} diff: {len(diff.new_pages)} new, "
                    f"{len(diff.modified_pages)} modified, {len(diff.deleted_pages)} deleted"
                )
                self.events.publish(session_id, CrawlDiffEvent(data=diff))

        self.sessions.set_status(session_id, SessionStatus.SCREENSHOTTING)
        await self.screenshots.initialize()

        for url, page in pages.items():
            if self.sessions.is_cancelled(session_id):
                break
            reused = self._reusable_thumbnail(page, previous.get(url))
            if reused:
                logger.debug(f"Reusing thumbnail for unchanged page {url}")
                self._record_screenshot(session_id, url, reused)
            else:
                await self._capture(session_id, url, config, recapture)
            self._publish_progress(session_id)

        if self.sessions.is_cancelled(session_id):
            logger.info(f"Run {session_id} cancelled during screenshots")
            return

        self.sessions.set_status(session_id, SessionStatus.COMPLETE)
        finished = self.sessions.get_session(session_id)
        duration = finished.duration_ms if finished else 0
        self.events.publish(
            session_id,
            CrawlCompleteEvent(data=CrawlCompleteData(total_pages=len(pages), duration=duration)),
        )

    def _callbacks(self, session_id: str) -> CrawlCallbacks:
        def on_page_discovered(page: PageInfo) -> None:
            if not self.sessions.add_page(session_id, page):
                return
            self.events.publish(session_id, PageDiscoveredEvent(data=PageDiscoveredData.from_page(page)))
            self._publish_progress(session_id)

        def on_error(url: str, message: str) -> None:
            self.sessions.add_error(session_id, f"{url}: {message}")
            self.events.publish(session_id, CrawlErrorEvent(data=CrawlErrorData(message=message, url=url)))

        return CrawlCallbacks(
            on_page_discovered=on_page_discovered,
            on_error=on_error,
            should_continue=lambda: not self.sessions.is_cancelled(session_id),
        )

    @staticmethod
    def _replay(urls: List[str], callbacks: CrawlCallbacks) -> Dict[str, PageInfo]:
        """Report previously crawled URLs as root-level pages without fetching them."""
        pages: Dict[str, PageInfo] = {}
        for url in urls:
            if not callbacks.should_continue():
                break
            page = PageInfo(url=url, title=url, depth=0)
            pages[url] = page
            callbacks.on_page_discovered(page)
        return pages

    @staticmethod
    def _reusable_thumbnail(page: PageInfo, cached: Optional[CachedPage]) -> Optional[str]:
        if cached is None or not cached.thumbnail_url:
            return None
        if has_page_changed(page, cached):
            return None
        return cached.thumbnail_url

    async def _capture(self, session_id: str, url: str, config: CrawlConfig, recapture: bool) -> None:
        if recapture:
            await self.screenshots.delete_by_urls([url])
        result = await self.screenshots.take_screenshot(url, http_credentials=config.http_credentials)
        if result.success:
            self._record_screenshot(
                session_id,
                url,
                thumbnail_url(result.thumbnail_filename),
                full_page_url(result.full_page_filename),
            )
        else:
            self.sessions.add_error(session_id, f"{url}: {result.error}")

    def _record_screenshot(
        self,
        session_id: str,
        url: str,
        thumb_url: str,
        full_url: Optional[str] = None,
    ) -> None:
        if self.sessions.add_screenshot(session_id, url, thumb_url, full_url):
            self.events.publish(
                session_id,
                PageScreenshotEvent(data=PageScreenshotData(url=url, thumbnail_url=thumb_url)),
            )

    def _publish_progress(self, session_id: str) -> None:
        self.events.publish(session_id, CrawlProgressEvent(data=self.sessions.get_progress(session_id)))

    def _fail(self, session_id: str, message: str) -> None:
        logger.error(f"Run {session_id} failed: {message}")
        self.sessions.add_error(session_id, message)
        self.sessions.set_status(session_id, SessionStatus.ERROR)
        self.events.publish(session_id, CrawlErrorEvent(data=CrawlErrorData(message=message)))
