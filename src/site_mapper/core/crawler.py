"""
Breadth-first site crawler driven by a headless browser.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import urlparse

from playwright.async_api import BrowserContext

from ..config import MapperSettings
from ..interfaces.crawl import CrawlConfig, PageInfo
from ..logging import setup_logger
from ..utils.url_utils import (
    canonical_url,
    dedupe_urls_preserve_order,
    host_of,
    is_http_url,
    is_navigable_href,
    matches_path_pattern,
    resolve_href,
    same_host,
)
from .browser import BrowserManager, is_timeout_error

logger = setup_logger("site_mapper.core.crawler")

_ANCHOR_HREFS_JS = "els => els.map(e => e.getAttribute('href'))"


@dataclass
class CrawlCallbacks:
    on_page_discovered: Callable[[PageInfo], None]
    on_error: Callable[[str, str], None]
    should_continue: Callable[[], bool]


@dataclass
class FrontierItem:
    url: str
    depth: int
    parent_url: Optional[str]


def classify_links(hrefs: Iterable[Optional[str]], current_url: str, base_host: str) -> Tuple[List[str], List[str], List[str]]:
    """Split raw hrefs into (all links, internal links, external links).

    Internal links are canonicalized (query and fragment dropped) and deduplicated;
    external links are deduplicated by full URL.
    """
    links: List[str] = []
    internal: List[str] = []
    external: List[str] = []
    for href in hrefs:
        if not is_navigable_href(href):
            continue
        resolved = resolve_href(href, current_url)
        if resolved is None:
            continue
        links.append(resolved)
        if same_host(resolved, base_host):
            internal.append(canonical_url(resolved))
        else:
            external.append(resolved)
    return links, dedupe_urls_preserve_order(internal), dedupe_urls_preserve_order(external)


def is_excluded(url: str, patterns: Iterable[str]) -> bool:
    path = urlparse(url).path or "/"
    return any(matches_path_pattern(path, p) for p in patterns if p)


class SiteCrawler:
    """Crawls one site per instance; visited state is not shared between runs."""

    def __init__(
        self,
        settings: MapperSettings,
        browser_factory: Optional[Callable[[], BrowserManager]] = None,
    ):
        self.settings = settings
        self._browser_factory = browser_factory or (lambda: BrowserManager(headless=settings.browser_headless))
        self.visited: Set[str] = set()
        self.skipped: Set[str] = set()

    async def crawl(self, config: CrawlConfig, callbacks: CrawlCallbacks) -> Dict[str, PageInfo]:
        """Breadth-first crawl from ``config.url`` within depth and page bounds."""
        pages: Dict[str, PageInfo] = {}
        if not is_http_url(config.url):
            callbacks.on_error(config.url, "Invalid URL")
            return pages

        base_host = host_of(config.url)
        root = canonical_url(config.url)
        queue: Deque[FrontierItem] = deque([FrontierItem(root, 0, None)])
        seeded = {root}
        for include_url in config.include_urls:
            normalized = canonical_url(include_url)
            if normalized not in seeded:
                seeded.add(normalized)
                queue.append(FrontierItem(normalized, 0, None))

        browser = self._browser_factory()
        context = None
        try:
            await browser.start()
            context = await browser.new_context(http_credentials=config.http_credentials)
            logger.info(f"Crawl started at {root} max_depth={config.max_depth} max_pages={config.max_pages}")

            while queue and len(pages) < config.max_pages:
                if not callbacks.should_continue():
                    logger.info(f"Crawl of {root} stopped by caller")
                    break

                item = queue.popleft()
                if item.url in self.visited:
                    continue
                self.visited.add(item.url)
                if item.depth > config.max_depth:
                    self.skipped.add(item.url)
                    continue

                page = await self._fetch(context, item, base_host, callbacks)
                if page is None:
                    await self._pause()
                    continue

                pages[item.url] = page
                callbacks.on_page_discovered(page)

                if is_excluded(item.url, config.exclude_patterns):
                    logger.debug(f"Not following links of excluded page {item.url}")
                elif item.depth + 1 <= config.max_depth:
                    for link in page.internal_links:
                        if link not in self.visited:
                            queue.append(FrontierItem(link, item.depth + 1, item.url))

                await self._pause()
        finally:
            await self._teardown(browser, context)

        logger.info(f"Crawl of {root} finished: {len(pages)} pages, {len(self.skipped)} skipped")
        return pages

    async def crawl_urls(self, config: CrawlConfig, urls: List[str], callbacks: CrawlCallbacks) -> Dict[str, PageInfo]:
        """Fetch exactly ``urls`` at depth 0 without following links."""
        pages: Dict[str, PageInfo] = {}
        base_host = host_of(config.url)
        targets = dedupe_urls_preserve_order(canonical_url(u) for u in urls)

        browser = self._browser_factory()
        context = None
        try:
            await browser.start()
            context = await browser.new_context(http_credentials=config.http_credentials)
            for url in targets:
                if not callbacks.should_continue():
                    break
                if url in self.visited:
                    continue
                self.visited.add(url)
                page = await self._fetch(context, FrontierItem(url, 0, None), base_host, callbacks)
                if page is not None:
                    pages[url] = page
                    callbacks.on_page_discovered(page)
                await self._pause()
        finally:
            await self._teardown(browser, context)
        return pages

    async def _fetch(
        self,
        context: BrowserContext,
        item: FrontierItem,
        base_host: str,
        callbacks: CrawlCallbacks,
    ) -> Optional[PageInfo]:
        try:
            page = await self.fetch_page(context, item.url, item.depth, item.parent_url, base_host)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.warning(f"Failed to crawl {item.url}: {message}")
            self.skipped.add(item.url)
            callbacks.on_error(item.url, message)
            return None
        if page is None:
            self.skipped.add(item.url)
        return page

    async def fetch_page(
        self,
        context: BrowserContext,
        url: str,
        depth: int,
        parent_url: Optional[str],
        base_host: str,
    ) -> Optional[PageInfo]:
        """Render ``url`` and extract its links.

        Returns None for soft-404 pages without content and for timeouts below the root;
        other navigation errors propagate.
        """
        page = None
        try:
            page = await context.new_page()
            await page.set_viewport_size(
                {"width": self.settings.viewport_width, "height": self.settings.viewport_height}
            )
            response = await page.goto(url, wait_until="networkidle", timeout=self.settings.navigation_timeout_ms)
            status_code = response.status if response else 0

            if 400 <= status_code < 600:
                body_text = await page.text_content("body") or ""
                if len(body_text.strip()) <= self.settings.spa_min_content_length:
                    logger.info(f"Skipping {url} - HTTP {status_code}")
                    return None

            await asyncio.sleep(self.settings.crawl_settle_ms / 1000)

            title = await page.title() or url
            hrefs = await page.eval_on_selector_all("a[href]", _ANCHOR_HREFS_JS)
            links, internal_links, external_links = classify_links(hrefs, page.url, base_host)

            return PageInfo(
                url=url,
                title=title,
                depth=depth,
                parent_url=parent_url,
                links=links,
                internal_links=internal_links,
                external_links=external_links,
                status_code=status_code,
            )
        except Exception as e:
            if depth > 0 and is_timeout_error(e):
                logger.info(f"Timeout on {url}, skipping")
                return None
            raise
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"Page close error for {url}: {e}")

    async def _pause(self) -> None:
        if self.settings.crawl_delay_ms:
            await asyncio.sleep(self.settings.crawl_delay_ms / 1000)

    async def _teardown(self, browser: BrowserManager, context: Optional[BrowserContext]) -> None:
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context close error: {e}")
        await browser.close()
