"""
Full-page and thumbnail screenshots with an on-disk, content-addressed cache.

Files live in ``screenshots_dir`` as ``<hash>.jpg`` (thumbnail) and ``<hash>_full.jpg``
(full page), where ``<hash>`` is ``url_hash(url)``.
"""

import asyncio
import io
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageOps

from ..config import MapperSettings
from ..interfaces.crawl import ScreenshotResult
from ..logging import setup_logger
from ..utils.url_utils import url_hash
from .browser import BrowserManager

logger = setup_logger("site_mapper.core.screenshot")


SCREENSHOTS_ROUTE = "/api/screenshots"


def thumbnail_filename(url: str) -> str:
    return f"{url_hash(url)}.jpg"


def full_page_filename(url: str) -> str:
    return f"{url_hash(url)}_full.jpg"


def thumbnail_url(filename: str) -> str:
    """Path under which the API serves a thumbnail file."""
    return f"{SCREENSHOTS_ROUTE}/{filename}"


def full_page_url(filename: str) -> str:
    return f"{SCREENSHOTS_ROUTE}/full/{filename}"


def make_thumbnail(image_bytes: bytes, size: Tuple[int, int], quality: int) -> bytes:
    """Scale to cover ``size`` and crop from the top of the page."""
    img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    thumb = ImageOps.fit(img, size, method=Image.LANCZOS, centering=(0.5, 0.0))
    buf = io.BytesIO()
    thumb.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()


class ScreenshotEngine:
    """Renders pages in one shared Chromium process, one capture at a time."""

    def __init__(self, settings: MapperSettings, browser: Optional[BrowserManager] = None):
        self.settings = settings
        self.output_dir = Path(settings.screenshots_dir)
        self._browser = browser or BrowserManager(headless=settings.browser_headless)
        self._capture_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._browser.is_running

    async def initialize(self) -> None:
        """Start the shared browser if needed; safe to call repeatedly."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        if not self._browser.is_running:
            await self._browser.start()

    def paths_for(self, url: str) -> Tuple[Path, Path]:
        return self.output_dir / thumbnail_filename(url), self.output_dir / full_page_filename(url)

    def is_cached(self, url: str) -> bool:
        thumb_path, full_path = self.paths_for(url)
        return thumb_path.is_file() and full_path.is_file()

    async def take_screenshot(self, url: str, http_credentials: Optional[dict] = None) -> ScreenshotResult:
        """Capture ``url`` unless both files are already on disk.

        Never raises: failures come back as ``success=False`` with the error message.
        """
        thumb_path, full_path = self.paths_for(url)
        if self.is_cached(url):
            logger.debug(f"Screenshot cache hit for {url}")
            return ScreenshotResult(
                url=url,
                thumbnail_filename=thumb_path.name,
                full_page_filename=full_path.name,
                success=True,
                cached=True,
            )

        async with self._capture_lock:
            context = None
            try:
                await self.initialize()
                context = await self._browser.new_context(
                    http_credentials=http_credentials,
                    viewport={"width": self.settings.viewport_width, "height": self.settings.viewport_height},
                )
                page = await context.new_page()
                await page.goto(url, wait_until="networkidle", timeout=self.settings.navigation_timeout_ms)
                await asyncio.sleep(self.settings.screenshot_settle_ms / 1000)

                img_bytes = await page.screenshot(
                    full_page=True,
                    type="jpeg",
                    quality=self.settings.full_page_quality,
                )
                with open(full_path, "wb") as f:
                    f.write(img_bytes)

                thumb = make_thumbnail(
                    img_bytes,
                    (self.settings.thumbnail_width, self.settings.thumbnail_height),
                    self.settings.thumbnail_quality,
                )
                with open(thumb_path, "wb") as f:
                    f.write(thumb)

                logger.debug(f"Screenshot saved for {url} -> {thumb_path.name}")
                return ScreenshotResult(
                    url=url,
                    thumbnail_filename=thumb_path.name,
                    full_page_filename=full_path.name,
                    success=True,
                )
            except Exception as e:
                message = str(e) or type(e).__name__
                logger.error(f"Screenshot failed for {url}: {message}")
                return ScreenshotResult(url=url, success=False, error=message)
            finally:
                if context is not None:
                    try:
                        await context.close()
                    except Exception as e:
                        logger.debug(f"Screenshot context close error for {url}: {e}")

    async def take_screenshot_batch(self, urls: List[str], http_credentials: Optional[dict] = None) -> List[ScreenshotResult]:
        """Capture ``urls`` sequentially with a short pause between them."""
        results: List[ScreenshotResult] = []
        for index, url in enumerate(urls):
            results.append(await self.take_screenshot(url, http_credentials=http_credentials))
            if index < len(urls) - 1 and self.settings.screenshot_batch_delay_ms:
                await asyncio.sleep(self.settings.screenshot_batch_delay_ms / 1000)
        return results

    async def delete_by_urls(self, urls: List[str]) -> int:
        """Remove cached files for ``urls``; returns how many URLs had files removed."""
        deleted = 0
        for url in urls:
            removed_any = False
            for path in self.paths_for(url):
                try:
                    if path.is_file():
                        path.unlink()
                        removed_any = True
                except OSError as e:
                    logger.warning(f"Failed to delete screenshot {path}: {e}")
            if removed_any:
                deleted += 1
        logger.info(f"Deleted screenshots for {deleted}/{len(urls)} URLs")
        return deleted

    async def close(self) -> None:
        await self._browser.close()
