"""
Headless Chromium lifecycle shared by the crawler and the screenshot engine.
"""

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..logging import setup_logger

logger = setup_logger("site_mapper.core.browser")

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage", "--ignore-certificate-errors"]


def is_timeout_error(error: BaseException) -> bool:
    """True for Playwright timeouts and errors whose message mentions a timeout."""
    return isinstance(error, PlaywrightTimeoutError) or "timeout" in str(error).lower()


class BrowserManager:
    """Owns one Playwright driver and one Chromium process."""

    def __init__(self, headless: bool = True):
        self.headless = headless
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None

    @property
    def is_running(self) -> bool:
        return self.browser is not None

    async def start(self) -> Browser:
        """Launch Chromium if it is not running yet."""
        if self.browser is not None:
            return self.browser
        self._playwright = await async_playwright().start()
        try:
            self.browser = await self._playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info(f"Chromium launched headless={self.headless}")
        return self.browser

    async def new_context(
        self,
        http_credentials: Optional[dict] = None,
        viewport: Optional[dict] = None,
    ) -> BrowserContext:
        """Open an isolated browsing context; HTTPS errors are ignored."""
        if self.browser is None:
            raise RuntimeError("Browser not started. Call start() first.")
        options = {"ignore_https_errors": True}
        if http_credentials:
            options["http_credentials"] = http_credentials
        if viewport:
            options["viewport"] = viewport
        return await self.browser.new_context(**options)

    async def close(self) -> None:
        try:
            if self.browser is not None:
                await self.browser.close()
        except Exception as e:
            logger.debug(f"Browser close error: {e}")
        finally:
            self.browser = None
        try:
            if self._playwright is not None:
                await self._playwright.stop()
        except Exception as e:
            logger.debug(f"Playwright stop error: {e}")
        finally:
            self._playwright = None
        logger.debug("Chromium closed")
