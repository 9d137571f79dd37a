import os

# keep test runs from writing server.log into the working tree
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest

from site_mapper.config import MapperSettings
from site_mapper.core.crawl_cache import CrawlCache
from site_mapper.core.crawler import SiteCrawler
from site_mapper.core.events import EventBroker
from site_mapper.core.orchestrator import CrawlOrchestrator
from site_mapper.core.screenshot import ScreenshotEngine
from site_mapper.core.session_manager import SessionManager

from fakes import FakeBrowserManager, FakeCrawlCacheRepository, FakeSite

ROOT = "https://site.test/"


@pytest.fixture
def settings(tmp_path):
    return MapperSettings(
        screenshots_dir=str(tmp_path / "screenshots"),
        crawl_delay_ms=0,
        crawl_settle_ms=0,
        screenshot_settle_ms=0,
        screenshot_batch_delay_ms=0,
        database_enabled=False,
    )


@pytest.fixture
def site():
    """Root linking to /about and /contact, neither linking further."""
    return (
        FakeSite()
        .add(ROOT, title="Home", hrefs=["/about", "/contact", "https://elsewhere.test/", "mailto:hi@site.test"])
        .add("https://site.test/about", title="About", hrefs=["/"])
        .add("https://site.test/contact", title="Contact", hrefs=["#top"])
    )


@pytest.fixture
def crawler_factory(settings, site):
    return lambda: SiteCrawler(settings, browser_factory=lambda: FakeBrowserManager(site))


@pytest.fixture
def screenshot_engine(settings, site):
    """Screenshot engine rendering the same fake site through its own browser."""
    return ScreenshotEngine(settings, browser=FakeBrowserManager(site))


@pytest.fixture
def repository():
    return FakeCrawlCacheRepository()


@pytest.fixture
def sessions():
    return SessionManager()


@pytest.fixture
def broker():
    return EventBroker()


@pytest.fixture
def events(broker):
    """Every event published, as (session_id, event) pairs."""
    published = []
    broker.add_observer(lambda session_id, event: published.append((session_id, event)))
    return published


@pytest.fixture
def orchestrator(settings, sessions, broker, screenshot_engine, repository, crawler_factory):
    return CrawlOrchestrator(
        settings,
        sessions,
        broker,
        screenshot_engine,
        CrawlCache(repository),
        crawler_factory=crawler_factory,
    )
