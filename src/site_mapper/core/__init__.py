"""
Crawl engine: sessions, events, browser-driven crawling and screenshots.
"""

from .models import CrawlSession, ScreenshotInfo, SessionStatus
from .events import CrawlEvent, EventBroker, event_payload
from .session_manager import SessionManager
from .browser import BrowserManager
from .crawler import CrawlCallbacks, SiteCrawler
from .screenshot import ScreenshotEngine
from .crawl_cache import CrawlCache, diff_crawls, has_page_changed
from .orchestrator import CrawlOrchestrator

__all__ = [
    'CrawlSession',
    'ScreenshotInfo',
    'SessionStatus',
    'CrawlEvent',
    'EventBroker',
    'event_payload',
    'SessionManager',
    'BrowserManager',
    'CrawlCallbacks',
    'SiteCrawler',
    'ScreenshotEngine',
    'CrawlCache',
    'diff_crawls',
    'has_page_changed',
    'CrawlOrchestrator',
]
