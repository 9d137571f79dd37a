"""
Site mapper: crawls a website, screenshots every page and streams the sitemap as it grows.
"""

from .logging import setup_logger, log_database_config
from .config import MapperSettings, DatabaseConfig, load_database_config
from .interfaces import CrawlConfig, CrawlMode, RefreshMode, PageInfo
from .core import CrawlOrchestrator, EventBroker, ScreenshotEngine, SessionManager, SiteCrawler

__version__ = "1.0.0"

__all__ = [
    'setup_logger',
    'log_database_config',
    'MapperSettings',
    'DatabaseConfig',
    'load_database_config',
    'CrawlConfig',
    'CrawlMode',
    'RefreshMode',
    'PageInfo',
    'CrawlOrchestrator',
    'EventBroker',
    'ScreenshotEngine',
    'SessionManager',
    'SiteCrawler',
    '__version__',
]
