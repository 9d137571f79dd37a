from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
from typing import Callable, Optional

from ..config import MapperSettings, load_database_config
from ..core.crawl_cache import CrawlCache
from ..core.crawler import SiteCrawler
from ..core.events import EventBroker
from ..core.orchestrator import CrawlOrchestrator
from ..core.screenshot import ScreenshotEngine
from ..core.session_manager import SessionManager
from ..database.context import DatabaseContext
from ..logging import setup_logger
from .routes import crawl_router, router, screenshots_router
from .websocket import ws_router

logger = setup_logger("site_mapper.api")

START_CRAWL_PATH = "/api/crawl/start"


def validation_message(exc: RequestValidationError) -> str:
    """First validation error as a single readable line."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    error = errors[0]
    cause = (error.get("ctx") or {}).get("error")
    if error.get("type") == "value_error" and cause is not None:
        return str(cause)
    field = ".".join(str(part) for part in error.get("loc", ())[1:])
    return f"{field}: {error['msg']}" if field else error["msg"]


async def start_crawl_validation_handler(request: Request, exc: RequestValidationError):
    # a bad crawl request is a client error, other routes keep the default 422
    if request.url.path != START_CRAWL_PATH:
        return await request_validation_exception_handler(request, exc)
    message = validation_message(exc)
    logger.warning(f"Rejected crawl request: {message}")
    return JSONResponse(status_code=400, content={"detail": message})


async def session_reaper(app: FastAPI):
    settings: MapperSettings = app.state.settings
    while True:
        await asyncio.sleep(settings.session_reaper_interval_seconds)
        try:
            app.state.sessions.reap_expired(settings.session_ttl_seconds)
        except Exception as e:
            logger.error(f"Error during session cleanup: {e}")


async def init_database(app: FastAPI) -> Optional[DatabaseContext]:
    settings: MapperSettings = app.state.settings
    retry_delay = settings.database_retry_delay_seconds
    for attempt in range(settings.database_init_retries):
        db_context = DatabaseContext(config=load_database_config())
        try:
            await db_context.__aenter__()
            logger.info("Database context initialized successfully")
            return db_context
        except Exception as e:
            logger.warning(
                f"Database initialization attempt {attempt + 1}/{settings.database_init_retries} failed: {str(e)}"
            )
            if attempt < settings.database_init_retries - 1:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2
    logger.error("Failed to initialize database context after all retries, running without crawl cache")
    return None


def create_app(
    settings: Optional[MapperSettings] = None,
    screenshots: Optional[ScreenshotEngine] = None,
    crawler_factory: Optional[Callable[[], SiteCrawler]] = None,
    cache: Optional[CrawlCache] = None,
) -> FastAPI:
    """Build the API with its services on ``app.state``."""
    settings = settings or MapperSettings()

    app = FastAPI(
        title="Site Mapper API",
        description="Crawls a website, screenshots its pages and streams the sitemap as it is discovered.",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.sessions = SessionManager()
    app.state.events = EventBroker()
    app.state.screenshots = screenshots or ScreenshotEngine(settings)
    app.state.cache = cache or CrawlCache()
    app.state.db_context = None
    app.state.orchestrator = CrawlOrchestrator(
        settings,
        app.state.sessions,
        app.state.events,
        app.state.screenshots,
        app.state.cache,
        crawler_factory=crawler_factory,
    )

    app.add_exception_handler(RequestValidationError, start_crawl_validation_handler)

    app.include_router(crawl_router)
    app.include_router(screenshots_router)
    app.include_router(router)
    app.include_router(ws_router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Initializing site mapper API...")
        app.state.screenshots.output_dir.mkdir(parents=True, exist_ok=True)
        if app.state.cache.repository is not None:
            logger.info("Using injected crawl cache repository")
        elif settings.database_enabled:
            app.state.db_context = await init_database(app)
            if app.state.db_context:
                app.state.cache.repository = app.state.db_context.crawl_cache
        else:
            logger.info("Database disabled, crawl cache reads will be empty")
        app.state.reaper_task = asyncio.create_task(session_reaper(app))
        logger.info("Site mapper API initialization complete")

    @app.on_event("shutdown")
    async def shutdown_event():
        reaper = getattr(app.state, "reaper_task", None)
        if reaper:
            reaper.cancel()
        await app.state.orchestrator.shutdown()
        await app.state.screenshots.close()
        if app.state.db_context:
            await app.state.db_context.__aexit__(None, None, None)
            app.state.db_context = None
            logger.info("Database connections closed")
        logger.info("Site mapper API shut down")

    return app


app = create_app()
