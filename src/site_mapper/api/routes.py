from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse
from sqlalchemy import text

from ..core.models import CrawlSession
from ..core.orchestrator import CrawlOrchestrator
from ..core.session_manager import SessionManager
from ..interfaces.crawl import CrawlConfig
from ..logging import setup_logger
from .models import (
    CancelResponse,
    DeleteScreenshotsRequest,
    DeleteScreenshotsResponse,
    HealthResponse,
    SessionStatusBody,
    SessionStatusResponse,
    SitemapResponse,
    StartCrawlResponse,
)
from .sitemap import build_sitemap

crawl_router = APIRouter(prefix="/api/crawl", tags=["Crawl"])
screenshots_router = APIRouter(prefix="/api/screenshots", tags=["Screenshots"])
router = APIRouter(prefix="/api")
logger = setup_logger("site_mapper.api.routes")

SCREENSHOT_CACHE_CONTROL = "public, max-age=3600"


def _sessions(http_req: Request) -> SessionManager:
    return http_req.app.state.sessions


def _get_session_or_404(http_req: Request, session_id: str) -> CrawlSession:
    session = _sessions(http_req).get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@crawl_router.post("/start", response_model=StartCrawlResponse)
async def start_crawl(config: CrawlConfig, http_req: Request) -> StartCrawlResponse:
    orchestrator: CrawlOrchestrator = http_req.app.state.orchestrator
    try:
        session_id, created = orchestrator.start(config)
    except Exception as e:
        logger.error(f"Failed to start crawl for {config.url}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to start crawl: {str(e)}")
    message = "Crawl started" if created else "Crawl already in progress"
    return StartCrawlResponse(session_id=session_id, message=message)


@crawl_router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def crawl_status(session_id: str, http_req: Request) -> SessionStatusResponse:
    session = _get_session_or_404(http_req, session_id)
    return SessionStatusResponse(
        session=SessionStatusBody(
            id=session.id,
            config=session.config,
            status=session.status.value,
            progress=_sessions(http_req).get_progress(session.id),
            started_at=session.started_at,
            completed_at=session.completed_at,
            error_count=len(session.errors),
        )
    )


@crawl_router.get("/{session_id}/sitemap", response_model=SitemapResponse)
async def crawl_sitemap(session_id: str, http_req: Request) -> SitemapResponse:
    session = _get_session_or_404(http_req, session_id)
    return build_sitemap(session, _sessions(http_req).get_all_pages(session.id))


@crawl_router.delete("/{session_id}", response_model=CancelResponse)
async def cancel_crawl(session_id: str, http_req: Request) -> CancelResponse:
    session = _get_session_or_404(http_req, session_id)
    _sessions(http_req).cancel_session(session.id)
    logger.info(f"Cancel requested for session {session.id}")
    return CancelResponse()


@crawl_router.post("/screenshots/delete", response_model=DeleteScreenshotsResponse)
async def delete_screenshots(request: DeleteScreenshotsRequest, http_req: Request) -> DeleteScreenshotsResponse:
    page_urls = [u for u in request.page_urls if u]
    if not page_urls:
        raise HTTPException(status_code=400, detail="pageUrls array is required")
    try:
        deleted = await http_req.app.state.screenshots.delete_by_urls(page_urls)
    except Exception as e:
        logger.error(f"Screenshot deletion failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete screenshots")
    return DeleteScreenshotsResponse(deleted=deleted)


def _screenshot_file(http_req: Request, filename: str, missing: str) -> FileResponse:
    # basename only, so a crafted name cannot leave the screenshots directory
    name = Path(filename).name
    if not name.endswith(".jpg"):
        raise HTTPException(status_code=400, detail="Invalid file type")
    path = http_req.app.state.screenshots.output_dir / name
    if not path.is_file():
        raise HTTPException(status_code=404, detail=missing)
    return FileResponse(path, media_type="image/jpeg", headers={"Cache-Control": SCREENSHOT_CACHE_CONTROL})


@screenshots_router.get("/full/{filename}")
async def full_page_screenshot(filename: str, http_req: Request) -> FileResponse:
    return _screenshot_file(http_req, filename, "Full-page screenshot not found")


@screenshots_router.get("/{filename}")
async def thumbnail_screenshot(filename: str, http_req: Request) -> FileResponse:
    return _screenshot_file(http_req, filename, "Screenshot not found")


@router.get("/health", response_model=HealthResponse)
async def health_check(http_req: Request) -> HealthResponse:
    status = "ok"
    db_context = getattr(http_req.app.state, "db_context", None)
    if db_context:
        try:
            async with db_context.db.get_session() as session:
                await session.execute(text("SELECT 1"))
            database = "connected"
        except Exception:
            database = "disconnected"
            status = "degraded"
    else:
        database = "not_initialized"

    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc),
        browser_ready=http_req.app.state.screenshots.is_ready,
        database=database,
        sessions=len(_sessions(http_req).session_ids()),
        active_runs=http_req.app.state.orchestrator.active_runs,
    )
