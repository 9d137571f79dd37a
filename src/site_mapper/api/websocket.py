"""
WebSocket stream of crawl events, one connection per session.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..core.events import CrawlProgressEvent, EventBroker, event_payload
from ..core.session_manager import SessionManager
from ..logging import setup_logger

ws_router = APIRouter()
logger = setup_logger("site_mapper.api.websocket")

SESSION_NOT_FOUND = 4404
POLL_INTERVAL_SECONDS = 1.0


def _is_final(event) -> bool:
    if event.type == "crawl:complete":
        return True
    # run-level failures carry no page URL
    return event.type == "crawl:error" and event.data.url is None


@ws_router.websocket("/ws/crawl/{session_id}")
async def crawl_events(websocket: WebSocket, session_id: str):
    sessions: SessionManager = websocket.app.state.sessions
    broker: EventBroker = websocket.app.state.events

    await websocket.accept()
    if sessions.get_session(session_id) is None:
        await websocket.close(code=SESSION_NOT_FOUND, reason="Session not found")
        return

    queue = broker.subscribe(session_id)
    try:
        # snapshot first so late joiners start from current counters
        await websocket.send_json(
            event_payload(CrawlProgressEvent(data=sessions.get_progress(session_id)))
        )
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=POLL_INTERVAL_SECONDS)
            except asyncio.TimeoutError:
                session = sessions.get_session(session_id)
                if session is None or (session.status.is_terminal and queue.empty()):
                    break
                continue
            await websocket.send_json(event_payload(event))
            if _is_final(event):
                break
        await websocket.close()
    except WebSocketDisconnect:
        logger.debug(f"WebSocket client for session {session_id} disconnected")
    finally:
        broker.unsubscribe(session_id, queue)
