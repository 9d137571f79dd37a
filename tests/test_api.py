"""
Tests for the HTTP and WebSocket front door.
"""

import time

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from site_mapper.api.app import create_app
from site_mapper.api.sitemap import SitemapIndex, build_sitemap
from site_mapper.core.models import CrawlSession, ScreenshotInfo
from site_mapper.core.screenshot import thumbnail_filename
from site_mapper.interfaces.crawl import CrawlConfig, PageInfo

ROOT = "https://site.test/"


@pytest.fixture
def client(settings, screenshot_engine, crawler_factory):
    app = create_app(settings, screenshots=screenshot_engine, crawler_factory=crawler_factory)
    with TestClient(app) as test_client:
        yield test_client


def _wait_until_finished(client, session_id, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        body = client.get(f"/api/crawl/{session_id}/status").json()["session"]
        if body["status"] in ("complete", "error", "cancelled"):
            return body
        time.sleep(0.02)
    raise AssertionError(f"session {session_id} did not finish")


def _start(client, **payload):
    response = client.post("/api/crawl/start", json={"url": ROOT, **payload})
    assert response.status_code == 200
    return response.json()["sessionId"]


class TestCrawlRoutes:
    """Start, status, sitemap and cancel."""

    def test_start_and_finish(self, client):
        session_id = _start(client, maxDepth=0, maxPages=1)
        body = _wait_until_finished(client, session_id)

        assert body["status"] == "complete"
        assert body["progress"] == {"found": 3, "crawled": 3, "screenshotted": 3}
        assert body["config"]["maxDepth"] == 1
        assert body["config"]["maxPages"] == 10
        assert body["errorCount"] == 0
        assert body["completedAt"] is not None

    def test_start_rejects_invalid_url(self, client):
        response = client.post("/api/crawl/start", json={"url": "not-a-url"})
        assert response.status_code == 400
        assert "Invalid URL format" in response.json()["detail"]

        response = client.post("/api/crawl/start", json={"url": "  "})
        assert response.status_code == 400
        assert response.json() == {"detail": "URL is required"}

        response = client.post("/api/crawl/start", json={})
        assert response.status_code == 400
        assert response.json()["detail"].startswith("url")

    def test_other_routes_keep_default_validation_status(self, client):
        assert client.post("/api/crawl/screenshots/delete", json={"pageUrls": "nope"}).status_code == 422

    def test_unknown_session_is_404(self, client):
        for response in (
            client.get("/api/crawl/nope/status"),
            client.get("/api/crawl/nope/sitemap"),
            client.delete("/api/crawl/nope"),
        ):
            assert response.status_code == 404
            assert response.json() == {"detail": "Session not found"}

    def test_sitemap_graph(self, client):
        session_id = _start(client)
        _wait_until_finished(client, session_id)
        sitemap = client.get(f"/api/crawl/{session_id}/sitemap").json()

        assert [n["id"] for n in sitemap["nodes"]] == ["node-1", "node-2", "node-3"]
        root = sitemap["nodes"][0]
        assert root["type"] == "page"
        assert root["position"] == {"x": 0, "y": 0}
        assert root["data"]["url"] == ROOT
        assert root["data"]["screenshotStatus"] == "ready"
        assert root["data"]["thumbnailUrl"] == f"/api/screenshots/{thumbnail_filename(ROOT)}"

        edges = {(e["source"], e["target"]) for e in sitemap["edges"]}
        assert edges == {("node-1", "node-2"), ("node-1", "node-3"), ("node-2", "node-1")}
        assert all(e["type"] == "smoothstep" for e in sitemap["edges"])

    def test_cancel_is_idempotent(self, client):
        session_id = _start(client)
        assert client.delete(f"/api/crawl/{session_id}").json() == {"message": "Crawl cancelled"}
        assert client.delete(f"/api/crawl/{session_id}").status_code == 200
        assert _wait_until_finished(client, session_id)["status"] in ("cancelled", "complete")


class TestScreenshotRoutes:
    """Serving and deleting cached images."""

    def test_serves_thumbnail_and_full_page(self, client):
        _wait_until_finished(client, _start(client))
        name = thumbnail_filename(ROOT)

        thumb = client.get(f"/api/screenshots/{name}")
        assert thumb.status_code == 200
        assert thumb.headers["content-type"] == "image/jpeg"
        assert thumb.headers["cache-control"] == "public, max-age=3600"

        full = client.get(f"/api/screenshots/full/{name.replace('.jpg', '_full.jpg')}")
        assert full.status_code == 200

    def test_rejects_non_jpg_and_missing(self, client):
        assert client.get("/api/screenshots/notes.txt").status_code == 400
        assert client.get("/api/screenshots/missing.jpg").status_code == 404
        assert client.get("/api/screenshots/full/missing.jpg").status_code == 404

    def test_delete_screenshots(self, client, screenshot_engine):
        _wait_until_finished(client, _start(client))
        response = client.post("/api/crawl/screenshots/delete", json={"pageUrls": [ROOT, "https://site.test/none"]})
        assert response.json() == {"deleted": 1}
        assert not screenshot_engine.is_cached(ROOT)

    def test_delete_requires_urls(self, client):
        assert client.post("/api/crawl/screenshots/delete", json={"pageUrls": []}).status_code == 400
        assert client.post("/api/crawl/screenshots/delete", json={}).status_code == 400


class TestHealthAndStream:
    """Health report and the WebSocket event stream."""

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "ok"
        assert body["database"] == "not_initialized"
        assert body["browser_ready"] is False
        assert "timestamp" in body

    def test_stream_of_finished_session(self, client):
        session_id = _start(client)
        _wait_until_finished(client, session_id)

        with client.websocket_connect(f"/ws/crawl/{session_id}") as ws:
            snapshot = ws.receive_json()
            assert snapshot == {"type": "crawl:progress", "data": {"found": 3, "crawled": 3, "screenshotted": 3}}
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_stream_unknown_session(self, client):
        with client.websocket_connect("/ws/crawl/nope") as ws:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
        assert exc_info.value.code == 4404


class TestSitemapBuilder:
    """Graph construction independent of HTTP."""

    def test_index_numbers_in_order(self):
        index = SitemapIndex(["a", "b", "a"])
        assert len(index) == 2
        assert index.node_id("b") == "node-2"
        assert index.url("node-1") == "a"
        assert index.node_id("zzz") is None

    def test_edges_skip_self_links_and_unknown_targets(self):
        session = CrawlSession(id="s", config=CrawlConfig(url=ROOT))
        pages = [
            PageInfo(url="a", title="A", depth=0, internal_links=["a", "b", "b", "elsewhere"]),
            PageInfo(url="b", title="B", depth=1, internal_links=["a"]),
        ]
        session.screenshots["a"] = ScreenshotInfo("/api/screenshots/a.jpg")
        sitemap = build_sitemap(session, pages)

        assert [(e.source, e.target) for e in sitemap.edges] == [("node-1", "node-2"), ("node-2", "node-1")]
        assert sitemap.edges[0].data.source_url == "a"
        assert sitemap.nodes[0].data.screenshot_status == "ready"
        assert sitemap.nodes[1].data.screenshot_status == "pending"
        assert sitemap.nodes[1].data.thumbnail_url is None
