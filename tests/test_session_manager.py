"""
Tests for the session store and its status state machine.
"""

from datetime import timedelta

from site_mapper.core.models import SessionStatus, utcnow
from site_mapper.core.session_manager import SessionManager
from site_mapper.interfaces.crawl import CrawlConfig, PageInfo


def _config(url="https://site.test/"):
    return CrawlConfig(url=url)


def _page(url, depth=0):
    return PageInfo(url=url, title=url, depth=depth)


class TestSessionLifecycle:
    """Creation, progress and status transitions."""

    def test_new_session_is_crawling(self):
        manager = SessionManager()
        session = manager.create_session(_config())
        assert session.status == SessionStatus.CRAWLING
        assert manager.get_session(session.id) is not None
        assert manager.get_session("missing") is None

    def test_progress_counts(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        manager.add_page(sid, _page("https://site.test/"))
        manager.add_page(sid, _page("https://site.test/a", 1))
        manager.add_screenshot(sid, "https://site.test/", "/api/screenshots/x.jpg")
        progress = manager.get_progress(sid)
        assert (progress.found, progress.crawled, progress.screenshotted) == (2, 2, 1)

    def test_terminal_status_is_final(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        assert manager.set_status(sid, SessionStatus.SCREENSHOTTING)
        assert manager.set_status(sid, SessionStatus.COMPLETE)
        completed_at = manager.get_session(sid).completed_at
        assert completed_at is not None

        assert not manager.set_status(sid, SessionStatus.ERROR)
        session = manager.get_session(sid)
        assert session.status == SessionStatus.COMPLETE
        assert session.completed_at == completed_at

    def test_terminal_sessions_reject_writes(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        manager.add_page(sid, _page("https://site.test/"))
        manager.set_status(sid, SessionStatus.ERROR)
        assert not manager.add_page(sid, _page("https://site.test/late"))
        assert not manager.add_screenshot(sid, "https://site.test/", "/x.jpg")
        assert manager.get_progress(sid).found == 1

    def test_screenshot_requires_known_page(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        assert not manager.add_screenshot(sid, "https://site.test/unknown", "/x.jpg")


class TestCancellation:
    """Cooperative cancel flag."""

    def test_cancel_is_immediate_and_sticky(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        manager.add_page(sid, _page("https://site.test/"))
        manager.cancel_session(sid)
        assert manager.is_cancelled(sid)
        assert manager.get_session(sid).status == SessionStatus.CANCELLED

        before = manager.get_progress(sid)
        manager.add_page(sid, _page("https://site.test/late"))
        manager.add_screenshot(sid, "https://site.test/", "/x.jpg")
        assert manager.get_progress(sid) == before

    def test_cancel_is_idempotent(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        manager.cancel_session(sid)
        manager.cancel_session(sid)
        assert manager.get_session(sid).status == SessionStatus.CANCELLED

    def test_cancel_after_completion_keeps_status(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        manager.set_status(sid, SessionStatus.COMPLETE)
        manager.cancel_session(sid)
        assert manager.is_cancelled(sid)
        assert manager.get_session(sid).status == SessionStatus.COMPLETE

    def test_unknown_session(self):
        manager = SessionManager()
        manager.cancel_session("missing")
        assert not manager.is_cancelled("missing")


class TestSnapshotsAndCleanup:
    """Copies, lookup and reaping."""

    def test_get_session_returns_copy(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        snapshot = manager.get_session(sid)
        manager.add_page(sid, _page("https://site.test/"))
        assert snapshot.pages == {}
        assert len(manager.get_session(sid).pages) == 1

    def test_find_active_session(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        assert manager.find_active_session("https://site.test/").id == sid
        manager.set_status(sid, SessionStatus.COMPLETE)
        assert manager.find_active_session("https://site.test/") is None

    def test_pages_in_insertion_order(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        for url in ["https://site.test/", "https://site.test/b", "https://site.test/a"]:
            manager.add_page(sid, _page(url))
        assert [p.url for p in manager.get_all_pages(sid)] == [
            "https://site.test/",
            "https://site.test/b",
            "https://site.test/a",
        ]

    def test_reap_expired_only_removes_old_terminal_sessions(self):
        manager = SessionManager()
        old = manager.create_session(_config("https://a.test/")).id
        fresh = manager.create_session(_config("https://b.test/")).id
        running = manager.create_session(_config("https://c.test/")).id
        manager.set_status(old, SessionStatus.COMPLETE)
        manager.set_status(fresh, SessionStatus.COMPLETE)
        manager._sessions[old].completed_at = utcnow() - timedelta(hours=2)

        assert manager.reap_expired(3600) == 1
        assert manager.get_session(old) is None
        assert manager.get_session(fresh) is not None
        assert manager.get_session(running) is not None

    def test_delete_session(self):
        manager = SessionManager()
        sid = manager.create_session(_config()).id
        assert manager.delete_session(sid)
        assert not manager.delete_session(sid)
