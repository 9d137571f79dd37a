"""
Tests for change detection, crawl diffs and best-effort cache reads.
"""

from site_mapper.core.crawl_cache import CrawlCache, diff_crawls, has_page_changed
from site_mapper.interfaces.crawl import CachedPage, PageInfo

from fakes import FakeCrawlCacheRepository, cached_node


def _page(url, title="A", links=()):
    return PageInfo(url=url, title=title, depth=0, internal_links=list(links))


class TestHasPageChanged:
    """Title and link-set comparison."""

    def test_link_order_is_ignored(self):
        current = _page("u", "A", ["x", "y"])
        previous = CachedPage(title="A", internal_links=["y", "x"])
        assert not has_page_changed(current, previous)

    def test_title_change(self):
        assert has_page_changed(_page("u", "B", ["x"]), CachedPage(title="A", internal_links=["x"]))

    def test_added_link(self):
        assert has_page_changed(_page("u", "A", ["x", "y"]), CachedPage(title="A", internal_links=["x"]))

    def test_removed_link(self):
        assert has_page_changed(_page("u", "A", ["x"]), CachedPage(title="A", internal_links=["x", "y"]))


class TestDiffCrawls:
    """New, deleted and modified classification."""

    def test_identical_content_is_empty(self):
        current = {"a": _page("a", "A", ["b"]), "b": _page("b", "B")}
        previous = {"a": CachedPage(title="A", internal_links=["b"]), "b": CachedPage(title="B")}
        diff = diff_crawls(current, previous)
        assert diff.is_empty
        assert (diff.new_pages, diff.deleted_pages, diff.modified_pages) == ([], [], [])

    def test_classifies_each_url_once(self):
        current = {
            "same": _page("same", "S"),
            "changed": _page("changed", "New title"),
            "added": _page("added", "N"),
        }
        previous = {
            "same": CachedPage(title="S"),
            "changed": CachedPage(title="Old title"),
            "gone": CachedPage(title="G"),
        }
        diff = diff_crawls(current, previous)
        assert diff.new_pages == ["added"]
        assert diff.modified_pages == ["changed"]
        assert diff.deleted_pages == ["gone"]

    def test_empty_previous_marks_everything_new(self):
        diff = diff_crawls({"a": _page("a")}, {})
        assert diff.new_pages == ["a"] and not diff.deleted_pages


class TestCrawlCacheReads:
    """Repository-backed loads degrade to empty results."""

    async def test_load_previous_graph(self):
        repo = FakeCrawlCacheRepository(
            nodes={
                "s": [
                    cached_node("https://site.test/", "Home", ["https://site.test/a"], "/api/screenshots/h.jpg"),
                    {"data": {"url": "https://site.test/a", "title": "A", "thumbnailRef": "/old/a.jpg"}},
                    {"data": {"title": "no url"}},
                    "garbage",
                ]
            }
        )
        graph = await CrawlCache(repo).load_previous_graph("s")
        assert list(graph) == ["https://site.test/", "https://site.test/a"]
        assert graph["https://site.test/"].internal_links == ["https://site.test/a"]
        assert graph["https://site.test/"].thumbnail_url == "/api/screenshots/h.jpg"
        assert graph["https://site.test/a"].thumbnail_url == "/old/a.jpg"

    async def test_load_previous_urls(self):
        repo = FakeCrawlCacheRepository(
            nodes={"s": [cached_node("https://site.test/", "Home"), cached_node("https://site.test/", "Dup")]}
        )
        assert await CrawlCache(repo).load_previous_urls("s") == ["https://site.test/"]

    async def test_unknown_site_is_empty(self):
        cache = CrawlCache(FakeCrawlCacheRepository())
        assert await cache.load_previous_graph("nope") == {}
        assert await cache.load_previous_urls("nope") == []

    async def test_feedback_urls_are_deduplicated(self):
        repo = FakeCrawlCacheRepository(markers={"s": ["https://site.test/a", "https://site.test/b", "https://site.test/a"]})
        assert await CrawlCache(repo).load_active_feedback_urls("s") == ["https://site.test/a", "https://site.test/b"]

    async def test_backend_failure_degrades_to_empty(self):
        repo = FakeCrawlCacheRepository(nodes={"s": [cached_node("https://site.test/", "Home")]}, markers={"s": ["x"]})
        repo.fail = True
        cache = CrawlCache(repo)
        assert await cache.load_previous_graph("s") == {}
        assert await cache.load_previous_urls("s") == []
        assert await cache.load_active_feedback_urls("s") == []

    async def test_without_repository(self):
        cache = CrawlCache()
        assert await cache.load_previous_graph("s") == {}
        assert await cache.load_active_feedback_urls("s") == []
