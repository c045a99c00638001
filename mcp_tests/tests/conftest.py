import pytest


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool and resource registration."""

    def __init__(self) -> None:
        self.tools = {}
        self.resources = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator

    def resource(self, uri: str, **kwargs):
        def _decorator(fn):
            self.resources[uri] = fn
            return fn
        return _decorator


class FakeTraktClient:
    """Records calls; `catalog` maps lower-cased title -> search hits or an exception."""

    def __init__(self, catalog=None) -> None:
        self.catalog = dict(catalog or {})
        self.search_calls = []
        self.history_posts = []
        self.watchlist_adds = []
        self.watchlist_removes = []

    async def search(self, query, type=None, year=None):
        self.search_calls.append((query, type, year))
        hit = self.catalog.get(query.strip().lower(), [])
        if isinstance(hit, Exception):
            raise hit
        return list(hit)

    async def add_to_history(self, items):
        self.history_posts.append(items)
        return {"added": {"movies": len(items.get("movies", [])), "episodes": 0}}

    async def add_to_watchlist(self, items):
        self.watchlist_adds.append(items)
        return {"added": {"movies": len(items.get("movies", [])), "shows": len(items.get("shows", []))}}

    async def remove_from_watchlist(self, items):
        self.watchlist_removes.append(items)
        return {"deleted": {"movies": len(items.get("movies", [])), "shows": len(items.get("shows", []))}}


def movie_hit(title, trakt_id, year=2000):
    return {"type": "movie", "score": 100.0, "movie": {"title": title, "year": year, "ids": {"trakt": trakt_id, "slug": title.lower().replace(" ", "-")}}}


def show_hit(title, trakt_id, year=2000):
    return {"type": "show", "score": 100.0, "show": {"title": title, "year": year, "ids": {"trakt": trakt_id, "slug": title.lower().replace(" ", "-")}}}


@pytest.fixture
def dummy_mcp():
    return DummyMCP()
