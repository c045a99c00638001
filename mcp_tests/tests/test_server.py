import sys
import types
import uuid
import importlib.util
from pathlib import Path

import pytest


def _find_server_py() -> Path:
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / "src" / "server" / "server.py",
        root / "server" / "server.py",
    ]
    for p in candidates:
        if p.exists():
            return p
    raise FileNotFoundError(f"Could not find server.py. Tried: {candidates}")


def _install_fake_fastmcp(monkeypatch, captures: dict):
    mcp_mod = types.ModuleType("mcp")
    mcp_server_mod = types.ModuleType("mcp.server")
    fastmcp_mod = types.ModuleType("mcp.server.fastmcp")

    class DummyFastMCP:
        def __init__(self, name: str, *, lifespan=None):
            captures["fastmcp_name"] = name
            captures["lifespan"] = lifespan
            captures["mcp_instance"] = self
            self.tools = {}
            self.resources = {}
            self.run_calls = []

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

        def run(self, *, transport: str):
            self.run_calls.append({"transport": transport})

    fastmcp_mod.FastMCP = DummyFastMCP
    mcp_mod.__path__ = []
    mcp_server_mod.__path__ = []

    monkeypatch.setitem(sys.modules, "mcp", mcp_mod)
    monkeypatch.setitem(sys.modules, "mcp.server", mcp_server_mod)
    monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", fastmcp_mod)


def _load_server_module(monkeypatch, captures: dict):
    _install_fake_fastmcp(monkeypatch, captures)

    server_path = _find_server_py()
    mod_name = f"server_under_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, server_path)
    assert spec and spec.loader

    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, mod_name, module)
    spec.loader.exec_module(module)
    return module


def test_server_registers_tools_and_resources(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)

    assert captures["fastmcp_name"] == "trakt-mcp"
    mcp = captures["mcp_instance"]

    assert set(mcp.tools) == {
        "search_show",
        "search_episode",
        "log_watch",
        "bulk_search",
        "bulk_log",
        "bulk_watchlist",
        "get_history",
        "get_watchlist",
        "summarize_history",
        "get_upcoming",
        "follow_show",
        "unfollow_show",
        "cache_stats",
        "cache_maintenance",
    }
    assert set(mcp.resources) == {
        "trakt://watchlist/shows",
        "trakt://watchlist/movies",
        "trakt://history/recent",
        "trakt://cache/stats",
        "trakt://profile",
    }

    # One shared client, cache sized from config
    assert module.trakt_client.search_cache.maxsize == module.SEARCH_CACHE_MAXSIZE

    module.main()
    assert mcp.run_calls == [{"transport": "stdio"}]


@pytest.mark.asyncio
async def test_server_lifespan_runs_cache_pruner(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)
    events = []

    class FakePruner:
        def __init__(self, cache, *, interval_seconds):
            events.append(("init", cache, interval_seconds))

        def start(self):
            events.append("start")

        async def stop(self):
            events.append("stop")

    monkeypatch.setattr(module, "CachePruner", FakePruner)

    async with captures["lifespan"](captures["mcp_instance"]):
        assert events[-1] == "start"

    assert events[0] == ("init", module.trakt_client.search_cache, module.CACHE_PRUNE_INTERVAL_SECONDS)
    assert events[-1] == "stop"
