"""Read-only MCP resources: profile, watchlists, recent history and cache stats as JSON."""

from __future__ import annotations

import json
from typing import Any

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def register_resources(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.resource(
        "trakt://watchlist/shows",
        mime_type="application/json",
        description="TV shows in your watchlist",
    )
    async def watchlist_shows() -> str:
        return _dump(await trakt_client.get_watchlist("shows"))

    @mcp.resource(
        "trakt://watchlist/movies",
        mime_type="application/json",
        description="Movies in your watchlist",
    )
    async def watchlist_movies() -> str:
        return _dump(await trakt_client.get_watchlist("movies"))

    @mcp.resource(
        "trakt://history/recent",
        mime_type="application/json",
        description="Your 20 most recently watched items",
    )
    async def recent_history() -> str:
        return _dump(await trakt_client.get_history(limit=20))

    @mcp.resource(
        "trakt://cache/stats",
        mime_type="application/json",
        description="Search cache counters (hits, misses, evictions, expirations)",
    )
    def cache_stats() -> str:
        return _dump(trakt_client.cache_stats().to_dict())

    @mcp.resource(
        "trakt://profile",
        mime_type="application/json",
        description="Current user profile information",
    )
    async def profile() -> str:
        settings = await trakt_client.get_user_settings()
        return _dump((settings or {}).get("user") or {})
