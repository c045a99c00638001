"""MCP tool that adds or removes many movies from the watchlist at once."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import bulk_payload, require_names, resolve_titles, unique_trakt_ids


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="bulk_watchlist")
    async def bulk_watchlist(
        movie_names: List[str],
        action: Literal["add", "remove"] = "add",
    ) -> Dict[str, Any]:
        """Add or remove several movies from the watchlist.

        Titles are resolved concurrently; resolved movies are sent in one
        request and unresolved titles are listed under "failed".
        """
        if action not in ("add", "remove"):
            raise ValidationError(f"action must be 'add' or 'remove', got: {action!r}")
        names = require_names(movie_names, "movie_names")

        result = await resolve_titles(trakt_client, names, kind="movie")
        verb = "Added" if action == "add" else "Removed"
        if result.all_failed:
            return bulk_payload(result, action=verb, noun="movies")

        body = {"movies": [{"ids": {"trakt": trakt_id}} for trakt_id in unique_trakt_ids(result)]}
        if action == "add":
            response = await trakt_client.add_to_watchlist(body)
        else:
            response = await trakt_client.remove_from_watchlist(body)
        return bulk_payload(result, action=verb, noun="movies", data=response)
