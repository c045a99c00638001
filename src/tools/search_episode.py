"""MCP tool that looks up a single episode by show title, season and number."""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from clients.trakt.inputs import validate_episode, validate_season
from core.errors import ValidationError
from tools.common import resolve_title, show_lookup_id, tool_success


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="search_episode")
    async def search_episode(
        show_name: str,
        season: int,
        episode: int,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Find a specific episode of a show.

        Params:
          - show_name: show title (required).
          - season: season number (0 for specials).
          - episode: episode number within the season (>= 1).
          - year: optional premiere year to pick between same-titled shows.

        Returns:
          {"success": True, "data": {"show": {...}, "episode": {...}}}

        Raises:
          ValidationError for bad input; NotFoundError when the show or
          episode does not exist.
        """
        if not show_name or not show_name.strip():
            raise ValidationError("Missing show_name")
        validate_season(season)
        validate_episode(episode)

        show = await resolve_title(trakt_client, show_name, kind="show", year=year, field="show_name")
        data = await trakt_client.search_episode(show_lookup_id(show), season, episode)
        return tool_success({"show": show, "episode": data})
