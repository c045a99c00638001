"""MCP tool that logs a single episode or movie as watched."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from clients.trakt.inputs import normalize_year, validate_episode, validate_season
from core.errors import NotFoundError, ValidationError
from tools.common import (
    episodes_history_body,
    media_ref,
    normalize_watched_at,
    resolve_title,
    show_lookup_id,
    tool_success,
    trakt_ref,
)


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="log_watch")
    async def log_watch(
        type: Literal["episode", "movie"],
        show_name: Optional[str] = None,
        movie_name: Optional[str] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
        watched_at: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Mark one episode or one movie as watched.

        Params:
          - type: "episode" or "movie".
          - show_name, season, episode: required for type="episode".
          - movie_name: required for type="movie".
          - watched_at: ISO-8601 timestamp; defaults to now.
          - year: optional year used to pick between same-titled results.

        Returns:
          {"success": True, "data": {"item": {...}, "response": <Trakt reply>}}

        Raises:
          ValidationError for missing or malformed input; NotFoundError when
          the title or the episode does not exist.
        """
        when = normalize_watched_at(watched_at)
        year_clean = normalize_year(year)

        if type == "episode":
            if not show_name or not show_name.strip() or season is None or episode is None:
                raise ValidationError("For episodes, show_name, season, and episode are required")
            validate_season(season)
            validate_episode(episode)

            show = await resolve_title(trakt_client, show_name, kind="show", year=year_clean, field="show_name")
            try:
                await trakt_client.search_episode(show_lookup_id(show), season, episode)
            except NotFoundError:
                raise NotFoundError(f'Episode S{season}E{episode} not found for "{show_name.strip()}"') from None

            response = await trakt_client.add_to_history(
                episodes_history_body(show, season, [episode], watched_at=when)
            )
            item = {"show": media_ref(show), "season": season, "episode": episode, "watched_at": when}
            return tool_success({"item": item, "response": response})

        if type == "movie":
            movie = await resolve_title(trakt_client, movie_name, kind="movie", year=year_clean, field="movie_name")
            response = await trakt_client.add_to_history({"movies": [{"watched_at": when, **trakt_ref(movie)}]})
            item = {"movie": media_ref(movie), "watched_at": when}
            return tool_success({"item": item, "response": response})

        raise ValidationError(f"type must be 'episode' or 'movie', got: {type!r}")
