"""MCP tool that logs many movies or a range of episodes as watched.

Registers 'bulk_log'. Movie titles are resolved concurrently via
`run_batch`; every title that resolved is posted to history in a single
request, and titles that could not be resolved are reported with reasons.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from clients.trakt.inputs import (
    normalize_year,
    parse_episode_range,
    validate_season,
)
from core.errors import ValidationError
from tools.common import (
    bulk_payload,
    episodes_history_body,
    media_ref,
    normalize_watched_at,
    require_names,
    resolve_title,
    resolve_titles,
    unique_trakt_ids,
)

logger = logging.getLogger(__name__)


async def _log_movies(
    client: TraktClient,
    movie_names: Optional[List[str]],
    *,
    watched_at: str,
    year: Optional[int],
) -> Dict[str, Any]:
    names = require_names(movie_names, "movie_names")
    result = await resolve_titles(client, names, kind="movie", year=year)

    if result.all_failed:
        return bulk_payload(result, action="Logged", noun="movies")

    ids = unique_trakt_ids(result)
    response = await client.add_to_history(
        {"movies": [{"watched_at": watched_at, "ids": {"trakt": trakt_id}} for trakt_id in ids]}
    )
    logger.info("bulk_log posted %d movies (%s)", len(ids), result.summary())
    return bulk_payload(result, action="Logged", noun="movies", data=response)


async def _log_episodes(
    client: TraktClient,
    *,
    show_name: Optional[str],
    season: Optional[int],
    episodes: Optional[str],
    watched_at: str,
    year: Optional[int],
) -> Dict[str, Any]:
    if not show_name or not show_name.strip() or season is None or not episodes:
        raise ValidationError("For episodes, show_name, season, and episodes are required")
    validate_season(season)
    numbers = parse_episode_range(episodes)

    show = await resolve_title(client, show_name, kind="show", year=year, field="show_name")
    response = await client.add_to_history(episodes_history_body(show, season, numbers, watched_at=watched_at))
    return {
        "success": True,
        "summary": f"Logged {len(numbers)} episodes of {show.get('title')} season {season}",
        "show": media_ref(show),
        "episodes": numbers,
        "data": response,
    }


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="bulk_log")
    async def bulk_log(
        type: Literal["movies", "episodes"],
        movie_names: Optional[List[str]] = None,
        show_name: Optional[str] = None,
        season: Optional[int] = None,
        episodes: Optional[str] = None,
        watched_at: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Log several movies, or a range of episodes of one show, as watched.

        Params:
          - type: "movies" or "episodes".
          - movie_names: titles to log (type="movies").
          - show_name, season, episodes: show title, season number and an
            episode range such as "1-5", "1,3,5" or "1-3,5,7-9" (type="episodes").
          - watched_at: ISO-8601 timestamp; defaults to now.
          - year: optional year used to pick the right title.

        Returns:
          Movies: {"success", "summary", "succeeded", "failed", "data"} where
          failed titles carry a reason and do not block the rest.
          Episodes: {"success", "summary", "show", "episodes", "data"}.
        """
        when = normalize_watched_at(watched_at)
        year_clean = normalize_year(year)

        if type == "movies":
            return await _log_movies(trakt_client, movie_names, watched_at=when, year=year_clean)
        if type == "episodes":
            return await _log_episodes(
                trakt_client,
                show_name=show_name,
                season=season,
                episodes=episodes,
                watched_at=when,
                year=year_clean,
            )
        raise ValidationError(f"type must be 'movies' or 'episodes', got: {type!r}")
