"""MCP tool that summarizes watch history.

Registers 'summarize_history': totals, unique shows and movies, the most
watched show, and activity counts for the last day, week and month.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import tool_success

DEFAULT_SUMMARY_LIMIT = 100

_WINDOWS = (
    ("last_24h", timedelta(days=1)),
    ("last_week", timedelta(days=7)),
    ("last_month", timedelta(days=30)),
)


def _parse_watched_at(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def summarize(history: Iterable[Dict[str, Any]], *, now: datetime) -> Dict[str, Any]:
    """Aggregate raw history entries into summary statistics."""
    total = 0
    episodes = 0
    movies: set[Any] = set()
    shows: Dict[Any, Dict[str, Any]] = {}
    activity = {name: 0 for name, _ in _WINDOWS}

    for item in history:
        total += 1

        watched = _parse_watched_at(item.get("watched_at"))
        if watched is not None:
            age = now - watched
            for name, span in _WINDOWS:
                if age <= span:
                    activity[name] += 1

        if item.get("type") == "episode" and item.get("show") and item.get("episode"):
            episodes += 1
            show = item["show"]
            show_id = (show.get("ids") or {}).get("trakt")
            entry = shows.setdefault(show_id, {"show": show, "episodes_watched": 0})
            entry["episodes_watched"] += 1
        elif item.get("type") == "movie" and item.get("movie"):
            movies.add((item["movie"].get("ids") or {}).get("trakt"))

    most_watched = None
    for entry in shows.values():
        # First show reaching the top count wins ties
        if most_watched is None or entry["episodes_watched"] > most_watched["episodes_watched"]:
            most_watched = entry

    return {
        "total_watched": total,
        "unique_shows": len(shows),
        "unique_movies": len(movies),
        "total_episodes": episodes,
        "most_watched_show": most_watched,
        "recent_activity": activity,
    }


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="summarize_history")
    async def summarize_history(
        start_at: Optional[str] = None,
        end_at: Optional[str] = None,
        limit: int = DEFAULT_SUMMARY_LIMIT,
    ) -> Dict[str, Any]:
        """Summarize watch history between optional ISO-8601 bounds.

        Params:
          - start_at / end_at: ISO-8601 bounds passed through to Trakt.
          - limit: how many of the most recent entries to analyse (default 100).
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("limit must be a positive integer")

        history = await trakt_client.get_history(start_at=start_at, end_at=end_at, limit=limit)
        return tool_success(summarize(history[:limit], now=datetime.now(timezone.utc)))
