"""Tools that follow or unfollow a show through the watchlist.

Registers 'follow_show' and 'unfollow_show'. Both resolve the show title
with a cached search and post its Trakt id to the watchlist endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from clients.trakt.inputs import normalize_year
from tools.common import media_ref, resolve_title, tool_success, trakt_ref


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="follow_show")
    async def follow_show(show_name: str, year: Optional[int] = None) -> Dict[str, Any]:
        """Add a show to the watchlist so its new episodes appear in get_upcoming."""
        show = await resolve_title(trakt_client, show_name, kind="show", year=normalize_year(year), field="show_name")
        await trakt_client.add_to_watchlist({"shows": [trakt_ref(show)]})
        return tool_success({"show": media_ref(show), "added": True})

    @mcp.tool(name="unfollow_show")
    async def unfollow_show(show_name: str, year: Optional[int] = None) -> Dict[str, Any]:
        """Remove a show from the watchlist."""
        show = await resolve_title(trakt_client, show_name, kind="show", year=normalize_year(year), field="show_name")
        await trakt_client.remove_from_watchlist({"shows": [trakt_ref(show)]})
        return tool_success({"show": media_ref(show), "removed": True})
