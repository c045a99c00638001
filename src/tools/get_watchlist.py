"""MCP tool that returns the user's watchlist."""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from tools.common import tool_success


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="get_watchlist")
    async def get_watchlist(type: Optional[str] = None) -> Dict[str, Any]:
        """List watchlist items; type may be "shows" or "movies"."""
        items = await trakt_client.get_watchlist(type)
        if not items:
            return tool_success(items, "Your watchlist is empty. Use follow_show or bulk_watchlist to add titles.")
        return tool_success(items)
