"""MCP tool that searches Trakt for shows and movies.

Registers 'search_show'. Results come from the client's TTL cache when the
same normalized query was seen recently.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import tool_success


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="search_show")
    async def search_show(
        query: str,
        type: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Search Trakt for TV shows and/or movies.

        Params:
          - query: title to search for (required).
          - type: "show" or "movie"; omit to search both.
          - year: optional release year filter.

        Returns:
          {"success": True, "data": [search hits, best match first]}

        Raises:
          ValidationError for an empty query or bad type/year; Trakt errors
          when the API is unavailable.
        """
        if not query or not query.strip():
            raise ValidationError("Missing search query")

        results = await trakt_client.search(query, type, year)
        if not results:
            return tool_success(results, f'No results found for "{query.strip()}".')
        return tool_success(results)
