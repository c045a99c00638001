"""MCP tool that returns the user's watch history."""

from __future__ import annotations

from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import tool_success

DEFAULT_HISTORY_LIMIT = 50


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="get_history")
    async def get_history(
        type: Optional[str] = None,
        start_at: Optional[str] = None,
        end_at: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Fetch watch history, newest first.

        Params:
          - type: "shows" or "movies"; omit for both.
          - start_at / end_at: ISO-8601 bounds passed through to Trakt.
          - limit: maximum number of entries to return (default 50).
        """
        if limit is not None and (isinstance(limit, bool) or limit < 1):
            raise ValidationError("limit must be positive")
        page_size = limit or DEFAULT_HISTORY_LIMIT

        items = await trakt_client.get_history(type, start_at=start_at, end_at=end_at, limit=page_size)
        items = items[:page_size]

        if not items:
            return tool_success(items, "No watch history found. Try logging something with log_watch or bulk_log first.")
        return tool_success(items)
