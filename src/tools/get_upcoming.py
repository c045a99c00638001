"""MCP tool that lists upcoming episodes of followed shows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import tool_success

MAX_UPCOMING_DAYS = 30


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="get_upcoming")
    async def get_upcoming(days: int = 7) -> Dict[str, Any]:
        """Episodes airing in the next `days` days (1-30) for shows you follow."""
        if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= MAX_UPCOMING_DAYS:
            raise ValidationError(f"days must be between 1 and {MAX_UPCOMING_DAYS}, got: {days!r}")

        items = await trakt_client.get_calendar(_today(), days)
        if not items:
            return tool_success(items, "No upcoming episodes found. Try following some shows first using follow_show.")
        return tool_success(items)
