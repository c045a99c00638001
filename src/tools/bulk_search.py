"""MCP tool that resolves many titles at once.

Registers 'bulk_search', which runs one cached search per unique title with
bounded concurrency and reports matches and failures separately.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from clients.trakt.inputs import normalize_content_type, normalize_year
from core.errors import ValidationError
from tools.common import bulk_payload, require_names, resolve_titles


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="bulk_search")
    async def bulk_search(
        queries: List[str],
        type: str = "movie",
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Resolve a list of titles to their best Trakt matches.

        Params:
          - queries: titles to look up; case-insensitive duplicates share one lookup.
          - type: "movie" (default) or "show".
          - year: optional year filter applied to every title.

        Returns:
          {"success", "summary", "succeeded": [{index, input, match}],
           "failed": [{index, input, error}]} in input order.
        """
        names = require_names(queries, "queries")
        kind = normalize_content_type(type)
        if kind is None:
            raise ValidationError("type is required for bulk_search")

        result = await resolve_titles(trakt_client, names, kind=kind, year=normalize_year(year))
        return bulk_payload(result, action="Resolved", noun="titles")
