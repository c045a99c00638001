"""Debug tools exposing the search cache.

'cache_stats' reports counters read-only; 'cache_maintenance' prunes
expired entries or empties the cache (counters are lifetime values and
survive both).
"""

from __future__ import annotations

from typing import Any, Dict, Literal

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from core.errors import ValidationError
from tools.common import tool_success


def register(mcp: FastMCP, *, trakt_client: TraktClient) -> None:
    @mcp.tool(name="cache_stats")
    async def cache_stats() -> Dict[str, Any]:
        """Return search-cache hits, misses, evictions, expirations, hit rate and size."""
        return tool_success(trakt_client.cache_stats().to_dict())

    @mcp.tool(name="cache_maintenance")
    async def cache_maintenance(action: Literal["prune", "clear"] = "prune") -> Dict[str, Any]:
        """Prune expired search-cache entries or clear the cache entirely."""
        if action == "prune":
            removed = trakt_client.prune_cache()
        elif action == "clear":
            removed = len(trakt_client.search_cache)
            trakt_client.clear_search_cache()
        else:
            raise ValidationError(f"action must be 'prune' or 'clear', got: {action!r}")
        return tool_success({"action": action, "removed": removed, "stats": trakt_client.cache_stats().to_dict()})
