"""Server bootstrap for the Trakt MCP service.

Creates the FastMCP instance, wires the shared Trakt client into tools and
resources, runs the periodic cache pruner for the server's lifetime, and
starts the MCP server (stdio transport).
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from clients.trakt import TraktClient
from config import (
    CACHE_PRUNE_INTERVAL_SECONDS,
    HTTP_VERIFY,
    LOG_LEVEL,
    BULK_MAX_CONCURRENCY,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    SEARCH_CACHE_MAXSIZE,
    SEARCH_CACHE_TTL_SECONDS,
    TRAKT_API_BASE_URL,
    TRAKT_API_VERSION,
    TRAKT_CLIENT_ID,
    TRAKT_TIMEOUT,
)
from core.pacing import RequestWindow
from core.pruner import CachePruner

from tools.bulk_log import register as register_bulk_log
from tools.bulk_search import register as register_bulk_search
from tools.bulk_watchlist import register as register_bulk_watchlist
from tools.cache_stats import register as register_cache_stats
from tools.follow_show import register as register_follow_show
from tools.get_history import register as register_get_history
from tools.get_upcoming import register as register_get_upcoming
from tools.get_watchlist import register as register_get_watchlist
from tools.log_watch import register as register_log_watch
from tools.search_episode import register as register_search_episode
from tools.search_show import register as register_search_show
from tools.summarize_history import register as register_summarize_history

from resources.trakt_resources import register_resources

logger = logging.getLogger(__name__)

trakt_client = TraktClient(
    base_url=TRAKT_API_BASE_URL,
    client_id=TRAKT_CLIENT_ID,
    api_version=TRAKT_API_VERSION,
    timeout=TRAKT_TIMEOUT,
    verify=HTTP_VERIFY,
    max_concurrency=BULK_MAX_CONCURRENCY,
    cache_ttl_seconds=SEARCH_CACHE_TTL_SECONDS,
    cache_maxsize=SEARCH_CACHE_MAXSIZE,
    request_window=RequestWindow(
        max_requests=RATE_LIMIT_MAX_REQUESTS,
        window_seconds=RATE_LIMIT_WINDOW_SECONDS,
    ),
)


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[None]:
    pruner = CachePruner(trakt_client.search_cache, interval_seconds=CACHE_PRUNE_INTERVAL_SECONDS)
    pruner.start()
    try:
        yield
    finally:
        await pruner.stop()


mcp = FastMCP("trakt-mcp", lifespan=lifespan)


def register_tools() -> None:
    register_search_show(mcp, trakt_client=trakt_client)
    register_search_episode(mcp, trakt_client=trakt_client)
    register_log_watch(mcp, trakt_client=trakt_client)
    register_bulk_search(mcp, trakt_client=trakt_client)
    register_bulk_log(mcp, trakt_client=trakt_client)
    register_bulk_watchlist(mcp, trakt_client=trakt_client)
    register_get_history(mcp, trakt_client=trakt_client)
    register_get_watchlist(mcp, trakt_client=trakt_client)
    register_summarize_history(mcp, trakt_client=trakt_client)
    register_get_upcoming(mcp, trakt_client=trakt_client)
    register_follow_show(mcp, trakt_client=trakt_client)
    register_cache_stats(mcp, trakt_client=trakt_client)


def register_all() -> None:
    register_tools()
    register_resources(mcp, trakt_client=trakt_client)


register_all()


def configure_logging() -> None:
    # stdout carries the stdio transport; logs go to stderr only
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    configure_logging()
    if not TRAKT_CLIENT_ID:
        logger.warning("TRAKT_CLIENT_ID is not set; Trakt will reject API calls")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
