"""Trakt client module: cached search plus history/watchlist reads and writes.

This module provides a small async client over the Trakt.tv v2 API used by
the MCP tools. Idempotent lookups (search, episode lookup) go through a
`core.cache.TTLCache`; every request passes the client-side request window
(`core.pacing.RequestWindow`), a concurrency semaphore, and the 429 retry
policy in `core.rate_limiter.RateLimiter`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from core.cache import CacheStatsSnapshot, TTLCache
from core.errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitedError,
)
from core.pacing import RequestWindow
from core.rate_limiter import RateLimiter

from .inputs import (
    ListType,
    normalize_content_type,
    normalize_list_type,
    normalize_query,
    normalize_year,
    validate_episode,
    validate_season,
)
from .keys import episode_cache_key, search_cache_key

logger = logging.getLogger(__name__)

Json = Any


class TraktClient:
    """Async Trakt.tv client.

    Purpose:
      - search(query, type=None, year=None) -> list of search hits (cached)
      - search_episode(show_id, season, episode) -> episode summary (cached)
      - history / watchlist reads and writes, calendar, user settings

    Key behavior:
      - One TTL cache shared by search and episode lookups.
      - Limits concurrency (Semaphore) and applies a sliding request window.
      - Retries 429 responses via RateLimiter, then raises RateLimitedError.
      - Maps 401/403 to AuthenticationError and 404 to NotFoundError.
    """

    DEFAULT_BASE_URL = "https://api.trakt.tv"
    USER_AGENT = "trakt-mcp-server"

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        client_id: str = "",
        api_version: str = "2",
        access_token: Optional[str] = None,
        timeout: float = 20.0,
        verify: bool = True,
        max_concurrency: int = 5,
        cache_ttl_seconds: float = 3600.0,
        cache_maxsize: int = 500,
        rate_limiter: Optional[RateLimiter] = None,
        request_window: Optional[RequestWindow] = None,
    ) -> None:
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = float(timeout)
        self._verify = bool(verify)

        self._headers = self._build_headers(client_id=client_id, api_version=api_version, access_token=access_token)

        self._sem = asyncio.Semaphore(max(1, int(max_concurrency)))
        self._window = request_window or RequestWindow()
        self._rate_limiter = rate_limiter or RateLimiter()

        self._search_cache: TTLCache[Json] = TTLCache(ttl_seconds=cache_ttl_seconds, maxsize=cache_maxsize)

    @property
    def search_cache(self) -> TTLCache[Json]:
        return self._search_cache

    # --- Cached lookups ---

    async def search(
        self,
        query: str,
        type: Optional[str] = None,
        year: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Search shows and/or movies; results are cached per normalized query."""
        q = normalize_query(query)
        kind = normalize_content_type(type)
        year_clean = normalize_year(year)

        cache_key = search_cache_key(q, kind, year_clean)
        cached = self._search_cache.get(cache_key)
        if cached is not None:
            return list(cached)

        params: Dict[str, Any] = {"query": q}
        if year_clean is not None:
            params["years"] = year_clean

        data = await self._get(f"/search/{kind or 'show,movie'}", params=params, context="search")
        if not isinstance(data, list):
            raise ExternalServiceError("Trakt returned an invalid search results format")

        # Set right after the await returns: no suspension between miss and populate
        self._search_cache.set(cache_key, data)
        return list(data)

    async def search_episode(self, show_id: Union[str, int], season: int, episode: int) -> Dict[str, Any]:
        """Look up one episode of a show by slug or Trakt id (cached)."""
        season_n = validate_season(season)
        episode_n = validate_episode(episode)

        cache_key = episode_cache_key(show_id, season_n, episode_n)
        cached = self._search_cache.get(cache_key)
        if cached is not None:
            return dict(cached)

        data = await self._get(
            f"/shows/{show_id}/seasons/{season_n}/episodes/{episode_n}",
            context="search_episode",
        )
        if data is None:
            return {}
        self._search_cache.set(cache_key, data)
        return dict(data)

    # --- Uncached reads ---

    async def get_user_settings(self) -> Dict[str, Any]:
        return await self._get("/users/settings", context="get_user_settings")

    async def get_history(
        self,
        type: Optional[str] = None,
        *,
        start_at: Optional[str] = None,
        end_at: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        kind: Optional[ListType] = normalize_list_type(type)
        params: Dict[str, Any] = {"page": int(page), "limit": int(limit)}
        if start_at:
            params["start_at"] = start_at
        if end_at:
            params["end_at"] = end_at

        endpoint = f"/sync/history/{kind}" if kind else "/sync/history"
        data = await self._get(endpoint, params=params, context="get_history")
        return data if isinstance(data, list) else []

    async def get_watchlist(self, type: Optional[str] = None) -> List[Dict[str, Any]]:
        kind = normalize_list_type(type)
        endpoint = f"/sync/watchlist/{kind}" if kind else "/sync/watchlist"
        data = await self._get(endpoint, context="get_watchlist")
        return data if isinstance(data, list) else []

    async def get_calendar(self, start_date: str, days: int = 7) -> List[Dict[str, Any]]:
        data = await self._get(f"/calendars/my/shows/{start_date}/{int(days)}", context="get_calendar")
        return data if isinstance(data, list) else []

    # --- Writes ---

    async def add_to_history(self, items: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._post("/sync/history", items, context="add_to_history")

    async def add_to_watchlist(self, items: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._post("/sync/watchlist", items, context="add_to_watchlist")

    async def remove_from_watchlist(self, items: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._post("/sync/watchlist/remove", items, context="remove_from_watchlist")

    # --- Cache administration ---

    def cache_stats(self) -> CacheStatsSnapshot:
        return self._search_cache.stats()

    def clear_search_cache(self) -> None:
        self._search_cache.clear()

    def prune_cache(self) -> int:
        return self._search_cache.prune()

    # --- HTTP helpers ---

    def _build_headers(self, *, client_id: str, api_version: str, access_token: Optional[str]) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.USER_AGENT,
            "trakt-api-version": (api_version or "2").strip(),
            "trakt-api-key": (client_id or "").strip(),
        }
        # Token comes from an out-of-band OAuth flow; TRAKT_ACCESS_TOKEN is the fallback
        token = (access_token if access_token is not None else os.environ.get("TRAKT_ACCESS_TOKEN") or "").strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            verify=self._verify,
        )

    def _external(self, context: str, err: BaseException) -> ExternalServiceError:
        return ExternalServiceError(f"Trakt request failed ({context}): {err}")

    def _check_status(self, resp: httpx.Response, *, context: str) -> None:
        if resp.status_code in (401, 403):
            raise AuthenticationError("Authentication failed. Please re-authenticate with Trakt.")
        if resp.status_code == 404:
            raise NotFoundError(f"Not found on Trakt ({context}): {resp.request.url.path}")
        if resp.status_code == 429:
            raise RateLimitedError(
                "Rate limit exceeded after multiple retries. Please wait a few minutes and try again."
            )
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._external(context, e) from e

    def _decode(self, resp: httpx.Response, *, context: str) -> Json:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise self._external(context, e) from e

    async def _get(self, url: str, *, params: Optional[Mapping[str, Any]] = None, context: str) -> Json:
        async with self._create_client() as client:
            resp = await self._request(client, "GET", url, params=params)
        self._check_status(resp, context=context)
        return self._decode(resp, context=context)

    async def _post(self, url: str, body: Mapping[str, Any], *, context: str) -> Json:
        async with self._create_client() as client:
            resp = await self._request(client, "POST", url, json=dict(body))
        self._check_status(resp, context=context)
        return self._decode(resp, context=context)

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Response:
        """Send with request window + concurrency + bounded retries on 429."""
        attempts = self._rate_limiter.max_retries + 1

        for attempt in range(attempts):
            # Client-side budget so bulk bursts stay under Trakt's window
            await self._window.wait()

            try:
                # Limit concurrent requests across tasks
                async with self._sem:
                    resp = await client.request(method, url, params=dict(params or {}), json=json)
            except httpx.HTTPError as e:
                raise self._external(f"{method} {url}", e) from e

            if await self._rate_limiter.maybe_sleep_and_retry(resp, attempt=attempt):
                continue

            return resp

        raise RuntimeError("Unreachable: _request did not return a response")
