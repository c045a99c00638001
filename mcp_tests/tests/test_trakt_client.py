import json

import httpx
import pytest

import core.rate_limiter as rl_mod
from clients.trakt import TraktClient
from core.errors import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)

from conftest import movie_hit


# ---------------------------
# Helpers
# ---------------------------

def patch_trakt_transport(monkeypatch, client: TraktClient, handler):
    """Patch TraktClient._create_client() to use httpx.MockTransport and record requests."""
    seen = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    transport = httpx.MockTransport(recording_handler)

    def _create_client():
        return httpx.AsyncClient(
            base_url=client._base_url,
            headers=client._headers,
            timeout=client._timeout,
            verify=client._verify,
            transport=transport,
        )

    monkeypatch.setattr(client, "_create_client", _create_client)
    return seen


@pytest.fixture
def no_sleep(monkeypatch):
    calls = []

    async def fake_sleep(seconds: float):
        calls.append(seconds)

    monkeypatch.setattr(rl_mod.asyncio, "sleep", fake_sleep)
    return calls


def _client(**kwargs):
    kwargs.setdefault("client_id", "cid")
    kwargs.setdefault("access_token", "tok")
    return TraktClient(base_url="https://api.trakt.test", **kwargs)


# ---------------------------
# Headers
# ---------------------------

@pytest.mark.asyncio
async def test_requests_carry_trakt_headers(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=[]))

    await client.get_watchlist("movies")

    req = seen[0]
    assert req.url.path == "/sync/watchlist/movies"
    assert req.headers["trakt-api-key"] == "cid"
    assert req.headers["trakt-api-version"] == "2"
    assert req.headers["Authorization"] == "Bearer tok"


def test_access_token_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("TRAKT_ACCESS_TOKEN", "env-token")
    client = TraktClient(client_id="cid")
    assert client._headers["Authorization"] == "Bearer env-token"

    monkeypatch.delenv("TRAKT_ACCESS_TOKEN")
    assert "Authorization" not in TraktClient(client_id="cid")._headers


# ---------------------------
# search (cached)
# ---------------------------

@pytest.mark.asyncio
async def test_search_hits_api_once_then_cache(monkeypatch):
    client = _client()
    hits = [movie_hit("Heat", 1, 1995)]
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=hits))

    first = await client.search("Heat", "movie", 1995)
    second = await client.search("  heat ", "movies", 1995)

    assert first == second == hits
    assert len(seen) == 1
    assert seen[0].url.path == "/search/movie"
    assert seen[0].url.params["query"] == "Heat"
    assert seen[0].url.params["years"] == "1995"

    stats = client.cache_stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)


@pytest.mark.asyncio
async def test_search_without_type_queries_both(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=[]))

    assert await client.search("Dune") == []
    assert seen[0].url.path == "/search/show,movie"
    assert "years" not in seen[0].url.params


@pytest.mark.asyncio
async def test_search_returns_copies_of_cached_results(monkeypatch):
    client = _client()
    patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=[movie_hit("Up", 3)]))

    first = await client.search("Up", "movie")
    first.clear()

    assert len(await client.search("Up", "movie")) == 1


@pytest.mark.asyncio
async def test_search_rejects_non_list_payload(monkeypatch):
    client = _client()
    patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json={"oops": True}))

    with pytest.raises(ExternalServiceError):
        await client.search("Heat", "movie")
    assert client.cache_stats().size == 0


@pytest.mark.asyncio
async def test_search_validates_before_network(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=[]))

    with pytest.raises(ValidationError):
        await client.search("   ")
    with pytest.raises(ValidationError):
        await client.search("Heat", "episode")
    assert seen == []


@pytest.mark.asyncio
async def test_search_episode_cached(monkeypatch):
    client = _client()
    episode = {"season": 1, "number": 3, "title": "...And the Bag's in the River"}
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=episode))

    assert await client.search_episode("breaking-bad", 1, 3) == episode
    assert await client.search_episode("breaking-bad", 1, 3) == episode
    assert len(seen) == 1
    assert seen[0].url.path == "/shows/breaking-bad/seasons/1/episodes/3"


@pytest.mark.asyncio
async def test_search_episode_empty_body_not_cached(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200))

    assert await client.search_episode("breaking-bad", 1, 3) == {}
    assert await client.search_episode("breaking-bad", 1, 3) == {}

    assert len(seen) == 2
    assert client.cache_stats().size == 0


# ---------------------------
# Errors / throttling
# ---------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failures(monkeypatch, status):
    client = _client()
    patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(status, json={}))

    with pytest.raises(AuthenticationError):
        await client.get_history()


@pytest.mark.asyncio
async def test_not_found(monkeypatch):
    client = _client()
    patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(404, json={}))

    with pytest.raises(NotFoundError):
        await client.search_episode("nope", 1, 1)


@pytest.mark.asyncio
async def test_server_error_maps_to_external(monkeypatch):
    client = _client()
    patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(502, text="bad gateway"))

    with pytest.raises(ExternalServiceError):
        await client.get_user_settings()


@pytest.mark.asyncio
async def test_transport_error_maps_to_external(monkeypatch):
    client = _client()

    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    patch_trakt_transport(monkeypatch, client, handler)

    with pytest.raises(ExternalServiceError):
        await client.get_watchlist()


@pytest.mark.asyncio
async def test_429_retries_then_succeeds(monkeypatch, no_sleep):
    client = _client()
    responses = iter(
        [
            httpx.Response(429, headers={"Retry-After": "2"}),
            httpx.Response(429),
            httpx.Response(200, json=[movie_hit("Heat", 1)]),
        ]
    )
    seen = patch_trakt_transport(monkeypatch, client, lambda r: next(responses))

    out = await client.search("Heat", "movie")

    assert len(out) == 1
    assert len(seen) == 3
    assert no_sleep == [2.0, 2.0]


@pytest.mark.asyncio
async def test_429_exhausted_raises_rate_limited(monkeypatch, no_sleep):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(429))

    with pytest.raises(RateLimitedError):
        await client.search("Heat", "movie")

    assert len(seen) == 4
    assert no_sleep == [1.0, 2.0, 4.0]
    assert client.cache_stats().size == 0


# ---------------------------
# Writes / reads
# ---------------------------

@pytest.mark.asyncio
async def test_add_to_history_posts_json(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(201, json={"added": {"movies": 1}}))

    body = {"movies": [{"watched_at": "2024-01-01T00:00:00+00:00", "ids": {"trakt": 1}}]}
    out = await client.add_to_history(body)

    assert out == {"added": {"movies": 1}}
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/sync/history"
    assert json.loads(seen[0].content) == body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method_name, path",
    [
        ("add_to_watchlist", "/sync/watchlist"),
        ("remove_from_watchlist", "/sync/watchlist/remove"),
    ],
)
async def test_write_endpoints(monkeypatch, method_name, path):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json={}))

    await getattr(client, method_name)({"movies": []})
    assert (seen[0].method, seen[0].url.path) == ("POST", path)


@pytest.mark.asyncio
async def test_get_history_params(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json=[{"id": 1}]))

    out = await client.get_history("movie", start_at="2024-01-01", end_at="2024-02-01", limit=10)

    assert out == [{"id": 1}]
    params = seen[0].url.params
    assert seen[0].url.path == "/sync/history/movies"
    assert (params["start_at"], params["end_at"], params["limit"], params["page"]) == (
        "2024-01-01",
        "2024-02-01",
        "10",
        "1",
    )


@pytest.mark.asyncio
async def test_calendar_and_settings_paths(monkeypatch):
    client = _client()
    seen = patch_trakt_transport(monkeypatch, client, lambda r: httpx.Response(200, json={}))

    assert await client.get_calendar("2024-05-01", 14) == []
    await client.get_user_settings()

    assert [r.url.path for r in seen] == ["/calendars/my/shows/2024-05-01/14", "/users/settings"]


@pytest.mark.asyncio
async def test_get_history_passes_large_limit(monkeypatch):
    client = _client()

    def handler(request):
        n = int(request.url.params["limit"])
        return httpx.Response(200, json=[{"id": i} for i in range(n)])

    seen = patch_trakt_transport(monkeypatch, client, handler)

    out = await client.get_history(limit=120)

    assert seen[0].url.params["limit"] == "120"
    assert len(out) == 120


def test_cache_admin_delegates_to_cache():
    client = _client(cache_maxsize=2)
    client.search_cache.set("search:movie:heat", [])
    assert client.cache_stats().size == 1

    assert client.prune_cache() == 0
    client.clear_search_cache()
    assert client.cache_stats().size == 0
