"""Helpers shared by the tools.

Resolves titles (one, or many concurrently through `core.parallel.run_batch`)
and renders tool payloads. Single-item tools return
`{"success": True, "data": ...}`; failures are raised as `core.errors`
exceptions and reported by FastMCP as tool errors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from clients.trakt import TraktClient
from clients.trakt.inputs import ContentType, pick_search_match
from config import BULK_BATCH_DELAY_MS, BULK_BATCH_SIZE, BULK_MAX_CONCURRENCY
from core.errors import ValidationError
from core.parallel import BatchConfig, BatchResult, run_batch


def tool_success(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"success": True, "data": data}
    if message:
        out["message"] = message
    return out


def bulk_config() -> BatchConfig:
    return BatchConfig(
        max_concurrency=BULK_MAX_CONCURRENCY,
        batch_size=BULK_BATCH_SIZE,
        inter_batch_delay_ms=BULK_BATCH_DELAY_MS,
    )


def require_names(names: Optional[Sequence[str]], field: str) -> List[str]:
    if not names:
        raise ValidationError(f"{field} must contain at least one title")
    cleaned = [(n or "").strip() for n in names]
    if any(not n for n in cleaned):
        raise ValidationError(f"{field} must not contain empty titles")
    return cleaned


def normalize_watched_at(watched_at: Optional[str]) -> str:
    # ISO-8601 only; missing means "now"
    if not watched_at or not watched_at.strip():
        return datetime.now(timezone.utc).isoformat()
    raw = watched_at.strip()
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"watched_at must be an ISO-8601 date or datetime, got: {watched_at!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()


def media_ref(media: Dict[str, Any]) -> Dict[str, Any]:
    return {"title": media.get("title"), "year": media.get("year"), "ids": dict(media.get("ids") or {})}


def show_lookup_id(show: Dict[str, Any]) -> Any:
    # Trakt accepts either; slugs keep URLs readable
    ids = show.get("ids") or {}
    return ids.get("slug") or ids.get("trakt")


def trakt_ref(media: Dict[str, Any]) -> Dict[str, Any]:
    return {"ids": {"trakt": (media.get("ids") or {}).get("trakt")}}


def episodes_history_body(
    show: Dict[str, Any],
    season: int,
    numbers: Sequence[int],
    *,
    watched_at: str,
) -> Dict[str, Any]:
    """Build a /sync/history body marking episodes of one season as watched."""
    return {
        "shows": [
            {
                **trakt_ref(show),
                "seasons": [
                    {
                        "number": season,
                        "episodes": [{"number": n, "watched_at": watched_at} for n in numbers],
                    }
                ],
            }
        ]
    }


def unique_trakt_ids(result: BatchResult[str, Dict[str, Any]]) -> List[int]:
    # Duplicate titles resolve to the same movie; post each id once
    seen: Dict[int, None] = {}
    for media in result.values():
        trakt_id = (media.get("ids") or {}).get("trakt")
        if trakt_id is not None:
            seen.setdefault(int(trakt_id), None)
    return list(seen)


async def resolve_title(
    client: TraktClient,
    name: Optional[str],
    *,
    kind: ContentType,
    year: Optional[int] = None,
    field: str = "title",
) -> Dict[str, Any]:
    """Search for one title and return its best match (raises NotFoundError)."""
    if not name or not name.strip():
        raise ValidationError(f"{field} must be a non-empty string")
    results = await client.search(name, kind, year)
    return pick_search_match(results, name, kind, year)


async def resolve_titles(
    client: TraktClient,
    names: Sequence[str],
    *,
    kind: ContentType,
    year: Optional[int] = None,
    config: Optional[BatchConfig] = None,
) -> BatchResult[str, Dict[str, Any]]:
    """Resolve each title to its best Trakt match; failures are reported per title."""

    async def _resolve(name: str) -> Dict[str, Any]:
        return await resolve_title(client, name, kind=kind, year=year)

    return await run_batch(list(names), _resolve, config or bulk_config())


def bulk_payload(
    result: BatchResult[str, Dict[str, Any]],
    *,
    action: str,
    noun: str,
    data: Any = None,
) -> Dict[str, Any]:
    """Render a batch outcome. Success is reported whenever anything succeeded."""
    ok = len(result.succeeded)
    summary = f"{action} {ok} of {result.total} {noun}"
    if result.failed:
        summary += f"; {len(result.failed)} failed"

    payload: Dict[str, Any] = {
        "success": not result.all_failed,
        "summary": summary,
        "succeeded": [{"index": s.original_index, "input": s.input, "match": media_ref(s.value)} for s in result.succeeded],
        "failed": [{"index": f.original_index, "input": f.input, "error": f.error} for f in result.failed],
    }
    if data is not None:
        payload["data"] = data
    return payload
