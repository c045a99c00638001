from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from core.errors import NotFoundError, ValidationError

ContentType = Literal["show", "movie"]
ListType = Literal["shows", "movies"]

_CONTENT_TYPES = {"show": "show", "shows": "show", "movie": "movie", "movies": "movie"}


def normalize_query(query: str) -> str:
    q = (query or "").strip()
    if not q:
        raise ValidationError("query must be non-empty")
    return q


def normalize_content_type(value: Optional[str]) -> Optional[ContentType]:
    # Accept singular and plural forms; None / "" means "both"
    raw = (value or "").strip().lower()
    if not raw:
        return None
    try:
        return _CONTENT_TYPES[raw]  # type: ignore[return-value]
    except KeyError:
        raise ValidationError(f"type must be 'show' or 'movie', got: {value!r}") from None


def normalize_list_type(value: Optional[str]) -> Optional[ListType]:
    kind = normalize_content_type(value)
    return None if kind is None else f"{kind}s"  # type: ignore[return-value]


def normalize_year(year: Optional[int]) -> Optional[int]:
    if year is None:
        return None
    if isinstance(year, bool) or not isinstance(year, int) or not 1800 <= year <= 2200:
        raise ValidationError(f"year must be a four-digit integer, got: {year!r}")
    return year


def validate_season(season: int) -> int:
    if isinstance(season, bool) or not isinstance(season, int) or season < 0:
        raise ValidationError(f"Season number must be a non-negative integer, got: {season!r}")
    return season


def validate_episode(episode: int) -> int:
    if isinstance(episode, bool) or not isinstance(episode, int) or episode < 1:
        raise ValidationError(f"Episode number must be a positive integer, got: {episode!r}")
    return episode


def parse_episode_range(text: str) -> List[int]:
    """Expand "1-5", "1,3,5" or "1-3,5,7-9" into sorted unique episode numbers."""
    raw = (text or "").strip()
    if not raw:
        raise ValidationError("episodes must be non-empty")

    episodes: set[int] = set()
    for part in (p.strip() for p in raw.split(",")):
        if "-" in part:
            lo_s, _, hi_s = part.partition("-")
            try:
                lo, hi = int(lo_s.strip()), int(hi_s.strip())
            except ValueError:
                raise ValidationError(f"Invalid episode range: {part!r}") from None
            if lo < 1 or lo > hi:
                raise ValidationError(f"Invalid episode range: {part!r}")
            episodes.update(range(lo, hi + 1))
        else:
            try:
                n = int(part)
            except ValueError:
                raise ValidationError(f"Invalid episode number: {part!r}") from None
            if n < 1:
                raise ValidationError(f"Invalid episode number: {part!r}")
            episodes.add(n)

    return sorted(episodes)


def pick_search_match(
    results: Sequence[Mapping[str, Any]],
    query: str,
    kind: ContentType,
    year: Optional[int] = None,
) -> Dict[str, Any]:
    """Pick the media object that best matches `query` from search results.

    Bulk flows cannot ask the user to disambiguate, so this prefers an exact
    (case-insensitive) title match, then falls back to the top-ranked hit.
    """
    candidates = [dict(r[kind]) for r in results if isinstance(r.get(kind), Mapping)]
    if year is not None:
        candidates = [c for c in candidates if c.get("year") == year]
    if not candidates:
        suffix = f" ({year})" if year is not None else ""
        raise NotFoundError(f"No {kind} found matching {query!r}{suffix}")

    wanted = query.strip().lower()
    for c in candidates:
        if str(c.get("title", "")).strip().lower() == wanted:
            return c
    return candidates[0]
