"""Cache fingerprints for cacheable Trakt reads.

Semantically equivalent requests fold into one key: the query is
lower-cased and trimmed, a missing type filter becomes "all".
"""

from __future__ import annotations

from typing import Optional, Union


def search_cache_key(query: str, type: Optional[str] = None, year: Optional[int] = None) -> str:
    normalized = (query or "").lower().strip()
    year_part = f"_{year}" if year else ""
    return f"search:{type or 'all'}:{normalized}{year_part}"


def episode_cache_key(show_id: Union[str, int], season: int, episode: int) -> str:
    return f"episode:{show_id}:s{season}e{episode}"
