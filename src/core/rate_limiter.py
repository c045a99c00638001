"""Utility to interpret Trakt throttling signals and sleep when needed.

This encapsulates the retry policy for 429 responses:
- Honor Retry-After (seconds) when Trakt sends it.
- Otherwise back off exponentially: 1s, 2s, 4s.
- Bound every sleep to a configurable maximum to avoid long blocking.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


class RateLimiter:
    # Trakt 429 handling
    def __init__(self, *, max_retries: int = 3, base_delay_seconds: float = 1.0, max_sleep_seconds: int = 60) -> None:
        self._max_retries = max(0, int(max_retries))
        self._base_delay = float(base_delay_seconds)
        self._max_sleep_seconds = int(max_sleep_seconds)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    async def maybe_sleep_and_retry(self, response: httpx.Response, *, attempt: int) -> bool:
        # Returns True if caller should retry after sleeping.
        # `attempt` is the zero-based index of the request that got `response`.
        if response.status_code != 429 or attempt >= self._max_retries:
            return False

        retry_after = self._parse_int_header(response.headers, "Retry-After")
        delay = float(retry_after) if retry_after is not None else self._base_delay * (2**attempt)

        logger.warning(
            "Trakt rate limit hit; retrying in %.1fs (attempt %d/%d)",
            delay,
            attempt + 1,
            self._max_retries,
        )
        await self._sleep_bounded(delay)
        return True

    async def _sleep_bounded(self, seconds: float) -> None:
        # Sleep for at most _max_sleep_seconds to avoid blocking too long
        await asyncio.sleep(min(float(seconds), float(self._max_sleep_seconds)))

    def _parse_int_header(self, headers: Mapping[str, str], name: str) -> Optional[int]:
        value = headers.get(name)
        if not value:
            return None
        value = value.strip()
        if not value.isdigit():
            return None
        try:
            return int(value)
        except ValueError:
            return None
