"""
Pacing utilities.

Client-side sliding-window budget: at most `max_requests` request starts in
any `window_seconds` span (Trakt allows 1000 calls per 5 minutes). Callers
that would exceed the budget sleep until the oldest start leaves the window.
Not a replacement for honoring server-side 429 responses.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque


class RequestWindow:
    def __init__(self, *, max_requests: int = 1000, window_seconds: float = 300.0) -> None:
        self._max_requests = int(max_requests)
        self._window = float(window_seconds)

        # Monotonic start times of requests inside the current window
        self._starts: Deque[float] = deque()

        # Lock is critical: without it, several tasks could see the same free
        # slot and all take it (burst escapes).
        self._lock = asyncio.Lock()

    @property
    def in_window(self) -> int:
        return len(self._starts)

    async def wait(self) -> None:
        # No budget when either limit is non-positive.
        if self._max_requests <= 0 or self._window <= 0:
            return

        async with self._lock:
            now = time.monotonic()
            self._evict(now)

            delay = 0.0
            if len(self._starts) >= self._max_requests:
                delay = self._starts[0] + self._window - now

            # Reserve our slot at the time we will actually start.
            slot = now + max(0.0, delay)
            self._starts.append(slot)
            if len(self._starts) > self._max_requests:
                self._starts.popleft()

        # Sleep outside the lock so later callers can queue their slots.
        if delay > 0:
            await asyncio.sleep(delay)

    def _evict(self, now: float) -> None:
        while self._starts and now - self._starts[0] >= self._window:
            self._starts.popleft()
