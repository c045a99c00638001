"""Background task that prunes a TTLCache on a fixed cadence.

Lazy expiry only reclaims keys that are looked up again; this reclaims the
rest.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from core.cache import TTLCache
from core.errors import ValidationError

logger = logging.getLogger(__name__)


class CachePruner:
    def __init__(self, cache: TTLCache[Any], *, interval_seconds: float) -> None:
        interval = float(interval_seconds)
        if interval <= 0:
            raise ValidationError("interval_seconds must be positive")
        self._cache = cache
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-pruner")
        logger.debug("cache pruner started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("cache pruner stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._cache.prune()
