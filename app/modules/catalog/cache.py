"""
Property list cache with its own freshness window.
On refresh failure the last good list is served (or an empty list on cold start).
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

from app.models.property import Property

logger = logging.getLogger(__name__)


class PropertyCache:
    def __init__(
        self,
        fetch: Callable[[], Awaitable[list[Property]]],
        max_age_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._properties: list[Property] | None = None
        self._loaded_at: float | None = None
        self._lock = asyncio.Lock()

    def is_fresh(self) -> bool:
        return self._loaded_at is not None and self._clock() - self._loaded_at < self.max_age_seconds

    async def get(self) -> list[Property]:
        if self.is_fresh():
            return list(self._properties)

        async with self._lock:
            if self.is_fresh():
                return list(self._properties)
            try:
                self._properties = await self._fetch()
                self._loaded_at = self._clock()
                logger.info("Property cache refreshed: %d properties", len(self._properties))
            except Exception as e:
                logger.warning("Property catalog refresh failed: %s", e)
                if self._properties is None:
                    return []
        return list(self._properties)

    def invalidate(self) -> None:
        self._loaded_at = None
