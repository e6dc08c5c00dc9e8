"""Read cache for the public product listing.

Holds the last full listing for a time window and drops it whenever the
catalog changes, so edits show up immediately instead of after the window.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

from app.domain.entities import Product

logger = structlog.get_logger()


class ListingCache:
    """Time-bounded cache of the newest-first product listing.

    Example usage:
        cache = ListingCache(ttl_seconds=60)
        products = await cache.get_or_load(repo.get_all)
        cache.invalidate()
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Refresh window; 0 disables caching.
            clock: Monotonic time source (seconds).
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._products: list[Product] | None = None
        self._loaded_at = 0.0
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def generation(self) -> int:
        """Number of invalidations so far."""
        return self._generation

    def _fresh(self) -> bool:
        return (
            self._products is not None
            and self._clock() - self._loaded_at < self.ttl_seconds
        )

    async def get_or_load(
        self, loader: Callable[[], Awaitable[list[Product]]]
    ) -> list[Product]:
        """Return the cached listing, loading it if stale or invalidated.

        Args:
            loader: Coroutine function producing the full listing.

        Returns:
            Products, newest first.
        """
        if self._fresh():
            return list(self._products or [])

        async with self._lock:
            if self._fresh():
                return list(self._products or [])

            generation = self._generation
            products = await loader()
            # Drop the result if a mutation invalidated while loading.
            if generation == self._generation and self.ttl_seconds > 0:
                self._products = products
                self._loaded_at = self._clock()
            return list(products)

    def invalidate(self) -> None:
        """Discard the cached listing."""
        self._products = None
        self._generation += 1
        logger.debug("Listing cache invalidated", generation=self._generation)
