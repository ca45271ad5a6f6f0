"""
In-memory TTL cache for read views (catalogs, dashboard metrics).

One instance is created by whoever builds the ProvisioningService and
passed in; there is no module-level cache.
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Simple in-memory cache with TTL (time-to-live).

    Thread-safe is NOT guaranteed - suitable for the single-threaded Flask dev server
    and the CLI.
    """

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.time):
        """
        Initialize cache.

        Args:
            default_ttl: Default time-to-live in seconds (default: 5 minutes)
            clock: Time source in seconds (injectable for tests)
        """
        self._cache: Dict[str, Tuple[Any, float]] = {}
        self.default_ttl = default_ttl
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value if exists and not expired, None otherwise
        """
        if key not in self._cache:
            return None

        value, expiry = self._cache[key]

        if self._clock() > expiry:
            # Expired - remove from cache
            del self._cache[key]
            return None

        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds (None = use default)
        """
        ttl = ttl if ttl is not None else self.default_ttl
        self._cache[key] = (value, self._clock() + ttl)

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, calling loader() and caching its result on a miss."""
        value = self.get(key)
        if value is not None:
            return value
        value = loader()
        self.set(key, value, ttl=ttl)
        return value

    def delete(self, key: str):
        """Delete key from cache."""
        if key in self._cache:
            del self._cache[key]

    def clear(self):
        """Clear all cached values."""
        self._cache.clear()

    def size(self) -> int:
        """Get number of cached items."""
        return len(self._cache)
