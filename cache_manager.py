"""Simple cache to reduce API calls"""
import time
from typing import Any, Callable, Dict, Optional

import config


class CacheManager:
    def __init__(self, ttl_seconds: float = config.SPARKLINE_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time):
        """
        Initialize cache manager
        ttl_seconds: Time to live for cached data (default 120 seconds)
        clock: returns the current time in seconds (swap in a fake for tests)
        """
        self.cache: Dict[str, tuple] = {}
        self.ttl = ttl_seconds
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        """Get cached data if not expired.

        Expired entries stay in the mapping until the next ``set`` for the
        same key or ``clear()``.
        """
        entry = self.cache.get(key)
        if entry is None:
            return None
        data, timestamp = entry
        if self._clock() - timestamp < self.ttl:
            return data
        return None

    def set(self, key: str, data: Any):
        """Store data in cache with current timestamp"""
        self.cache[key] = (data, self._clock())

    def clear(self):
        self.cache.clear()

    def get_stats(self) -> Dict:
        """Get cache statistics"""
        return {
            "size": len(self.cache),
            "keys": list(self.cache.keys()),
        }
