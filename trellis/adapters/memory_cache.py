"""In-memory cache adapter.

Implements CachePort for a single-process deployment. For several API
processes, back the same port with a shared store (e.g. Redis).

Each key carries a generation that every evict bumps. A reader that loaded
its value before an evict passes the generation it saw to `set`, and the
stale value is dropped instead of stored.
"""

import logging
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)


class InMemoryCache:
    """Process-wide key/value cache."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}
        self._generations: dict[str, int] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._entries.get(key)

    def generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def set(self, key: str, value: Any, generation: int | None = None) -> bool:
        """Store value. With a generation, store only if no evict happened since."""
        with self._lock:
            if generation is not None and self._generations.get(key, 0) != generation:
                logger.debug("Cache dropped stale value for key=%s", key)
                return False
            self._entries[key] = value
            return True

    def evict(self, key: str) -> None:
        with self._lock:
            removed = self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
        if removed is not None:
            logger.debug("Cache evicted key=%s", key)
