from typing import Any, Protocol


class CachePort(Protocol):
    """Process-wide key/value cache. Never a source of truth."""

    def get(self, key: str) -> Any | None:
        ...

    def generation(self, key: str) -> int:
        """Counter bumped by every evict of key."""
        ...

    def set(self, key: str, value: Any, generation: int | None = None) -> bool:
        """Store value; with a generation, refuse if key was evicted since."""
        ...

    def evict(self, key: str) -> None:
        ...
