"""Abstract contract for the key-value cache backend."""

from abc import ABC, abstractmethod
from typing import Any


class CacheRepository(ABC):
    """Contract for a TTL key-value store holding JSON-serializable values.

    Implementations raise their own errors; ``CacheService`` is responsible
    for treating every failure as a miss.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""

    @abstractmethod
    def increment(self, key: str) -> int:
        """Atomically increment a counter and return the new value."""

    @abstractmethod
    def get_counter(self, key: str) -> int:
        """Current value of a counter, 0 if it was never incremented."""
