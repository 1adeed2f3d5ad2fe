"""Best-effort read-through cache for tag and image listings.

The cache is never authoritative. Every backend failure is logged and
treated as a miss or a no-op so callers fall through to the metadata store.
"""

from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import Any

from aws_lambda_powertools import Logger

from core.infrastructure.aws.dynamodb_cache import DynamoDBCache
from core.repositories.cache_repository import CacheRepository
from core.utils.constants import CACHE_KEY_IMAGES_LIST_GENERATION, CACHE_KEY_TAGS_LIST_GENERATION

logger = Logger(UTC=True)


def _log_background_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.warning(
            "Background cache invalidation failed",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )


class CacheService:
    """Named cache operations on top of a key-value backend.

    Tag list and image list keys embed a generation number. Bumping the
    generation makes every key computed before the bump unreachable, which
    invalidates all pages and filter combinations at once without
    enumerating them.
    """

    def __init__(self, backend: CacheRepository | None = None) -> None:
        self._backend = backend or DynamoDBCache()

    def get(self, key: str) -> Any | None:
        try:
            value = self._backend.get(key)
        except Exception as exc:
            logger.warning("Cache read failed", extra={"key": key, "error": str(exc)})
            return None

        logger.debug("Cache lookup", extra={"key": key, "hit": value is not None})
        return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._backend.set(key, value, ttl_seconds)
        except Exception as exc:
            logger.warning("Cache write failed", extra={"key": key, "error": str(exc)})

    def delete(self, key: str) -> None:
        try:
            self._backend.delete(key)
        except Exception as exc:
            logger.warning("Cache delete failed", extra={"key": key, "error": str(exc)})

    def _generation(self, counter_key: str) -> int | None:
        try:
            return self._backend.get_counter(counter_key)
        except Exception as exc:
            logger.warning("Cache generation read failed", extra={"counter": counter_key, "error": str(exc)})
            return None

    def _bump_generation(self, counter_key: str) -> None:
        try:
            generation = self._backend.increment(counter_key)
        except Exception as exc:
            logger.warning("Cache invalidation failed", extra={"counter": counter_key, "error": str(exc)})
            return

        logger.debug("Cache invalidated", extra={"counter": counter_key, "generation": generation})

    def tags_list_key(self) -> str | None:
        """Cache key for the tag list, or None if it cannot be computed.

        Read the key before querying the store: a write that commits in
        between bumps the generation, so the stale result lands on a key
        nobody reads again.
        """
        generation = self._generation(CACHE_KEY_TAGS_LIST_GENERATION)
        if generation is None:
            return None
        return f"tags:list:v{generation}"

    def images_list_key(
        self,
        *,
        page: int,
        limit: int,
        tag: str | None = None,
        orientation: str | None = None,
    ) -> str | None:
        """Cache key for one image list query, or None if it cannot be computed."""
        generation = self._generation(CACHE_KEY_IMAGES_LIST_GENERATION)
        if generation is None:
            return None
        return f"images:list:v{generation}:{page}:{limit}:{tag or ''}:{orientation or ''}"

    def invalidate_tags_list(self) -> None:
        self._bump_generation(CACHE_KEY_TAGS_LIST_GENERATION)

    def invalidate_images_list(self) -> None:
        self._bump_generation(CACHE_KEY_IMAGES_LIST_GENERATION)

    def invalidate_after_tag_change(self) -> None:
        """Tag writes change both tag counts and the image lists filtered by tag."""
        self.invalidate_tags_list()
        self.invalidate_images_list()

    def invalidate_async(
        self,
        executor: Executor,
        invalidation: Callable[[], None] | None = None,
    ) -> Future:
        """Submit an invalidation without waiting for it; failures are only logged."""
        future = executor.submit(invalidation or self.invalidate_after_tag_change)
        future.add_done_callback(_log_background_failure)
        return future
