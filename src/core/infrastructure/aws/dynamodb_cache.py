"""DynamoDB-backed implementation of CacheRepository."""

import json
import time
from collections.abc import Callable
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter, DynamoDBAdapterProtocol
from core.models.errors import DynamoDBError
from core.repositories.cache_repository import CacheRepository

logger = Logger(UTC=True)

CACHE_KEY_ATTRIBUTE = "cache_key"
VALUE_ATTRIBUTE = "value"
EXPIRES_AT_ATTRIBUTE = "expires_at"
COUNTER_ATTRIBUTE = "counter"


class DynamoDBCache(CacheRepository):
    """Cache entries stored as JSON strings in a DynamoDB table.

    ``expires_at`` is the table's TTL attribute (epoch seconds). DynamoDB
    reaps expired items lazily, so reads check the timestamp themselves.
    """

    def __init__(
        self,
        adapter: DynamoDBAdapterProtocol | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        try:
            response = self._db.get_item(key={CACHE_KEY_ATTRIBUTE: key})
        except ClientError as exc:
            raise DynamoDBError(message="Unable to read cache entry", details={"key": key}) from exc

        item = response.get("Item")
        if not item or VALUE_ATTRIBUTE not in item:
            return None

        expires_at = item.get(EXPIRES_AT_ATTRIBUTE)
        if expires_at is not None and int(expires_at) <= self._clock():
            logger.debug("Cache entry expired", extra={"key": key})
            return None

        return json.loads(item[VALUE_ATTRIBUTE])

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        item = {
            CACHE_KEY_ATTRIBUTE: key,
            VALUE_ATTRIBUTE: json.dumps(value),
            EXPIRES_AT_ATTRIBUTE: int(self._clock()) + ttl_seconds,
        }

        try:
            self._db.put_item(item=item)
        except ClientError as exc:
            raise DynamoDBError(message="Unable to write cache entry", details={"key": key}) from exc

    def delete(self, key: str) -> None:
        try:
            self._db.delete_item(key={CACHE_KEY_ATTRIBUTE: key})
        except ClientError as exc:
            raise DynamoDBError(message="Unable to delete cache entry", details={"key": key}) from exc

    def increment(self, key: str) -> int:
        try:
            return self._db.increment(key={CACHE_KEY_ATTRIBUTE: key}, attribute=COUNTER_ATTRIBUTE)
        except ClientError as exc:
            raise DynamoDBError(message="Unable to update cache counter", details={"key": key}) from exc

    def get_counter(self, key: str) -> int:
        """Current counter value without changing it; 0 when never incremented."""
        try:
            response = self._db.get_item(key={CACHE_KEY_ATTRIBUTE: key})
        except ClientError as exc:
            raise DynamoDBError(message="Unable to read cache counter", details={"key": key}) from exc

        return int(response.get("Item", {}).get(COUNTER_ATTRIBUTE, 0))
