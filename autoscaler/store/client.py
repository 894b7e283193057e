"""
Backing store client used by each worker replica.

One logical connection per replica, addressed by the store's stable service
name. No replica owns any key exclusively: the pool may terminate any of them
at any time, so every write is a plain upsert of a whole document.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from autoscaler.domain.exceptions import StoreReadError, StoreUnavailableError, StoreWriteError
from autoscaler.store.retry import RetryPolicy, retry_async

logger = logging.getLogger(__name__)

DOCUMENT_PREFIX = "doc:"
RETRYABLE_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


def resolve_store_url(service_name: str, port: int = 6379, db: int = 0) -> str:
    """Address by logical name; name resolution is left to the platform's DNS."""
    if not service_name or not service_name.strip():
        raise ValueError("store service name must not be empty")
    return f"redis://{service_name.strip()}:{port}/{db}"


def document_key(collection: str, document_id: str) -> str:
    return f"{DOCUMENT_PREFIX}{collection}:{document_id}"


class DocumentStoreClient:
    """
    JSON documents over redis.asyncio. Connection failures are retried with
    capped exponential backoff and jitter; when retries run out, reads raise
    StoreUnavailableError and writes raise StoreWriteError.
    """

    def __init__(
        self,
        service_name: str,
        port: int = 6379,
        db: int = 0,
        retry_policy: RetryPolicy | None = None,
        client: Any = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._url = resolve_store_url(service_name, port, db)
        self._retry = retry_policy or RetryPolicy()
        self._client = client
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings) -> "DocumentStoreClient":
        return cls(
            settings.store_service_name,
            port=settings.store_port,
            db=settings.store_db,
            retry_policy=RetryPolicy(
                max_attempts=settings.store_max_attempts,
                base_delay_seconds=settings.store_backoff_base_seconds,
                max_delay_seconds=settings.store_backoff_max_seconds,
            ),
        )

    @property
    def url(self) -> str:
        return self._url

    def _redis(self):
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        return self._client

    async def _with_retry(self, name: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        return await retry_async(operation, self._retry, RETRYABLE_ERRORS, name=name, sleep=self._sleep)

    async def connect(self) -> None:
        """Ping until the store answers. Raises StoreUnavailableError once retries are exhausted."""
        try:
            await self._with_retry("connect", lambda: self._redis().ping())
        except RETRYABLE_ERRORS as e:
            raise StoreUnavailableError(f"Store at {self._url} unreachable: {e}") from e
        logger.info("store_connected", extra={"store_url": self._url})

    async def put_document(self, collection: str, document_id: str, document: dict[str, Any]) -> None:
        key = document_key(collection, document_id)
        try:
            payload = json.dumps(document)
        except (TypeError, ValueError) as e:
            raise StoreWriteError(f"Document {key} is not JSON-serializable: {e}") from e
        try:
            await self._with_retry("put_document", lambda: self._redis().set(key, payload))
        except (RedisError, OSError) as e:
            logger.error("store_write_failed", extra={"key": key, "error": str(e)})
            raise StoreWriteError(f"Write of {key} failed: {e}") from e

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        key = document_key(collection, document_id)
        try:
            raw = await self._with_retry("get_document", lambda: self._redis().get(key))
        except (RedisError, OSError) as e:
            raise StoreUnavailableError(f"Read of {key} failed: {e}") from e
        if raw is None:
            return None
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise StoreReadError(f"Document {key} is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise StoreReadError(f"Document {key} is not a JSON object")
        return document

    async def delete_document(self, collection: str, document_id: str) -> bool:
        key = document_key(collection, document_id)
        try:
            deleted = await self._with_retry("delete_document", lambda: self._redis().delete(key))
        except (RedisError, OSError) as e:
            logger.error("store_write_failed", extra={"key": key, "error": str(e)})
            raise StoreWriteError(f"Delete of {key} failed: {e}") from e
        return bool(deleted)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
