import logging
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class CacheService:
    """Thin wrapper around an async Redis client.

    If *redis_client* is ``None`` (Redis unavailable), reads return
    ``None`` and writes are dropped, so callers never need to check for
    a missing client.  Callers that *must* persist (roster writes) check
    :attr:`is_available` first.
    """

    def __init__(self, redis_client: Optional[Redis] = None) -> None:
        self._redis: Optional[Redis] = redis_client

    async def get(self, key: str) -> Optional[str]:
        """Return the raw string value for *key*, or ``None``."""
        if self._redis is None:
            return None
        try:
            return await self._redis.get(key)
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store a raw string value, optionally with a TTL (seconds)."""
        if self._redis is None:
            return
        try:
            if ttl:
                await self._redis.setex(key, ttl, value)
            else:
                await self._redis.set(key, value)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (best-effort)."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except Exception:
            logger.warning("Redis DELETE failed for key %s", key)

    async def get_model(self, key: str, adapter: TypeAdapter) -> Optional[Any]:
        """Load *key* and validate it with a pydantic ``TypeAdapter``.

        A stored document that no longer matches the schema is treated
        as a cache miss.
        """
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Cached value for %s does not match schema", key)
            return None

    async def set_model(
        self, key: str, value: Any, adapter: TypeAdapter, ttl: int | None = None
    ) -> None:
        """Serialise *value* through *adapter* and store it."""
        await self.set(key, adapter.dump_json(value).decode(), ttl=ttl)

    async def add_model(self, key: str, value: Any, adapter: TypeAdapter) -> bool:
        """Store *value* only if *key* does not exist yet (``SET NX``).

        Returns ``True`` when this call wrote the key.
        """
        if self._redis is None:
            return False
        try:
            return bool(
                await self._redis.set(key, adapter.dump_json(value).decode(), nx=True)
            )
        except Exception:
            logger.warning("Redis SET NX failed for key %s", key)
            return False

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
