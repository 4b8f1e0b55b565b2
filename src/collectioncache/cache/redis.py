"""Redis store implementation for collections.

Provides the key-value primitives the collection engine consumes.
Uses redis-py async client for connection pooling.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from datetime import timedelta
from typing import TYPE_CHECKING, Protocol, TypeVar, cast

import redis.asyncio as redis

from collectioncache.config import settings

if TYPE_CHECKING:
    from redis.asyncio import Redis

T = TypeVar("T")

# Module-level connection pool
_redis_client: Redis | None = None


def _await_redis(result: Awaitable[T] | T) -> Awaitable[T]:
    """Cast redis-py async results to an awaitable for mypy."""
    return cast(Awaitable[T], result)


async def get_redis(url: str | None = None) -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            url or settings.redis_url,
            decode_responses=False,  # Payloads may be gzip bytes
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class CollectionStore(Protocol):
    """Key-value primitives a collection is stored with.

    Values are opaque payloads (``str`` or ``bytes``); set members are
    identifier strings. No atomicity across calls is assumed.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]: ...

    async def set(self, key: str, value: bytes | str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def add_member(self, key: str, member: str) -> None: ...

    async def remove_member(self, key: str, member: str) -> None: ...

    async def members(self, key: str) -> set[str]: ...

    async def expire(self, key: str, ttl: timedelta) -> None: ...


def _decode(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value


class RedisCollectionStore:
    """CollectionStore backed by a redis-py asyncio client."""

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> bytes | None:
        return cast(bytes | None, await self.client.get(key))

    async def get_many(self, keys: Sequence[str]) -> list[bytes | None]:
        if not keys:
            return []
        return cast(list[bytes | None], await self.client.mget(list(keys)))

    async def set(self, key: str, value: bytes | str) -> None:
        await self.client.set(key, value)

    async def delete(self, key: str) -> None:
        await self.client.delete(key)

    async def add_member(self, key: str, member: str) -> None:
        await _await_redis(self.client.sadd(key, member))

    async def remove_member(self, key: str, member: str) -> None:
        await _await_redis(self.client.srem(key, member))

    async def members(self, key: str) -> set[str]:
        raw = await _await_redis(self.client.smembers(key))
        return {_decode(member) for member in raw}

    async def expire(self, key: str, ttl: timedelta) -> None:
        # PEXPIRE keeps sub-second TTLs; EXPIRE truncates them to whole seconds
        await self.client.pexpire(key, ttl)

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await _await_redis(self.client.ping())
            return True
        except Exception:
            return False
