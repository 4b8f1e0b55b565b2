"""Tests for the Redis-backed store primitives."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from collectioncache.cache.redis import RedisCollectionStore


class TestRedisCollectionStore:
    """Tests for RedisCollectionStore with a mocked client."""

    @pytest.fixture
    def mock_redis(self) -> MagicMock:
        """Create mock Redis client."""
        mock = MagicMock()
        mock.get = AsyncMock(return_value=b"payload")
        mock.mget = AsyncMock(return_value=[b"a", None])
        mock.set = AsyncMock(return_value=True)
        mock.delete = AsyncMock(return_value=1)
        mock.sadd = AsyncMock(return_value=1)
        mock.srem = AsyncMock(return_value=1)
        mock.smembers = AsyncMock(return_value={b"1", b"2"})
        mock.pexpire = AsyncMock(return_value=True)
        mock.ping = AsyncMock(return_value=True)
        return mock

    @pytest.fixture
    def store(self, mock_redis: MagicMock) -> RedisCollectionStore:
        return RedisCollectionStore(mock_redis)

    @pytest.mark.asyncio
    async def test_get(self, store: RedisCollectionStore, mock_redis: MagicMock) -> None:
        assert await store.get("Widgets:1") == b"payload"
        mock_redis.get.assert_awaited_once_with("Widgets:1")

    @pytest.mark.asyncio
    async def test_get_many_uses_mget(
        self, store: RedisCollectionStore, mock_redis: MagicMock
    ) -> None:
        """Multi-key reads go through a single MGET."""
        values = await store.get_many(["Widgets:1", "Widgets:2"])

        assert values == [b"a", None]
        mock_redis.mget.assert_awaited_once_with(["Widgets:1", "Widgets:2"])

    @pytest.mark.asyncio
    async def test_get_many_empty_skips_call(
        self, store: RedisCollectionStore, mock_redis: MagicMock
    ) -> None:
        assert await store.get_many([]) == []
        mock_redis.mget.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_and_delete(
        self, store: RedisCollectionStore, mock_redis: MagicMock
    ) -> None:
        await store.set("Widgets:1", b"data")
        await store.delete("Widgets:1")

        mock_redis.set.assert_awaited_once_with("Widgets:1", b"data")
        mock_redis.delete.assert_awaited_once_with("Widgets:1")

    @pytest.mark.asyncio
    async def test_set_membership(
        self, store: RedisCollectionStore, mock_redis: MagicMock
    ) -> None:
        await store.add_member("Widgets", "1")
        await store.remove_member("Widgets", "2")

        mock_redis.sadd.assert_awaited_once_with("Widgets", "1")
        mock_redis.srem.assert_awaited_once_with("Widgets", "2")

    @pytest.mark.asyncio
    async def test_members_are_decoded(self, store: RedisCollectionStore) -> None:
        """Set members come back as strings."""
        assert await store.members("Widgets") == {"1", "2"}

    @pytest.mark.asyncio
    async def test_expire(self, store: RedisCollectionStore, mock_redis: MagicMock) -> None:
        await store.expire("Widgets", timedelta(minutes=5))
        mock_redis.pexpire.assert_awaited_once_with("Widgets", timedelta(minutes=5))

    @pytest.mark.asyncio
    async def test_sub_second_expire_keeps_milliseconds(
        self, store: RedisCollectionStore, mock_redis: MagicMock
    ) -> None:
        """Half a second must not be truncated to an immediate EXPIRE 0."""
        await store.expire("Widgets", timedelta(milliseconds=500))

        mock_redis.pexpire.assert_awaited_once_with("Widgets", timedelta(milliseconds=500))
        mock_redis.expire.assert_not_called()

    @pytest.mark.asyncio
    async def test_health_check(self, store: RedisCollectionStore, mock_redis: MagicMock) -> None:
        assert await store.health_check() is True

        mock_redis.ping = AsyncMock(side_effect=ConnectionError("down"))
        assert await store.health_check() is False
