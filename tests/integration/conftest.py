"""Integration test fixtures using Docker.

Provides a containerized Redis for exercising collections end to end.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from collectioncache import CollectionCache, CollectionOptions, RedisCollectionStore, RetryPolicy
from tests.integration.docker_utils import (
    REDIS_IMAGE,
    DockerService,
    get_docker_client,
    run_container,
    wait_for_redis,
)


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[DockerService]:
    """Start Redis container for the test session."""
    with run_container(docker_client, REDIS_IMAGE, ports={"6379/tcp": None}) as redis:
        yield redis


@pytest.fixture(scope="session")
def redis_url(redis_container: DockerService) -> str:
    """Get the Redis URL for the test container."""
    return redis_container.redis_url()


@pytest_asyncio.fixture
async def redis_client(redis_url: str) -> AsyncIterator[Redis]:
    """Create a Redis client for tests."""
    client = Redis.from_url(redis_url, decode_responses=False)
    await wait_for_redis(client)
    yield client
    await client.flushdb()  # Clean up after each test
    await client.aclose()


@pytest.fixture
def redis_store(redis_client: Redis) -> RedisCollectionStore:
    return RedisCollectionStore(redis_client)


@pytest.fixture
def redis_cache(redis_store: RedisCollectionStore) -> CollectionCache:
    return CollectionCache(
        redis_store,
        options=CollectionOptions(),
        retry_policy=RetryPolicy(max_attempts=1, delay_initial=0.0, timeout=5.0),
    )
