"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from collectioncache import CollectionCache, CollectionEngine, CollectionOptions, RetryPolicy
from tests.fakes import InMemoryStore

# No backoff and a short ceiling so retry paths run instantly
FAST_RETRY = RetryPolicy(max_attempts=2, delay_initial=0.0, delay_max=0.0, timeout=1.0)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def engine(store: InMemoryStore) -> CollectionEngine:
    return CollectionEngine(store, FAST_RETRY)


@pytest.fixture
def cache(store: InMemoryStore) -> CollectionCache:
    return CollectionCache(store, options=CollectionOptions(), retry_policy=FAST_RETRY)
