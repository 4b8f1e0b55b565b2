"""Store layer for collections.

Provides the Redis side of the cache-aside pattern:
- Key schema for collection Index and item keys
- Async store primitives over a pooled redis-py client
- Retry and timeout handling for store calls
"""

from collectioncache.cache.keys import CollectionKeys
from collectioncache.cache.redis import (
    CollectionStore,
    RedisCollectionStore,
    close_redis,
    get_redis,
)
from collectioncache.cache.resilience import RetryPolicy, execute_resilient

__all__ = [
    "CollectionKeys",
    "CollectionStore",
    "RedisCollectionStore",
    "get_redis",
    "close_redis",
    "RetryPolicy",
    "execute_resilient",
]
