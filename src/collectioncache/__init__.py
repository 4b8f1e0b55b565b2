"""collectioncache: cache-aside collections of typed records in Redis.

A collection is an Index set of identifiers plus one key per record. It is
populated lazily from a fallback producer and then read and modified through
fluent builders.
"""

from collectioncache.cache import (
    CollectionKeys,
    CollectionStore,
    RedisCollectionStore,
    RetryPolicy,
    close_redis,
    get_redis,
)
from collectioncache.core.builder import CollectionBuilder, CollectionCache, CollectionModifier
from collectioncache.core.codec import RecordCodec
from collectioncache.core.engine import CollectionEngine, CollectionRequest, adapt_fallback
from collectioncache.core.errors import (
    CollectionCacheError,
    ConfigurationError,
    ErrorKind,
    FallbackError,
    ItemNotFoundError,
    SerializationError,
    StoreError,
    StorePhase,
    UnexpectedOperationError,
)
from collectioncache.core.identifiers import (
    IdentifierSource,
    RecordIdentifier,
    SupportsCacheIdentifier,
)
from collectioncache.core.merge import SupportsApplyTo
from collectioncache.core.options import CollectionOptions, OperationType
from collectioncache.core.result import CollectionResult

__all__ = [
    # Entry points
    "CollectionCache",
    "CollectionBuilder",
    "CollectionModifier",
    "CollectionEngine",
    "CollectionRequest",
    "adapt_fallback",
    # Configuration
    "CollectionOptions",
    "OperationType",
    "RetryPolicy",
    # Records
    "RecordIdentifier",
    "SupportsCacheIdentifier",
    "SupportsApplyTo",
    "IdentifierSource",
    "RecordCodec",
    # Results and errors
    "CollectionResult",
    "CollectionCacheError",
    "ConfigurationError",
    "ItemNotFoundError",
    "StoreError",
    "StorePhase",
    "SerializationError",
    "FallbackError",
    "UnexpectedOperationError",
    "ErrorKind",
    # Store
    "CollectionKeys",
    "CollectionStore",
    "RedisCollectionStore",
    "get_redis",
    "close_redis",
]
