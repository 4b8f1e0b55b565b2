from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from collectioncache.cache.keys import CollectionKeys
from collectioncache.config import settings
from collectioncache.core.errors import ConfigurationError

DEFAULT_BATCH_OPERATION_THRESHOLD_LIMIT = 2500


class OperationType(str, Enum):
    """Operation a collection request performs."""

    READ = "read"
    ADD = "add"
    UPDATE = "update"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class CollectionOptions:
    """Per-collection settings.

    ``expiration`` applies to the Index key only; item keys never expire on
    their own.
    """

    collection_key: str | None = None
    expiration: timedelta | None = None
    batch_operation_threshold_limit: int = DEFAULT_BATCH_OPERATION_THRESHOLD_LIMIT
    use_compression: bool = True

    def __post_init__(self) -> None:
        if self.batch_operation_threshold_limit < 1:
            raise ConfigurationError("Batch operation threshold limit must be positive.")
        # Store TTLs have millisecond resolution; anything shorter expires at once
        if self.expiration is not None and self.expiration < timedelta(milliseconds=1):
            raise ConfigurationError("Expiration must be at least one millisecond.")

    @classmethod
    def from_settings(cls) -> CollectionOptions:
        expiration = None
        if settings.default_expiration_seconds:
            expiration = timedelta(seconds=settings.default_expiration_seconds)
        return cls(
            expiration=expiration,
            batch_operation_threshold_limit=settings.batch_operation_threshold_limit,
            use_compression=settings.use_compression,
        )

    def resolve_collection_key(self, record_type: type) -> str:
        """Configured key, or the default derived from ``record_type``."""
        if self.collection_key:
            return self.collection_key
        return CollectionKeys.default_collection_key(record_type, self.use_compression)
