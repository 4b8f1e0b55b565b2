"""Fluent entry points for collection operations.

Example:
    cache = CollectionCache(RedisCollectionStore(await get_redis()))

    result = await (
        cache.read_from_collection(Widget)
        .with_collection_key("Widgets")
        .with_fallback(load_widgets)
        .with_expiration(timedelta(hours=1))
        .execute()
    )

    await (
        cache.update_collection(Widget)
        .with_collection_key("Widgets")
        .with_record_identifier("1")
        .with_changes(lambda widget: setattr(widget, "name", "Z"))
        .execute()
    )

Builders are immutable: every ``with_*`` call returns a new builder, so a
partially configured builder can be shared and extended without one call's
settings leaking into another.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Generic, TypeVar
from uuid import UUID

from collectioncache.cache.redis import CollectionStore, RedisCollectionStore, get_redis
from collectioncache.cache.resilience import RetryPolicy
from collectioncache.core.engine import (
    ChangesDelegate,
    CollectionEngine,
    CollectionRequest,
    FallbackProducer,
    adapt_fallback,
)
from collectioncache.core.errors import CollectionCacheError
from collectioncache.core.identifiers import IdentifierSource, format_identifier
from collectioncache.core.options import CollectionOptions, OperationType
from collectioncache.core.result import CollectionResult

T = TypeVar("T")

BuilderT = TypeVar("BuilderT", bound="CollectionBuilder[Any]")


class CollectionCache:
    """Entry point creating builders for one store."""

    def __init__(
        self,
        store: CollectionStore,
        *,
        options: CollectionOptions | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.engine = CollectionEngine(store, retry_policy)
        self.options = options or CollectionOptions.from_settings()

    @classmethod
    async def from_url(cls, url: str | None = None, **kwargs: object) -> CollectionCache:
        """Create a cache backed by the shared Redis client."""
        client = await get_redis(url)
        return cls(RedisCollectionStore(client), **kwargs)  # type: ignore[arg-type]

    def read_from_collection(self, record_type: type[T]) -> CollectionBuilder[T]:
        return CollectionBuilder(self.engine, OperationType.READ, record_type, self.options)

    def replace_collection(self, record_type: type[T]) -> CollectionBuilder[T]:
        return CollectionBuilder(self.engine, OperationType.REPLACE, record_type, self.options)

    def add_to_collection(self, record_type: type[T]) -> CollectionModifier[T]:
        return CollectionModifier(self.engine, OperationType.ADD, record_type, self.options)

    def update_collection(self, record_type: type[T]) -> CollectionModifier[T]:
        return CollectionModifier(self.engine, OperationType.UPDATE, record_type, self.options)

    def delete_from_collection(self, record_type: type[T]) -> CollectionModifier[T]:
        return CollectionModifier(self.engine, OperationType.DELETE, record_type, self.options)


@dataclass(frozen=True)
class CollectionBuilder(Generic[T]):
    """Configures a Read or Replace request."""

    engine: CollectionEngine
    operation: OperationType
    record_type: type[T]
    options: CollectionOptions = field(default_factory=CollectionOptions)
    fallback: FallbackProducer[T] | None = None

    def _with_options(self: BuilderT, **changes: object) -> BuilderT:
        options = dataclasses.replace(self.options, **changes)
        return dataclasses.replace(self, options=options)

    def with_collection_key(self: BuilderT, key: str) -> BuilderT:
        """Sets the key identifying the collection."""
        return self._with_options(collection_key=key)

    def with_expiration(self: BuilderT, expiration: timedelta | float) -> BuilderT:
        """Sets the Index expiration; numbers are seconds."""
        if not isinstance(expiration, timedelta):
            expiration = timedelta(seconds=expiration)
        return self._with_options(expiration=expiration)

    def with_batch_threshold(self: BuilderT, limit: int) -> BuilderT:
        """Caps the number of keys fetched by one multi-key read."""
        return self._with_options(batch_operation_threshold_limit=limit)

    def with_compression(self: BuilderT, enabled: bool = True) -> BuilderT:
        return self._with_options(use_compression=enabled)

    def with_fallback(
        self: BuilderT, producer: Callable[[], Awaitable[Iterable[T] | None]]
    ) -> BuilderT:
        """Sets the async producer of the full record set."""
        return dataclasses.replace(self, fallback=adapt_fallback(producer))

    def with_result_fallback(self: BuilderT, producer: FallbackProducer[T]) -> BuilderT:
        """Sets a producer that reports its own failures as a result."""
        return dataclasses.replace(self, fallback=producer)

    def build(self) -> CollectionRequest[T]:
        """Validate and freeze the configuration.

        Raises:
            ConfigurationError: the configuration cannot be executed.
        """
        request = CollectionRequest(
            operation=self.operation,
            record_type=self.record_type,
            options=self.options,
            fallback=self.fallback,
        )
        request.validate()
        return request

    async def execute(self) -> CollectionResult[list[T]]:
        try:
            request = self.build()
        except CollectionCacheError as exc:
            return CollectionResult.fail(exc)
        return await self.engine.execute(request)


@dataclass(frozen=True)
class CollectionModifier(CollectionBuilder[T]):
    """Configures an Add, Update or Delete request."""

    item: T | None = None
    identifier: IdentifierSource = field(default_factory=IdentifierSource)
    changes: ChangesDelegate[T] | None = None

    def with_item(self, item: T) -> CollectionModifier[T]:
        """Sets the item to add, the replacement for an update, or the item to delete."""
        return dataclasses.replace(self, item=item)

    def with_record_identifier(
        self, identifier: str | int | UUID | Callable[[T], object]
    ) -> CollectionModifier[T]:
        """Sets a literal identifier, or a selector deriving it from the item."""
        if callable(identifier):
            source = dataclasses.replace(self.identifier, selector=identifier)
        else:
            source = dataclasses.replace(self.identifier, literal=format_identifier(identifier))
        return dataclasses.replace(self, identifier=source)

    def with_property_record_identifier(self, property_name: str) -> CollectionModifier[T]:
        """Reads the identifier from the named field of the item."""
        source = dataclasses.replace(self.identifier, property_name=property_name)
        return dataclasses.replace(self, identifier=source)

    def with_changes(self, changes: ChangesDelegate[T]) -> CollectionModifier[T]:
        """Sets the function applying an update to the stored record.

        It may mutate the record in place or return a replacement record; a
        return value of any other type is ignored.
        """
        return dataclasses.replace(self, changes=changes)

    def build(self) -> CollectionRequest[T]:
        request = CollectionRequest(
            operation=self.operation,
            record_type=self.record_type,
            options=self.options,
            item=self.item,
            identifier=self.identifier,
            fallback=self.fallback,
            changes=self.changes,
        )
        request.validate()
        return request
