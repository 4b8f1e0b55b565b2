"""Collection engine: lazy initialization plus the five collection operations.

Store layout:
    {collection_key}               -> set of identifiers (the Index)
    {collection_key}:{identifier}  -> serialized, optionally gzip-compressed record

Every operation except Replace first makes sure the collection is
initialized: when the Index is empty the fallback producer is invoked and
every record it returns is written. Replace tears the collection down and
initializes it again.

Nothing here is transactional. A failure part-way through an operation
leaves the writes already made in place (an item written without its Index
membership, an Index deleted but not repopulated). Initialization is a
check-then-act sequence, so concurrent callers may all run the fallback;
that is only safe for a deterministic fallback. Update is read-modify-write
without compare-and-swap, so the last writer wins.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from functools import cached_property, partial
from typing import Any, Generic, TypeVar

from collectioncache.cache.keys import CollectionKeys
from collectioncache.cache.redis import CollectionStore
from collectioncache.cache.resilience import RetryPolicy, execute_resilient
from collectioncache.core.codec import RecordCodec, codec_for
from collectioncache.core.errors import (
    CollectionCacheError,
    ConfigurationError,
    FallbackError,
    ItemNotFoundError,
    StoreError,
    StorePhase,
    UnexpectedOperationError,
)
from collectioncache.core.identifiers import (
    ITEM_NOT_SET_MESSAGE,
    IdentifierSource,
    resolve_identifier,
)
from collectioncache.core.merge import merge_record
from collectioncache.core.options import CollectionOptions, OperationType
from collectioncache.core.result import CollectionResult
from collectioncache.observability.logging import LogContext
from collectioncache.observability.metrics import record_fallback_load, record_operation

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FallbackProducer = Callable[[], Awaitable[CollectionResult[list[T]]]]
ChangesDelegate = Callable[[T], "T | None"]
Handler = Callable[["CollectionRequest[Any]"], Awaitable[list[Any]]]

NO_FALLBACK_MESSAGE = "No fallback function set."
NO_CHANGES_MESSAGE = (
    "No changes were made to the item. "
    "Please pass either with_item or with_changes to update a cached value."
)


def adapt_fallback(
    producer: Callable[[], Awaitable[Iterable[T] | None]],
) -> FallbackProducer[T]:
    """Wrap a plain async producer into the result-shaped fallback contract."""

    async def fallback() -> CollectionResult[list[T]]:
        records = await producer()
        if records is None:
            return CollectionResult.fail(FallbackError("Fallback function returned null."))
        return CollectionResult.ok(list(records))

    return fallback


@dataclass(frozen=True)
class CollectionRequest(Generic[T]):
    """Fully configured, immutable description of one collection operation."""

    operation: OperationType
    record_type: type[T]
    options: CollectionOptions = field(default_factory=CollectionOptions)
    item: T | None = None
    identifier: IdentifierSource = field(default_factory=IdentifierSource)
    fallback: FallbackProducer[T] | None = None
    changes: ChangesDelegate[T] | None = None

    @cached_property
    def collection_key(self) -> str:
        return self.options.resolve_collection_key(self.record_type)

    @cached_property
    def codec(self) -> RecordCodec[T]:
        return codec_for(self.record_type, self.options.use_compression)

    def item_key(self, identifier: str) -> str:
        return CollectionKeys.item_key(self.collection_key, identifier)

    def validate(self) -> None:
        """Raises ConfigurationError when the request cannot be executed."""
        self.identifier.validate_for(self.record_type)


class CollectionEngine:
    """Executes collection requests against a key-value store.

    The engine holds no per-request state, so one instance can serve any
    number of concurrent requests.
    """

    def __init__(self, store: CollectionStore, retry_policy: RetryPolicy | None = None):
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._handlers: dict[OperationType, Handler] = {
            OperationType.READ: self._read,
            OperationType.ADD: self._add,
            OperationType.UPDATE: self._update,
            OperationType.DELETE: self._delete,
            OperationType.REPLACE: self._replace,
        }

    async def execute(self, request: CollectionRequest[T]) -> CollectionResult[list[T]]:
        """Run ``request`` and report the outcome as a result value."""
        operation = getattr(request.operation, "value", str(request.operation))
        started = time.perf_counter()

        with LogContext(collection_key=request.collection_key, operation=operation):
            try:
                request.validate()
                if request.operation is not OperationType.REPLACE:
                    await self.ensure_initialized(request)
                records = await self._dispatch(request)
                result: CollectionResult[list[T]] = CollectionResult.ok(records)
            except CollectionCacheError as exc:
                logger.warning(f"Collection {operation} failed: {exc.message}", exc_info=exc.cause)
                result = CollectionResult.fail(exc)
            except Exception as exc:
                logger.exception(f"Unexpected error during collection {operation}")
                result = CollectionResult.fail(
                    CollectionCacheError(f"Unexpected error during {operation}.", cause=exc)
                )

        outcome = "success" if result.is_success else "failure"
        record_operation(operation, outcome, time.perf_counter() - started)
        return result

    async def _dispatch(self, request: CollectionRequest[T]) -> list[T]:
        handler = self._handlers.get(request.operation)
        if handler is None:
            raise UnexpectedOperationError(request.operation)
        return await handler(request)

    # -------------------------------------------------------------------------
    # Lazy initialization
    # -------------------------------------------------------------------------

    async def ensure_initialized(self, request: CollectionRequest[T]) -> list[T] | None:
        """Populate the collection from the fallback when its Index is empty.

        Returns the records written, or None when the collection was already
        initialized.
        """
        key = request.collection_key
        identifiers = await self._read_index(key)
        if identifiers:
            return None

        if request.fallback is None:
            raise ConfigurationError(NO_FALLBACK_MESSAGE)

        records = await self._load_fallback(request.fallback)
        for record in records:
            identifier = resolve_identifier(request.identifier, record, allow_literal=False)
            await self._write_record(
                request, identifier, record, "Error when attempting to add the record"
            )
            await self._call(
                StorePhase.WRITE_RECORD,
                "Error when attempting to add the record",
                partial(self.store.add_member, key, identifier),
            )

        await self._apply_expiration(request)
        logger.info(f"Initialized collection {key} with {len(records)} records from fallback")
        return records

    async def _load_fallback(self, fallback: FallbackProducer[T]) -> list[T]:
        try:
            result = await fallback()
        except Exception as exc:
            record_fallback_load("error")
            raise FallbackError(
                "Error when attempting to read the fallback source.", cause=exc
            ) from exc

        if result.is_failed:
            record_fallback_load("error")
            raise result.errors[0]
        if not result.value:
            record_fallback_load("empty")
            raise FallbackError("Fallback function returned null or no records.")

        record_fallback_load("success")
        return list(result.value)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def _read(self, request: CollectionRequest[T]) -> list[T]:
        identifiers = sorted(await self._read_index(request.collection_key))
        keys = CollectionKeys.item_keys(request.collection_key, identifiers)
        limit = request.options.batch_operation_threshold_limit

        records: list[T] = []
        for start in range(0, len(keys), limit):
            batch = keys[start : start + limit]
            payloads = await self._call(
                StorePhase.READ_RECORDS,
                "Error when attempting to read the records",
                partial(self.store.get_many, batch),
                resilient_name="get_many",
            )
            for item_key, payload in zip(batch, payloads):
                if payload is None:
                    identifier = CollectionKeys.parse_item_key(request.collection_key, item_key)
                    logger.warning(f"Index member {identifier!r} has no stored record; skipping")
                    continue
                records.append(request.codec.decode(payload))

        logger.debug(f"Read {len(records)} records in {math.ceil(len(keys) / limit)} batches")
        return records

    async def _add(self, request: CollectionRequest[T]) -> list[T]:
        if request.item is None:
            raise ConfigurationError(ITEM_NOT_SET_MESSAGE)

        identifier = resolve_identifier(request.identifier, request.item)
        await self._write_record(
            request, identifier, request.item, "Error when attempting to add the record"
        )
        await self._call(
            StorePhase.WRITE_RECORD,
            "Error when attempting to add the record",
            partial(self.store.add_member, request.collection_key, identifier),
        )
        await self._apply_expiration(request)
        return [request.item]

    async def _update(self, request: CollectionRequest[T]) -> list[T]:
        identifier = resolve_identifier(request.identifier, request.item)
        payload = await self._call(
            StorePhase.READ_RECORDS,
            "Error when attempting to update the record",
            partial(self.store.get, request.item_key(identifier)),
            resilient_name="get",
        )
        if not payload:
            raise ItemNotFoundError(identifier)

        existing = request.codec.decode(payload)
        updated = self._apply_changes(request, existing)
        await self._write_record(
            request, identifier, updated, "Error when attempting to update the record"
        )
        await self._apply_expiration(request)
        return [updated]

    async def _delete(self, request: CollectionRequest[T]) -> list[T]:
        identifier = resolve_identifier(request.identifier, request.item)
        await self._call(
            StorePhase.DELETE_RECORD,
            "Error when attempting to remove the record",
            partial(self.store.delete, request.item_key(identifier)),
        )
        await self._call(
            StorePhase.DELETE_RECORD,
            "Error when attempting to remove the record",
            partial(self.store.remove_member, request.collection_key, identifier),
        )
        await self._apply_expiration(request)
        return []

    async def _replace(self, request: CollectionRequest[T]) -> list[T]:
        key = request.collection_key
        identifiers = await self._read_index(key)

        for identifier in identifiers:
            await self._call(
                StorePhase.DELETE_RECORD,
                "Error when attempting to replace the collection",
                partial(self.store.delete, request.item_key(identifier)),
            )
        await self._call(
            StorePhase.DELETE_INDEX,
            "Error when attempting to replace the collection",
            partial(self.store.delete, key),
        )
        logger.info(f"Cleared collection {key} ({len(identifiers)} records)")

        records = await self.ensure_initialized(request)
        if records is None:
            # Another caller repopulated the collection first
            return await self._read(request)
        return records

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _apply_changes(self, request: CollectionRequest[T], existing: T) -> T:
        if request.changes is not None:
            try:
                replacement = request.changes(existing)
            except Exception as exc:
                raise CollectionCacheError(
                    "Error when applying changes to the record.", cause=exc
                ) from exc
            # Return values that are not records of the collection type are ignored
            if isinstance(request.record_type, type) and isinstance(
                replacement, request.record_type
            ):
                return replacement
            return existing

        if request.item is not None:
            return merge_record(existing, request.item)

        raise ConfigurationError(NO_CHANGES_MESSAGE)

    async def _read_index(self, key: str) -> set[str]:
        return await self._call(
            StorePhase.READ_INDEX,
            "Error when attempting to read the collection index",
            partial(self.store.members, key),
        )

    async def _write_record(
        self, request: CollectionRequest[T], identifier: str, record: T, message: str
    ) -> None:
        payload = request.codec.encode(record)
        await self._call(
            StorePhase.WRITE_RECORD,
            message,
            partial(self.store.set, request.item_key(identifier), payload),
            resilient_name="set",
        )

    async def _apply_expiration(self, request: CollectionRequest[T]) -> None:
        expiration = request.options.expiration
        if expiration is None:
            return
        await self._call(
            StorePhase.SET_EXPIRATION,
            "Error when attempting to set the expiration",
            partial(self.store.expire, request.collection_key, expiration),
        )

    async def _call(
        self,
        phase: StorePhase,
        message: str,
        operation: Callable[[], Awaitable[R]],
        resilient_name: str | None = None,
    ) -> R:
        """Run one store primitive, converting failures into ``StoreError``.

        ``resilient_name`` routes the call through retry and timeout handling.
        """
        try:
            if resilient_name is not None:
                return await execute_resilient(operation, resilient_name, self.retry_policy)
            return await operation()
        except Exception as exc:
            raise StoreError(message, phase, cause=exc) from exc
