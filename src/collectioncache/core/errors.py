"""Typed failures for collection operations.

Handlers raise these; ``CollectionEngine.execute`` converts them into a
failed ``CollectionResult`` so nothing escapes an operation boundary for an
expected failure mode.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a collection failure."""

    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    STORE = "store"
    SERIALIZATION = "serialization"
    FALLBACK = "fallback"
    INTERNAL = "internal"


class StorePhase(str, Enum):
    """Which store interaction failed."""

    READ_INDEX = "read index"
    READ_RECORDS = "read records"
    WRITE_RECORD = "write record"
    DELETE_RECORD = "delete record"
    DELETE_INDEX = "delete index"
    SET_EXPIRATION = "set expiration"


class CollectionCacheError(Exception):
    """Base class for every failure reported by a collection operation."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, str | None]:
        """Render as a plain mapping for logs and API payloads."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "cause": repr(self.cause) if self.cause is not None else None,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ConfigurationError(CollectionCacheError):
    """The request was configured inconsistently or incompletely."""

    kind = ErrorKind.CONFIGURATION


class ItemNotFoundError(CollectionCacheError):
    """The targeted record does not exist in the collection."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, identifier: str):
        super().__init__("Item not found in collection.")
        self.identifier = identifier


class StoreError(CollectionCacheError):
    """A key-value store primitive failed."""

    kind = ErrorKind.STORE

    def __init__(self, message: str, phase: StorePhase, cause: BaseException | None = None):
        super().__init__(message, cause)
        self.phase = phase

    def to_dict(self) -> dict[str, str | None]:
        data = super().to_dict()
        data["phase"] = self.phase.value
        return data


class SerializationError(CollectionCacheError):
    """A payload could not be encoded or decoded."""

    kind = ErrorKind.SERIALIZATION


class FallbackError(CollectionCacheError):
    """The fallback producer raised or produced nothing."""

    kind = ErrorKind.FALLBACK


class UnexpectedOperationError(CollectionCacheError):
    """The request named an operation the engine cannot dispatch."""

    kind = ErrorKind.INTERNAL

    def __init__(self, operation: object):
        super().__init__("Unexpected operation type")
        self.operation = operation
