from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from collectioncache.core.errors import CollectionCacheError

T = TypeVar("T")


@dataclass
class CollectionResult(Generic[T]):
    """Outcome of a collection operation: a value or a non-empty error list."""

    value: T | None = None
    errors: list[CollectionCacheError] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    @property
    def is_failed(self) -> bool:
        return bool(self.errors)

    @property
    def error(self) -> CollectionCacheError | None:
        """First error, if any."""
        return self.errors[0] if self.errors else None

    @classmethod
    def ok(cls, value: T) -> CollectionResult[T]:
        return cls(value=value)

    @classmethod
    def fail(cls, *errors: CollectionCacheError) -> CollectionResult[T]:
        if not errors:
            raise ValueError("a failed result needs at least one error")
        return cls(errors=list(errors))

    def unwrap(self) -> T:
        """Return the value or raise the first error."""
        if self.errors:
            raise self.errors[0]
        return self.value  # type: ignore[return-value]
