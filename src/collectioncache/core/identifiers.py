"""Identifier resolution for collection records.

Every record stored in a collection needs exactly one identifier. It comes
from one of these sources:

1. a selector callable (``record -> identifier``)
2. a property name read from the record
3. a literal identifier
4. the record itself: either it implements ``cache_identifier()`` or one of
   its declared fields carries the ``RecordIdentifier`` marker

Sources 1-3 are mutually exclusive. Source 4 is used only when none of them
is configured.

Example:
    class Widget(BaseModel):
        id: Annotated[int, RecordIdentifier()]
        name: str

    resolve_identifier(IdentifierSource(), Widget(id=1, name="A"))  # "1"
"""

from __future__ import annotations

import dataclasses
import typing
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel

from collectioncache.core.errors import ConfigurationError

MULTIPLE_SOURCES_MESSAGE = "More than one identifier option set. Please only use one."
ITEM_NOT_SET_MESSAGE = "Item not set. Please use with_item."
IDENTIFIER_NOT_SET_MESSAGE = (
    "Identifier not set. Please use with_record_identifier to set a value "
    "or mark a field of the record type with RecordIdentifier."
)


class RecordIdentifier:
    """Marks the field holding a record's identifier.

    Used as ``Annotated`` metadata on a pydantic model or dataclass field.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "RecordIdentifier()"


@runtime_checkable
class SupportsCacheIdentifier(Protocol):
    """A record that knows its own identifier."""

    def cache_identifier(self) -> str: ...


def format_identifier(value: object) -> str:
    """Render an identifier value as its key segment.

    UUIDs render as 32 hex digits without dashes.
    """
    if isinstance(value, UUID):
        return value.hex
    return str(value)


@lru_cache(maxsize=256)
def declared_fields(record_type: type) -> frozenset[str] | None:
    """Field names declared by a pydantic model or dataclass, else None."""
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        return frozenset(record_type.model_fields)
    if dataclasses.is_dataclass(record_type):
        return frozenset(f.name for f in dataclasses.fields(record_type))
    return None


@lru_cache(maxsize=256)
def designated_field(record_type: type) -> str | None:
    """Name of the first field marked with ``RecordIdentifier``."""
    if isinstance(record_type, type) and issubclass(record_type, BaseModel):
        for name, info in record_type.model_fields.items():
            if any(isinstance(meta, RecordIdentifier) for meta in info.metadata):
                return name
        return None

    if dataclasses.is_dataclass(record_type):
        hints = typing.get_type_hints(record_type, include_extras=True)
        for f in dataclasses.fields(record_type):
            metadata = getattr(hints.get(f.name), "__metadata__", ())
            if any(isinstance(meta, RecordIdentifier) for meta in metadata):
                return f.name
    return None


@dataclass(frozen=True)
class IdentifierSource:
    """Configured identifier sources for one request."""

    selector: Callable[[Any], object] | None = None
    property_name: str | None = None
    literal: str | None = None

    @property
    def configured_count(self) -> int:
        return sum(
            source is not None for source in (self.selector, self.property_name, self.literal)
        )

    def validate_for(self, record_type: type) -> None:
        """Check the configuration against ``record_type``.

        Raises:
            ConfigurationError: more than one source, or an unknown property.
        """
        if self.configured_count > 1:
            raise ConfigurationError(MULTIPLE_SOURCES_MESSAGE)
        if self.property_name is not None:
            fields = declared_fields(record_type)
            if fields is not None and self.property_name not in fields:
                raise ConfigurationError(
                    f"Property '{self.property_name}' not found on type '{record_type.__name__}'."
                )


def resolve_identifier(
    source: IdentifierSource,
    item: object | None,
    *,
    allow_literal: bool = True,
) -> str:
    """Resolve the identifier of ``item``.

    ``allow_literal=False`` skips a literal identifier, which names a single
    target record and cannot identify records produced by a fallback.

    Raises:
        ConfigurationError: the sources violate the policy, the item is
            missing, or no identifier could be derived.
    """
    if source.configured_count > 1:
        raise ConfigurationError(MULTIPLE_SOURCES_MESSAGE)

    if source.selector is not None:
        if item is None:
            raise ConfigurationError(ITEM_NOT_SET_MESSAGE)
        try:
            value = source.selector(item)
        except Exception as exc:
            raise ConfigurationError("Identifier selector failed.", cause=exc) from exc
        return _non_empty(value)

    if source.property_name is not None:
        if item is None:
            raise ConfigurationError(ITEM_NOT_SET_MESSAGE)
        if not hasattr(item, source.property_name):
            raise ConfigurationError(
                f"Property '{source.property_name}' not found on type '{type(item).__name__}'."
            )
        return _non_empty(getattr(item, source.property_name))

    if source.literal is not None and allow_literal:
        return _non_empty(source.literal)

    if item is None:
        raise ConfigurationError(ITEM_NOT_SET_MESSAGE)
    return _non_empty(_structural_identifier(item))


def _structural_identifier(item: object) -> object:
    if isinstance(item, SupportsCacheIdentifier):
        return item.cache_identifier()
    name = designated_field(type(item))
    if name is None:
        raise ConfigurationError(IDENTIFIER_NOT_SET_MESSAGE)
    return getattr(item, name)


def _non_empty(value: object) -> str:
    if value is None:
        raise ConfigurationError(IDENTIFIER_NOT_SET_MESSAGE)
    identifier = format_identifier(value)
    if not identifier:
        raise ConfigurationError(IDENTIFIER_NOT_SET_MESSAGE)
    return identifier
