"""Cache key schema for collections.

Key format:
- Index key: {collection_key}                 -> set of identifiers
- Item key:  {collection_key}:{identifier}    -> serialized record payload

Default collection key: {prefix}:{TypeName}:Collection[:Compressed]

Where:
- prefix: "CollectionCache" (namespace, configurable via settings)
- TypeName: the record type's class name
- Compressed: present when payloads are gzip-compressed, so compressed and
  plain collections of the same type never share keys
"""

from __future__ import annotations

from collections.abc import Iterable

from collectioncache.config import settings


class CollectionKeys:
    """Cache key generator following consistent naming convention."""

    SEPARATOR = ":"
    COMPRESSED_TAG = "Compressed"

    @classmethod
    def prefix(cls) -> str:
        return settings.key_prefix

    @classmethod
    def default_collection_key(cls, record_type: type, compressed: bool = True) -> str:
        """Key for a collection of ``record_type`` when none is configured."""
        key = f"{cls.prefix()}:{record_type.__name__}:Collection"
        if compressed:
            key = f"{key}:{cls.COMPRESSED_TAG}"
        return key

    @classmethod
    def item_key(cls, collection_key: str, identifier: str) -> str:
        """Key for one record of a collection."""
        return f"{collection_key}{cls.SEPARATOR}{identifier}"

    @classmethod
    def item_keys(cls, collection_key: str, identifiers: Iterable[str]) -> list[str]:
        """Item keys for ``identifiers``, preserving their order."""
        return [cls.item_key(collection_key, identifier) for identifier in identifiers]

    @classmethod
    def parse_item_key(cls, collection_key: str, key: str) -> str | None:
        """Extract the identifier from an item key.

        Returns None if the key does not belong to the collection.
        """
        head = f"{collection_key}{cls.SEPARATOR}"
        if not key.startswith(head) or len(key) == len(head):
            return None
        return key[len(head) :]
