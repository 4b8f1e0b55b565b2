"""Record payload codec.

Records are serialized to JSON text with pydantic + orjson, then optionally
gzip-compressed before they are written to the store.
"""

from __future__ import annotations

import gzip
import zlib
from functools import lru_cache
from typing import Any, Generic, TypeVar

import orjson
from pydantic import TypeAdapter, ValidationError

from collectioncache.core.errors import SerializationError

T = TypeVar("T")

ORJSON_OPTIONS = orjson.OPT_NON_STR_KEYS | orjson.OPT_UTC_Z

COMPRESSION_LEVEL = 6


class RecordCodec(Generic[T]):
    """Serialize/deserialize records of one type, with optional compression."""

    def __init__(self, record_type: type[T], use_compression: bool = True):
        self.record_type = record_type
        self.use_compression = use_compression
        self._adapter: TypeAdapter[T] = TypeAdapter(record_type)

    def serialize(self, record: T) -> bytes:
        """Record -> JSON bytes."""
        try:
            data: Any = self._adapter.dump_python(record, mode="json")
            return orjson.dumps(data, option=ORJSON_OPTIONS)
        except (ValueError, TypeError, orjson.JSONEncodeError) as exc:
            raise SerializationError(
                f"Unable to serialize {self.record_type.__name__} record.", cause=exc
            ) from exc

    def deserialize(self, payload: bytes | str) -> T:
        """JSON bytes -> record."""
        try:
            return self._adapter.validate_python(orjson.loads(payload))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            raise SerializationError(
                f"Unable to deserialize {self.record_type.__name__} record.", cause=exc
            ) from exc

    @staticmethod
    def compress(payload: bytes) -> bytes:
        return gzip.compress(payload, compresslevel=COMPRESSION_LEVEL)

    @staticmethod
    def decompress(payload: bytes | str) -> bytes:
        if isinstance(payload, str):
            payload = payload.encode()
        try:
            return gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise SerializationError("Unable to decompress record payload.", cause=exc) from exc

    def encode(self, record: T) -> bytes:
        """Serialize, then compress when enabled."""
        payload = self.serialize(record)
        return self.compress(payload) if self.use_compression else payload

    def decode(self, payload: bytes | str) -> T:
        """Decompress when enabled, then deserialize."""
        if self.use_compression:
            payload = self.decompress(payload)
        return self.deserialize(payload)


@lru_cache(maxsize=128)
def codec_for(record_type: type[T], use_compression: bool = True) -> RecordCodec[T]:
    """Shared codec per record type and compression mode."""
    return RecordCodec(record_type, use_compression)
