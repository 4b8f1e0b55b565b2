"""Tests for record serialization and compression."""

import gzip

import orjson
import pytest

from collectioncache.core.codec import RecordCodec, codec_for
from collectioncache.core.errors import SerializationError
from tests.records import Part, Widget


class TestRecordCodec:
    """Round trips with and without compression."""

    @pytest.mark.parametrize("use_compression", [True, False])
    def test_round_trip_model(self, use_compression: bool) -> None:
        codec = RecordCodec(Widget, use_compression)
        widget = Widget(id=1, name="A", tags=["x", "y"])

        assert codec.decode(codec.encode(widget)) == widget

    @pytest.mark.parametrize("use_compression", [True, False])
    def test_round_trip_dataclass(self, use_compression: bool) -> None:
        codec = RecordCodec(Part, use_compression)
        part = Part(number="P-1", description="bolt", quantity=3)

        assert codec.decode(codec.encode(part)) == part

    def test_round_trip_plain_string(self) -> None:
        codec = RecordCodec(str, use_compression=False)
        assert codec.decode(codec.encode("HelloWorld")) == "HelloWorld"

    def test_uncompressed_payload_is_json(self) -> None:
        codec = RecordCodec(Widget, use_compression=False)
        payload = codec.encode(Widget(id=1, name="A"))

        assert orjson.loads(payload) == {"id": 1, "name": "A", "tags": []}

    def test_compressed_payload_is_gzip(self) -> None:
        codec = RecordCodec(Widget, use_compression=True)
        payload = codec.encode(Widget(id=1, name="A"))

        assert payload[:2] == b"\x1f\x8b"
        assert orjson.loads(gzip.decompress(payload))["name"] == "A"

    def test_decode_accepts_text_payload(self) -> None:
        codec = RecordCodec(Widget, use_compression=False)
        assert codec.decode('{"id": 2, "name": "B"}') == Widget(id=2, name="B")

    def test_malformed_json(self) -> None:
        codec = RecordCodec(Widget, use_compression=False)
        with pytest.raises(SerializationError):
            codec.decode(b"{not json")

    def test_payload_of_wrong_shape(self) -> None:
        codec = RecordCodec(Widget, use_compression=False)
        with pytest.raises(SerializationError) as exc_info:
            codec.decode(b'{"id": "abc"}')
        assert exc_info.value.cause is not None

    def test_uncompressed_payload_in_compressed_collection(self) -> None:
        codec = RecordCodec(Widget, use_compression=True)
        with pytest.raises(SerializationError, match="decompress"):
            codec.decode(b'{"id": 1, "name": "A"}')

    def test_codec_for_is_shared(self) -> None:
        assert codec_for(Widget, True) is codec_for(Widget, True)
        assert codec_for(Widget, True) is not codec_for(Widget, False)
