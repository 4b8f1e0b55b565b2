"""Tests for full-overwrite merging used by Update."""

from collectioncache.core.merge import merge_record
from tests.records import FrozenWidget, Part, Ticket, Widget


class TestMergeRecord:
    def test_model_fields_overwritten_in_place(self) -> None:
        target = Widget(id=1, name="A", tags=["old"])
        source = Widget(id=1, name="B", tags=[])

        merged = merge_record(target, source)

        assert merged is target
        assert target == Widget(id=1, name="B", tags=[])

    def test_frozen_model_yields_copy(self) -> None:
        target = FrozenWidget(id=1, name="A")
        merged = merge_record(target, FrozenWidget(id=1, name="B"))

        assert merged == FrozenWidget(id=1, name="B")
        assert target.name == "A"

    def test_dataclass_fields_overwritten(self) -> None:
        target = Part(number="P-1", description="bolt", quantity=1)
        merge_record(target, Part(number="P-1", description="nut", quantity=5))

        assert target == Part(number="P-1", description="nut", quantity=5)

    def test_apply_to_capability_wins(self) -> None:
        """A record's own apply_to decides which fields are copied."""
        target = Ticket(id="T-1", title="Original", status="open")
        merge_record(target, Ticket(id="T-1", title="Ignored", status="closed"))

        assert target.status == "closed"
        assert target.title == "Original"

    def test_plain_values_replaced(self) -> None:
        assert merge_record("old", "new") == "new"
