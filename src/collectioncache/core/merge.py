from __future__ import annotations

import dataclasses
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

T = TypeVar("T")


@runtime_checkable
class SupportsApplyTo(Protocol):
    """A record that knows how to copy its fields onto another instance."""

    def apply_to(self, target: Any) -> None: ...


def merge_record(target: T, source: T) -> T:
    """Overwrite every declared field of ``target`` with the value from ``source``.

    Returns the merged record. Mutable records are updated in place; frozen
    models and dataclasses yield a copy; plain values are replaced by ``source``.
    """
    if isinstance(source, SupportsApplyTo):
        source.apply_to(target)
        return target

    if isinstance(target, BaseModel) and isinstance(source, BaseModel):
        names = type(target).model_fields
        values = {name: getattr(source, name) for name in names if hasattr(source, name)}
        if type(target).model_config.get("frozen"):
            return target.model_copy(update=values)
        for name, value in values.items():
            setattr(target, name, value)
        return target

    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        fields = [f for f in dataclasses.fields(target) if f.init]
        values = {f.name: getattr(source, f.name) for f in fields if hasattr(source, f.name)}
        if type(target).__dataclass_params__.frozen:  # type: ignore[attr-defined]
            return dataclasses.replace(target, **values)
        for name, value in values.items():
            setattr(target, name, value)
        return target

    return source
