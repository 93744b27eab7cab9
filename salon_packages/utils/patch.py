"""
==============================================================================
Tagged Partial-Update Values
==============================================================================

A PATCH-style body distinguishes three states per field: the key was not
sent (leave the stored value), the key was sent as null (clear it), or a
value was sent (overwrite). FieldPatch carries that tag explicitly so the
service layer never has to guess from a bare None.

==============================================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class PatchOp(str, enum.Enum):
    UNSET = "unset"
    CLEAR = "clear"
    SET = "set"


@dataclass(frozen=True)
class FieldPatch(Generic[T]):
    """A single field's partial-update instruction."""

    op: PatchOp
    value: Optional[T] = None

    @classmethod
    def unset(cls) -> "FieldPatch[T]":
        return cls(PatchOp.UNSET)

    @classmethod
    def clear(cls) -> "FieldPatch[T]":
        return cls(PatchOp.CLEAR)

    @classmethod
    def set(cls, value: T) -> "FieldPatch[T]":
        return cls(PatchOp.SET, value)

    @property
    def is_unset(self) -> bool:
        return self.op is PatchOp.UNSET

    def apply(self, current: Optional[T]) -> Optional[T]:
        """Resolve the patch against the currently stored value."""
        if self.op is PatchOp.UNSET:
            return current
        if self.op is PatchOp.CLEAR:
            return None
        return self.value


def patches_from_model(model: BaseModel, exclude: tuple = ()) -> Dict[str, FieldPatch[Any]]:
    """
    Build a FieldPatch per declared field of a pydantic model.

    Fields missing from `model_fields_set` become UNSET, explicit nulls
    become CLEAR, anything else SET.
    """
    patches: Dict[str, FieldPatch[Any]] = {}
    for name in type(model).model_fields:
        if name in exclude:
            continue
        if name not in model.model_fields_set:
            patches[name] = FieldPatch.unset()
            continue
        value = getattr(model, name)
        patches[name] = FieldPatch.clear() if value is None else FieldPatch.set(value)
    return patches
