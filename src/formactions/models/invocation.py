# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Inbound invocation models."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# str for plain fields; uploads stay as whatever file object the transport produced.
FieldValue = Any


class FrontEnd(str, Enum):
    """Which adapter produced the invocation."""

    NATIVE_FORM = "native-form"
    STRUCTURED_CALL = "structured-call"


class FormFields:
    """Ordered multi-mapping of submitted fields (duplicate names allowed, order preserved)."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, FieldValue]] = ()):
        self._items: tuple[tuple[str, FieldValue], ...] = tuple((str(name), value) for name, value in items)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FormFields:
        """Expand list/tuple values into repeated fields."""
        items: list[tuple[str, FieldValue]] = []
        for name, value in data.items():
            if isinstance(value, (list, tuple)):
                items.extend((name, item) for item in value)
            else:
                items.append((name, value))
        return cls(items)

    def get(self, name: str, default: FieldValue = None) -> FieldValue:
        for key, value in self._items:
            if key == name:
                return value
        return default

    def getlist(self, name: str) -> list[FieldValue]:
        return [value for key, value in self._items if key == name]

    def keys(self) -> list[str]:
        seen: dict[str, None] = {}
        for key, _ in self._items:
            seen.setdefault(key, None)
        return list(seen)

    def items(self) -> list[tuple[str, FieldValue]]:
        return list(self._items)

    def to_dict(self) -> dict[str, FieldValue]:
        """Collapse to a plain dict: single-valued names map to the value, repeated names to a list."""
        out: dict[str, FieldValue] = {}
        for name in self.keys():
            values = self.getlist(name)
            out[name] = values[0] if len(values) == 1 else values
        return out

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FormFields):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"FormFields({list(self._items)!r})"


@dataclass
class InboundInvocation:
    action_id: str
    fields: FormFields = field(default_factory=FormFields)
    session_key: str | None = None
    front_end: FrontEnd = FrontEnd.NATIVE_FORM
