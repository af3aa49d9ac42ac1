# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Action descriptor models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

ActionHandler = Callable[..., Any]


@dataclass(frozen=True)
class SourceLocation:
    """Declaration-stable coordinate of an action: module path plus exported name."""

    module: str
    name: str

    def __str__(self) -> str:
        return f"{self.module}:{self.name}"

    @classmethod
    def parse(cls, value: str) -> SourceLocation:
        module, sep, name = str(value or "").partition(":")
        if not sep or not module.strip() or not name.strip():
            raise ValueError(f"source location must look like 'module:name', got {value!r}")
        return cls(module=module.strip(), name=name.strip())


@dataclass(frozen=True)
class ActionDescriptor:
    identifier: str
    handler: ActionHandler
    input_shape: Any
    location: SourceLocation
    accepts_context: bool = False

    def to_mapping(self) -> dict[str, Any]:
        shape = self.input_shape
        return {
            "identifier": self.identifier,
            "location": str(self.location),
            "input_shape": getattr(shape, "__name__", None) if shape is not None else None,
            "accepts_context": self.accepts_context,
        }
