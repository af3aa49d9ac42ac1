# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Pluggable input validation for action handlers."""

from __future__ import annotations

import typing
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from .models import FormFields, Issue


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    value: Any = None
    issues: tuple[Issue, ...] = field(default_factory=tuple)

    @classmethod
    def accept(cls, value: Any) -> ValidationResult:
        return cls(ok=True, value=value)

    @classmethod
    def reject(cls, issues: typing.Iterable[Issue]) -> ValidationResult:
        return cls(ok=False, issues=tuple(issues))


class Validator(Protocol):
    """Checks raw submitted fields against an action's declared input shape."""

    def validate(self, input_shape: Any, fields: FormFields) -> ValidationResult: ...


class PassthroughValidator:
    """Accepts everything; handlers receive the raw FormFields."""

    def validate(self, input_shape: Any, fields: FormFields) -> ValidationResult:  # noqa: ARG002
        return ValidationResult.accept(fields)


def _is_sequence_annotation(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    if origin in (list, tuple, set, frozenset):
        return True
    if origin is typing.Union:
        return any(_is_sequence_annotation(arg) for arg in typing.get_args(annotation) if arg is not type(None))
    return annotation in (list, tuple, set, frozenset)


def form_data_for_model(model: type[BaseModel], fields: FormFields) -> dict[str, Any]:
    """
    Collapse submitted fields into model input.

    Repeated names become lists; single values destined for a sequence field are
    wrapped so `tags=a` and `tags=a&tags=b` validate the same way.
    """
    data = fields.to_dict()
    model_fields = getattr(model, "model_fields", {})
    for name, info in model_fields.items():
        key = info.alias or name
        if key in data and _is_sequence_annotation(info.annotation) and not isinstance(data[key], list):
            data[key] = [data[key]]
    return data


class PydanticValidator:
    """Validator for pydantic models used as input shapes."""

    def validate(self, input_shape: Any, fields: FormFields) -> ValidationResult:
        if input_shape is None:
            return ValidationResult.accept(fields)
        if not (isinstance(input_shape, type) and issubclass(input_shape, BaseModel)):
            raise TypeError(f"PydanticValidator expects a BaseModel subclass, got {input_shape!r}")

        try:
            value = input_shape.model_validate(form_data_for_model(input_shape, fields))
        except ValidationError as exc:
            return ValidationResult.reject(
                Issue(path=tuple(error.get("loc") or ()), message=str(error.get("msg") or ""), code=error.get("type"))
                for error in exc.errors()
            )
        return ValidationResult.accept(value)


__all__ = [
    "PassthroughValidator",
    "PydanticValidator",
    "ValidationResult",
    "Validator",
    "form_data_for_model",
]
