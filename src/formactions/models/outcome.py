# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Invocation outcome variants."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    REDIRECT = "redirect"
    VALIDATION_FAILURE = "validation_failure"
    FAULT = "fault"


@dataclass(frozen=True)
class Issue:
    """A single validation problem; `path` addresses the offending field."""

    path: tuple[str | int, ...]
    message: str
    code: str | None = None

    @property
    def field_name(self) -> str:
        return str(self.path[0]) if self.path else ""

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": list(self.path), "message": self.message}
        if self.code:
            data["code"] = self.code
        return data

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Issue:
        raw_path = data.get("path") or ()
        if isinstance(raw_path, (str, int)):
            raw_path = (raw_path,)
        return cls(path=tuple(raw_path), message=str(data.get("message") or ""), code=data.get("code"))


@dataclass(frozen=True)
class Success:
    value: Any = None
    kind: OutcomeKind = field(default=OutcomeKind.SUCCESS, init=False)

    def to_mapping(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if isinstance(self.value, (str, int, float, bool, list, dict)):
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class Redirect:
    location: str
    kind: OutcomeKind = field(default=OutcomeKind.REDIRECT, init=False)

    def to_mapping(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "location": self.location}


@dataclass(frozen=True)
class ValidationFailure:
    issues: tuple[Issue, ...] = ()
    kind: OutcomeKind = field(default=OutcomeKind.VALIDATION_FAILURE, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(self.issues))

    def to_mapping(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "issues": [issue.to_mapping() for issue in self.issues]}


@dataclass(frozen=True)
class Fault:
    """Unexpected handler error; `cause` stays server-side, `message` is safe to show."""

    cause: BaseException | None
    message: str
    kind: OutcomeKind = field(default=OutcomeKind.FAULT, init=False)

    def to_mapping(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


InvocationOutcome = Union[Success, Redirect, ValidationFailure, Fault]


def outcome_from_mapping(data: Mapping[str, Any]) -> InvocationOutcome:
    """Rebuild an outcome from its wire mapping (as returned to structured callers)."""
    kind = OutcomeKind(str(data.get("kind") or ""))
    if kind is OutcomeKind.REDIRECT:
        return Redirect(location=str(data.get("location") or ""))
    if kind is OutcomeKind.VALIDATION_FAILURE:
        return ValidationFailure(tuple(Issue.from_mapping(item) for item in data.get("issues") or []))
    if kind is OutcomeKind.FAULT:
        return Fault(cause=None, message=str(data.get("message") or ""))
    return Success(value=data.get("value"))
