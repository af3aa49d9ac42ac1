# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Action state and navigation models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .invocation import FieldValue, FormFields
from .outcome import Fault, InvocationOutcome, Issue, ValidationFailure


@dataclass(frozen=True)
class ActionState:
    """Snapshot handed to the next render of the page that issued the form."""

    fields: FormFields
    outcome: InvocationOutcome

    @property
    def issues(self) -> tuple[Issue, ...]:
        if isinstance(self.outcome, ValidationFailure):
            return self.outcome.issues
        return ()

    @property
    def failed(self) -> bool:
        return isinstance(self.outcome, (ValidationFailure, Fault))

    def value_of(self, name: str, default: str = "") -> FieldValue:
        """Previously submitted value for prefilling an input (text fields only)."""
        value = self.fields.get(name)
        return value if isinstance(value, str) else default

    def errors_for(self, name: str) -> list[str]:
        return [issue.message for issue in self.issues if issue.field_name == name]

    def to_mapping(self) -> dict[str, Any]:
        return {
            "fields": {name: value for name, value in self.fields.to_dict().items() if isinstance(value, (str, list))},
            "outcome": self.outcome.to_mapping(),
        }


@dataclass(frozen=True)
class NavigationDirective:
    """Tell the client to load `location` with a fresh GET (303 See Other)."""

    location: str
    status_code: int = 303

    def to_mapping(self) -> dict[str, Any]:
        return {"kind": "redirect", "location": self.location, "status_code": self.status_code}
