# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Render-time encoding of action references into form fields."""

from __future__ import annotations

from html import escape
from typing import Any

from .errors import ActionNotFound
from .models import ActionDescriptor
from .registry import ActionRegistry

ACTION_FIELD_PREFIX = "$ACTION_"
ACTION_ID_FIELD = "$ACTION_ID"
ACTION_ID_FIELD_PREFIX = "$ACTION_ID_"
ACTION_KEY_FIELD = "$ACTION_KEY"


class ActionReferenceEncoder:
    """Turns handler references into identifiers embeddable in HTML."""

    def __init__(self, registry: ActionRegistry):
        self.registry = registry
        self._cache: dict[Any, str] = {}

    def encode(self, handler_ref: Any) -> str:
        if isinstance(handler_ref, ActionDescriptor):
            return handler_ref.identifier
        if isinstance(handler_ref, str):
            # Raises for identifiers the running registry does not know.
            return self.registry.resolve(handler_ref).identifier

        cached = self._cache.get(handler_ref)
        if cached is not None:
            return cached
        identifier = self.registry.identifier_for(handler_ref)
        if identifier is None:
            raise ActionNotFound(getattr(handler_ref, "__qualname__", repr(handler_ref)))
        self._cache[handler_ref] = identifier
        return identifier

    def hidden_field(self, handler_ref: Any) -> tuple[str, str]:
        """Reserved (name, value) pair that names the action in a native form post."""
        return f"{ACTION_ID_FIELD_PREFIX}{self.encode(handler_ref)}", ""

    @staticmethod
    def session_field(session_key: str) -> tuple[str, str]:
        return ACTION_KEY_FIELD, session_key

    def render_hidden_inputs(self, handler_ref: Any, session_key: str | None = None) -> str:
        """Markup for the hidden inputs a form needs to target `handler_ref`."""
        fields = [self.hidden_field(handler_ref)]
        if session_key:
            fields.append(self.session_field(session_key))
        return "".join(
            f'<input type="hidden" name="{escape(name, quote=True)}" value="{escape(value, quote=True)}">'
            for name, value in fields
        )


__all__ = [
    "ACTION_FIELD_PREFIX",
    "ACTION_ID_FIELD",
    "ACTION_ID_FIELD_PREFIX",
    "ACTION_KEY_FIELD",
    "ActionReferenceEncoder",
]
