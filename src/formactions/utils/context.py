# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-render ambient context.

This module provides a ContextVar-backed RenderContext that carries the render
session key and the channel/encoder a page needs while rendering. Page code
reads action state through `use_action_state` instead of threading these
objects through every template helper.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from ..models import ActionState

if TYPE_CHECKING:
    from ..channel import ResultChannel
    from ..encoder import ActionReferenceEncoder


@dataclass(frozen=True)
class RenderContext:
    session_key: str | None = None
    channel: ResultChannel | None = None
    encoder: ActionReferenceEncoder | None = None
    extra: dict[str, Any] = field(default_factory=dict)


_current_render_context: ContextVar[RenderContext | None] = ContextVar("formactions_render_context", default=None)
_STATE_CACHE_KEY = "formactions_action_state"


def new_session_key() -> str:
    return secrets.token_urlsafe(16)


def get_render_context() -> RenderContext:
    """Return the current ambient render context."""
    return _current_render_context.get() or RenderContext()


@contextmanager
def render_context(**overrides: Any) -> Iterator[RenderContext]:
    """
    Context manager that layers overrides onto the ambient RenderContext.

    None-valued overrides are ignored to preserve outer context values. A fresh
    `extra` dict is used for every render so consumed state never leaks between renders.
    """
    current = get_render_context()
    filtered = {key: value for key, value in overrides.items() if value is not None}
    filtered.setdefault("extra", {})
    new_context = replace(current, **filtered)
    token = _current_render_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_render_context.reset(token)


def use_action_state(handler_ref: Any, initial: Any = None) -> ActionState | Any:
    """
    Return the state left by the last submission of `handler_ref` in this render session.

    The channel entry is consumed on first read; repeated calls within the same
    render return the same state.
    """
    context = get_render_context()
    if context.channel is None or context.encoder is None or not context.session_key:
        return initial

    action_id = context.encoder.encode(handler_ref)
    cache = context.extra.setdefault(_STATE_CACHE_KEY, {})
    if action_id not in cache:
        cache[action_id] = context.channel.consume(action_id, context.session_key)
    state = cache[action_id]
    return state if state is not None else initial


def action_inputs(handler_ref: Any) -> str:
    """Hidden inputs targeting `handler_ref` and correlating with the current render session."""
    context = get_render_context()
    if context.encoder is None:
        raise RuntimeError("action_inputs() called outside a render context")
    return context.encoder.render_hidden_inputs(handler_ref, context.session_key)


__all__ = [
    "RenderContext",
    "action_inputs",
    "get_render_context",
    "new_session_key",
    "render_context",
    "use_action_state",
]
