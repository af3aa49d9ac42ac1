# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Shared helpers for server action identifiers."""

import hashlib
import inspect
import re

ACTION_ID_PREFIX = "40"
ACTION_ID_PATTERN = re.compile(r"^[0-9a-f]{42}$")


def derive_action_id(location: str, *, salt: str = "", prefix: str = ACTION_ID_PREFIX) -> str:
    """Derive a deterministic identifier from a `module:name` source coordinate."""
    digest = hashlib.sha1(f"{salt}\0{location}".encode("utf-8")).hexdigest()
    return f"{prefix}{digest}"


def looks_like_action_id(value: str | None) -> bool:
    return bool(value) and bool(ACTION_ID_PATTERN.match(str(value)))


def accepts_context(handler: object) -> bool:
    """True when the handler takes a second positional parameter for the invocation context."""
    try:
        signature = inspect.signature(handler)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    positional = [
        param
        for param in signature.parameters.values()
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if any(param.kind is inspect.Parameter.VAR_POSITIONAL for param in signature.parameters.values()):
        return True
    return len(positional) >= 2


__all__ = ["ACTION_ID_PREFIX", "accepts_context", "derive_action_id", "looks_like_action_id"]
