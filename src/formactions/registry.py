# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Action registry: stable identifiers for server-side form handlers."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from typing import Any

from .errors import ActionNotFound
from .models import ActionDescriptor, ActionHandler, SourceLocation
from .utils.actions import accepts_context, derive_action_id

logger = logging.getLogger(__name__)


def location_of(handler: ActionHandler) -> SourceLocation:
    """
    Return the declaration coordinate of a module-level callable.

    Lambdas and nested functions have no exported name to anchor an identifier
    on, so they must be registered with an explicit location.
    """
    module = getattr(handler, "__module__", None)
    qualname = getattr(handler, "__qualname__", None) or getattr(handler, "__name__", None)
    if not module or not qualname:
        raise ValueError(f"cannot derive a source location for {handler!r}")
    if "<lambda>" in qualname or "<locals>" in qualname:
        raise ValueError(f"{qualname} is not a module-level name; pass an explicit source location")
    return SourceLocation(module=module, name=qualname)


class ActionRegistry:
    """Maps identifiers to action descriptors. Registration is the only mutation."""

    def __init__(self, *, salt: str = ""):
        self.salt = salt
        self._by_id: dict[str, ActionDescriptor] = {}
        self._by_location: dict[SourceLocation, str] = {}
        # Keyed by id(); descriptors hold the handler so ids are never reused.
        self._by_handler: dict[int, str] = {}
        self._lock = threading.Lock()

    def register(
        self,
        source_location: SourceLocation | str,
        handler: ActionHandler,
        input_shape: Any = None,
    ) -> str:
        """Register `handler` under `source_location`; repeated calls return the same identifier."""
        if not callable(handler):
            raise TypeError(f"action handler must be callable, got {type(handler).__name__}")
        location = source_location if isinstance(source_location, SourceLocation) else SourceLocation.parse(source_location)

        with self._lock:
            existing = self._by_location.get(location)
            if existing is not None:
                if self._by_id[existing].handler is not handler:
                    logger.debug("Ignoring re-registration of %s; keeping original handler", location)
                return existing

            identifier = derive_action_id(str(location), salt=self.salt)
            self._by_id[identifier] = ActionDescriptor(
                identifier=identifier,
                handler=handler,
                input_shape=input_shape,
                location=location,
                accepts_context=accepts_context(handler),
            )
            self._by_location[location] = identifier
            self._by_handler.setdefault(id(handler), identifier)
        logger.debug("Registered action %s -> %s", location, identifier)
        return identifier

    def action(
        self,
        input_shape: Any = None,
        *,
        name: str | None = None,
    ) -> Callable[[ActionHandler], ActionHandler]:
        """Decorator form of `register`; the handler is returned unchanged."""

        def decorator(handler: ActionHandler) -> ActionHandler:
            location = location_of(handler)
            if name:
                location = SourceLocation(module=location.module, name=name)
            self.register(location, handler, input_shape)
            return handler

        return decorator

    def resolve(self, identifier: str) -> ActionDescriptor:
        descriptor = self._by_id.get(str(identifier or ""))
        if descriptor is None:
            raise ActionNotFound(str(identifier or ""))
        return descriptor

    def identifier_for(self, handler: ActionHandler) -> str | None:
        with self._lock:
            return self._by_handler.get(id(handler))

    def descriptors(self) -> list[ActionDescriptor]:
        with self._lock:
            return list(self._by_id.values())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._by_id

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._by_id))

    def __len__(self) -> int:
        return len(self._by_id)


__all__ = ["ActionRegistry", "location_of"]
