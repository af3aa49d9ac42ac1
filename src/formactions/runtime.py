# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level FormActions facade wiring registry, executor, channel and navigation."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .adapters import SubmissionAdapter, default_adapters
from .channel import ResultChannel
from .config import FormActionsSettings, load_settings
from .encoder import ActionReferenceEncoder
from .executor import InvocationExecutor
from .models import ActionHandler, ActionState, InboundInvocation, InvocationOutcome, NavigationDirective
from .navigation import RedirectController
from .registry import ActionRegistry
from .utils.context import new_session_key
from .validation import Validator

if TYPE_CHECKING:
    from fastapi import Request
    from fastapi.responses import Response

    from .server import PageRenderer

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    invocation: InboundInvocation
    outcome: InvocationOutcome
    session_key: str
    directive: NavigationDirective | None = None
    state: ActionState | None = None


class ActionRuntime:
    """
    Convenience wrapper that shares one registry, executor and channel across routes.

    Resources (for example an open store handle) are injected here and handed to
    handlers that accept an InvocationContext.
    """

    def __init__(
        self,
        settings: FormActionsSettings | None = None,
        *,
        registry: ActionRegistry | None = None,
        validator: Validator | None = None,
        resources: dict[str, Any] | None = None,
        channel: ResultChannel | None = None,
        adapters: Sequence[SubmissionAdapter] | None = None,
    ):
        self.settings = settings or load_settings()
        self.registry = registry or ActionRegistry(salt=self.settings.action_id_salt)
        self.encoder = ActionReferenceEncoder(self.registry)
        self.resources: dict[str, Any] = resources if resources is not None else {}
        self.executor = InvocationExecutor(
            validator,
            resources=self.resources,
            expose_fault_detail=self.settings.expose_fault_detail,
            allow_external_redirects=self.settings.allow_external_redirects,
        )
        self.channel = channel or ResultChannel(ttl=self.settings.state_ttl, max_entries=self.settings.state_max_entries)
        self.controller = RedirectController(allow_external=self.settings.allow_external_redirects)
        self.adapters = list(adapters) if adapters is not None else default_adapters(
            max_fields=self.settings.max_form_fields,
            max_files=self.settings.max_form_files,
        )

    def action(self, input_shape: Any = None, *, name: str | None = None) -> Callable[[ActionHandler], ActionHandler]:
        return self.registry.action(input_shape, name=name)

    def register(self, source_location: Any, handler: ActionHandler, input_shape: Any = None) -> str:
        return self.registry.register(source_location, handler, input_shape)

    def provide(self, name: str, resource: Any) -> None:
        self.resources[name] = resource

    def release(self, name: str) -> Any:
        return self.resources.pop(name, None)

    def close(self) -> None:
        """Drop unread action state and injected resources. Owners close their own resources."""
        self.channel.clear()
        self.resources.clear()

    def __enter__(self) -> ActionRuntime:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()

    async def dispatch(self, invocation: InboundInvocation) -> DispatchResult:
        """Resolve, execute and route one invocation. Raises ActionNotFound for unknown identifiers."""
        descriptor = self.registry.resolve(invocation.action_id)
        session_key = invocation.session_key or new_session_key()

        outcome = await self.executor.invoke(descriptor, invocation.fields, session_key=session_key)
        directive = self.controller.on_outcome(outcome)
        state = None
        if directive is None:
            state = self.channel.publish(descriptor.identifier, session_key, outcome, invocation.fields)
        logger.info(
            "Action %s via %s -> %s",
            descriptor.location,
            invocation.front_end.value,
            outcome.kind.value,
        )
        return DispatchResult(
            invocation=invocation,
            outcome=outcome,
            session_key=session_key,
            directive=directive,
            state=state,
        )

    async def handle_post(self, request: Request, render: PageRenderer) -> Response:
        """Run a POST through the submission pipeline and build the HTTP response."""
        from .server import handle_submission

        return await handle_submission(self, request, render)


__all__ = ["ActionRuntime", "DispatchResult"]
