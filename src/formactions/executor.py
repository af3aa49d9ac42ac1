# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Invocation executor: validate, run the handler, capture exactly one outcome."""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any

from starlette.concurrency import run_in_threadpool

from .errors import ErrorCategory, RedirectSignal, error_category_to_reason
from .models import (
    ActionDescriptor,
    Fault,
    FormFields,
    InvocationOutcome,
    Redirect,
    Success,
    ValidationFailure,
)
from .navigation import check_location
from .validation import PydanticValidator, Validator

logger = logging.getLogger(__name__)


def is_async_callable(func: Any) -> bool:
    while isinstance(func, functools.partial):
        func = func.func
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(getattr(func, "__call__", None))


async def call_handler(func: Any, *args: Any) -> Any:
    """
    Call `func` to completion without blocking the event loop.

    Coroutine functions are awaited; plain callables run in the threadpool with
    the caller's context variables copied across.
    """
    if is_async_callable(func):
        return await func(*args)
    value = await run_in_threadpool(func, *args)
    if inspect.isawaitable(value):
        value = await value
    return value


@dataclass(frozen=True)
class InvocationContext:
    """Passed to handlers that accept a second argument."""

    action_id: str
    session_key: str | None = None
    resources: dict[str, Any] = field(default_factory=dict)

    def resource(self, name: str) -> Any:
        try:
            return self.resources[name]
        except KeyError:
            raise LookupError(f"no resource named {name!r} was provided to the executor") from None


class InvocationExecutor:
    def __init__(
        self,
        validator: Validator | None = None,
        *,
        resources: dict[str, Any] | None = None,
        expose_fault_detail: bool = False,
        allow_external_redirects: bool = False,
    ):
        self.validator = validator or PydanticValidator()
        self.resources = resources if resources is not None else {}
        self.expose_fault_detail = expose_fault_detail
        self.allow_external_redirects = allow_external_redirects

    def _fault(self, descriptor: ActionDescriptor, exc: BaseException) -> Fault:
        logger.exception("Action %s (%s) failed", descriptor.location, descriptor.identifier, exc_info=exc)
        message = str(exc) if self.expose_fault_detail and str(exc) else error_category_to_reason(ErrorCategory.FAULT)
        return Fault(cause=exc, message=message)

    async def invoke(
        self,
        descriptor: ActionDescriptor,
        fields: FormFields,
        *,
        session_key: str | None = None,
    ) -> InvocationOutcome:
        try:
            result = self.validator.validate(descriptor.input_shape, fields)
        except Exception as exc:  # noqa: BLE001
            return self._fault(descriptor, exc)
        if not result.ok:
            logger.debug("Action %s rejected input with %d issue(s)", descriptor.identifier, len(result.issues))
            return ValidationFailure(result.issues)

        try:
            args: tuple[Any, ...] = (result.value,)
            if descriptor.accepts_context:
                args += (
                    InvocationContext(
                        action_id=descriptor.identifier,
                        session_key=session_key,
                        resources=self.resources,
                    ),
                )
            # Runs to completion so a redirect-driven reload observes committed writes.
            value = await call_handler(descriptor.handler, *args)
        except RedirectSignal as signal:
            try:
                location = check_location(signal.location, allow_external=self.allow_external_redirects)
            except Exception as exc:  # noqa: BLE001
                return self._fault(descriptor, exc)
            return Redirect(location=location)
        except Exception as exc:  # noqa: BLE001
            return self._fault(descriptor, exc)
        return Success(value=value)


__all__ = ["InvocationContext", "InvocationExecutor", "call_handler", "is_async_callable"]
