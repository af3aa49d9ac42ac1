# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    FAULT = "FAULT"
    NONE = "NONE"


class FormActionsError(Exception):
    """Base class for errors raised by the invocation pipeline."""

    category: ErrorCategory = ErrorCategory.FAULT


class ActionNotFound(FormActionsError):
    """The submitted action identifier does not resolve against the running registry."""

    category = ErrorCategory.NOT_FOUND

    def __init__(self, action_id: str):
        super().__init__(f"Server action not found: {action_id!r}")
        self.action_id = action_id


class MalformedRequest(FormActionsError):
    """The submission could not be parsed into an invocation."""

    category = ErrorCategory.MALFORMED_REQUEST


class UnsafeRedirect(FormActionsError):
    """A handler asked to navigate somewhere the deployment does not allow."""

    category = ErrorCategory.FAULT

    def __init__(self, location: str):
        super().__init__(f"Refusing to redirect to {location!r}")
        self.location = location


class RedirectSignal(Exception):
    """
    Control-flow signal raised by `redirect()` inside an action handler.

    Derives from Exception so handler code that catches broad errors can still
    re-raise it; the executor checks for it before treating anything as a fault.
    """

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def redirect(location: str) -> None:
    """Abort the running action and navigate the client to `location`."""
    if not isinstance(location, str) or not location.strip():
        raise ValueError("redirect location must be a non-empty string")
    raise RedirectSignal(location.strip())


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """Map pipeline exceptions to ErrorCategory."""
    if isinstance(exc, FormActionsError):
        return exc.category
    return ErrorCategory.FAULT


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.NOT_FOUND: "Server action not found.",
        ErrorCategory.MALFORMED_REQUEST: "Malformed action submission.",
        ErrorCategory.VALIDATION_FAILURE: "Please correct the highlighted fields.",
        ErrorCategory.FAULT: "Something went wrong while processing the form.",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Something went wrong while processing the form.")


def error_category_to_status(category: ErrorCategory | None) -> int:
    """HTTP status used when a category terminates a request."""
    mapping = {
        ErrorCategory.NOT_FOUND: 404,
        ErrorCategory.MALFORMED_REQUEST: 400,
        ErrorCategory.VALIDATION_FAILURE: 200,
        ErrorCategory.FAULT: 500,
        ErrorCategory.NONE: 200,
    }
    return mapping.get(category, 500)


__all__ = [
    "ActionNotFound",
    "ErrorCategory",
    "FormActionsError",
    "MalformedRequest",
    "RedirectSignal",
    "UnsafeRedirect",
    "categorize_exception",
    "error_category_to_reason",
    "error_category_to_status",
    "redirect",
]
