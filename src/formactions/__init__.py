# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
FormActions package entrypoint.

This package resolves plain HTML form submissions to registered server-side
functions, runs them against validated input and reports either a 303 redirect
or a single-use action state back to the page that issued the form. The same
executor serves script-free form posts and script-driven structured calls.
"""

from .channel import ResultChannel
from .config import FormActionsSettings, load_settings
from .encoder import ActionReferenceEncoder
from .errors import ActionNotFound, ErrorCategory, MalformedRequest, redirect
from .executor import InvocationContext, InvocationExecutor
from .log import setup_logging
from .models import (
    ActionDescriptor,
    ActionState,
    Fault,
    FormFields,
    InboundInvocation,
    Issue,
    NavigationDirective,
    Redirect,
    Success,
    ValidationFailure,
)
from .navigation import RedirectController
from .registry import ActionRegistry, location_of
from .runtime import ActionRuntime
from .server import mount_page
from .utils.context import action_inputs, use_action_state
from .validation import PassthroughValidator, PydanticValidator, ValidationResult
from .version import __version__

__all__ = [
    "ActionDescriptor",
    "ActionNotFound",
    "ActionReferenceEncoder",
    "ActionRegistry",
    "ActionRuntime",
    "ActionState",
    "ErrorCategory",
    "Fault",
    "FormActionsSettings",
    "FormFields",
    "InboundInvocation",
    "InvocationContext",
    "InvocationExecutor",
    "Issue",
    "MalformedRequest",
    "NavigationDirective",
    "PassthroughValidator",
    "PydanticValidator",
    "Redirect",
    "RedirectController",
    "ResultChannel",
    "Success",
    "ValidationFailure",
    "ValidationResult",
    "__version__",
    "action_inputs",
    "load_settings",
    "location_of",
    "mount_page",
    "redirect",
    "setup_logging",
    "use_action_state",
]
