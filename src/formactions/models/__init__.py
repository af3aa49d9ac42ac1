# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for FormActions."""

from .descriptor import ActionDescriptor, ActionHandler, SourceLocation
from .invocation import FieldValue, FormFields, FrontEnd, InboundInvocation
from .outcome import (
    Fault,
    InvocationOutcome,
    Issue,
    OutcomeKind,
    Redirect,
    Success,
    ValidationFailure,
    outcome_from_mapping,
)
from .state import ActionState, NavigationDirective

__all__ = [
    "ActionDescriptor",
    "ActionHandler",
    "ActionState",
    "Fault",
    "FieldValue",
    "FormFields",
    "FrontEnd",
    "InboundInvocation",
    "InvocationOutcome",
    "Issue",
    "NavigationDirective",
    "OutcomeKind",
    "Redirect",
    "SourceLocation",
    "Success",
    "ValidationFailure",
    "outcome_from_mapping",
]
