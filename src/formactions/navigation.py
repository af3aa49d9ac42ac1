# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Redirect/resume controller: submit-then-redirect navigation."""

from __future__ import annotations

from urllib.parse import urlsplit

from fastapi.responses import JSONResponse, RedirectResponse

from .errors import UnsafeRedirect
from .models import InvocationOutcome, NavigationDirective, Redirect

REDIRECT_HEADER = "X-Action-Redirect"


def is_relative_location(location: str) -> bool:
    """True for same-origin paths like `/` or `/todos?page=2` (not `//host` or `https://...`)."""
    if not location or "\\" in location:
        return False
    parts = urlsplit(location)
    if parts.scheme or parts.netloc:
        return False
    return location.startswith("/") and not location.startswith("//")


def check_location(location: str, *, allow_external: bool = False) -> str:
    if allow_external or is_relative_location(location):
        return location
    raise UnsafeRedirect(location)


class RedirectController:
    """Maps outcomes to navigation directives; only Redirect outcomes navigate."""

    def __init__(self, *, allow_external: bool = False):
        self.allow_external = allow_external

    def on_outcome(self, outcome: InvocationOutcome) -> NavigationDirective | None:
        if not isinstance(outcome, Redirect):
            return None
        # 303 forces the follow-up request to be a GET so a refresh never resubmits.
        return NavigationDirective(location=check_location(outcome.location, allow_external=self.allow_external))

    @staticmethod
    def to_native_response(directive: NavigationDirective) -> RedirectResponse:
        return RedirectResponse(url=directive.location, status_code=directive.status_code)

    @staticmethod
    def to_structured_response(directive: NavigationDirective) -> JSONResponse:
        """Script-driven callers navigate themselves; hand them the target instead of a 303."""
        return JSONResponse(
            {"kind": "redirect", "location": directive.location},
            headers={REDIRECT_HEADER: directive.location},
        )


__all__ = ["REDIRECT_HEADER", "RedirectController", "check_location", "is_relative_location"]
