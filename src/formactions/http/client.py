# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Transport seam used by ActionClient; tests swap in StubHttpClient."""

from typing import Protocol

from ..config import FormActionsSettings, load_settings
from .models import HttpRequest, HttpResponse


class HttpClient(Protocol):
    """Sends one action submission and reports what came back."""

    def request(self, request: HttpRequest) -> HttpResponse: ...

    def close(self) -> None:  # pragma: no cover - optional for adapters
        ...


def create_default_http_client(settings: FormActionsSettings | None = None) -> HttpClient:
    """httpx transport configured from `settings`."""
    from .httpx_client import HttpxClient

    return HttpxClient(settings or load_settings())
