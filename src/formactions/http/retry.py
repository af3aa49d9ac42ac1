# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Retry policy for action calls."""

from __future__ import annotations

import time

from ..config import load_settings
from .client import HttpClient
from .models import HttpRequest, HttpResponse, RetryConfig

# Failures where the request cannot have reached the application.
RETRYABLE_ERROR_TYPES = frozenset({"ConnectError", "ConnectTimeout", "PoolTimeout"})


def build_default_retry_config() -> RetryConfig:
    return RetryConfig.from_settings(load_settings())


def _is_retryable(response: HttpResponse) -> bool:
    if response.ok or response.status_code is not None:
        return False
    return response.error_type is None or response.error_type in RETRYABLE_ERROR_TYPES


def _attempt(client: HttpClient, request: HttpRequest) -> HttpResponse:
    try:
        return client.request(request)
    except Exception as exc:  # noqa: BLE001
        return HttpResponse(ok=False, error_message=str(exc), error_type=type(exc).__name__)


def send_with_retries(
    client: HttpClient,
    request: HttpRequest,
    *,
    retry_config: RetryConfig | None = None,
) -> HttpResponse:
    """
    Send `request`, resending only when the connection itself failed.

    A response with any status code means the server saw the submission and
    may already have run the action, so it is returned as-is.
    """
    cfg = retry_config or build_default_retry_config()
    attempts = max(1, cfg.max_attempts)
    delay = cfg.initial_delay

    for attempt in range(attempts):
        response = _attempt(client, request)
        if not _is_retryable(response):
            if attempt:
                response.meta["retry_count"] = attempt
            return response
        if attempt + 1 < attempts:
            time.sleep(delay)
            delay *= cfg.backoff_factor

    response.meta.setdefault("retry_count", attempts)
    response.meta["retry_exhausted"] = True
    return response
