# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP client exports."""

from .action_client import ActionClient, CallResult
from .adapters import StubHttpClient
from .client import HttpClient, create_default_http_client
from .httpx_client import HttpxClient
from .models import Headers, HttpRequest, HttpResponse, RetryConfig
from .payloads import (
    ActionPayload,
    WireFormat,
    build_multipart_form_payload,
    build_structured_payload,
    build_urlencoded_payload,
)
from .retry import build_default_retry_config, send_with_retries

__all__ = [
    "ActionClient",
    "ActionPayload",
    "CallResult",
    "Headers",
    "HttpClient",
    "HttpxClient",
    "HttpRequest",
    "HttpResponse",
    "RetryConfig",
    "StubHttpClient",
    "WireFormat",
    "build_default_retry_config",
    "build_multipart_form_payload",
    "build_structured_payload",
    "build_urlencoded_payload",
    "create_default_http_client",
    "send_with_retries",
]
