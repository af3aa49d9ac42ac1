# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Programmatic caller for server actions exposed by a FormActions app."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from ..config import FormActionsSettings, load_settings
from ..errors import ErrorCategory
from ..models import Fault, InvocationOutcome, Redirect, ValidationFailure, outcome_from_mapping
from .client import HttpClient, create_default_http_client
from .models import HttpRequest, HttpResponse, RetryConfig
from .payloads import ActionPayload, build_structured_payload, build_urlencoded_payload
from .retry import send_with_retries

logger = logging.getLogger(__name__)

_STATUS_CATEGORIES = {
    400: ErrorCategory.MALFORMED_REQUEST,
    404: ErrorCategory.NOT_FOUND,
}


@dataclass
class CallResult:
    ok: bool
    status_code: int | None = None
    outcome: InvocationOutcome | None = None
    session_key: str | None = None
    error_category: ErrorCategory = ErrorCategory.NONE
    error_message: str | None = None
    body: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "status_code": self.status_code,
            "outcome": self.outcome.to_mapping() if self.outcome is not None else None,
            "session_key": self.session_key,
            "error_category": self.error_category.value,
            "error_message": self.error_message,
        }


def _decode_native(response: HttpResponse) -> CallResult:
    status = response.status_code
    if response.is_redirect:
        return CallResult(ok=True, status_code=status, outcome=Redirect(location=response.location))
    if status in _STATUS_CATEGORIES:
        return CallResult(
            ok=False,
            status_code=status,
            error_category=_STATUS_CATEGORIES[status],
            error_message=response.text.strip(),
            body=response.text,
        )
    # The page was re-rendered in place; the outcome is only visible in the HTML.
    category = ErrorCategory.FAULT if status is not None and status >= 500 else ErrorCategory.NONE
    return CallResult(ok=category is ErrorCategory.NONE, status_code=status, error_category=category, body=response.text)


def _decode_structured(response: HttpResponse) -> CallResult:
    status = response.status_code
    try:
        data = json.loads(response.text or "{}")
    except json.JSONDecodeError:
        return CallResult(
            ok=False,
            status_code=status,
            error_category=ErrorCategory.FAULT,
            error_message="Server returned a non-JSON response to a structured call",
            body=response.text,
        )
    if not isinstance(data, dict):
        data = {}

    if data.get("kind") == "error":
        try:
            category = ErrorCategory(str(data.get("category")))
        except ValueError:
            category = ErrorCategory.FAULT
        return CallResult(ok=False, status_code=status, error_category=category, error_message=data.get("message"))

    try:
        outcome = outcome_from_mapping(data)
    except ValueError:
        return CallResult(
            ok=False,
            status_code=status,
            error_category=ErrorCategory.FAULT,
            error_message=f"Unknown outcome kind {data.get('kind')!r}",
        )
    category = ErrorCategory.NONE
    if isinstance(outcome, ValidationFailure):
        category = ErrorCategory.VALIDATION_FAILURE
    elif isinstance(outcome, Fault):
        category = ErrorCategory.FAULT
    return CallResult(
        ok=category is ErrorCategory.NONE,
        status_code=status,
        outcome=outcome,
        session_key=data.get("key"),
        error_category=category,
    )


class ActionClient:
    """
    Sends action submissions the way a browser (native) or client script (structured) would.

    Redirects are never followed: the 303 itself is the outcome.
    """

    def __init__(
        self,
        http_client: HttpClient | None = None,
        *,
        settings: FormActionsSettings | None = None,
        retry_config: RetryConfig | None = None,
    ):
        self.settings = settings or load_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.retry_config = retry_config or RetryConfig.from_settings(self.settings)

    def build_payload(
        self,
        action_id: str,
        fields: Iterable[tuple[str, Any]],
        *,
        native: bool = False,
        session_key: str | None = None,
    ) -> ActionPayload:
        if native:
            return build_urlencoded_payload(
                action_id,
                [(name, str(value)) for name, value in fields],
                session_key=session_key,
            )
        return build_structured_payload(action_id, fields, session_key=session_key)

    def call(
        self,
        url: str,
        action_id: str,
        fields: Iterable[tuple[str, Any]] = (),
        *,
        native: bool = False,
        session_key: str | None = None,
    ) -> CallResult:
        payload = self.build_payload(action_id, fields, native=native, session_key=session_key)
        request = HttpRequest(url=url, method="POST", headers=dict(payload.headers), body=payload.body)
        response = send_with_retries(self.http_client, request, retry_config=self.retry_config)
        if not response.ok:
            logger.warning("Action call to %s failed: %s", url, response.error_message)
            return CallResult(
                ok=False,
                error_category=ErrorCategory.FAULT,
                error_message=response.error_message,
                meta=dict(response.meta),
            )

        result = _decode_native(response) if native else _decode_structured(response)
        result.meta.update(response.meta)
        result.meta["wire_format"] = payload.wire_format.value
        return result

    def close(self) -> None:
        with suppress(Exception):
            if hasattr(self.http_client, "close"):
                self.http_client.close()

    def __enter__(self) -> ActionClient:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["ActionClient", "CallResult"]
