# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Form submission adapters: native form posts and script-driven structured calls."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from fastapi import Request
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from .encoder import ACTION_FIELD_PREFIX, ACTION_ID_FIELD, ACTION_ID_FIELD_PREFIX, ACTION_KEY_FIELD
from .errors import MalformedRequest
from .models import FieldValue, FormFields, FrontEnd, InboundInvocation

logger = logging.getLogger(__name__)

ACTION_ID_HEADER = "Action-Id"
ACTION_KEY_HEADER = "Action-Key"
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
JSON_CONTENT_TYPE = "application/json"


def _content_type(request: Request) -> str:
    return request.headers.get("content-type", "").split(";", 1)[0].strip().lower()


def parse_form_items(items: Iterable[tuple[str, FieldValue]]) -> InboundInvocation:
    """
    Split reserved `$ACTION_*` fields from the payload.

    The identifier may arrive as a field *named* `$ACTION_ID_<id>` (value ignored)
    or as a `$ACTION_ID` field whose value is the identifier.
    """
    identifiers: list[str] = []
    session_key: str | None = None
    payload: list[tuple[str, FieldValue]] = []

    for name, value in items:
        if name.startswith(ACTION_ID_FIELD_PREFIX):
            identifiers.append(name[len(ACTION_ID_FIELD_PREFIX) :])
        elif name == ACTION_ID_FIELD:
            identifiers.append(value if isinstance(value, str) else "")
        elif name == ACTION_KEY_FIELD:
            session_key = value if isinstance(value, str) and value else None
        elif name.startswith(ACTION_FIELD_PREFIX):
            # Other reserved fields are framework-owned and never reach handlers.
            continue
        else:
            payload.append((name, value))

    distinct = {identifier.strip() for identifier in identifiers}
    if not distinct:
        raise MalformedRequest("Form submission does not name a server action")
    if len(distinct) > 1:
        raise MalformedRequest("Form submission names more than one server action")
    action_id = distinct.pop()
    if not action_id:
        raise MalformedRequest("Form submission carries an empty action identifier")

    return InboundInvocation(
        action_id=action_id,
        fields=FormFields(payload),
        session_key=session_key,
        front_end=FrontEnd.NATIVE_FORM,
    )


def parse_structured_body(action_id: str | None, body: bytes, *, session_key: str | None = None) -> InboundInvocation:
    """Parse a JSON structured call: `{"fields": [[name, value], ...]}` or `{"fields": {name: value}}`."""
    if not action_id or not action_id.strip():
        raise MalformedRequest(f"Structured call is missing the {ACTION_ID_HEADER} header")
    try:
        data = json.loads(body.decode("utf-8")) if body else {}
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedRequest(f"Structured call body is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedRequest("Structured call body must be a JSON object")

    raw_fields: Any = data.get("fields", [])
    if isinstance(raw_fields, dict):
        fields = FormFields.from_mapping(raw_fields)
    elif isinstance(raw_fields, list):
        pairs: list[tuple[str, FieldValue]] = []
        for item in raw_fields:
            if not (isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str)):
                raise MalformedRequest("Structured call fields must be [name, value] pairs")
            pairs.append((item[0], item[1]))
        fields = FormFields(pairs)
    else:
        raise MalformedRequest("Structured call fields must be a list of pairs or an object")

    key = session_key or data.get("key")
    return InboundInvocation(
        action_id=action_id.strip(),
        fields=fields,
        session_key=key if isinstance(key, str) and key else None,
        front_end=FrontEnd.STRUCTURED_CALL,
    )


class SubmissionAdapter(Protocol):
    front_end: FrontEnd

    def can_parse(self, request: Request) -> bool: ...

    async def parse(self, request: Request) -> InboundInvocation: ...


class NativeFormAdapter:
    """Plain `<form method="post">` submissions; works with script disabled."""

    front_end = FrontEnd.NATIVE_FORM

    def __init__(self, *, max_fields: int = 1000, max_files: int = 100):
        self.max_fields = max_fields
        self.max_files = max_files

    def can_parse(self, request: Request) -> bool:
        return request.method == "POST" and _content_type(request) in FORM_CONTENT_TYPES

    async def parse(self, request: Request) -> InboundInvocation:
        try:
            form = await request.form(max_files=self.max_files, max_fields=self.max_fields)
        except (MultiPartException, HTTPException, ValueError) as exc:
            # Starlette reports multipart limit violations as a 400 HTTPException inside an app.
            raise MalformedRequest(f"Unable to parse form body: {exc}") from exc
        return parse_form_items(form.multi_items())


class StructuredCallAdapter:
    """Script-issued calls carrying the identifier in a header and the fields as JSON."""

    front_end = FrontEnd.STRUCTURED_CALL

    def can_parse(self, request: Request) -> bool:
        return request.method == "POST" and ACTION_ID_HEADER.lower() in request.headers

    async def parse(self, request: Request) -> InboundInvocation:
        content_type = _content_type(request)
        if content_type and content_type != JSON_CONTENT_TYPE:
            raise MalformedRequest(f"Structured calls must be {JSON_CONTENT_TYPE}, got {content_type}")
        body = await request.body()
        return parse_structured_body(
            request.headers.get(ACTION_ID_HEADER),
            body,
            session_key=request.headers.get(ACTION_KEY_HEADER),
        )


def default_adapters(*, max_fields: int = 1000, max_files: int = 100) -> list[SubmissionAdapter]:
    # Structured first: an Action-Id header wins over the body's content type.
    return [StructuredCallAdapter(), NativeFormAdapter(max_fields=max_fields, max_files=max_files)]


def select_adapter(request: Request, adapters: Sequence[SubmissionAdapter]) -> SubmissionAdapter:
    for adapter in adapters:
        if adapter.can_parse(request):
            return adapter
    raise MalformedRequest(f"Unsupported submission content type: {_content_type(request) or 'none'}")


async def parse_request(request: Request, adapters: Sequence[SubmissionAdapter]) -> InboundInvocation:
    adapter = select_adapter(request, adapters)
    invocation = await adapter.parse(request)
    logger.debug("Parsed %s submission for action %s", adapter.front_end.value, invocation.action_id)
    return invocation


__all__ = [
    "ACTION_ID_HEADER",
    "ACTION_KEY_HEADER",
    "NativeFormAdapter",
    "StructuredCallAdapter",
    "SubmissionAdapter",
    "default_adapters",
    "parse_form_items",
    "parse_request",
    "parse_structured_body",
    "select_adapter",
]
