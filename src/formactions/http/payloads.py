# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Action submission payload builders (urlencoded/multipart/structured JSON)."""

from __future__ import annotations

import json
import secrets
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from ..adapters import ACTION_ID_HEADER, ACTION_KEY_HEADER
from ..encoder import ACTION_ID_FIELD_PREFIX, ACTION_KEY_FIELD


class WireFormat(str, Enum):
    URLENCODED = "urlencoded"
    MULTIPART_FORM = "multipart-form"
    JSON = "json"


@dataclass(frozen=True)
class ActionPayload:
    """A request body with the headers required to transmit it."""

    wire_format: WireFormat
    headers: dict[str, str]
    body: str | bytes
    meta: dict[str, Any] = field(default_factory=dict)


def _json_dumps(value: object) -> str:
    return json.dumps(value, separators=(",", ":"))


def _reserved_fields(action_id: str, session_key: str | None) -> list[tuple[str, str]]:
    reserved = [(f"{ACTION_ID_FIELD_PREFIX}{action_id}", "")]
    if session_key:
        reserved.append((ACTION_KEY_FIELD, session_key))
    return reserved


def _quote_disposition(name: str) -> str:
    return name.replace("\\", "\\\\").replace('"', '\\"').replace("\r", "").replace("\n", "")


def _build_multipart_form_data(parts: Iterable[tuple[str, str]], *, boundary: str | None = None) -> tuple[str, str]:
    if boundary is None:
        boundary = f"----FormBoundary{secrets.token_hex(8)}"

    body = ""
    for name, value in parts:
        body += f'--{boundary}\r\nContent-Disposition: form-data; name="{_quote_disposition(name)}"\r\n\r\n{value}\r\n'
    body += f"--{boundary}--\r\n"
    return boundary, body


def build_urlencoded_payload(
    action_id: str,
    fields: Iterable[tuple[str, str]],
    *,
    session_key: str | None = None,
) -> ActionPayload:
    """What a browser sends for a script-free `<form method="post">`."""
    parts = _reserved_fields(action_id, session_key) + list(fields)
    return ActionPayload(
        wire_format=WireFormat.URLENCODED,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=urlencode(parts),
        meta={"parts": [name for name, _ in parts]},
    )


def build_multipart_form_payload(
    action_id: str,
    fields: Iterable[tuple[str, str]],
    *,
    session_key: str | None = None,
    boundary: str | None = None,
) -> ActionPayload:
    """Raw multipart/form-data body, as sent by `<form enctype="multipart/form-data">`."""
    parts = _reserved_fields(action_id, session_key) + list(fields)
    boundary_value, body = _build_multipart_form_data(parts, boundary=boundary)
    return ActionPayload(
        wire_format=WireFormat.MULTIPART_FORM,
        headers={"Content-Type": f"multipart/form-data; boundary={boundary_value}"},
        body=body,
        meta={"boundary": boundary_value, "parts": [name for name, _ in parts]},
    )


def build_structured_payload(
    action_id: str,
    fields: Iterable[tuple[str, Any]],
    *,
    session_key: str | None = None,
) -> ActionPayload:
    """Script-driven call: identifier in a header, fields as ordered JSON pairs."""
    headers = {"Content-Type": "application/json", ACTION_ID_HEADER: action_id}
    if session_key:
        headers[ACTION_KEY_HEADER] = session_key
    pairs = [[name, value] for name, value in fields]
    return ActionPayload(
        wire_format=WireFormat.JSON,
        headers=headers,
        body=_json_dumps({"fields": pairs}),
        meta={"parts": [name for name, _ in pairs]},
    )


__all__ = [
    "ActionPayload",
    "WireFormat",
    "build_multipart_form_payload",
    "build_structured_payload",
    "build_urlencoded_payload",
]
