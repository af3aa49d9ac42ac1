# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx transport for action calls."""

from __future__ import annotations

import time

import httpx

from ..config import FormActionsSettings, load_settings
from .client import HttpClient
from .models import HttpRequest, HttpResponse

_FALLBACK_BODY_LIMIT = 4 * 1024 * 1024


def _read_capped(resp: httpx.Response, limit: int) -> tuple[bytes, bool]:
    """Read at most `limit` bytes of a streamed body; the flag reports truncation."""
    buffer = bytearray()
    for chunk in resp.iter_bytes():
        room = limit - len(buffer)
        if len(chunk) > room:
            buffer.extend(chunk[: max(room, 0)])
            return bytes(buffer), True
        buffer.extend(chunk)
    return bytes(buffer), False


def _decode(body: bytes, encoding: str | None) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class HttpxClient(HttpClient):
    """
    Sends action submissions with a synchronous httpx.Client.

    Redirects are left for the caller to interpret; a 303 is itself the
    outcome of a native form post. Transport errors are reported on the
    response instead of raised so the retry helper can classify them.
    """

    def __init__(self, settings: FormActionsSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or load_settings()
        self._client = client or httpx.Client(timeout=self.settings.timeout, follow_redirects=False)

    @property
    def body_limit(self) -> int:
        return self.settings.max_body_bytes if self.settings.max_body_bytes > 0 else _FALLBACK_BODY_LIMIT

    def request(self, request: HttpRequest) -> HttpResponse:
        headers = {"User-Agent": self.settings.user_agent, **(request.headers or {})}
        timeout = self.settings.timeout if request.timeout is None else request.timeout
        started = time.monotonic()

        try:
            with self._client.stream(
                request.method,
                request.url,
                headers=headers,
                content=request.body,
                timeout=timeout,
                follow_redirects=request.allow_redirects,
            ) as resp:
                body, truncated = _read_capped(resp, self.body_limit)
                text = _decode(body, resp.encoding)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return HttpResponse(ok=False, error_message=str(exc) or type(exc).__name__, error_type=type(exc).__name__)

        return HttpResponse(
            ok=True,
            status_code=resp.status_code,
            headers={name.lower(): value for name, value in resp.headers.items()},
            text=text,
            content=body,
            url=str(resp.url),
            meta={
                "body_truncated": truncated,
                "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )

    def close(self) -> None:
        self._client.close()
