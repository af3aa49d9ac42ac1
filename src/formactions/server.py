# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""FastAPI integration: pages that render on GET and accept form actions on POST."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from .adapters import ACTION_ID_HEADER, ACTION_KEY_HEADER, parse_request
from .errors import (
    ErrorCategory,
    FormActionsError,
    categorize_exception,
    error_category_to_reason,
    error_category_to_status,
)
from .executor import call_handler
from .models import Fault, FrontEnd, InvocationOutcome
from .runtime import ActionRuntime
from .utils.context import new_session_key, render_context

logger = logging.getLogger(__name__)

PageRenderer = Callable[[Request], Awaitable[str] | str]

SESSION_KEY_PARAM = "key"


def outcome_status(outcome: InvocationOutcome) -> int:
    return error_category_to_status(ErrorCategory.FAULT if isinstance(outcome, Fault) else ErrorCategory.NONE)


async def render_page(
    runtime: ActionRuntime,
    request: Request,
    render: PageRenderer,
    *,
    session_key: str | None = None,
    status_code: int = 200,
) -> HTMLResponse:
    with render_context(
        session_key=session_key or new_session_key(),
        channel=runtime.channel,
        encoder=runtime.encoder,
    ):
        html = await call_handler(render, request)
    return HTMLResponse(html, status_code=status_code)


def requested_session_key(request: Request) -> str | None:
    """Session key a script-driven page load asks to render with, from the header or `?key=`."""
    key = request.headers.get(ACTION_KEY_HEADER) or request.query_params.get(SESSION_KEY_PARAM)
    if not key:
        return None
    return key.strip() or None


def _error_response(exc: FormActionsError, *, structured: bool) -> Response:
    category = categorize_exception(exc)
    status_code = error_category_to_status(category)
    if structured:
        return JSONResponse(
            {"kind": "error", "category": category.value, "message": error_category_to_reason(category)},
            status_code=status_code,
        )
    return PlainTextResponse(error_category_to_reason(category), status_code=status_code)


async def handle_submission(runtime: ActionRuntime, request: Request, render: PageRenderer) -> Response:
    """Run the submit pipeline for a POST and build the response for whichever front-end sent it."""
    structured = ACTION_ID_HEADER.lower() in request.headers
    try:
        invocation = await parse_request(request, runtime.adapters)
        structured = invocation.front_end is FrontEnd.STRUCTURED_CALL
        result = await runtime.dispatch(invocation)
    except FormActionsError as exc:
        logger.warning("Rejected action submission to %s: %s", request.url.path, exc)
        return _error_response(exc, structured=structured)
    finally:
        await request.close()

    if result.directive is not None:
        if structured:
            return runtime.controller.to_structured_response(result.directive)
        return runtime.controller.to_native_response(result.directive)

    if structured:
        body = result.outcome.to_mapping()
        body["key"] = result.session_key
        return JSONResponse(body, status_code=outcome_status(result.outcome))
    # Same-cycle re-render: the page consumes the state published under this session key.
    return await render_page(
        runtime,
        request,
        render,
        session_key=result.session_key,
        status_code=outcome_status(result.outcome),
    )


def mount_page(
    app: FastAPI,
    path: str,
    render: PageRenderer,
    runtime: ActionRuntime,
    *,
    name: str | None = None,
) -> None:
    """Serve `render` at `path` for GET and accept form actions posted back to it."""
    route_name = name or getattr(render, "__name__", None) or path

    async def get_page(request: Request) -> Response:
        return await render_page(runtime, request, render, session_key=requested_session_key(request))

    async def post_page(request: Request) -> Response:
        return await runtime.handle_post(request, render)

    app.add_api_route(path, get_page, methods=["GET"], name=route_name, response_class=HTMLResponse)
    app.add_api_route(path, post_page, methods=["POST"], name=f"{route_name}:action", response_class=HTMLResponse)


__all__ = [
    "SESSION_KEY_PARAM",
    "PageRenderer",
    "handle_submission",
    "mount_page",
    "outcome_status",
    "render_page",
    "requested_session_key",
]
