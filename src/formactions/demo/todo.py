# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Todo list served with script-free form actions.

Adding validates the title (at least three characters) and redirects back to
the list; deleting is idempotent. Failed submissions re-render the page with
the submitted value and the validation messages in place.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from html import escape

from fastapi import FastAPI, Request
from pydantic import BaseModel, Field

from ..config import FormActionsSettings, load_settings
from ..errors import redirect
from ..executor import InvocationContext
from ..models import ActionState, Fault
from ..registry import location_of
from ..runtime import ActionRuntime
from ..server import mount_page
from ..utils.context import action_inputs, use_action_state
from .store import TodoStore, open_store

STORE_RESOURCE = "store"


class AddTodo(BaseModel):
    title: str = Field(min_length=3, max_length=200)


class DeleteTodo(BaseModel):
    id: int


async def add_todo(data: AddTodo, context: InvocationContext) -> None:
    store: TodoStore = context.resource(STORE_RESOURCE)
    await store.add(data.title)
    redirect("/")


async def delete_todo(data: DeleteTodo, context: InvocationContext) -> None:
    store: TodoStore = context.resource(STORE_RESOURCE)
    await store.delete(data.id)
    redirect("/")


def register_actions(runtime: ActionRuntime) -> dict[str, str]:
    return {
        "add_todo": runtime.register(location_of(add_todo), add_todo, AddTodo),
        "delete_todo": runtime.register(location_of(delete_todo), delete_todo, DeleteTodo),
    }


def _render_errors(state: ActionState | None, name: str) -> str:
    if state is None:
        return ""
    messages = state.errors_for(name)
    if isinstance(state.outcome, Fault):
        messages.append(state.outcome.message)
    if not messages:
        return ""
    items = "".join(f"<li>{escape(message)}</li>" for message in messages)
    return f'<ul class="errors" role="alert">{items}</ul>'


async def render_home(request: Request) -> str:
    store: TodoStore = request.app.state.store
    todos = await store.fetch_all()
    state = use_action_state(add_todo)
    delete_state = use_action_state(delete_todo)
    title_value = state.value_of("title") if state is not None else ""

    rows = "".join(
        "<li>"
        f"<span>{escape(todo.title)}</span>"
        '<form method="post">'
        f"{action_inputs(delete_todo)}"
        f'<input type="hidden" name="id" value="{todo.id}">'
        '<button type="submit">Delete</button>'
        "</form>"
        "</li>"
        for todo in todos
    )
    return (
        "<!doctype html>"
        "<html><head><title>Todos</title></head><body>"
        "<h1>Todos</h1>"
        '<form method="post">'
        f"{action_inputs(add_todo)}"
        f'<input type="text" name="title" value="{escape(title_value, quote=True)}">'
        '<button type="submit">Add</button>'
        f"{_render_errors(state, 'title')}"
        "</form>"
        f"{_render_errors(delete_state, 'id')}"
        f'<ul class="todos">{rows}</ul>'
        "</body></html>"
    )


def create_app(settings: FormActionsSettings | None = None, *, runtime: ActionRuntime | None = None) -> FastAPI:
    settings = settings or load_settings()
    runtime = runtime or ActionRuntime(settings)
    register_actions(runtime)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with open_store(settings.database) as store:
            app.state.store = store
            runtime.provide(STORE_RESOURCE, store)
            try:
                yield
            finally:
                runtime.release(STORE_RESOURCE)

    app = FastAPI(title="FormActions Todo", lifespan=lifespan)
    app.state.runtime = runtime
    mount_page(app, "/", render_home, runtime, name="home")
    return app


__all__ = ["AddTodo", "DeleteTodo", "add_todo", "create_app", "delete_todo", "register_actions", "render_home"]
