# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import re
from html import escape

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from formactions.config import FormActionsSettings
from formactions.demo.todo import add_todo, create_app, delete_todo
from formactions.errors import ErrorCategory, error_category_to_reason
from formactions.models import Fault, FormFields
from formactions.runtime import ActionRuntime
from formactions.server import mount_page
from formactions.utils.context import action_inputs, use_action_state
from formactions.validation import PassthroughValidator

KEY_PATTERN = re.compile(r'name="\$ACTION_KEY" value="([^"]+)"')


@pytest.fixture
def app():
    return create_app(FormActionsSettings(database=":memory:"))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _ids(app: FastAPI) -> tuple[str, str]:
    encoder = app.state.runtime.encoder
    return encoder.encode(add_todo), encoder.encode(delete_todo)


def test_home_page_embeds_action_fields(app, client):
    add_id, _ = _ids(app)
    response = client.get("/")

    assert response.status_code == 200
    assert f'name="$ACTION_ID_{add_id}"' in response.text
    assert KEY_PATTERN.search(response.text) is not None


def test_short_title_rerenders_with_value_and_message(app, client):
    add_id, _ = _ids(app)
    response = client.post("/", data={f"$ACTION_ID_{add_id}": "", "title": "ab"}, follow_redirects=False)

    assert response.status_code == 200
    assert 'value="ab"' in response.text
    assert "at least 3 characters" in response.text
    assert 'class="errors"' in response.text


def test_valid_title_redirects_and_is_listed(app, client):
    add_id, _ = _ids(app)
    response = client.post("/", data={f"$ACTION_ID_{add_id}": "", "title": "Buy milk"}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/"

    page = client.get("/")
    assert "<span>Buy milk</span>" in page.text
    assert 'class="errors"' not in page.text


def test_titles_are_escaped(app, client):
    add_id, _ = _ids(app)
    client.post("/", data={f"$ACTION_ID_{add_id}": "", "title": "<b>bold</b>"}, follow_redirects=False)
    page = client.get("/")
    assert escape("<b>bold</b>") in page.text
    assert "<b>bold</b>" not in page.text


def test_delete_unknown_id_still_redirects(app, client):
    _, delete_id = _ids(app)
    response = client.post("/", data={f"$ACTION_ID_{delete_id}": "", "id": "7"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"


def test_delete_removes_listed_todo(app, client):
    add_id, delete_id = _ids(app)
    client.post("/", data={f"$ACTION_ID_{add_id}": "", "title": "Walk dog"}, follow_redirects=False)
    todo_id = re.search(r'name="id" value="(\d+)"', client.get("/").text).group(1)

    response = client.post("/", data={f"$ACTION_ID_{delete_id}": "", "id": todo_id}, follow_redirects=False)
    assert response.status_code == 303
    assert "Walk dog" not in client.get("/").text


def test_non_numeric_delete_id_is_a_validation_failure(app, client):
    _, delete_id = _ids(app)
    response = client.post("/", data={f"$ACTION_ID_{delete_id}": "", "id": "seven"}, follow_redirects=False)
    assert response.status_code == 200
    assert 'class="errors"' in response.text
    assert "valid integer" in response.text
    assert len(app.state.runtime.channel) == 0


def test_missing_identifier_is_malformed(client):
    response = client.post("/", data={"title": "Buy milk"}, follow_redirects=False)
    assert response.status_code == 400
    assert response.text == error_category_to_reason(ErrorCategory.MALFORMED_REQUEST)


def test_unknown_identifier_is_not_found(client):
    response = client.post("/", data={f"$ACTION_ID_40{'0' * 40}": "", "title": "Buy milk"}, follow_redirects=False)
    assert response.status_code == 404
    assert response.text == "Server action not found."


def test_unsupported_content_type_is_malformed(client):
    response = client.post("/", content=b"title=x", headers={"Content-Type": "text/plain"})
    assert response.status_code == 400


def test_session_key_round_trip(app, client):
    add_id, _ = _ids(app)
    key = KEY_PATTERN.search(client.get("/").text).group(1)

    response = client.post(
        "/",
        data={f"$ACTION_ID_{add_id}": "", "$ACTION_KEY": key, "title": "ab"},
        follow_redirects=False,
    )
    assert response.status_code == 200
    assert KEY_PATTERN.search(response.text).group(1) == key
    assert 'value="ab"' in response.text

    # The state was consumed by the re-render; a fresh page starts clean.
    assert 'value="ab"' not in client.get("/").text
    assert not app.state.runtime.channel.peek(add_id, key)


def _failing_app() -> tuple[FastAPI, str]:
    runtime = ActionRuntime(FormActionsSettings())

    def explode(data):
        raise RuntimeError("database password is hunter2")

    action_id = runtime.register("tests.pages:explode", explode)

    def render(request: Request) -> str:
        state = use_action_state(explode)
        message = state.outcome.message if state is not None and isinstance(state.outcome, Fault) else ""
        return f'<form method="post">{action_inputs(explode)}</form><p class="fault">{escape(message)}</p>'

    app = FastAPI()
    app.state.runtime = runtime
    mount_page(app, "/", render, runtime)
    return app, action_id


def test_fault_rerenders_with_generic_message():
    app, action_id = _failing_app()
    with TestClient(app) as client:
        response = client.post("/", data={f"$ACTION_ID_{action_id}": ""}, follow_redirects=False)

    assert response.status_code == 500
    assert "hunter2" not in response.text
    assert '<p class="fault">' in response.text
    assert '<p class="fault"></p>' not in response.text


def test_native_adapter_keeps_repeated_fields_and_files():
    runtime = ActionRuntime(FormActionsSettings(), validator=PassthroughValidator())
    received: list[FormFields] = []
    uploads: list[bytes] = []

    async def capture(fields):
        received.append(fields)
        upload = fields.get("attachment")
        uploads.append(await upload.read())

    action_id = runtime.register("tests.pages:capture", capture)
    app = FastAPI()
    mount_page(app, "/", lambda request: "<p>ok</p>", runtime)

    with TestClient(app) as client:
        response = client.post(
            "/",
            data={f"$ACTION_ID_{action_id}": "", "tag": ["b", "a"]},
            files={"attachment": ("notes.txt", b"hello", "text/plain")},
            follow_redirects=False,
        )

    assert response.status_code == 200
    assert received[0].getlist("tag") == ["b", "a"]
    assert f"$ACTION_ID_{action_id}" not in received[0]
    assert uploads == [b"hello"]


def test_runtime_close_drops_unread_state_and_resources():
    with ActionRuntime(FormActionsSettings()) as runtime:
        runtime.provide("store", object())
        runtime.channel.publish("a1", "s1", Fault(cause=None, message="x"), FormFields())
        assert len(runtime.channel) == 1

    assert len(runtime.channel) == 0
    assert runtime.resources == {}
    assert runtime.executor.resources is runtime.resources


def test_form_limits_are_malformed_requests():
    runtime = ActionRuntime(FormActionsSettings(max_form_files=0), validator=PassthroughValidator())
    action_id = runtime.register("tests.pages:noop", lambda fields: None)
    app = FastAPI()
    mount_page(app, "/", lambda request: "<p>ok</p>", runtime)

    with TestClient(app) as client:
        response = client.post(
            "/",
            data={f"$ACTION_ID_{action_id}": ""},
            files={"attachment": ("notes.txt", b"hello", "text/plain")},
            follow_redirects=False,
        )

    assert response.status_code == 400
    assert response.text == error_category_to_reason(ErrorCategory.MALFORMED_REQUEST)
