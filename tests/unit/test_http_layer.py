# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
from urllib.parse import parse_qsl

import httpx
import pytest
from fastapi.testclient import TestClient

from formactions.config import FormActionsSettings
from formactions.demo.todo import add_todo, create_app
from formactions.errors import ErrorCategory
from formactions.http import (
    ActionClient,
    HttpRequest,
    HttpResponse,
    HttpxClient,
    RetryConfig,
    StubHttpClient,
    WireFormat,
    build_multipart_form_payload,
    build_structured_payload,
    build_urlencoded_payload,
    send_with_retries,
)
from formactions.models import Redirect, ValidationFailure

ACTION_ID = "40" + "c" * 40
URL = "http://app.test/"


class FlakyClient:
    def __init__(self, failures: list[Exception | HttpResponse], final: HttpResponse):
        self.failures = list(failures)
        self.final = final
        self.calls = 0

    def request(self, request: HttpRequest) -> HttpResponse:
        self.calls += 1
        if self.failures:
            failure = self.failures.pop(0)
            if isinstance(failure, Exception):
                raise failure
            return failure
        return self.final

    def close(self) -> None:
        return None


@pytest.fixture
def no_sleep(monkeypatch):
    delays: list[float] = []
    monkeypatch.setattr("formactions.http.retry.time.sleep", delays.append)
    return delays


def test_urlencoded_payload_leads_with_reserved_fields():
    payload = build_urlencoded_payload(ACTION_ID, [("title", "Buy milk")], session_key="render-1")

    assert payload.wire_format is WireFormat.URLENCODED
    assert parse_qsl(payload.body, keep_blank_values=True) == [
        (f"$ACTION_ID_{ACTION_ID}", ""),
        ("$ACTION_KEY", "render-1"),
        ("title", "Buy milk"),
    ]


def test_multipart_payload_uses_given_boundary():
    payload = build_multipart_form_payload(ACTION_ID, [("title", "x")], boundary="b0undary")

    assert payload.headers["Content-Type"] == "multipart/form-data; boundary=b0undary"
    assert f'name="$ACTION_ID_{ACTION_ID}"' in payload.body
    assert payload.body.endswith("--b0undary--\r\n")
    assert payload.meta["parts"] == [f"$ACTION_ID_{ACTION_ID}", "title"]


def test_structured_payload_carries_identifier_in_headers():
    payload = build_structured_payload(ACTION_ID, [("tag", "a"), ("tag", "b")], session_key="render-1")

    assert payload.headers["Action-Id"] == ACTION_ID
    assert payload.headers["Action-Key"] == "render-1"
    assert json.loads(payload.body) == {"fields": [["tag", "a"], ["tag", "b"]]}


def test_connect_errors_are_retried(no_sleep):
    client = FlakyClient([httpx.ConnectError("refused")], HttpResponse(ok=True, status_code=303))
    config = RetryConfig(max_attempts=3, backoff_factor=2.0, initial_delay=0.25)

    response = send_with_retries(client, HttpRequest(url=URL), retry_config=config)

    assert response.status_code == 303
    assert response.meta["retry_count"] == 1
    assert client.calls == 2
    assert no_sleep == [0.25]


def test_read_timeouts_are_not_retried(no_sleep):
    client = FlakyClient([httpx.ReadTimeout("slow")], HttpResponse(ok=True, status_code=200))

    response = send_with_retries(client, HttpRequest(url=URL), retry_config=RetryConfig(max_attempts=3))

    assert response.ok is False
    assert response.error_type == "ReadTimeout"
    assert client.calls == 1
    assert no_sleep == []


def test_server_errors_are_never_resubmitted(no_sleep):
    client = FlakyClient([HttpResponse(ok=True, status_code=500)], HttpResponse(ok=True, status_code=200))

    response = send_with_retries(client, HttpRequest(url=URL), retry_config=RetryConfig(max_attempts=3))

    assert response.status_code == 500
    assert client.calls == 1


def test_retries_exhausted(no_sleep):
    failure = HttpResponse(ok=False, error_message="refused", error_type="ConnectError")
    client = FlakyClient([failure, failure], failure)

    response = send_with_retries(client, HttpRequest(url=URL), retry_config=RetryConfig(max_attempts=2))

    assert response.meta["retry_exhausted"] is True
    assert client.calls == 2


def test_action_client_decodes_structured_validation_failure():
    stub = StubHttpClient()
    stub.add(
        URL,
        HttpResponse(
            ok=True,
            status_code=200,
            text=json.dumps(
                {
                    "kind": "validation_failure",
                    "issues": [{"path": ["title"], "message": "too short", "code": "string_too_short"}],
                    "key": "render-1",
                }
            ),
        ),
    )
    client = ActionClient(stub, settings=FormActionsSettings())

    result = client.call(URL, ACTION_ID, [("title", "ab")])

    assert result.ok is False
    assert result.error_category is ErrorCategory.VALIDATION_FAILURE
    assert isinstance(result.outcome, ValidationFailure)
    assert result.outcome.issues[0].field_name == "title"
    assert result.session_key == "render-1"
    assert stub.requests[0].headers["Action-Id"] == ACTION_ID
    assert result.meta["wire_format"] == "json"


def test_action_client_decodes_native_redirect_and_errors():
    stub = StubHttpClient({URL: HttpResponse(ok=True, status_code=303, headers={"location": "/"})})
    client = ActionClient(stub, settings=FormActionsSettings())

    result = client.call(URL, ACTION_ID, [("title", "Buy milk")], native=True)
    assert result.ok is True
    assert result.outcome == Redirect(location="/")

    stub.add(URL, HttpResponse(ok=True, status_code=404, text="Server action not found."))
    missing = client.call(URL, ACTION_ID, native=True)
    assert missing.error_category is ErrorCategory.NOT_FOUND
    assert missing.error_message == "Server action not found."


def test_action_client_reports_transport_failure():
    client = ActionClient(StubHttpClient(), settings=FormActionsSettings(), retry_config=RetryConfig(max_attempts=1))

    result = client.call(URL, ACTION_ID)

    assert result.ok is False
    assert result.error_category is ErrorCategory.FAULT
    assert result.error_message == "No stubbed response configured"


def test_action_client_against_running_app():
    settings = FormActionsSettings(database=":memory:")
    app = create_app(settings)
    add_id = app.state.runtime.encoder.encode(add_todo)

    with TestClient(app) as test_client:
        client = ActionClient(HttpxClient(settings, client=test_client), settings=settings)

        native = client.call("http://testserver/", add_id, [("title", "Buy milk")], native=True)
        assert native.status_code == 303
        assert native.outcome == Redirect(location="/")

        structured = client.call("http://testserver/", add_id, [("title", "ab")])
        assert structured.status_code == 200
        assert isinstance(structured.outcome, ValidationFailure)

        rerendered = client.call("http://testserver/", add_id, [("title", "ab")], native=True)
        assert rerendered.ok is True
        assert 'value="ab"' in rerendered.body

        assert "Buy milk" in test_client.get("/").text
