# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import json

import pytest

from formactions.adapters import parse_form_items, parse_structured_body
from formactions.errors import MalformedRequest
from formactions.models import FormFields, FrontEnd

ACTION_ID = "40" + "a" * 40


def test_native_fields_strip_reserved_names_and_keep_order():
    invocation = parse_form_items(
        [
            ("tag", "b"),
            (f"$ACTION_ID_{ACTION_ID}", ""),
            ("title", "Buy milk"),
            ("$ACTION_KEY", "render-1"),
            ("$ACTION_REF_1", "ignored"),
            ("tag", "a"),
        ]
    )

    assert invocation.action_id == ACTION_ID
    assert invocation.session_key == "render-1"
    assert invocation.front_end is FrontEnd.NATIVE_FORM
    assert invocation.fields.items() == [("tag", "b"), ("title", "Buy milk"), ("tag", "a")]
    assert invocation.fields.getlist("tag") == ["b", "a"]


def test_native_fields_accept_value_carrying_identifier():
    invocation = parse_form_items([("$ACTION_ID", ACTION_ID), ("id", "7")])
    assert invocation.action_id == ACTION_ID
    assert invocation.fields.get("id") == "7"
    assert invocation.session_key is None


def test_file_values_pass_through_untouched():
    upload = object()
    invocation = parse_form_items([(f"$ACTION_ID_{ACTION_ID}", ""), ("attachment", upload)])
    assert invocation.fields.get("attachment") is upload


def test_missing_identifier_is_malformed():
    with pytest.raises(MalformedRequest):
        parse_form_items([("title", "Buy milk")])


def test_empty_or_conflicting_identifiers_are_malformed():
    with pytest.raises(MalformedRequest):
        parse_form_items([("$ACTION_ID_", "")])
    with pytest.raises(MalformedRequest):
        parse_form_items([(f"$ACTION_ID_{ACTION_ID}", ""), ("$ACTION_ID", "40" + "b" * 40)])


def test_repeated_identical_identifier_is_accepted():
    invocation = parse_form_items([(f"$ACTION_ID_{ACTION_ID}", ""), ("$ACTION_ID", ACTION_ID)])
    assert invocation.action_id == ACTION_ID


def test_structured_body_with_pairs():
    body = json.dumps({"fields": [["tag", "x"], ["tag", "y"], ["title", "Buy milk"]], "key": "k1"}).encode()
    invocation = parse_structured_body(ACTION_ID, body)

    assert invocation.front_end is FrontEnd.STRUCTURED_CALL
    assert invocation.session_key == "k1"
    assert invocation.fields.getlist("tag") == ["x", "y"]


def test_structured_body_with_object_and_header_key():
    body = json.dumps({"fields": {"tag": ["x", "y"], "title": "Buy milk"}}).encode()
    invocation = parse_structured_body(ACTION_ID, body, session_key="from-header")

    assert invocation.session_key == "from-header"
    assert invocation.fields.items() == [("tag", "x"), ("tag", "y"), ("title", "Buy milk")]


def test_structured_body_errors():
    with pytest.raises(MalformedRequest):
        parse_structured_body(None, b"{}")
    with pytest.raises(MalformedRequest):
        parse_structured_body(ACTION_ID, b"{not json")
    with pytest.raises(MalformedRequest):
        parse_structured_body(ACTION_ID, b"[1, 2]")
    with pytest.raises(MalformedRequest):
        parse_structured_body(ACTION_ID, json.dumps({"fields": [["only-name"]]}).encode())
    with pytest.raises(MalformedRequest):
        parse_structured_body(ACTION_ID, json.dumps({"fields": "title=x"}).encode())


def test_structured_body_may_be_empty():
    invocation = parse_structured_body(ACTION_ID, b"")
    assert len(invocation.fields) == 0


def test_form_fields_helpers():
    fields = FormFields.from_mapping({"a": "1", "b": ["2", "3"]})
    assert list(fields) == ["a", "b"]
    assert len(fields) == 3
    assert "b" in fields
    assert "c" not in fields
    assert fields.get("c", "default") == "default"
    assert fields.to_dict() == {"a": "1", "b": ["2", "3"]}
    assert fields == FormFields([("a", "1"), ("b", "2"), ("b", "3")])
