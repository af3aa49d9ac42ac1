# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import threading

import pytest

from formactions.encoder import ACTION_ID_FIELD_PREFIX, ACTION_KEY_FIELD, ActionReferenceEncoder
from formactions.errors import ActionNotFound
from formactions.models import SourceLocation
from formactions.registry import ActionRegistry, location_of
from formactions.utils.actions import accepts_context, derive_action_id, looks_like_action_id


def create_todo(data):
    return data


def remove_todo(data, context):
    return data, context


def test_register_is_idempotent_per_location():
    registry = ActionRegistry()
    first = registry.register(location_of(create_todo), create_todo)
    second = registry.register(location_of(create_todo), create_todo)

    assert first == second
    assert len(registry) == 1
    assert looks_like_action_id(first)
    assert first.startswith("40")


def test_reregistration_keeps_original_descriptor():
    registry = ActionRegistry()
    identifier = registry.register("app.actions:create", create_todo)
    again = registry.register("app.actions:create", remove_todo)

    assert again == identifier
    assert registry.resolve(identifier).handler is create_todo


def test_identifiers_are_deterministic_across_registries():
    location = SourceLocation(module="app.actions", name="create")
    assert ActionRegistry().register(location, create_todo) == ActionRegistry().register(location, create_todo)
    assert ActionRegistry().register(location, create_todo) == derive_action_id("app.actions:create")


def test_salt_rotates_identifiers():
    plain = ActionRegistry().register("app.actions:create", create_todo)
    salted = ActionRegistry(salt="release-2").register("app.actions:create", create_todo)
    assert plain != salted
    assert looks_like_action_id(salted)


def test_resolve_unknown_identifier_raises_not_found():
    registry = ActionRegistry()
    with pytest.raises(ActionNotFound) as excinfo:
        registry.resolve("40" + "0" * 40)
    assert excinfo.value.action_id == "40" + "0" * 40


def test_location_of_rejects_lambdas_and_nested_functions():
    with pytest.raises(ValueError):
        location_of(lambda data: data)

    def nested(data):
        return data

    with pytest.raises(ValueError):
        location_of(nested)


def test_source_location_parse():
    assert str(SourceLocation.parse("app.actions:create")) == "app.actions:create"
    with pytest.raises(ValueError):
        SourceLocation.parse("no-colon")


def test_decorator_registers_and_returns_handler():
    registry = ActionRegistry()

    decorated = registry.action(name="renamed")(create_todo)

    assert decorated is create_todo
    [descriptor] = registry.descriptors()
    assert descriptor.location.name == "renamed"
    assert descriptor.handler is create_todo


def test_accepts_context_detection():
    registry = ActionRegistry()
    one = registry.resolve(registry.register("m:one", create_todo))
    two = registry.resolve(registry.register("m:two", remove_todo))
    assert one.accepts_context is False
    assert two.accepts_context is True
    assert accepts_context(lambda *args: None) is True


def test_encode_resolve_round_trip():
    registry = ActionRegistry()
    registry.register(location_of(create_todo), create_todo)
    registry.register(location_of(remove_todo), remove_todo)
    encoder = ActionReferenceEncoder(registry)

    for handler in (create_todo, remove_todo):
        identifier = encoder.encode(handler)
        assert encoder.encode(handler) == identifier
        assert registry.resolve(identifier).handler is handler
        assert encoder.encode(registry.resolve(identifier)) == identifier
        assert encoder.encode(identifier) == identifier


def test_encode_unregistered_handler_raises():
    encoder = ActionReferenceEncoder(ActionRegistry())
    with pytest.raises(ActionNotFound):
        encoder.encode(create_todo)


def test_hidden_inputs_markup():
    registry = ActionRegistry()
    identifier = registry.register(location_of(create_todo), create_todo)
    encoder = ActionReferenceEncoder(registry)

    assert encoder.hidden_field(create_todo) == (f"{ACTION_ID_FIELD_PREFIX}{identifier}", "")
    markup = encoder.render_hidden_inputs(create_todo, session_key='k"1')
    assert f'name="$ACTION_ID_{identifier}"' in markup
    assert f'name="{ACTION_KEY_FIELD}" value="k&quot;1"' in markup
    assert ACTION_KEY_FIELD not in encoder.render_hidden_inputs(create_todo)


def test_identifier_for_tracks_first_registration_of_each_handler():
    registry = ActionRegistry()

    def handler(data):
        return data

    def other(data):
        return data

    first = registry.register("tests.actions:first", handler)
    registry.register("tests.actions:alias", handler)
    registry.register("tests.actions:first", other)

    assert registry.identifier_for(handler) == first
    assert registry.identifier_for(other) is None


def test_identifier_for_is_consistent_under_concurrent_registration():
    registry = ActionRegistry()

    def make_handler(index):
        def handler(data):
            return index

        return handler

    handlers = [make_handler(i) for i in range(64)]
    errors = []

    def register(index):
        registry.register(f"tests.actions:h{index}", handlers[index])

    def lookup():
        try:
            for handler in handlers:
                registry.identifier_for(handler)
        except RuntimeError as exc:
            errors.append(exc)

    threads = [threading.Thread(target=register, args=(i,)) for i in range(64)]
    threads += [threading.Thread(target=lookup) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert [registry.identifier_for(h) for h in handlers] == [
        derive_action_id(f"tests.actions:h{i}") for i in range(64)
    ]
