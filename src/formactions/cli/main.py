# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""FormActions CLI."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from ..config import FormActionsSettings, load_settings
from ..http import ActionClient, CallResult, create_default_http_client
from ..log import setup_logging
from ..models import Fault, Redirect, Success, ValidationFailure
from ..runtime import ActionRuntime

CLI_TEXT_TRUNCATION_BYTES = 4096


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="FormActions server-function runtime")
    parser.add_argument("--log-level", default=None, help="Logging level (default: FORMACTIONS_LOG_LEVEL or WARNING)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the demo todo app")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--database", default=None, help="SQLite database path (default: FORMACTIONS_DATABASE)")

    actions = subparsers.add_parser("actions", help="List action identifiers registered by the demo app")
    actions.add_argument("--json", action="store_true", help="Output JSON instead of a table")

    invoke = subparsers.add_parser("invoke", help="Submit fields to a server action")
    invoke.add_argument("url", help="Page URL that accepts the action")
    invoke.add_argument("action_id", help="Action identifier (see `formactions actions`)")
    invoke.add_argument("fields", nargs="*", metavar="name=value", help="Submitted fields; repeat a name for multiple values")
    invoke.add_argument("--native", action="store_true", help="Send a urlencoded form post instead of a structured call")
    invoke.add_argument("--key", default=None, help="Render session key to correlate action state with")
    invoke.add_argument("--json", action="store_true", help="Output JSON instead of human-friendly summary")
    return parser


def parse_field_args(values: list[str]) -> list[tuple[str, str]]:
    fields: list[tuple[str, str]] = []
    for raw in values:
        name, sep, value = raw.partition("=")
        if not sep or not name:
            raise ValueError(f"field must look like name=value, got {raw!r}")
        fields.append((name, value))
    return fields


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    keep = max_bytes - len(suffix.encode("utf-8"))
    if keep <= 0:
        return suffix.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    return raw[:keep].decode("utf-8", errors="ignore") + suffix


def _print_json(data: dict[str, Any] | Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _pretty_print(result: CallResult) -> None:
    outcome = result.outcome
    print(f"[FormActions] HTTP {result.status_code if result.status_code is not None else '-'}")
    if isinstance(outcome, Redirect):
        print(f"Redirect: {outcome.location}")
    elif isinstance(outcome, ValidationFailure):
        print(f"Validation failed ({len(outcome.issues)} issue(s)):")
        for issue in outcome.issues:
            path = ".".join(str(part) for part in issue.path) or "-"
            print(f"- {path}: {issue.message}")
    elif isinstance(outcome, Fault):
        print(f"Fault: {outcome.message}")
    elif isinstance(outcome, Success):
        print("Success")
    elif not result.ok:
        print(f"Error ({result.error_category.value}): {result.error_message or '-'}")
    elif result.body:
        print(_truncate_text_bytes(result.body, CLI_TEXT_TRUNCATION_BYTES))
    if result.session_key:
        print(f"Session key: {result.session_key}")


def _serve(args: argparse.Namespace, settings: FormActionsSettings) -> int:
    import uvicorn

    from ..demo.todo import create_app

    if args.database:
        settings.database = args.database
    uvicorn.run(create_app(settings), host=args.host, port=args.port)
    return 0


def _list_actions(args: argparse.Namespace, settings: FormActionsSettings) -> int:
    from ..demo.todo import register_actions

    runtime = ActionRuntime(settings)
    register_actions(runtime)
    descriptors = [descriptor.to_mapping() for descriptor in runtime.registry.descriptors()]
    if args.json:
        _print_json({"actions": descriptors})
        return 0
    for item in descriptors:
        print(f"{item['identifier']}  {item['location']}")
    return 0


def _invoke(args: argparse.Namespace, settings: FormActionsSettings) -> int:
    try:
        fields = parse_field_args(args.fields)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    with ActionClient(create_default_http_client(settings), settings=settings) as client:
        result = client.call(args.url, args.action_id, fields, native=args.native, session_key=args.key)

    if args.json:
        _print_json(result)
    else:
        _pretty_print(result)
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings = load_settings()
    handlers = {"serve": _serve, "actions": _list_actions, "invoke": _invoke}
    return handlers[args.command](args, settings)


if __name__ == "__main__":
    raise SystemExit(main())
