# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for FormActions."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"FormActions/{__version__} (+server-function client)"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class FormActionsSettings:
    """Runtime and client defaults."""

    action_id_salt: str = ""
    expose_fault_detail: bool = False
    state_ttl: float = 300.0
    state_max_entries: int = 10_000
    allow_external_redirects: bool = False
    max_form_fields: int = 1000
    max_form_files: int = 100
    database: str = "todos.db"
    timeout: float = 10.0
    max_retries: int = 1
    backoff_factor: float = 2.0
    initial_delay: float = 0.5
    user_agent: str = DEFAULT_USER_AGENT
    max_body_bytes: int = 4 * 1024 * 1024

    @classmethod
    def from_env(cls) -> "FormActionsSettings":
        """Create settings from environment variables (evaluated at call time)."""
        state_ttl = _float_env("FORMACTIONS_STATE_TTL", cls.state_ttl)
        if state_ttl <= 0:
            state_ttl = cls.state_ttl
        state_max_entries = _int_env("FORMACTIONS_STATE_MAX_ENTRIES", cls.state_max_entries)
        if state_max_entries <= 0:
            state_max_entries = cls.state_max_entries
        return cls(
            action_id_salt=os.getenv("FORMACTIONS_ACTION_ID_SALT", cls.action_id_salt),
            expose_fault_detail=_bool_env("FORMACTIONS_EXPOSE_FAULT_DETAIL", cls.expose_fault_detail),
            state_ttl=state_ttl,
            state_max_entries=state_max_entries,
            allow_external_redirects=_bool_env("FORMACTIONS_ALLOW_EXTERNAL_REDIRECTS", cls.allow_external_redirects),
            max_form_fields=_int_env("FORMACTIONS_MAX_FORM_FIELDS", cls.max_form_fields),
            max_form_files=_int_env("FORMACTIONS_MAX_FORM_FILES", cls.max_form_files),
            database=os.getenv("FORMACTIONS_DATABASE", cls.database),
            timeout=_float_env("FORMACTIONS_HTTP_TIMEOUT", cls.timeout),
            max_retries=_int_env("FORMACTIONS_HTTP_RETRIES", cls.max_retries),
            backoff_factor=_float_env("FORMACTIONS_HTTP_BACKOFF", cls.backoff_factor),
            initial_delay=_float_env("FORMACTIONS_HTTP_INITIAL_DELAY", cls.initial_delay),
            user_agent=os.getenv("FORMACTIONS_USER_AGENT", cls.user_agent),
        )


def load_settings() -> FormActionsSettings:
    """Load settings from environment with sensible defaults."""
    return FormActionsSettings.from_env()
