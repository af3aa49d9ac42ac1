# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility exports."""

from .actions import ACTION_ID_PREFIX, accepts_context, derive_action_id, looks_like_action_id

__all__ = [
    "ACTION_ID_PREFIX",
    "accepts_context",
    "derive_action_id",
    "looks_like_action_id",
]
