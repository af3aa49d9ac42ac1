# SPDX-FileCopyrightText: 2025 FormActions contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Result propagation channel: single-use action state keyed by (action, render session)."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from .models import ActionState, FormFields, InvocationOutcome, Redirect

logger = logging.getLogger(__name__)

StateKey = tuple[str, str]


@dataclass
class _Entry:
    state: ActionState
    expires_at: float


class ResultChannel:
    """
    Stores the last non-redirect outcome per (action identifier, session key).

    Each entry is read at most once; unread entries expire after `ttl` seconds and
    the oldest entries are evicted beyond `max_entries`.
    """

    def __init__(
        self,
        *,
        ttl: float = 300.0,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: OrderedDict[StateKey, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    def publish(
        self,
        action_id: str,
        session_key: str,
        outcome: InvocationOutcome,
        fields: FormFields,
    ) -> ActionState | None:
        if isinstance(outcome, Redirect):
            return None
        key = (action_id, session_key)
        state = ActionState(fields=fields, outcome=outcome)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries.pop(key, None)
            self._entries[key] = _Entry(state=state, expires_at=now + self.ttl)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted unread action state for %s", evicted)
        return state

    def consume(self, action_id: str, session_key: str) -> ActionState | None:
        with self._lock:
            entry = self._entries.pop((action_id, session_key), None)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            return None
        return entry.state

    def peek(self, action_id: str, session_key: str) -> bool:
        with self._lock:
            entry = self._entries.get((action_id, session_key))
            return entry is not None and entry.expires_at > self._clock()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        # Entries are kept in publish order, so expiry times are non-decreasing.
        while self._entries:
            entry = next(iter(self._entries.values()))
            if entry.expires_at > now:
                break
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)


__all__ = ["ResultChannel"]
