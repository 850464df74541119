"""Process-wide holder of the latest StateSnapshot with synchronous fan-out."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from runedeck.core.state import LOGGED_OUT, StateSnapshot

log = logging.getLogger(__name__)

StateListener = Callable[[StateSnapshot], None]


class StateStore:
    """Single-producer snapshot store.

    ``replace`` is the only mutator. Listeners run synchronously, in
    registration order, outside the lock; one failing listener is logged and
    the rest still run.
    """

    def __init__(self, initial: StateSnapshot | None = None) -> None:
        self._current = initial if initial is not None else LOGGED_OUT
        self._listeners: list[StateListener] = []
        self._lock = threading.Lock()
        self._replace_count = 0

    def current(self) -> StateSnapshot:
        return self._current

    def replace(self, snapshot: StateSnapshot) -> None:
        with self._lock:
            self._current = snapshot
            self._replace_count += 1
            listeners = tuple(self._listeners)

        for cb in listeners:
            try:
                cb(snapshot)
            except Exception:
                log.exception("store: listener %r failed", cb)

    def subscribe(self, cb: StateListener) -> None:
        with self._lock:
            if cb in self._listeners:
                return
            self._listeners.append(cb)
            count = len(self._listeners)
        log.debug("store: listener added (%d total)", count)

    def unsubscribe(self, cb: StateListener) -> None:
        with self._lock:
            try:
                self._listeners.remove(cb)
            except ValueError:
                return
            count = len(self._listeners)
        log.debug("store: listener removed (%d total)", count)

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    @property
    def replace_count(self) -> int:
        return self._replace_count
