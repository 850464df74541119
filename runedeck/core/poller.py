"""Pull-mode update driver: polls the RuneLite status endpoint into the store."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from runedeck.core.state import LOGGED_OUT, StateSnapshot
from runedeck.core.store import StateStore
from runedeck.devices.state_client import StateSourceError

log = logging.getLogger(__name__)


class StateSource(Protocol):
    async def fetch(self) -> StateSnapshot: ...


class StatePoller:
    """One polling task per process, reference-counted by the registries.

    Every tick replaces the store snapshot. A failed fetch installs the
    logged-out snapshot so buttons fall back to their neutral look instead of
    showing stale numbers.
    """

    def __init__(self, store: StateStore, client: StateSource, interval_s: float = 0.2) -> None:
        self._store = store
        self._client = client
        self._interval_s = interval_s
        self._refcount = 0
        self._task: asyncio.Task | None = None
        self._finishing: set[asyncio.Task] = set()
        self._failing = False
        self.tick_count = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def refcount(self) -> int:
        return self._refcount

    def acquire(self) -> None:
        self._refcount += 1
        if self._refcount == 1 and not self.active:
            self._task = asyncio.get_running_loop().create_task(self._run(), name="state-poller")
            log.info("poller: started (every %.0f ms)", self._interval_s * 1000)

    def release(self) -> None:
        if self._refcount == 0:
            log.debug("poller: release without acquire")
            return
        self._refcount -= 1
        if self._refcount == 0:
            self._cancel()
            log.info("poller: stopped")

    async def stop(self) -> None:
        self._refcount = 0
        self._cancel()
        if self._finishing:
            await asyncio.gather(*tuple(self._finishing), return_exceptions=True)

    def _cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            self._finishing.add(task)
            task.add_done_callback(self._finishing.discard)

    async def tick(self) -> None:
        """Fetch once and install the result (or the logged-out snapshot)."""
        self.tick_count += 1
        try:
            snapshot = await self._client.fetch()
        except StateSourceError as e:
            if not self._failing:
                log.warning("poller: source unavailable, showing logged-out state: %s", e)
            self._failing = True
            self._store.replace(LOGGED_OUT)
            return
        if self._failing:
            log.info("poller: source reachable again")
            self._failing = False
        self._store.replace(snapshot)

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                log.exception("poller: tick failed")
                self._store.replace(LOGGED_OUT)
            await asyncio.sleep(self._interval_s)
