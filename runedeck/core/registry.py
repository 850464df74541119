"""Per-kind registry of visible buttons.

One ButtonRegistry exists per button kind. It owns the instances currently
shown on the device, subscribes to the StateStore while at least one of them
is visible, and pushes a new image to an instance only when the kind's view
(its fingerprint) changed.

Instance lifecycle::

    absent --shown--> visible-unrendered --first push--> visible-rendered
    visible-* --hidden--> absent

Pushes for one instance are serialised by its lock (FIFO, so they land in
trigger order); different instances are updated concurrently and a failure on
one never affects the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Hashable, Protocol

from PIL import Image

from runedeck.core.state import StateSnapshot
from runedeck.core.store import StateStore

if TYPE_CHECKING:
    from runedeck.actions.base import ButtonKind
    from runedeck.core.poller import StatePoller

log = logging.getLogger(__name__)


class ButtonSink(Protocol):
    """What the registry needs from one physical key."""

    async def set_image(self, image: Image.Image) -> None: ...

    async def set_state(self, state: int) -> None: ...

    async def set_title(self, title: str) -> None: ...

    async def get_settings(self) -> dict[str, Any]: ...

    async def set_settings(self, settings: dict[str, Any]) -> None: ...


@dataclass(eq=False)
class ButtonInstance:
    id: str
    sink: ButtonSink
    settings: dict[str, Any]
    fingerprint: Hashable | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def rendered(self) -> bool:
        return self.fingerprint is not None


class ButtonRegistry:
    """Tracks visible buttons of one kind and keeps their images current."""

    def __init__(
        self,
        kind: ButtonKind,
        store: StateStore,
        poller: StatePoller | None = None,
    ) -> None:
        self.kind = kind
        self._store = store
        self._poller = poller
        self._instances: dict[str, ButtonInstance] = {}
        self._tasks: set[asyncio.Task] = set()
        self._attached = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._push_count = 0

    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def attached(self) -> bool:
        """True while subscribed to the store (and holding the poller)."""
        return self._attached

    @property
    def push_count(self) -> int:
        return self._push_count

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, button_id: object) -> bool:
        return button_id in self._instances

    def instance(self, button_id: str) -> ButtonInstance | None:
        return self._instances.get(button_id)

    # ── Device lifecycle ─────────────────────────────────────────

    async def on_button_shown(
        self,
        button_id: str,
        sink: ButtonSink,
        settings: dict[str, Any] | None = None,
    ) -> None:
        host_settings = dict(settings or {})
        merged = self.kind.apply_defaults(host_settings)

        # Registered before any await, so a hide that arrives while the
        # defaults are being saved finds the instance and removes it.
        if button_id in self._instances:
            log.debug("registry[%s]: %s shown twice, replacing", self.name, button_id)
        first = not self._instances
        inst = ButtonInstance(button_id, sink, merged)
        self._instances[button_id] = inst
        log.info("registry[%s]: %s shown (%d visible)", self.name, button_id, len(self._instances))
        if first:
            self._attach()

        if merged != host_settings:
            try:
                await sink.set_settings(merged)
            except Exception as e:
                log.warning("registry[%s]: could not persist defaults for %s: %s",
                            self.name, button_id, e)
            if self._instances.get(button_id) is not inst:
                return
        await self._push_title(inst)
        await self._update(inst, self._store.current())

    async def on_button_hidden(self, button_id: str) -> None:
        inst = self._instances.pop(button_id, None)
        if inst is None:
            log.debug("registry[%s]: hide for unknown %s", self.name, button_id)
            return
        log.info("registry[%s]: %s hidden (%d visible)", self.name, button_id, len(self._instances))
        if not self._instances:
            self._detach()

    async def on_settings_changed(self, button_id: str, settings: dict[str, Any]) -> None:
        inst = self._instances.get(button_id)
        if inst is None:
            log.debug("registry[%s]: settings for unknown %s", self.name, button_id)
            return
        inst.settings = self.kind.apply_defaults(settings)
        inst.fingerprint = None
        await self._push_title(inst)
        await self._update(inst, self._store.current())

    async def on_pressed(self, button_id: str) -> None:
        inst = self._instances.get(button_id)
        if inst is None:
            return
        try:
            await self.kind.on_pressed(inst)
        except Exception as e:
            log.warning("registry[%s]: press on %s failed: %s", self.name, button_id, e)

    async def on_released(self, button_id: str) -> None:
        inst = self._instances.get(button_id)
        if inst is None:
            return
        try:
            await self.kind.on_released(inst)
        except Exception as e:
            log.warning("registry[%s]: release on %s failed: %s", self.name, button_id, e)

    # ── Rendering ────────────────────────────────────────────────

    async def render(self, snapshot: StateSnapshot) -> None:
        """Bring every visible instance up to date with *snapshot*."""
        instances = list(self._instances.values())
        if not instances:
            return
        await asyncio.gather(*(self._update(inst, snapshot) for inst in instances))

    async def drain(self) -> None:
        """Wait for renders scheduled by store notifications."""
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for button_id in list(self._instances):
            await self.on_button_hidden(button_id)
        await self.drain()

    def _on_state(self, snapshot: StateSnapshot) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # Published from another thread: hop onto the loop we attached on.
            loop = self._loop
            if loop is None or loop.is_closed():
                log.warning("registry[%s]: state update outside the event loop dropped", self.name)
                return
            loop.call_soon_threadsafe(self._schedule_render, snapshot)
            return
        self._schedule_render(snapshot)

    def _schedule_render(self, snapshot: StateSnapshot) -> None:
        task = asyncio.get_running_loop().create_task(
            self.render(snapshot), name=f"render-{self.name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _update(self, inst: ButtonInstance, snapshot: StateSnapshot) -> bool:
        async with inst.lock:
            if self._instances.get(inst.id) is not inst:
                return False
            try:
                view = self.kind.view(snapshot, inst.settings)
                if view == inst.fingerprint:
                    return False
                image = self.kind.draw(view)
                state = self.kind.discrete_state(view)
            except Exception:
                log.exception("registry[%s]: render failed for %s", self.name, inst.id)
                return False

            try:
                await inst.sink.set_image(image)
                if state is not None:
                    await inst.sink.set_state(state)
            except Exception as e:
                log.warning("registry[%s]: push to %s failed: %s", self.name, inst.id, e)
                return False

            inst.fingerprint = view
            self._push_count += 1
            return True

    async def _push_title(self, inst: ButtonInstance) -> None:
        title = self.kind.title(inst.settings)
        if title is None:
            return
        try:
            await inst.sink.set_title(title)
        except Exception as e:
            log.warning("registry[%s]: title for %s failed: %s", self.name, inst.id, e)

    # ── Update driver ────────────────────────────────────────────

    def _attach(self) -> None:
        if self._attached or not self.kind.uses_state:
            return
        self._loop = asyncio.get_running_loop()
        self._store.subscribe(self._on_state)
        if self._poller is not None:
            self._poller.acquire()
        self._attached = True
        log.debug("registry[%s]: attached to state updates", self.name)

    def _detach(self) -> None:
        if not self._attached:
            return
        self._store.unsubscribe(self._on_state)
        if self._poller is not None:
            self._poller.release()
        self._attached = False
        log.debug("registry[%s]: detached from state updates", self.name)
