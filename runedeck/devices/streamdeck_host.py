"""Drives a physical Elgato Stream Deck from the button registries.

Each configured key is reported to its kind's registry as a visible button
when the deck opens and as hidden when it closes. Key presses arrive on the
library's reader thread and hop onto the event loop; HID writes run in a
worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from PIL import Image

from runedeck.config import DeckKeyConfig
from runedeck.core.registry import ButtonRegistry

log = logging.getLogger(__name__)


class DeckKey:
    """ButtonSink for one physical key.

    A bare deck has no title overlay or multi-state actions, so the title
    and discrete state are only recorded.
    """

    def __init__(self, host: StreamDeckHost, index: int, settings: dict[str, Any]) -> None:
        self.index = index
        self.title = ""
        self.state = 0
        self._host = host
        self._settings = dict(settings)

    @property
    def button_id(self) -> str:
        return f"key-{self.index}"

    async def set_image(self, image: Image.Image) -> None:
        await self._host.write_image(self.index, image)

    async def set_state(self, state: int) -> None:
        self.state = state

    async def set_title(self, title: str) -> None:
        self.title = title
        log.debug("deck: key %d title %r", self.index, title)

    async def get_settings(self) -> dict[str, Any]:
        return dict(self._settings)

    async def set_settings(self, settings: dict[str, Any]) -> None:
        self._settings = dict(settings)


def _default_enumerate() -> list:
    from StreamDeck.DeviceManager import DeviceManager

    return DeviceManager().enumerate() or []


def _default_to_native(deck, image: Image.Image):
    from StreamDeck.ImageHelpers import PILHelper

    return PILHelper.to_native_format(deck, image)


class StreamDeckHost:
    def __init__(
        self,
        keys: Iterable[DeckKeyConfig],
        registries: dict[str, ButtonRegistry],
        brightness: int = 60,
        *,
        enumerate_decks: Callable[[], list] = _default_enumerate,
        to_native: Callable[[Any, Image.Image], Any] = _default_to_native,
    ) -> None:
        self._layout = list(keys)
        self._registries = registries
        self._brightness = brightness
        self._enumerate = enumerate_decks
        self._to_native = to_native
        self._deck = None
        self._key_size = (72, 72)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._bound: dict[int, tuple[DeckKey, ButtonRegistry]] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._deck is not None

    @property
    def keys(self) -> dict[int, DeckKey]:
        return {index: sink for index, (sink, _) in self._bound.items()}

    async def start(self) -> bool:
        """Open the first deck and show every laid-out key. False if none found."""
        self._loop = asyncio.get_running_loop()
        try:
            self._deck = await asyncio.to_thread(self._open_first)
        except Exception as e:
            log.warning("deck: open failed: %s", e)
            self._deck = None
        if self._deck is None:
            log.warning("deck: no Stream Deck found, serving state only")
            return False

        key_count = self._deck.key_count()
        for entry in self._layout:
            registry = self._registries.get(entry.kind)
            if registry is None:
                log.warning("deck: key %d has unknown kind %r", entry.key, entry.kind)
                continue
            if not 0 <= entry.key < key_count:
                log.warning("deck: key %d out of range (deck has %d)", entry.key, key_count)
                continue
            if entry.key in self._bound:
                log.warning("deck: key %d configured twice, keeping the first", entry.key)
                continue
            sink = DeckKey(self, entry.key, entry.settings)
            self._bound[entry.key] = (sink, registry)
            await registry.on_button_shown(sink.button_id, sink, await sink.get_settings())

        self._deck.set_key_callback(self._on_key_change)
        log.info("deck: %s ready, %d/%d keys bound", self._deck.deck_type(), len(self._bound), key_count)
        return True

    async def stop(self) -> None:
        for sink, registry in self._bound.values():
            await registry.on_button_hidden(sink.button_id)
        self._bound.clear()
        if self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

        deck, self._deck = self._deck, None
        if deck is not None:
            await asyncio.to_thread(self._close, deck)
            log.info("deck: closed")

    async def write_image(self, index: int, image: Image.Image) -> None:
        deck = self._deck
        if deck is None:
            raise RuntimeError("deck not open")
        await asyncio.to_thread(self._write, deck, index, image)

    # ── Blocking HID calls (worker thread) ───────────────────────

    def _open_first(self):
        decks = self._enumerate()
        if not decks:
            return None
        deck = decks[0]
        deck.open()
        deck.reset()
        deck.set_brightness(self._brightness)
        fmt = deck.key_image_format() or {}
        size = fmt.get("size")
        if isinstance(size, (list, tuple)) and len(size) == 2:
            self._key_size = (int(size[0]), int(size[1]))
        return deck

    def _write(self, deck, index: int, image: Image.Image) -> None:
        if image.size != self._key_size:
            image = image.resize(self._key_size, Image.Resampling.LANCZOS)
        native = self._to_native(deck, image.convert("RGB"))
        with deck:
            deck.set_key_image(index, native)

    @staticmethod
    def _close(deck) -> None:
        with deck:
            deck.reset()
            deck.close()

    # ── Key events ───────────────────────────────────────────────

    def _on_key_change(self, _deck, key: int, pressed: bool) -> None:
        # Called on the library's reader thread.
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._dispatch_key, int(key), bool(pressed))

    def _dispatch_key(self, index: int, pressed: bool) -> None:
        bound = self._bound.get(index)
        if bound is None:
            return
        sink, registry = bound
        if pressed:
            coro = registry.on_pressed(sink.button_id)
        else:
            coro = registry.on_released(sink.button_id)
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
