"""Keyboard injection for shortcut buttons.

Key names are lower-case strings: modifiers (``ctrl``, ``shift``, ``alt``,
``cmd``), named keys (``escape``, ``enter``, ``tab``, ``space``, ``f1`` ..
``f12``) or a single printable character. A combination is pressed in order
and released in reverse order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol, Sequence

log = logging.getLogger(__name__)

# pynput spells a few keys differently.
_PYNPUT_NAMES = {"escape": "esc"}

_ALIASES = {
    "control": "ctrl",
    "ctl": "ctrl",
    "esc": "escape",
    "return": "enter",
    "option": "alt",
    "win": "cmd",
    "meta": "cmd",
}


class KeyboardError(RuntimeError):
    """Raised when a key combination cannot be parsed or sent."""


class KeyboardSink(Protocol):
    async def send_key_combo(self, keys: Sequence[str]) -> None: ...


def normalize_key_name(name: str) -> str:
    key = str(name).strip().lower()
    return _ALIASES.get(key, key)


class PynputKeyboard:
    """Sends key combinations to the focused window via pynput.

    pynput is imported on first use: it needs a display server, and a process
    that only renders orbs should start without one.
    """

    def __init__(self) -> None:
        self._controller: Any = None
        self._key_enum: Any = None

    def _ensure_controller(self) -> None:
        if self._controller is not None:
            return
        try:
            from pynput.keyboard import Controller, Key

            controller = Controller()
        except Exception as e:
            # ImportError, or no display server to connect to
            raise KeyboardError(f"keyboard backend unavailable: {e}") from e
        self._controller = controller
        self._key_enum = Key

    def resolve(self, name: str) -> Any:
        key = normalize_key_name(name)
        if not key:
            raise KeyboardError("empty key name")
        if len(key) == 1:
            return key
        member = getattr(self._key_enum, _PYNPUT_NAMES.get(key, key), None)
        if member is None:
            raise KeyboardError(f"unknown key: {name!r}")
        return member

    def _send_blocking(self, keys: Sequence[str]) -> None:
        self._ensure_controller()
        resolved = [self.resolve(k) for k in keys]
        pressed: list[Any] = []
        try:
            for key in resolved:
                self._controller.press(key)
                pressed.append(key)
        finally:
            for key in reversed(pressed):
                self._controller.release(key)

    async def send_key_combo(self, keys: Sequence[str]) -> None:
        if not keys:
            raise KeyboardError("empty key combination")
        await asyncio.to_thread(self._send_blocking, list(keys))
        log.info("keyboard: sent %s", "+".join(normalize_key_name(k) for k in keys))
