"""Contract every button kind implements.

A kind turns ``(snapshot, settings)`` into a small frozen *view* and draws that
view into an RGBA image. The view doubles as the fingerprint the registry
compares to skip redundant pushes, so ``draw`` must depend on nothing but the
view (and the write-once asset cache).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Hashable

from PIL import Image

from runedeck.core.state import StateSnapshot
from runedeck.render.assets import AssetStore
from runedeck.render.canvas import DEFAULT_SIZE

if TYPE_CHECKING:
    from runedeck.core.registry import ButtonInstance


def asset_setting(value: Any) -> str:
    """Asset name from a user setting; anything but a non-blank string means none."""
    if not isinstance(value, str):
        return ""
    return value.strip()


class ButtonKind:
    """Base class; subclasses override ``view`` and ``draw``."""

    name: str = ""
    uses_state: bool = True

    def __init__(self, assets: AssetStore, *, size: int = DEFAULT_SIZE) -> None:
        self.assets = assets
        self.size = size

    # ── Settings ─────────────────────────────────────────────────

    def defaults(self, settings: dict[str, Any]) -> dict[str, Any]:
        """Default values for this kind; may depend on the host settings."""
        return {}

    def apply_defaults(self, settings: dict[str, Any] | None) -> dict[str, Any]:
        """Copy of *settings* with every unset field filled in."""
        merged = dict(settings or {})
        for key, value in self.defaults(merged).items():
            if merged.get(key) is None or merged.get(key) == "":
                merged[key] = value
        return merged

    def title(self, settings: dict[str, Any]) -> str | None:
        return None

    # ── Rendering ────────────────────────────────────────────────

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> Hashable:
        raise NotImplementedError

    def draw(self, view: Any) -> Image.Image:
        raise NotImplementedError

    def discrete_state(self, view: Any) -> int | None:
        return None

    def render(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> Image.Image:
        return self.draw(self.view(snapshot, settings))

    # ── Key presses ──────────────────────────────────────────────

    async def on_pressed(self, instance: ButtonInstance) -> None:
        pass

    async def on_released(self, instance: ButtonInstance) -> None:
        pass
