"""Shared fixtures: in-memory asset pack and a recording button sink."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from runedeck.render.assets import AssetStore

CLEAR = (0, 0, 0, 0)

# name -> (rgba, edge). Frames/overlays are fully transparent so pixel checks
# see what is underneath them.
ASSET_SPECS: dict[str, tuple[tuple[int, int, int, int], int]] = {
    "health-meter/Hitpoints_orb.png": (CLEAR, 144),
    "prayer-meter/Prayer_orb_enabled_backgroud.png": ((0, 200, 255, 255), 144),
    "prayer-meter/Prayer_orb_disabled_backgroud.png": ((40, 120, 160, 255), 144),
    "prayer-meter/Prayer_orb_enabled.png": (CLEAR, 144),
    "prayer-meter/Prayer_orb_disabled.png": (CLEAR, 144),
    "run/Run_energy_orb_enabled.png": (CLEAR, 144),
    "run/Run_energy_orb_disabled.png": (CLEAR, 144),
    "special-attack-meter/special_attack_orb_enable_fill.png": ((10, 200, 10, 255), 144),
    "special-attack-meter/special_attack_orb_available_fill.png": ((200, 200, 10, 255), 144),
    "special-attack-meter/special_attack_orb_unavailable_fill.png": ((90, 90, 90, 255), 144),
    "special-attack-meter/special_attack_orb.png": (CLEAR, 144),
    "prayer-button/Deactivated_prayer.png": ((60, 60, 60, 255), 144),
    "prayer-button/Activated_prayer.png": ((255, 220, 0, 255), 144),
    "prayer-button/Protect_from_Melee.png": ((200, 0, 0, 255), 30),
    "prayer-button/Piety.png": ((0, 0, 200, 255), 30),
    "tab-button/Tab_active.png": ((150, 100, 50, 255), 144),
    "tab-button/Tab_inactive.png": ((50, 50, 50, 255), 144),
    "tab-button/inventory.png": ((0, 150, 0, 255), 24),
    "tab-button/prayer.png": ((0, 0, 150, 255), 24),
    "map-button/map_orb.png": ((20, 40, 60, 255), 144),
    "map-button/map_orb_highlight.png": ((220, 200, 100, 255), 144),
    # user-supplied images named in button settings
    "custom/hp_mask.png": ((120, 0, 120, 255), 144),
    "custom/tab_on.png": ((255, 0, 255, 255), 144),
    "custom/tab_off.png": ((0, 255, 255, 255), 72),
}


def png_bytes(rgba: tuple[int, int, int, int], edge: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (edge, edge), rgba).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def palette() -> dict[str, tuple[int, int, int]]:
    return {name: rgba[:3] for name, (rgba, _) in ASSET_SPECS.items()}


@pytest.fixture
def assets() -> AssetStore:
    reads: list[str] = []

    def reader(name: str) -> bytes:
        reads.append(name)
        if name not in ASSET_SPECS:
            raise FileNotFoundError(name)
        return png_bytes(*ASSET_SPECS[name])

    store = AssetStore(reader=reader)
    store.reads = reads  # type: ignore[attr-defined]
    return store


class FakeSink:
    """Records everything a registry pushes to one button."""

    def __init__(self, settings: dict | None = None) -> None:
        self.images: list[Image.Image] = []
        self.states: list[int] = []
        self.titles: list[str] = []
        self.saved: list[dict] = []
        self.settings = dict(settings or {})
        self.fail = False

    async def set_image(self, image: Image.Image) -> None:
        if self.fail:
            raise RuntimeError("sink offline")
        self.images.append(image)

    async def set_state(self, state: int) -> None:
        if self.fail:
            raise RuntimeError("sink offline")
        self.states.append(state)

    async def set_title(self, title: str) -> None:
        self.titles.append(title)

    async def get_settings(self) -> dict:
        return dict(self.settings)

    async def set_settings(self, settings: dict) -> None:
        self.settings = dict(settings)
        self.saved.append(dict(settings))


class FakeKeyboard:
    def __init__(self) -> None:
        self.sent: list[list[str]] = []

    async def send_key_combo(self, keys) -> None:
        self.sent.append(list(keys))


@pytest.fixture
def make_sink():
    return FakeSink


@pytest.fixture
def keyboard() -> FakeKeyboard:
    return FakeKeyboard()
