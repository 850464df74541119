"""Binary icon buttons (prayers, interface tabs) and the world-map shortcut."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from PIL import Image

from runedeck.actions.base import ButtonKind, asset_setting
from runedeck.core.state import StateSnapshot
from runedeck.devices.keyboard import KeyboardSink
from runedeck.render.assets import AssetStore
from runedeck.render.canvas import DEFAULT_SIZE, composite, new_canvas

if TYPE_CHECKING:
    from runedeck.core.registry import ButtonInstance

log = logging.getLogger(__name__)

DEFAULT_PRAYER = "protect_from_melee"

PRAYER_ICONS: dict[str, str] = {
    "thick_skin": "Thick_Skin.png",
    "burst_of_strength": "Burst_of_Strength.png",
    "clarity_of_thought": "Clarity_of_Thought.png",
    "sharp_eye": "Sharp_Eye.png",
    "mystic_will": "Mystic_Will.png",
    "rock_skin": "Rock_Skin.png",
    "superhuman_strength": "Superhuman_Strength.png",
    "improved_reflexes": "Improved_Reflexes.png",
    "rapid_restore": "Rapid_Restore.png",
    "rapid_heal": "Rapid_Heal.png",
    "protect_item": "Protect_Item.png",
    "hawk_eye": "Hawk_Eye.png",
    "mystic_lore": "Mystic_Lore.png",
    "steel_skin": "Steel_Skin.png",
    "ultimate_strength": "Ultimate_Strength.png",
    "incredible_reflexes": "Incredible_Reflexes.png",
    "protect_from_magic": "Protect_from_Magic.png",
    "protect_from_missiles": "Protect_from_Missiles.png",
    "protect_from_melee": "Protect_from_Melee.png",
    "eagle_eye": "Eagle_Eye.png",
    "mystic_might": "Mystic_Might.png",
    "retribution": "Retribution.png",
    "redemption": "Redemption.png",
    "smite": "Smite.png",
    "preserve": "Preserve.png",
    "chivalry": "Chivalry.png",
    "deadeye": "Deadeye.png",
    "mystic_vigour": "Mystic_Vigour.png",
    "piety": "Piety.png",
    "rigour": "Rigour.png",
    "augury": "Augury.png",
}

DEFAULT_TAB = "inventory"

# Default OSRS interface hotkeys.
TAB_KEYS: dict[str, str] = {
    "combat": "f1",
    "skills": "f2",
    "quests": "f3",
    "inventory": "escape",
    "equipment": "f4",
    "prayer": "f5",
    "magic": "f6",
    "grouping": "f7",
    "account": "f8",
    "friends": "f9",
    "settings": "f10",
    "emotes": "f11",
    "music": "f12",
}
FALLBACK_TAB_KEY = "f1"

MAP_KEYS = ("ctrl", "m")


def default_tab_key(tab_id: str) -> str:
    return TAB_KEYS.get(tab_id.strip().lower(), FALLBACK_TAB_KEY)


def _scaled_box(size: int, inset: int) -> tuple[int, int, int]:
    """(x, y, edge) of a centred square leaving *inset* px (at 144) per side."""
    offset = round(inset * size / DEFAULT_SIZE)
    return offset, offset, size - 2 * offset


# ── Prayer icon ──────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PrayerButtonView:
    prayer_id: str
    active: bool


class PrayerButton(ButtonKind):
    name = "prayer_button"
    deactivated_asset = "prayer-button/Deactivated_prayer.png"
    activated_asset = "prayer-button/Activated_prayer.png"

    def defaults(self, settings: dict[str, Any]) -> dict[str, Any]:
        # "prayerName" is what older property inspectors saved.
        return {"prayerId": settings.get("prayerName") or DEFAULT_PRAYER}

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> PrayerButtonView:
        prayer_id = str(settings.get("prayerId") or DEFAULT_PRAYER).strip().lower()
        return PrayerButtonView(prayer_id, snapshot.prayer_active(prayer_id))

    def icon_asset(self, prayer_id: str) -> str:
        return "prayer-button/" + PRAYER_ICONS.get(prayer_id, PRAYER_ICONS[DEFAULT_PRAYER])

    def draw(self, view: PrayerButtonView) -> Image.Image:
        full = (self.size, self.size)
        canvas = new_canvas(self.size)
        composite(canvas, self.assets.scaled(self.deactivated_asset, full))
        if view.active:
            composite(canvas, self.assets.scaled(self.activated_asset, full))
        # 30x30 source icons blown up to 120x120, pixelated.
        x, y, edge = _scaled_box(self.size, 12)
        composite(canvas, self.assets.scaled(self.icon_asset(view.prayer_id), (edge, edge)), (x, y))
        return canvas


# ── Interface tab ────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TabView:
    tab_id: str
    active: bool
    background: str


class TabButton(ButtonKind):
    name = "tab"
    active_asset = "tab-button/Tab_active.png"
    inactive_asset = "tab-button/Tab_inactive.png"
    icon_inset = 24

    def __init__(
        self,
        assets: AssetStore,
        keyboard: KeyboardSink,
        *,
        size: int = DEFAULT_SIZE,
    ) -> None:
        super().__init__(assets, size=size)
        self._keyboard = keyboard

    def defaults(self, settings: dict[str, Any]) -> dict[str, Any]:
        tab_id = str(settings.get("tabId") or settings.get("tabName") or DEFAULT_TAB)
        return {"tabId": tab_id, "keyToSend": default_tab_key(tab_id)}

    def title(self, settings: dict[str, Any]) -> str | None:
        tab_id = str(settings.get("tabId") or DEFAULT_TAB)
        return tab_id[:1].upper() + tab_id[1:]

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> TabView:
        tab_id = str(settings.get("tabId") or DEFAULT_TAB).strip().lower()
        active_tab = snapshot.active_tab if snapshot.logged_in else None
        active = bool(active_tab) and active_tab.strip().lower() == tab_id
        if active:
            background = asset_setting(settings.get("activeImage")) or self.active_asset
        else:
            background = asset_setting(settings.get("inactiveImage")) or self.inactive_asset
        return TabView(tab_id, active, background)

    def discrete_state(self, view: TabView) -> int:
        return 1 if view.active else 0

    def icon_asset(self, tab_id: str) -> str:
        return f"tab-button/{tab_id}.png"

    def draw(self, view: TabView) -> Image.Image:
        canvas = new_canvas(self.size)
        composite(canvas, self.assets.scaled(view.background, (self.size, self.size)))

        icon = self.assets.image(self.icon_asset(view.tab_id))
        if icon is not None:
            _, _, box = _scaled_box(self.size, self.icon_inset)
            factor = min(box / icon.width, box / icon.height)
            if factor >= 1:
                factor = int(factor)
            w = max(1, round(icon.width * factor))
            h = max(1, round(icon.height * factor))
            scaled = self.assets.scaled(self.icon_asset(view.tab_id), (w, h))
            composite(canvas, scaled, ((self.size - w) // 2, (self.size - h) // 2))
        return canvas

    async def on_pressed(self, instance: ButtonInstance) -> None:
        key = str(instance.settings.get("keyToSend") or FALLBACK_TAB_KEY)
        log.debug("tab[%s]: sending %s", instance.id, key)
        await self._keyboard.send_key_combo([key])


# ── World map ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MapView:
    pressed: bool = False


class MapButton(ButtonKind):
    """Static orb; highlighted while held, sends Ctrl+M on release."""

    name = "map"
    uses_state = False
    normal_asset = "map-button/map_orb.png"
    highlight_asset = "map-button/map_orb_highlight.png"

    def __init__(
        self,
        assets: AssetStore,
        keyboard: KeyboardSink,
        *,
        size: int = DEFAULT_SIZE,
        keys: tuple[str, ...] = MAP_KEYS,
    ) -> None:
        super().__init__(assets, size=size)
        self._keyboard = keyboard
        self._keys = keys

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> MapView:
        return MapView(pressed=False)

    def draw(self, view: MapView) -> Image.Image:
        canvas = new_canvas(self.size)
        asset = self.highlight_asset if view.pressed else self.normal_asset
        composite(canvas, self.assets.scaled(asset, (self.size, self.size)))
        return canvas

    async def on_pressed(self, instance: ButtonInstance) -> None:
        async with instance.lock:
            await instance.sink.set_image(self.draw(MapView(pressed=True)))

    async def on_released(self, instance: ButtonInstance) -> None:
        async with instance.lock:
            await instance.sink.set_image(self.draw(MapView(pressed=False)))
        await self._keyboard.send_key_combo(list(self._keys))
