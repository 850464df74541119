"""Orb meters: hitpoints, prayer, run energy and special attack.

Each orb is a black square with a fill (colour or image) whose level follows a
percentage, an optional darkening gradient, a frame overlay PNG and an
optional outlined number.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from PIL import Image

from runedeck.actions.base import ButtonKind, asset_setting
from runedeck.core.state import HitpointsStatus, StateSnapshot
from runedeck.render.canvas import (
    DEFAULT_TEXT_POSITION,
    TEXT_POSITIONS,
    WHITE,
    composite,
    draw_label,
    fill_bottom,
    fill_height,
    mask_height,
    mask_top,
    new_canvas,
    orb_gradient,
    parse_hex,
    percent_color,
)

RGB = tuple[int, int, int]

HP_NORMAL = parse_hex("#B00905")
HP_POISONED = parse_hex("#19DA00")
HP_VENOMED = parse_hex("#24573D")
HP_DISEASED = parse_hex("#C5BA73")

# Combined statuses split the orb: left half first colour, right half second.
STATUS_COLORS: dict[HitpointsStatus, tuple[RGB, ...]] = {
    HitpointsStatus.NONE: (HP_NORMAL,),
    HitpointsStatus.POISONED: (HP_POISONED,),
    HitpointsStatus.VENOMED: (HP_VENOMED,),
    HitpointsStatus.DISEASED: (HP_DISEASED,),
    HitpointsStatus.POISONED_DISEASED: (HP_POISONED, HP_DISEASED),
    HitpointsStatus.VENOMED_DISEASED: (HP_VENOMED, HP_DISEASED),
}

RUN_ENABLED = parse_hex("#CEA801")
RUN_DISABLED = parse_hex("#ACADA3")
RUN_ENERGY_MAX = 10000

SPECIAL_MAX = 100


def setting_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no", "off"}
    return bool(value)


@dataclass(frozen=True, slots=True)
class NumberLabel:
    text: str
    color: RGB = WHITE
    position: str = DEFAULT_TEXT_POSITION


class MeterKind(ButtonKind):
    """Shared settings handling for the four orbs."""

    def defaults(self, settings: dict[str, Any]) -> dict[str, Any]:
        return {
            "showNumbers": True,
            "coloredNumbers": False,
            "textPosition": DEFAULT_TEXT_POSITION,
        }

    def label(self, value: int, pct: float, settings: dict[str, Any]) -> NumberLabel | None:
        if not setting_bool(settings.get("showNumbers"), True):
            return None
        if setting_bool(settings.get("coloredNumbers"), False):
            color = percent_color(pct)
        else:
            color = WHITE
        position = settings.get("textPosition")
        if not isinstance(position, str) or position not in TEXT_POSITIONS:
            position = DEFAULT_TEXT_POSITION
        return NumberLabel(str(value), color, position)

    @staticmethod
    def draw_number(canvas: Image.Image, label: NumberLabel | None) -> None:
        if label is not None:
            draw_label(canvas, label.text, label.position, label.color)


# ── Hitpoints ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class HealthView:
    fill: int
    colors: tuple[RGB, ...]
    label: NumberLabel | None
    mask_image: str = ""


class HealthMeter(MeterKind):
    """Hitpoints orb. ``maskImage`` names an extra asset drawn over the frame."""

    name = "health"
    frame_asset = "health-meter/Hitpoints_orb.png"

    def defaults(self, settings: dict[str, Any]) -> dict[str, Any]:
        return {**super().defaults(settings), "maskImage": ""}

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> HealthView:
        hp = snapshot.hp if snapshot.logged_in else None
        if hp is None:
            current, pct, status = 0, 0.0, HitpointsStatus.NONE
        else:
            current, pct, status = max(0, hp.current), hp.fraction, hp.status
        return HealthView(
            fill=fill_height(self.size, pct),
            colors=STATUS_COLORS[status],
            label=self.label(current, pct, settings),
            mask_image=asset_setting(settings.get("maskImage")),
        )

    def draw(self, view: HealthView) -> Image.Image:
        full = (self.size, self.size)
        canvas = new_canvas(self.size)
        fill_bottom(canvas, view.fill, view.colors)
        composite(canvas, orb_gradient(self.size))
        composite(canvas, self.assets.scaled(self.frame_asset, full))
        if view.mask_image:
            composite(canvas, self.assets.scaled(view.mask_image, full))
        self.draw_number(canvas, view.label)
        return canvas


# ── Prayer ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PrayerView:
    mask: int
    quick_prayer: bool
    label: NumberLabel | None


class PrayerMeter(MeterKind):
    name = "prayer"
    # File names match the shipped asset pack, including its spelling.
    background_assets = {
        True: "prayer-meter/Prayer_orb_enabled_backgroud.png",
        False: "prayer-meter/Prayer_orb_disabled_backgroud.png",
    }
    overlay_assets = {
        True: "prayer-meter/Prayer_orb_enabled.png",
        False: "prayer-meter/Prayer_orb_disabled.png",
    }

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> PrayerView:
        points = snapshot.prayer_points if snapshot.logged_in else None
        if points is None:
            current, pct = 0, 0.0
        else:
            current, pct = max(0, points.current), points.fraction
        quick = snapshot.logged_in and bool(snapshot.active_prayers)
        return PrayerView(
            mask=mask_height(self.size, pct),
            quick_prayer=quick,
            label=self.label(current, pct, settings),
        )

    def draw(self, view: PrayerView) -> Image.Image:
        full = (self.size, self.size)
        canvas = new_canvas(self.size)
        composite(canvas, self.assets.scaled(self.background_assets[view.quick_prayer], full))
        mask_top(canvas, view.mask)
        composite(canvas, self.assets.scaled(self.overlay_assets[view.quick_prayer], full))
        self.draw_number(canvas, view.label)
        return canvas


# ── Run energy ───────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RunView:
    fill: int
    enabled: bool
    label: NumberLabel | None


class RunMeter(MeterKind):
    name = "run"
    overlay_assets = {
        True: "run/Run_energy_orb_enabled.png",
        False: "run/Run_energy_orb_disabled.png",
    }

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> RunView:
        if snapshot.logged_in:
            energy = max(0, min(RUN_ENERGY_MAX, snapshot.run_energy or 0))
            enabled = bool(snapshot.run_enabled)
        else:
            energy, enabled = 0, False
        pct = energy / RUN_ENERGY_MAX
        return RunView(
            fill=fill_height(self.size, pct),
            enabled=enabled,
            label=self.label(energy // 100, pct, settings),
        )

    def draw(self, view: RunView) -> Image.Image:
        canvas = new_canvas(self.size)
        fill_bottom(canvas, view.fill, (RUN_ENABLED if view.enabled else RUN_DISABLED,))
        composite(canvas, orb_gradient(self.size))
        composite(
            canvas,
            self.assets.scaled(self.overlay_assets[view.enabled], (self.size, self.size)),
        )
        self.draw_number(canvas, view.label)
        return canvas


# ── Special attack ───────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SpecialAttackView:
    mask: int
    variant: str
    label: NumberLabel | None


class SpecialAttackMeter(MeterKind):
    name = "special_attack"
    orb_asset = "special-attack-meter/special_attack_orb.png"
    fill_assets = {
        "enabled": "special-attack-meter/special_attack_orb_enable_fill.png",
        "available": "special-attack-meter/special_attack_orb_available_fill.png",
        "unavailable": "special-attack-meter/special_attack_orb_unavailable_fill.png",
    }

    def view(self, snapshot: StateSnapshot, settings: dict[str, Any]) -> SpecialAttackView:
        if snapshot.logged_in:
            energy = max(0, min(SPECIAL_MAX, snapshot.special_attack or 0))
            if snapshot.special_attack_enabled:
                variant = "enabled"
            elif snapshot.special_attack_available:
                variant = "available"
            else:
                variant = "unavailable"
        else:
            energy, variant = 0, "unavailable"
        pct = energy / SPECIAL_MAX
        return SpecialAttackView(
            mask=mask_height(self.size, pct),
            variant=variant,
            label=self.label(energy, pct, settings),
        )

    def draw(self, view: SpecialAttackView) -> Image.Image:
        full = (self.size, self.size)
        canvas = new_canvas(self.size)
        composite(canvas, self.assets.scaled(self.fill_assets[view.variant], full))
        mask_top(canvas, view.mask)
        composite(canvas, self.assets.scaled(self.orb_asset, full))
        self.draw_number(canvas, view.label)
        return canvas
