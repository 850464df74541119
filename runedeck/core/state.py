"""Immutable snapshot of the game status pushed (or polled) from RuneLite."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HitpointsStatus(str, Enum):
    NONE = "none"
    POISONED = "poisoned"
    VENOMED = "venomed"
    DISEASED = "diseased"
    POISONED_DISEASED = "poisoned_diseased"
    VENOMED_DISEASED = "venomed_diseased"

    @classmethod
    def parse(cls, raw: str | None) -> HitpointsStatus:
        """Map a wire value to a status; unknown or missing values mean NONE.

        Combined statuses may be spelled ``poisoned_diseased`` or
        ``poisoned+diseased``.
        """
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower().replace("+", "_"))
        except ValueError:
            return cls.NONE


@dataclass(frozen=True, slots=True)
class Player:
    name: str = ""
    world: int = 0


@dataclass(frozen=True, slots=True)
class Points:
    """A current/max pair (prayer points)."""

    current: int = 0
    max: int = 1

    @property
    def fraction(self) -> float:
        if self.max <= 0:
            return 0.0
        return max(0.0, min(1.0, self.current / self.max))


@dataclass(frozen=True, slots=True)
class Hitpoints(Points):
    status: HitpointsStatus = HitpointsStatus.NONE


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    """Latest displayable game status. Replaced wholesale, never mutated.

    ``player`` being ``None`` means the client is not logged in; renderers treat
    that as the reset signal and ignore any numeric fields left behind.
    """

    player: Player | None = None
    hp: Hitpoints | None = None
    prayer_points: Points | None = None
    run_energy: int | None = None
    run_enabled: bool | None = None
    special_attack: int | None = None
    special_attack_enabled: bool | None = None
    special_attack_available: bool | None = None
    active_prayers: frozenset[str] | None = None
    active_tab: str | None = None

    @property
    def logged_in(self) -> bool:
        return self.player is not None

    def prayer_active(self, prayer_id: str) -> bool:
        if not self.logged_in or not self.active_prayers:
            return False
        return prayer_id.lower() in self.active_prayers

    def to_dict(self) -> dict:
        """Wire-shaped dict (the layout RuneLite posts)."""
        d: dict = {}
        if self.player is not None:
            d["player"] = {"name": self.player.name, "world": self.player.world}
        stats: dict = {}
        if self.hp is not None:
            hp = {"current": self.hp.current, "max": self.hp.max}
            if self.hp.status is not HitpointsStatus.NONE:
                hp["status"] = self.hp.status.value
            stats["hp"] = hp
        if self.prayer_points is not None:
            stats["prayer"] = {
                "current": self.prayer_points.current,
                "max": self.prayer_points.max,
            }
        for key, value in (
            ("runEnergy", self.run_energy),
            ("runEnabled", self.run_enabled),
            ("specialAttack", self.special_attack),
            ("specialAttackEnabled", self.special_attack_enabled),
            ("specialAttackAvailable", self.special_attack_available),
        ):
            if value is not None:
                stats[key] = value
        if stats:
            d["stats"] = stats
        if self.active_prayers is not None:
            d["activePrayers"] = sorted(self.active_prayers)
        if self.active_tab is not None:
            d["activeTab"] = self.active_tab
        return d


LOGGED_OUT = StateSnapshot()
