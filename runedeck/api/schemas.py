"""Pydantic models for the JSON status RuneLite posts (or serves)."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from runedeck.core.state import Hitpoints, HitpointsStatus, Player, Points, StateSnapshot

RUN_ENERGY_MAX = 10000
SPECIAL_ATTACK_MAX = 100

# Stat keys older plugin builds sent at the top level instead of under "stats".
_FLAT_STAT_KEYS = (
    "hp",
    "prayer",
    "prayerPoints",
    "runEnergy",
    "runEnabled",
    "specialAttack",
    "specialAttackEnabled",
    "specialAttackAvailable",
)


def _clamp(value: int | None, lo: int, hi: int) -> int | None:
    if value is None:
        return None
    return max(lo, min(hi, value))


class PlayerModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    world: int = 0


class PointsModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: int = 0
    max: int = 1

    @field_validator("current")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator("max")
    @classmethod
    def _positive(cls, value: int) -> int:
        return max(1, value)

    def to_points(self) -> Points:
        return Points(current=self.current, max=self.max)


class HitpointsModel(PointsModel):
    status: str | None = None

    def to_hitpoints(self) -> Hitpoints:
        return Hitpoints(
            current=self.current,
            max=self.max,
            status=HitpointsStatus.parse(self.status),
        )


class StatsModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    hp: HitpointsModel | None = None
    prayer: PointsModel | None = Field(
        default=None, validation_alias=AliasChoices("prayer", "prayerPoints")
    )
    run_energy: int | None = Field(default=None, alias="runEnergy")
    run_enabled: bool | None = Field(default=None, alias="runEnabled")
    special_attack: int | None = Field(default=None, alias="specialAttack")
    special_attack_enabled: bool | None = Field(default=None, alias="specialAttackEnabled")
    special_attack_available: bool | None = Field(default=None, alias="specialAttackAvailable")

    @field_validator("run_energy")
    @classmethod
    def _clamp_run(cls, value: int | None) -> int | None:
        return _clamp(value, 0, RUN_ENERGY_MAX)

    @field_validator("special_attack")
    @classmethod
    def _clamp_special(cls, value: int | None) -> int | None:
        return _clamp(value, 0, SPECIAL_ATTACK_MAX)


class StatePayload(BaseModel):
    """Inbound status body. Every field is optional; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    player: PlayerModel | None = None
    stats: StatsModel | None = None
    active_prayers: list[str] | None = Field(default=None, alias="activePrayers")
    prayers: dict[str, bool] | None = None
    active_tab: str | None = Field(default=None, alias="activeTab")

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_stats(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        flat = {k: data[k] for k in _FLAT_STAT_KEYS if k in data}
        if not flat:
            return data
        stats = data.get("stats")
        if stats is None:
            stats = {}
        elif not isinstance(stats, dict):
            return data
        out = {k: v for k, v in data.items() if k not in flat}
        out["stats"] = {**flat, **stats}
        return out

    def to_snapshot(self) -> StateSnapshot:
        stats = self.stats or StatsModel()
        active: set[str] | None = None
        if self.active_prayers is not None:
            active = {p.strip().lower() for p in self.active_prayers if p.strip()}
        if self.prayers is not None:
            active = (active or set()) | {
                name.strip().lower() for name, on in self.prayers.items() if on
            }
        tab = self.active_tab.strip() if self.active_tab is not None else None

        return StateSnapshot(
            player=Player(self.player.name, self.player.world) if self.player else None,
            hp=stats.hp.to_hitpoints() if stats.hp else None,
            prayer_points=stats.prayer.to_points() if stats.prayer else None,
            run_energy=stats.run_energy,
            run_enabled=stats.run_enabled,
            special_attack=stats.special_attack,
            special_attack_enabled=stats.special_attack_enabled,
            special_attack_available=stats.special_attack_available,
            active_prayers=frozenset(active) if active is not None else None,
            active_tab=tab or None,
        )


def parse_state(raw: Any) -> StateSnapshot:
    """Validate a decoded JSON body; raises pydantic.ValidationError."""
    return StatePayload.model_validate(raw).to_snapshot()
