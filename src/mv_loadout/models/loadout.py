"""Loadout configuration: the one mutable thing in an editing session.

Holds the user's choices only. Everything shown on a stat block is
derived from it by the engine pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mv_loadout.models.constants import NO_WEAPON


@dataclass(slots=True)
class MountSelection:
    """Weapon chosen for one mounting point."""

    weapon_id: str = NO_WEAPON
    qty: int = 0

    @property
    def is_empty(self) -> bool:
        return self.weapon_id == NO_WEAPON or self.qty <= 0

    def to_dict(self) -> dict[str, Any]:
        return {"weaponId": self.weapon_id, "qty": self.qty}


@dataclass(slots=True)
class CrewStats:
    """Ability modifier and proficiency bonus for one crew group."""

    dex_mod: int = 0
    prof_bonus: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"dexMod": self.dex_mod, "profBonus": self.prof_bonus}


@dataclass(slots=True)
class LoadoutConfiguration:
    """User choices for one base.

    ``mod_ids`` order is application order. Keys of ``mount_selections`` and
    ``proficiencies`` are mounting point ids from the current derived list;
    the pipeline drops keys for points that no longer exist.
    """

    base_id: str | None = None
    saddle_id: str | None = None
    mod_ids: list[str] = field(default_factory=list)
    mount_selections: dict[str, MountSelection] = field(default_factory=dict)
    proficiencies: dict[str, bool] = field(default_factory=dict)
    crew_stats: dict[str, CrewStats] = field(default_factory=dict)

    def selection(self, point_id: str) -> MountSelection:
        return self.mount_selections.get(point_id) or MountSelection()

    def crew(self, group_id: str) -> CrewStats:
        return self.crew_stats.get(group_id) or CrewStats()

    def is_proficient(self, point_id: str) -> bool:
        return bool(self.proficiencies.get(point_id, False))

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseId": self.base_id,
            "saddleId": self.saddle_id,
            "modIds": list(self.mod_ids),
            "mounts": {k: v.to_dict() for k, v in self.mount_selections.items()},
            "proficiencies": dict(self.proficiencies),
            "crewStats": {k: v.to_dict() for k, v in self.crew_stats.items()},
        }
