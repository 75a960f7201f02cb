"""Derived base: a base's stat block after its legal mods are folded in.

Mods are applied in configuration order through a fixed list of effect
steps. Every step runs over all legal mods before the next step starts:

  1. trait additions (deduplicated, order preserving)
  2. flat stat bonuses (summed)
  3. movement bonuses (summed per mode; a new mode starts at 0/0)
  4. ``set`` overrides (last write wins)

Steps 1-3 commute, so additive totals do not depend on mod order. Step 4
runs last, so an override beats every additive effect no matter which mod
declared it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from mv_loadout.models.actions import Action
from mv_loadout.models.catalog import Base, CrewGroup, Mod, ModEffects, MovementBlock, Saddle
from mv_loadout.models.constants import MOVEMENT_PRIORITY, canonical_mode
from mv_loadout.models.values import as_number, as_str, as_str_list


logger = logging.getLogger(__name__)

# Data-file stat names -> DerivedBase attribute. Numeric only.
NUMERIC_FIELDS: dict[str, str] = {
    "strength": "strength",
    "str": "strength",
    "dex": "dex",
    "con": "con",
    "agility": "agility",
    "baseAC": "base_ac",
    "ac": "base_ac",
    "baseHP": "base_hp",
    "hp": "base_hp",
    "carryMultiplier": "carry_multiplier",
    "points": "points",
}

TEXT_FIELDS: dict[str, str] = {
    "name": "name",
    "size": "size",
    "climbRate": "climb_rate",
    "climb_rate": "climb_rate",
    "acceleration": "acceleration",
}


@dataclass(slots=True)
class DerivedBase:
    """Mutable working copy of a Base; never aliases catalog containers."""

    id: str
    name: str
    kind: str
    size: str
    tags: set[str]
    strength: float
    dex: float
    con: float
    agility: float
    base_ac: float
    base_hp: float
    carry_multiplier: float
    points: float
    movement: dict[str, MovementBlock]
    traits: list[str]
    actions: tuple[Action, ...] = ()
    bonus_actions: tuple[Action, ...] = ()
    reactions: tuple[Action, ...] = ()
    legendary_actions: tuple[Action, ...] = ()
    weapon_allowlist: frozenset[str] | None = None
    crew_groups: tuple[CrewGroup, ...] = ()
    climb_rate: str = ""
    acceleration: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    applied_mod_ids: list[str] = field(default_factory=list)
    skipped_mod_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_base(cls, base: Base) -> DerivedBase:
        """Structural clone: fresh containers, shared frozen leaves."""
        return cls(
            id=base.id,
            name=base.name,
            kind=base.kind,
            size=base.size,
            tags=set(base.tags),
            strength=base.strength,
            dex=base.dex,
            con=base.con,
            agility=base.agility,
            base_ac=base.base_ac,
            base_hp=base.base_hp,
            carry_multiplier=base.carry_multiplier,
            points=base.points,
            movement=dict(base.movement),
            traits=list(base.traits),
            actions=base.actions,
            bonus_actions=base.bonus_actions,
            reactions=base.reactions,
            legendary_actions=base.legendary_actions,
            weapon_allowlist=base.weapon_allowlist,
            crew_groups=base.crew_groups,
            climb_rate=base.climb_rate,
            acceleration=base.acceleration,
        )

    def primary_movement(self, priority: Iterable[str] = MOVEMENT_PRIORITY) -> tuple[str, MovementBlock] | None:
        for mode in priority:
            block = self.movement.get(mode)
            if block is not None:
                return mode, block
        return None


# --- Effect steps ------------------------------------------------------------


def add_traits(derived: DerivedBase, effects: ModEffects) -> None:
    for trait_id in effects.add_traits:
        if trait_id not in derived.traits:
            derived.traits.append(trait_id)


def apply_stat_bonuses(derived: DerivedBase, effects: ModEffects) -> None:
    for stat, delta in effects.stat_bonuses.items():
        delta = as_number(delta)
        attr = NUMERIC_FIELDS.get(stat)
        if attr is not None:
            setattr(derived, attr, getattr(derived, attr) + delta)
        else:
            derived.extra[stat] = as_number(derived.extra.get(stat)) + delta


def apply_movement_bonuses(derived: DerivedBase, effects: ModEffects) -> None:
    for mode, bonus in effects.movement_bonuses.items():
        current = derived.movement.get(mode, MovementBlock(0, 0))
        derived.movement[mode] = current.plus(bonus)


def _override_movement(derived: DerivedBase, mode: str, value: Any) -> None:
    if value is None:
        derived.movement.pop(mode, None)
        return
    block = MovementBlock.from_raw(value)
    if block is not None:
        derived.movement[mode] = block


def apply_overrides(derived: DerivedBase, effects: ModEffects) -> None:
    for key, value in effects.overrides.items():
        if key in NUMERIC_FIELDS:
            num = as_number(value, None)
            if num is not None:
                setattr(derived, NUMERIC_FIELDS[key], num)
        elif key in TEXT_FIELDS:
            setattr(derived, TEXT_FIELDS[key], as_str(value))
        elif key == "weaponAllowlist":
            ids = as_str_list(value)
            derived.weapon_allowlist = frozenset(ids) if ids else None
        elif key == "tags":
            derived.tags = set(as_str_list(value))
        elif key == "movement" and isinstance(value, dict):
            derived.movement = {}
            for mode, block in value.items():
                _override_movement(derived, canonical_mode(mode), block)
        elif canonical_mode(key) in MOVEMENT_PRIORITY or key in derived.movement:
            _override_movement(derived, canonical_mode(key), value)
        else:
            derived.extra[key] = value


EffectStep = Callable[[DerivedBase, ModEffects], None]

EFFECT_STEPS: tuple[EffectStep, ...] = (
    add_traits,
    apply_stat_bonuses,
    apply_movement_bonuses,
    apply_overrides,
)


def derive_base(
    base: Base,
    mods: Iterable[Mod],
    saddle: Saddle | None = None,
) -> DerivedBase:
    """Fold *mods* (in application order) onto a copy of *base*.

    A mod whose requirements no longer match *base*/*saddle* is skipped
    silently and recorded in ``skipped_mod_ids``.
    """
    derived = DerivedBase.from_base(base)
    legal: list[Mod] = []
    for mod in mods:
        if mod.requires.matches(base, saddle):
            legal.append(mod)
            derived.applied_mod_ids.append(mod.id)
        else:
            derived.skipped_mod_ids.append(mod.id)
            logger.debug("Skipping mod %s: not legal for %s", mod.id, base.id)

    for step in EFFECT_STEPS:
        for mod in legal:
            step(derived, mod.effects)
    derived.movement = _ordered_movement(derived.movement)
    return derived


def _ordered_movement(movement: dict[str, MovementBlock]) -> dict[str, MovementBlock]:
    ordered = {m: movement[m] for m in MOVEMENT_PRIORITY if m in movement}
    for mode in sorted(movement):
        ordered.setdefault(mode, movement[mode])
    return ordered
