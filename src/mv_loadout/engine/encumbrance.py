"""Carried weight, capacity, and the encumbrance tier.

This is the only place encumbrance is computed. The stat block and the
export document both read its result, so displayed and exported agility
and speed cannot drift apart.

Tiers are cumulative:
  payload > 0.5 x capacity  -> Encumbered, agility = ceil(agility / 2)
  payload > capacity        -> Heavily Encumbered, primary max speed - 20 (min 0)
  payload > 1.5 x capacity  -> Overloaded, no further penalty
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.models.catalog import Saddle, Weapon
from mv_loadout.models.constants import MOVEMENT_NONE, EncumbranceTier
from mv_loadout.models.derived_stats import DerivedBase
from mv_loadout.models.loadout import MountSelection
from mv_loadout.models.values import as_number


@dataclass(frozen=True, slots=True)
class EncumbranceResult:
    payload: float
    capacity: float
    agility: float
    movement_mode: str
    standard_speed: float
    max_speed: float
    tier: EncumbranceTier

    @property
    def state(self) -> str:
        return self.tier.label

    @property
    def agility_halved(self) -> bool:
        return self.tier >= EncumbranceTier.ENCUMBERED


def carrying_capacity(derived: DerivedBase, rules: RulesConfig = DEFAULT_RULES) -> float:
    size_mult = rules.size_capacity_mult.get(derived.size, 1)
    carry_mult = as_number(derived.carry_multiplier) or 1
    return as_number(derived.strength) * rules.carry_factor * size_mult * carry_mult


def carried_weight(
    saddle: Saddle | None,
    selections: Mapping[str, MountSelection],
    weapons: Mapping[str, Weapon],
) -> float:
    """Saddle weight plus weapon weight x quantity for every selection."""
    total = as_number(saddle.weight) if saddle is not None else 0
    for selection in selections.values():
        weapon = weapons.get(selection.weapon_id)
        if weapon is None or selection.is_empty:
            continue
        total += as_number(weapon.weight) * selection.qty
    return total


def encumbrance_tier(
    payload: float,
    capacity: float,
    rules: RulesConfig = DEFAULT_RULES,
) -> EncumbranceTier:
    tier = EncumbranceTier.NORMAL
    if payload > capacity * rules.encumbered_ratio:
        tier = EncumbranceTier.ENCUMBERED
    if payload > capacity * rules.heavy_ratio:
        tier = EncumbranceTier.HEAVILY_ENCUMBERED
    if payload > capacity * rules.overloaded_ratio:
        tier = EncumbranceTier.OVERLOADED
    return tier


def derive_encumbrance(
    derived: DerivedBase,
    saddle: Saddle | None,
    selections: Mapping[str, MountSelection],
    weapons: Mapping[str, Weapon],
    rules: RulesConfig = DEFAULT_RULES,
) -> EncumbranceResult:
    payload = carried_weight(saddle, selections, weapons)
    capacity = carrying_capacity(derived, rules)
    tier = encumbrance_tier(payload, capacity, rules)

    agility = as_number(derived.agility)
    if tier >= EncumbranceTier.ENCUMBERED:
        agility = math.ceil(agility / 2)

    primary = derived.primary_movement(rules.movement_priority)
    if primary is None:
        mode, standard, max_speed = MOVEMENT_NONE, 0, 0
    else:
        mode, block = primary
        standard, max_speed = block.standard, block.max
        if tier >= EncumbranceTier.HEAVILY_ENCUMBERED:
            max_speed = max(0, max_speed - rules.heavy_speed_penalty)

    return EncumbranceResult(
        payload=payload,
        capacity=capacity,
        agility=agility,
        movement_mode=mode,
        standard_speed=standard,
        max_speed=max_speed,
        tier=tier,
    )
