"""Attack bonus for a mounted weapon.

Melee weapons are the creature's own body (bite, gore, tail), so they use
the base's Strength modifier. Ranged weapons use the Dexterity modifier of
the crew group manning the point. The group's proficiency bonus is added
when the point is flagged proficient.
"""

from __future__ import annotations

import math

from mv_loadout.engine.mounting_points import resolve_crew_group
from mv_loadout.models.catalog import CrewGroup, MountingPoint, Weapon
from mv_loadout.models.derived_stats import DerivedBase
from mv_loadout.models.loadout import LoadoutConfiguration
from mv_loadout.models.values import as_int, as_number


def ability_modifier(score) -> int:
    """floor((score - 10) / 2); a missing or non-finite score gives 0."""
    value = as_number(score, None)
    if value is None:
        return 0
    return math.floor((value - 10) / 2)


def attack_ability(weapon: Weapon) -> str:
    return "str" if weapon.is_melee else "dex"


def mounted_weapon_attack_bonus(
    point: MountingPoint,
    weapon: Weapon,
    config: LoadoutConfiguration,
    derived: DerivedBase,
    groups: tuple[CrewGroup, ...],
) -> int:
    group = resolve_crew_group(point, groups)
    crew = config.crew(group.id)
    if weapon.is_melee:
        ability = ability_modifier(derived.strength)
    else:
        ability = as_int(crew.dex_mod)
    proficiency = as_int(crew.prof_bonus) if config.is_proficient(point.id) else 0
    return ability + proficiency
