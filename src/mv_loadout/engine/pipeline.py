"""One full derivation pass over a loadout configuration.

Order: compatibility -> mounting points -> stat deriver -> weapon fit
(re-validating selections) -> encumbrance -> attack bonuses.

The pass is pure and idempotent. It never raises for stale or illegal
selections: it heals them. The healed configuration comes back on the
result so the owner can replace its value with it.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from mv_loadout.engine.attack_bonus import attack_ability, mounted_weapon_attack_bonus
from mv_loadout.engine.compatibility import is_saddle_legal
from mv_loadout.engine.encumbrance import EncumbranceResult, derive_encumbrance
from mv_loadout.engine.mounting_points import crew_groups, derived_mounting_points, resolve_crew_group
from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.engine.weapon_fit import clamp_quantity, is_weapon_allowed, max_quantity
from mv_loadout.errors import UnknownEntityError
from mv_loadout.models.catalog import Base, Catalog, CrewGroup, Mod, MountingPoint, Saddle, Weapon
from mv_loadout.models.derived_stats import DerivedBase, derive_base
from mv_loadout.models.loadout import CrewStats, LoadoutConfiguration, MountSelection
from mv_loadout.models.values import as_number


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MountedWeapon:
    """A non-empty, legal mounting point selection with its attack bonus."""

    point: MountingPoint
    weapon: Weapon
    qty: int
    crew_group: CrewGroup
    proficient: bool
    ability: str
    attack_bonus: int


@dataclass(frozen=True, slots=True)
class LoadoutDerivation:
    """Everything a stat block or export document needs, computed once."""

    config: LoadoutConfiguration
    base: Base
    saddle: Saddle | None
    applied_mods: tuple[Mod, ...]
    derived: DerivedBase
    crew_groups: tuple[CrewGroup, ...]
    mounting_points: tuple[MountingPoint, ...]
    mounted_weapons: tuple[MountedWeapon, ...]
    encumbrance: EncumbranceResult
    total_points: float
    healed_point_ids: tuple[str, ...] = ()


def _heal_selection(
    point: MountingPoint,
    selection: MountSelection | None,
    catalog: Catalog,
    base_allowlist: frozenset[str] | None,
    rules: RulesConfig,
) -> tuple[MountSelection, bool]:
    """Return a legal selection for *point*, and whether it had to reset."""
    if selection is None or selection.is_empty:
        return MountSelection(), False
    weapon = catalog.weapon(selection.weapon_id)
    if weapon is None or not is_weapon_allowed(point, weapon, base_allowlist, rules.size_units):
        return MountSelection(), True
    qty = clamp_quantity(selection.qty, max_quantity(point, weapon, rules.size_units))
    return MountSelection(weapon_id=weapon.id, qty=qty), False


def heal_configuration(
    config: LoadoutConfiguration,
    points: list[MountingPoint],
    groups: tuple[CrewGroup, ...],
    catalog: Catalog,
    base_allowlist: frozenset[str] | None,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[LoadoutConfiguration, list[str]]:
    """Copy of *config* whose selections match the current point list.

    Points that vanished are dropped, illegal selections reset to empty
    and not proficient, and every current point and crew group gets an
    entry.
    """
    healed = copy.deepcopy(config)
    selections: dict[str, MountSelection] = {}
    proficiencies: dict[str, bool] = {}
    reset: list[str] = []
    for point in points:
        selection, was_reset = _heal_selection(
            point, config.mount_selections.get(point.id), catalog, base_allowlist, rules
        )
        selections[point.id] = selection
        proficiencies[point.id] = False if was_reset else config.is_proficient(point.id)
        if was_reset:
            reset.append(point.id)
            logger.debug("Reset illegal selection on mounting point %s", point.id)

    dropped = set(config.mount_selections) - set(selections)
    if dropped:
        logger.debug("Dropped selections for vanished mounting points: %s", sorted(dropped))

    healed.mount_selections = selections
    healed.proficiencies = proficiencies
    for group in groups:
        healed.crew_stats.setdefault(group.id, CrewStats())
    return healed, reset


def derive_loadout(
    config: LoadoutConfiguration,
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutDerivation:
    base = catalog.base(config.base_id)
    if base is None:
        raise UnknownEntityError(f"Unknown base: {config.base_id!r}")

    saddle = catalog.saddle(config.saddle_id) if base.is_mount else None
    if saddle is not None and not is_saddle_legal(base, saddle, catalog, rules):
        logger.debug("Saddle %s no longer fits %s", saddle.id, base.id)
        saddle = None

    mods = [m for m in map(catalog.mod, dict.fromkeys(config.mod_ids)) if m is not None]
    derived = derive_base(base, mods, saddle)
    applied = tuple(m for m in mods if m.id in derived.applied_mod_ids)

    groups = crew_groups(base, saddle, rules)
    points = derived_mounting_points(base, saddle, applied)

    healed, reset = heal_configuration(
        config, points, groups, catalog, derived.weapon_allowlist, rules
    )
    healed.saddle_id = saddle.id if saddle is not None else None

    encumbrance = derive_encumbrance(
        derived, saddle, healed.mount_selections, catalog.weapons, rules
    )

    mounted: list[MountedWeapon] = []
    for point in points:
        selection = healed.mount_selections[point.id]
        if selection.is_empty:
            continue
        weapon = catalog.weapons[selection.weapon_id]
        mounted.append(
            MountedWeapon(
                point=point,
                weapon=weapon,
                qty=selection.qty,
                crew_group=resolve_crew_group(point, groups),
                proficient=healed.is_proficient(point.id),
                ability=attack_ability(weapon),
                attack_bonus=mounted_weapon_attack_bonus(point, weapon, healed, derived, groups),
            )
        )

    total_points = as_number(derived.points)
    if saddle is not None:
        total_points += as_number(saddle.points)
    total_points += sum(as_number(m.points) for m in applied)
    total_points += sum(as_number(mw.weapon.points) * mw.qty for mw in mounted)

    return LoadoutDerivation(
        config=healed,
        base=base,
        saddle=saddle,
        applied_mods=applied,
        derived=derived,
        crew_groups=groups,
        mounting_points=tuple(points),
        mounted_weapons=tuple(mounted),
        encumbrance=encumbrance,
        total_points=total_points,
        healed_point_ids=tuple(reset),
    )
