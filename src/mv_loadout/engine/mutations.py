"""Edits to a loadout configuration.

Each function takes the current configuration and returns a new one; the
input is never modified. An edit that would make the loadout illegal
raises IllegalSelectionError (or UnknownEntityError for a bad id) before
anything is returned, so the caller simply keeps its old value.
"""

from __future__ import annotations

import copy

from mv_loadout.engine.compatibility import is_mod_allowed, legal_saddles
from mv_loadout.engine.pipeline import LoadoutDerivation, derive_loadout
from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.engine.weapon_fit import clamp_quantity, is_weapon_allowed, max_quantity
from mv_loadout.errors import IllegalSelectionError, UnknownEntityError
from mv_loadout.models.catalog import Catalog, MountingPoint
from mv_loadout.models.constants import NO_WEAPON
from mv_loadout.models.loadout import CrewStats, LoadoutConfiguration, MountSelection
from mv_loadout.models.values import as_int


def _point(derivation: LoadoutDerivation, point_id: str) -> MountingPoint:
    for point in derivation.mounting_points:
        if point.id == point_id:
            return point
    raise UnknownEntityError(f"Unknown mounting point: {point_id!r}")


# --- Base and saddle -------------------------------------------------------


def select_base(
    catalog: Catalog,
    base_id: str,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    """Fresh configuration for *base_id*; mounts get their first legal saddle."""
    base = catalog.base(base_id)
    if base is None:
        raise UnknownEntityError(f"Unknown base: {base_id!r}")
    saddles = legal_saddles(base, catalog, rules)
    return LoadoutConfiguration(
        base_id=base.id,
        saddle_id=saddles[0].id if saddles else None,
    )


def select_saddle(
    config: LoadoutConfiguration,
    catalog: Catalog,
    saddle_id: str | None,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    """Swap the saddle; ``None`` removes it. Selections heal on the next pass."""
    base = catalog.base(config.base_id)
    if base is None:
        raise UnknownEntityError(f"Unknown base: {config.base_id!r}")
    if saddle_id is not None:
        if catalog.saddle(saddle_id) is None:
            raise UnknownEntityError(f"Unknown saddle: {saddle_id!r}")
        if saddle_id not in {s.id for s in legal_saddles(base, catalog, rules)}:
            raise IllegalSelectionError(f"Saddle {saddle_id!r} does not fit {base.name}")
    updated = copy.deepcopy(config)
    updated.saddle_id = saddle_id
    return updated


# --- Mods ------------------------------------------------------------------


def add_mod(
    config: LoadoutConfiguration,
    catalog: Catalog,
    mod_id: str,
) -> LoadoutConfiguration:
    mod = catalog.mod(mod_id)
    if mod is None:
        raise UnknownEntityError(f"Unknown mod: {mod_id!r}")
    if mod_id in config.mod_ids:
        raise IllegalSelectionError(f"Mod {mod_id!r} is already applied")
    base = catalog.base(config.base_id)
    if base is None:
        raise UnknownEntityError(f"Unknown base: {config.base_id!r}")
    saddle = catalog.saddle(config.saddle_id) if base.is_mount else None
    if not is_mod_allowed(mod, base, saddle):
        raise IllegalSelectionError(f"Mod {mod.name} is not allowed on {base.name}")
    updated = copy.deepcopy(config)
    updated.mod_ids.append(mod_id)
    return updated


def remove_mod(config: LoadoutConfiguration, mod_id: str) -> LoadoutConfiguration:
    if mod_id not in config.mod_ids:
        raise UnknownEntityError(f"Mod {mod_id!r} is not applied")
    updated = copy.deepcopy(config)
    updated.mod_ids = [m for m in updated.mod_ids if m != mod_id]
    return updated


def move_mod(config: LoadoutConfiguration, mod_id: str, index: int) -> LoadoutConfiguration:
    """Move *mod_id* to *index* in application order (clamped to the list)."""
    if mod_id not in config.mod_ids:
        raise UnknownEntityError(f"Mod {mod_id!r} is not applied")
    updated = copy.deepcopy(config)
    updated.mod_ids.remove(mod_id)
    position = max(0, min(int(index), len(updated.mod_ids)))
    updated.mod_ids.insert(position, mod_id)
    return updated


# --- Mounting points -------------------------------------------------------


def set_mount_weapon(
    config: LoadoutConfiguration,
    catalog: Catalog,
    point_id: str,
    weapon_id: str | None,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    """Select a weapon on a point, or clear it with ``"none"``.

    A fresh selection defaults to quantity 1; an existing quantity is kept
    when it still fits the new weapon, else clamped down.
    """
    derivation = derive_loadout(config, catalog, rules)
    point = _point(derivation, point_id)
    current = derivation.config.selection(point_id)

    updated = copy.deepcopy(derivation.config)
    if not weapon_id or weapon_id == NO_WEAPON:
        updated.mount_selections[point_id] = MountSelection()
        return updated

    weapon = catalog.weapon(weapon_id)
    if weapon is None:
        raise UnknownEntityError(f"Unknown weapon: {weapon_id!r}")
    if not is_weapon_allowed(point, weapon, derivation.derived.weapon_allowlist, rules.size_units):
        raise IllegalSelectionError(f"{weapon.name} cannot be mounted on {point.label}")

    qty = clamp_quantity(current.qty or 1, max_quantity(point, weapon, rules.size_units))
    updated.mount_selections[point_id] = MountSelection(weapon_id=weapon.id, qty=qty)
    return updated


def set_mount_quantity(
    config: LoadoutConfiguration,
    catalog: Catalog,
    point_id: str,
    qty: int,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    """Change a point's quantity; 0 clears the point."""
    derivation = derive_loadout(config, catalog, rules)
    point = _point(derivation, point_id)
    current = derivation.config.selection(point_id)
    qty = as_int(qty)

    updated = copy.deepcopy(derivation.config)
    if qty == 0:
        updated.mount_selections[point_id] = MountSelection()
        return updated
    if current.is_empty:
        raise IllegalSelectionError(f"No weapon selected on {point.label}")

    weapon = catalog.weapons[current.weapon_id]
    maximum = max_quantity(point, weapon, rules.size_units)
    if qty < 0 or qty > maximum:
        raise IllegalSelectionError(
            f"{weapon.name} quantity on {point.label} must be 0-{maximum}, got {qty}"
        )
    updated.mount_selections[point_id] = MountSelection(weapon_id=weapon.id, qty=qty)
    return updated


def set_proficiency(
    config: LoadoutConfiguration,
    catalog: Catalog,
    point_id: str,
    proficient: bool,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    derivation = derive_loadout(config, catalog, rules)
    _point(derivation, point_id)
    updated = copy.deepcopy(derivation.config)
    updated.proficiencies[point_id] = bool(proficient)
    return updated


# --- Crew ------------------------------------------------------------------


def set_crew_stats(
    config: LoadoutConfiguration,
    catalog: Catalog,
    group_id: str,
    *,
    dex_mod=None,
    prof_bonus=None,
    rules: RulesConfig = DEFAULT_RULES,
) -> LoadoutConfiguration:
    """Update a crew group's DEX modifier and/or proficiency bonus.

    Values that are not finite numbers are stored as 0.
    """
    derivation = derive_loadout(config, catalog, rules)
    known = {g.id for g in derivation.crew_groups}
    known.update(p.crew_group for p in derivation.mounting_points if p.crew_group)
    if group_id not in known:
        raise UnknownEntityError(f"Unknown crew group: {group_id!r}")

    updated = copy.deepcopy(derivation.config)
    crew = updated.crew_stats.get(group_id) or CrewStats()
    if dex_mod is not None:
        crew.dex_mod = as_int(dex_mod)
    if prof_bonus is not None:
        crew.prof_bonus = as_int(prof_bonus)
    updated.crew_stats[group_id] = crew
    return updated
