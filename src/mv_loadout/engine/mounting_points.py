"""Effective mounting points and crew groups for a base + saddle + mods.

The point list is recomputed on every pass: native points of the saddle
(or vehicle) first, in their original order, then points added by legal
mods in application order. A mod point whose id is already taken is
renamed to ``<id>_<modId>`` so every id in the list is unique.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.models.catalog import Base, CrewGroup, Mod, MountingPoint, Saddle
from mv_loadout.models.constants import DEFAULT_CREW_GROUP_ID, DEFAULT_CREW_GROUP_LABEL


logger = logging.getLogger(__name__)


def native_mounting_points(base: Base, saddle: Saddle | None) -> tuple[MountingPoint, ...]:
    if base.is_vehicle:
        return base.mounting_points
    if saddle is not None:
        return saddle.mounting_points
    return ()


def crew_groups(
    base: Base,
    saddle: Saddle | None,
    rules: RulesConfig = DEFAULT_RULES,
) -> tuple[CrewGroup, ...]:
    """Vehicle groups, else saddle groups, else one synthetic default group."""
    if base.is_vehicle and base.crew_groups:
        return base.crew_groups
    if saddle is not None and saddle.crew_groups:
        return saddle.crew_groups
    if base.crew_groups:
        return base.crew_groups
    return (CrewGroup(id=rules.default_crew_group_id, label=rules.default_crew_group_label),)


def resolve_crew_group(point: MountingPoint, groups: tuple[CrewGroup, ...]) -> CrewGroup:
    """The point's declared group if it exists, else the first group."""
    if point.crew_group:
        for group in groups:
            if group.id == point.crew_group:
                return group
        # Declared but not among the active groups: keep the id so crew
        # stats keyed by it still apply.
        return CrewGroup(id=point.crew_group, label=point.crew_group)
    if not groups:
        return CrewGroup(id=DEFAULT_CREW_GROUP_ID, label=DEFAULT_CREW_GROUP_LABEL)
    return groups[0]


def _unique_id(point_id: str, mod_id: str, taken: set[str]) -> str:
    candidate = f"{point_id}_{mod_id}"
    suffix = 2
    while candidate in taken:
        candidate = f"{point_id}_{mod_id}_{suffix}"
        suffix += 1
    return candidate


def merge_mounting_points(
    native: Iterable[MountingPoint],
    mods: Iterable[Mod],
) -> list[MountingPoint]:
    """Native points followed by each mod's added points, ids made unique."""
    merged: list[MountingPoint] = list(native)
    taken = {p.id for p in merged}
    for mod in mods:
        for point in mod.effects.add_mounting_points:
            if point.id in taken:
                new_id = _unique_id(point.id, mod.id, taken)
                logger.debug("Renaming mounting point %s from mod %s to %s", point.id, mod.id, new_id)
                point = replace(point, id=new_id)
            taken.add(point.id)
            merged.append(point)
    return merged


def derived_mounting_points(
    base: Base,
    saddle: Saddle | None,
    mods: Iterable[Mod],
) -> list[MountingPoint]:
    """Effective points for *base*; mods that are not legal add nothing."""
    legal = [m for m in mods if m.requires.matches(base, saddle)]
    return merge_mounting_points(native_mounting_points(base, saddle), legal)
