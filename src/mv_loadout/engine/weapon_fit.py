"""Which weapons a mounting point accepts, and how many.

Size fit works in capacity units (XS=1, S=2, M=4, L=8, XL=16). Ranged
weapons subdivide a point: an L point holds two M guns. Melee weapons
never subdivide: a point holds one if it is big enough, else none.

Allowlists: a point's own list replaces the base list for that point
(no intersection); with neither, any weapon that fits is allowed.
"""

from __future__ import annotations

from collections.abc import Iterable

from mv_loadout.models.catalog import MountingPoint, Weapon
from mv_loadout.models.constants import NO_WEAPON, SIZE_UNITS


def size_units(size: str, units: dict[str, int] = SIZE_UNITS) -> int:
    return units.get(size, 0)


def max_quantity(
    point: MountingPoint,
    weapon: Weapon,
    units: dict[str, int] = SIZE_UNITS,
) -> int:
    point_units = size_units(point.size, units)
    weapon_units = size_units(weapon.size, units)
    if point_units <= 0 or weapon_units <= 0:
        return 0
    if weapon.is_melee:
        return 1 if point_units >= weapon_units else 0
    return point_units // weapon_units


def effective_allowlist(
    point: MountingPoint,
    base_allowlist: frozenset[str] | None,
) -> frozenset[str] | None:
    if point.weapon_allowlist is not None:
        return point.weapon_allowlist
    return base_allowlist


def accepts_kind(point: MountingPoint, weapon: Weapon) -> bool:
    return weapon.kind in point.accepted_kinds


def is_weapon_allowed(
    point: MountingPoint,
    weapon: Weapon,
    base_allowlist: frozenset[str] | None = None,
    units: dict[str, int] = SIZE_UNITS,
) -> bool:
    """Kind, allowlist, and size checks together."""
    if weapon.id == NO_WEAPON:
        return False
    if not accepts_kind(point, weapon):
        return False
    allowlist = effective_allowlist(point, base_allowlist)
    if allowlist is not None and weapon.id not in allowlist:
        return False
    return max_quantity(point, weapon, units) >= 1


def fitting_weapons(
    point: MountingPoint,
    weapons: Iterable[Weapon],
    base_allowlist: frozenset[str] | None = None,
    units: dict[str, int] = SIZE_UNITS,
) -> list[Weapon]:
    """Weapons selectable on *point*, in catalog order."""
    return [w for w in weapons if is_weapon_allowed(point, w, base_allowlist, units)]


def clamp_quantity(qty: int, maximum: int) -> int:
    """Selected weapons carry at least one and at most *maximum*."""
    if maximum <= 0:
        return 0
    return max(1, min(int(qty), maximum))
