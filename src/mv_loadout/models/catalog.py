"""Reference catalog records: bases, saddles, weapons, mods, and traits.

All records are frozen and keyed by a stable string id. They are built
once by the catalog parser and shared read-only by every derivation pass;
anything that needs a modified copy uses dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mv_loadout.models.actions import Action
from mv_loadout.models.constants import (
    ATTACK_MELEE,
    ATTACK_RANGED,
    KIND_MOUNT,
    KIND_VEHICLE,
    NO_SADDLE_TAG,
    NO_SADDLE_TRAIT,
    WEAPON_TYPE_BOTH,
)
from mv_loadout.models.values import as_number


@dataclass(frozen=True, slots=True)
class MovementBlock:
    """Speed for one movement mode, in feet."""
    standard: float = 0
    max: float = 0

    @classmethod
    def from_raw(cls, raw: Any) -> MovementBlock | None:
        """``{standard, max}`` or a bare number; max defaults to standard."""
        if isinstance(raw, dict):
            standard = as_number(raw.get("standard"))
            return cls(standard=standard, max=as_number(raw.get("max"), standard))
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            speed = as_number(raw)
            return cls(standard=speed, max=speed)
        return None

    def plus(self, other: MovementBlock) -> MovementBlock:
        return MovementBlock(self.standard + other.standard, self.max + other.max)


@dataclass(frozen=True, slots=True)
class CrewGroup:
    id: str
    label: str


@dataclass(frozen=True, slots=True)
class MountingPoint:
    """A weapon slot on a saddle or vehicle."""
    id: str
    label: str
    arc: str = ""
    size: str = "M"
    crew_group: str | None = None
    weapon_type: str = ATTACK_RANGED        # "ranged" | "melee" | "both"
    weapon_allowlist: frozenset[str] | None = None   # overrides the base list

    @property
    def accepted_kinds(self) -> frozenset[str]:
        if self.weapon_type == WEAPON_TYPE_BOTH:
            return frozenset({ATTACK_MELEE, ATTACK_RANGED})
        return frozenset({self.weapon_type})


@dataclass(frozen=True, slots=True)
class Weapon:
    id: str
    name: str
    size: str
    weight: float = 0
    points: float = 0
    damage: str = ""
    range: str = ""
    reach: str = ""
    attack_type: str = ""
    traits: tuple[str, ...] = ()

    @property
    def kind(self) -> str:
        """Melee when declared so or when the weapon has a reach."""
        if self.attack_type == ATTACK_MELEE or self.reach:
            return ATTACK_MELEE
        return ATTACK_RANGED

    @property
    def is_melee(self) -> bool:
        return self.kind == ATTACK_MELEE


@dataclass(frozen=True, slots=True)
class Base:
    """A mount or vehicle: the anchor of a loadout."""
    id: str
    name: str
    kind: str
    size: str
    tags: frozenset[str] = frozenset()
    strength: float = 10
    dex: float = 10
    con: float = 10
    agility: float = 0
    base_ac: float = 10
    base_hp: float = 1
    carry_multiplier: float = 1
    points: float = 0
    movement: dict[str, MovementBlock] = field(default_factory=dict)
    traits: tuple[str, ...] = ()
    actions: tuple[Action, ...] = ()
    bonus_actions: tuple[Action, ...] = ()
    reactions: tuple[Action, ...] = ()
    legendary_actions: tuple[Action, ...] = ()
    weapon_allowlist: frozenset[str] | None = None
    crew_groups: tuple[CrewGroup, ...] = ()
    mounting_points: tuple[MountingPoint, ...] = ()   # vehicles only
    climb_rate: str = ""
    acceleration: str = ""

    @property
    def is_mount(self) -> bool:
        return self.kind == KIND_MOUNT

    @property
    def is_vehicle(self) -> bool:
        return self.kind == KIND_VEHICLE

    @property
    def no_saddle_only(self) -> bool:
        return NO_SADDLE_TAG in self.tags or NO_SADDLE_TRAIT in self.traits


@dataclass(frozen=True, slots=True)
class Saddle:
    id: str
    name: str
    weight: float = 0
    points: float = 0
    allowed_sizes: frozenset[str] = frozenset()
    allowed_mount_ids: frozenset[str] = frozenset()
    allowed_mount_tags: frozenset[str] = frozenset()
    mounting_points: tuple[MountingPoint, ...] = ()
    crew_groups: tuple[CrewGroup, ...] = ()

    def fits(self, base: Base) -> bool:
        """Size must match; an id/tag restriction, if any, must match too."""
        if base.size not in self.allowed_sizes:
            return False
        if not self.allowed_mount_ids and not self.allowed_mount_tags:
            return True
        if base.id in self.allowed_mount_ids:
            return True
        return bool(self.allowed_mount_tags & base.tags)


@dataclass(frozen=True, slots=True)
class ModRequirements:
    """Legality rule for a mod.

    AND across categories, OR within one. An empty category does not
    restrict. ``saddle_ids`` matches the active saddle, or the vehicle
    itself for vehicles.
    """
    base_types: frozenset[str] = frozenset()
    ids: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    saddle_ids: frozenset[str] = frozenset()

    def matches(self, base: Base, saddle: Saddle | None = None) -> bool:
        if self.base_types and base.kind not in self.base_types:
            return False
        if self.ids and base.id not in self.ids:
            return False
        if self.tags and not (self.tags & base.tags):
            return False
        if self.saddle_ids:
            carrier = base.id if base.is_vehicle else (saddle.id if saddle else None)
            if carrier not in self.saddle_ids:
                return False
        return True


@dataclass(frozen=True, slots=True)
class ModEffects:
    add_traits: tuple[str, ...] = ()
    add_mounting_points: tuple[MountingPoint, ...] = ()
    stat_bonuses: dict[str, float] = field(default_factory=dict)
    movement_bonuses: dict[str, MovementBlock] = field(default_factory=dict)
    overrides: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Mod:
    id: str
    name: str
    points: float = 0
    desc: str = ""
    requires: ModRequirements = field(default_factory=ModRequirements)
    effects: ModEffects = field(default_factory=ModEffects)


@dataclass(frozen=True, slots=True)
class TraitEntry:
    name: str
    desc: str = ""


@dataclass(slots=True)
class Catalog:
    """Session-scoped reference tables, loaded once and then read-only."""

    bases: dict[str, Base] = field(default_factory=dict)
    saddles: dict[str, Saddle] = field(default_factory=dict)
    weapons: dict[str, Weapon] = field(default_factory=dict)
    mods: dict[str, Mod] = field(default_factory=dict)
    traits: dict[str, TraitEntry] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        *,
        bases: list[Base] | None = None,
        saddles: list[Saddle] | None = None,
        weapons: list[Weapon] | None = None,
        mods: list[Mod] | None = None,
        traits: dict[str, TraitEntry] | None = None,
    ) -> Catalog:
        """Index record lists by id; the first record with an id wins."""
        def index(rows):
            out = {}
            for row in rows or []:
                out.setdefault(row.id, row)
            return out

        return cls(
            bases=index(bases),
            saddles=index(saddles),
            weapons=index(weapons),
            mods=index(mods),
            traits=dict(traits or {}),
        )

    def base(self, base_id: str | None) -> Base | None:
        return self.bases.get(base_id) if base_id else None

    def saddle(self, saddle_id: str | None) -> Saddle | None:
        return self.saddles.get(saddle_id) if saddle_id else None

    def weapon(self, weapon_id: str | None) -> Weapon | None:
        return self.weapons.get(weapon_id) if weapon_id else None

    def mod(self, mod_id: str | None) -> Mod | None:
        return self.mods.get(mod_id) if mod_id else None
