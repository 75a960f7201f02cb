"""Turn raw catalog JSON objects into frozen catalog records.

Parsing is lenient: missing or malformed fields fall back to neutral
defaults so a sloppy data file degrades a stat block instead of breaking
the editor. Field names follow the data files (camelCase).
"""

from __future__ import annotations

from typing import Any

from mv_loadout.models.actions import Action, AttackAction, SaveAction, TextAction
from mv_loadout.models.catalog import (
    Base,
    CrewGroup,
    Mod,
    ModEffects,
    ModRequirements,
    MountingPoint,
    MovementBlock,
    Saddle,
    Weapon,
)
from mv_loadout.models.constants import (
    ATTACK_MELEE,
    ATTACK_RANGED,
    BASE_KINDS,
    KIND_MOUNT,
    MOVEMENT_PRIORITY,
    WEAPON_TYPE_BOTH,
    canonical_mode,
)
from mv_loadout.models.values import as_dict, as_int, as_number, as_str, as_str_list


_WEAPON_TYPES = frozenset({ATTACK_MELEE, ATTACK_RANGED, WEAPON_TYPE_BOTH})

# Free-text keys that may sit alongside mode blocks in a movement map.
_MOVEMENT_TEXT_KEYS = ("climb_rate", "climbRate", "acceleration")


def _allowlist(raw: Any) -> frozenset[str] | None:
    ids = as_str_list(raw)
    return frozenset(ids) if ids else None


# --- Movement --------------------------------------------------------------


def parse_movement(raw: dict[str, Any]) -> dict[str, MovementBlock]:
    """Collect movement blocks from a base record.

    Accepts a ``movement`` map of mode -> block, and the older layout where
    each mode (``fly``, ``ground``...) sits at the top level of the record.
    Known modes come first in priority order, then any others by name.
    """
    blocks: dict[str, MovementBlock] = {}
    movement = as_dict(raw.get("movement"))
    for mode, value in movement.items():
        if mode in _MOVEMENT_TEXT_KEYS:
            continue
        block = MovementBlock.from_raw(value)
        if block is not None:
            blocks[canonical_mode(mode)] = block
    for mode in MOVEMENT_PRIORITY:
        if mode not in blocks and isinstance(raw.get(mode), dict):
            block = MovementBlock.from_raw(raw[mode])
            if block is not None:
                blocks[mode] = block

    ordered = {m: blocks[m] for m in MOVEMENT_PRIORITY if m in blocks}
    for mode in sorted(blocks):
        ordered.setdefault(mode, blocks[mode])
    return ordered


# --- Crew and mounting points ----------------------------------------------


def parse_crew_groups(raw: Any) -> tuple[CrewGroup, ...]:
    groups: list[CrewGroup] = []
    seen: set[str] = set()
    for entry in raw if isinstance(raw, list) else []:
        row = as_dict(entry)
        group_id = as_str(row.get("id"))
        if not group_id or group_id in seen:
            continue
        seen.add(group_id)
        groups.append(CrewGroup(id=group_id, label=as_str(row.get("label"), group_id) or group_id))
    return tuple(groups)


def parse_mounting_point(raw: Any) -> MountingPoint | None:
    row = as_dict(raw)
    point_id = as_str(row.get("id"))
    if not point_id:
        return None
    weapon_type = as_str(row.get("weaponType"), ATTACK_RANGED).lower()
    if weapon_type not in _WEAPON_TYPES:
        weapon_type = ATTACK_RANGED
    return MountingPoint(
        id=point_id,
        label=as_str(row.get("label"), point_id) or point_id,
        arc=as_str(row.get("arc")),
        size=as_str(row.get("size"), "M"),
        crew_group=as_str(row.get("crewGroup")) or None,
        weapon_type=weapon_type,
        weapon_allowlist=_allowlist(row.get("weaponAllowlist")),
    )


def parse_mounting_points(raw: Any) -> tuple[MountingPoint, ...]:
    points = []
    for entry in raw if isinstance(raw, list) else []:
        point = parse_mounting_point(entry)
        if point is not None:
            points.append(point)
    return tuple(points)


# --- Actions ---------------------------------------------------------------


def _save_outcome(raw: Any) -> str:
    """Outcome text from a string or a ``{damage, condition, effect}`` object."""
    if isinstance(raw, str):
        return raw
    row = as_dict(raw)
    parts = []
    damage = as_str(row.get("damage"))
    if damage:
        parts.append("half damage" if damage == "half" else damage)
    for key in ("condition", "effect"):
        text = as_str(row.get(key))
        if text:
            parts.append(text)
    return ", ".join(parts)


def parse_action(raw: Any) -> Action | None:
    """Dispatch on ``kind``; anything that is not attack/save reads as text."""
    row = as_dict(raw)
    name = as_str(row.get("name"))
    if not name:
        return None
    kind = as_str(row.get("kind")).lower()

    if kind == "attack":
        ranged = ATTACK_RANGED in (as_str(row.get("attackType")), as_str(row.get("type")))
        return AttackAction(
            name=name,
            to_hit=as_int(row.get("toHit")),
            attack_type=ATTACK_RANGED if ranged else ATTACK_MELEE,
            damage=as_str(row.get("damage")),
            reach=as_str(row.get("reach")),
            range=as_str(row.get("range")),
            target=as_str(row.get("target")) or "one target",
            extra=as_str(row.get("extra")),
            notes=as_str(row.get("notes")),
        )

    if kind == "save":
        save = as_dict(row.get("save"))
        dc = as_number(save.get("dc"), None)
        return SaveAction(
            name=name,
            ability=as_str(save.get("ability")) or "DEX",
            dc=int(dc) if dc is not None else None,
            range=as_str(row.get("range")),
            area=as_str(row.get("area")),
            on_fail=_save_outcome(row.get("onFail")),
            on_save=_save_outcome(row.get("onSave")),
            notes=as_str(row.get("notes")),
        )

    text = ""
    for key in ("text", "desc", "description", "notes"):
        text = as_str(row.get(key))
        if text:
            break
    return TextAction(name=name, text=text)


def parse_actions(raw: Any) -> tuple[Action, ...]:
    actions = []
    for entry in raw if isinstance(raw, list) else []:
        action = parse_action(entry)
        if action is not None:
            actions.append(action)
    return tuple(actions)


# --- Records ---------------------------------------------------------------


def parse_base(raw: Any, default_kind: str = KIND_MOUNT) -> Base | None:
    """Parse a mount or vehicle; ``type``/``kind`` wins over *default_kind*."""
    row = as_dict(raw)
    base_id = as_str(row.get("id"))
    if not base_id:
        return None
    kind = as_str(row.get("kind")) or as_str(row.get("type"))
    kind = kind.capitalize() if kind.capitalize() in BASE_KINDS else default_kind

    movement = as_dict(row.get("movement"))
    climb_rate = as_str(row.get("climbRate")) or as_str(row.get("climb_rate"))
    climb_rate = climb_rate or as_str(movement.get("climb_rate")) or as_str(movement.get("climbRate"))
    acceleration = as_str(row.get("acceleration")) or as_str(movement.get("acceleration"))

    return Base(
        id=base_id,
        name=as_str(row.get("name"), base_id) or base_id,
        kind=kind,
        size=as_str(row.get("size"), "Medium"),
        tags=frozenset(as_str_list(row.get("tags"))),
        strength=as_number(row.get("strength"), 10),
        dex=as_number(row.get("dex"), 10),
        con=as_number(row.get("con"), 10),
        agility=as_number(row.get("agility")),
        base_ac=as_number(row.get("baseAC"), 10),
        base_hp=as_number(row.get("baseHP"), 1),
        carry_multiplier=as_number(row.get("carryMultiplier"), 1) or 1,
        points=as_number(row.get("points")),
        movement=parse_movement(row),
        traits=tuple(dict.fromkeys(as_str_list(row.get("traits")))),
        actions=parse_actions(row.get("actions")),
        bonus_actions=parse_actions(row.get("bonusActions")),
        reactions=parse_actions(row.get("reactions")),
        legendary_actions=parse_actions(row.get("legendaryActions")),
        weapon_allowlist=_allowlist(row.get("weaponAllowlist")),
        crew_groups=parse_crew_groups(row.get("crewGroups")),
        mounting_points=parse_mounting_points(row.get("mountingPoints")),
        climb_rate=climb_rate,
        acceleration=acceleration,
    )


def parse_saddle(raw: Any) -> Saddle | None:
    row = as_dict(raw)
    saddle_id = as_str(row.get("id"))
    if not saddle_id:
        return None
    return Saddle(
        id=saddle_id,
        name=as_str(row.get("name"), saddle_id) or saddle_id,
        weight=as_number(row.get("weight")),
        points=as_number(row.get("points")),
        allowed_sizes=frozenset(as_str_list(row.get("allowedSizes"))),
        allowed_mount_ids=frozenset(as_str_list(row.get("allowedMountIds"))),
        allowed_mount_tags=frozenset(as_str_list(row.get("allowedMountTags"))),
        mounting_points=parse_mounting_points(row.get("mountingPoints")),
        crew_groups=parse_crew_groups(row.get("crewGroups")),
    )


def parse_weapon(raw: Any) -> Weapon | None:
    row = as_dict(raw)
    weapon_id = as_str(row.get("id"))
    if not weapon_id:
        return None
    attack_type = (as_str(row.get("attackType")) or as_str(row.get("type"))).lower()
    return Weapon(
        id=weapon_id,
        name=as_str(row.get("name"), weapon_id) or weapon_id,
        size=as_str(row.get("size")),
        weight=as_number(row.get("weight")),
        points=as_number(row.get("points")),
        damage=as_str(row.get("damage")),
        range=as_str(row.get("range")),
        reach=as_str(row.get("reach")),
        attack_type=attack_type,
        traits=tuple(as_str_list(row.get("traits"))),
    )


def parse_mod_requirements(raw: Any) -> ModRequirements:
    row = as_dict(raw)
    base_types = {t.capitalize() for t in as_str_list(row.get("baseType") or row.get("baseTypes"))}
    return ModRequirements(
        base_types=frozenset(base_types),
        ids=frozenset(as_str_list(row.get("ids"))),
        tags=frozenset(as_str_list(row.get("tags"))),
        saddle_ids=frozenset(as_str_list(row.get("saddleIds"))),
    )


def parse_mod_effects(raw: Any) -> ModEffects:
    """Effects block; every ``<mode>Bonus`` object is a movement bonus."""
    row = as_dict(raw)
    stat_bonuses: dict[str, float] = {}
    for stat, delta in as_dict(row.get("statBonuses")).items():
        value = as_number(delta, None)
        if value is not None:
            stat_bonuses[str(stat)] = value

    movement_bonuses: dict[str, MovementBlock] = {}
    for key, value in row.items():
        if key.endswith("Bonus") and key != "statBonuses" and isinstance(value, dict):
            mode = canonical_mode(key[: -len("Bonus")])
            if mode:
                movement_bonuses[mode] = MovementBlock(
                    standard=as_number(value.get("standard")),
                    max=as_number(value.get("max")),
                )

    return ModEffects(
        add_traits=tuple(as_str_list(row.get("addTraits"))),
        add_mounting_points=parse_mounting_points(row.get("addMountingPoints")),
        stat_bonuses=stat_bonuses,
        movement_bonuses=movement_bonuses,
        overrides=dict(as_dict(row.get("set"))),
    )


def parse_mod(raw: Any) -> Mod | None:
    row = as_dict(raw)
    mod_id = as_str(row.get("id"))
    if not mod_id:
        return None
    return Mod(
        id=mod_id,
        name=as_str(row.get("name"), mod_id) or mod_id,
        points=as_number(row.get("points")),
        desc=as_str(row.get("desc")) or as_str(row.get("description")),
        requires=parse_mod_requirements(row.get("requires")),
        effects=parse_mod_effects(row.get("effects")),
    )
