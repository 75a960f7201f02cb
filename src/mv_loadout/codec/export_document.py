"""Export a derived loadout as a LoadoutDocument.

The document carries derived values only (modded stats, merged mounting
points, encumbrance-adjusted agility and speed), so an importer can
rebuild the stat block without the reference catalog. Raw crew stats and
proficiencies ride along so the loadout can be re-edited.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mv_loadout.engine.pipeline import LoadoutDerivation, MountedWeapon, derive_loadout
from mv_loadout.engine.rules_config import DEFAULT_RULES, RulesConfig
from mv_loadout.engine.weapon_fit import is_weapon_allowed, max_quantity
from mv_loadout.models.actions import ACTION_SECTIONS
from mv_loadout.models.catalog import Catalog
from mv_loadout.models.loadout import CrewStats, LoadoutConfiguration, MountSelection
from mv_loadout.models.values import as_dict, as_int, as_str, as_str_list
from mv_loadout.parser.trait_glossary import resolve_trait


logger = logging.getLogger(__name__)

SCHEMA = "mv-loadout/1.0"


def _trait_payload(catalog: Catalog, trait_id: str) -> dict[str, str]:
    entry = resolve_trait(catalog.traits, trait_id)
    return {"id": trait_id, "name": entry.name, "desc": entry.desc}


def _movement_payload(derivation: LoadoutDerivation) -> dict[str, Any]:
    enc = derivation.encumbrance
    derived = derivation.derived
    movement: dict[str, Any] = {
        "mode": enc.movement_mode,
        "standard": enc.standard_speed,
        "max": enc.max_speed,
    }
    for mode, block in derived.movement.items():
        movement[mode] = block.standard
        movement[f"{mode}_max"] = enc.max_speed if mode == enc.movement_mode else block.max
    movement["climb_rate"] = derived.climb_rate
    movement["acceleration"] = derived.acceleration
    return movement


def _is_exportable(mounted: MountedWeapon, derivation: LoadoutDerivation, rules: RulesConfig) -> bool:
    allowed = is_weapon_allowed(
        mounted.point,
        mounted.weapon,
        derivation.derived.weapon_allowlist,
        rules.size_units,
    )
    return allowed and 1 <= mounted.qty <= max_quantity(mounted.point, mounted.weapon, rules.size_units)


def _mounted_payload(mounted: MountedWeapon, catalog: Catalog) -> dict[str, Any]:
    weapon = mounted.weapon
    entry: dict[str, Any] = {
        "mountId": mounted.point.id,
        "mountLabel": mounted.point.label,
        "arc": mounted.point.arc,
        "crewGroup": mounted.crew_group.id,
        "crewGroupLabel": mounted.crew_group.label,
        "weaponId": weapon.id,
        "name": weapon.name,
        "qty": mounted.qty,
        "attackType": weapon.kind,
        "ability": mounted.ability,
        "attackBonus": mounted.attack_bonus,
        "proficient": mounted.proficient,
        "damage": weapon.damage,
    }
    if weapon.is_melee:
        entry["reach"] = weapon.reach
    else:
        entry["range"] = weapon.range
    entry["traits"] = [_trait_payload(catalog, t) for t in weapon.traits]
    return entry


def build_document(
    derivation: LoadoutDerivation,
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[str, Any]:
    """LoadoutDocument for an already-derived loadout."""
    derived = derivation.derived
    enc = derivation.encumbrance
    config = derivation.config

    mounted = []
    for entry in derivation.mounted_weapons:
        if _is_exportable(entry, derivation, rules):
            mounted.append(_mounted_payload(entry, catalog))
        else:
            logger.warning("Omitting illegal mounted weapon %s on %s", entry.weapon.id, entry.point.id)

    doc: dict[str, Any] = {
        "schema": SCHEMA,
        "baseId": derivation.base.id,
        "baseName": derived.name,
        "baseType": derived.kind,
        "baseSize": derived.size,
        "saddleId": derivation.saddle.id if derivation.saddle else None,
        "saddleName": derivation.saddle.name if derivation.saddle else None,
        "modIds": list(config.mod_ids),
        "mods": [{"id": m.id, "name": m.name, "desc": m.desc} for m in derivation.applied_mods],
        "points": derivation.total_points,
        "stats": {
            "ac": derived.base_ac,
            "hp": derived.base_hp,
            "str": derived.strength,
            "dex": derived.dex,
            "con": derived.con,
            "agility": enc.agility,
        },
        "movement": _movement_payload(derivation),
        "encumbrance": {
            "carried_weight": enc.payload,
            "capacity": enc.capacity,
            "state": enc.state,
        },
    }
    if derived.weapon_allowlist is not None:
        doc["weaponAllowlist"] = sorted(derived.weapon_allowlist)
    doc["traits"] = [_trait_payload(catalog, t) for t in derived.traits]
    for attr, key, _title in ACTION_SECTIONS:
        doc[key] = [a.to_dict() for a in getattr(derived, attr)]
    doc["mountedWeapons"] = mounted
    doc["crewStats"] = {k: v.to_dict() for k, v in config.crew_stats.items()}
    doc["proficiencies"] = dict(config.proficiencies)
    return doc


def export_document(
    config: LoadoutConfiguration,
    catalog: Catalog,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[str, Any]:
    """Derive *config* and export it."""
    return build_document(derive_loadout(config, catalog, rules), catalog, rules)


def dumps_document(doc: dict[str, Any]) -> str:
    return json.dumps(doc, indent=2, ensure_ascii=False)


def configuration_from_document(doc: dict[str, Any]) -> LoadoutConfiguration:
    """Recover the editable configuration recorded in a document."""
    selections = {}
    for entry in doc.get("mountedWeapons") or []:
        row = as_dict(entry)
        mount_id = as_str(row.get("mountId"))
        if mount_id:
            selections[mount_id] = MountSelection(
                weapon_id=as_str(row.get("weaponId")),
                qty=as_int(row.get("qty")),
            )
    crew = {}
    for group_id, raw in as_dict(doc.get("crewStats")).items():
        row = as_dict(raw)
        crew[str(group_id)] = CrewStats(
            dex_mod=as_int(row.get("dexMod")),
            prof_bonus=as_int(row.get("profBonus")),
        )
    return LoadoutConfiguration(
        base_id=as_str(doc.get("baseId")) or None,
        saddle_id=as_str(doc.get("saddleId")) or None,
        mod_ids=list(dict.fromkeys(as_str_list(doc.get("modIds")))),
        mount_selections=selections,
        proficiencies={str(k): bool(v) for k, v in as_dict(doc.get("proficiencies")).items()},
        crew_stats=crew,
    )
