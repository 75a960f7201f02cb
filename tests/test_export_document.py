"""Tests for the LoadoutDocument export."""

import json
import logging
from dataclasses import replace

from mv_loadout.codec.export_document import (
    SCHEMA,
    build_document,
    configuration_from_document,
    dumps_document,
    export_document,
)
from mv_loadout.engine.pipeline import derive_loadout
from mv_loadout.models.catalog import TraitEntry
from mv_loadout.models.loadout import CrewStats, LoadoutConfiguration, MountSelection
from tests.factories import base, mod, point, war_catalog, weapon


def _config(**kwargs):
    kwargs.setdefault("base_id", "wyvern")
    kwargs.setdefault("saddle_id", "war_saddle")
    return LoadoutConfiguration(**kwargs)


def test_header_fields():
    doc = export_document(_config(), war_catalog())
    assert doc["schema"] == SCHEMA
    assert (doc["baseId"], doc["baseName"], doc["baseType"], doc["baseSize"]) == ("wyvern", "Wyvern", "Mount", "Large")
    assert (doc["saddleId"], doc["saddleName"]) == ("war_saddle", "War Saddle")
    assert doc["points"] == 46
    assert "weaponAllowlist" not in doc


def test_stats_are_derived():
    cat = war_catalog(mods=[mod("plate", stat_bonuses={"ac": 2, "strength": 2}, movement_bonuses={"fly": (-10, -10)})])
    doc = export_document(_config(mod_ids=["plate"]), cat)
    assert doc["stats"] == {"ac": 16, "hp": 85, "str": 20, "dex": 14, "con": 16, "agility": 6}
    assert doc["movement"]["fly"] == 50
    assert doc["movement"]["fly_max"] == 90
    assert doc["modIds"] == ["plate"]
    assert doc["mods"] == [{"id": "plate", "name": "Plate", "desc": ""}]


def test_encumbrance_adjusted_values():
    wyvern = base("wyvern", strength=2, movement={"fly": (60, 100), "ground": (20, 30)})
    doc = export_document(_config(mount_selections={"left": MountSelection("heavy_crossbow", 1)}), war_catalog(base=wyvern))
    # capacity 2 * 15 * 2 = 60; payload 78 -> Heavily Encumbered
    assert doc["encumbrance"] == {"carried_weight": 78, "capacity": 60, "state": "Heavily Encumbered"}
    assert doc["stats"]["agility"] == 3
    assert doc["movement"]["mode"] == "fly"
    assert (doc["movement"]["standard"], doc["movement"]["max"]) == (60, 80)
    assert doc["movement"]["fly_max"] == 80
    assert doc["movement"]["ground_max"] == 30


def test_mounted_weapon_entry():
    cat = war_catalog(traits={"loading": TraitEntry("Loading", "One shot per action.")})
    cat.weapons["crossbow"] = replace(cat.weapons["crossbow"], traits=("loading",))
    config = _config(
        mount_selections={"left": MountSelection("crossbow", 2)},
        proficiencies={"left": True},
        crew_stats={"gunner": CrewStats(3, 2)},
    )
    (entry,) = export_document(config, cat)["mountedWeapons"]
    assert entry == {
        "mountId": "left",
        "mountLabel": "Left",
        "arc": "Front",
        "crewGroup": "gunner",
        "crewGroupLabel": "Gunner",
        "weaponId": "crossbow",
        "name": "Crossbow",
        "qty": 2,
        "attackType": "ranged",
        "ability": "dex",
        "attackBonus": 5,
        "proficient": True,
        "damage": "1d8",
        "range": "80/320 ft.",
        "traits": [{"id": "loading", "name": "Loading", "desc": "One shot per action."}],
    }


def test_melee_entry_carries_reach():
    doc = export_document(_config(mount_selections={"jaws": MountSelection("lance", 1)}), war_catalog())
    (entry,) = doc["mountedWeapons"]
    assert entry["reach"] == "10 ft."
    assert "range" not in entry
    assert entry["ability"] == "str"


def test_stale_selection_never_exported():
    doc = export_document(
        _config(mount_selections={"left": MountSelection("ballista", 1), "gone": MountSelection("crossbow", 1)}),
        war_catalog(),
    )
    assert doc["mountedWeapons"] == []


def test_illegal_entry_omitted_with_warning(caplog):
    cat = war_catalog()
    derivation = derive_loadout(_config(mount_selections={"left": MountSelection("crossbow", 2)}), cat)
    shrunk = replace(derivation.mounted_weapons[0], point=point("left", size="M", crew_group="gunner"))
    tampered = replace(derivation, mounted_weapons=(shrunk,))
    with caplog.at_level(logging.WARNING, logger="mv_loadout.codec.export_document"):
        doc = build_document(tampered, cat)
    assert doc["mountedWeapons"] == []
    assert "Omitting illegal mounted weapon crossbow on left" in caplog.text


def test_weapon_allowlist_sorted():
    wyvern = base("wyvern", allowlist=["lance", "crossbow"])
    doc = export_document(_config(), war_catalog(base=wyvern))
    assert doc["weaponAllowlist"] == ["crossbow", "lance"]


def test_traits_resolved_from_glossary():
    wyvern = base("wyvern", traits=("flyby", "keen_senses"))
    doc = export_document(_config(), war_catalog(base=wyvern, traits={"flyby": TraitEntry("Flyby", "No OAs.")}))
    assert doc["traits"] == [
        {"id": "flyby", "name": "Flyby", "desc": "No OAs."},
        {"id": "keen_senses", "name": "Keen Senses", "desc": ""},
    ]


def test_crew_and_proficiencies_cover_every_point_and_group():
    doc = export_document(_config(), war_catalog())
    assert doc["crewStats"] == {
        "rider": {"dexMod": 0, "profBonus": 0},
        "gunner": {"dexMod": 0, "profBonus": 0},
    }
    assert doc["proficiencies"] == {"left": False, "jaws": False}


def test_dumps_document_is_json():
    doc = export_document(_config(), war_catalog())
    assert json.loads(dumps_document(doc)) == doc


def test_configuration_round_trip():
    cat = war_catalog(mods=[mod("plate")])
    config = _config(
        mod_ids=["plate"],
        mount_selections={"left": MountSelection("crossbow", 2), "jaws": MountSelection("lance", 1)},
        proficiencies={"left": True, "jaws": False},
        crew_stats={"gunner": CrewStats(3, 2), "rider": CrewStats(1, 0)},
    )
    derivation = derive_loadout(config, cat)
    restored = configuration_from_document(build_document(derivation, cat))
    assert derive_loadout(restored, cat).config == derivation.config


def test_configuration_from_sparse_document():
    config = configuration_from_document({"baseId": "skiff", "modIds": ["a", "a", 3], "mountedWeapons": [{"qty": 1}]})
    assert config.base_id == "skiff"
    assert config.saddle_id is None
    assert config.mod_ids == ["a", "3"]
    assert config.mount_selections == {}


def test_vehicle_document_has_no_saddle():
    skiff = base("skiff", kind="Vehicle", mounting_points=(point("bow", size="L"),), acceleration="1d6 x 10 ft.")
    cat = war_catalog(base=skiff)
    cat.weapons["crossbow"] = weapon("crossbow", weight=5)
    doc = export_document(LoadoutConfiguration(base_id="skiff", saddle_id="war_saddle"), cat)
    assert doc["saddleId"] is None
    assert doc["baseType"] == "Vehicle"
    assert doc["movement"]["acceleration"] == "1d6 x 10 ft."
    assert doc["proficiencies"] == {"bow": False}


def test_repeated_export_is_byte_identical():
    cat = war_catalog(mods=[mod("plate", stat_bonuses={"ac": 1})])
    config = _config(mod_ids=["plate"], mount_selections={"left": MountSelection("crossbow", 9)})
    first = dumps_document(export_document(config, cat))
    healed = derive_loadout(config, cat).config
    assert dumps_document(export_document(healed, cat)) == first
    assert dumps_document(export_document(config, cat)) == first
