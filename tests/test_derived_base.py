"""Tests for folding mods onto a base stat block."""

import itertools

from mv_loadout.models.catalog import MovementBlock
from mv_loadout.models.derived_stats import derive_base
from tests.factories import base, mod, saddle


def _wyvern(**kwargs):
    kwargs.setdefault("movement", {"fly": (60, 100), "ground": (20, 30)})
    kwargs.setdefault("traits", ("flyby",))
    return base("wyvern", tags=("wyvern",), **kwargs)


def test_no_mods_is_a_copy():
    b = _wyvern()
    derived = derive_base(b, [])
    assert derived.base_ac == b.base_ac
    assert derived.movement == b.movement
    assert derived.traits == ["flyby"]
    assert derived.applied_mod_ids == []


def test_stat_bonuses_sum():
    mods = [mod("a", stat_bonuses={"ac": 2, "hp": 10}), mod("b", stat_bonuses={"baseAC": 1, "strength": 2})]
    derived = derive_base(_wyvern(), mods)
    assert derived.base_ac == 17
    assert derived.base_hp == 95
    assert derived.strength == 20


def test_unknown_stat_bonus_kept_in_extra():
    derived = derive_base(_wyvern(), [mod("a", stat_bonuses={"stealth": 2}), mod("b", stat_bonuses={"stealth": 1})])
    assert derived.extra == {"stealth": 3}


def test_movement_bonus_adds_to_existing_mode():
    derived = derive_base(_wyvern(), [mod("plating", movement_bonuses={"fly": (-10, -10)})])
    assert derived.movement["fly"] == MovementBlock(50, 90)


def test_movement_bonus_creates_new_mode_from_zero():
    derived = derive_base(_wyvern(), [mod("fins", movement_bonuses={"swim": (20, 30)})])
    assert derived.movement["swim"] == MovementBlock(20, 30)
    assert list(derived.movement) == ["fly", "ground", "swim"]


def test_traits_deduplicated_in_order():
    mods = [mod("a", add_traits=("frost", "flyby")), mod("b", add_traits=("frost", "armored"))]
    assert derive_base(_wyvern(), mods).traits == ["flyby", "frost", "armored"]


def test_additive_effects_are_order_independent():
    mods = [
        mod("a", stat_bonuses={"ac": 2}, movement_bonuses={"fly": (-10, -10)}, add_traits=("x",)),
        mod("b", stat_bonuses={"ac": 1, "dex": 2}, movement_bonuses={"swim": (10, 10)}),
        mod("c", movement_bonuses={"fly": (5, 0), "swim": (5, 5)}, add_traits=("y",)),
    ]
    results = []
    for order in itertools.permutations(mods):
        d = derive_base(_wyvern(), list(order))
        results.append((d.base_ac, d.dex, d.movement, sorted(d.traits)))
    assert all(r == results[0] for r in results)
    assert results[0][2]["fly"] == MovementBlock(55, 90)


def test_override_beats_additive_regardless_of_order():
    bonus = mod("bonus", stat_bonuses={"ac": 5})
    fixed = mod("fixed", overrides={"ac": 12})
    assert derive_base(_wyvern(), [bonus, fixed]).base_ac == 12
    assert derive_base(_wyvern(), [fixed, bonus]).base_ac == 12


def test_last_override_wins():
    first = mod("first", overrides={"size": "Huge"})
    second = mod("second", overrides={"size": "Gargantuan"})
    assert derive_base(_wyvern(), [first, second]).size == "Gargantuan"


def test_override_movement_mode_and_removal():
    derived = derive_base(_wyvern(), [mod("grounded", overrides={"fly": None, "ground": {"standard": 40}})])
    assert derived.movement == {"ground": MovementBlock(40, 40)}


def test_override_weapon_allowlist():
    derived = derive_base(_wyvern(), [mod("locked", overrides={"weaponAllowlist": ["bow"]})])
    assert derived.weapon_allowlist == {"bow"}
    cleared = derive_base(_wyvern(allowlist=["bow"]), [mod("open", overrides={"weaponAllowlist": []})])
    assert cleared.weapon_allowlist is None


def test_illegal_mod_skipped():
    mods = [mod("vehicle_only", base_types=("Vehicle",), stat_bonuses={"ac": 10}), mod("ok", stat_bonuses={"ac": 1})]
    derived = derive_base(_wyvern(), mods)
    assert derived.base_ac == 15
    assert derived.applied_mod_ids == ["ok"]
    assert derived.skipped_mod_ids == ["vehicle_only"]


def test_saddle_gated_mod():
    m = mod("hardpoint", saddle_ids=("war",), stat_bonuses={"hp": 5})
    assert derive_base(_wyvern(), [m], saddle("war")).base_hp == 90
    assert derive_base(_wyvern(), [m], saddle("riding")).base_hp == 85


def test_catalog_base_not_mutated():
    b = _wyvern()
    before = (dict(b.movement), b.traits, b.base_ac)
    derive_base(b, [mod("a", add_traits=("x",), movement_bonuses={"fly": (5, 5), "swim": (1, 1)}, stat_bonuses={"ac": 1})])
    assert (dict(b.movement), b.traits, b.base_ac) == before


def test_primary_movement_priority():
    derived = derive_base(base("x", movement={"swim": (30, 40), "ground": (20, 20)}), [])
    assert derived.primary_movement() == ("ground", MovementBlock(20, 20))
    assert derive_base(base("y", movement={}), []).primary_movement() is None
