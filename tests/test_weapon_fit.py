"""Tests for weapon size fit, kind, and allowlists."""

import pytest

from mv_loadout.engine.weapon_fit import (
    clamp_quantity,
    fitting_weapons,
    is_weapon_allowed,
    max_quantity,
)
from tests.factories import point, weapon


# --- Size fit ---

@pytest.mark.parametrize(
    ("point_size", "weapon_size", "expected"),
    [
        ("L", "M", 2),
        ("L", "S", 4),
        ("XL", "XS", 16),
        ("M", "M", 1),
        ("S", "M", 0),
        ("M", "XL", 0),
    ],
)
def test_ranged_subdivides(point_size, weapon_size, expected):
    assert max_quantity(point(size=point_size), weapon(size=weapon_size)) == expected


@pytest.mark.parametrize(
    ("point_size", "weapon_size", "expected"),
    [("L", "M", 1), ("XL", "XS", 1), ("M", "M", 1), ("S", "M", 0)],
)
def test_melee_never_subdivides(point_size, weapon_size, expected):
    p = point(size=point_size, weapon_type="melee")
    assert max_quantity(p, weapon(size=weapon_size, attack_type="melee")) == expected


def test_unknown_size_fits_nothing():
    assert max_quantity(point(size="Huge"), weapon(size="M")) == 0
    assert max_quantity(point(size="L"), weapon(size="")) == 0


# --- Kind ---

def test_melee_point_rejects_ranged():
    assert not is_weapon_allowed(point(weapon_type="melee"), weapon("bow"))


def test_ranged_point_rejects_reach_weapon():
    assert not is_weapon_allowed(point(), weapon("tail", reach="5 ft.", attack_type=""))


def test_both_point_accepts_either():
    p = point(weapon_type="both")
    assert is_weapon_allowed(p, weapon("bow"))
    assert is_weapon_allowed(p, weapon("tail", attack_type="melee"))


def test_none_weapon_never_allowed():
    assert not is_weapon_allowed(point(), weapon("none"))


# --- Allowlists ---

def test_base_allowlist_filters():
    p = point()
    assert is_weapon_allowed(p, weapon("bow"), frozenset({"bow"}))
    assert not is_weapon_allowed(p, weapon("sling"), frozenset({"bow"}))


def test_point_allowlist_replaces_base_allowlist():
    p = point(allowlist=["sling"])
    assert is_weapon_allowed(p, weapon("sling"), frozenset({"bow"}))
    assert not is_weapon_allowed(p, weapon("bow"), frozenset({"bow"}))


def test_no_allowlist_allows_any_fitting_weapon():
    assert is_weapon_allowed(point(size="L"), weapon("anything", size="L"), None)


def test_fitting_weapons_catalog_order():
    weapons = [weapon("b", size="M"), weapon("big", size="XL"), weapon("a", size="S"), weapon("claw", attack_type="melee")]
    assert [w.id for w in fitting_weapons(point(size="L"), weapons)] == ["b", "a"]


def test_fitting_weapons_subset_of_allowlist():
    weapons = [weapon(w) for w in ("w1", "w2", "w3")]
    allowed = frozenset({"w1", "w3"})
    ids = {w.id for w in fitting_weapons(point(), weapons, allowed)}
    assert ids <= allowed
    assert ids == {"w1", "w3"}


# --- Quantity ---

def test_clamp_quantity():
    assert clamp_quantity(5, 2) == 2
    assert clamp_quantity(0, 2) == 1
    assert clamp_quantity(3, 0) == 0


def test_allowlist_precedence_across_points():
    base_list = frozenset({"w1"})
    own_list = point("own", allowlist=["w2"])
    plain = point("plain")
    weapons = [weapon("w1"), weapon("w2")]
    assert [w.id for w in fitting_weapons(own_list, weapons, base_list)] == ["w2"]
    assert [w.id for w in fitting_weapons(plain, weapons, base_list)] == ["w1"]
