"""Tests for effective mounting points and crew groups."""

from mv_loadout.engine.mounting_points import (
    crew_groups,
    derived_mounting_points,
    resolve_crew_group,
)
from mv_loadout.models.catalog import CrewGroup
from tests.factories import GUNNER, RIDER, base, mod, point, saddle


def _war_saddle():
    return saddle(
        "war",
        crew_groups=(RIDER, GUNNER),
        mounting_points=(point("left", size="L"), point("right", size="L")),
    )


def test_saddle_points_then_mod_points_in_order():
    mods = [mod("a", add_points=(point("tail"),)), mod("b", add_points=(point("belly"),))]
    points = derived_mounting_points(base("wyvern"), _war_saddle(), mods)
    assert [p.id for p in points] == ["left", "right", "tail", "belly"]


def test_colliding_mod_point_is_renamed():
    mods = [mod("extra", add_points=(point("left", label="Rear Hardpoint"),))]
    points = derived_mounting_points(base("wyvern"), _war_saddle(), mods)
    assert [p.id for p in points] == ["left", "right", "left_extra"]
    assert points[2].label == "Rear Hardpoint"


def test_repeated_collision_gets_numeric_suffix():
    mods = [mod("extra", add_points=(point("left"), point("left")))]
    points = derived_mounting_points(base("wyvern"), _war_saddle(), mods)
    assert [p.id for p in points] == ["left", "right", "left_extra", "left_extra_2"]


def test_illegal_mod_adds_nothing():
    mods = [mod("vehicle_only", base_types=("Vehicle",), add_points=(point("turret"),))]
    points = derived_mounting_points(base("wyvern"), _war_saddle(), mods)
    assert [p.id for p in points] == ["left", "right"]


def test_no_saddle_means_only_mod_points():
    mods = [mod("a", add_points=(point("collar"),))]
    assert [p.id for p in derived_mounting_points(base("wyvern"), None, mods)] == ["collar"]


def test_vehicle_uses_own_points():
    skiff = base("skiff", kind="Vehicle", mounting_points=(point("bow"), point("stern")))
    assert [p.id for p in derived_mounting_points(skiff, None, [])] == ["bow", "stern"]


def test_ids_are_unique():
    mods = [mod(f"m{i}", add_points=(point("left"), point("right"))) for i in range(3)]
    points = derived_mounting_points(base("wyvern"), _war_saddle(), mods)
    ids = [p.id for p in points]
    assert len(ids) == len(set(ids)) == 8


# --- Crew groups ---

def test_crew_groups_vehicle_first():
    skiff = base("skiff", kind="Vehicle", crew_groups=(CrewGroup("pilot", "Pilot"),))
    assert [g.id for g in crew_groups(skiff, None)] == ["pilot"]


def test_crew_groups_from_saddle():
    assert [g.id for g in crew_groups(base("wyvern"), _war_saddle())] == ["rider", "gunner"]


def test_crew_groups_default():
    groups = crew_groups(base("wyvern"), saddle("bare"))
    assert groups == (CrewGroup("operator", "Operator"),)


def test_resolve_declared_group():
    assert resolve_crew_group(point("p", crew_group="gunner"), (RIDER, GUNNER)) == GUNNER


def test_resolve_falls_back_to_first_group():
    assert resolve_crew_group(point("p"), (RIDER, GUNNER)) == RIDER


def test_resolve_unknown_declared_group_keeps_id():
    assert resolve_crew_group(point("p", crew_group="lookout"), (RIDER,)).id == "lookout"


def test_resolve_with_no_groups():
    assert resolve_crew_group(point("p"), ()).id == "operator"
