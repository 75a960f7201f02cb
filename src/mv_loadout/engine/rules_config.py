"""Configuration knobs for the loadout rules.

Defaults match the published mount and vehicle rules. House rules may
override capacity factors, encumbrance thresholds, or the speed penalty.
"""

from dataclasses import dataclass, field

from mv_loadout.models.constants import (
    DEFAULT_CREW_GROUP_ID,
    DEFAULT_CREW_GROUP_LABEL,
    MOVEMENT_PRIORITY,
    SIZE_CAPACITY_MULT,
    SIZE_UNITS,
)


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Tuneable parameters that aren't stored in the reference data."""

    carry_factor: float = 15                # capacity = STR * 15 * size * carry
    size_capacity_mult: dict[str, float] = field(default_factory=lambda: dict(SIZE_CAPACITY_MULT))
    size_units: dict[str, int] = field(default_factory=lambda: dict(SIZE_UNITS))
    encumbered_ratio: float = 0.5           # payload above this share of capacity
    heavy_ratio: float = 1.0
    overloaded_ratio: float = 1.5
    heavy_speed_penalty: float = 20         # ft. off the primary mode's max
    movement_priority: tuple[str, ...] = MOVEMENT_PRIORITY
    default_crew_group_id: str = DEFAULT_CREW_GROUP_ID
    default_crew_group_label: str = DEFAULT_CREW_GROUP_LABEL
    no_saddle_id: str = "no_saddle"         # sentinel for saddle-less mounts


DEFAULT_RULES = RulesConfig()
