"""Size classes, movement modes, and encumbrance tiers.

Two different size scales exist in the data: creature sizes (Tiny through
Gargantuan) describe bases and drive carrying capacity, while the compact
XS-XL scale describes mounting points and weapons and drives how many
weapons fit on one point.
"""

from enum import IntEnum


KIND_MOUNT = "Mount"
KIND_VEHICLE = "Vehicle"
BASE_KINDS: tuple[str, ...] = (KIND_MOUNT, KIND_VEHICLE)

CREATURE_SIZES: tuple[str, ...] = (
    "Tiny",
    "Small",
    "Medium",
    "Large",
    "Huge",
    "Gargantuan",
)

# Carrying capacity multiplier per creature size.
SIZE_CAPACITY_MULT: dict[str, float] = {
    "Tiny": 0.5,
    "Small": 1,
    "Medium": 1,
    "Large": 2,
    "Huge": 4,
    "Gargantuan": 8,
}

# Mounting point / weapon size scale. A point holds as many ranged weapons
# as fit in its units.
SIZE_ORDER: tuple[str, ...] = ("XS", "S", "M", "L", "XL")
SIZE_UNITS: dict[str, int] = {"XS": 1, "S": 2, "M": 4, "L": 8, "XL": 16}

# First mode a base defines is its primary movement.
MOVEMENT_PRIORITY: tuple[str, ...] = ("fly", "ground", "swim", "burrow", "climb")
MOVEMENT_NONE = "none"

ATTACK_MELEE = "melee"
ATTACK_RANGED = "ranged"
WEAPON_TYPE_BOTH = "both"

NO_WEAPON = "none"

# Tags/traits marking a mount that can only use the sentinel saddle.
NO_SADDLE_TAG = "tentacle"
NO_SADDLE_TRAIT = "no_saddle"

DEFAULT_CREW_GROUP_ID = "operator"
DEFAULT_CREW_GROUP_LABEL = "Operator"

ABILITY_NAMES: dict[str, str] = {
    "str": "Strength",
    "dex": "Dexterity",
    "con": "Constitution",
}


class EncumbranceTier(IntEnum):
    """Load states, ordered from lightest to heaviest."""
    NORMAL = 0
    ENCUMBERED = 1
    HEAVILY_ENCUMBERED = 2
    OVERLOADED = 3

    @property
    def label(self) -> str:
        return ENCUMBRANCE_TIER_LABELS[self]


ENCUMBRANCE_TIER_LABELS: dict[EncumbranceTier, str] = {
    EncumbranceTier.NORMAL: "Normal",
    EncumbranceTier.ENCUMBERED: "Encumbered",
    EncumbranceTier.HEAVILY_ENCUMBERED: "Heavily Encumbered",
    EncumbranceTier.OVERLOADED: "Overloaded",
}


def canonical_mode(mode: str) -> str:
    """Movement mode key; the old ``speed`` name means ground."""
    key = str(mode).strip().lower()
    return "ground" if key == "speed" else key
