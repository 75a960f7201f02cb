"""Native base actions: attacks, saving-throw effects, and plain text.

Bases list their own actions (a bite, a breath weapon, a wing buffet).
Each action is one of three variants; every variant can describe itself in
one line and serialise to a canonical export dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from mv_loadout.models.constants import ATTACK_RANGED


def signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


@dataclass(frozen=True, slots=True)
class AttackAction:
    """A weapon attack with a to-hit roll."""
    kind: ClassVar[str] = "attack"

    name: str
    to_hit: int = 0
    attack_type: str = "melee"
    damage: str = ""
    reach: str = ""
    range: str = ""
    target: str = "one target"
    extra: str = ""
    notes: str = ""

    @property
    def label(self) -> str:
        if self.attack_type == ATTACK_RANGED:
            return "Ranged Weapon Attack"
        return "Melee Weapon Attack"

    def describe(self) -> str:
        parts = [f"{self.label}: {signed(self.to_hit)} to hit"]
        if self.reach:
            parts.append(f"reach {self.reach}")
        if self.range:
            parts.append(f"range {self.range}")
        parts.append(self.target or "one target")
        out = ", ".join(parts) + f". Hit: {self.damage or '—'}."
        for tail in (self.extra, self.notes):
            if tail:
                out += f" {tail}"
        return out

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kind": self.kind,
            "name": self.name,
            "toHit": self.to_hit,
            "attackType": self.attack_type,
            "damage": self.damage,
            "target": self.target,
        }
        for key, value in (
            ("reach", self.reach),
            ("range", self.range),
            ("extra", self.extra),
            ("notes", self.notes),
        ):
            if value:
                out[key] = value
        return out


@dataclass(frozen=True, slots=True)
class SaveAction:
    """An area or targeted effect resolved by the target's saving throw."""
    kind: ClassVar[str] = "save"

    name: str
    ability: str = "DEX"
    dc: int | None = None
    range: str = ""
    area: str = ""
    on_fail: str = ""
    on_save: str = ""
    notes: str = ""

    def describe(self) -> str:
        dc = "—" if self.dc is None else str(self.dc)
        out = f"Each target must make a DC {dc} {self.ability or '—'} saving throw."
        if self.range:
            out += f" Range {self.range}."
        if self.area:
            out += f" Area {self.area}."
        out += f" Failure: {self.on_fail or '—'}."
        out += f" Success: {self.on_save or '—'}."
        if self.notes:
            out += f" {self.notes}"
        return out

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "kind": self.kind,
            "name": self.name,
            "save": {"ability": self.ability, "dc": self.dc},
            "onFail": self.on_fail,
            "onSave": self.on_save,
        }
        for key, value in (("range", self.range), ("area", self.area), ("notes", self.notes)):
            if value:
                out[key] = value
        return out


@dataclass(frozen=True, slots=True)
class TextAction:
    """Anything else: a description with no roll of its own."""
    kind: ClassVar[str] = "text"

    name: str
    text: str = ""

    def describe(self) -> str:
        return self.text

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "text": self.text}


Action = Union[AttackAction, SaveAction, TextAction]

# Base record field -> export document key, in statblock order.
ACTION_SECTIONS: tuple[tuple[str, str, str], ...] = (
    ("actions", "actions", "Actions"),
    ("bonus_actions", "bonusActions", "Bonus Actions"),
    ("reactions", "reactions", "Reactions"),
    ("legendary_actions", "legendaryActions", "Legendary Actions"),
)
