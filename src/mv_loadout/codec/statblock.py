"""Plain-text stat block for a derived loadout.

Reads only the derivation (and the trait glossary), so what it shows is
exactly what the export document carries.
"""

from __future__ import annotations

from mv_loadout.engine.attack_bonus import ability_modifier
from mv_loadout.engine.pipeline import LoadoutDerivation
from mv_loadout.models.actions import ACTION_SECTIONS, signed
from mv_loadout.models.catalog import Catalog
from mv_loadout.parser.trait_glossary import resolve_trait


def _fmt(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _speed_line(derivation: LoadoutDerivation) -> str:
    enc = derivation.encumbrance
    parts = []
    for mode, block in derivation.derived.movement.items():
        max_speed = enc.max_speed if mode == enc.movement_mode else block.max
        text = f"{mode} {_fmt(block.standard)} ft."
        if max_speed != block.standard:
            text += f" (max {_fmt(max_speed)} ft.)"
        parts.append(text)
    return ", ".join(parts) if parts else "—"


def render_statblock(derivation: LoadoutDerivation, catalog: Catalog) -> str:
    derived = derivation.derived
    enc = derivation.encumbrance
    lines = [
        derived.name,
        f"{derived.size} {derived.kind}",
        "",
        f"Armor Class {_fmt(derived.base_ac)}",
        f"Hit Points {_fmt(derived.base_hp)}",
        f"Speed {_speed_line(derivation)}",
        "",
        "  ".join(
            f"{label} {_fmt(score)} ({signed(ability_modifier(score))})"
            for label, score in (("STR", derived.strength), ("DEX", derived.dex), ("CON", derived.con))
        ),
        "",
        f"Agility {_fmt(enc.agility)}",
    ]
    if enc.agility_halved:
        lines.append("Agility halved due to load")
    lines.append(f"Encumbrance {enc.state} ({_fmt(enc.payload)} / {_fmt(enc.capacity)} lb)")
    lines.append(f"Points {_fmt(derivation.total_points)}")

    if derivation.saddle is not None:
        lines.append(f"Saddle {derivation.saddle.name}")
    if derivation.applied_mods:
        lines.append("Mods " + ", ".join(m.name for m in derivation.applied_mods))

    for attr, _key, title in ACTION_SECTIONS:
        actions = getattr(derived, attr)
        if not actions:
            continue
        lines += ["", title]
        lines += [f"{a.name}. {a.describe()}" for a in actions]

    lines += ["", "Mounted Weapons"]
    if not derivation.mounted_weapons:
        lines.append("—")
    for mounted in derivation.mounted_weapons:
        weapon = mounted.weapon
        reach_or_range = f"Reach {weapon.reach or '5 ft.'}" if weapon.is_melee else f"Range {weapon.range or '—'}"
        traits = ", ".join(resolve_trait(catalog.traits, t).name for t in weapon.traits) or "—"
        lines.append(
            f"{weapon.name} x{mounted.qty} ({mounted.point.arc or mounted.point.label}). "
            f"{signed(mounted.attack_bonus)} to hit. {reach_or_range.rstrip('.')}. "
            f"Hit: {weapon.damage or '—'}. Crew: {mounted.crew_group.label}. Traits: {traits}."
        )

    if derived.traits:
        lines += ["", "Traits"]
        for trait_id in derived.traits:
            entry = resolve_trait(catalog.traits, trait_id)
            lines.append(f"{entry.name}. {entry.desc}".rstrip())
    return "\n".join(lines)
