"""Rebuild a character sheet from a LoadoutDocument alone.

Reference implementation of what a virtual-tabletop importer must do with
an exported document. Nothing here reads the catalog: every value comes
from the document, which already carries modded stats and
encumbrance-adjusted speeds.

Each action gets a chat roll command for the ``npcaction`` roll template,
so a sheet can trigger every action on its own.
"""

from __future__ import annotations

import html
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from mv_loadout.codec.export_document import SCHEMA
from mv_loadout.engine.attack_bonus import ability_modifier
from mv_loadout.errors import DocumentParseError
from mv_loadout.models.actions import AttackAction, signed
from mv_loadout.models.constants import ABILITY_NAMES, ATTACK_MELEE, canonical_mode
from mv_loadout.models.values import as_dict, as_int, as_number, as_str
from mv_loadout.parser.record_parser import parse_action


logger = logging.getLogger(__name__)

PREFERRED_SPEED_ORDER = ("fly", "swim", "ground", "burrow", "climb")
_MOVEMENT_RESERVED = {"mode", "standard", "max", "acceleration", "climb_rate"}
_HTML_HINT = re.compile(r"^<|<br\s*/?>|</(p|div|span|pre|code)>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")


@dataclass(slots=True)
class SheetRow:
    name: str
    desc: str


@dataclass(slots=True)
class SheetAction:
    name: str
    description: str
    roll_command: str
    source: str = "base"     # "base" | "derived" | "mounted"


@dataclass(slots=True)
class ImportedSheet:
    """What an importer writes onto the target character sheet."""

    name: str
    ac: float | str
    hp: float | str
    abilities: dict[str, float] = field(default_factory=dict)
    ability_mods: dict[str, int] = field(default_factory=dict)
    movement_mode: str = ""
    speed_text: str = "—"
    traits: list[SheetRow] = field(default_factory=list)
    actions: list[SheetAction] = field(default_factory=list)


# --- Text extraction ---------------------------------------------------------


def _extract_json(text: str) -> str | None:
    """Slice from the first ``{``/``[`` to the last ``}``/``]``."""
    starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
    if not starts:
        return None
    start = min(starts)
    end = max(text.rfind("}"), text.rfind("]"))
    if end <= start:
        return None
    return text[start:end + 1]


def parse_export_text(raw_text: str) -> Any:
    """Parse a document pasted into a note, possibly wrapped in HTML."""
    text = (raw_text or "").strip()
    if _HTML_HINT.search(text):
        text = _TAG.sub("", text)
    text = html.unescape(text).replace("\u00a0", " ").strip()

    json_text = _extract_json(text)
    if json_text is None:
        raise DocumentParseError("Could not find JSON in the document text")
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise DocumentParseError(f"Document JSON is invalid: {exc.msg} (line {exc.lineno})") from exc


def _schema_major(schema: str) -> tuple[str, str]:
    family, _, version = schema.partition("/")
    return family, version.split(".", 1)[0]


def check_schema(doc: dict[str, Any]) -> None:
    schema = as_str(doc.get("schema"))
    if schema == SCHEMA:
        return
    if not schema:
        logger.warning("Document has no schema; reading it as %s", SCHEMA)
        return
    if _schema_major(schema) != _schema_major(SCHEMA):
        raise DocumentParseError(f"Unsupported document schema {schema!r} (expected {SCHEMA})")
    logger.warning("Document schema %s differs from %s; importing anyway", schema, SCHEMA)


# --- Roll commands -----------------------------------------------------------


def escape_braces(text: str) -> str:
    """Keep ``{{``/``}}`` in free text from closing a roll template field."""
    return (text or "").replace("{{", "〔〔").replace("}}", "〕〕")


def attack_roll_command(name: str, attack_bonus: int, range_text: str, damage: str, description: str) -> str:
    nm = escape_braces(name or "Attack")
    cmd = (
        f"&{{template:npcaction}} {{{{name={nm}}}}} {{{{rname={nm}}}}} "
        f"{{{{attack=1}}}} {{{{r1=[[1d20+{attack_bonus}]]}}}} {{{{always=1}}}}"
    )
    if range_text:
        cmd += f" {{{{range={escape_braces(range_text)}}}}}"
    if damage:
        cmd += f" {{{{damage=1}}}} {{{{dmg1flag=1}}}} {{{{dmg1=[[{escape_braces(damage)}]]}}}}"
    if description:
        cmd += f" {{{{description={escape_braces(description)}}}}}"
    return cmd


def text_roll_command(name: str, description: str) -> str:
    nm = escape_braces(name or "Action")
    cmd = f"&{{template:npcaction}} {{{{name={nm}}}}} {{{{rname={nm}}}}}"
    if description:
        cmd += f" {{{{description={escape_braces(description)}}}}}"
    return cmd


# --- Sheet sections ----------------------------------------------------------


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def speed_text(movement: dict[str, Any]) -> str:
    """Every movement mode, primary first, e.g. ``fly 60 ft. (max 100 ft.); ground 30 ft.``."""
    parts: dict[str, str] = {}

    def add(mode: str, standard: Any, max_speed: Any) -> None:
        s, m = as_number(standard), as_number(max_speed)
        if not s and not m:
            return
        mode = mode.lower()
        if mode in parts:
            return
        if m and m != s:
            parts[mode] = f"{mode} {_fmt(s)} ft. (max {_fmt(m)} ft.)"
        else:
            parts[mode] = f"{mode} {_fmt(s)} ft."

    primary = canonical_mode(as_str(movement.get("mode")))
    if primary:
        add(primary, movement.get("standard"), movement.get("max"))
    for mode in PREFERRED_SPEED_ORDER:
        add(mode, movement.get(mode), movement.get(f"{mode}_max"))
    for key in movement:
        if key in _MOVEMENT_RESERVED or key.endswith("_max") or key in PREFERRED_SPEED_ORDER:
            continue
        if f"{key}_max" in movement:
            add(canonical_mode(key), movement[key], movement[f"{key}_max"])
    return "; ".join(parts.values()) or "—"


def _named(raw: Any) -> tuple[str, str, str]:
    """(id, name, desc) from an object entry or a bare string."""
    if isinstance(raw, dict):
        entry_id = as_str(raw.get("id"))
        name = as_str(raw.get("name")) or entry_id
        desc = as_str(raw.get("desc")) or as_str(raw.get("description")) or as_str(raw.get("text"))
        return entry_id, name, desc
    text = as_str(raw)
    return text, text, text


def trait_rows(doc: dict[str, Any]) -> list[SheetRow]:
    rows: list[SheetRow] = []
    for raw in doc.get("traits") or []:
        trait_id, name, desc = _named(raw)
        rows.append(SheetRow(name or trait_id, desc or trait_id))

    movement = as_dict(doc.get("movement"))
    stats = as_dict(doc.get("stats"))
    for label, value in (
        ("Acceleration", movement.get("acceleration")),
        ("Climb Rate", movement.get("climb_rate")),
        ("Agility", stats.get("agility")),
    ):
        text = as_str(value)
        if text:
            rows.append(SheetRow(label, text))

    crew_lines = []
    for group_id, raw in as_dict(doc.get("crewStats")).items():
        row = as_dict(raw)
        crew_lines.append(
            f"{group_id}: DEX {signed(as_int(row.get('dexMod')))}, PB {signed(as_int(row.get('profBonus')))}"
        )
    if crew_lines:
        rows.append(SheetRow("Crew", "\n".join(crew_lines)))

    mods = doc.get("mods") or []
    if mods:
        for raw in mods:
            mod_id, name, desc = _named(raw)
            rows.append(SheetRow(f"Mod: {name or 'Mod'}", desc or mod_id or name))
    else:
        for mod_id in doc.get("modIds") or []:
            rows.append(SheetRow(f"Mod: {mod_id}", str(mod_id)))
    return rows


def _base_action(raw: Any) -> SheetAction | None:
    action = parse_action(raw)
    if action is None:
        return None
    desc = action.describe()
    if isinstance(action, AttackAction):
        if action.range:
            range_text = f"Range {action.range}"
        elif action.reach:
            range_text = f"Reach {action.reach}"
        else:
            range_text = ""
        cmd = attack_roll_command(action.name, action.to_hit, range_text, action.damage, desc)
    else:
        cmd = text_roll_command(action.name, desc)
    return SheetAction(action.name, desc, cmd)


def _mounted_action(raw: Any) -> SheetAction:
    row = as_dict(raw)
    weapon_name = as_str(row.get("name")) or as_str(row.get("weaponId"))
    name = f"Mounted: {weapon_name}"
    reach = as_str(row.get("reach"))
    weapon_range = as_str(row.get("range"))
    melee = as_str(row.get("attackType")).lower() == ATTACK_MELEE or bool(reach)
    bonus = as_int(row.get("attackBonus"))
    damage = as_str(row.get("damage"))

    if melee:
        label = "Melee Weapon Attack"
        range_text = f"Reach {reach or '5 ft'}"
        range_line = f"Reach: {(reach or '5 ft').rstrip('.')}. "
    else:
        label = "Ranged Weapon Attack"
        range_text = f"Range {weapon_range}" if weapon_range else ""
        range_line = f"Range: {weapon_range.rstrip('.')}. " if weapon_range else ""

    desc = (
        f"{weapon_name} ×{as_int(row.get('qty'))} ({as_str(row.get('arc'))}). "
        f"{label}: {signed(bonus)} to hit. {range_line}Hit: {damage or '—'}."
    )
    traits = [_named(t)[1] for t in row.get("traits") or []]
    if traits:
        desc += f" Traits: {', '.join(traits)}."
    return SheetAction(name, desc, attack_roll_command(name, bonus, range_text, damage, desc), "mounted")


def sheet_actions(doc: dict[str, Any]) -> list[SheetAction]:
    """Base actions, a derived Acceleration action, then mounted weapons."""
    base_actions = doc.get("actions") if isinstance(doc.get("actions"), list) else []
    actions = [a for a in map(_base_action, base_actions) if a is not None]

    accel = as_str(as_dict(doc.get("movement")).get("acceleration")).strip()
    if accel and not any(a.name.lower() == "acceleration" for a in actions):
        text = f"Acceleration: [[{accel}]]"
        actions.append(SheetAction("Acceleration", text, text_roll_command("Acceleration", text), "derived"))

    for raw in doc.get("mountedWeapons") or []:
        actions.append(_mounted_action(raw))
    return actions


def import_document(data: Any) -> ImportedSheet:
    """Build a sheet from parsed document data."""
    if not isinstance(data, dict):
        raise DocumentParseError("Document must be a JSON object")
    check_schema(data)

    stats = as_dict(data.get("stats"))
    abilities: dict[str, float] = {}
    mods: dict[str, int] = {}
    for key in ABILITY_NAMES:
        score = as_number(stats.get(key), 10)
        abilities[key] = score
        mods[key] = ability_modifier(score)

    movement = as_dict(data.get("movement"))
    return ImportedSheet(
        name=as_str(data.get("baseName")) or as_str(data.get("name")) or as_str(data.get("baseId")),
        ac=as_number(stats.get("ac")) if stats.get("ac") is not None else "",
        hp=as_number(stats.get("hp")) if stats.get("hp") is not None else "",
        abilities=abilities,
        ability_mods=mods,
        movement_mode=canonical_mode(as_str(movement.get("mode"))),
        speed_text=speed_text(movement),
        traits=trait_rows(data),
        actions=sheet_actions(data),
    )


def import_text(raw_text: str) -> ImportedSheet:
    return import_document(parse_export_text(raw_text))
