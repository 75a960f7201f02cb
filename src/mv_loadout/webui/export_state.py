"""Export loadout editor state for the web UI runtime."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mv_loadout.codec.export_document import SCHEMA
from mv_loadout.engine.loadout_engine import LoadoutEngine
from mv_loadout.engine.mounting_points import resolve_crew_group
from mv_loadout.parser.catalog_loader import load_catalog


def _base_options(engine: LoadoutEngine) -> list[dict[str, Any]]:
    return [
        {"id": b.id, "name": b.name, "type": b.kind, "size": b.size}
        for b in engine.catalog.bases.values()
    ]


def _mounting_point_rows(engine: LoadoutEngine) -> list[dict[str, Any]]:
    derivation = engine.derivation
    config = derivation.config
    mounted = {mw.point.id: mw for mw in derivation.mounted_weapons}
    rows = []
    for point in derivation.mounting_points:
        selection = config.selection(point.id)
        entry = mounted.get(point.id)
        rows.append(
            {
                "id": point.id,
                "label": point.label,
                "arc": point.arc,
                "size": point.size,
                "weapon_type": point.weapon_type,
                "crew_group": resolve_crew_group(point, derivation.crew_groups).id,
                "weapon_id": selection.weapon_id,
                "qty": selection.qty,
                "proficient": config.is_proficient(point.id),
                "attack_bonus": entry.attack_bonus if entry else None,
                "options": [
                    {"id": w.id, "name": w.name, "max_qty": maximum}
                    for w, maximum in engine.weapon_options(point.id)
                ],
            }
        )
    return rows


def build_webui_state_from_engine(engine: LoadoutEngine) -> dict[str, Any]:
    """Build a current snapshot from a live engine."""
    derivation = engine.derivation
    enc = derivation.encumbrance
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "app": {"schema": SCHEMA},
        "config": derivation.config.to_dict(),
        "options": {
            "bases": _base_options(engine),
            "saddles": [{"id": s.id, "name": s.name} for s in engine.saddle_options()],
            "mods": [{"id": m.id, "name": m.name, "desc": m.desc} for m in engine.mod_options()],
        },
        "crew_groups": [{"id": g.id, "label": g.label} for g in derivation.crew_groups],
        "mounting_points": _mounting_point_rows(engine),
        "summary": {
            "points": derivation.total_points,
            "carried_weight": enc.payload,
            "capacity": enc.capacity,
            "encumbrance": enc.state,
            "agility": enc.agility,
            "agility_halved": enc.agility_halved,
            "skipped_mod_ids": list(derivation.derived.skipped_mod_ids),
            "healed_point_ids": list(derivation.healed_point_ids),
        },
        "statblock": engine.statblock(),
        "document": engine.export(),
    }


def build_webui_state(
    *,
    data_dir: Path | None = None,
    base_id: str | None = None,
) -> dict[str, Any]:
    """One-shot snapshot of a fresh loadout (first base unless *base_id*)."""
    engine = LoadoutEngine.new_loadout(load_catalog(data_dir), base_id)
    return build_webui_state_from_engine(engine)
