"""Trait glossary normalisation.

The glossary file has shipped in three shapes over time:

1. a list: ``[{"id": "hover", "name": "Hover", "desc": "..."}, ...]``
2. a map: ``{"hover": {"name": "Hover", "desc": "..."}, ...}``
3. a legacy wrapper: ``{"mountVehicleTraits": {"hover": {...}}}``

All three normalise to ``id -> TraitEntry``.
"""

from __future__ import annotations

import re
from typing import Any

from mv_loadout.models.catalog import TraitEntry
from mv_loadout.models.values import as_dict, as_str


LEGACY_WRAPPER_KEY = "mountVehicleTraits"


def trait_label(trait_id: str) -> str:
    """Readable fallback label: ``deep_diver`` -> ``Deep Diver``."""
    text = str(trait_id).replace("_", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), text)


def _entry(trait_id: str, raw: Any) -> TraitEntry:
    row = as_dict(raw)
    if not row and isinstance(raw, str):
        return TraitEntry(name=trait_label(trait_id), desc=raw)
    return TraitEntry(
        name=as_str(row.get("name")) or trait_id,
        desc=as_str(row.get("desc")) or as_str(row.get("description")),
    )


def normalize_trait_glossary(raw: Any) -> dict[str, TraitEntry]:
    if isinstance(raw, list):
        out: dict[str, TraitEntry] = {}
        for item in raw:
            row = as_dict(item)
            trait_id = as_str(row.get("id"))
            if trait_id:
                out[trait_id] = _entry(trait_id, row)
        return out

    if isinstance(raw, dict):
        table = raw.get(LEGACY_WRAPPER_KEY)
        if isinstance(table, dict):
            raw = table
        return {str(k): _entry(str(k), v) for k, v in raw.items()}

    return {}


def resolve_trait(traits: dict[str, TraitEntry], trait_id: str) -> TraitEntry:
    """Glossary entry for *trait_id*, or a label-only entry when missing."""
    entry = traits.get(trait_id)
    if entry is not None:
        return entry
    return TraitEntry(name=trait_label(trait_id), desc="")
