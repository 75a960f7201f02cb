"""Load the reference catalog from a directory of JSON files.

Loading is all-or-nothing: if any required file is missing or unreadable,
CatalogLoadError is raised and no partial catalog is returned, so no
derivation ever runs against half the data.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from mv_loadout.errors import CatalogLoadError
from mv_loadout.models.catalog import Catalog
from mv_loadout.models.constants import KIND_MOUNT, KIND_VEHICLE
from mv_loadout.parser.record_parser import parse_base, parse_mod, parse_saddle, parse_weapon
from mv_loadout.parser.trait_glossary import normalize_trait_glossary


logger = logging.getLogger(__name__)

DATA_DIR_ENV = "MV_LOADOUT_DATA"

MOUNTS_FILE = "mounts.json"
VEHICLES_FILE = "vehicles.json"
SADDLES_FILE = "saddles.json"
WEAPONS_FILE = "weapons.json"
MODS_FILE = "mods.json"
TRAITS_FILE = "traits.json"

REQUIRED_FILES: tuple[str, ...] = (
    MOUNTS_FILE,
    VEHICLES_FILE,
    SADDLES_FILE,
    WEAPONS_FILE,
    TRAITS_FILE,
)


def default_data_dir() -> Path:
    """``$MV_LOADOUT_DATA`` if set, else ``data/`` at the repo root."""
    env_path = os.environ.get(DATA_DIR_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path(__file__).resolve().parents[3] / "data"


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CatalogLoadError(f"{path.name} not found in {path.parent}") from exc
    except OSError as exc:
        raise CatalogLoadError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"{path.name} is not valid JSON: {exc}") from exc


def _rows(data: Any, path: Path) -> list[Any]:
    if not isinstance(data, list):
        raise CatalogLoadError(f"{path.name} must contain a JSON list")
    return data


def parse_catalog(
    *,
    mounts: list[Any],
    vehicles: list[Any],
    saddles: list[Any],
    weapons: list[Any],
    mods: list[Any] | None = None,
    traits: Any = None,
) -> Catalog:
    """Build a Catalog from already-decoded JSON rows."""
    bases = [parse_base(row, KIND_MOUNT) for row in mounts]
    bases += [parse_base(row, KIND_VEHICLE) for row in vehicles]
    return Catalog.build(
        bases=[b for b in bases if b is not None],
        saddles=[s for s in map(parse_saddle, saddles) if s is not None],
        weapons=[w for w in map(parse_weapon, weapons) if w is not None],
        mods=[m for m in map(parse_mod, mods or []) if m is not None],
        traits=normalize_trait_glossary(traits),
    )


def load_catalog(data_dir: Path | None = None) -> Catalog:
    """Read every catalog file under *data_dir*; ``mods.json`` is optional."""
    root = Path(data_dir) if data_dir is not None else default_data_dir()
    try:
        raw = {name: _read_json(root / name) for name in REQUIRED_FILES}
        mods_path = root / MODS_FILE
        mods = _rows(_read_json(mods_path), mods_path) if mods_path.exists() else []
        catalog = parse_catalog(
            mounts=_rows(raw[MOUNTS_FILE], root / MOUNTS_FILE),
            vehicles=_rows(raw[VEHICLES_FILE], root / VEHICLES_FILE),
            saddles=_rows(raw[SADDLES_FILE], root / SADDLES_FILE),
            weapons=_rows(raw[WEAPONS_FILE], root / WEAPONS_FILE),
            mods=mods,
            traits=raw[TRAITS_FILE],
        )
    except CatalogLoadError:
        logger.error("Reference data unavailable under %s", root)
        raise

    if not catalog.bases:
        logger.error("No mounts or vehicles loaded from %s", root)
        raise CatalogLoadError(f"No mounts or vehicles loaded from {root}")

    logger.info(
        "Loaded catalog from %s: %d bases, %d saddles, %d weapons, %d mods, %d traits",
        root,
        len(catalog.bases),
        len(catalog.saddles),
        len(catalog.weapons),
        len(catalog.mods),
        len(catalog.traits),
    )
    return catalog
