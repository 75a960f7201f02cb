"""Build a loadout from command-line choices and export its document.

Usage examples:
    python -m scripts.export_loadout --base white_wyvern --saddle war_saddle
    python -m scripts.export_loadout --base white_wyvern --mod frost_plating \\
        --mount left_flank=light_crossbow:2 --proficient left_flank --crew rider=3,2
    python -m scripts.export_loadout --base sand_skiff --out skiff.json
"""

from __future__ import annotations

import argparse
from pathlib import Path

from mv_loadout.codec.export_document import dumps_document
from mv_loadout.engine.loadout_engine import LoadoutEngine
from mv_loadout.errors import LoadoutError
from mv_loadout.infra.logger import configure_logging
from mv_loadout.parser.catalog_loader import DATA_DIR_ENV, load_catalog


def parse_mount_spec(raw: str) -> tuple[str, str, int | None]:
    """``point=weapon[:qty]`` -> (point, weapon, qty or None)."""
    point, sep, rest = raw.partition("=")
    if not sep or not point.strip() or not rest.strip():
        raise ValueError(f"Expected POINT=WEAPON[:QTY], got: {raw!r}")
    weapon, _, qty = rest.partition(":")
    return point.strip(), weapon.strip(), int(qty) if qty.strip() else None


def parse_crew_spec(raw: str) -> tuple[str, int, int | None]:
    """``group=dex[,pb]`` -> (group, dex_mod, prof_bonus or None)."""
    group, sep, rest = raw.partition("=")
    if not sep or not group.strip():
        raise ValueError(f"Expected GROUP=DEX[,PB], got: {raw!r}")
    dex, _, pb = rest.partition(",")
    return group.strip(), int(dex, 0), int(pb, 0) if pb.strip() else None


def add_loadout_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--data", type=Path, default=None,
                        help=f"Catalog directory (default: ${DATA_DIR_ENV} or ./data)")
    parser.add_argument("--base", default=None, help="Mount or vehicle id (default: first in catalog)")
    parser.add_argument("--saddle", default=None, help="Saddle id, or 'none' to ride bare")
    parser.add_argument("--mod", action="append", default=[], help="Mod id; repeat in application order")
    parser.add_argument("--mount", action="append", default=[], metavar="POINT=WEAPON[:QTY]")
    parser.add_argument("--proficient", action="append", default=[], metavar="POINT")
    parser.add_argument("--crew", action="append", default=[], metavar="GROUP=DEX[,PB]")
    parser.add_argument("--log-level", default="WARNING")


def build_engine(args: argparse.Namespace) -> LoadoutEngine:
    """Apply parsed CLI choices in editor order: base, saddle, mods, mounts, crew."""
    engine = LoadoutEngine.new_loadout(load_catalog(args.data), args.base)
    if args.saddle is not None:
        engine.select_saddle(None if args.saddle.lower() == "none" else args.saddle)
    for mod_id in args.mod:
        engine.add_mod(mod_id)
    for raw in args.mount:
        point_id, weapon_id, qty = parse_mount_spec(raw)
        engine.set_mount_weapon(point_id, weapon_id)
        if qty is not None:
            engine.set_mount_quantity(point_id, qty)
    for point_id in args.proficient:
        engine.set_proficiency(point_id, True)
    for raw in args.crew:
        group_id, dex_mod, prof_bonus = parse_crew_spec(raw)
        engine.set_crew_stats(group_id, dex_mod=dex_mod, prof_bonus=prof_bonus)
    return engine


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Export a mount/vehicle loadout document")
    add_loadout_arguments(parser)
    parser.add_argument("--out", type=Path, default=None, help="Write the document here instead of stdout")
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        engine = build_engine(args)
    except (LoadoutError, ValueError) as exc:
        parser.error(str(exc))

    text = dumps_document(engine.export())
    if args.out is None:
        print(text)
        return
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(text, encoding="utf-8")
    print(f"Wrote {args.out}")


if __name__ == "__main__":
    main()
