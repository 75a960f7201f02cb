"""Print the text stat block for a loadout.

Usage:
    python -m scripts.dump_statblock --base white_wyvern --mount left_flank=light_crossbow:2
    python -m scripts.dump_statblock --document loadout.json

With --document, the configuration recorded in a previously exported
document is re-derived against the current catalog.
"""

import argparse
from pathlib import Path

from mv_loadout.codec.export_document import configuration_from_document
from mv_loadout.codec.import_document import parse_export_text
from mv_loadout.engine.loadout_engine import LoadoutEngine
from mv_loadout.errors import LoadoutError
from mv_loadout.infra.logger import configure_logging
from mv_loadout.parser.catalog_loader import load_catalog
from scripts.export_loadout import add_loadout_arguments, build_engine


def main(argv=None):
    parser = argparse.ArgumentParser(description="Dump a loadout stat block")
    add_loadout_arguments(parser)
    parser.add_argument("--document", type=Path, default=None,
                        help="Re-derive the loadout stored in an exported document")
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.document is not None:
            doc = parse_export_text(args.document.read_text(encoding="utf-8"))
            engine = LoadoutEngine.from_state(configuration_from_document(doc), load_catalog(args.data))
        else:
            engine = build_engine(args)
    except (LoadoutError, ValueError, OSError) as exc:
        parser.error(str(exc))

    print(engine.statblock())
    for point_id in engine.derivation.healed_point_ids:
        print(f"(reset illegal weapon on {point_id})")


if __name__ == "__main__":
    main()
