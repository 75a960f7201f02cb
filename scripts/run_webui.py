"""Run the loadout web UI runtime with a fresh exported state."""

from __future__ import annotations

import argparse
from pathlib import Path

from mv_loadout.infra.logger import configure_logging
from mv_loadout.webui.server import serve


def main() -> None:
    parser = argparse.ArgumentParser(description="Run web UI")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=4173)
    parser.add_argument("--no-open", action="store_true", help="Do not open a browser tab")
    parser.add_argument("--data", type=Path, default=None, help="Catalog directory")
    parser.add_argument("--base", default=None, help="Starting mount or vehicle id")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--log-file", type=Path, default=None)
    args = parser.parse_args()
    configure_logging(args.log_level, json=args.log_json, logfile=args.log_file)

    serve(
        host=args.host,
        port=args.port,
        open_browser=not args.no_open,
        data_dir=args.data,
        base_id=args.base,
    )


if __name__ == "__main__":
    main()
