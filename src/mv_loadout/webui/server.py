"""Web UI serving utilities with a live loadout runtime."""

from __future__ import annotations

import json
import logging
import threading
import webbrowser
from dataclasses import dataclass
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from mv_loadout.codec.export_document import dumps_document
from mv_loadout.engine.loadout_engine import LoadoutEngine
from mv_loadout.models.values import as_int, as_number
from mv_loadout.parser.catalog_loader import load_catalog
from mv_loadout.webui.export_state import build_webui_state_from_engine


logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]
WEBUI_DIR = REPO_ROOT / "webui"
STATE_PATH = WEBUI_DIR / "state.json"
DOCUMENT_PATH = WEBUI_DIR / "loadout.json"


@dataclass(slots=True)
class ActionResult:
    ok: bool
    message: str | None = None


def _optional_id(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    return None if value in (None, "") else str(value)


def _request_int(payload: dict, key: str, default: int = 0) -> int:
    value = payload.get(key, default)
    if as_number(value, None) is None:
        raise ValueError(f"{key} must be a finite number")
    return as_int(value)


def _request_flag(payload: dict, key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false")
    return value


class WebUiRuntime:
    """Live, mutable loadout runtime backing web UI API requests."""

    def __init__(
        self,
        engine: LoadoutEngine | None = None,
        *,
        data_dir: Path | None = None,
        base_id: str | None = None,
    ) -> None:
        self.engine = engine or LoadoutEngine.new_loadout(load_catalog(data_dir), base_id)
        self._lock = threading.RLock()

    def snapshot(self) -> dict:
        with self._lock:
            return build_webui_state_from_engine(self.engine)

    def document(self) -> dict:
        with self._lock:
            return self.engine.export()

    def apply(self, path: str, payload: dict) -> ActionResult:
        with self._lock:
            try:
                if path == "/api/base":
                    return self._action_base(payload)
                if path == "/api/saddle":
                    return self._action_saddle(payload)
                if path == "/api/mods/add":
                    self.engine.add_mod(str(payload.get("mod_id", "")))
                    return ActionResult(ok=True)
                if path == "/api/mods/remove":
                    self.engine.remove_mod(str(payload.get("mod_id", "")))
                    return ActionResult(ok=True)
                if path == "/api/mods/move":
                    self.engine.move_mod(str(payload.get("mod_id", "")), _request_int(payload, "index"))
                    return ActionResult(ok=True)
                if path == "/api/mounts/weapon":
                    return self._action_mount_weapon(payload)
                if path == "/api/mounts/qty":
                    self.engine.set_mount_quantity(
                        str(payload.get("point_id", "")), _request_int(payload, "qty")
                    )
                    return ActionResult(ok=True)
                if path == "/api/mounts/proficiency":
                    self.engine.set_proficiency(
                        str(payload.get("point_id", "")), _request_flag(payload, "proficient")
                    )
                    return ActionResult(ok=True)
                if path == "/api/crew":
                    return self._action_crew(payload)
            except (TypeError, ValueError) as exc:
                logger.info("Rejected %s: %s", path, exc)
                return ActionResult(ok=False, message=str(exc))
            return ActionResult(ok=False, message=f"Unknown API endpoint: {path}")

    def _action_base(self, payload: dict) -> ActionResult:
        base_id = _optional_id(payload, "base_id")
        if base_id is None:
            return ActionResult(ok=False, message="base_id is required")
        self.engine.select_base(base_id)
        return ActionResult(ok=True)

    def _action_saddle(self, payload: dict) -> ActionResult:
        self.engine.select_saddle(_optional_id(payload, "saddle_id"))
        return ActionResult(ok=True)

    def _action_mount_weapon(self, payload: dict) -> ActionResult:
        point_id = str(payload.get("point_id", ""))
        # Weapon and quantity land together or not at all.
        draft = self.engine.copy()
        derivation = draft.set_mount_weapon(point_id, _optional_id(payload, "weapon_id"))
        if payload.get("qty") is not None and not derivation.config.selection(point_id).is_empty:
            draft.set_mount_quantity(point_id, _request_int(payload, "qty"))
        self.engine = draft
        return ActionResult(ok=True)

    def _action_crew(self, payload: dict) -> ActionResult:
        group_id = _optional_id(payload, "group_id")
        if group_id is None:
            return ActionResult(ok=False, message="group_id is required")
        self.engine.set_crew_stats(
            group_id,
            dex_mod=payload.get("dex_mod"),
            prof_bonus=payload.get("prof_bonus"),
        )
        return ActionResult(ok=True)


class WebUiRequestHandler(SimpleHTTPRequestHandler):
    """Static-file handler with JSON API routes."""

    def __init__(self, *args, runtime: WebUiRuntime, directory: str, **kwargs):
        self._runtime = runtime
        super().__init__(*args, directory=directory, **kwargs)

    def _send_json(self, payload: Any, status: int = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path in {"/api/state", "/state.json"}:
            self._send_json(self._runtime.snapshot())
            return
        if path == "/api/export":
            self._send_json(self._runtime.document())
            return
        super().do_GET()

    def do_POST(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if not path.startswith("/api/"):
            self._send_json({"ok": False, "message": "Unknown endpoint"}, status=HTTPStatus.NOT_FOUND)
            return

        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            length = 0

        raw = self.rfile.read(length) if length > 0 else b"{}"
        try:
            payload = json.loads(raw.decode("utf-8") if raw else "{}")
        except ValueError:
            self._send_json({"ok": False, "message": "Invalid JSON body"}, status=HTTPStatus.BAD_REQUEST)
            return

        if not isinstance(payload, dict):
            self._send_json({"ok": False, "message": "JSON body must be an object"}, status=HTTPStatus.BAD_REQUEST)
            return

        result = self._runtime.apply(path, payload)
        response = {
            "ok": bool(result.ok),
            "message": result.message,
            "state": self._runtime.snapshot(),
        }
        status = HTTPStatus.OK if result.ok else HTTPStatus.BAD_REQUEST
        self._send_json(response, status=status)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


def write_state(path: Path = STATE_PATH, *, runtime: WebUiRuntime) -> dict:
    """Write a one-shot JSON snapshot for offline inspection."""
    path.parent.mkdir(parents=True, exist_ok=True)
    state = runtime.snapshot()
    path.write_text(json.dumps(state, indent=2), encoding="utf-8")
    return state


def write_document(path: Path = DOCUMENT_PATH, *, runtime: WebUiRuntime) -> dict:
    """Write the current export document exactly as serialised."""
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = runtime.document()
    path.write_text(dumps_document(doc), encoding="utf-8")
    logger.info("Wrote loadout document %s", path)
    return doc


def make_server(
    host: str,
    port: int,
    directory: Path = WEBUI_DIR,
    *,
    runtime: WebUiRuntime | None = None,
) -> ThreadingHTTPServer:
    active_runtime = runtime or WebUiRuntime()
    handler = partial(
        WebUiRequestHandler,
        directory=str(directory),
        runtime=active_runtime,
    )
    server = ThreadingHTTPServer((host, port), handler)
    server.webui_runtime = active_runtime  # type: ignore[attr-defined]
    return server


def serve(
    *,
    host: str = "127.0.0.1",
    port: int = 4173,
    open_browser: bool = True,
    data_dir: Path | None = None,
    base_id: str | None = None,
) -> None:
    runtime = WebUiRuntime(data_dir=data_dir, base_id=base_id)
    write_state(STATE_PATH, runtime=runtime)
    server = make_server(host, port, WEBUI_DIR, runtime=runtime)
    url = f"http://{host}:{port}/api/state"
    logger.info("State written: %s", STATE_PATH)
    logger.info("Base: %s | points: %s", runtime.engine.derivation.derived.name, runtime.engine.derivation.total_points)
    logger.info("Serving %s at %s", WEBUI_DIR, url)

    if open_browser:
        webbrowser.open(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
