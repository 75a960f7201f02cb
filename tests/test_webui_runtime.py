import json
import threading
import urllib.error
import urllib.request

from mv_loadout.engine.loadout_engine import LoadoutEngine
from mv_loadout.webui.export_state import build_webui_state
from mv_loadout.webui.server import WebUiRuntime, make_server, write_document
from tests.factories import GUNNER, RIDER, base, catalog, mod, point, saddle, war_catalog, weapon


def _runtime(**overrides) -> WebUiRuntime:
    return WebUiRuntime(LoadoutEngine.new_loadout(war_catalog(**overrides), "wyvern"))


def test_build_webui_state_shape():
    state = build_webui_state(base_id="white_wyvern")

    assert "generated_at" in state
    assert state["app"]["schema"] == "mv-loadout/1.0"
    assert state["config"]["baseId"] == "white_wyvern"
    assert {b["id"] for b in state["options"]["bases"]} >= {"white_wyvern", "sand_skiff"}
    assert state["summary"]["encumbrance"] == "Normal"
    assert state["statblock"].startswith("White Wyvern")
    assert state["document"]["baseId"] == "white_wyvern"


def test_snapshot_lists_points_with_options():
    state = _runtime().snapshot()
    rows = {row["id"]: row for row in state["mounting_points"]}
    assert set(rows) == {"left", "jaws"}
    assert rows["left"]["options"] == [
        {"id": "crossbow", "name": "Crossbow", "max_qty": 2},
        {"id": "heavy_crossbow", "name": "Heavy Crossbow", "max_qty": 1},
    ]
    assert rows["left"]["weapon_id"] == "none"
    assert rows["left"]["attack_bonus"] is None
    assert [g["id"] for g in state["crew_groups"]] == ["rider", "gunner"]


def test_mount_weapon_with_quantity():
    runtime = _runtime()
    result = runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow", "qty": 2})
    assert result.ok
    rows = {row["id"]: row for row in runtime.snapshot()["mounting_points"]}
    assert (rows["left"]["weapon_id"], rows["left"]["qty"]) == ("crossbow", 2)


def test_mount_weapon_rejected_quantity_changes_nothing():
    runtime = _runtime()
    runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "heavy_crossbow"})
    before = runtime.engine.config
    result = runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow", "qty": 5})
    assert not result.ok
    assert runtime.engine.config == before


def test_rejected_edits_report_message():
    runtime = _runtime()
    result = runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "ballista"})
    assert not result.ok
    assert "Ballista" in result.message
    assert not runtime.apply("/api/mounts/qty", {"point_id": "left", "qty": "many"}).ok
    assert not runtime.apply("/api/base", {}).ok
    assert not runtime.apply("/api/crew", {"dex_mod": 2}).ok


def test_mod_endpoints():
    runtime = _runtime(mods=[mod("a"), mod("b")])
    assert runtime.apply("/api/mods/add", {"mod_id": "a"}).ok
    assert runtime.apply("/api/mods/add", {"mod_id": "b"}).ok
    assert runtime.apply("/api/mods/move", {"mod_id": "b", "index": 0}).ok
    assert runtime.engine.config.mod_ids == ["b", "a"]
    assert runtime.apply("/api/mods/remove", {"mod_id": "b"}).ok
    assert runtime.engine.config.mod_ids == ["a"]
    assert not runtime.apply("/api/mods/remove", {"mod_id": "b"}).ok


def test_crew_and_proficiency_endpoints():
    runtime = _runtime()
    runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow"})
    assert runtime.apply("/api/mounts/proficiency", {"point_id": "left", "proficient": True}).ok
    assert runtime.apply("/api/crew", {"group_id": "gunner", "dex_mod": 3, "prof_bonus": 2}).ok
    rows = {row["id"]: row for row in runtime.snapshot()["mounting_points"]}
    assert rows["left"]["attack_bonus"] == 5


def test_saddle_endpoint_clears_saddle():
    runtime = _runtime()
    assert runtime.apply("/api/saddle", {"saddle_id": ""}).ok
    assert runtime.snapshot()["mounting_points"] == []


def test_unknown_endpoint():
    result = _runtime().apply("/api/nope", {})
    assert not result.ok
    assert result.message == "Unknown API endpoint: /api/nope"


def test_write_document(tmp_path):
    runtime = _runtime()
    path = tmp_path / "out" / "loadout.json"
    doc = write_document(path, runtime=runtime)
    assert json.loads(path.read_text(encoding="utf-8")) == doc


def test_non_finite_numbers_rejected_without_change():
    runtime = _runtime(mods=[mod("a"), mod("b")])
    runtime.apply("/api/mods/add", {"mod_id": "a"})
    runtime.apply("/api/mods/add", {"mod_id": "b"})
    runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow", "qty": 2})
    before = runtime.engine.config
    payloads = [
        ("/api/mounts/qty", {"point_id": "left", "qty": json.loads("Infinity")}),
        ("/api/mods/move", {"mod_id": "b", "index": json.loads("1e999")}),
        ("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow", "qty": float("nan")}),
    ]
    for path, payload in payloads:
        result = runtime.apply(path, payload)
        assert not result.ok
        assert "must be a finite number" in result.message
    assert runtime.engine.config == before


def test_proficiency_requires_boolean():
    runtime = _runtime()
    runtime.apply("/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow"})
    result = runtime.apply("/api/mounts/proficiency", {"point_id": "left", "proficient": "false"})
    assert not result.ok
    assert runtime.engine.config.is_proficient("left") is False


def test_empty_point_shows_default_crew_group():
    cat = catalog(
        bases=[base("wyvern")],
        saddles=[saddle("war_saddle", mounting_points=(point("tail", size="L"),), crew_groups=(RIDER, GUNNER))],
        weapons=[weapon("crossbow")],
    )
    runtime = WebUiRuntime(LoadoutEngine.new_loadout(cat, "wyvern"))
    (row,) = runtime.snapshot()["mounting_points"]
    assert row["weapon_id"] == "none"
    assert row["crew_group"] == "rider"


def _post(url: str, payload: dict | bytes) -> tuple[int, dict]:
    data = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    request = urllib.request.Request(
        url,
        data=data,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, json.loads(response.read())
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read())


def test_http_round_trip(tmp_path):
    server = make_server("127.0.0.1", 0, tmp_path, runtime=_runtime())
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base_url = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        status, body = _post(f"{base_url}/api/mounts/weapon", {"point_id": "left", "weapon_id": "crossbow"})
        assert status == 200
        assert body["ok"] is True
        assert body["state"]["config"]["mounts"]["left"] == {"weaponId": "crossbow", "qty": 1}

        status, body = _post(f"{base_url}/api/mounts/weapon", {"point_id": "left", "weapon_id": "ballista"})
        assert status == 400
        assert body["ok"] is False
        assert body["state"]["config"]["mounts"]["left"]["weaponId"] == "crossbow"

        status, body = _post(f"{base_url}/api/mounts/qty", b'{"point_id": "left", "qty": Infinity}')
        assert status == 400
        assert body["ok"] is False
        assert body["state"]["config"]["mounts"]["left"] == {"weaponId": "crossbow", "qty": 1}

        status, body = _post(f"{base_url}/api/mounts/qty", b"\xff\xfe")
        assert status == 400
        assert body == {"ok": False, "message": "Invalid JSON body"}

        with urllib.request.urlopen(f"{base_url}/api/export", timeout=5) as response:
            doc = json.loads(response.read())
        assert doc["mountedWeapons"][0]["weaponId"] == "crossbow"
    finally:
        server.shutdown()
        server.server_close()
