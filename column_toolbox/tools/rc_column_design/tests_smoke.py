from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from urllib.error import HTTPError
from urllib.request import Request, urlopen

import pytest
from openpyxl import load_workbook

from column_toolbox.core.loader import discover_tools
from column_toolbox.core.settings import load_settings, save_settings

from .backend.app import run_server
from .models import SaveProjectRequest
from .projects import JsonProjectRepository
from .tool import TOOL

CASES = {
    "axial_load": {"dead_load": 200, "live_load": 100, "bar_diameter": 25, "number_of_bars": 8},
    "eccentric_load": {"dead_load": 200, "live_load": 100, "bar_diameter": 25, "number_of_bars": 8, "eccentricity_x": 50},
    "reinforcement": {"axial_load": 2000},
    "spiral_column": {"dead_load": 500, "live_load": 300},
    "spiral_column_design": {"dead_load": 500, "live_load": 300},
    "tied_column": {"dead_load": 500, "live_load": 300},
}


@pytest.fixture(autouse=True)
def _user_data(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path))
    return tmp_path


def _assert_exists(p: Path) -> None:
    assert p.exists(), f"Missing: {p}"


def _check_outputs(run_dir: Path) -> None:
    for name in ("report.html", "report.pdf", "calc_trace.json", "results.json", "results.xlsx", "inputs.csv", "run.log"):
        _assert_exists(run_dir / name)


def test_tool_is_discovered():
    assert TOOL in discover_tools()


def test_smoke_default_inputs():
    res = TOOL.run(TOOL.default_inputs())
    assert res["ok"] is True
    assert res["hint"]
    _check_outputs(Path(res["run_dir"]))


@pytest.mark.parametrize("module", sorted(CASES))
def test_smoke_every_module(module):
    res = TOOL.run_batch({"module": module, "inputs": CASES[module]})
    assert res["ok"] is True, res
    assert res["module"] == module
    assert res["status"] == "PASS"
    run_dir = Path(res["run_dir"])
    _check_outputs(run_dir)

    trace = json.loads((run_dir / "calc_trace.json").read_text(encoding="utf-8"))
    assert trace["meta"]["module"] == module
    assert any(s["id"] == "phiPn" for s in trace["steps"])

    wb = load_workbook(run_dir / "results.xlsx")
    assert wb.sheetnames == ["Inputs", "Assumptions", "Calcs", "Results"]
    assert "Starting" in (run_dir / "run.log").read_text(encoding="utf-8")


def test_smoke_rejects_unknown_module():
    res = TOOL.run_batch({"module": "beam", "inputs": {}})
    assert res["ok"] is False
    assert res["error"] == "Validation error"


def test_smoke_precheck_failure_returns_errors():
    res = TOOL.run_batch({"module": "axial_load", "inputs": {"length": 0}})
    assert res["ok"] is False
    assert res["errors"]
    assert "run_dir" not in res


def test_smoke_settings_control_decimals_and_hints():
    save_settings({"display_decimals": 0, "show_hints": False})
    assert load_settings()["display_decimals"] == 0
    res = TOOL.run_batch({"module": "axial_load", "inputs": CASES["axial_load"]})
    assert "Pu = 400 kN" in res["summary_text"]
    assert "hint" not in res


def test_smoke_invalid_settings_fall_back_to_defaults():
    save_settings({"display_decimals": "two", "show_hints": False})
    settings = load_settings()
    assert settings["display_decimals"] == 2
    assert settings["show_hints"] is False

    res = TOOL.run_batch({"module": "axial_load", "inputs": CASES["axial_load"]})
    assert res["ok"] is True, res
    assert "Pu = 400.00 kN" in res["summary_text"]


def test_repository_save_list_recent_delete(tmp_path):
    repo = JsonProjectRepository(tmp_path / "projects.json")
    ids = []
    for i in range(7):
        ids.append(repo.save(SaveProjectRequest(name=f"Column {i}", type="tied_column", inputs={"dead_load": i})))
        time.sleep(0.001)

    assert [p.id for p in repo.list()] == ids
    recent = repo.recent()
    assert len(recent) == 5
    assert recent[0].id == ids[-1]
    assert repo.get(ids[0]).name == "Column 0"

    repo.save(SaveProjectRequest(name="Roof Beam Support", type="axial_load"))
    assert [p.name for p in repo.search("column 1")] == ["Column 1"]
    assert [p.name for p in repo.search("BEAM")] == ["Roof Beam Support"]
    assert len(repo.search("")) == 8
    assert repo.search("slab") == []
    with pytest.raises(ValueError):
        repo.recent(-1)
    repo.delete(repo.search("roof")[0].id)

    repo.delete(ids[0])
    assert ids[0] not in {p.id for p in repo.list()}
    with pytest.raises(KeyError):
        repo.delete(ids[0])
    with pytest.raises(KeyError):
        repo.get("missing")

    # persisted across instances
    assert len(JsonProjectRepository(tmp_path / "projects.json").list()) == 6
    repo.clear()
    assert repo.list() == []


def _request(url: str, method: str = "GET", body=None):
    data = json.dumps(body).encode("utf-8") if body is not None else None
    req = Request(url, data=data, method=method, headers={"Content-Type": "application/json"})
    with urlopen(req, timeout=10) as r:
        return r.status, r.read().decode("utf-8")


def test_http_backend_roundtrip(tmp_path):
    server = run_server("127.0.0.1", 0, repository=JsonProjectRepository(tmp_path / "projects.json"))
    base = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, kwargs={"poll_interval": 0.05}, daemon=True)
    thread.start()
    try:
        status, body = _request(f"{base}/api/health")
        assert status == 200 and json.loads(body)["ok"] is True

        status, body = _request(f"{base}/api/modules")
        assert {m["id"] for m in json.loads(body)["modules"]} == set(CASES)

        with pytest.raises(HTTPError) as e:
            _request(f"{base}/api/report.html")
        assert e.value.code == 404

        status, body = _request(f"{base}/api/solve", "POST", {"module": "tied_column", "inputs": CASES["tied_column"]})
        solved = json.loads(body)
        assert status == 200 and solved["status"] == "PASS"

        status, body = _request(f"{base}/api/report.html")
        assert status == 200 and "Calculation Package" in body

        with pytest.raises(HTTPError) as e:
            _request(f"{base}/api/solve", "POST", {"module": "tied_column", "inputs": {"fc": -1}})
        assert e.value.code == 422

        status, body = _request(f"{base}/api/projects", "POST", {
            "name": "Level 2 C1", "type": "tied_column", "inputs": solved["inputs"], "results": solved["outputs"],
        })
        assert status == 201
        project_id = json.loads(body)["id"]

        status, body = _request(f"{base}/api/projects?recent=5")
        assert [p["id"] for p in json.loads(body)["projects"]] == [project_id]

        status, body = _request(f"{base}/api/projects?q=level%202")
        assert [p["id"] for p in json.loads(body)["projects"]] == [project_id]
        status, body = _request(f"{base}/api/projects?q=roof")
        assert json.loads(body)["projects"] == []

        for bad in ("-1", "abc"):
            with pytest.raises(HTTPError) as e:
                _request(f"{base}/api/projects?recent={bad}")
            assert e.value.code == 400

        status, _ = _request(f"{base}/api/projects/{project_id}", "DELETE")
        assert status == 200
        with pytest.raises(HTTPError) as e:
            _request(f"{base}/api/projects/{project_id}", "DELETE")
        assert e.value.code == 404
    finally:
        server.shutdown()
        server.server_close()
