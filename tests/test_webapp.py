import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webapp.app import app

WALL = {
    "name": "Brick-EPS",
    "layers": [
        {"material": "Solid brick", "thickness_mm": 300},
        {"material": "EPS polystyrene 15 kg/m3", "thickness_mm": 140},
    ],
    "climate": {"theta_i": 20, "phi_i": 50, "theta_e": -15, "phi_e": 80},
}


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setitem(app.config, "STORE_PATH", tmp_path / "assemblies.json")
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_usage(client):
    rv = client.get("/")
    assert rv.status_code == 200
    assert rv.get_json()["ok"] is True


def test_analyze(client):
    rv = client.post("/analyze", json=WALL)
    assert rv.status_code == 200
    result = rv.get_json()["result"]
    assert result["U"] == pytest.approx(1 / (0.17 + 0.3 / 0.8 + 0.14 / 0.035))
    assert len(result["layers"]) == 2
    assert result["has_condensation"] is False


def test_analyze_inline_material(client):
    payload = {"layers": [{"material": {"name": "Board", "lambda_": 0.05, "rho": 200, "c": 1500, "mu": 5},
                           "thickness_mm": 100}]}
    rv = client.post("/analyze", json=payload)
    assert rv.status_code == 200
    assert rv.get_json()["result"]["layers"][0]["material"] == "Board"


def test_analyze_rejects_bad_input(client):
    assert client.post("/analyze", json={"layers": []}).status_code == 400
    bad = {"layers": [{"material": {"name": "Broken", "lambda_": 0}, "thickness_mm": 100}]}
    rv = client.post("/analyze", json=bad)
    assert rv.status_code == 400
    assert rv.get_json()["ok"] is False
    unknown = {"layers": [{"material": "Unobtainium", "thickness_mm": 100}]}
    assert client.post("/analyze", json=unknown).status_code == 400


def test_validate(client):
    rv = client.post("/validate", json=WALL)
    assert rv.status_code == 200
    assert isinstance(rv.get_json()["findings"], list)


def test_bridges(client):
    rv = client.post("/bridges", json=dict(WALL, perimeter=40, floor_area=100))
    data = rv.get_json()
    assert data["configuration"] == "insulated"
    assert data["u_correction"] == pytest.approx(0.324)


def test_visualization(client):
    rv = client.post("/visualization", json=dict(WALL, scheme="thermal"))
    assert rv.status_code == 200
    assert len(rv.get_json()["result"]["layers"]) == 2


def test_optimize(client):
    rv = client.post("/optimize", json={})
    data = rv.get_json()
    assert data["optimal_thickness"] == 14.5
    assert len(data["data_points"]) == 99
    assert client.post("/optimize", json={"bogus": 1}).status_code == 400
    assert client.post("/optimize", json={"lambda_": 0}).status_code == 400


def test_optimize_coerces_string_numbers(client):
    rv = client.post("/optimize", json={"lambda_": "0.035", "lifetime_years": "20"})
    assert rv.status_code == 200
    assert rv.get_json()["optimal_thickness"] == 14.5
    bad = client.post("/optimize", json={"lambda_": "thin"})
    assert bad.status_code == 400
    assert bad.get_json()["ok"] is False
    assert client.post("/optimize", json={"use_inflation": "yes"}).status_code == 400


def test_materials_search(client):
    rv = client.get("/materials?q=brick")
    names = [m["name"] for m in rv.get_json()["materials"]]
    assert "Solid brick" in names
    assert all("brick" in n.lower() for n in names)


def test_assemblies_crud(client):
    assert client.post("/assemblies", json={"layers": []}).status_code == 400
    assert client.post("/assemblies", json=WALL).status_code == 201
    listed = client.get("/assemblies").get_json()["assemblies"]
    assert [a["name"] for a in listed] == ["Brick-EPS"]
    rv = client.get("/assemblies/Brick-EPS")
    assert rv.get_json()["assembly"]["layers"][0]["material"] == "Solid brick"
    assert client.delete("/assemblies/Brick-EPS").status_code == 200
    assert client.get("/assemblies/Brick-EPS").status_code == 404
    assert client.delete("/assemblies/Brick-EPS").status_code == 404


def test_materials_category_filter(client):
    rv = client.get("/materials?category=insulation")
    mats = rv.get_json()["materials"]
    assert mats
    assert all(m["category"] == "insulation" for m in mats)
    assert client.get("/materials?category=plastic").status_code == 400


def test_inline_material_assembly_round_trip(client):
    payload = {
        "name": "Eco",
        "layers": [
            {"material": "Solid brick", "thickness_mm": 300},
            {"material": {"name": "Board", "lambda_": 0.05, "rho": 200, "c": 1500, "mu": 5,
                          "category": "wood"}, "thickness_mm": 100},
        ],
    }
    assert client.post("/assemblies", json=payload).status_code == 201
    rv = client.get("/assemblies/Eco")
    assert rv.status_code == 200
    layers = rv.get_json()["assembly"]["layers"]
    assert "material_data" not in layers[0]
    assert layers[1]["material_data"]["lambda_"] == pytest.approx(0.05)
    assert layers[1]["material_data"]["category"] == "wood"


def test_stored_assembly_with_missing_material(client, tmp_path):
    record = {"name": "Old", "created_at": "2024-01-01T00:00:00",
              "assembly": {"layers": [{"material": "Discontinued board", "thickness_mm": 50}]}}
    (tmp_path / "assemblies.json").write_text(json.dumps([record]), encoding="utf-8")
    rv = client.get("/assemblies/Old")
    assert rv.status_code == 409
    assert rv.get_json()["ok"] is False


def test_post_to_root_redirects(client):
    rv = client.post("/")
    assert rv.status_code == 303
