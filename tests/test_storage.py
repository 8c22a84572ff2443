import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from wallcalc.dataclasses import Category, Climate, Material, WallAssembly, WallLayer
from wallcalc.storage import AssemblyStore, assembly_from_dict, assembly_to_dict

BRICK = Material("Solid brick", lambda_=0.8, rho=1800, c=880, mu=5, category=Category.MASONRY)
EPS = Material("EPS", lambda_=0.035, rho=15, c=1270, mu=40, category=Category.INSULATION)


def make_store(tmp_path):
    return AssemblyStore(tmp_path / "assemblies.json", materials=[BRICK, EPS])


def sample(eps_mm=140):
    return WallAssembly(
        layers=[WallLayer(BRICK, 300), WallLayer(EPS, eps_mm)],
        climate=Climate(theta_i=21, phi_i=55, theta_e=-12, phi_e=84),
    )


def test_empty_store(tmp_path):
    store = make_store(tmp_path)
    assert store.list() == []
    assert store.load("anything") is None
    assert store.delete("anything") is False


def test_save_and_load(tmp_path):
    store = make_store(tmp_path)
    store.save(sample(), "House")
    loaded = store.load("House")
    assert [l.material.name for l in loaded.layers] == ["Solid brick", "EPS"]
    assert loaded.layers[1].thickness_mm == 140
    assert loaded.climate == Climate(theta_i=21, phi_i=55, theta_e=-12, phi_e=84)
    assert store.list()[0]["name"] == "House"
    assert store.list()[0]["created_at"]


def test_save_replaces_by_name(tmp_path):
    store = make_store(tmp_path)
    store.save(sample(100), "House")
    store.save(sample(), "Garage")
    store.save(sample(200), "House")
    assert store.names() == ["Garage", "House"]
    assert store.load("House").layers[1].thickness_mm == 200


def test_delete(tmp_path):
    store = make_store(tmp_path)
    store.save(sample(), "House")
    assert store.delete("House") is True
    assert store.names() == []


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "assemblies.json"
    path.write_text("{not json", encoding="utf-8")
    store = AssemblyStore(path, materials=[BRICK, EPS])
    assert store.list() == []
    store.save(sample(), "House")
    assert store.names() == ["House"]
    assert (tmp_path / "assemblies.json.corrupt").read_text(encoding="utf-8") == "{not json"


def test_unknown_material_raises():
    data = assembly_to_dict(sample(), {"Solid brick": BRICK, "EPS": EPS})
    assert all("material_data" not in row for row in data["layers"])
    with pytest.raises(KeyError):
        assembly_from_dict(data, {"Solid brick": BRICK})


def test_custom_material_survives_round_trip(tmp_path):
    board = Material("Wood fibre board", lambda_=0.045, rho=160, c=2100, mu=5, category=Category.WOOD)
    store = make_store(tmp_path)
    store.save(WallAssembly(layers=[WallLayer(BRICK, 300), WallLayer(board, 120)]), "Eco")
    loaded = store.load("Eco")
    assert loaded.layers[0].material is BRICK
    assert loaded.layers[1].material == board
