import sys
from pathlib import Path
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from wallcalc import materials
from wallcalc.dataclasses import Category, Material


def write_csv(tmp_path, monkeypatch, text):
    f = tmp_path / "materials.csv"
    f.write_text(text, encoding="utf-8")
    monkeypatch.setattr(materials, "MATERIALS_CSV", f)
    return f


def test_load_materials_parses_csv(tmp_path, monkeypatch):
    write_csv(tmp_path, monkeypatch, (
        "name,category,lambda,rho,c,mu,price_per_m3,air_gap,fixed_r,manufacturer\n"
        "Sample,masonry,\"0,5\",1000,900,5,2000,,,Acme\n"
        "Gap,air_gap,0.025,1.2,1005,1,0,yes,0.18,\n"
    ))
    data = materials.load_materials()
    assert data[0] == Material(
        name="Sample", lambda_=0.5, rho=1000.0, c=900.0, mu=5.0,
        category=Category.MASONRY, price_per_m3=2000.0, manufacturer="Acme",
    )
    assert data[1].is_air_gap
    assert data[1].fixed_resistance == pytest.approx(0.18)


def test_load_materials_raises_on_bad_row(tmp_path, monkeypatch):
    write_csv(tmp_path, monkeypatch, (
        "name,category,lambda,rho,c,mu,price_per_m3\n"
        "Bad,masonry,not_a_number,1000,900,5,0\n"
    ))
    with pytest.raises(ValueError, match="row 2"):
        materials.load_materials()


def test_load_materials_rejects_zero_conductivity(tmp_path, monkeypatch):
    write_csv(tmp_path, monkeypatch, "name,lambda\nBroken,0\n")
    with pytest.raises(ValueError):
        materials.load_materials()


def test_missing_catalog_is_empty(tmp_path, monkeypatch):
    monkeypatch.setattr(materials, "MATERIALS_CSV", tmp_path / "missing.csv")
    assert materials.load_materials() == []


def test_bundled_catalog():
    catalog = materials.load_materials()
    names = {m.name for m in catalog}
    assert "Solid brick" in names
    assert "EPS polystyrene 15 kg/m3" in names
    assert all(m.lambda_ > 0 for m in catalog)
    assert any(m.is_air_gap and m.fixed_resistance for m in catalog)


def test_custom_materials_follow_catalog(tmp_path, monkeypatch):
    write_csv(tmp_path, monkeypatch, "name,lambda\nSample,0.5\n")
    custom = Material("My board", lambda_=0.05)
    merged = materials.all_materials([custom])
    assert [m.name for m in merged] == ["Sample", "My board"]
    assert materials.get_material("My board", merged) is custom
    with pytest.raises(KeyError):
        materials.get_material("Nope", merged)
