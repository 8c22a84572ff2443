"""Named wall assemblies persisted as a JSON list.

Records are keyed by name: saving replaces an existing record of the same
name, deleting removes it. Every call is a full load-modify-write cycle
and is not atomic; concurrent writers must serialise themselves.

Layers refer to catalog materials by name. A material that is not in the
catalog (or differs from the catalog entry of the same name) is stored in
full under ``material_data`` and rebuilt from there on load.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import config
from .dataclasses import Category, Climate, Material, WallAssembly, WallLayer
from .materials import all_materials, by_name

logger = logging.getLogger(__name__)


def material_to_dict(material: Material) -> Dict[str, object]:
    return {
        "name": material.name,
        "lambda_": material.lambda_,
        "rho": material.rho,
        "c": material.c,
        "mu": material.mu,
        "category": material.category.value,
        "price_per_m3": material.price_per_m3,
        "is_air_gap": material.is_air_gap,
        "fixed_resistance": material.fixed_resistance,
        "manufacturer": material.manufacturer,
    }


def material_from_dict(data: Dict[str, object]) -> Material:
    fixed_r = data.get("fixed_resistance")
    return Material(
        name=str(data["name"]),
        lambda_=float(data["lambda_"]),
        rho=float(data.get("rho", 0.0)),
        c=float(data.get("c", 0.0)),
        mu=float(data.get("mu", 0.0)),
        category=Category(data.get("category", Category.OTHER.value)),
        price_per_m3=float(data.get("price_per_m3", 0.0)),
        is_air_gap=bool(data.get("is_air_gap", False)),
        fixed_resistance=float(fixed_r) if fixed_r is not None else None,
        manufacturer=str(data.get("manufacturer", "")),
    )


def assembly_to_dict(
    assembly: WallAssembly, materials: Optional[Dict[str, Material]] = None
) -> Dict[str, object]:
    """Serialise an assembly; layers whose material is not in ``materials`` carry it in full."""
    c = assembly.climate
    layers = []
    for l in assembly.layers:
        row: Dict[str, object] = {"material": l.material.name, "thickness_mm": l.thickness_mm}
        if materials is None or materials.get(l.material.name) != l.material:
            row["material_data"] = material_to_dict(l.material)
        layers.append(row)
    return {
        "name": assembly.name,
        "Rsi": assembly.Rsi,
        "Rse": assembly.Rse,
        "climate": {"theta_i": c.theta_i, "phi_i": c.phi_i, "theta_e": c.theta_e, "phi_e": c.phi_e},
        "layers": layers,
    }


def assembly_from_dict(data: Dict[str, object], materials: Dict[str, Material]) -> WallAssembly:
    """Rebuild an assembly, resolving layer materials by name.

    Raises ``KeyError`` for a material that is neither stored with the
    layer nor present in ``materials``.
    """
    layers = []
    for row in data.get("layers", []):
        if row.get("material_data"):
            material = material_from_dict(row["material_data"])
        else:
            name = row["material"]
            if name not in materials:
                raise KeyError(f"Unknown material {name!r}")
            material = materials[name]
        layers.append(WallLayer(material, float(row["thickness_mm"])))
    cl = data.get("climate") or {}
    defaults = Climate()
    return WallAssembly(
        layers=layers,
        Rsi=float(data.get("Rsi", 0.13)),
        Rse=float(data.get("Rse", 0.04)),
        climate=Climate(
            theta_i=float(cl.get("theta_i", defaults.theta_i)),
            phi_i=float(cl.get("phi_i", defaults.phi_i)),
            theta_e=float(cl.get("theta_e", defaults.theta_e)),
            phi_e=float(cl.get("phi_e", defaults.phi_e)),
        ),
        name=str(data.get("name", "")),
    )


class AssemblyStore:
    def __init__(self, path: Optional[Path] = None, materials: Optional[Iterable[Material]] = None):
        self.path = Path(path) if path is not None else config.STORE_PATH
        self._materials = list(materials) if materials is not None else None

    def _catalog(self) -> Dict[str, Material]:
        return by_name(self._materials if self._materials is not None else all_materials())

    def _load(self) -> Optional[List[Dict[str, object]]]:
        """Parsed records, or ``None`` when the file cannot be read as a list."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable assembly store %s: %s", self.path, exc)
            return None
        if not isinstance(data, list):
            logger.warning("Ignoring assembly store %s: expected a list", self.path)
            return None
        return data

    def _read(self) -> List[Dict[str, object]]:
        if not self.path.exists():
            return []
        records = self._load()
        return records if records is not None else []

    def _write(self, records: List[Dict[str, object]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.exists() and self._load() is None:
            backup = self.path.with_name(self.path.name + ".corrupt")
            self.path.replace(backup)
            logger.warning("Moved unreadable assembly store to %s", backup)
        self.path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")

    def list(self) -> List[Dict[str, object]]:
        """Saved records as ``{name, created_at}``, in save order."""
        return [{"name": r.get("name"), "created_at": r.get("created_at")} for r in self._read()]

    def names(self) -> List[str]:
        return [str(r.get("name")) for r in self._read()]

    def load(self, name: str) -> Optional[WallAssembly]:
        for record in self._read():
            if record.get("name") == name:
                return assembly_from_dict(record["assembly"], self._catalog())
        return None

    def save(self, assembly: WallAssembly, name: str) -> None:
        records = [r for r in self._read() if r.get("name") != name]
        records.append({
            "name": name,
            "created_at": datetime.now().isoformat(timespec="seconds"),
            "assembly": assembly_to_dict(assembly, self._catalog()),
        })
        self._write(records)
        logger.info("Saved assembly %r (%d layers)", name, len(assembly.layers))

    def delete(self, name: str) -> bool:
        records = self._read()
        kept = [r for r in records if r.get("name") != name]
        if len(kept) == len(records):
            return False
        self._write(kept)
        logger.info("Deleted assembly %r", name)
        return True
