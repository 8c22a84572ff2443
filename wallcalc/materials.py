from __future__ import annotations

import csv
from typing import Dict, Iterable, List, Optional

from . import config
from .dataclasses import Category, Material

MATERIALS_CSV = config.MATERIALS_CSV

_TRUE = {"1", "yes", "true", "y", "x"}


def _require_float(s: str | float | int | None, field: str, row: int) -> float:
    """Parse *s* as float or raise ``ValueError`` with row context."""
    if s is None or str(s).strip() == "":
        raise ValueError(f"Missing value for {field!r} in row {row}")
    if isinstance(s, (int, float)):
        return float(s)
    txt = str(s).strip().replace("\u00a0", " ").replace(" ", "").replace(",", ".")
    try:
        return float(txt)
    except ValueError as exc:
        raise ValueError(f"Invalid number for {field!r} in row {row}: {s}") from exc


def _optional_float(s: Optional[str], field: str, row: int, default: Optional[float] = None) -> Optional[float]:
    if s is None or str(s).strip() == "":
        return default
    return _require_float(s, field, row)


def _category(s: Optional[str], row: int) -> Category:
    txt = (s or "").strip().lower()
    if not txt:
        return Category.OTHER
    try:
        return Category(txt)
    except ValueError as exc:
        raise ValueError(f"Unknown category {s!r} in row {row}") from exc


def load_materials() -> List[Material]:
    """Load the material catalog from context/materials.csv if present.

    Expected columns (case-insensitive, flexible order):
    name, category, lambda, rho, c, mu, price_per_m3, air_gap, fixed_r, manufacturer
    """
    if not MATERIALS_CSV.exists():
        return []
    out: List[Material] = []
    with MATERIALS_CSV.open("r", encoding="utf-8") as f:
        rdr = csv.DictReader(f)
        for idx, raw in enumerate(rdr, start=2):  # header is row 1
            if not any(raw.values()):
                continue
            row = {(k or "").strip().lower(): v for k, v in raw.items()}
            name = (row.get("name") or "").strip()
            if not name:
                raise ValueError(f"Missing value for 'name' in row {idx}")
            try:
                out.append(Material(
                    name=name,
                    lambda_=_require_float(row.get("lambda") or row.get("lambda_"), "lambda", idx),
                    rho=_optional_float(row.get("rho"), "rho", idx, 0.0),
                    c=_optional_float(row.get("c"), "c", idx, 0.0),
                    mu=_optional_float(row.get("mu"), "mu", idx, 0.0),
                    category=_category(row.get("category"), idx),
                    price_per_m3=_optional_float(row.get("price_per_m3"), "price_per_m3", idx, 0.0),
                    is_air_gap=(row.get("air_gap") or "").strip().lower() in _TRUE,
                    fixed_resistance=_optional_float(row.get("fixed_r"), "fixed_r", idx),
                    manufacturer=(row.get("manufacturer") or "").strip(),
                ))
            except ValueError as exc:
                raise ValueError(f"Error parsing materials.csv: {exc}") from exc
    return out


def all_materials(custom: Optional[Iterable[Material]] = None) -> List[Material]:
    """Catalog materials followed by user-defined ones."""
    return load_materials() + list(custom or [])


def by_name(materials: Iterable[Material]) -> Dict[str, Material]:
    """Index materials by name; later entries win."""
    return {m.name: m for m in materials}


def get_material(name: str, materials: Optional[Iterable[Material]] = None) -> Material:
    """Look a material up by exact name, raising ``KeyError`` if unknown."""
    index = by_name(materials if materials is not None else load_materials())
    try:
        return index[name]
    except KeyError:
        raise KeyError(f"Unknown material {name!r}") from None


def categories() -> List[Category]:
    return list(Category)
