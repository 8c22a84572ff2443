from __future__ import annotations

import os
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

MATERIALS_CSV = Path(os.environ.get("WALLCALC_MATERIALS_CSV", ROOT / "context" / "materials.csv"))
STORE_PATH = Path(os.environ.get("WALLCALC_STORE", ROOT / "context" / "assemblies.json"))
