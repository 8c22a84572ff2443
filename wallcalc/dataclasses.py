from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import InvalidInputError


class Category(str, Enum):
    INSULATION = "insulation"
    MASONRY = "masonry"
    CONCRETE = "concrete"
    WOOD = "wood"
    PLASTER = "plaster"
    MEMBRANE = "membrane"
    AIR_GAP = "air_gap"
    OTHER = "other"


@dataclass(frozen=True)
class Material:
    name: str
    lambda_: float  # thermal conductivity [W/mK]
    rho: float = 0.0  # density [kg/m3]
    c: float = 0.0  # specific heat [J/kgK]
    mu: float = 0.0  # vapor diffusion resistance factor [-]
    category: Category = Category.OTHER
    price_per_m3: float = 0.0
    is_air_gap: bool = False
    fixed_resistance: Optional[float] = None  # [m2K/W], air gaps only
    manufacturer: str = ""

    def __post_init__(self) -> None:
        has_fixed_r = self.is_air_gap and self.fixed_resistance is not None
        if self.lambda_ <= 0 and not has_fixed_r:
            raise InvalidInputError(
                f"Material {self.name!r}: thermal conductivity must be positive, got {self.lambda_}"
            )
        for attr in ("rho", "c", "mu", "price_per_m3"):
            if getattr(self, attr) < 0:
                raise InvalidInputError(f"Material {self.name!r}: {attr} must not be negative")
        if self.fixed_resistance is not None and self.fixed_resistance < 0:
            raise InvalidInputError(f"Material {self.name!r}: fixed resistance must not be negative")


@dataclass
class WallLayer:
    material: Material
    thickness_mm: float

    def __post_init__(self) -> None:
        if self.thickness_mm < 0:
            raise InvalidInputError(
                f"Layer {self.material.name!r}: thickness must not be negative, got {self.thickness_mm} mm"
            )

    @property
    def thickness_m(self) -> float:
        return self.thickness_mm / 1000.0


@dataclass
class Climate:
    theta_i: float = 20.0  # indoor temperature [°C]
    phi_i: float = 50.0  # indoor relative humidity [%]
    theta_e: float = -15.0  # outdoor temperature [°C]
    phi_e: float = 80.0  # outdoor relative humidity [%]


@dataclass
class WallAssembly:
    """Layers ordered from the interior to the exterior face.

    Nothing derived is stored here; see :mod:`wallcalc.core`.
    """

    layers: List[WallLayer] = field(default_factory=list)
    Rsi: float = 0.13  # internal surface resistance [m2K/W]
    Rse: float = 0.04  # external surface resistance [m2K/W]
    climate: Climate = field(default_factory=Climate)
    name: str = ""

    def add_layer(self, layer: WallLayer, index: Optional[int] = None) -> None:
        if index is None:
            self.layers.append(layer)
        else:
            self.layers.insert(index, layer)

    def remove_layer(self, index: int) -> WallLayer:
        return self.layers.pop(index)

    def move_layer(self, src: int, dst: int) -> None:
        layer = self.layers.pop(src)
        self.layers.insert(dst, layer)
