"""Linear thermal bridges and their U-value correction (ČSN EN ISO 14683).

ψ values come from a static catalog keyed by bridge type and by how well
the wall is insulated.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .core import u_value
from .dataclasses import Category, WallAssembly
from .errors import InvalidInputError

DEFAULT_PERIMETER = 40.0  # m
DEFAULT_FLOOR_AREA = 100.0  # m²
BALCONY_LENGTH = 10.0  # m


class BridgeType(str, Enum):
    EXTERNAL_CORNER = "external_corner"
    INTERNAL_CORNER = "internal_corner"
    FOUNDATION = "foundation"
    ROOF_CONNECTION = "roof_connection"
    WINDOW_SILL = "window_sill"
    WINDOW_LINTEL = "window_lintel"
    FLOOR_SLAB = "floor_slab"
    BALCONY = "balcony"
    PILLAR = "pillar"
    BEAM = "beam"
    OTHER = "other"


class WallConfiguration(str, Enum):
    UNINSULATED = "uninsulated"
    THIN_INSULATION = "thin_insulation"  # < 80 mm
    INSULATED = "insulated"  # 80-150 mm
    THICK_INSULATION = "thick_insulation"  # >= 150 mm


class BridgeCriticality(str, Enum):
    NEGLIGIBLE = "negligible"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class BridgeData:
    name: str
    psi: float  # W/(mK)
    description: str


@dataclass
class LinearThermalBridge:
    name: str
    type: BridgeType
    psi: float  # W/(mK)
    length: float = 1.0  # m
    description: str = ""
    enabled: bool = True
    configuration: WallConfiguration = WallConfiguration.INSULATED

    @property
    def heat_loss(self) -> float:
        """ψ·L [W/K]"""
        return self.psi * self.length


@dataclass
class ThermalBridgeCollection:
    bridges: List[LinearThermalBridge] = field(default_factory=list)
    perimeter: float = DEFAULT_PERIMETER
    floor_area: float = DEFAULT_FLOOR_AREA

    @property
    def total_heat_loss(self) -> float:
        return sum(b.heat_loss for b in self.bridges if b.enabled)

    @property
    def u_correction(self) -> float:
        """ΔU = Σ ψ·L / floor area [W/(m²K)]"""
        if self.floor_area <= 0:
            raise InvalidInputError(f"Floor area must be positive, got {self.floor_area}")
        return self.total_heat_loss / self.floor_area


_U, _THIN, _INS, _THICK = (
    WallConfiguration.UNINSULATED,
    WallConfiguration.THIN_INSULATION,
    WallConfiguration.INSULATED,
    WallConfiguration.THICK_INSULATION,
)

CATALOG: Dict[Tuple[BridgeType, WallConfiguration], BridgeData] = {
    (BridgeType.EXTERNAL_CORNER, _U): BridgeData("External corner - uninsulated wall", 0.20, "Typical corner without insulation"),
    (BridgeType.EXTERNAL_CORNER, _THIN): BridgeData("External corner - thin insulation", 0.15, "Corner with insulation up to 80 mm"),
    (BridgeType.EXTERNAL_CORNER, _INS): BridgeData("External corner - standard insulation", 0.10, "Corner with 80-150 mm insulation"),
    (BridgeType.EXTERNAL_CORNER, _THICK): BridgeData("External corner - thick insulation", 0.05, "Corner with insulation over 150 mm"),

    (BridgeType.FOUNDATION, _U): BridgeData("Foundation - uninsulated wall", 0.80, "Wall-foundation junction without insulation"),
    (BridgeType.FOUNDATION, _THIN): BridgeData("Foundation - thin insulation", 0.65, "Junction with thin insulation"),
    (BridgeType.FOUNDATION, _INS): BridgeData("Foundation - standard insulation", 0.50, "Junction with standard insulation"),
    (BridgeType.FOUNDATION, _THICK): BridgeData("Foundation - thick insulation", 0.35, "Junction with thick insulation"),

    (BridgeType.ROOF_CONNECTION, _U): BridgeData("Parapet - uninsulated", 0.60, "Parapet without insulation"),
    (BridgeType.ROOF_CONNECTION, _THIN): BridgeData("Parapet - thin insulation", 0.45, "Parapet with thin insulation"),
    (BridgeType.ROOF_CONNECTION, _INS): BridgeData("Parapet - standard insulation", 0.30, "Parapet with standard insulation"),
    (BridgeType.ROOF_CONNECTION, _THICK): BridgeData("Parapet - thick insulation", 0.20, "Parapet with thick insulation"),

    (BridgeType.WINDOW_SILL, _U): BridgeData("Window sill - uninsulated wall", 0.30, "Window sill without insulation"),
    (BridgeType.WINDOW_SILL, _THIN): BridgeData("Window sill - thin insulation", 0.25, "Window sill with thin insulation"),
    (BridgeType.WINDOW_SILL, _INS): BridgeData("Window sill - standard insulation", 0.20, "Window sill with standard insulation"),
    (BridgeType.WINDOW_SILL, _THICK): BridgeData("Window sill - thick insulation", 0.15, "Window sill with thick insulation"),

    (BridgeType.WINDOW_LINTEL, _U): BridgeData("Lintel - uninsulated wall", 0.25, "Window lintel without insulation"),
    (BridgeType.WINDOW_LINTEL, _THIN): BridgeData("Lintel - thin insulation", 0.20, "Lintel with thin insulation"),
    (BridgeType.WINDOW_LINTEL, _INS): BridgeData("Lintel - standard insulation", 0.15, "Lintel with standard insulation"),
    (BridgeType.WINDOW_LINTEL, _THICK): BridgeData("Lintel - thick insulation", 0.10, "Lintel with thick insulation"),

    (BridgeType.BALCONY, _U): BridgeData("Balcony - uninsulated wall", 1.20, "Balcony without thermal break"),
    (BridgeType.BALCONY, _THIN): BridgeData("Balcony - thin insulation", 1.00, "Balcony with partial thermal break"),
    (BridgeType.BALCONY, _INS): BridgeData("Balcony - standard insulation", 0.80, "Balcony with insulating elements"),
    (BridgeType.BALCONY, _THICK): BridgeData("Balcony - thick insulation", 0.60, "Balcony with high-quality thermal break"),

    (BridgeType.FLOOR_SLAB, _U): BridgeData("Floor slab - uninsulated", 0.70, "Reinforced concrete slab without insulation"),
    (BridgeType.FLOOR_SLAB, _THIN): BridgeData("Floor slab - thin insulation", 0.55, "Slab with thin insulation"),
    (BridgeType.FLOOR_SLAB, _INS): BridgeData("Floor slab - standard insulation", 0.40, "Slab with standard insulation"),
    (BridgeType.FLOOR_SLAB, _THICK): BridgeData("Floor slab - thick insulation", 0.25, "Slab with thick insulation"),
}

TYPICAL_BRIDGE_TYPES = (
    BridgeType.EXTERNAL_CORNER,
    BridgeType.FOUNDATION,
    BridgeType.ROOF_CONNECTION,
)


def get_bridge_data(bridge_type: BridgeType, config: WallConfiguration) -> Optional[BridgeData]:
    """Catalog entry, or ``None`` when the pair is not cataloged."""
    return CATALOG.get((bridge_type, config))


def bridges_for_configuration(config: WallConfiguration) -> List[BridgeData]:
    return [data for (_, cfg), data in CATALOG.items() if cfg == config]


def wall_configuration(assembly: WallAssembly) -> WallConfiguration:
    """Classify by the thickest insulation layer of the assembly."""
    insulation = [l.thickness_mm for l in assembly.layers if l.material.category == Category.INSULATION]
    if not insulation:
        return WallConfiguration.UNINSULATED
    thickest = max(insulation)
    if thickest >= 150:
        return WallConfiguration.THICK_INSULATION
    if thickest >= 80:
        return WallConfiguration.INSULATED
    return WallConfiguration.THIN_INSULATION


def typical_length(bridge_type: BridgeType, perimeter: float) -> float:
    if bridge_type == BridgeType.EXTERNAL_CORNER:
        return perimeter * 0.1
    if bridge_type in (BridgeType.FOUNDATION, BridgeType.ROOF_CONNECTION):
        return perimeter
    if bridge_type in (BridgeType.WINDOW_SILL, BridgeType.WINDOW_LINTEL):
        return perimeter * 0.3
    if bridge_type == BridgeType.BALCONY:
        return BALCONY_LENGTH
    return 1.0


def typical_bridges(config: WallConfiguration, perimeter: float) -> List[LinearThermalBridge]:
    bridges: List[LinearThermalBridge] = []
    for bridge_type in TYPICAL_BRIDGE_TYPES:
        data = get_bridge_data(bridge_type, config)
        if data is None:
            continue
        bridges.append(LinearThermalBridge(
            name=data.name,
            type=bridge_type,
            psi=data.psi,
            length=typical_length(bridge_type, perimeter),
            description=data.description,
            configuration=config,
        ))
    return bridges


def recommended_bridges(
    assembly: WallAssembly,
    perimeter: float = DEFAULT_PERIMETER,
    floor_area: float = DEFAULT_FLOOR_AREA,
) -> ThermalBridgeCollection:
    """Corner, foundation and parapet bridges sized from the building perimeter."""
    config = wall_configuration(assembly)
    return ThermalBridgeCollection(
        bridges=typical_bridges(config, perimeter),
        perimeter=perimeter,
        floor_area=floor_area,
    )


def u_value_with_bridges(assembly: WallAssembly, bridges: ThermalBridgeCollection) -> float:
    return u_value(assembly) + bridges.u_correction


def bridge_criticality(assembly: WallAssembly, bridges: ThermalBridgeCollection) -> BridgeCriticality:
    """Grade ΔU as a percentage of the steady-state U."""
    increase = bridges.u_correction / u_value(assembly) * 100
    if increase > 50:
        return BridgeCriticality.CRITICAL
    if increase > 30:
        return BridgeCriticality.HIGH
    if increase > 15:
        return BridgeCriticality.MEDIUM
    if increase > 5:
        return BridgeCriticality.LOW
    return BridgeCriticality.NEGLIGIBLE
