from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from .dataclasses import Climate, WallAssembly, WallLayer
from .errors import InvalidInputError

# Magnus coefficients over water (θ ≥ 0 °C) and over ice (θ < 0 °C)
P_REF = 610.78  # Pa, saturation pressure at 0 °C
A_WATER, B_WATER = 17.2694, 238.3
A_ICE, B_ICE = 21.875, 265.5

POINTS_PER_LAYER = 10
# Simplified condensate rate per kelvin of dew-point excess [kg/(m²·day·K)]
CONDENSATE_RATE = 0.001


class ProfilePoint(NamedTuple):
    depth: float  # mm from the interior face
    value: float


class ZoneSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class LayerDewPoint:
    material_name: str
    thickness_mm: float
    temperature_start: float
    temperature_end: float
    vapor_pressure_start: float
    vapor_pressure_end: float
    dew_point_start: float
    dew_point_end: float
    has_condensation: bool


@dataclass
class CondensationZone:
    material_name: str
    layer_index: int
    start_depth_mm: float
    end_depth_mm: float
    amount_kg_m2_year: float
    severity: ZoneSeverity


@dataclass
class DewPointAnalysis:
    climate: Climate
    layers: List[LayerDewPoint] = field(default_factory=list)
    zones: List[CondensationZone] = field(default_factory=list)

    @property
    def has_condensation(self) -> bool:
        return any(row.has_condensation for row in self.layers)


def layer_resistance(layer: WallLayer) -> float:
    """Thermal resistance R [m²K/W] of one layer.

    Air gaps carrying a fixed resistance use it instead of d/λ.
    """
    material = layer.material
    if material.is_air_gap and material.fixed_resistance is not None:
        return material.fixed_resistance
    if material.lambda_ <= 0:
        raise InvalidInputError(
            f"Layer {material.name!r}: thermal conductivity must be positive, got {material.lambda_}"
        )
    return layer.thickness_m / material.lambda_


def layer_diffusion_resistance(layer: WallLayer) -> float:
    """Equivalent air-layer thickness μ·d [m]."""
    return layer.thickness_m * layer.material.mu


def total_thermal_resistance(assembly: WallAssembly) -> float:
    """Return Rsi + Σ R_layer + Rse."""
    return assembly.Rsi + assembly.Rse + sum(layer_resistance(layer) for layer in assembly.layers)


def u_value(assembly: WallAssembly) -> float:
    """Thermal transmittance U = 1 / R_total [W/(m²K)]."""
    R_total = total_thermal_resistance(assembly)
    if R_total <= 0:
        raise InvalidInputError("Total thermal resistance must be positive")
    return 1.0 / R_total


def thermal_capacity(assembly: WallAssembly) -> float:
    """Areal heat capacity Σ d·ρ·c [J/(m²K)]."""
    return sum(layer.thickness_m * layer.material.rho * layer.material.c for layer in assembly.layers)


def phase_shift(assembly: WallAssembly) -> float:
    """Steady-state phase shift estimate C / (U·3600) [h]."""
    return thermal_capacity(assembly) / (u_value(assembly) * 3600)


def total_diffusion_resistance(assembly: WallAssembly) -> float:
    return sum(layer_diffusion_resistance(layer) for layer in assembly.layers)


def total_cost(assembly: WallAssembly) -> float:
    """Material cost per m² of wall."""
    return sum(layer.thickness_m * layer.material.price_per_m3 for layer in assembly.layers)


def total_thickness_mm(assembly: WallAssembly) -> float:
    return sum(layer.thickness_mm for layer in assembly.layers)


def heat_flux(assembly: WallAssembly) -> float:
    """q = (θi − θe) / R_total [W/m²]."""
    climate = assembly.climate
    return (climate.theta_i - climate.theta_e) * u_value(assembly)


def temperature_profile(assembly: WallAssembly) -> List[ProfilePoint]:
    """Temperatures at the N+1 layer boundaries, interior first.

    The walk starts from the indoor air temperature and subtracts q·R_layer
    per layer; the surface resistances only enter through q.
    """
    q = heat_flux(assembly)
    depth = 0.0
    theta = assembly.climate.theta_i
    profile = [ProfilePoint(depth, theta)]
    for layer in assembly.layers:
        theta -= q * layer_resistance(layer)
        depth += layer.thickness_mm
        profile.append(ProfilePoint(depth, theta))
    return profile


def saturation_pressure(theta: float) -> float:
    """Saturation vapour pressure [Pa] by the two-branch Magnus formula."""
    if theta >= 0:
        return P_REF * math.exp(A_WATER * theta / (theta + B_WATER))
    return P_REF * math.exp(A_ICE * theta / (theta + B_ICE))


def partial_pressures(climate: Climate) -> tuple[float, float]:
    """Return (p_i, p_e) partial vapour pressures of indoor and outdoor air [Pa]."""
    p_i = saturation_pressure(climate.theta_i) * climate.phi_i / 100.0
    p_e = saturation_pressure(climate.theta_e) * climate.phi_e / 100.0
    return p_i, p_e


def vapor_pressure_profile(assembly: WallAssembly) -> List[ProfilePoint]:
    """Vapour pressures at the N+1 layer boundaries.

    End points come from the boundary humidities; in between the pressure
    falls by g·μd per layer with g = (p_i − p_e) / Σ μd. A wall without any
    diffusion resistance keeps p_i throughout.
    """
    p_i, p_e = partial_pressures(assembly.climate)
    Z_total = total_diffusion_resistance(assembly)
    g = (p_i - p_e) / Z_total if Z_total > 0 else 0.0
    depth = 0.0
    p = p_i
    profile = [ProfilePoint(depth, p)]
    for layer in assembly.layers:
        p -= g * layer_diffusion_resistance(layer)
        depth += layer.thickness_mm
        profile.append(ProfilePoint(depth, p))
    return profile


def dew_point_temperature(p: float) -> float:
    """Dew point [°C] of air with vapour pressure ``p`` [Pa] (inverse Magnus)."""
    if p <= 0:
        return -273.15
    ln_ratio = math.log(p / P_REF)
    if p >= P_REF:
        return B_WATER * ln_ratio / (A_WATER - ln_ratio)
    return B_ICE * ln_ratio / (A_ICE - ln_ratio)


def layer_dew_points(
    assembly: WallAssembly,
    temps: List[ProfilePoint],
    pressures: List[ProfilePoint],
) -> List[LayerDewPoint]:
    """Compare boundary temperatures with boundary dew points for each layer."""
    rows: List[LayerDewPoint] = []
    for i, layer in enumerate(assembly.layers):
        t0, t1 = temps[i].value, temps[i + 1].value
        p0, p1 = pressures[i].value, pressures[i + 1].value
        d0, d1 = dew_point_temperature(p0), dew_point_temperature(p1)
        rows.append(LayerDewPoint(
            material_name=layer.material.name,
            thickness_mm=layer.thickness_mm,
            temperature_start=t0,
            temperature_end=t1,
            vapor_pressure_start=p0,
            vapor_pressure_end=p1,
            dew_point_start=d0,
            dew_point_end=d1,
            has_condensation=t0 < d0 or t1 < d1,
        ))
    return rows


def zone_severity(amount_kg_m2_year: float) -> ZoneSeverity:
    if amount_kg_m2_year < 0.5:
        return ZoneSeverity.LOW
    if amount_kg_m2_year < 2.0:
        return ZoneSeverity.MEDIUM
    return ZoneSeverity.HIGH


def condensation_zones(
    assembly: WallAssembly,
    temps: List[ProfilePoint],
    pressures: List[ProfilePoint],
) -> List[CondensationZone]:
    """Sample every layer at 11 points and collect runs below the dew point.

    Temperature and vapour pressure are interpolated linearly between the
    layer boundaries. Each contiguous run of condensing samples inside one
    layer is a zone; its rate is Σ(θ_dew − θ)·0.001 kg/(m²·day) over the
    run, reported per year.
    """
    zones: List[CondensationZone] = []

    def close(index: int, start: float, end: float, daily: float) -> None:
        annual = daily * 365
        zones.append(CondensationZone(
            material_name=assembly.layers[index].material.name,
            layer_index=index,
            start_depth_mm=start,
            end_depth_mm=end,
            amount_kg_m2_year=annual,
            severity=zone_severity(annual),
        ))

    for index in range(len(assembly.layers)):
        d0, d1 = temps[index].depth, temps[index + 1].depth
        t0, t1 = temps[index].value, temps[index + 1].value
        p0, p1 = pressures[index].value, pressures[index + 1].value

        start: Optional[float] = None
        end = 0.0
        daily = 0.0
        for i in range(POINTS_PER_LAYER + 1):
            rel = i / POINTS_PER_LAYER
            depth = d0 + rel * (d1 - d0)
            theta = t0 + rel * (t1 - t0)
            theta_dew = dew_point_temperature(p0 + rel * (p1 - p0))
            if theta < theta_dew:
                if start is None:
                    start = depth
                    daily = 0.0
                end = depth
                daily += (theta_dew - theta) * CONDENSATE_RATE
            elif start is not None:
                close(index, start, end, daily)
                start = None
        if start is not None:
            close(index, start, end, daily)
    return zones


def dew_point_analysis(assembly: WallAssembly) -> DewPointAnalysis:
    """Interstitial condensation check of the whole assembly."""
    if not assembly.layers:
        raise InvalidInputError("Dew point analysis needs at least one layer")
    temps = temperature_profile(assembly)
    pressures = vapor_pressure_profile(assembly)
    return DewPointAnalysis(
        climate=assembly.climate,
        layers=layer_dew_points(assembly, temps, pressures),
        zones=condensation_zones(assembly, temps, pressures),
    )


def analyze(assembly: WallAssembly) -> Dict[str, object]:
    """End-to-end steady-state, dynamic and condensation analysis.

    Returns a dict suitable for reporting and UI consumption.
    """
    from . import dynamics

    dp = dew_point_analysis(assembly)
    temps = temperature_profile(assembly)
    pressures = vapor_pressure_profile(assembly)
    p_i, p_e = partial_pressures(assembly.climate)
    damping = dynamics.temperature_damping(assembly)
    dyn_shift = dynamics.dynamic_phase_shift(assembly)
    return {
        "name": assembly.name,
        "R_total": total_thermal_resistance(assembly),
        "U": u_value(assembly),
        "q": heat_flux(assembly),
        "thermal_capacity": thermal_capacity(assembly),
        "phase_shift": phase_shift(assembly),
        "total_diffusion_resistance": total_diffusion_resistance(assembly),
        "total_cost": total_cost(assembly),
        "total_thickness_mm": total_thickness_mm(assembly),
        "temperature_damping": damping,
        "amplitude_decrement": dynamics.amplitude_decrement(assembly),
        "dynamic_phase_shift": dyn_shift,
        "penetration_depth": dynamics.penetration_depth(assembly),
        "thermal_inertia": dynamics.thermal_inertia_rating(damping).value,
        "summer_comfort": dynamics.summer_comfort_rating(damping, dyn_shift).value,
        "thickness_axis": [pt.depth for pt in temps],
        "theta_profile": [pt.value for pt in temps],
        "p_line": [pt.value for pt in pressures],
        "dew_points": [dew_point_temperature(pt.value) for pt in pressures],
        "p_i": p_i,
        "p_e": p_e,
        "layers": [
            {
                "material": layer.material.name,
                "category": layer.material.category.value,
                "thickness_mm": layer.thickness_mm,
                "lambda_": layer.material.lambda_,
                "R": layer_resistance(layer),
                "mu_d": layer_diffusion_resistance(layer),
                "condensation": row.has_condensation,
            }
            for layer, row in zip(assembly.layers, dp.layers)
        ],
        "has_condensation": dp.has_condensation,
        "zones": [
            {
                "material": z.material_name,
                "layer_index": z.layer_index,
                "start_mm": z.start_depth_mm,
                "end_mm": z.end_depth_mm,
                "amount_kg_m2_year": z.amount_kg_m2_year,
                "severity": z.severity.value,
            }
            for z in dp.zones
        ],
    }
