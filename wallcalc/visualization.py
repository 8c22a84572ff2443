"""Visualization projection of a wall assembly for 3D and chart front-ends.

Everything here is re-derived from the assembly on each call; the only
static data are the colour tables.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .core import (
    dew_point_analysis,
    dew_point_temperature,
    temperature_profile,
    total_thickness_mm,
    vapor_pressure_profile,
)
from .dataclasses import Category, Climate, Material, WallAssembly

GRADIENT_POINTS_PER_LAYER = 20
WALL_HEIGHT_MM = 2800.0
WALL_WIDTH_MM = 1000.0


class ColorScheme(str, Enum):
    BLUE_RED = "blue_red"
    RAINBOW = "rainbow"
    THERMAL = "thermal"
    MONOCHROME = "monochrome"


class CondensationSeverity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class VisualProperties:
    base_color: str = "#808080"
    opacity: float = 0.9
    texture: str = "solid"
    roughness: float = 0.5
    metalness: float = 0.0


MATERIAL_VISUALS: Dict[Category, VisualProperties] = {
    Category.INSULATION: VisualProperties("#FFE4B5", 0.9, "insulation", 0.9),
    Category.MASONRY: VisualProperties("#CD853F", 0.9, "brick", 0.8),
    Category.CONCRETE: VisualProperties("#A9A9A9", 0.9, "concrete", 0.6),
    Category.WOOD: VisualProperties("#DEB887", 0.9, "wood", 0.7),
    Category.PLASTER: VisualProperties("#F5F5DC", 0.9, "solid", 0.4),
    Category.MEMBRANE: VisualProperties("#FF6B6B", 1.0, "membrane", 0.2),
}
DEFAULT_VISUALS = VisualProperties()

SEVERITY_COLORS: Dict[CondensationSeverity, str] = {
    CondensationSeverity.NONE: "#00FF00",
    CondensationSeverity.LOW: "#FFFF00",
    CondensationSeverity.MEDIUM: "#FFA500",
    CondensationSeverity.HIGH: "#FF4500",
    CondensationSeverity.CRITICAL: "#FF0000",
}


@dataclass
class TemperaturePoint:
    relative_position: float  # 0-1 within the layer
    temperature: float
    color: str
    condensation_risk: bool


@dataclass
class Layer3D:
    material_name: str
    thickness_mm: float
    start_mm: float
    end_mm: float
    conductivity: float
    visuals: VisualProperties
    has_condensation: bool = False
    temperature_points: List[TemperaturePoint] = field(default_factory=list)


@dataclass
class GradientSample:
    position_mm: float
    temperature: float
    vapor_pressure: float
    dew_point: float
    layer_name: str


@dataclass
class TemperatureGradient:
    samples: List[GradientSample] = field(default_factory=list)
    min_temperature: float = 0.0
    max_temperature: float = 0.0

    @property
    def temperature_range(self) -> float:
        return self.max_temperature - self.min_temperature


@dataclass
class CondensationZone3D:
    material_name: str
    start_mm: float
    end_mm: float
    amount_kg_m2_year: float
    severity: CondensationSeverity
    color: str
    alpha: float


@dataclass
class WallVisualizationData:
    layers: List[Layer3D]
    gradient: TemperatureGradient
    zones: List[CondensationZone3D]
    total_thickness_mm: float
    climate: Climate
    wall_height_mm: float = WALL_HEIGHT_MM
    wall_width_mm: float = WALL_WIDTH_MM


def material_visuals(material: Material) -> VisualProperties:
    return MATERIAL_VISUALS.get(material.category, DEFAULT_VISUALS)


def condensation_severity(amount: float) -> CondensationSeverity:
    if amount == 0:
        return CondensationSeverity.NONE
    if amount < 0.5:
        return CondensationSeverity.LOW
    if amount < 2.0:
        return CondensationSeverity.MEDIUM
    if amount < 5.0:
        return CondensationSeverity.HIGH
    return CondensationSeverity.CRITICAL


def condensation_alpha(amount: float) -> float:
    return min(0.8, max(0.2, amount / 5.0))


def _hex(r: int, g: int, b: int) -> str:
    return f"#{r:02X}{g:02X}{b:02X}"


def _blue_red(t: float) -> str:
    return _hex(int(255 * t), int(255 * (1 - abs(2 * t - 1))), int(255 * (1 - t)))


def _rainbow(t: float) -> str:
    return f"hsl({int(240 * (1 - t))}, 100%, 50%)"


def _thermal(t: float) -> str:
    if t < 0.25:
        return _hex(0, 0, int(255 * 4 * t))
    if t < 0.5:
        return _hex(0, int(255 * 4 * (t - 0.25)), 255)
    if t < 0.75:
        return _hex(int(255 * 4 * (t - 0.5)), 255, int(255 * (1 - 4 * (t - 0.5))))
    return _hex(255, int(255 * (1 - 4 * (t - 0.75))), 0)


def _monochrome(t: float) -> str:
    v = int(255 * t)
    return _hex(v, v, v)


_SCALES = {
    ColorScheme.BLUE_RED: _blue_red,
    ColorScheme.RAINBOW: _rainbow,
    ColorScheme.THERMAL: _thermal,
    ColorScheme.MONOCHROME: _monochrome,
}


def temperature_to_color(
    temperature: float, t_min: float, t_max: float, scheme: ColorScheme = ColorScheme.BLUE_RED
) -> str:
    if t_max <= t_min:
        return "#888888"
    t = max(0.0, min(1.0, (temperature - t_min) / (t_max - t_min)))
    return _SCALES.get(scheme, _blue_red)(t)


def temperature_gradient(assembly: WallAssembly) -> TemperatureGradient:
    """21 samples per layer (20 segments) of θ, p and θ_dew."""
    if not assembly.layers:
        return TemperatureGradient()
    temps = temperature_profile(assembly)
    pressures = vapor_pressure_profile(assembly)
    samples: List[GradientSample] = []
    for i, layer in enumerate(assembly.layers):
        t0, t1 = temps[i].value, temps[i + 1].value
        p0, p1 = pressures[i].value, pressures[i + 1].value
        for k in range(GRADIENT_POINTS_PER_LAYER + 1):
            rel = k / GRADIENT_POINTS_PER_LAYER
            p = p0 + rel * (p1 - p0)
            samples.append(GradientSample(
                position_mm=temps[i].depth + rel * layer.thickness_mm,
                temperature=t0 + rel * (t1 - t0),
                vapor_pressure=p,
                dew_point=dew_point_temperature(p),
                layer_name=layer.material.name,
            ))
    values = [pt.value for pt in temps]
    return TemperatureGradient(samples, min(values), max(values))


def visualization_data(assembly: WallAssembly, scheme: ColorScheme = ColorScheme.BLUE_RED) -> WallVisualizationData:
    gradient = temperature_gradient(assembly)
    layers: List[Layer3D] = []
    zones: List[CondensationZone3D] = []
    analysis = dew_point_analysis(assembly) if assembly.layers else None

    position = 0.0
    per_layer = GRADIENT_POINTS_PER_LAYER + 1
    for i, layer in enumerate(assembly.layers):
        chunk = gradient.samples[i * per_layer:(i + 1) * per_layer]
        layers.append(Layer3D(
            material_name=layer.material.name,
            thickness_mm=layer.thickness_mm,
            start_mm=position,
            end_mm=position + layer.thickness_mm,
            conductivity=layer.material.lambda_,
            visuals=material_visuals(layer.material),
            has_condensation=analysis.layers[i].has_condensation if analysis else False,
            temperature_points=[
                TemperaturePoint(
                    relative_position=k / GRADIENT_POINTS_PER_LAYER,
                    temperature=s.temperature,
                    color=temperature_to_color(s.temperature, gradient.min_temperature,
                                               gradient.max_temperature, scheme),
                    condensation_risk=s.temperature < s.dew_point,
                )
                for k, s in enumerate(chunk)
            ],
        ))
        position += layer.thickness_mm

    if analysis is not None:
        for zone in analysis.zones:
            severity = condensation_severity(zone.amount_kg_m2_year)
            zones.append(CondensationZone3D(
                material_name=zone.material_name,
                start_mm=zone.start_depth_mm,
                end_mm=zone.end_depth_mm,
                amount_kg_m2_year=zone.amount_kg_m2_year,
                severity=severity,
                color=SEVERITY_COLORS[severity],
                alpha=condensation_alpha(zone.amount_kg_m2_year),
            ))

    return WallVisualizationData(
        layers=layers,
        gradient=gradient,
        zones=zones,
        total_thickness_mm=total_thickness_mm(assembly),
        climate=assembly.climate,
    )
