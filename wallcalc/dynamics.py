"""Periodic (24 h) heat-storage properties by the admittance method.

Each layer is treated as a homogeneous slab under a daily sinusoidal
excitation (ČSN 73 0540-4 style simplification). Layer admittance
magnitudes and phases are summed across the assembly.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List

from .core import total_thermal_resistance
from .dataclasses import WallAssembly, WallLayer

PERIOD = 24 * 3600  # s
OMEGA = 2 * math.pi / PERIOD  # rad/s

MAX_DAMPING = 100.0


class ThermalInertiaRating(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class SummerComfortRating(str, Enum):
    INADEQUATE = "inadequate"
    POOR = "poor"
    ADEQUATE = "adequate"
    GOOD = "good"
    EXCELLENT = "excellent"


@dataclass
class LayerDynamics:
    diffusivity: float  # a [m²/s]
    penetration_depth: float  # δ [m]
    beta: float  # d / δ [-]
    admittance: float  # |Y| [W/(m²K)]
    phase: float  # [rad]


def layer_dynamics(layer: WallLayer) -> LayerDynamics:
    """Admittance of one layer under the 24 h excitation.

    A layer without heat capacity (ρ·c ≤ 0) or conductivity, such as a
    foil or a fixed-R air gap, stores no heat: zero admittance, zero phase
    and zero penetration depth.
    """
    m = layer.material
    heat_capacity = m.rho * m.c
    if heat_capacity <= 0 or m.lambda_ <= 0:
        return LayerDynamics(0.0, 0.0, 0.0, 0.0, 0.0)
    a = m.lambda_ / heat_capacity
    delta = math.sqrt(2 * a / OMEGA)
    beta = layer.thickness_m / delta
    denom = math.cosh(beta) + math.cos(beta)
    admittance = m.lambda_ / delta * math.sqrt(2) / denom
    phase = math.atan2(math.sinh(beta) - math.sin(beta), denom)
    return LayerDynamics(a, delta, beta, admittance, phase)


def _all_layers(assembly: WallAssembly) -> List[LayerDynamics]:
    return [layer_dynamics(layer) for layer in assembly.layers]


def temperature_damping(assembly: WallAssembly) -> float:
    """Temperature damping ν = ΣY · R_total, clamped to [1, 100]."""
    if not assembly.layers:
        return 1.0
    total_admittance = sum(d.admittance for d in _all_layers(assembly))
    nu = max(1.0, total_admittance * total_thermal_resistance(assembly))
    return min(nu, MAX_DAMPING)


def amplitude_decrement(assembly: WallAssembly) -> float:
    """Share of the outdoor amplitude removed by the wall [%]."""
    return (1.0 - 1.0 / max(temperature_damping(assembly), 1.0)) * 100


def dynamic_phase_shift(assembly: WallAssembly) -> float:
    """Sum of layer phases expressed as a time lag [h]."""
    if not assembly.layers:
        return 0.0
    total_phase = sum(d.phase for d in _all_layers(assembly))
    return total_phase / OMEGA / 3600


def penetration_depth(assembly: WallAssembly) -> float:
    """Thickness-weighted mean periodic penetration depth [m]."""
    if not assembly.layers:
        return 0.0
    weighted = 0.0
    thickness = 0.0
    for layer in assembly.layers:
        weighted += layer_dynamics(layer).penetration_depth * layer.thickness_m
        thickness += layer.thickness_m
    return weighted / thickness if thickness > 0 else 0.0


def thermal_inertia_rating(damping: float) -> ThermalInertiaRating:
    if damping >= 15:
        return ThermalInertiaRating.VERY_HIGH
    if damping >= 10:
        return ThermalInertiaRating.HIGH
    if damping >= 5:
        return ThermalInertiaRating.MEDIUM
    if damping >= 2:
        return ThermalInertiaRating.LOW
    return ThermalInertiaRating.VERY_LOW


def summer_comfort_rating(damping: float, phase_shift_h: float) -> SummerComfortRating:
    if damping >= 10 and phase_shift_h >= 8:
        return SummerComfortRating.EXCELLENT
    if damping >= 5 and phase_shift_h >= 6:
        return SummerComfortRating.GOOD
    if damping >= 3 and phase_shift_h >= 4:
        return SummerComfortRating.ADEQUATE
    if damping >= 2 and phase_shift_h >= 2:
        return SummerComfortRating.POOR
    return SummerComfortRating.INADEQUATE
