"""Rule checks of a wall assembly against ČSN 73 0540-2 and physical limits."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from .core import total_cost, total_diffusion_resistance, u_value
from .dataclasses import Category, WallAssembly, WallLayer

# ČSN 73 0540-2, external walls [W/(m²K)]
REQUIRED_U = 0.30
RECOMMENDED_U = 0.25
PASSIVE_HOUSE_U = 0.15
OVER_INSULATED_U = 0.10

MIN_LAYER_THICKNESS = 1  # mm
MAX_LAYER_THICKNESS = 1000  # mm
MIN_INSULATION_LAYER = 20  # mm

VAPOR_BARRIER_MU = 100
MAX_DIFFUSION_RESISTANCE = 20.0  # m


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class FindingCategory(str, Enum):
    GENERAL = "general"
    STANDARDS = "standards"
    PHYSICAL_LIMITS = "physical_limits"
    MATERIAL_COMBINATION = "material_combination"
    ECONOMIC = "economic"
    CONDENSATION = "condensation"


@dataclass(frozen=True)
class Finding:
    severity: Severity
    category: FindingCategory
    message: str
    details: str = ""
    suggestion: str = ""
    is_valid: bool = True


def validate_u_value(u: float) -> List[Finding]:
    if u > REQUIRED_U:
        return [Finding(
            Severity.ERROR, FindingCategory.STANDARDS,
            "Assembly does not meet ČSN 73 0540-2 requirements",
            details=f"U = {u:.3f} W/(m²·K) > {REQUIRED_U:.2f} W/(m²·K)",
            suggestion="Increase the insulation thickness or use a material with lower conductivity",
            is_valid=False,
        )]
    if u > RECOMMENDED_U:
        return [Finding(
            Severity.WARNING, FindingCategory.STANDARDS,
            "Assembly meets the requirement but not the ČSN recommended value",
            details=f"U = {u:.3f} W/(m²·K) > {RECOMMENDED_U:.2f} W/(m²·K)",
            suggestion="Consider more insulation for better energy efficiency",
        )]
    if u <= PASSIVE_HOUSE_U:
        return [Finding(
            Severity.INFO, FindingCategory.STANDARDS,
            "passive-house-grade",
            details=f"U = {u:.3f} W/(m²·K) ≤ {PASSIVE_HOUSE_U:.2f} W/(m²·K)",
        )]
    return []


def validate_layer_thickness(layer: WallLayer) -> List[Finding]:
    findings: List[Finding] = []
    name = layer.material.name
    if layer.thickness_mm < MIN_LAYER_THICKNESS:
        findings.append(Finding(
            Severity.ERROR, FindingCategory.PHYSICAL_LIMITS,
            f"Layer '{name}' is too thin",
            details=f"Thickness {layer.thickness_mm} mm < minimum {MIN_LAYER_THICKNESS} mm",
            is_valid=False,
        ))
    elif layer.thickness_mm > MAX_LAYER_THICKNESS:
        findings.append(Finding(
            Severity.ERROR, FindingCategory.PHYSICAL_LIMITS,
            f"Layer '{name}' is too thick",
            details=f"Thickness {layer.thickness_mm} mm > maximum {MAX_LAYER_THICKNESS} mm",
            is_valid=False,
        ))
    if layer.material.category == Category.INSULATION and layer.thickness_mm < MIN_INSULATION_LAYER:
        findings.append(Finding(
            Severity.WARNING, FindingCategory.PHYSICAL_LIMITS,
            f"Thin insulation layer '{name}'",
            details=f"Thickness {layer.thickness_mm} mm < recommended minimum {MIN_INSULATION_LAYER} mm",
            suggestion="Consider a thicker insulation layer",
        ))
    return findings


def _validate_layers(layers: List[WallLayer]) -> List[Finding]:
    findings: List[Finding] = []
    for layer in layers:
        findings.extend(validate_layer_thickness(layer))
    return findings


def _validate_combinations(layers: List[WallLayer]) -> List[Finding]:
    findings: List[Finding] = []
    barriers = [l for l in layers if l.material.mu > VAPOR_BARRIER_MU]
    if len(barriers) > 1:
        findings.append(Finding(
            Severity.WARNING, FindingCategory.MATERIAL_COMBINATION,
            "More than one vapour barrier in the assembly",
            details="Several layers with high diffusion resistance can trap moisture",
            suggestion="Use a single vapour barrier on the interior side",
        ))
    if not any(l.material.category == Category.INSULATION for l in layers):
        findings.append(Finding(
            Severity.ERROR, FindingCategory.MATERIAL_COMBINATION,
            "Assembly contains no thermal insulation",
            suggestion="Add a thermal insulation layer",
        ))
    return findings


def _validate_diffusion(assembly: WallAssembly) -> List[Finding]:
    total = total_diffusion_resistance(assembly)
    if total > MAX_DIFFUSION_RESISTANCE:
        return [Finding(
            Severity.WARNING, FindingCategory.CONDENSATION,
            "High total diffusion resistance",
            details=f"μd = {total:.1f} m > {MAX_DIFFUSION_RESISTANCE:.0f} m",
            suggestion="Consider more vapour-open materials",
        )]
    return []


def _validate_economics(assembly: WallAssembly) -> List[Finding]:
    u = u_value(assembly)
    if u < OVER_INSULATED_U:
        cost = total_cost(assembly)
        return [Finding(
            Severity.INFO, FindingCategory.ECONOMIC,
            "Possibly over-insulated",
            details=f"U = {u:.3f} W/(m²·K), material cost {cost:.0f} per m²",
            suggestion="Balance insulation cost against energy savings",
        )]
    return []


def validate_assembly(assembly: WallAssembly) -> List[Finding]:
    """All findings in rule order: U-value, layers, combinations, diffusion, economics."""
    if not assembly.layers:
        return [Finding(Severity.WARNING, FindingCategory.GENERAL,
                        "Assembly has no layers", is_valid=False)]
    findings: List[Finding] = []
    findings.extend(validate_u_value(u_value(assembly)))
    findings.extend(_validate_layers(assembly.layers))
    findings.extend(_validate_combinations(assembly.layers))
    findings.extend(_validate_diffusion(assembly))
    findings.extend(_validate_economics(assembly))
    return findings
