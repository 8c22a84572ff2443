"""Economic optimisation of insulation thickness.

The engine sweeps insulation thicknesses added to a fixed reference wall,
prices each step and picks the thickness after which one more step no
longer pays for itself over the insulation lifetime.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .dataclasses import Category
from .errors import InvalidInputError

MIN_THICKNESS = 1.0  # cm
MAX_THICKNESS = 50.0  # cm
THICKNESS_STEP = 0.5  # cm

# Uninsulated 300 mm masonry wall with plasters
BASELINE_RESISTANCE = 0.6  # m²K/W

PAYBACK_YEAR_CAP = 100
PRACTICAL_ROUNDING = 5.0  # cm

INF = float("inf")


@dataclass
class OptimizationInput:
    lambda_: float = 0.035  # W/(mK), EPS
    energy_cost: float = 1.2  # currency/kWh
    insulation_cost_per_cm: float = 20.0  # currency/(m²·cm), material only
    fixed_cost: float = 1200.0  # currency/m², scaffolding, labour, adhesive, render
    temperature_difference: float = 18.0  # K
    heating_days: int = 150
    lifetime_years: int = 20
    area: float = 1.0  # m²
    material_name: str = ""
    use_inflation: bool = False
    inflation_rate: float = 2.0  # %/year
    use_discounting: bool = False
    discount_rate: float = 3.0  # %/year

    @property
    def inflation_active(self) -> bool:
        return self.use_inflation and self.inflation_rate > 0

    @property
    def discounting_active(self) -> bool:
        return self.use_discounting and self.discount_rate > 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OptimizationInput":
        """Build from JSON-style data, accepting numbers sent as strings."""
        if not isinstance(data, dict):
            raise InvalidInputError("Optimization input must be an object")
        types = {f.name: f.type for f in fields(cls)}
        unknown = set(data) - set(types)
        if unknown:
            raise InvalidInputError(f"Unknown fields: {sorted(unknown)}")
        kwargs: Dict[str, Any] = {}
        for name, value in data.items():
            kind = types[name]
            try:
                if kind == "bool":
                    if not isinstance(value, bool):
                        raise TypeError("expected true or false")
                elif kind == "int":
                    value = int(value)
                elif kind == "float":
                    value = float(value)
                else:
                    value = str(value)
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(f"Invalid value for {name!r}: {value!r}") from exc
            kwargs[name] = value
        return cls(**kwargs)

    def validate(self) -> None:
        if self.lambda_ <= 0:
            raise InvalidInputError(f"Thermal conductivity must be positive, got {self.lambda_}")
        if self.area <= 0:
            raise InvalidInputError(f"Area must be positive, got {self.area}")
        for attr in ("energy_cost", "insulation_cost_per_cm", "fixed_cost",
                     "heating_days", "lifetime_years", "inflation_rate", "discount_rate"):
            if getattr(self, attr) < 0:
                raise InvalidInputError(f"{attr} must not be negative")


@dataclass
class OptimizationDataPoint:
    thickness: float  # cm
    u_value: float
    r_value: float
    annual_heat_loss: float  # kWh/year
    annual_heating_cost: float
    annual_savings: float
    investment_cost: float
    cumulative_savings: float
    net_profit: float
    payback_period: float  # years, inf when never recovered
    discounted_cumulative_savings: float
    net_present_value: float
    discounted_payback_period: float
    incremental_payback: Optional[float] = None


class RecommendationKind(str, Enum):
    THICKNESS = "thickness"
    PAYBACK = "payback"
    U_VALUE = "u_value"
    ANNUAL_SAVINGS = "annual_savings"
    LIFETIME_PROFIT = "lifetime_profit"


@dataclass(frozen=True)
class RecommendationItem:
    kind: RecommendationKind
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        p = self.params
        if self.kind == RecommendationKind.THICKNESS:
            if p.get("rounded"):
                return (f"Recommended thickness: {p['practical']:.0f} cm "
                        f"(rounded from {p['optimal']:.1f} cm to a commonly available thickness)")
            if p["optimal"] % PRACTICAL_ROUNDING == 0:
                return f"Recommended thickness: {p['optimal']:.0f} cm"
            return f"Recommended thickness: {p['optimal']:.1f} cm"
        if self.kind == RecommendationKind.PAYBACK:
            return {
                "excellent": "Excellent return on investment - highly recommended!",
                "good": "Good return on investment - recommended.",
                "acceptable": "Acceptable return on investment.",
                "long": "Long payback period - consider other options or materials.",
            }[p["band"]]
        if self.kind == RecommendationKind.U_VALUE:
            return {
                "passive": "Excellent thermal performance (passive house).",
                "low_energy": "Very good thermal performance (low-energy house).",
                "compliant": "Meets the recommended values of ČSN 73 0540-2.",
                "non_compliant": ("Warning: the optimal thickness does not meet the ČSN recommendation "
                                  "(U ≤ 0.30 W/m²K). Consider a cheaper material or a larger thickness."),
            }[p["band"]]
        if self.kind == RecommendationKind.ANNUAL_SAVINGS:
            return f"Annual savings: {p['amount']:.0f} per m²"
        text = f"Savings over {p['years']} years: {p['amount']:.0f} per m² (after investment"
        if p.get("inflation_rate") is not None:
            text += f", including {p['inflation_rate']:.1f}% inflation"
        return text + ")"


@dataclass(frozen=True)
class OptimizationResult:
    input: OptimizationInput
    data_points: Tuple[OptimizationDataPoint, ...]
    optimum: OptimizationDataPoint
    baseline_heat_loss: float
    baseline_heating_cost: float
    recommendations: Tuple[RecommendationItem, ...] = ()

    @property
    def optimal_thickness(self) -> float:
        return self.optimum.thickness

    @property
    def max_net_profit(self) -> float:
        return self.optimum.net_profit

    @property
    def optimal_payback_period(self) -> float:
        return self.optimum.payback_period

    @property
    def optimal_annual_savings(self) -> float:
        return self.optimum.annual_savings

    @property
    def optimal_u_value(self) -> float:
        return self.optimum.u_value

    @property
    def optimal_r_value(self) -> float:
        return self.optimum.r_value

    @property
    def optimal_investment_cost(self) -> float:
        return self.optimum.investment_cost

    @property
    def recommendation(self) -> str:
        return recommendation_text(self.recommendations)


@dataclass(frozen=True)
class OptimizationPreset:
    name: str
    description: str
    lambda_: float
    insulation_cost_per_cm: float
    category: Category


def presets() -> List[OptimizationPreset]:
    return [
        OptimizationPreset("EPS polystyrene", "Common facade polystyrene", 0.035, 20.0, Category.INSULATION),
        OptimizationPreset("PUR board", "Polyurethane board, best insulation", 0.023, 30.0, Category.INSULATION),
        OptimizationPreset("Mineral wool", "Common facade mineral wool", 0.040, 22.0, Category.INSULATION),
        OptimizationPreset("Sprayed PUR foam", "Sprayed polyurethane foam, high performance", 0.025, 28.0,
                           Category.INSULATION),
        OptimizationPreset("Wood fibre board", "Ecological insulation", 0.040, 35.0, Category.WOOD),
    ]


def sweep_thicknesses() -> List[float]:
    count = int(round((MAX_THICKNESS - MIN_THICKNESS) / THICKNESS_STEP)) + 1
    return [MIN_THICKNESS + i * THICKNESS_STEP for i in range(count)]


def annual_heat_loss(u: float, inp: OptimizationInput) -> float:
    """Q = U·ΔT·A·24·days / 1000 [kWh/year]"""
    return u * inp.temperature_difference * inp.area * 24 * inp.heating_days / 1000.0


def _inflation_factor(inp: OptimizationInput, year: int) -> float:
    if inp.inflation_active:
        return (1 + inp.inflation_rate / 100.0) ** year
    return 1.0


def _discounted(annual_savings: float, investment: float, inp: OptimizationInput) -> Tuple[float, float]:
    """Return (present value of lifetime savings, discounted payback year)."""
    cumulative = 0.0
    payback = INF
    for year in range(1, inp.lifetime_years + 1):
        saving = annual_savings * _inflation_factor(inp, year)
        cumulative += saving / (1 + inp.discount_rate / 100.0) ** year
        if payback == INF and cumulative >= investment:
            payback = float(year)
    return cumulative, payback


def _payback(annual_savings: float, investment: float, inp: OptimizationInput) -> float:
    if annual_savings <= 0:
        return INF
    if not inp.inflation_active:
        return investment / annual_savings
    cumulative = 0.0
    year = 0
    while cumulative < investment and year < PAYBACK_YEAR_CAP:
        year += 1
        cumulative += annual_savings * _inflation_factor(inp, year)
    return float(year) if cumulative >= investment else INF


def calculate_data_point(
    thickness: float, inp: OptimizationInput, baseline_heating_cost: float
) -> OptimizationDataPoint:
    """Price one insulation thickness [cm] added to the reference wall."""
    r_value = BASELINE_RESISTANCE + (thickness / 100.0) / inp.lambda_
    u = 1.0 / r_value
    heat_loss = annual_heat_loss(u, inp)
    heating_cost = heat_loss * inp.energy_cost
    annual_savings = baseline_heating_cost - heating_cost
    investment = (inp.fixed_cost + inp.insulation_cost_per_cm * thickness) * inp.area

    if inp.inflation_active:
        cumulative = sum(annual_savings * _inflation_factor(inp, y) for y in range(1, inp.lifetime_years + 1))
    else:
        cumulative = annual_savings * inp.lifetime_years

    net_profit = cumulative - investment
    payback = _payback(annual_savings, investment, inp)

    if inp.discounting_active:
        discounted, discounted_payback = _discounted(annual_savings, investment, inp)
        npv = discounted - investment
    else:
        discounted, npv, discounted_payback = cumulative, net_profit, payback

    return OptimizationDataPoint(
        thickness=thickness,
        u_value=u,
        r_value=r_value,
        annual_heat_loss=heat_loss,
        annual_heating_cost=heating_cost,
        annual_savings=annual_savings,
        investment_cost=investment,
        cumulative_savings=cumulative,
        net_profit=net_profit,
        payback_period=payback,
        discounted_cumulative_savings=discounted,
        net_present_value=npv,
        discounted_payback_period=discounted_payback,
    )


def sweep(inp: OptimizationInput, baseline_heating_cost: float) -> List[OptimizationDataPoint]:
    """Data points for 1-50 cm in 0.5 cm steps with incremental payback filled in.

    Incremental payback is Δinvestment / Δlifetime savings against the
    previous point; the first point carries its own payback period.
    """
    points: List[OptimizationDataPoint] = []
    previous: Optional[OptimizationDataPoint] = None
    for thickness in sweep_thicknesses():
        point = calculate_data_point(thickness, inp, baseline_heating_cost)
        if previous is None:
            point.incremental_payback = point.payback_period
        else:
            d_cost = point.investment_cost - previous.investment_cost
            d_savings = point.cumulative_savings - previous.cumulative_savings
            point.incremental_payback = d_cost / d_savings if d_savings > 0 else INF
        points.append(point)
        previous = point
    return points


def select_optimum(points: Sequence[OptimizationDataPoint]) -> OptimizationDataPoint:
    """Greedy stop on diminishing returns.

    Walk in sweep order and stop at the first step whose extra lifetime
    savings fall below its extra investment; the point before it is the
    optimum. Without such a step the last point wins.
    """
    if not points:
        raise InvalidInputError("No data points to choose from")
    optimum = points[0]
    for previous, current in zip(points, points[1:]):
        d_cost = current.investment_cost - previous.investment_cost
        d_savings = current.cumulative_savings - previous.cumulative_savings
        if d_savings < d_cost:
            return previous
        optimum = current
    return optimum


def data_point_for_thickness(points: Sequence[OptimizationDataPoint], thickness: float) -> Optional[OptimizationDataPoint]:
    return next((p for p in points if abs(p.thickness - thickness) < 0.1), None)


def recommendations(
    inp: OptimizationInput,
    points: Sequence[OptimizationDataPoint],
    optimum: OptimizationDataPoint,
) -> List[RecommendationItem]:
    items: List[RecommendationItem] = []

    optimal = optimum.thickness
    practical = round(optimal / PRACTICAL_ROUNDING) * PRACTICAL_ROUNDING
    rounded = practical != optimal and data_point_for_thickness(points, practical) is not None
    items.append(RecommendationItem(RecommendationKind.THICKNESS, {
        "optimal": optimal, "practical": practical if rounded else optimal, "rounded": rounded,
    }))

    payback = optimum.payback_period
    if payback < 5:
        band = "excellent"
    elif payback < 10:
        band = "good"
    elif payback < 15:
        band = "acceptable"
    else:
        band = "long"
    items.append(RecommendationItem(RecommendationKind.PAYBACK, {"band": band, "years": payback}))

    u = optimum.u_value
    if u <= 0.15:
        band = "passive"
    elif u <= 0.22:
        band = "low_energy"
    elif u <= 0.30:
        band = "compliant"
    else:
        band = "non_compliant"
    items.append(RecommendationItem(RecommendationKind.U_VALUE, {"band": band, "u": u}))

    items.append(RecommendationItem(RecommendationKind.ANNUAL_SAVINGS, {"amount": optimum.annual_savings}))
    items.append(RecommendationItem(RecommendationKind.LIFETIME_PROFIT, {
        "years": inp.lifetime_years,
        "amount": optimum.net_profit,
        "inflation_rate": inp.inflation_rate if inp.inflation_active else None,
    }))
    return items


def recommendation_text(items: Sequence[RecommendationItem]) -> str:
    return " ".join(item.text for item in items)


def optimize(inp: OptimizationInput) -> OptimizationResult:
    """Run the full sweep and pick the economic optimum."""
    inp.validate()
    baseline_loss = annual_heat_loss(1.0 / BASELINE_RESISTANCE, inp)
    baseline_cost = baseline_loss * inp.energy_cost
    points = sweep(inp, baseline_cost)
    optimum = select_optimum(points)
    return OptimizationResult(
        input=inp,
        data_points=tuple(points),
        optimum=optimum,
        baseline_heat_loss=baseline_loss,
        baseline_heating_cost=baseline_cost,
        recommendations=tuple(recommendations(inp, points, optimum)),
    )


def comparison_points(result: OptimizationResult) -> List[OptimizationDataPoint]:
    """Points at 10, 15 and 20 cm plus the optimum, thinnest first."""
    out: List[OptimizationDataPoint] = []
    for thickness in sorted({10.0, 15.0, 20.0, result.optimal_thickness}):
        point = next((p for p in result.data_points if abs(p.thickness - thickness) < THICKNESS_STEP), None)
        if point is not None:
            out.append(point)
    return out
