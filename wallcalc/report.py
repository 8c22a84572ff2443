"""Generate HTML reports with charts for assembly and optimisation results."""

from __future__ import annotations

import base64
import math
from html import escape
from io import BytesIO
from typing import Iterable, List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .optimization import OptimizationResult  # noqa: E402


def _encode_fig(fig) -> str:
    buf = BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight")
    plt.close(fig)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def _fmt(value: float, fmt: str = ".2f") -> str:
    if isinstance(value, float) and math.isinf(value):
        return "∞"
    return format(value, fmt)


def _plot_temperature(xs: Iterable[float], ys: Iterable[float], dew: Iterable[float]) -> str:
    fig, ax = plt.subplots()
    ax.plot(list(xs), list(ys), marker="o", label="θ")
    ax.plot(list(xs), list(dew), linestyle="--", label="θ_dew")
    ax.set_xlabel("Depth [mm]")
    ax.set_ylabel("θ [°C]")
    ax.set_title("Temperature profile")
    ax.legend()
    return _encode_fig(fig)


def _plot_vapor(xs: Iterable[float], p: Iterable[float]) -> str:
    fig, ax = plt.subplots()
    ax.plot(list(xs), list(p), marker="o", label="p")
    ax.set_xlabel("Depth [mm]")
    ax.set_ylabel("p [Pa]")
    ax.set_title("Vapor pressure profile")
    ax.legend()
    return _encode_fig(fig)


def _plot_optimization(result: OptimizationResult) -> str:
    xs = [p.thickness for p in result.data_points]
    fig, ax = plt.subplots()
    ax.plot(xs, [p.investment_cost for p in result.data_points], label="Investment")
    ax.plot(xs, [p.cumulative_savings for p in result.data_points], label="Lifetime savings")
    ax.plot(xs, [p.net_profit for p in result.data_points], label="Net profit")
    ax.axvline(result.optimal_thickness, color="grey", linestyle=":", label="Optimum")
    ax.set_xlabel("Insulation thickness [cm]")
    ax.set_ylabel("Cost per area")
    ax.set_title("Insulation economics")
    ax.legend()
    return _encode_fig(fig)


def _layers_table(layers: List[dict]) -> str:
    if not layers:
        return "<p>No layers.</p>"
    trs = "".join(
        f"<tr><td>{escape(str(row['material']))}</td><td>{row['thickness_mm']:.0f}</td>"
        f"<td>{row['lambda_']:.3f}</td><td>{row['R']:.3f}</td>"
        f"<td>{'Yes' if row['condensation'] else 'No'}</td></tr>"
        for row in layers
    )
    return (
        "<table id='layers'>"
        "<tr><th>Material</th><th>d (mm)</th><th>λ (W/mK)</th><th>R (m²K/W)</th><th>Condensation</th></tr>"
        f"{trs}</table>"
    )


def _zones_table(zones: List[dict]) -> str:
    if not zones:
        return "<p>No condensation zones.</p>"
    trs = "".join(
        f"<tr><td>{escape(str(z['material']))}</td><td>{z['start_mm']:.1f}</td><td>{z['end_mm']:.1f}</td>"
        f"<td>{z['amount_kg_m2_year']:.3f}</td><td>{z['severity']}</td></tr>"
        for z in zones
    )
    return (
        "<table id='zones'>"
        "<tr><th>Material</th><th>From (mm)</th><th>To (mm)</th><th>kg/(m²·year)</th><th>Severity</th></tr>"
        f"{trs}</table>"
    )


def report(results: dict) -> str:
    """Generate an HTML report from :func:`wallcalc.core.analyze` results."""

    title = escape(str(results.get("name") or "Wall assembly"))
    lis = [
        f"<li>ΣR: {results.get('R_total', float('nan')):.3f} m²K/W</li>",
        f"<li>U-value: {results.get('U', float('nan')):.3f} W/m²K</li>",
        f"<li>q: {results.get('q', float('nan')):.2f} W/m²</li>",
        f"<li>Interstitial condensation: {'Yes' if results.get('has_condensation') else 'No'}</li>",
        f"<li>Temperature damping ν: {results.get('temperature_damping', float('nan')):.2f}"
        f" ({results.get('thermal_inertia', '')})</li>",
        f"<li>Phase shift: {results.get('dynamic_phase_shift', float('nan')):.1f} h"
        f" ({results.get('summer_comfort', '')})</li>",
        f"<li>p_i: {results.get('p_i', float('nan')):.0f} Pa, p_e: {results.get('p_e', float('nan')):.0f} Pa</li>",
    ]

    xs = results.get("thickness_axis", [])
    temp_chart = _plot_temperature(xs, results.get("theta_profile", []), results.get("dew_points", []))
    vapor_chart = _plot_vapor(xs, results.get("p_line", []))

    parts = [
        f"<h2>{title}</h2>",
        "<ul>",
        *lis,
        "</ul>",
        "<h3>Layers</h3>",
        _layers_table(results.get("layers", [])),
        "<h3>Charts</h3>",
        f"<img src='data:image/png;base64,{temp_chart}' alt='Temperature chart' />",
        f"<img src='data:image/png;base64,{vapor_chart}' alt='Vapor chart' />",
        "<h3>Condensation zones</h3>",
        _zones_table(results.get("zones", [])),
    ]
    return "\n".join(parts)


def optimization_report(result: OptimizationResult) -> str:
    """HTML summary of an insulation optimisation run."""
    chart = _plot_optimization(result)
    lis = [
        f"<li>Optimal thickness: {result.optimal_thickness:.1f} cm</li>",
        f"<li>U-value: {result.optimal_u_value:.3f} W/m²K</li>",
        f"<li>Investment: {result.optimal_investment_cost:.0f}</li>",
        f"<li>Payback: {_fmt(result.optimal_payback_period, '.1f')} years</li>",
        f"<li>Baseline heat loss: {result.baseline_heat_loss:.1f} kWh/year</li>",
    ]
    recs = "".join(f"<li>{escape(item.text)}</li>" for item in result.recommendations)
    return "\n".join([
        "<h2>Insulation optimisation</h2>",
        "<ul>",
        *lis,
        "</ul>",
        f"<img src='data:image/png;base64,{chart}' alt='Optimisation chart' />",
        "<h3>Recommendations</h3>",
        f"<ul id='recommendations'>{recs}</ul>",
    ])
