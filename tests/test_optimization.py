import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from wallcalc.errors import InvalidInputError
from wallcalc.optimization import (
    OptimizationDataPoint,
    OptimizationInput,
    RecommendationItem,
    RecommendationKind,
    calculate_data_point,
    comparison_points,
    optimize,
    presets,
    select_optimum,
)


def make_point(thickness, investment, cumulative):
    return OptimizationDataPoint(
        thickness=thickness, u_value=0.0, r_value=0.0, annual_heat_loss=0.0,
        annual_heating_cost=0.0, annual_savings=0.0, investment_cost=investment,
        cumulative_savings=cumulative, net_profit=cumulative - investment,
        payback_period=math.inf, discounted_cumulative_savings=cumulative,
        net_present_value=cumulative - investment, discounted_payback_period=math.inf,
    )


def test_default_scenario_baseline_and_ten_cm_point():
    result = optimize(OptimizationInput())
    assert result.baseline_heat_loss == pytest.approx(1 / 0.6 * 18 * 24 * 150 / 1000)
    point = next(p for p in result.data_points if p.thickness == 10.0)
    assert point.r_value == pytest.approx(0.6 + 0.1 / 0.035)
    assert point.u_value == pytest.approx(0.28926, rel=1e-4)
    assert point.annual_heat_loss == pytest.approx(18.744, rel=1e-3)
    assert point.investment_cost == pytest.approx(1400.0)
    assert point.annual_savings > 0


def test_sweep_covers_one_to_fifty_cm():
    points = optimize(OptimizationInput()).data_points
    assert len(points) == 99
    assert points[0].thickness == 1.0
    assert points[-1].thickness == 50.0
    for prev, cur in zip(points, points[1:]):
        assert cur.investment_cost >= prev.investment_cost
        assert cur.annual_heat_loss < prev.annual_heat_loss


def test_default_scenario_optimum():
    result = optimize(OptimizationInput())
    assert 1.0 <= result.optimal_thickness <= 50.0
    # extra lifetime savings fall below the 10 per m² step cost between 14.5 and 15 cm
    assert result.optimal_thickness == 14.5
    assert result.optimal_investment_cost == pytest.approx(1490.0)
    assert result.max_net_profit == result.optimum.net_profit


def test_greedy_stop_not_global_maximum():
    points = [
        make_point(1.0, 100, 100),
        make_point(1.5, 110, 115),
        make_point(2.0, 120, 118),
        make_point(2.5, 130, 140),
        make_point(3.0, 140, 200),
    ]
    assert select_optimum(points) is points[1]
    assert max(points, key=lambda p: p.net_profit) is points[4]


def test_greedy_without_stop_takes_last_point():
    points = [make_point(1.0, 100, 100), make_point(1.5, 110, 130), make_point(2.0, 120, 160)]
    assert select_optimum(points) is points[-1]


def test_select_optimum_needs_points():
    with pytest.raises(InvalidInputError):
        select_optimum([])


def test_incremental_payback():
    points = optimize(OptimizationInput()).data_points
    assert points[0].incremental_payback == pytest.approx(points[0].payback_period)
    prev, cur = points[9], points[10]
    expected = (cur.investment_cost - prev.investment_cost) / (cur.cumulative_savings - prev.cumulative_savings)
    assert cur.incremental_payback == pytest.approx(expected)


def test_inflation_compounds_savings_and_rounds_payback():
    inp = OptimizationInput(use_inflation=True, inflation_rate=3.0)
    plain = calculate_data_point(10.0, OptimizationInput(), 130.0)
    point = calculate_data_point(10.0, inp, 130.0)
    expected = sum(point.annual_savings * 1.03 ** y for y in range(1, 21))
    assert point.cumulative_savings == pytest.approx(expected)
    assert point.cumulative_savings > plain.cumulative_savings
    assert point.payback_period == int(point.payback_period)


def test_inflation_flag_without_rate_is_inactive():
    inp = OptimizationInput(use_inflation=True, inflation_rate=0.0)
    point = calculate_data_point(10.0, inp, 130.0)
    assert point.cumulative_savings == pytest.approx(point.annual_savings * 20)


def test_discounting():
    plain = calculate_data_point(10.0, OptimizationInput(), 130.0)
    assert plain.discounted_cumulative_savings == plain.cumulative_savings
    assert plain.net_present_value == plain.net_profit
    assert plain.discounted_payback_period == plain.payback_period

    point = calculate_data_point(10.0, OptimizationInput(use_discounting=True, discount_rate=3.0), 130.0)
    assert point.discounted_cumulative_savings < point.cumulative_savings
    assert point.net_present_value == pytest.approx(point.discounted_cumulative_savings - point.investment_cost)


def test_never_recovered_investment():
    point = calculate_data_point(10.0, OptimizationInput(energy_cost=0.0), 0.0)
    assert point.annual_savings == 0.0
    assert math.isinf(point.payback_period)


def test_invalid_conductivity_rejected():
    with pytest.raises(InvalidInputError):
        optimize(OptimizationInput(lambda_=0.0))


def test_recommendations_for_default_scenario():
    result = optimize(OptimizationInput())
    kinds = [item.kind for item in result.recommendations]
    assert kinds == [
        RecommendationKind.THICKNESS,
        RecommendationKind.PAYBACK,
        RecommendationKind.U_VALUE,
        RecommendationKind.ANNUAL_SAVINGS,
        RecommendationKind.LIFETIME_PROFIT,
    ]
    thickness, payback, u_band = result.recommendations[:3]
    assert thickness.params["rounded"] is True
    assert thickness.params["practical"] == 15.0
    assert "15 cm" in thickness.text
    assert payback.params["band"] == "acceptable"
    assert u_band.params["band"] == "low_energy"
    assert "15 cm" in result.recommendation


def test_comparison_points():
    result = optimize(OptimizationInput())
    assert [p.thickness for p in comparison_points(result)] == [10.0, 14.5, 15.0, 20.0]


def test_presets():
    names = [p.name for p in presets()]
    assert len(names) == 5
    assert "EPS polystyrene" in names
    assert all(p.lambda_ > 0 for p in presets())


def test_inflated_payback_beyond_cap_is_infinite():
    inp = OptimizationInput(use_inflation=True, inflation_rate=1.0,
                            use_discounting=True, discount_rate=3.0, fixed_cost=1_000_000.0)
    point = calculate_data_point(10.0, inp, 130.0)
    assert point.annual_savings > 0
    assert math.isinf(point.payback_period)
    assert math.isinf(point.discounted_payback_period)
    assert point.net_present_value < 0


def test_thickness_text_on_practical_grid():
    on_grid = RecommendationItem(RecommendationKind.THICKNESS, {"optimal": 15.0, "practical": 15.0, "rounded": False})
    assert on_grid.text == "Recommended thickness: 15 cm"
    off_grid = RecommendationItem(RecommendationKind.THICKNESS, {"optimal": 14.5, "practical": 14.5, "rounded": False})
    assert off_grid.text == "Recommended thickness: 14.5 cm"


def test_input_from_json_data():
    inp = OptimizationInput.from_dict({"lambda_": "0.04", "heating_days": "200", "use_inflation": True})
    assert inp.lambda_ == pytest.approx(0.04)
    assert inp.heating_days == 200
    assert inp.use_inflation is True
    with pytest.raises(InvalidInputError):
        OptimizationInput.from_dict({"lambda_": "thin"})
    with pytest.raises(InvalidInputError):
        OptimizationInput.from_dict({"use_discounting": "no"})
    with pytest.raises(InvalidInputError):
        OptimizationInput.from_dict({"colour": "red"})
