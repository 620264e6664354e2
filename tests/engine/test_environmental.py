import pytest

from solarsavings.core.debug import ListDebugCollector
from solarsavings.engine.environmental import calculate_environmental_impact


def test_linear_equivalents():
    impact = calculate_environmental_impact(10000.0)
    assert impact.co2_offset_tons == pytest.approx(4.0)
    assert impact.trees_equivalent == 64
    assert impact.cars_off_road_equivalent == round(4.0 * 2300 / 12000)
    assert impact.coal_avoided_pounds == 9000


def test_pure_function_identical_outputs():
    first = calculate_environmental_impact(12345.678)
    second = calculate_environmental_impact(12345.678)
    assert first == second
    assert first.co2_offset_tons == second.co2_offset_tons


def test_zero_production():
    impact = calculate_environmental_impact(0.0)
    assert impact.co2_offset_tons == 0.0
    assert impact.trees_equivalent == 0


def test_emits_only_with_collector():
    debug = ListDebugCollector()
    calculate_environmental_impact(5000.0, debug=debug)
    assert debug.stages() == ["environmental.summary"]


def test_exact_halves_round_up():
    # 5 kWh * 0.9 lb = 4.5 lb of coal
    assert calculate_environmental_impact(5.0).coal_avoided_pounds == 5
