import math

import numpy as np
import pytest

from solarsavings.core.catalog import DEFAULT_CATALOG
from solarsavings.core.debug import ListDebugCollector
from solarsavings.core.models import FinancialResult, ProductionResult, SeasonalProduction, SolarInputParams, SolarIrradianceData
from solarsavings.engine.financial import (
    advanced_metrics,
    calculate_financials,
    escalated_savings,
    net_metering_savings,
    solve_irr,
    yearly_projection,
)
from solarsavings.engine.production import estimate_production
from solarsavings.engine.sizing import size_system
from solarsavings.engine.state import RegexStateExtractor

IRRADIANCE = SolarIrradianceData(annual=5.8)


def _run(address="100 Main St, Dallas, TX 75201", irradiance=IRRADIANCE, **overrides):
    params = dict(address=address, coordinates=(33.0, -97.0), monthly_kwh=1000, electricity_rate=0.12)
    params.update(overrides)
    inputs = SolarInputParams(**params)
    spec = size_system(inputs, irradiance)
    production = estimate_production(spec, irradiance, inputs.latitude)
    return inputs, spec, production, calculate_financials(spec, production, inputs)


def test_cost_components_and_net_cost_identity():
    _, spec, _, fin = _run()
    panel = DEFAULT_CATALOG.panel(spec.panel_type)
    inverter = DEFAULT_CATALOG.inverter(spec.inverter_type)
    expected_system = spec.panels_needed * (panel.unit_cost + inverter.unit_cost) + spec.system_size_kw * 1200
    assert fin.system_cost == pytest.approx(expected_system)
    assert fin.total_cost == fin.system_cost + fin.battery_cost
    assert fin.federal_tax_credit == pytest.approx(fin.total_cost * 0.30)
    assert fin.local_rebates == pytest.approx(200 * spec.system_size_kw)
    assert fin.net_cost == fin.total_cost - fin.federal_tax_credit - fin.state_incentives - fin.local_rebates


def test_state_incentive_from_address():
    _, spec, _, fin = _run()
    assert fin.state_code == "TX"
    assert fin.state_incentives == pytest.approx(100 * spec.system_size_kw)
    _, _, _, unmatched = _run(address="100 main st, somewhere")
    assert unmatched.state_code is None
    assert unmatched.state_incentives == 0.0
    _, _, _, unknown = _run(address="1 Rue, Paris, FR")
    assert unknown.state_incentives == 0.0


def test_injected_state_extractor():
    class Fixed:
        def extract(self, address):
            return "NY"

    inputs, spec, production, _ = _run(address="no state here")
    fin = calculate_financials(spec, production, inputs, state_extractor=Fixed())
    assert fin.state_code == "NY"
    assert fin.state_incentives == pytest.approx(400 * spec.system_size_kw)


def test_regex_extractor_takes_first_token():
    extractor = RegexStateExtractor()
    assert extractor.extract("500 Elm, Austin, TX 78701") == "TX"
    assert extractor.extract("12 NE Main St, Portland, OR") == "NE"
    assert extractor.extract("") is None


@pytest.mark.parametrize("irradiance", [SolarIrradianceData(annual=3.0), SolarIrradianceData(annual=5.8), SolarIrradianceData(annual=7.5)])
def test_savings_capped_by_production_and_consumption(irradiance):
    inputs, _, production, fin = _run(irradiance=irradiance, has_pool=True)
    assert fin.annual_savings <= production.annual_production * inputs.electricity_rate + 1e-9
    assert fin.annual_savings <= inputs.monthly_kwh * 12 * inputs.electricity_rate + 1e-9
    assert fin.monthly_savings == pytest.approx(fin.annual_savings / 12)


def test_twenty_five_year_savings_escalates_three_percent():
    _, _, _, fin = _run()
    expected = sum(fin.annual_savings * 1.03 ** (y - 1) for y in range(1, 26))
    assert fin.twenty_five_year_savings == pytest.approx(expected)
    assert escalated_savings(100.0, years=3) == pytest.approx(np.array([100.0, 103.0, 106.09]))


def test_roi_and_payback_match():
    _, _, production, fin = _run()
    metrics = advanced_metrics(fin, production)
    assert fin.roi_years == pytest.approx(fin.net_cost / fin.annual_savings)
    assert metrics.payback_period == pytest.approx(fin.roi_years)
    assert metrics.internal_rate_of_return == pytest.approx(fin.annual_savings / fin.net_cost * 100)


def test_lcoe_and_npv_reference_values():
    fin = FinancialResult(
        system_cost=10000.0,
        battery_cost=0.0,
        total_cost=10000.0,
        federal_tax_credit=3000.0,
        state_incentives=0.0,
        local_rebates=0.0,
        net_cost=7000.0,
        annual_savings=1000.0,
        monthly_savings=1000.0 / 12,
        roi_years=7.0,
        twenty_five_year_savings=0.0,
    )
    production = ProductionResult(10000.0, (0,) * 12, SeasonalProduction(0, 0, 0, 0), 0.0)
    metrics = advanced_metrics(fin, production)

    years = range(1, 26)
    energy = sum(10000.0 * 0.995 ** (y - 1) / 1.06**y for y in years)
    om = sum(20.0 * 1.02 ** (y - 1) / 1.06**y for y in years)
    npv = -7000.0 + sum(1000.0 * 1.03 ** (y - 1) * 0.995 ** (y - 1) / 1.06**y for y in years)
    assert metrics.levelized_cost_of_energy == pytest.approx((7000.0 + om) / energy * 100)
    assert metrics.net_present_value == pytest.approx(npv)
    assert metrics.solved_internal_rate_of_return is not None
    assert 10.0 < metrics.solved_internal_rate_of_return < 20.0


def test_solve_irr_known_root_and_degenerate_cases():
    # 1000 invested, 1100 back after one year -> 10 %
    assert solve_irr(1000.0, [1100.0]) == pytest.approx(10.0, abs=1e-5)
    assert solve_irr(0.0, [100.0]) is None
    assert solve_irr(1000.0, []) is None
    assert solve_irr(1000.0, [0.0, 0.0]) is None


def test_zero_savings_yield_infinite_payback_without_raising():
    inputs, _, production, fin = _run(electricity_rate=0)
    assert fin.annual_savings == 0.0
    assert math.isinf(fin.roi_years)
    metrics = advanced_metrics(fin, production)
    assert math.isinf(metrics.payback_period)
    assert metrics.solved_internal_rate_of_return is None


def test_zero_consumption_everything_total():
    _, _, production, fin = _run(monthly_kwh=0)
    assert fin.net_cost == 0.0
    assert fin.roi_years == 0.0
    metrics = advanced_metrics(fin, production)
    assert math.isinf(metrics.levelized_cost_of_energy)
    assert metrics.internal_rate_of_return == 0.0


def test_yearly_projection_degrades_and_accumulates():
    _, _, production, fin = _run()
    rows = yearly_projection(fin, production)
    assert len(rows) == 25
    assert rows[0].year == 1
    assert rows[0].production_kwh == pytest.approx(production.annual_production)
    assert rows[1].production_kwh == pytest.approx(production.annual_production * 0.995)
    assert rows[1].savings == pytest.approx(fin.annual_savings * 1.03 * 0.995)
    assert rows[-1].cumulative_savings == pytest.approx(sum(r.savings for r in rows))


def test_net_metering_credits_excess_at_eighty_percent():
    monthly_production = [1200] * 12
    result = net_metering_savings(monthly_production, monthly_kwh=1000, electricity_rate=0.10)
    assert len(result.monthly_savings) == 12
    consumption = 12000 * np.array([1.1, 1.0, 0.9, 0.8, 0.7, 0.8, 1.2, 1.3, 1.1, 0.9, 1.0, 1.1]) / 11.9
    excess = np.clip(1200 - consumption, 0, None)
    assert result.excess_kwh == pytest.approx(excess.sum())
    expected = np.minimum(1200, consumption) * 0.10 + excess * 0.10 * 0.8
    assert result.annual_savings == pytest.approx(expected.sum())


def test_net_metering_without_excess_equals_retail_offset():
    result = net_metering_savings([100] * 12, monthly_kwh=1000, electricity_rate=0.2)
    assert result.excess_kwh == 0.0
    assert result.annual_savings == pytest.approx(1200 * 0.2)


def test_financial_debug_events():
    debug = ListDebugCollector()
    inputs, spec, production, _ = _run()
    fin = calculate_financials(spec, production, inputs, debug=debug)
    advanced_metrics(fin, production, debug=debug)
    assert debug.stages() == ["financial.summary", "advanced.summary"]
