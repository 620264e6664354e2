import numpy as np
import pytest

from solarsavings.core.models import SolarInputParams, SolarIrradianceData
from solarsavings.engine.production import (
    SEASONAL_BASE_FACTORS,
    capacity_factor,
    estimate_production,
    seasonal_averages,
    seasonal_curve,
)
from solarsavings.engine.sizing import size_system

MONTHLY_PSH = (3.6, 4.4, 5.3, 6.1, 6.6, 7.1, 7.2, 6.8, 6.0, 5.0, 3.9, 3.3)


def _spec(irradiance, monthly_kwh=1000, lat=33.0):
    inputs = SolarInputParams(coordinates=(lat, -97.0), monthly_kwh=monthly_kwh, electricity_rate=0.12)
    return size_system(inputs, irradiance)


@pytest.mark.parametrize("lat", [-40.0, 0.0, 18.0, 33.0, 47.0, 61.0])
def test_synthesized_months_sum_to_annual(lat):
    irradiance = SolarIrradianceData(annual=5.2)
    result = estimate_production(_spec(irradiance, lat=lat), irradiance, lat)
    assert len(result.monthly_production) == 12
    total = sum(result.monthly_production)
    assert abs(total - result.annual_production) / result.annual_production < 0.02


def test_irradiance_months_sum_within_tolerance():
    irradiance = SolarIrradianceData(annual=float(np.mean(MONTHLY_PSH)), monthly=MONTHLY_PSH, source="nrel")
    spec = _spec(irradiance)
    result = estimate_production(spec, irradiance, 33.0)
    expected_jan = round(spec.system_size_kw * 3.6 * 30.44 * spec.system_efficiency)
    assert result.monthly_production[0] == expected_jan
    total = sum(result.monthly_production)
    assert abs(total - result.annual_production) / result.annual_production < 0.02


def test_seasonal_curve_shift_and_clamp():
    curve_35 = seasonal_curve(35.0)
    assert curve_35 == pytest.approx(np.array(SEASONAL_BASE_FACTORS))
    curve_equator = seasonal_curve(0.0)
    assert curve_equator.max() <= 1.4
    assert curve_equator[0] == pytest.approx(0.7 + 0.35)
    curve_polar = seasonal_curve(80.0)
    assert curve_polar.min() >= 0.4


def test_seasonal_averages_use_northern_mapping():
    monthly = list(range(1, 13))
    seasons = seasonal_averages(monthly)
    assert seasons.spring == pytest.approx(4.0)
    assert seasons.summer == pytest.approx(7.0)
    assert seasons.fall == pytest.approx(10.0)
    assert seasons.winter == pytest.approx((12 + 1 + 2) / 3)


def test_capacity_factor_rounding_and_zero_size():
    assert capacity_factor(8760.0, 5.0) == 20.0
    assert capacity_factor(1000.0, 0.0) == 0.0
    assert capacity_factor(12345.0, 7.0) == round(12345.0 / (7.0 * 8760) * 100, 1)


def test_zero_consumption_production_is_zero():
    irradiance = SolarIrradianceData(annual=5.8)
    result = estimate_production(_spec(irradiance, monthly_kwh=0), irradiance, 33.0)
    assert result.annual_production == 0.0
    assert sum(result.monthly_production) == 0
    assert result.capacity_factor == 0.0
