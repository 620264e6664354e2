"""Energy production model: annual yield, monthly split and seasonal averages."""
from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import ProductionResult, SeasonalProduction, SolarIrradianceData, SystemSpec, round_half_up

DAYS_PER_MONTH = 30.44
HOURS_PER_YEAR = 8760

# Jan..Dec relative production, mid-latitude northern hemisphere.
SEASONAL_BASE_FACTORS: Tuple[float, ...] = (0.7, 0.8, 1.0, 1.2, 1.3, 1.4, 1.4, 1.3, 1.1, 0.9, 0.7, 0.6)
_FACTOR_MIN = 0.4
_FACTOR_MAX = 1.4


def seasonal_curve(latitude: float, base: Sequence[float] = SEASONAL_BASE_FACTORS) -> np.ndarray:
    """Latitude-shifted monthly factors.

    Sites nearer the equator get a flatter curve: every factor moves by
    ``(35 - |lat|) * 0.01`` and is clamped to [0.4, 1.4].
    """
    shift = (35.0 - abs(latitude)) * 0.01
    return np.clip(np.asarray(base, dtype=float) + shift, _FACTOR_MIN, _FACTOR_MAX)


def monthly_from_irradiance(spec: SystemSpec, irradiance: SolarIrradianceData) -> Tuple[int, ...]:
    return tuple(
        round_half_up(spec.system_size_kw * psh * DAYS_PER_MONTH * spec.system_efficiency) for psh in irradiance.monthly
    )


def monthly_from_curve(annual_production: float, latitude: float) -> Tuple[int, ...]:
    factors = seasonal_curve(latitude)
    shares = factors / factors.sum()
    return tuple(round_half_up(annual_production * share) for share in shares)


def seasonal_averages(monthly: Sequence[float]) -> SeasonalProduction:
    """Average production per season.

    Months are grouped as northern-hemisphere seasons whatever the site's
    hemisphere (Mar-May spring, Jun-Aug summer, Sep-Nov fall, Dec-Feb winter).
    """
    values = np.asarray(monthly, dtype=float)
    return SeasonalProduction(
        spring=float(values[2:5].mean()),
        summer=float(values[5:8].mean()),
        fall=float(values[8:11].mean()),
        winter=float(values[[11, 0, 1]].mean()),
    )


def capacity_factor(annual_production: float, system_size_kw: float) -> float:
    if system_size_kw <= 0:
        return 0.0
    return round_half_up(annual_production / (system_size_kw * HOURS_PER_YEAR) * 100, 1)


def estimate_production(
    spec: SystemSpec,
    irradiance: SolarIrradianceData,
    latitude: float,
    debug: DebugCollector | None = None,
) -> ProductionResult:
    debug = debug or NullDebugCollector()

    annual = spec.system_size_kw * irradiance.annual * 365 * spec.system_efficiency
    if irradiance.has_monthly:
        monthly = monthly_from_irradiance(spec, irradiance)
        method = "irradiance"
    else:
        monthly = monthly_from_curve(annual, latitude)
        method = "seasonal_curve"

    result = ProductionResult(
        annual_production=annual,
        monthly_production=monthly,
        seasonal_production=seasonal_averages(monthly),
        capacity_factor=capacity_factor(annual, spec.system_size_kw),
    )
    debug.emit(
        "production.summary",
        {
            "annual_production": annual,
            "monthly_method": method,
            "monthly_sum": sum(monthly),
            "capacity_factor": result.capacity_factor,
        },
    )
    return result


__all__ = [
    "SEASONAL_BASE_FACTORS",
    "seasonal_curve",
    "seasonal_averages",
    "capacity_factor",
    "estimate_production",
]
