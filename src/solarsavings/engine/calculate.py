"""End-to-end calculation: irradiance → sizing → production → economics."""
from __future__ import annotations

import logging
import math
from typing import List, Tuple

from solarsavings.core.catalog import DEFAULT_CATALOG, EquipmentCatalog
from solarsavings.core.debug import DebugCollector, NullDebugCollector, ScopedDebugCollector
from solarsavings.core.models import (
    AdvancedMetrics,
    RoofAge,
    SolarCalculationResult,
    SolarInputParams,
    SolarIrradianceData,
    SystemSpec,
)
from solarsavings.irradiance.base import IrradianceProvider
from solarsavings.irradiance.fallback import LatitudeIrradianceEstimate
from solarsavings.persistence.store import CalculationStore, persist_in_background
from solarsavings.utility import lookup_utility

from .environmental import calculate_environmental_impact
from .financial import advanced_metrics, calculate_financials, net_metering_savings, yearly_projection
from .financing import financing_options
from .production import estimate_production
from .sizing import size_system
from .state import StateExtractor

log = logging.getLogger(__name__)

LONG_PAYBACK_YEARS = 15.0
HIGH_SHADING_LOSS = 0.20
POOR_ORIENTATION_DEG = 90.0


def _validate_irradiance(data: SolarIrradianceData) -> SolarIrradianceData:
    if not isinstance(data, SolarIrradianceData):
        raise ValueError(f"provider returned {type(data).__name__}, expected SolarIrradianceData")
    if not math.isfinite(data.annual) or data.annual <= 0:
        raise ValueError(f"non-positive annual irradiance: {data.annual!r}")
    if len(data.monthly) not in (0, 12):
        raise ValueError(f"expected 0 or 12 monthly values, got {len(data.monthly)}")
    if any(not math.isfinite(v) or v < 0 for v in data.monthly):
        raise ValueError("monthly irradiance contains negative or non-finite values")
    return data


def resolve_irradiance(
    inputs: SolarInputParams,
    provider: IrradianceProvider | None = None,
    debug: DebugCollector | None = None,
) -> SolarIrradianceData:
    """Irradiance from ``provider``, or the latitude estimate when it fails.

    Any provider exception or malformed payload is logged and replaced by the
    fallback; this function itself does not raise for provider problems.
    """
    debug = debug or NullDebugCollector()
    fallback = LatitudeIrradianceEstimate()
    if provider is None:
        return fallback.get_irradiance(inputs.latitude, inputs.longitude)

    try:
        data = provider.get_irradiance(
            inputs.latitude,
            inputs.longitude,
            tilt_deg=inputs.roof_tilt,
            azimuth_deg=inputs.roof_azimuth,
        )
        return _validate_irradiance(data)
    except Exception as exc:
        log.warning(
            "Irradiance lookup failed for (%.4f, %.4f), using latitude estimate: %s",
            inputs.latitude,
            inputs.longitude,
            exc,
        )
        debug.emit(
            "irradiance.fallback",
            {"provider": type(provider).__name__, "error": str(exc)},
        )
        return fallback.get_irradiance(inputs.latitude, inputs.longitude)


def _orientation_offset(inputs: SolarInputParams) -> float | None:
    if inputs.roof_azimuth is None:
        return None
    ideal = 180.0 if inputs.latitude >= 0 else 0.0
    diff = abs(inputs.roof_azimuth % 360 - ideal)
    return min(diff, 360.0 - diff)


def advisory_warnings(inputs: SolarInputParams, system: SystemSpec, advanced: AdvancedMetrics) -> Tuple[str, ...]:
    warnings: List[str] = []
    if inputs.roof_age is RoofAge.OVER_20_YEARS:
        warnings.append("Roof replacement recommended before installing panels")
    elif inputs.roof_age is RoofAge.YEARS_15_20:
        warnings.append("Roof inspection recommended before installation")
    if 1.0 - system.shading_factor > HIGH_SHADING_LOSS:
        warnings.append("High shading detected, production may be reduced")
    offset = _orientation_offset(inputs)
    if offset is not None and offset > POOR_ORIENTATION_DEG:
        warnings.append("Poor roof orientation, consider alternative installation locations")
    if advanced.payback_period > LONG_PAYBACK_YEARS:
        warnings.append("Long payback period, solar may not be financially beneficial at this location")
    if system.roof_coverage >= 100.0:
        warnings.append("Required panels exceed the available roof area")
    return tuple(warnings)


def calculate_solar_system(
    inputs: SolarInputParams,
    *,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
    irradiance_provider: IrradianceProvider | None = None,
    state_extractor: StateExtractor | None = None,
    store: CalculationStore | None = None,
    user_key: str | None = None,
    debug: DebugCollector | None = None,
) -> SolarCalculationResult:
    """Run every stage for one request and return the aggregate result.

    Deterministic for a given irradiance value; the only I/O is the provider
    call and, when ``store`` and ``user_key`` are both set, a background save
    dispatched after the result is complete.
    """
    debug = ScopedDebugCollector(debug or NullDebugCollector(), scope=inputs.address or None)

    irradiance = resolve_irradiance(inputs, irradiance_provider, debug)
    debug.emit(
        "irradiance.summary",
        {"source": irradiance.source, "annual": irradiance.annual, "monthly": irradiance.has_monthly},
    )

    system = size_system(inputs, irradiance, catalog, debug)
    production = estimate_production(system, irradiance, inputs.latitude, debug)
    financial = calculate_financials(system, production, inputs, catalog, state_extractor, debug)
    advanced = advanced_metrics(financial, production, debug)
    environmental = calculate_environmental_impact(production.annual_production, debug)
    financing = financing_options(financial.total_cost, financial.annual_savings, debug)

    net_metering = None
    if inputs.net_metering:
        net_metering = net_metering_savings(
            production.monthly_production, inputs.monthly_kwh, inputs.electricity_rate
        )

    result = SolarCalculationResult(
        inputs=inputs,
        irradiance=irradiance,
        system=system,
        production=production,
        financial=financial,
        advanced=advanced,
        environmental=environmental,
        financing=financing,
        projection=yearly_projection(financial, production),
        net_metering=net_metering,
        utility=lookup_utility(inputs.address),
        warnings=advisory_warnings(inputs, system, advanced),
    )

    if store is not None and user_key:
        persist_in_background(store, result, user_key, debug)
    return result


__all__ = ["calculate_solar_system", "resolve_irradiance", "advisory_warnings"]
