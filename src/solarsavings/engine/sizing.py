"""System sizing: consumption adjustments, efficiency and whole-panel rounding."""
from __future__ import annotations

import math

from solarsavings.core.catalog import DEFAULT_CATALOG, EquipmentCatalog
from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import ShadingLevel, SolarInputParams, SolarIrradianceData, SystemSpec

POOL_KWH = 500.0
EV_KWH = 400.0
ADDITIONS_MULTIPLIER = 1.25
BASE_DERATE = 0.85
PANEL_AREA_SQFT = 22.0


def adjusted_monthly_kwh(inputs: SolarInputParams) -> float:
    """Baseline consumption plus pool/EV loads, then the additions multiplier."""
    monthly = inputs.monthly_kwh
    if inputs.has_pool:
        monthly += POOL_KWH
    if inputs.has_ev:
        monthly += EV_KWH
    if inputs.planning_additions:
        monthly *= ADDITIONS_MULTIPLIER
    return monthly


def shading_factor(level: ShadingLevel | str | None, catalog: EquipmentCatalog = DEFAULT_CATALOG) -> float:
    return catalog.shading_factor(level)


def roof_coverage(panels_needed: int, roof_area: float | None) -> float:
    """Percent of roof covered by panels, capped at 100; 0 when the area is unknown."""
    if not roof_area or roof_area <= 0:
        return 0.0
    return min((panels_needed * PANEL_AREA_SQFT / roof_area) * 100.0, 100.0)


def size_system(
    inputs: SolarInputParams,
    irradiance: SolarIrradianceData,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
    debug: DebugCollector | None = None,
) -> SystemSpec:
    debug = debug or NullDebugCollector()

    monthly = adjusted_monthly_kwh(inputs)
    annual_kwh = monthly * 12

    panel = catalog.panel(inputs.panel_type)
    inverter = catalog.inverter(inputs.inverter_type)
    battery = catalog.battery(inputs.battery_option)
    shading = shading_factor(inputs.shading_level, catalog)

    efficiency = BASE_DERATE * inverter.efficiency * shading
    yield_per_kw = irradiance.annual * 365 * efficiency
    system_size_kw = annual_kwh / yield_per_kw if yield_per_kw > 0 else 0.0
    if system_size_kw < 0:
        system_size_kw = 0.0

    panels_needed = math.ceil(system_size_kw * 1000 / panel.wattage) if panel.wattage > 0 else 0
    actual_size_kw = panels_needed * panel.wattage / 1000

    spec = SystemSpec(
        system_size_kw=system_size_kw,
        actual_system_size_kw=actual_size_kw,
        panels_needed=panels_needed,
        panel_wattage=panel.wattage,
        battery_capacity_kwh=battery.capacity_kwh,
        battery_cost=battery.cost,
        system_efficiency=efficiency,
        roof_coverage=roof_coverage(panels_needed, inputs.roof_area),
        adjusted_monthly_kwh=monthly,
        annual_kwh=annual_kwh,
        shading_factor=shading,
        panel_type=inputs.panel_type if inputs.panel_type in catalog.panels else catalog.default_panel,
        inverter_type=inputs.inverter_type if inputs.inverter_type in catalog.inverters else catalog.default_inverter,
        battery_option=inputs.battery_option if inputs.battery_option in catalog.batteries else catalog.default_battery,
    )
    debug.emit(
        "sizing.summary",
        {
            "adjusted_monthly_kwh": monthly,
            "system_size_kw": system_size_kw,
            "actual_system_size_kw": actual_size_kw,
            "panels_needed": panels_needed,
            "system_efficiency": efficiency,
            "shading_factor": shading,
            "roof_coverage": spec.roof_coverage,
        },
    )
    return spec


__all__ = ["adjusted_monthly_kwh", "shading_factor", "roof_coverage", "size_system"]
