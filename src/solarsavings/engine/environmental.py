"""Environmental equivalents of annual solar production."""
from __future__ import annotations

from solarsavings.core.debug import DebugCollector
from solarsavings.core.models import EnvironmentalImpact, round_half_up

CO2_TONS_PER_KWH = 0.0004
TREES_PER_TON = 16
CAR_LBS_CO2_PER_YEAR = 12000
LBS_PER_TON = 2300
COAL_LBS_PER_KWH = 0.9


def calculate_environmental_impact(annual_production: float, debug: DebugCollector | None = None) -> EnvironmentalImpact:
    co2 = annual_production * CO2_TONS_PER_KWH
    impact = EnvironmentalImpact(
        co2_offset_tons=co2,
        trees_equivalent=round_half_up(co2 * TREES_PER_TON),
        cars_off_road_equivalent=round_half_up(co2 * LBS_PER_TON / CAR_LBS_CO2_PER_YEAR),
        coal_avoided_pounds=round_half_up(annual_production * COAL_LBS_PER_KWH),
    )
    if debug is not None:
        debug.emit("environmental.summary", {"co2_offset_tons": co2, "trees": impact.trees_equivalent})
    return impact


__all__ = ["calculate_environmental_impact"]
