"""Latitude-band irradiance estimate used when no data source is reachable."""

from __future__ import annotations

from typing import Tuple

from solarsavings.core.models import SolarIrradianceData, round_half_up

# (upper |latitude| bound, peak sun hours); first matching band wins.
PEAK_SUN_HOURS_BANDS: Tuple[Tuple[float, float], ...] = (
    (25.0, 6.5),
    (35.0, 5.8),
    (45.0, 5.2),
)
HIGH_LATITUDE_PEAK_SUN_HOURS = 4.5


def estimate_peak_sun_hours(latitude: float) -> float:
    abs_lat = abs(latitude)
    for bound, hours in PEAK_SUN_HOURS_BANDS:
        if abs_lat < bound:
            return hours
    return HIGH_LATITUDE_PEAK_SUN_HOURS


class LatitudeIrradianceEstimate:
    """Offline provider: annual peak sun hours from latitude bands, no monthly data."""

    source = "latitude_estimate"

    def get_irradiance(
        self,
        lat: float,
        lon: float,
        *,
        tilt_deg: float | None = None,
        azimuth_deg: float | None = None,
    ) -> SolarIrradianceData:
        annual = estimate_peak_sun_hours(lat)
        return SolarIrradianceData(
            annual=annual,
            monthly=(),
            capacity_factor=round_half_up(annual / 24 * 100, 1),
            source=self.source,
        )


__all__ = ["PEAK_SUN_HOURS_BANDS", "estimate_peak_sun_hours", "LatitudeIrradianceEstimate"]
