"""Abstract irradiance provider protocol."""

from __future__ import annotations

from typing import Protocol

from solarsavings.core.models import SolarIrradianceData


class IrradianceProvider(Protocol):
    """Interface for fetching site irradiance."""

    def get_irradiance(
        self,
        lat: float,
        lon: float,
        *,
        tilt_deg: float | None = None,
        azimuth_deg: float | None = None,
    ) -> SolarIrradianceData:
        """Return irradiance for a site.

        ``annual`` is the mean daily insolation in kWh/m²/day (equivalently
        peak sun hours). ``monthly`` holds twelve Jan..Dec values in the same
        unit, or is empty when the source has no monthly breakdown. Providers
        may raise on transport or payload errors; the engine falls back to a
        latitude estimate.
        """
        ...


__all__ = ["IrradianceProvider"]
