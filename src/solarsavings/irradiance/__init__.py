"""Irradiance providers (peak sun hours per site)."""

from .base import IrradianceProvider
from .fallback import LatitudeIrradianceEstimate, estimate_peak_sun_hours
from .nrel import NRELIrradianceProvider
from .pvgis import PVGISIrradianceProvider

__all__ = [
    "IrradianceProvider",
    "LatitudeIrradianceEstimate",
    "estimate_peak_sun_hours",
    "NRELIrradianceProvider",
    "PVGISIrradianceProvider",
]
