"""Engine package orchestrating end-to-end solar economics calculations."""

from .calculate import calculate_solar_system, resolve_irradiance

__all__ = ["calculate_solar_system", "resolve_irradiance"]
