"""Solar position utilities built on pvlib."""
from __future__ import annotations

import pandas as pd
import pvlib

from solarsavings.core.debug import DebugCollector, NullDebugCollector


def solar_position(
    lat: float,
    lon: float,
    times: pd.DatetimeIndex,
    debug: DebugCollector | None = None,
) -> pd.DataFrame:
    """Compute solar position for a coordinate pair at the given times.

    Parameters
    ----------
    lat, lon: float
        Site latitude/longitude in degrees.
    times: pandas.DatetimeIndex
        Must be timezone-aware. pvlib assumes UTC if naive, which would be wrong for local times.
    debug: DebugCollector | None
        Collector for summary debug info.

    Returns
    -------
    pandas.DataFrame
        Columns include at least zenith, elevation, azimuth as provided by pvlib.
    """
    if times.tz is None:
        raise ValueError("times must be timezone-aware (tzinfo set)")

    debug = debug or NullDebugCollector()

    pvloc = pvlib.location.Location(latitude=lat, longitude=lon, tz=times.tz)
    df = pvloc.get_solarposition(times)

    expected_cols = ["zenith", "elevation", "azimuth"]
    missing = [c for c in expected_cols if c not in df.columns]
    if missing:
        raise RuntimeError(f"pvlib missing expected columns: {missing}")

    _emit_summary(debug, df)
    return df[expected_cols + [c for c in df.columns if c not in expected_cols]]


def _emit_summary(debug: DebugCollector, df: pd.DataFrame) -> None:
    payload = {
        "elevation_min": float(df["elevation"].min()),
        "elevation_max": float(df["elevation"].max()),
        "has_nans": bool(df.isna().any().any()),
    }
    debug.emit("solar_position.summary", payload, ts=df.index[0] if not df.empty else None)


__all__ = ["solar_position"]
