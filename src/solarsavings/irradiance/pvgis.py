"""PVGIS provider: plane-of-array insolation from the typical meteorological year."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import requests

from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import SolarIrradianceData, round_half_up
from solarsavings.solar.irradiance import poa_irradiance
from solarsavings.solar.position import solar_position

# Non-leap year the TMY rows are re-stamped to; months come from different source years.
TMY_YEAR = 2023
MAX_DEFAULT_TILT = 60.0


def default_tilt(latitude: float) -> float:
    """Tilt equal to |latitude|, capped at 60 degrees."""
    return min(abs(latitude), MAX_DEFAULT_TILT)


def default_azimuth(latitude: float) -> float:
    """Equator-facing azimuth in pvlib convention (180 = south)."""
    return 180.0 if latitude >= 0 else 0.0


class PVGISIrradianceProvider:
    """Derive peak sun hours on the roof plane from the PVGIS TMY endpoint.

    Notes
    -----
    * Hourly GHI/DNI/DHI are transposed with pvlib, integrated per day and
      averaged per calendar month, so ``monthly`` is kWh/m²/day on the panel.
    * PVGIS stamps samples at HH:00 in UTC; the offset is left untouched since
      only daily sums are used.
    """

    source = "pvgis"

    def __init__(
        self,
        base_url: str = "https://re.jrc.ec.europa.eu/api/v5_3/tmy",
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        cache_dir: str | Path | None = None,
        timeout: float = 30.0,
        attempts: int = 3,
        backoff: float = 0.5,
        transposition_model: str = "perez",
    ):
        self.base_url = base_url
        self.debug = debug or NullDebugCollector()
        self.session = session or requests.Session()
        self.cache_dir = Path(cache_dir) if cache_dir else None
        self.timeout = timeout
        self.attempts = max(1, int(attempts))
        self.backoff = backoff
        self.transposition_model = transposition_model

    def _build_params(self, lat: float, lon: float) -> Dict[str, str]:
        return {
            "lat": str(lat),
            "lon": str(lon),
            "outputformat": "json",
            "browser": "0",
        }

    @staticmethod
    def _parse_time(values: list[str]) -> pd.DatetimeIndex:
        idx = pd.to_datetime(values, format="%Y%m%d:%H%M", utc=True)
        return idx.map(lambda ts: ts.replace(year=TMY_YEAR))

    def _parse_tmy(self, payload: Dict[str, Any]) -> pd.DataFrame:
        tmy = (payload.get("outputs") or {}).get("tmy_hourly")
        if not tmy:
            raise ValueError("PVGIS response missing tmy_hourly block")

        time_key = "time" if "time" in tmy[0] else "time(UTC)"
        # Drop leap days so re-stamping onto a non-leap year cannot fail.
        rows = [row for row in tmy if str(row[time_key])[4:8] != "0229"]
        index = self._parse_time([row[time_key] for row in rows])

        def col(name: str) -> list:
            return [row.get(name, 0.0) for row in rows]

        df = pd.DataFrame(
            {"ghi_wm2": col("G(h)"), "dni_wm2": col("Gb(n)"), "dhi_wm2": col("Gd(h)")},
            index=index,
        )
        df.index.name = "ts"
        return df.sort_index()

    def _fetch(self, lat: float, lon: float) -> tuple[Dict[str, Any], bool]:
        cache_path = None
        if self.cache_dir:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path = self.cache_dir / f"pvgis_tmy_{lat}_{lon}.json"
            if cache_path.exists():
                return json.loads(cache_path.read_text()), True

        params = self._build_params(lat, lon)
        self.debug.emit("irradiance.request", {"url": self.base_url, "params": params}, scope=self.source)
        for attempt in range(1, self.attempts + 1):
            try:
                resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
                resp.raise_for_status()
                data = resp.json()
                break
            except (requests.RequestException, ValueError) as exc:
                if attempt == self.attempts:
                    raise
                self.debug.emit("irradiance.retry", {"attempt": attempt, "error": str(exc)}, scope=self.source)
                time.sleep(self.backoff * attempt)

        if cache_path is not None:
            cache_path.write_text(json.dumps(data))
        return data, False

    def daily_poa_insolation(
        self, df: pd.DataFrame, lat: float, lon: float, tilt_deg: float, azimuth_deg: float
    ) -> pd.Series:
        """Daily plane-of-array insolation in kWh/m² from hourly TMY rows."""
        solpos = solar_position(lat, lon, df.index, debug=self.debug)
        poa = poa_irradiance(
            surface_tilt=tilt_deg,
            surface_azimuth=azimuth_deg,
            dni=df["dni_wm2"].astype(float),
            ghi=df["ghi_wm2"].astype(float),
            dhi=df["dhi_wm2"].astype(float),
            solar_zenith=solpos["zenith"],
            solar_azimuth=solpos["azimuth"],
            model=self.transposition_model,
            debug=self.debug,
        )
        # Hourly samples: W/m² over one hour equals Wh/m².
        return poa["poa_global"].resample("D").sum() / 1000.0

    def get_irradiance(
        self,
        lat: float,
        lon: float,
        *,
        tilt_deg: float | None = None,
        azimuth_deg: float | None = None,
    ) -> SolarIrradianceData:
        tilt = default_tilt(lat) if tilt_deg is None else float(tilt_deg)
        azimuth = default_azimuth(lat) if azimuth_deg is None else float(azimuth_deg)

        data, cache_hit = self._fetch(lat, lon)
        df = self._parse_tmy(data)
        daily = self.daily_poa_insolation(df, lat, lon, tilt, azimuth)
        daily = daily[daily.index.year == TMY_YEAR]
        if daily.empty:
            raise ValueError("PVGIS TMY produced no daily insolation values")

        monthly = daily.groupby(daily.index.month).mean().reindex(range(1, 13))
        monthly_values = tuple(float(v) for v in monthly) if not monthly.isna().any() else ()
        annual = float(daily.mean())
        if annual <= 0:
            raise ValueError("PVGIS TMY produced non-positive insolation")

        self.debug.emit(
            "irradiance.response",
            {
                "annual": annual,
                "tilt_deg": tilt,
                "azimuth_deg": azimuth,
                "cache": cache_hit,
                "radiation_db": (data.get("inputs") or {}).get("meteo_data", {}).get("radiation_db"),
            },
            scope=self.source,
        )
        return SolarIrradianceData(
            annual=annual,
            monthly=monthly_values,
            capacity_factor=round_half_up(annual / 24 * 100, 1),
            source=self.source,
        )


__all__ = ["PVGISIrradianceProvider", "default_tilt", "default_azimuth"]
