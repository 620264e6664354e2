"""NREL solar resource provider (annual and monthly average GHI)."""

from __future__ import annotations

import os
import time
from typing import Any, Dict, Optional

import requests

from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import SolarIrradianceData, round_half_up

MONTH_KEYS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


class NRELIrradianceProvider:
    """Fetch average GHI (kWh/m²/day) from NREL's solar_resource API.

    The API key comes from the constructor or the ``NREL_API_KEY`` environment
    variable. Transport errors are retried; an error list in the payload or a
    missing annual figure raises ``ValueError`` so callers can fall back.
    """

    source = "nrel"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://developer.nrel.gov/api/solar/solar_resource/v1.json",
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        timeout: float = 10.0,
        attempts: int = 3,
        backoff: float = 0.5,
    ):
        self.api_key = api_key or os.getenv("NREL_API_KEY")
        self.base_url = base_url
        self.debug = debug or NullDebugCollector()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.attempts = max(1, int(attempts))
        self.backoff = backoff

    def _build_params(self, lat: float, lon: float) -> Dict[str, str]:
        return {"api_key": str(self.api_key), "lat": str(lat), "lon": str(lon)}

    @staticmethod
    def _number(value: Any) -> Optional[float]:
        try:
            out = float(value)
        except (TypeError, ValueError):
            return None
        return out if out == out else None

    def _parse(self, payload: Dict[str, Any]) -> SolarIrradianceData:
        errors = payload.get("errors") or []
        if errors:
            raise ValueError(f"NREL returned errors: {'; '.join(str(e) for e in errors)}")

        ghi = (payload.get("outputs") or {}).get("avg_ghi")
        if not isinstance(ghi, dict):
            raise ValueError("NREL response missing outputs.avg_ghi")
        annual = self._number(ghi.get("annual"))
        if annual is None or annual <= 0:
            raise ValueError(f"NREL response has no usable annual GHI: {ghi.get('annual')!r}")

        monthly_block = ghi.get("monthly") or {}
        monthly = [self._number(monthly_block.get(key)) for key in MONTH_KEYS]
        if any(v is None for v in monthly):
            monthly = []

        return SolarIrradianceData(
            annual=annual,
            monthly=tuple(monthly),
            capacity_factor=round_half_up(annual / 24 * 100, 1),
            source=self.source,
        )

    def get_irradiance(
        self,
        lat: float,
        lon: float,
        *,
        tilt_deg: float | None = None,
        azimuth_deg: float | None = None,
    ) -> SolarIrradianceData:
        if not self.api_key:
            raise ValueError("NREL API key not configured (set NREL_API_KEY)")

        params = self._build_params(lat, lon)
        self.debug.emit("irradiance.request", {"url": self.base_url, "lat": lat, "lon": lon}, scope=self.source)
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

        result = self._parse(data)
        self.debug.emit(
            "irradiance.response",
            {"annual": result.annual, "monthly": bool(result.monthly)},
            scope=self.source,
        )
        return result


__all__ = ["NRELIrradianceProvider", "MONTH_KEYS"]
