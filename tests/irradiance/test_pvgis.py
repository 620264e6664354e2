import json
import math

import pandas as pd
import pytest

from solarsavings.core.debug import ListDebugCollector
from solarsavings.irradiance.pvgis import PVGISIrradianceProvider, default_azimuth, default_tilt


def _synthetic_tmy():
    """Clear-ish equatorial year: bell-shaped GHI between 06:00 and 18:00 UTC."""
    times = pd.date_range("2019-01-01 00:00", periods=8760, freq="1h", tz="UTC")
    rows = []
    for ts in times:
        hour = ts.hour
        ghi = max(0.0, 900.0 * math.sin(math.pi * (hour - 6) / 12)) if 6 <= hour <= 18 else 0.0
        rows.append(
            {
                "time(UTC)": ts.strftime("%Y%m%d:%H%M"),
                "T2m": 25.0,
                "G(h)": ghi,
                "Gb(n)": ghi * 0.7,
                "Gd(h)": ghi * 0.25,
                "WS10m": 1.0,
            }
        )
    return {"inputs": {"meteo_data": {"radiation_db": "SYNTH"}}, "outputs": {"tmy_hourly": rows}}


class DummyResp:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    def get(self, url, params=None, timeout=None):
        self.calls += 1
        return DummyResp(self.payload)


def test_build_params_basic():
    params = PVGISIrradianceProvider()._build_params(45.0, 8.0)
    assert params == {"lat": "45.0", "lon": "8.0", "outputformat": "json", "browser": "0"}


def test_default_orientation():
    assert default_tilt(33.0) == 33.0
    assert default_tilt(-70.0) == 60.0
    assert default_azimuth(33.0) == 180.0
    assert default_azimuth(-33.0) == 0.0


def test_parse_restamps_year_and_drops_leap_day():
    provider = PVGISIrradianceProvider()
    payload = {
        "outputs": {
            "tmy_hourly": [
                {"time(UTC)": "20160228:2300", "G(h)": 0, "Gb(n)": 0, "Gd(h)": 0},
                {"time(UTC)": "20160229:0000", "G(h)": 0, "Gb(n)": 0, "Gd(h)": 0},
                {"time(UTC)": "20190101:0000", "G(h)": 0, "Gb(n)": 0, "Gd(h)": 0},
            ]
        }
    }
    df = provider._parse_tmy(payload)
    assert len(df) == 2
    assert (df.index.year == 2023).all()
    assert df.index.tz is not None
    assert list(df.columns) == ["ghi_wm2", "dni_wm2", "dhi_wm2"]


def test_missing_block_raises():
    with pytest.raises(ValueError, match="tmy_hourly"):
        PVGISIrradianceProvider()._parse_tmy({"outputs": {}})


def test_monthly_plane_of_array_insolation_and_cache(tmp_path):
    session = DummySession(_synthetic_tmy())
    debug = ListDebugCollector()
    provider = PVGISIrradianceProvider(
        session=session, cache_dir=tmp_path, debug=debug, transposition_model="isotropic"
    )
    data = provider.get_irradiance(0.0, 0.0, tilt_deg=10.0, azimuth_deg=180.0)

    assert data.source == "pvgis"
    assert data.has_monthly
    assert all(v > 0 for v in data.monthly)
    assert 2.0 < data.annual < 9.0
    assert data.capacity_factor == round(data.annual / 24 * 100, 1)
    assert "irradiance.response" in debug.stages()

    cached = list(tmp_path.glob("pvgis_tmy_*.json"))
    assert len(cached) == 1
    assert json.loads(cached[0].read_text())["outputs"]["tmy_hourly"]

    again = provider.get_irradiance(0.0, 0.0, tilt_deg=10.0, azimuth_deg=180.0)
    assert session.calls == 1
    assert again.annual == pytest.approx(data.annual)
