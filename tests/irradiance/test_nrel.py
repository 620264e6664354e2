import pytest
import requests

from solarsavings.core.debug import ListDebugCollector
from solarsavings.irradiance.nrel import MONTH_KEYS, NRELIrradianceProvider

MONTHLY = dict(zip(MONTH_KEYS, (3.2, 4.0, 5.1, 6.0, 6.5, 7.0, 7.1, 6.7, 5.8, 4.8, 3.6, 3.0)))


def _payload(annual=5.44, monthly=MONTHLY, errors=None):
    return {
        "version": "1.0.0",
        "errors": errors or [],
        "inputs": {"lat": "32.7767", "lon": "-96.797"},
        "outputs": {"avg_ghi": {"annual": annual, "monthly": monthly}},
    }


class DummyResp:
    def __init__(self, payload, status_error=None):
        self._payload = payload
        self._status_error = status_error

    def raise_for_status(self):
        if self._status_error:
            raise self._status_error

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_build_params_use_key_and_coordinates():
    provider = NRELIrradianceProvider(api_key="abc")
    params = provider._build_params(32.7767, -96.797)
    assert params == {"api_key": "abc", "lat": "32.7767", "lon": "-96.797"}


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("NREL_API_KEY", "from-env")
    assert NRELIrradianceProvider().api_key == "from-env"


def test_parses_annual_and_monthly():
    session = DummySession([DummyResp(_payload())])
    debug = ListDebugCollector()
    provider = NRELIrradianceProvider(api_key="k", session=session, debug=debug, timeout=3)
    data = provider.get_irradiance(32.7767, -96.797)

    assert data.annual == 5.44
    assert data.monthly[0] == 3.2 and data.monthly[11] == 3.0
    assert data.has_monthly
    assert data.source == "nrel"
    assert session.calls[0]["timeout"] == 3
    assert session.calls[0]["url"].endswith("solar_resource/v1.json")
    assert debug.stages() == ["irradiance.request", "irradiance.response"]


def test_incomplete_monthly_is_dropped():
    partial = {k: v for k, v in MONTHLY.items() if k != "dec"}
    session = DummySession([DummyResp(_payload(monthly=partial))])
    data = NRELIrradianceProvider(api_key="k", session=session).get_irradiance(30.0, -97.0)
    assert data.monthly == ()


def test_retries_then_succeeds():
    session = DummySession([requests.ConnectionError("boom"), DummyResp(_payload())])
    debug = ListDebugCollector()
    provider = NRELIrradianceProvider(api_key="k", session=session, debug=debug, backoff=0)
    data = provider.get_irradiance(30.0, -97.0)
    assert len(session.calls) == 2
    assert data.annual == 5.44
    assert "irradiance.retry" in debug.stages()


def test_gives_up_after_attempts():
    err = requests.HTTPError("503")
    session = DummySession([DummyResp({}, status_error=err)] * 3)
    provider = NRELIrradianceProvider(api_key="k", session=session, backoff=0)
    with pytest.raises(requests.HTTPError):
        provider.get_irradiance(30.0, -97.0)
    assert len(session.calls) == 3


def test_error_payload_and_missing_annual_raise():
    session = DummySession([DummyResp(_payload(errors=["invalid api key"]))])
    with pytest.raises(ValueError, match="invalid api key"):
        NRELIrradianceProvider(api_key="k", session=session).get_irradiance(30.0, -97.0)

    session = DummySession([DummyResp(_payload(annual="no data"))])
    with pytest.raises(ValueError, match="annual"):
        NRELIrradianceProvider(api_key="k", session=session).get_irradiance(30.0, -97.0)


def test_missing_key_raises_before_request(monkeypatch):
    monkeypatch.delenv("NREL_API_KEY", raising=False)
    session = DummySession([])
    with pytest.raises(ValueError, match="API key"):
        NRELIrradianceProvider(session=session).get_irradiance(30.0, -97.0)
    assert session.calls == []
