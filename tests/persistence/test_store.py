import json
import logging

from solarsavings.core.debug import ListDebugCollector
from solarsavings.core.models import SolarInputParams
from solarsavings.engine import calculate_solar_system
from solarsavings.persistence.store import (
    JsonlCalculationStore,
    RestCalculationStore,
    build_record,
    persist_in_background,
)


def _result(**overrides):
    params = dict(address="1 Elm St, Plano, TX 75024", coordinates=(33.02, -96.7), monthly_kwh=1200, electricity_rate=0.14)
    params.update(overrides)
    return calculate_solar_system(SolarInputParams(**params))


def test_build_record_flattens_summary():
    result = _result()
    record = build_record(result, "user-1")
    assert record["user_key"] == "user-1"
    assert record["address"] == "1 Elm St, Plano, TX 75024"
    assert record["latitude"] == 33.02
    assert record["system_size"] == result.system.system_size_kw
    assert record["payback_period"] == result.advanced.payback_period
    assert record["irradiance_source"] == "latitude_estimate"
    assert record["created_at"].endswith("+00:00")


def test_build_record_nulls_infinite_payback():
    record = build_record(_result(electricity_rate=0), "u")
    assert record["payback_period"] is None


def test_jsonl_store_appends(tmp_path):
    path = tmp_path / "nested" / "calcs.jsonl"
    store = JsonlCalculationStore(path)
    store.save({"user_key": "a", "x": 1})
    store.save({"user_key": "b", "x": 2})
    rows = [json.loads(line) for line in path.read_text().splitlines()]
    assert [r["user_key"] for r in rows] == ["a", "b"]


def test_background_persist_writes_file(tmp_path):
    path = tmp_path / "calcs.jsonl"
    debug = ListDebugCollector()
    thread = persist_in_background(JsonlCalculationStore(path), _result(), "user-2", debug)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert thread.daemon
    assert json.loads(path.read_text().splitlines()[0])["user_key"] == "user-2"
    assert debug.stages() == ["persistence.saved"]


def test_background_failure_is_logged_not_raised(caplog):
    class FailingStore:
        def save(self, record):
            raise RuntimeError("insert rejected")

    debug = ListDebugCollector()
    with caplog.at_level(logging.WARNING, logger="solarsavings.persistence.store"):
        thread = persist_in_background(FailingStore(), _result(), "user-3", debug)
        thread.join(timeout=5)

    assert debug.stages() == ["persistence.error"]
    assert debug.events[0]["payload"]["error"] == "insert rejected"
    assert any("Failed to persist calculation" in r.getMessage() for r in caplog.records)


def test_rest_store_posts_with_headers():
    calls = []

    class Resp:
        def raise_for_status(self):
            return None

    class Session:
        def post(self, url, json=None, headers=None, timeout=None):
            calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
            return Resp()

    store = RestCalculationStore("https://db.example.com/", "secret", session=Session(), timeout=4)
    store.save({"user_key": "u"})
    call = calls[0]
    assert call["url"] == "https://db.example.com/rest/v1/solar_calculations"
    assert call["headers"]["apikey"] == "secret"
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["json"] == {"user_key": "u"}
    assert call["timeout"] == 4
