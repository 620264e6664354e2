"""Fire-and-forget persistence of calculation summaries.

A stored record is a flat summary of one calculation keyed by the caller's
user identifier. Storage failures never reach the caller: they are logged and
reported to the debug collector from the background thread.
"""
from __future__ import annotations

import datetime as dt
import json
import logging
import math
import threading
from pathlib import Path
from typing import Any, Dict, Protocol

import requests

from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import SolarCalculationResult

log = logging.getLogger(__name__)

TABLE_NAME = "solar_calculations"


class CalculationStore(Protocol):
    def save(self, record: Dict[str, Any]) -> None:
        """Persist one calculation record; may raise on failure."""
        ...


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def build_record(result: SolarCalculationResult, user_key: str) -> Dict[str, Any]:
    """Flatten a result into the stored summary row."""
    inputs = result.inputs
    return {
        "user_key": user_key,
        "address": inputs.address,
        "latitude": inputs.latitude,
        "longitude": inputs.longitude,
        "monthly_kwh": inputs.monthly_kwh,
        "electricity_rate": inputs.electricity_rate,
        "roof_area": inputs.roof_area,
        "system_size": result.system.system_size_kw,
        "panels_needed": result.system.panels_needed,
        "annual_production": result.production.annual_production,
        "annual_savings": result.financial.annual_savings,
        "payback_period": _finite(result.advanced.payback_period),
        "total_cost": result.financial.total_cost,
        "net_cost": result.financial.net_cost,
        "irradiance_source": result.irradiance.source,
        "calculation_type": "advanced",
        "created_at": dt.datetime.now(dt.timezone.utc).isoformat(),
    }


class JsonlCalculationStore:
    """Append records to a local JSON-lines file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def save(self, record: Dict[str, Any]) -> None:
        line = json.dumps(record, sort_keys=True)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")


class RestCalculationStore:
    """Insert records through a PostgREST-style endpoint (e.g. Supabase)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = TABLE_NAME,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ):
        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    def save(self, record: Dict[str, Any]) -> None:
        resp = self.session.post(self.url, json=record, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()


def _save_quietly(store: CalculationStore, record: Dict[str, Any], debug: DebugCollector) -> None:
    try:
        store.save(record)
    except Exception as exc:  # storage must never fail the calculation
        log.warning("Failed to persist calculation for %s: %s", record.get("user_key"), exc)
        debug.emit("persistence.error", {"error": str(exc), "store": type(store).__name__})
        return
    debug.emit("persistence.saved", {"store": type(store).__name__})


def persist_in_background(
    store: CalculationStore,
    result: SolarCalculationResult,
    user_key: str,
    debug: DebugCollector | None = None,
) -> threading.Thread:
    """Save ``result`` on a daemon thread and return the started thread.

    The record is built before the thread starts, so the caller's result is
    never shared with the writer.
    """
    debug = debug or NullDebugCollector()
    record = build_record(result, user_key)
    thread = threading.Thread(
        target=_save_quietly,
        args=(store, record, debug),
        name="solarsavings-persist",
        daemon=True,
    )
    thread.start()
    return thread


__all__ = [
    "CalculationStore",
    "JsonlCalculationStore",
    "RestCalculationStore",
    "build_record",
    "persist_in_background",
]
