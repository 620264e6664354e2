"""Shared CLI helpers: result serialization and tabular views."""
from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from solarsavings.core.catalog import EquipmentCatalog
from solarsavings.core.config import ConfigError
from solarsavings.core.models import SolarCalculationResult

PROJECTION_COLUMNS = ["year", "production_kwh", "savings", "cumulative_savings"]
FINANCING_COLUMNS = ["type", "monthly_payment", "total_cost", "savings", "term_years"]


def _json_safe(obj: Any) -> Any:
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def result_to_dict(result: SolarCalculationResult) -> dict:
    """Nested plain mapping; non-finite numbers (e.g. an infinite payback) become ``None``."""
    return _json_safe(result.to_dict())


def write_result(path: Path, result: SolarCalculationResult, fmt: str = "json") -> None:
    data = result_to_dict(result)
    fmt = fmt.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "json":
        path.write_text(json.dumps(data, indent=2))
    elif fmt in {"yaml", "yml"}:
        path.write_text(yaml.safe_dump(data, sort_keys=False))
    else:
        raise ConfigError(f"Unsupported output format: {fmt}")


def projection_frame(result: SolarCalculationResult) -> pd.DataFrame:
    if not result.projection:
        return pd.DataFrame(columns=PROJECTION_COLUMNS)
    df = pd.DataFrame([vars(row) for row in result.projection], columns=PROJECTION_COLUMNS)
    return df.round({"production_kwh": 0, "savings": 2, "cumulative_savings": 2})


def financing_frame(result: SolarCalculationResult) -> pd.DataFrame:
    df = pd.DataFrame([vars(opt) for opt in result.financing], columns=FINANCING_COLUMNS)
    return df.round({"monthly_payment": 2, "total_cost": 2, "savings": 2})


def catalog_frames(catalog: EquipmentCatalog) -> dict[str, pd.DataFrame]:
    """One table per equipment kind, keyed by catalog section name."""

    def frame(table) -> pd.DataFrame:
        rows = [{"key": key.value, **vars(spec)} for key, spec in table.items()]
        return pd.DataFrame(rows)

    return {
        "panels": frame(catalog.panels),
        "inverters": frame(catalog.inverters),
        "batteries": frame(catalog.batteries),
    }


__all__ = ["result_to_dict", "write_result", "projection_frame", "financing_frame", "catalog_frames"]
