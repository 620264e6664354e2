"""Configuration loader for calculation requests and catalog overrides.

Supports YAML and JSON files. A request file holds the ``SolarInputParams``
fields at the top level (snake_case) or under an ``inputs`` key, plus an
optional ``catalog`` section replacing entries of the default catalogs.
"""
from __future__ import annotations

import dataclasses
import json
import math
from pathlib import Path
from typing import Any, Dict

try:
    import yaml
except ModuleNotFoundError as exc:  # pragma: no cover - defensive import
    raise ImportError("PyYAML is required to load YAML configs") from exc

from .catalog import DEFAULT_CATALOG, BatterySpec, EquipmentCatalog, InverterSpec, PanelSpec
from .models import BatteryOption, CalculationError, InverterType, PanelType, ShadingLevel, SolarInputParams


class ConfigError(ValueError):
    """Raised when configuration cannot be parsed into domain models."""


_FIELD_CASTS = {"float": float, "int": int, "str": str}

_DEF_REQUIRED_INPUT_KEYS = {"address", "monthly_kwh", "electricity_rate"}
_INPUT_KEYS = {
    "address",
    "coordinates",
    "monthly_kwh",
    "electricity_rate",
    "roof_type",
    "roof_age",
    "shading_level",
    "has_pool",
    "has_ev",
    "planning_additions",
    "panel_type",
    "inverter_type",
    "battery_option",
    "roof_area",
    "roof_tilt",
    "roof_azimuth",
    "utility_rates",
    "net_metering",
}


def _load_raw(path: Path) -> Dict[str, Any]:
    text = path.read_text()
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(text) or {}
        elif path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raise ConfigError(f"Unsupported config extension: {path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def parse_inputs(raw: Dict[str, Any]) -> SolarInputParams:
    """Build ``SolarInputParams`` from a mapping; only the request basics are required."""
    section = raw.get("inputs", raw)
    if not isinstance(section, dict):
        raise ConfigError("inputs must be a mapping")
    missing = _DEF_REQUIRED_INPUT_KEYS - section.keys()
    if missing:
        raise ConfigError(f"Missing input fields: {sorted(missing)}")
    if "coordinates" not in section and "lat" in section:
        section = dict(section, coordinates=(section.get("lat"), section.get("lon")))
    utility_rates = section.get("utility_rates")
    if utility_rates is not None and not isinstance(utility_rates, dict):
        raise ConfigError("utility_rates must be a mapping of name to $/kWh")
    return SolarInputParams(**{k: v for k, v in section.items() if k in _INPUT_KEYS})


def _parse_specs(raw: Dict[str, Any], key_type, spec_type, label: str) -> Dict[Any, Any]:
    if not isinstance(raw, dict):
        raise ConfigError(f"catalog.{label} must be a mapping")
    valid = {m.value for m in key_type}
    parsed = {}
    for key, fields in raw.items():
        if str(key).strip().lower() not in valid:
            raise ConfigError(f"Unknown {label} key {key!r}; choose from {sorted(valid)}")
        if not isinstance(fields, dict):
            raise ConfigError(f"catalog.{label}.{key} must be a mapping")
        casts = {
            f.name: _FIELD_CASTS.get(getattr(f.type, "__name__", f.type), str) for f in dataclasses.fields(spec_type)
        }
        unknown = sorted(set(fields) - casts.keys())
        if unknown:
            raise ConfigError(f"Invalid catalog.{label}.{key}: unknown fields {unknown}")
        values = {
            name: _cast(value, casts[name], f"catalog.{label}.{key}.{name}") for name, value in fields.items()
        }
        try:
            parsed[key_type.parse(key)] = spec_type(**values)
        except TypeError as exc:
            raise ConfigError(f"Invalid catalog.{label}.{key}: {exc}") from exc
    return parsed


def _cast(value: Any, cast, where: str) -> Any:
    if cast is str:
        return str(value)
    if isinstance(value, bool):
        raise ConfigError(f"{where} must be a number, got {value!r}")
    try:
        out = cast(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigError(f"{where} must be a number, got {value!r}") from exc
    if not math.isfinite(out):
        raise ConfigError(f"{where} must be finite, got {value!r}")
    return out


def _rate_table(raw: Any, label: str) -> Dict[str, float]:
    if not isinstance(raw, dict):
        raise ConfigError(f"catalog.{label} must be a mapping")
    return {str(k): _cast(v, float, f"catalog.{label}.{k}") for k, v in raw.items()}


def parse_catalog(raw: Dict[str, Any] | None, base: EquipmentCatalog = DEFAULT_CATALOG) -> EquipmentCatalog:
    """Overlay a ``catalog`` section onto ``base``; entries merge per key."""
    if not raw:
        return base
    if not isinstance(raw, dict):
        raise ConfigError("catalog must be a mapping")
    changes: Dict[str, Any] = {}
    if "panels" in raw:
        changes["panels"] = {**base.panels, **_parse_specs(raw["panels"], PanelType, PanelSpec, "panels")}
    if "inverters" in raw:
        changes["inverters"] = {
            **base.inverters,
            **_parse_specs(raw["inverters"], InverterType, InverterSpec, "inverters"),
        }
    if "batteries" in raw:
        changes["batteries"] = {
            **base.batteries,
            **_parse_specs(raw["batteries"], BatteryOption, BatterySpec, "batteries"),
        }
    if "shading" in raw:
        shading = _rate_table(raw["shading"], "shading")
        valid = {m.value for m in ShadingLevel}
        unknown = [k for k in shading if k.lower() not in valid]
        if unknown:
            raise ConfigError(f"Unknown shading levels: {unknown}")
        changes["shading"] = {**base.shading, **shading}
    if "state_incentives" in raw:
        incentives = _rate_table(raw["state_incentives"], "state_incentives")
        changes["state_incentives"] = {
            **base.state_incentives,
            **{k.upper(): v for k, v in incentives.items()},
        }
    try:
        return base.with_overrides(**changes)
    except CalculationError as exc:
        raise ConfigError(f"Invalid catalog: {exc}") from exc


def _require(path: str | Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    return path


def load_inputs(path: str | Path) -> SolarInputParams:
    return parse_inputs(_load_raw(_require(path)))


def load_catalog(path: str | Path, base: EquipmentCatalog = DEFAULT_CATALOG) -> EquipmentCatalog:
    raw = _load_raw(_require(path))
    return parse_catalog(raw.get("catalog", raw), base=base)


def load_request(path: str | Path) -> tuple[SolarInputParams, EquipmentCatalog]:
    """Load inputs and the (optionally overridden) catalog from one file."""
    raw = _load_raw(_require(path))
    return parse_inputs(raw), parse_catalog(raw.get("catalog"))


__all__ = [
    "ConfigError",
    "load_inputs",
    "load_catalog",
    "load_request",
    "parse_inputs",
    "parse_catalog",
]
