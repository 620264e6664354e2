"""Domain models for the solar economics engine.

Every record is an immutable value object created fresh for each calculation.
Request inputs are coerced rather than rejected: catalog keys resolve through
closed enums with a default variant, and malformed numbers fall back to
documented defaults.
"""
from __future__ import annotations

import enum
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# Dallas, TX; used when a request carries no usable coordinates.
DEFAULT_COORDINATES: Tuple[float, float] = (32.7767, -96.7970)


class CalculationError(RuntimeError):
    """Raised when a non-defaultable engine invariant is violated."""


class CatalogKey(str, enum.Enum):
    """String enum whose first declared member is the default variant.

    Lookups never raise: unknown values (wrong case, typos, ``None``) resolve
    to the default member.
    """

    @classmethod
    def default(cls):
        return next(iter(cls))

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.default()

    @classmethod
    def parse(cls, value: Any):
        """Resolve ``value`` to a member, falling back to the default."""
        if isinstance(value, cls):
            return value
        return cls(value)

    def __str__(self) -> str:
        return self.value


class PanelType(CatalogKey):
    SILFAB_440 = "silfab-440"
    QCELLS_400 = "qcells-400"
    REC_ALPHA_430 = "rec-alpha-430"
    PANASONIC_410 = "panasonic-410"


class InverterType(CatalogKey):
    ENPHASE_IQ8PLUS = "enphase-iq8plus"
    SOLAREDGE_HD_WAVE = "solaredge-hd-wave"
    SMA_SUNNY_BOY = "sma-sunny-boy"


class BatteryOption(CatalogKey):
    NONE = "none"
    TESLA_POWERWALL_3 = "tesla-powerwall-3"
    ENPHASE_5P = "enphase-5p"


class ShadingLevel(CatalogKey):
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"


class RoofType(CatalogKey):
    ASPHALT_SHINGLE = "asphalt_shingle"
    METAL = "metal"
    TILE = "tile"
    FLAT = "flat"
    SLATE = "slate"
    WOOD_SHAKE = "wood_shake"
    OTHER = "other"


class RoofAge(CatalogKey):
    NEW = "new"
    YEARS_1_5 = "1-5_years"
    YEARS_5_10 = "5-10_years"
    YEARS_10_15 = "10-15_years"
    YEARS_15_20 = "15-20_years"
    OVER_20_YEARS = "over_20_years"


_FALSE_STRINGS = frozenset({"", "0", "false", "f", "no", "n", "off", "none", "null"})


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (``4.5 -> 5``, ``-2.5 -> -2``) instead of to even like ``round``."""
    if not math.isfinite(value):
        return value
    scale = 10**digits
    out = math.floor(value * scale + 0.5) / scale
    return int(out) if digits == 0 else out


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(out):
        return default
    return out


def _as_optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _as_rates(value: Any) -> Optional[Tuple[Tuple[str, float], ...]]:
    # Stored sorted as (name, $/kWh) pairs so the inputs stay hashable.
    if not value:
        return None
    items = value.items() if isinstance(value, dict) else value
    try:
        pairs = tuple(sorted((str(name), _as_float(rate)) for name, rate in items))
    except (TypeError, ValueError):
        return None
    return pairs or None


def _as_coordinates(value: Any) -> Tuple[float, float]:
    if isinstance(value, dict):
        value = (value.get("lat"), value.get("lon", value.get("lng")))
    try:
        lat, lon = (float(v) for v in value)
    except (TypeError, ValueError):
        return DEFAULT_COORDINATES
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        return DEFAULT_COORDINATES
    return (lat, lon)


@dataclass(frozen=True)
class SolarInputParams:
    address: str = ""
    coordinates: Tuple[float, float] = DEFAULT_COORDINATES
    monthly_kwh: float = 0.0
    electricity_rate: float = 0.0
    roof_type: RoofType = RoofType.ASPHALT_SHINGLE
    roof_age: RoofAge = RoofAge.NEW
    shading_level: ShadingLevel = ShadingLevel.NONE
    has_pool: bool = False
    has_ev: bool = False
    planning_additions: bool = False
    panel_type: PanelType = PanelType.SILFAB_440
    inverter_type: InverterType = InverterType.ENPHASE_IQ8PLUS
    battery_option: BatteryOption = BatteryOption.NONE
    roof_area: Optional[float] = None
    roof_tilt: Optional[float] = None
    roof_azimuth: Optional[float] = None
    # Carried through to the result record; the engine prices with electricity_rate.
    utility_rates: Optional[Tuple[Tuple[str, float], ...]] = None
    net_metering: bool = False

    def __post_init__(self):
        # Loose validation: coerce everything, reject nothing.
        object.__setattr__(self, "address", str(self.address or ""))
        object.__setattr__(self, "coordinates", _as_coordinates(self.coordinates))
        object.__setattr__(self, "monthly_kwh", _as_float(self.monthly_kwh))
        object.__setattr__(self, "electricity_rate", _as_float(self.electricity_rate))
        object.__setattr__(self, "roof_type", RoofType.parse(self.roof_type))
        object.__setattr__(self, "roof_age", RoofAge.parse(self.roof_age))
        object.__setattr__(self, "shading_level", ShadingLevel.parse(self.shading_level))
        object.__setattr__(self, "panel_type", PanelType.parse(self.panel_type))
        object.__setattr__(self, "inverter_type", InverterType.parse(self.inverter_type))
        object.__setattr__(self, "battery_option", BatteryOption.parse(self.battery_option))
        for name in ("has_pool", "has_ev", "planning_additions", "net_metering"):
            object.__setattr__(self, name, _as_bool(getattr(self, name)))
        for name in ("roof_area", "roof_tilt", "roof_azimuth"):
            object.__setattr__(self, name, _as_optional_float(getattr(self, name)))
        object.__setattr__(self, "utility_rates", _as_rates(self.utility_rates))

    @property
    def latitude(self) -> float:
        return self.coordinates[0]

    @property
    def longitude(self) -> float:
        return self.coordinates[1]


@dataclass(frozen=True)
class SolarIrradianceData:
    annual: float
    monthly: Tuple[float, ...] = ()
    capacity_factor: float = 0.0
    source: str = "unknown"

    def __post_init__(self):
        object.__setattr__(self, "monthly", tuple(float(v) for v in (self.monthly or ())))

    @property
    def has_monthly(self) -> bool:
        return len(self.monthly) == 12


@dataclass(frozen=True)
class SystemSpec:
    system_size_kw: float
    actual_system_size_kw: float
    panels_needed: int
    panel_wattage: float
    battery_capacity_kwh: float
    battery_cost: float
    system_efficiency: float
    roof_coverage: float
    adjusted_monthly_kwh: float
    annual_kwh: float
    shading_factor: float
    panel_type: PanelType = PanelType.SILFAB_440
    inverter_type: InverterType = InverterType.ENPHASE_IQ8PLUS
    battery_option: BatteryOption = BatteryOption.NONE


@dataclass(frozen=True)
class SeasonalProduction:
    spring: float
    summer: float
    fall: float
    winter: float


@dataclass(frozen=True)
class ProductionResult:
    annual_production: float
    monthly_production: Tuple[int, ...]
    seasonal_production: SeasonalProduction
    capacity_factor: float


@dataclass(frozen=True)
class FinancialResult:
    system_cost: float
    battery_cost: float
    total_cost: float
    federal_tax_credit: float
    state_incentives: float
    local_rebates: float
    net_cost: float
    annual_savings: float
    monthly_savings: float
    roi_years: float
    twenty_five_year_savings: float
    state_code: Optional[str] = None


@dataclass(frozen=True)
class EnvironmentalImpact:
    co2_offset_tons: float
    trees_equivalent: int
    cars_off_road_equivalent: int
    coal_avoided_pounds: int


@dataclass(frozen=True)
class AdvancedMetrics:
    levelized_cost_of_energy: float
    net_present_value: float
    internal_rate_of_return: float
    payback_period: float
    solved_internal_rate_of_return: Optional[float] = None


@dataclass(frozen=True)
class FinancingOption:
    type: str
    monthly_payment: float
    total_cost: float
    savings: float
    description: str
    term_years: int = 0


@dataclass(frozen=True)
class YearProjection:
    year: int
    production_kwh: float
    savings: float
    cumulative_savings: float


@dataclass(frozen=True)
class NetMeteringResult:
    monthly_savings: Tuple[float, ...]
    annual_savings: float
    excess_kwh: float


@dataclass(frozen=True)
class UtilityMatch:
    name: str
    method: str


def _plain(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


@dataclass(frozen=True)
class SolarCalculationResult:
    inputs: SolarInputParams
    irradiance: SolarIrradianceData
    system: SystemSpec
    production: ProductionResult
    financial: FinancialResult
    advanced: AdvancedMetrics
    environmental: EnvironmentalImpact
    financing: Tuple[FinancingOption, ...]
    projection: Tuple[YearProjection, ...] = ()
    net_metering: Optional[NetMeteringResult] = None
    utility: Optional[UtilityMatch] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested mapping (enums as strings) suitable for JSON/YAML dumps."""
        return _plain(asdict(self))

    def summary(self) -> Dict[str, Any]:
        return {
            "address": self.inputs.address,
            "system_size_kw": round(self.system.actual_system_size_kw, 2),
            "panels_needed": self.system.panels_needed,
            "annual_production_kwh": round(self.production.annual_production),
            "net_cost": round(self.financial.net_cost, 2),
            "annual_savings": round(self.financial.annual_savings, 2),
            "roi_years": round(self.financial.roi_years, 1) if math.isfinite(self.financial.roi_years) else None,
            "co2_offset_tons": round(self.environmental.co2_offset_tons, 2),
        }


__all__ = [
    "DEFAULT_COORDINATES",
    "round_half_up",
    "CalculationError",
    "CatalogKey",
    "PanelType",
    "InverterType",
    "BatteryOption",
    "ShadingLevel",
    "RoofType",
    "RoofAge",
    "SolarInputParams",
    "SolarIrradianceData",
    "SystemSpec",
    "SeasonalProduction",
    "ProductionResult",
    "FinancialResult",
    "EnvironmentalImpact",
    "AdvancedMetrics",
    "FinancingOption",
    "YearProjection",
    "NetMeteringResult",
    "UtilityMatch",
    "SolarCalculationResult",
]
