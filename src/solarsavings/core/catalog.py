"""Equipment, shading and incentive catalogs.

Catalogs are immutable mappings handed to the engine explicitly so callers
(and tests) can substitute alternates. Every lookup resolves through the
matching enum and falls back to the catalog's designated default entry.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .models import BatteryOption, CalculationError, InverterType, PanelType, ShadingLevel


@dataclass(frozen=True)
class PanelSpec:
    wattage: float
    unit_cost: float
    efficiency_percent: float
    degradation_percent: float = 0.5
    warranty_years: int = 25
    description: str = ""


@dataclass(frozen=True)
class InverterSpec:
    efficiency: float
    unit_cost: float
    description: str = ""


@dataclass(frozen=True)
class BatterySpec:
    capacity_kwh: float
    cost: float
    description: str = ""


DEFAULT_PANELS: Mapping[PanelType, PanelSpec] = MappingProxyType(
    {
        PanelType.SILFAB_440: PanelSpec(440.0, 280.0, 21.2, 0.5, 25, "Silfab SIL-440 BK"),
        PanelType.QCELLS_400: PanelSpec(400.0, 240.0, 20.6, 0.5, 25, "Q CELLS Q.PEAK DUO BLK ML-G10+ 400"),
        PanelType.REC_ALPHA_430: PanelSpec(430.0, 310.0, 22.3, 0.25, 25, "REC Alpha Pure-R 430"),
        PanelType.PANASONIC_410: PanelSpec(410.0, 300.0, 22.2, 0.25, 25, "Panasonic EverVolt EVPV410"),
    }
)

DEFAULT_INVERTERS: Mapping[InverterType, InverterSpec] = MappingProxyType(
    {
        InverterType.ENPHASE_IQ8PLUS: InverterSpec(0.975, 220.0, "Enphase IQ8+ microinverter (one per panel)"),
        InverterType.SOLAREDGE_HD_WAVE: InverterSpec(0.99, 150.0, "SolarEdge HD-Wave with power optimizers"),
        InverterType.SMA_SUNNY_BOY: InverterSpec(0.97, 100.0, "SMA Sunny Boy string inverter"),
    }
)

DEFAULT_BATTERIES: Mapping[BatteryOption, BatterySpec] = MappingProxyType(
    {
        BatteryOption.NONE: BatterySpec(0.0, 0.0, "No battery storage"),
        BatteryOption.TESLA_POWERWALL_3: BatterySpec(13.5, 16500.0, "Tesla Powerwall 3"),
        BatteryOption.ENPHASE_5P: BatterySpec(5.0, 7000.0, "Enphase IQ Battery 5P"),
    }
)

DEFAULT_SHADING: Mapping[ShadingLevel, float] = MappingProxyType(
    {
        ShadingLevel.NONE: 1.0,
        ShadingLevel.LIGHT: 0.95,
        ShadingLevel.MODERATE: 0.85,
        ShadingLevel.HEAVY: 0.7,
    }
)

# Flat state incentive in $/kW installed.
DEFAULT_STATE_INCENTIVES: Mapping[str, float] = MappingProxyType(
    {
        "AZ": 100.0,
        "CA": 200.0,
        "CO": 150.0,
        "MA": 300.0,
        "MD": 250.0,
        "NJ": 250.0,
        "NY": 400.0,
        "TX": 100.0,
    }
)


def _freeze(mapping: Mapping, key_type) -> Mapping:
    # Only exact keys survive; a typo must not silently replace the default entry.
    frozen = {}
    for key, value in mapping.items():
        member = key_type.parse(key)
        if isinstance(key, key_type) or str(key).strip().lower() == member.value:
            frozen[member] = value
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class EquipmentCatalog:
    panels: Mapping[PanelType, PanelSpec] = field(default_factory=lambda: DEFAULT_PANELS)
    inverters: Mapping[InverterType, InverterSpec] = field(default_factory=lambda: DEFAULT_INVERTERS)
    batteries: Mapping[BatteryOption, BatterySpec] = field(default_factory=lambda: DEFAULT_BATTERIES)
    shading: Mapping[ShadingLevel, float] = field(default_factory=lambda: DEFAULT_SHADING)
    state_incentives: Mapping[str, float] = field(default_factory=lambda: DEFAULT_STATE_INCENTIVES)
    default_panel: PanelType = field(default=PanelType.default())
    default_inverter: InverterType = field(default=InverterType.default())
    default_battery: BatteryOption = field(default=BatteryOption.default())

    def __post_init__(self):
        object.__setattr__(self, "panels", _freeze(self.panels, PanelType))
        object.__setattr__(self, "inverters", _freeze(self.inverters, InverterType))
        object.__setattr__(self, "batteries", _freeze(self.batteries, BatteryOption))
        object.__setattr__(self, "shading", _freeze(self.shading, ShadingLevel))
        object.__setattr__(
            self, "state_incentives", MappingProxyType({str(k).upper(): float(v) for k, v in self.state_incentives.items()})
        )
        if self.default_panel not in self.panels:
            raise CalculationError(f"Panel catalog is missing its default entry {self.default_panel.value!r}")
        if self.default_inverter not in self.inverters:
            raise CalculationError(f"Inverter catalog is missing its default entry {self.default_inverter.value!r}")
        if self.default_battery not in self.batteries:
            raise CalculationError(f"Battery catalog is missing its default entry {self.default_battery.value!r}")

    def panel(self, key: Any) -> PanelSpec:
        return self.panels.get(PanelType.parse(key), self.panels[self.default_panel])

    def inverter(self, key: Any) -> InverterSpec:
        return self.inverters.get(InverterType.parse(key), self.inverters[self.default_inverter])

    def battery(self, key: Any) -> BatterySpec:
        return self.batteries.get(BatteryOption.parse(key), self.batteries[self.default_battery])

    def shading_factor(self, level: Any) -> float:
        return float(self.shading.get(ShadingLevel.parse(level), 1.0))

    def state_rate(self, state_code: Optional[str]) -> float:
        if not state_code:
            return 0.0
        return float(self.state_incentives.get(state_code.upper(), 0.0))

    def with_overrides(self, **changes: Any) -> "EquipmentCatalog":
        """Return a new catalog with the given tables replaced."""
        return replace(self, **changes)


DEFAULT_CATALOG = EquipmentCatalog()


__all__ = [
    "PanelSpec",
    "InverterSpec",
    "BatterySpec",
    "EquipmentCatalog",
    "DEFAULT_CATALOG",
    "DEFAULT_PANELS",
    "DEFAULT_INVERTERS",
    "DEFAULT_BATTERIES",
    "DEFAULT_SHADING",
    "DEFAULT_STATE_INCENTIVES",
]
