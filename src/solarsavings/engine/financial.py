"""Financial model: system cost, incentives, savings and long-run metrics.

All projections use fixed constants (3 % utility escalation, 0.5 %/yr panel
degradation, 6 % discount rate, $20/yr O&M escalating 2 %/yr over 25 years).
Every function is total over ordinary numeric inputs: divisions by zero yield
``inf`` (or 0 for a zero numerator) instead of raising.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from solarsavings.core.catalog import DEFAULT_CATALOG, EquipmentCatalog
from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import (
    AdvancedMetrics,
    FinancialResult,
    NetMeteringResult,
    ProductionResult,
    SolarInputParams,
    SystemSpec,
    YearProjection,
    round_half_up,
)
from .state import RegexStateExtractor, StateExtractor

INSTALLATION_COST_PER_KW = 1200.0
FEDERAL_TAX_CREDIT_RATE = 0.30
LOCAL_REBATE_PER_KW = 200.0

ANALYSIS_YEARS = 25
UTILITY_ESCALATION = 0.03
DEGRADATION_RATE = 0.005
DISCOUNT_RATE = 0.06
OM_COST_PER_YEAR = 20.0
OM_ESCALATION = 0.02

NET_METERING_CREDIT = 0.8
# Jan..Dec household consumption shape (cooling-heavy summers).
CONSUMPTION_PROFILE: Tuple[float, ...] = (1.1, 1.0, 0.9, 0.8, 0.7, 0.8, 1.2, 1.3, 1.1, 0.9, 1.0, 1.1)


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.inf if numerator > 0 else 0.0
    return numerator / denominator


def escalated_savings(annual_savings: float, years: int = ANALYSIS_YEARS, escalation: float = UTILITY_ESCALATION) -> np.ndarray:
    """Nominal yearly savings for years 1..N, growing with utility rates."""
    return annual_savings * (1 + escalation) ** np.arange(years)


def calculate_financials(
    spec: SystemSpec,
    production: ProductionResult,
    inputs: SolarInputParams,
    catalog: EquipmentCatalog = DEFAULT_CATALOG,
    state_extractor: StateExtractor | None = None,
    debug: DebugCollector | None = None,
) -> FinancialResult:
    debug = debug or NullDebugCollector()
    state_extractor = state_extractor or RegexStateExtractor()

    panel = catalog.panel(spec.panel_type)
    inverter = catalog.inverter(spec.inverter_type)
    size_kw = spec.system_size_kw

    system_cost = (
        spec.panels_needed * panel.unit_cost
        + spec.panels_needed * inverter.unit_cost
        + size_kw * INSTALLATION_COST_PER_KW
    )
    battery_cost = spec.battery_cost
    total_cost = system_cost + battery_cost

    federal = total_cost * FEDERAL_TAX_CREDIT_RATE
    state_code = state_extractor.extract(inputs.address)
    state_incentives = catalog.state_rate(state_code) * size_kw
    local_rebates = LOCAL_REBATE_PER_KW * size_kw
    net_cost = total_cost - federal - state_incentives - local_rebates

    # Savings stop at actual consumption; exported surplus is valued separately
    # by net_metering_savings().
    offset_kwh = min(production.annual_production, inputs.monthly_kwh * 12)
    annual_savings = offset_kwh * inputs.electricity_rate

    result = FinancialResult(
        system_cost=system_cost,
        battery_cost=battery_cost,
        total_cost=total_cost,
        federal_tax_credit=federal,
        state_incentives=state_incentives,
        local_rebates=local_rebates,
        net_cost=net_cost,
        annual_savings=annual_savings,
        monthly_savings=annual_savings / 12,
        roi_years=_safe_div(net_cost, annual_savings),
        twenty_five_year_savings=float(escalated_savings(annual_savings).sum()),
        state_code=state_code,
    )
    debug.emit(
        "financial.summary",
        {
            "total_cost": total_cost,
            "net_cost": net_cost,
            "state_code": state_code,
            "state_incentives": state_incentives,
            "annual_savings": annual_savings,
            "roi_years": result.roi_years,
        },
    )
    return result


def solve_irr(
    initial_investment: float,
    cash_flows: Sequence[float],
    guess: float = 0.1,
    tolerance: float = 1e-7,
    max_iterations: int = 100,
) -> Optional[float]:
    """Internal rate of return (percent) via Newton iteration, or ``None``.

    ``cash_flows[i]`` arrives at the end of year ``i + 1``. Returns ``None``
    when there is nothing to solve (no investment, no positive flows) or the
    iteration does not converge.
    """
    flows = np.asarray(cash_flows, dtype=float)
    if initial_investment <= 0 or flows.size == 0 or not (flows > 0).any():
        return None
    years = np.arange(1, flows.size + 1)
    rate = guess
    for _ in range(max_iterations):
        base = 1 + rate
        if base <= 0:
            return None
        npv = -initial_investment + float((flows / base**years).sum())
        derivative = -float((years * flows / base ** (years + 1)).sum())
        if derivative == 0:
            return None
        new_rate = rate - npv / derivative
        if not math.isfinite(new_rate):
            return None
        if abs(new_rate - rate) < tolerance:
            return new_rate * 100
        rate = new_rate
    return None


def advanced_metrics(
    financial: FinancialResult,
    production: ProductionResult,
    debug: DebugCollector | None = None,
) -> AdvancedMetrics:
    """LCOE, NPV, simplified IRR and payback over the analysis horizon.

    ``internal_rate_of_return`` is the first-year yield
    (``annual_savings / net_cost``), not a root of the NPV equation; the
    Newton-solved figure is reported next to it.
    """
    debug = debug or NullDebugCollector()

    years = np.arange(1, ANALYSIS_YEARS + 1)
    discount = (1 + DISCOUNT_RATE) ** years
    degradation = (1 - DEGRADATION_RATE) ** (years - 1)

    discounted_energy = float((production.annual_production * degradation / discount).sum())
    discounted_om = float((OM_COST_PER_YEAR * (1 + OM_ESCALATION) ** (years - 1) / discount).sum())
    lcoe = _safe_div(financial.net_cost + discounted_om, discounted_energy) * 100

    savings = escalated_savings(financial.annual_savings) * degradation
    npv = -financial.net_cost + float((savings / discount).sum())

    metrics = AdvancedMetrics(
        levelized_cost_of_energy=lcoe,
        net_present_value=npv,
        internal_rate_of_return=_safe_div(financial.annual_savings, financial.net_cost) * 100,
        payback_period=_safe_div(financial.net_cost, financial.annual_savings),
        solved_internal_rate_of_return=solve_irr(financial.net_cost, savings),
    )
    debug.emit(
        "advanced.summary",
        {
            "lcoe_cents_kwh": metrics.levelized_cost_of_energy,
            "npv": metrics.net_present_value,
            "irr_simple": metrics.internal_rate_of_return,
            "irr_solved": metrics.solved_internal_rate_of_return,
        },
    )
    return metrics


def yearly_projection(
    financial: FinancialResult,
    production: ProductionResult,
    years: int = ANALYSIS_YEARS,
) -> Tuple[YearProjection, ...]:
    """Year-by-year production and savings with degradation and escalation.

    Unlike ``twenty_five_year_savings`` these rows include panel degradation.
    """
    idx = np.arange(years)
    degradation = (1 - DEGRADATION_RATE) ** idx
    produced = production.annual_production * degradation
    savings = escalated_savings(financial.annual_savings, years) * degradation
    cumulative = np.cumsum(savings)
    return tuple(
        YearProjection(
            year=int(i + 1),
            production_kwh=float(produced[i]),
            savings=float(savings[i]),
            cumulative_savings=float(cumulative[i]),
        )
        for i in idx
    )


def net_metering_savings(
    monthly_production: Sequence[float],
    monthly_kwh: float,
    electricity_rate: float,
    credit_ratio: float = NET_METERING_CREDIT,
) -> NetMeteringResult:
    """Monthly savings when exported surplus is credited at ``credit_ratio`` of retail.

    Consumption follows ``CONSUMPTION_PROFILE`` scaled so the year totals
    ``monthly_kwh * 12``.
    """
    profile = np.asarray(CONSUMPTION_PROFILE, dtype=float)
    consumption = monthly_kwh * 12 * profile / profile.sum()
    produced = np.asarray(monthly_production, dtype=float)
    offset = np.minimum(produced, consumption)
    excess = np.clip(produced - consumption, 0.0, None)
    monthly = offset * electricity_rate + excess * electricity_rate * credit_ratio
    return NetMeteringResult(
        monthly_savings=tuple(round_half_up(float(v), 2) for v in monthly),
        annual_savings=float(monthly.sum()),
        excess_kwh=float(excess.sum()),
    )


__all__ = [
    "calculate_financials",
    "advanced_metrics",
    "escalated_savings",
    "solve_irr",
    "yearly_projection",
    "net_metering_savings",
]
