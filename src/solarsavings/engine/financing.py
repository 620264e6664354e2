"""Fixed financing templates: cash, loan, lease and PPA."""
from __future__ import annotations

from typing import Tuple

from solarsavings.core.debug import DebugCollector, NullDebugCollector
from solarsavings.core.models import FinancingOption

HORIZON_YEARS = 25
LOAN_YEARS = 20
LOAN_RATE = 0.06
LEASE_YEARS = 20
LEASE_SHARE = 0.80
PPA_YEARS = 25
PPA_SHARE = 0.75


def cash_option(total_cost: float, annual_savings: float) -> FinancingOption:
    return FinancingOption(
        type="cash",
        monthly_payment=0.0,
        total_cost=total_cost,
        savings=annual_savings * HORIZON_YEARS - total_cost,
        description="Pay upfront, own the system and keep every incentive",
        term_years=0,
    )


def loan_option(total_cost: float, annual_savings: float) -> FinancingOption:
    # Flat interest on the original principal, not an amortization schedule.
    repaid = total_cost * (1 + LOAN_RATE * LOAN_YEARS)
    return FinancingOption(
        type="loan",
        monthly_payment=repaid / (LOAN_YEARS * 12),
        total_cost=repaid,
        savings=annual_savings * HORIZON_YEARS - repaid,
        description=f"{LOAN_YEARS}-year solar loan at {LOAN_RATE:.0%} APR, no money down",
        term_years=LOAN_YEARS,
    )


def lease_option(annual_savings: float) -> FinancingOption:
    monthly = annual_savings * LEASE_SHARE / 12
    paid = monthly * LEASE_YEARS * 12
    return FinancingOption(
        type="lease",
        monthly_payment=monthly,
        total_cost=paid,
        savings=annual_savings * LEASE_YEARS - paid,
        description=f"{LEASE_YEARS}-year lease, payments at {LEASE_SHARE:.0%} of expected savings",
        term_years=LEASE_YEARS,
    )


def ppa_option(annual_savings: float) -> FinancingOption:
    monthly = annual_savings * PPA_SHARE / 12
    paid = monthly * PPA_YEARS * 12
    return FinancingOption(
        type="ppa",
        monthly_payment=monthly,
        total_cost=paid,
        savings=annual_savings * PPA_YEARS - paid,
        description=f"{PPA_YEARS}-year power purchase agreement at {PPA_SHARE:.0%} of utility cost",
        term_years=PPA_YEARS,
    )


def financing_options(
    total_cost: float,
    annual_savings: float,
    debug: DebugCollector | None = None,
) -> Tuple[FinancingOption, ...]:
    debug = debug or NullDebugCollector()
    options = (
        cash_option(total_cost, annual_savings),
        loan_option(total_cost, annual_savings),
        lease_option(annual_savings),
        ppa_option(annual_savings),
    )
    debug.emit("financing.summary", {opt.type: opt.monthly_payment for opt in options})
    return options


__all__ = ["financing_options", "cash_option", "loan_option", "lease_option", "ppa_option"]
