"""Macro metrics: national indicators plus a few rate spreads."""

from __future__ import annotations

from dataclasses import dataclass

from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import safe_add, safe_subtract


@dataclass(frozen=True)
class MacroMetrics:
    """Macro environment at the bundle's capture time.

    Pass-through fields keep the macro record's units (rates as
    fractions, levels as reported).

    Attributes:
        yield_curve_spread: 10-year minus 2-year treasury yield.
        yield_curve_slope: 10-year minus 3-month treasury yield.
        term_premium: 10-year treasury yield minus the policy rate.
        real_policy_rate: Policy rate minus core inflation.
        real_wage_growth: Wage growth minus core inflation.
        misery_index: Unemployment rate plus core inflation.
    """

    gdp_growth_rate: float | None
    real_gdp: float | None
    nominal_gdp: float | None
    gdp_per_capita: float | None
    cpi: float | None
    ppi: float | None
    core_inflation: float | None
    federal_funds_rate: float | None
    treasury_10y: float | None
    treasury_2y: float | None
    treasury_3m: float | None
    usd_index: float | None
    unemployment_rate: float | None
    wage_growth: float | None
    labor_productivity: float | None
    consumer_confidence: float | None
    business_confidence: float | None

    yield_curve_spread: float | None
    yield_curve_slope: float | None
    term_premium: float | None
    real_policy_rate: float | None
    real_wage_growth: float | None
    misery_index: float | None


def compute_macro(company: CompanyData) -> MacroMetrics:
    """Compute macro metrics from the canonical macro record.

    Args:
        company: Canonical company model.

    Returns:
        MacroMetrics.
    """
    m = company.macro
    return MacroMetrics(
        gdp_growth_rate=m.gdp_growth_rate,
        real_gdp=m.real_gdp,
        nominal_gdp=m.nominal_gdp,
        gdp_per_capita=m.gdp_per_capita,
        cpi=m.cpi,
        ppi=m.ppi,
        core_inflation=m.core_inflation,
        federal_funds_rate=m.federal_funds_rate,
        treasury_10y=m.treasury_10y,
        treasury_2y=m.treasury_2y,
        treasury_3m=m.treasury_3m,
        usd_index=m.usd_index,
        unemployment_rate=m.unemployment_rate,
        wage_growth=m.wage_growth,
        labor_productivity=m.labor_productivity,
        consumer_confidence=m.consumer_confidence,
        business_confidence=m.business_confidence,
        yield_curve_spread=safe_subtract(m.treasury_10y, m.treasury_2y),
        yield_curve_slope=safe_subtract(m.treasury_10y, m.treasury_3m),
        term_premium=safe_subtract(m.treasury_10y, m.federal_funds_rate),
        real_policy_rate=safe_subtract(m.federal_funds_rate, m.core_inflation),
        real_wage_growth=safe_subtract(m.wage_growth, m.core_inflation),
        misery_index=safe_add(m.unemployment_rate, m.core_inflation),
    )
