"""DCF intrinsic value calculation.

Free-cash-flow DCF with annual discounting at WACC. Growth starts at the
projection growth rate and fades linearly towards the terminal growth
rate over the horizon. Terminal value uses the Gordon Growth Model on the
final projected cash flow and is undefined when terminal growth is not
below WACC, in which case every value derived from it is None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
import pandas as pd

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.growth import history, window_cagr, yoy
from metrics_engine.numeric import (
    clamp,
    positive_divide,
    safe_add,
    safe_divide,
    safe_multiply,
    safe_subtract,
)

logger = logging.getLogger(__name__)

# Bracket and iteration count for the reverse-DCF growth search.
_IMPLIED_GROWTH_BOUNDS = (-0.99, 1.0)
_IMPLIED_GROWTH_ITERATIONS = 100


@dataclass(frozen=True)
class DCFMetrics:
    """DCF valuation outputs.

    Attributes:
        risk_free_rate: Assumption override, else the macro 10-year yield.
        cost_of_equity: CAPM, risk-free rate + beta x equity risk premium.
        pre_tax_cost_of_debt: Interest expense / total debt.
        after_tax_cost_of_debt: Pre-tax cost of debt x (1 - tax rate).
        equity_weight: Market cap / (market cap + total debt).
        debt_weight: Total debt / (market cap + total debt).
        wacc: Market-value weighted cost of capital.
        projection_growth_rate: First-year FCF growth rate.
        terminal_growth_rate: Perpetuity growth rate.
        pv_of_projected_fcf: Sum of discounted projected FCF.
        terminal_value: FCF_N x (1 + g) / (WACC - g). None if g >= WACC.
        pv_of_terminal_value: Terminal value discounted N years.
        dcf_enterprise_value: PV of projected FCF + PV of terminal value.
        dcf_equity_value: DCF enterprise value - net debt.
        intrinsic_value: DCF equity value per share.
        upside: (Intrinsic value - price) / price.
        margin_of_safety: (Intrinsic value - price) / intrinsic value.
        implied_growth_rate: First-year growth rate at which the intrinsic
            value equals the current price (reverse DCF).
        exit_multiple: Terminal value / terminal-year EBITDA, with EBITDA
            grown in line with FCF.
    """

    risk_free_rate: float | None
    cost_of_equity: float | None
    pre_tax_cost_of_debt: float | None
    after_tax_cost_of_debt: float | None
    equity_weight: float | None
    debt_weight: float | None
    wacc: float | None
    projection_growth_rate: float | None
    terminal_growth_rate: float | None
    pv_of_projected_fcf: float | None
    terminal_value: float | None
    pv_of_terminal_value: float | None
    dcf_enterprise_value: float | None
    dcf_equity_value: float | None
    intrinsic_value: float | None
    upside: float | None
    margin_of_safety: float | None
    implied_growth_rate: float | None
    exit_multiple: float | None


class _Discounted(NamedTuple):
    pv_fcf: float
    final_fcf: float
    terminal_value: float | None
    pv_terminal_value: float | None


def risk_free_rate(company: CompanyData, assumptions: Assumptions) -> float | None:
    """Risk-free rate override, else the macro 10-year treasury yield."""
    if assumptions.risk_free_rate is not None:
        return assumptions.risk_free_rate
    return company.macro.treasury_10y


def cost_of_equity(company: CompanyData, assumptions: Assumptions) -> float | None:
    """CAPM cost of equity, None without a risk-free rate or beta."""
    premium = safe_multiply(company.quote.beta, assumptions.equity_risk_premium)
    return safe_add(risk_free_rate(company, assumptions), premium)


def _tax_rate(company: CompanyData) -> float | None:
    if company.effective_tax_rate is None:
        return None
    return clamp(company.effective_tax_rate, 0.0, 1.0)


def _projection_growth(company: CompanyData, assumptions: Assumptions) -> float:
    """First-year growth: override, else clamped historical FCF growth.

    Historical growth is the CAGR over the full FCF history (three or
    more periods), else the last year-over-year change. Without usable
    history the terminal growth rate is used throughout.
    """
    if assumptions.fcf_growth_rate is not None:
        return assumptions.fcf_growth_rate

    fcf = [v for v in history(company.financials, "free_cash_flow") if v is not None]
    growth = None
    if len(fcf) >= 3:
        growth = window_cagr(fcf, len(fcf) - 1)
    if growth is None:
        growth = yoy(fcf)
    if growth is None:
        logger.debug(
            "%s: no usable FCF history, projecting at terminal growth",
            company.symbol,
        )
        return assumptions.terminal_growth_rate
    return clamp(
        growth, assumptions.min_projection_growth, assumptions.max_projection_growth
    )


def _discount(
    base_fcf: float,
    start_growth: float,
    terminal_growth: float,
    wacc: float,
    years: int,
) -> _Discounted:
    """Project and discount FCF over the horizon plus the terminal value."""
    step = (start_growth - terminal_growth) / years
    year = np.arange(1, years + 1)
    growth = start_growth - step * (year - 1)
    fcf = base_fcf * np.cumprod(1.0 + growth)
    discount = (1.0 + wacc) ** year
    pv_fcf = float(np.sum(fcf / discount))
    final_fcf = float(fcf[-1])

    if terminal_growth >= wacc:
        return _Discounted(pv_fcf, final_fcf, None, None)
    terminal_value = final_fcf * (1.0 + terminal_growth) / (wacc - terminal_growth)
    return _Discounted(
        pv_fcf, final_fcf, terminal_value, terminal_value / float(discount[-1])
    )


def _intrinsic_value(
    company: CompanyData,
    start_growth: float,
    terminal_growth: float,
    wacc: float,
    years: int,
) -> float | None:
    base_fcf = company.cash_flow.free_cash_flow
    if base_fcf is None or wacc <= -1.0:
        return None
    result = _discount(base_fcf, start_growth, terminal_growth, wacc, years)
    if result.pv_terminal_value is None:
        return None
    equity = safe_subtract(result.pv_fcf + result.pv_terminal_value, company.net_debt)
    return positive_divide(equity, company.quote.shares_outstanding)


def _implied_growth(
    company: CompanyData, terminal_growth: float, wacc: float, years: int
) -> float | None:
    """Bisect for the first-year growth that prices the stock at market.

    Intrinsic value rises monotonically with start growth when the base
    FCF is positive; otherwise the search is not meaningful.
    """
    price = company.quote.price
    base_fcf = company.cash_flow.free_cash_flow
    if price is None or price <= 0 or base_fcf is None or base_fcf <= 0:
        return None

    low, high = _IMPLIED_GROWTH_BOUNDS
    value_low = _intrinsic_value(company, low, terminal_growth, wacc, years)
    value_high = _intrinsic_value(company, high, terminal_growth, wacc, years)
    if value_low is None or value_high is None:
        return None
    if not value_low <= price <= value_high:
        logger.debug(
            "%s: price %.2f outside reverse-DCF bracket, implied growth set to None",
            company.symbol, price,
        )
        return None

    for _ in range(_IMPLIED_GROWTH_ITERATIONS):
        mid = (low + high) / 2.0
        value = _intrinsic_value(company, mid, terminal_growth, wacc, years)
        if value is None:
            return None
        if value < price:
            low = mid
        else:
            high = mid
    return (low + high) / 2.0


def compute_wacc(company: CompanyData, assumptions: Assumptions) -> float | None:
    """Market-value weighted average cost of capital.

    Equal to the cost of equity for a company without debt.
    """
    return _capital_structure(company, assumptions)[-1]


def _capital_structure(
    company: CompanyData, assumptions: Assumptions
) -> tuple[float | None, float | None, float | None, float | None, float | None]:
    """(pre-tax Kd, after-tax Kd, equity weight, debt weight, WACC)."""
    re = cost_of_equity(company, assumptions)
    equity = company.quote.market_cap
    debt = company.balance.total_debt

    pre_tax_kd = positive_divide(company.income.interest_expense, debt)
    tax = _tax_rate(company)
    after_tax_kd = safe_multiply(pre_tax_kd, None if tax is None else 1.0 - tax)

    if equity is None or equity <= 0 or debt is None or debt < 0:
        return pre_tax_kd, after_tax_kd, None, None, None

    total = equity + debt
    equity_weight = equity / total
    debt_weight = debt / total
    if debt == 0:
        return pre_tax_kd, after_tax_kd, equity_weight, debt_weight, re

    wacc = safe_add(
        safe_multiply(equity_weight, re), safe_multiply(debt_weight, after_tax_kd)
    )
    return pre_tax_kd, after_tax_kd, equity_weight, debt_weight, wacc


def compute_dcf(
    company: CompanyData, assumptions: Assumptions | None = None
) -> DCFMetrics:
    """Compute DCF intrinsic value for a single company.

    Args:
        company: Canonical company model.
        assumptions: Equity risk premium, terminal growth, projection
            horizon and growth overrides.

    Returns:
        DCFMetrics. Intrinsic value and its dependants are None when WACC,
        base FCF or shares are unavailable, or when terminal growth is not
        below WACC.
    """
    assumptions = assumptions or Assumptions()
    years = assumptions.projection_years
    terminal_growth = assumptions.terminal_growth_rate

    pre_tax_kd, after_tax_kd, equity_weight, debt_weight, wacc = _capital_structure(
        company, assumptions
    )
    start_growth = _projection_growth(company, assumptions)
    base_fcf = company.cash_flow.free_cash_flow
    price = company.quote.price

    pv_fcf = terminal_value = pv_terminal_value = None
    enterprise_value = equity_value = intrinsic_value = None
    implied_growth = exit_multiple = None

    if wacc is not None and base_fcf is not None and wacc > -1.0:
        result = _discount(base_fcf, start_growth, terminal_growth, wacc, years)
        pv_fcf = result.pv_fcf
        terminal_value = result.terminal_value
        pv_terminal_value = result.pv_terminal_value

        if terminal_value is None:
            logger.debug(
                "%s: terminal growth %.4f >= WACC %.4f, intrinsic value set to None",
                company.symbol, terminal_growth, wacc,
            )
        else:
            enterprise_value = pv_fcf + pv_terminal_value
            equity_value = safe_subtract(enterprise_value, company.net_debt)
            intrinsic_value = positive_divide(
                equity_value, company.quote.shares_outstanding
            )
            implied_growth = _implied_growth(company, terminal_growth, wacc, years)
            if base_fcf > 0:
                terminal_ebitda = safe_multiply(
                    company.income.ebitda, result.final_fcf / base_fcf
                )
                exit_multiple = positive_divide(terminal_value, terminal_ebitda)
    elif wacc is None:
        logger.debug("%s: WACC unavailable, DCF set to None", company.symbol)

    return DCFMetrics(
        risk_free_rate=risk_free_rate(company, assumptions),
        cost_of_equity=cost_of_equity(company, assumptions),
        pre_tax_cost_of_debt=pre_tax_kd,
        after_tax_cost_of_debt=after_tax_kd,
        equity_weight=equity_weight,
        debt_weight=debt_weight,
        wacc=wacc,
        projection_growth_rate=start_growth,
        terminal_growth_rate=terminal_growth,
        pv_of_projected_fcf=pv_fcf,
        terminal_value=terminal_value,
        pv_of_terminal_value=pv_terminal_value,
        dcf_enterprise_value=enterprise_value,
        dcf_equity_value=equity_value,
        intrinsic_value=intrinsic_value,
        upside=safe_divide(safe_subtract(intrinsic_value, price), price),
        margin_of_safety=safe_divide(
            safe_subtract(intrinsic_value, price), intrinsic_value
        ),
        implied_growth_rate=implied_growth,
        exit_multiple=exit_multiple,
    )


def dcf_sensitivity(
    company: CompanyData,
    assumptions: Assumptions | None = None,
    wacc_offsets: tuple[float, ...] = (-0.02, -0.01, 0.0, 0.01, 0.02),
    terminal_growth_rates: tuple[float, ...] = (0.015, 0.02, 0.025, 0.03, 0.035),
) -> pd.DataFrame:
    """Intrinsic value per share over a WACC x terminal growth grid.

    Args:
        company: Canonical company model.
        assumptions: Base assumptions. Each grid column overrides the
            terminal growth rate.
        wacc_offsets: Offsets added to the computed WACC (rows).
        terminal_growth_rates: Terminal growth rates (columns).

    Returns:
        DataFrame indexed by WACC with one column per terminal growth
        rate. Cells are NaN where the value is undefined, including every
        cell with terminal growth >= WACC. Empty when WACC is unavailable.
    """
    assumptions = assumptions or Assumptions()
    columns = pd.Index(list(terminal_growth_rates), name="terminal_growth")
    wacc = compute_wacc(company, assumptions)
    if wacc is None:
        return pd.DataFrame(
            index=pd.Index([], name="wacc", dtype=float), columns=columns, dtype=float
        )

    start_growth = _projection_growth(company, assumptions)
    rates = [wacc + offset for offset in wacc_offsets]
    grid = []
    for rate in rates:
        row = []
        for g in terminal_growth_rates:
            value = _intrinsic_value(
                company, start_growth, g, rate, assumptions.projection_years
            )
            row.append(np.nan if value is None else value)
        grid.append(row)

    return pd.DataFrame(
        grid, index=pd.Index(rates, name="wacc"), columns=columns, dtype=float
    )
