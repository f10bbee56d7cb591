"""Quality metrics: Altman Z-Score, Piotroski F-Score and per-share figures."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.profitability import nopat
from metrics_engine.metrics.valuation import book_value_per_share
from metrics_engine.numeric import (
    positive_divide,
    safe_add,
    safe_divide,
    safe_multiply,
    safe_subtract,
    to_float,
)

logger = logging.getLogger(__name__)

ALTMAN_SAFE = 2.99
ALTMAN_DISTRESS = 1.81


@dataclass(frozen=True)
class OtherMetrics:
    """Composite quality scores and miscellaneous derived figures.

    Attributes:
        altman_z_score: 1.2 X1 + 1.4 X2 + 3.3 X3 + 0.6 X4 + 1.0 X5 with
            X1 = working capital / TA, X2 = retained earnings / TA,
            X3 = EBIT / TA, X4 = market cap / total liabilities,
            X5 = revenue / TA. None if total assets is zero.
        altman_zone: "safe" above 2.99, "distress" below 1.81, else "grey".
        piotroski_f_score: Count of passing F-Score signals (0-9). None
            with fewer than two annual periods.
        effective_tax_rate: Tax rate used for NOPAT.
        working_capital: Current assets - current liabilities.
        invested_capital: Total debt + total equity - cash.
        book_value_per_share: Total equity / shares.
        sales_per_share: Revenue / shares.
        cash_flow_per_share: Operating cash flow / shares.
        degree_of_operating_leverage: Gross profit / EBIT.
        degree_of_financial_leverage: EBIT / (EBIT - interest expense).
        total_leverage: DOL x DFL.
        invested_capital_turnover: Revenue / invested capital.
        excess_roic: ROIC - industry ROIC.
    """

    altman_z_score: float | None
    altman_zone: str | None
    piotroski_f_score: int | None
    effective_tax_rate: float | None
    working_capital: float | None
    invested_capital: float | None
    book_value_per_share: float | None
    sales_per_share: float | None
    cash_flow_per_share: float | None
    degree_of_operating_leverage: float | None
    degree_of_financial_leverage: float | None
    total_leverage: float | None
    invested_capital_turnover: float | None
    excess_roic: float | None


def altman_z_score(company: CompanyData) -> float | None:
    """Public-company Altman Z-Score."""
    bs = company.balance
    total_assets = bs.total_assets
    if total_assets == 0:
        logger.debug("%s: total assets is zero, Altman Z set to None", company.symbol)
        return None

    x1 = safe_divide(company.working_capital, total_assets)
    x2 = safe_divide(bs.retained_earnings, total_assets)
    x3 = safe_divide(company.income.ebit, total_assets)
    x4 = positive_divide(company.quote.market_cap, bs.total_liabilities)
    x5 = safe_divide(company.income.revenue, total_assets)
    return safe_add(
        safe_multiply(1.2, x1),
        safe_multiply(1.4, x2),
        safe_multiply(3.3, x3),
        safe_multiply(0.6, x4),
        safe_multiply(1.0, x5),
    )


def altman_zone(z: float | None) -> str | None:
    """Classify a Z-Score into the safe/grey/distress zones."""
    if z is None:
        return None
    if z > ALTMAN_SAFE:
        return "safe"
    if z < ALTMAN_DISTRESS:
        return "distress"
    return "grey"


def _ratio(row: pd.Series, numerator: str, denominator: str) -> float | None:
    return positive_divide(to_float(row.get(numerator)), to_float(row.get(denominator)))


def _greater(a: float | None, b: float | None) -> bool:
    return a is not None and b is not None and a > b


def piotroski_f_score(company: CompanyData) -> int | None:
    """Nine-signal Piotroski F-Score from the last two annual periods.

    A signal whose inputs are missing or whose denominator is not
    positive counts as failed.

    Args:
        company: Canonical company model.

    Returns:
        Integer 0-9, or None with fewer than two periods.
    """
    fin = company.financials
    if len(fin) < 2:
        logger.debug(
            "%s: fewer than 2 annual periods, F-Score set to None", company.symbol
        )
        return None

    current = fin.iloc[-1]
    prior = fin.iloc[-2]

    net_income = to_float(current.get("net_income"))
    ocf = to_float(current.get("operating_cash_flow"))
    shares = to_float(current.get("shares_outstanding"))
    prior_shares = to_float(prior.get("shares_outstanding"))

    # === F-Score signals ===

    # Profitability
    roa = _ratio(current, "net_income", "total_assets")
    f_roa_positive = roa is not None and roa > 0
    f_ocf_positive = ocf is not None and ocf > 0
    f_roa_improving = _greater(roa, _ratio(prior, "net_income", "total_assets"))
    f_accruals_negative = _greater(ocf, net_income)

    # Leverage and liquidity
    f_leverage_decreasing = _greater(
        _ratio(prior, "long_term_debt", "total_assets"),
        _ratio(current, "long_term_debt", "total_assets"),
    )
    f_current_ratio_improving = _greater(
        _ratio(current, "current_assets", "current_liabilities"),
        _ratio(prior, "current_assets", "current_liabilities"),
    )
    f_no_dilution = shares is not None and prior_shares is not None and shares <= prior_shares

    # Operating efficiency
    f_gross_margin_improving = _greater(
        _ratio(current, "gross_profit", "revenue"),
        _ratio(prior, "gross_profit", "revenue"),
    )
    f_asset_turnover_improving = _greater(
        _ratio(current, "revenue", "total_assets"),
        _ratio(prior, "revenue", "total_assets"),
    )

    return sum((
        f_roa_positive,
        f_ocf_positive,
        f_roa_improving,
        f_accruals_negative,
        f_leverage_decreasing,
        f_current_ratio_improving,
        f_no_dilution,
        f_gross_margin_improving,
        f_asset_turnover_improving,
    ))


def compute_other(company: CompanyData) -> OtherMetrics:
    """Compute quality scores and miscellaneous derived metrics.

    Args:
        company: Canonical company model.

    Returns:
        OtherMetrics.
    """
    inc = company.income
    shares = company.quote.shares_outstanding
    z = altman_z_score(company)

    dol = positive_divide(inc.gross_profit, inc.ebit)
    dfl = positive_divide(inc.ebit, safe_subtract(inc.ebit, inc.interest_expense))
    roic = positive_divide(nopat(company), company.invested_capital)

    return OtherMetrics(
        altman_z_score=z,
        altman_zone=altman_zone(z),
        piotroski_f_score=piotroski_f_score(company),
        effective_tax_rate=company.effective_tax_rate,
        working_capital=company.working_capital,
        invested_capital=company.invested_capital,
        book_value_per_share=book_value_per_share(company),
        sales_per_share=positive_divide(inc.revenue, shares),
        cash_flow_per_share=positive_divide(company.cash_flow.operating_cash_flow, shares),
        degree_of_operating_leverage=dol,
        degree_of_financial_leverage=dfl,
        total_leverage=safe_multiply(dol, dfl),
        invested_capital_turnover=positive_divide(inc.revenue, company.invested_capital),
        excess_roic=safe_subtract(roic, company.industry_profile.industry_roic),
    )
