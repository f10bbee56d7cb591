"""Growth metrics: year-over-year changes, CAGRs and reinvestment rates."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import (
    cagr,
    pct_change,
    positive_divide,
    safe_divide,
    safe_multiply,
    safe_subtract,
    to_float,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrowthMetrics:
    """Growth metric outputs.

    YoY figures compare the last two periods of the annual history and
    divide by the magnitude of the prior value. N-year CAGRs need at least
    N + 1 periods and a positive starting value.

    Attributes:
        revenue_growth_yoy: Revenue change vs prior period.
        eps_growth_yoy: EPS change vs prior period.
        net_income_growth_yoy: Net income change vs prior period.
        dividend_growth_yoy: Dividend per share change vs prior period.
        fcf_growth_yoy: Free cash flow change vs prior period.
        revenue_3y_cagr: 3-year revenue CAGR.
        revenue_5y_cagr: 5-year revenue CAGR.
        eps_3y_cagr: 3-year EPS CAGR.
        eps_5y_cagr: 5-year EPS CAGR.
        fcf_3y_cagr: 3-year free cash flow CAGR.
        payout_ratio: Dividends paid / net income. None if net income <= 0.
        retention_ratio: 1 - payout ratio.
        sustainable_growth_rate: ROE x retention ratio.
        internal_growth_rate: ROA x retention ratio.
    """

    revenue_growth_yoy: float | None
    eps_growth_yoy: float | None
    net_income_growth_yoy: float | None
    dividend_growth_yoy: float | None
    fcf_growth_yoy: float | None

    revenue_3y_cagr: float | None
    revenue_5y_cagr: float | None
    eps_3y_cagr: float | None
    eps_5y_cagr: float | None
    fcf_3y_cagr: float | None

    payout_ratio: float | None
    retention_ratio: float | None
    sustainable_growth_rate: float | None
    internal_growth_rate: float | None


def history(financials: pd.DataFrame, column: str) -> list[float | None]:
    """Annual values of one financials column, oldest first, NaN as None."""
    if column not in financials.columns:
        return []
    return [to_float(v) for v in financials[column].tolist()]


def yoy(values: list[float | None]) -> float | None:
    """Change of the last value relative to the one before it."""
    if len(values) < 2:
        return None
    return pct_change(values[-1], values[-2])


def window_cagr(values: list[float | None], years: int) -> float | None:
    """CAGR over the trailing ``years`` periods.

    Args:
        values: Annual values, oldest first.
        years: Window length. Needs ``years + 1`` points.

    Returns:
        CAGR, or None if the window is too short or its start is not
        positive.
    """
    if len(values) < years + 1:
        return None
    return cagr(values[-(years + 1)], values[-1], years)


def compute_growth(company: CompanyData) -> GrowthMetrics:
    """Compute growth metrics from the annual financial history.

    Args:
        company: Canonical company model.

    Returns:
        GrowthMetrics.
    """
    fin = company.financials
    revenue = history(fin, "revenue")
    eps = history(fin, "eps")
    net_income = history(fin, "net_income")
    dividends = history(fin, "dividends_per_share")
    fcf = history(fin, "free_cash_flow")

    if len(fin) < 2:
        logger.debug(
            "%s: fewer than 2 annual periods, growth rates set to None",
            company.symbol,
        )

    inc = company.income
    payout = positive_divide(company.cash_flow.dividends_paid, inc.net_income)
    retention = safe_subtract(1.0, payout)
    roe = safe_divide(inc.net_income, company.balance.total_equity)
    roa = safe_divide(inc.net_income, company.balance.total_assets)

    return GrowthMetrics(
        revenue_growth_yoy=yoy(revenue),
        eps_growth_yoy=yoy(eps),
        net_income_growth_yoy=yoy(net_income),
        dividend_growth_yoy=yoy(dividends),
        fcf_growth_yoy=yoy(fcf),
        revenue_3y_cagr=window_cagr(revenue, 3),
        revenue_5y_cagr=window_cagr(revenue, 5),
        eps_3y_cagr=window_cagr(eps, 3),
        eps_5y_cagr=window_cagr(eps, 5),
        fcf_3y_cagr=window_cagr(fcf, 3),
        payout_ratio=payout,
        retention_ratio=retention,
        sustainable_growth_rate=safe_multiply(roe, retention),
        internal_growth_rate=safe_multiply(roa, retention),
    )
