"""Profitability metrics: margins and returns on capital."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import (
    positive_divide,
    safe_divide,
    safe_multiply,
    safe_subtract,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfitabilityMetrics:
    """Profitability metric outputs.

    Margins are fractions of revenue. Returns are fractions of the
    respective capital base.

    Attributes:
        gross_profit_margin: Gross profit / revenue.
        operating_margin: Operating income / revenue.
        ebitda_margin: EBITDA / revenue.
        ebit_margin: EBIT / revenue.
        pretax_margin: Pretax income / revenue.
        net_profit_margin: Net income / revenue.
        roa: Net income / total assets.
        return_on_average_assets: Net income / average total assets.
        roe: Net income / total equity.
        nopat: EBIT x (1 - effective tax rate).
        roic: NOPAT / invested capital. None if invested capital <= 0.
        roce: EBIT / (total assets - current liabilities).
        cash_roa: Operating cash flow / total assets.
        economic_profit: NOPAT - invested capital x hurdle rate.
        roic_spread: ROIC - hurdle rate.
    """

    gross_profit_margin: float | None
    operating_margin: float | None
    ebitda_margin: float | None
    ebit_margin: float | None
    pretax_margin: float | None
    net_profit_margin: float | None
    roa: float | None
    return_on_average_assets: float | None
    roe: float | None
    nopat: float | None
    roic: float | None
    roce: float | None
    cash_roa: float | None
    economic_profit: float | None
    roic_spread: float | None


def nopat(company: CompanyData) -> float | None:
    """Net operating profit after tax, None without EBIT or a tax rate."""
    if company.effective_tax_rate is None:
        return None
    return safe_multiply(company.income.ebit, 1.0 - company.effective_tax_rate)


def compute_profitability(
    company: CompanyData, assumptions: Assumptions | None = None
) -> ProfitabilityMetrics:
    """Compute profitability metrics for a single company.

    Args:
        company: Canonical company model.
        assumptions: Supplies the hurdle rate for economic profit.

    Returns:
        ProfitabilityMetrics.
    """
    assumptions = assumptions or Assumptions()
    inc = company.income
    bs = company.balance
    revenue = inc.revenue

    if revenue == 0:
        logger.debug("%s: revenue is zero, margins set to None", company.symbol)

    after_tax_operating_profit = nopat(company)
    invested_capital = company.invested_capital
    roic = positive_divide(after_tax_operating_profit, invested_capital)
    if roic is None and invested_capital is not None and invested_capital <= 0:
        logger.debug(
            "%s: invested capital is non-positive (%.2f), ROIC set to None",
            company.symbol, invested_capital,
        )

    capital_charge = safe_multiply(invested_capital, assumptions.hurdle_rate)

    return ProfitabilityMetrics(
        gross_profit_margin=safe_divide(inc.gross_profit, revenue),
        operating_margin=safe_divide(inc.operating_income, revenue),
        ebitda_margin=safe_divide(inc.ebitda, revenue),
        ebit_margin=safe_divide(inc.ebit, revenue),
        pretax_margin=safe_divide(inc.pretax_income, revenue),
        net_profit_margin=safe_divide(inc.net_income, revenue),
        roa=safe_divide(inc.net_income, bs.total_assets),
        return_on_average_assets=safe_divide(inc.net_income, company.average_total_assets),
        roe=safe_divide(inc.net_income, bs.total_equity),
        nopat=after_tax_operating_profit,
        roic=roic,
        roce=positive_divide(inc.ebit, safe_subtract(bs.total_assets, bs.current_liabilities)),
        cash_roa=safe_divide(company.cash_flow.operating_cash_flow, bs.total_assets),
        economic_profit=safe_subtract(after_tax_operating_profit, capital_charge),
        roic_spread=safe_subtract(roic, assumptions.hurdle_rate),
    )
