"""Leverage and solvency metrics."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import positive_divide, safe_add, safe_divide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeverageMetrics:
    """Leverage metric outputs.

    Attributes:
        debt_to_assets: Total debt / total assets.
        debt_to_equity: Total debt / total equity. None if equity <= 0.
        liabilities_to_equity: Total liabilities / total equity. None if
            equity <= 0.
        interest_coverage: EBIT / interest expense. None if interest
            expense <= 0.
        debt_service_coverage: Operating cash flow / (interest expense +
            short-term debt).
        equity_multiplier: Total assets / total equity. None if equity <= 0.
        debt_to_ebitda: Total debt / EBITDA. None if EBITDA <= 0.
        net_debt_to_ebitda: (Total debt - cash) / EBITDA. None if EBITDA <= 0.
        debt_to_capital: Total debt / (total debt + total equity).
        long_term_debt_ratio: Long-term debt / total assets.
        cash_flow_to_debt: Operating cash flow / total debt.
    """

    debt_to_assets: float | None
    debt_to_equity: float | None
    liabilities_to_equity: float | None
    interest_coverage: float | None
    debt_service_coverage: float | None
    equity_multiplier: float | None
    debt_to_ebitda: float | None
    net_debt_to_ebitda: float | None
    debt_to_capital: float | None
    long_term_debt_ratio: float | None
    cash_flow_to_debt: float | None


def compute_leverage(company: CompanyData) -> LeverageMetrics:
    """Compute leverage metrics for a single company.

    Ratios whose sign would invert meaning (negative equity, negative
    EBITDA, net interest income) are None rather than negative.

    Args:
        company: Canonical company model.

    Returns:
        LeverageMetrics.
    """
    bs = company.balance
    inc = company.income
    ocf = company.cash_flow.operating_cash_flow

    if bs.total_equity is not None and bs.total_equity <= 0:
        logger.debug(
            "%s: total equity is non-positive (%.2f), equity ratios set to None",
            company.symbol, bs.total_equity,
        )
    if inc.ebitda is not None and inc.ebitda <= 0:
        logger.debug("%s: EBITDA is non-positive, debt/EBITDA set to None", company.symbol)

    return LeverageMetrics(
        debt_to_assets=safe_divide(bs.total_debt, bs.total_assets),
        debt_to_equity=positive_divide(bs.total_debt, bs.total_equity),
        liabilities_to_equity=positive_divide(bs.total_liabilities, bs.total_equity),
        interest_coverage=positive_divide(inc.ebit, inc.interest_expense),
        debt_service_coverage=positive_divide(
            ocf, safe_add(inc.interest_expense, bs.short_term_debt)
        ),
        equity_multiplier=positive_divide(bs.total_assets, bs.total_equity),
        debt_to_ebitda=positive_divide(bs.total_debt, inc.ebitda),
        net_debt_to_ebitda=positive_divide(company.net_debt, inc.ebitda),
        debt_to_capital=positive_divide(
            bs.total_debt, safe_add(bs.total_debt, bs.total_equity)
        ),
        long_term_debt_ratio=safe_divide(bs.long_term_debt, bs.total_assets),
        cash_flow_to_debt=safe_divide(ocf, bs.total_debt),
    )
