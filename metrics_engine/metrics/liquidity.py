"""Liquidity metrics: short-term coverage ratios and working-capital day counts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import positive_divide, safe_add, safe_divide, safe_subtract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityMetrics:
    """Liquidity metric outputs.

    Attributes:
        current_ratio: Current assets / current liabilities.
        quick_ratio: (Current assets - inventory) / current liabilities.
        cash_ratio: (Cash + short-term investments) / current liabilities.
        days_sales_outstanding: Receivables / (revenue / 365).
        days_inventory_outstanding: Inventory / (cost of revenue / 365).
        days_payables_outstanding: Accounts payable / (cost of revenue / 365).
        cash_conversion_cycle: DIO + DSO - DPO.
        defensive_interval_days: (Cash + short-term investments +
            receivables) / daily operating expenses.
        net_working_capital_ratio: Working capital / total assets.
        operating_cash_flow_ratio: Operating cash flow / current liabilities.
        cash_runway_months: Cash / monthly operating expenses. Only
            reported for loss-making companies.
    """

    current_ratio: float | None
    quick_ratio: float | None
    cash_ratio: float | None
    days_sales_outstanding: float | None
    days_inventory_outstanding: float | None
    days_payables_outstanding: float | None
    cash_conversion_cycle: float | None
    defensive_interval_days: float | None
    net_working_capital_ratio: float | None
    operating_cash_flow_ratio: float | None
    cash_runway_months: float | None


def _days(balance: float | None, flow: float | None, days_per_year: int) -> float | None:
    """Balance / (flow / days); None when the flow is zero or missing."""
    return safe_divide(balance, safe_divide(flow, days_per_year))


def compute_liquidity(
    company: CompanyData, assumptions: Assumptions | None = None
) -> LiquidityMetrics:
    """Compute liquidity metrics for a single company.

    Args:
        company: Canonical company model.
        assumptions: Supplies the day count for the day-based metrics.

    Returns:
        LiquidityMetrics.
    """
    assumptions = assumptions or Assumptions()
    days = assumptions.days_per_year
    bs = company.balance
    inc = company.income

    current_liabilities = bs.current_liabilities
    if current_liabilities == 0:
        logger.debug(
            "%s: current liabilities are zero, coverage ratios set to None",
            company.symbol,
        )

    dso = _days(bs.receivables, inc.revenue, days)
    dio = _days(bs.inventory, inc.cost_of_revenue, days)
    dpo = _days(bs.accounts_payable, inc.cost_of_revenue, days)

    liquid_assets = safe_add(bs.cash, bs.short_term_investments)
    defensive_assets = safe_add(liquid_assets, bs.receivables)

    cash_runway = None
    if inc.net_income is not None and inc.net_income < 0:
        cash_runway = positive_divide(bs.cash, safe_divide(inc.operating_expenses, 12))

    return LiquidityMetrics(
        current_ratio=safe_divide(bs.current_assets, current_liabilities),
        quick_ratio=safe_divide(
            safe_subtract(bs.current_assets, bs.inventory), current_liabilities
        ),
        cash_ratio=safe_divide(liquid_assets, current_liabilities),
        days_sales_outstanding=dso,
        days_inventory_outstanding=dio,
        days_payables_outstanding=dpo,
        cash_conversion_cycle=safe_subtract(safe_add(dio, dso), dpo),
        defensive_interval_days=positive_divide(
            defensive_assets, safe_divide(inc.operating_expenses, days)
        ),
        net_working_capital_ratio=safe_divide(company.working_capital, bs.total_assets),
        operating_cash_flow_ratio=safe_divide(
            company.cash_flow.operating_cash_flow, current_liabilities
        ),
        cash_runway_months=cash_runway,
    )
