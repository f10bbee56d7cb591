"""Efficiency metrics: asset and working-capital turnover."""

from __future__ import annotations

from dataclasses import dataclass

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import positive_divide, safe_add, safe_subtract


@dataclass(frozen=True)
class EfficiencyMetrics:
    """Turnover metric outputs.

    Attributes:
        asset_turnover: Revenue / average total assets.
        fixed_asset_turnover: Revenue / non-current assets.
        inventory_turnover: Cost of revenue / inventory.
        receivables_turnover: Revenue / receivables.
        payables_turnover: Cost of revenue / accounts payable.
        working_capital_turnover: Revenue / working capital. None if
            working capital <= 0.
        equity_turnover: Revenue / total equity.
        capital_employed_turnover: Revenue / (total assets - current
            liabilities).
        operating_cycle_days: Days inventory + days receivables, from the
            turnover ratios.
    """

    asset_turnover: float | None
    fixed_asset_turnover: float | None
    inventory_turnover: float | None
    receivables_turnover: float | None
    payables_turnover: float | None
    working_capital_turnover: float | None
    equity_turnover: float | None
    capital_employed_turnover: float | None
    operating_cycle_days: float | None


def compute_efficiency(
    company: CompanyData, assumptions: Assumptions | None = None
) -> EfficiencyMetrics:
    """Compute turnover metrics for a single company."""
    assumptions = assumptions or Assumptions()
    bs = company.balance
    revenue = company.income.revenue
    cost_of_revenue = company.income.cost_of_revenue

    inventory_turnover = positive_divide(cost_of_revenue, bs.inventory)
    receivables_turnover = positive_divide(revenue, bs.receivables)

    operating_cycle = safe_add(
        positive_divide(assumptions.days_per_year, inventory_turnover),
        positive_divide(assumptions.days_per_year, receivables_turnover),
    )

    return EfficiencyMetrics(
        asset_turnover=positive_divide(revenue, company.average_total_assets),
        fixed_asset_turnover=positive_divide(
            revenue, safe_subtract(bs.total_assets, bs.current_assets)
        ),
        inventory_turnover=inventory_turnover,
        receivables_turnover=receivables_turnover,
        payables_turnover=positive_divide(cost_of_revenue, bs.accounts_payable),
        working_capital_turnover=positive_divide(revenue, company.working_capital),
        equity_turnover=positive_divide(revenue, bs.total_equity),
        capital_employed_turnover=positive_divide(
            revenue, safe_subtract(bs.total_assets, bs.current_liabilities)
        ),
        operating_cycle_days=operating_cycle,
    )
