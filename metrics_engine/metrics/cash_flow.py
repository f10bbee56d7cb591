"""Cash flow metrics: free cash flow variants, margins and coverage."""

from __future__ import annotations

from dataclasses import dataclass

from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.profitability import nopat
from metrics_engine.numeric import (
    positive_divide,
    safe_add,
    safe_divide,
    safe_subtract,
)


@dataclass(frozen=True)
class CashFlowMetrics:
    """Cash flow metric outputs.

    Attributes:
        operating_cash_flow: Cash from operations (pass-through).
        investing_cash_flow: Cash from investing (pass-through).
        financing_cash_flow: Cash from financing (pass-through).
        free_cash_flow: OCF - capex (reported or derived).
        free_cash_flow_to_firm: NOPAT + D&A - capex, D&A = EBITDA - EBIT.
        free_cash_flow_to_equity: Free cash flow.
        fcf_margin: Free cash flow / revenue.
        fcf_yield: Free cash flow / market cap.
        ocf_margin: Operating cash flow / revenue.
        capex_to_revenue: Capex / revenue.
        cash_flow_adequacy: OCF / (capex + dividends paid).
        cash_reinvestment_ratio: Capex / OCF. None if OCF <= 0.
        cash_conversion: OCF / net income. None if net income <= 0.
        fcf_per_share: Free cash flow / shares outstanding.
    """

    operating_cash_flow: float | None
    investing_cash_flow: float | None
    financing_cash_flow: float | None
    free_cash_flow: float | None
    free_cash_flow_to_firm: float | None
    free_cash_flow_to_equity: float | None
    fcf_margin: float | None
    fcf_yield: float | None
    ocf_margin: float | None
    capex_to_revenue: float | None
    cash_flow_adequacy: float | None
    cash_reinvestment_ratio: float | None
    cash_conversion: float | None
    fcf_per_share: float | None


def compute_cash_flow(company: CompanyData) -> CashFlowMetrics:
    """Compute cash flow metrics for a single company."""
    cf = company.cash_flow
    inc = company.income
    revenue = inc.revenue
    capex = cf.capital_expenditures

    depreciation = safe_subtract(inc.ebitda, inc.ebit)
    fcff = safe_subtract(safe_add(nopat(company), depreciation), capex)

    return CashFlowMetrics(
        operating_cash_flow=cf.operating_cash_flow,
        investing_cash_flow=cf.investing_cash_flow,
        financing_cash_flow=cf.financing_cash_flow,
        free_cash_flow=cf.free_cash_flow,
        free_cash_flow_to_firm=fcff,
        free_cash_flow_to_equity=cf.free_cash_flow,
        fcf_margin=safe_divide(cf.free_cash_flow, revenue),
        fcf_yield=positive_divide(cf.free_cash_flow, company.quote.market_cap),
        ocf_margin=safe_divide(cf.operating_cash_flow, revenue),
        capex_to_revenue=safe_divide(capex, revenue),
        cash_flow_adequacy=positive_divide(
            cf.operating_cash_flow, safe_add(capex, cf.dividends_paid)
        ),
        cash_reinvestment_ratio=positive_divide(capex, cf.operating_cash_flow),
        cash_conversion=positive_divide(cf.operating_cash_flow, inc.net_income),
        fcf_per_share=positive_divide(cf.free_cash_flow, company.quote.shares_outstanding),
    )
