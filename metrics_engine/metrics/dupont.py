"""DuPont decomposition of return on equity."""

from __future__ import annotations

from dataclasses import dataclass

from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import positive_divide, safe_divide, safe_multiply


@dataclass(frozen=True)
class DupontMetrics:
    """Three- and five-factor ROE decomposition.

    Both products reduce to net income / total equity when every factor
    is available. Asset turnover here uses period-end total assets so the
    identity holds exactly.

    Attributes:
        net_margin: Net income / revenue.
        asset_turnover: Revenue / total assets.
        equity_multiplier: Total assets / total equity. None if equity <= 0.
        roe_three_factor: net_margin x asset_turnover x equity_multiplier.
        tax_burden: Net income / pretax income.
        interest_burden: Pretax income / EBIT.
        ebit_margin: EBIT / revenue.
        roe_five_factor: tax_burden x interest_burden x ebit_margin x
            asset_turnover x equity_multiplier.
    """

    net_margin: float | None
    asset_turnover: float | None
    equity_multiplier: float | None
    roe_three_factor: float | None
    tax_burden: float | None
    interest_burden: float | None
    ebit_margin: float | None
    roe_five_factor: float | None


def compute_dupont(company: CompanyData) -> DupontMetrics:
    """Decompose ROE for a single company."""
    inc = company.income
    bs = company.balance

    net_margin = safe_divide(inc.net_income, inc.revenue)
    asset_turnover = safe_divide(inc.revenue, bs.total_assets)
    equity_multiplier = positive_divide(bs.total_assets, bs.total_equity)
    tax_burden = safe_divide(inc.net_income, inc.pretax_income)
    interest_burden = safe_divide(inc.pretax_income, inc.ebit)
    ebit_margin = safe_divide(inc.ebit, inc.revenue)

    return DupontMetrics(
        net_margin=net_margin,
        asset_turnover=asset_turnover,
        equity_multiplier=equity_multiplier,
        roe_three_factor=safe_multiply(net_margin, asset_turnover, equity_multiplier),
        tax_burden=tax_burden,
        interest_burden=interest_burden,
        ebit_margin=ebit_margin,
        roe_five_factor=safe_multiply(
            tax_burden, interest_burden, ebit_margin, asset_turnover, equity_multiplier
        ),
    )
