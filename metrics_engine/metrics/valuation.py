"""Valuation metrics: price multiples, EV multiples and yields."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.dcf import cost_of_equity
from metrics_engine.metrics.growth import history, yoy
from metrics_engine.numeric import (
    positive_divide,
    safe_divide,
    safe_multiply,
    safe_subtract,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuationMetrics:
    """Valuation metric outputs.

    Attributes:
        pe_ratio: Provider trailing P/E when present, else price / EPS.
            None if EPS <= 0.
        forward_pe: Provider forward P/E when present, else price /
            forward EPS.
        book_value_per_share: Total equity / shares outstanding.
        pb_ratio: Price / book value per share. None if BVPS <= 0.
        ps_ratio: Market cap / revenue.
        price_to_cash_flow: Market cap / operating cash flow.
        price_to_fcf: Market cap / free cash flow.
        enterprise_value: Market cap + total debt - cash.
        ev_to_ebitda: EV / EBITDA. None if EBITDA <= 0.
        ev_to_sales: EV / revenue.
        ev_to_ebit: EV / EBIT. None if EBIT <= 0.
        ev_to_fcf: EV / free cash flow. None if FCF <= 0.
        dividend_yield: Dividend rate / price.
        peg_ratio: P/E / (EPS growth in percent). None if growth <= 0.
        earnings_yield: EPS / price.
        fcf_yield: Free cash flow / market cap.
        justified_pe: Payout x (1 + g) / (Re - g).
        justified_pb: (ROE - g) / (Re - g).
        graham_number: sqrt(22.5 x EPS x BVPS). None unless both > 0.
        ncav_per_share: (Current assets - total liabilities) / shares.
        tobins_q: Market cap / total assets.
        market_cap_to_gdp: Market cap / nominal GDP.
    """

    pe_ratio: float | None
    forward_pe: float | None
    book_value_per_share: float | None
    pb_ratio: float | None
    ps_ratio: float | None
    price_to_cash_flow: float | None
    price_to_fcf: float | None
    enterprise_value: float | None
    ev_to_ebitda: float | None
    ev_to_sales: float | None
    ev_to_ebit: float | None
    ev_to_fcf: float | None
    dividend_yield: float | None
    peg_ratio: float | None
    earnings_yield: float | None
    fcf_yield: float | None
    justified_pe: float | None
    justified_pb: float | None
    graham_number: float | None
    ncav_per_share: float | None
    tobins_q: float | None
    market_cap_to_gdp: float | None


def trailing_pe(company: CompanyData) -> float | None:
    """Provider trailing P/E, else price / EPS (None if EPS <= 0)."""
    if company.quote.pe is not None:
        return company.quote.pe
    return positive_divide(company.quote.price, company.quote.eps)


def book_value_per_share(company: CompanyData) -> float | None:
    """Total equity / shares outstanding."""
    return positive_divide(company.balance.total_equity, company.quote.shares_outstanding)


def _gordon_spread(
    company: CompanyData, assumptions: Assumptions
) -> tuple[float | None, float]:
    """Cost of equity less terminal growth, None unless positive."""
    g = assumptions.terminal_growth_rate
    re = cost_of_equity(company, assumptions)
    spread = safe_subtract(re, g)
    if spread is None or spread <= 0:
        logger.debug(
            "%s: cost of equity does not exceed growth, justified multiples set to None",
            company.symbol,
        )
        return None, g
    return spread, g


def compute_valuation(
    company: CompanyData, assumptions: Assumptions | None = None
) -> ValuationMetrics:
    """Compute valuation metrics for a single company.

    Args:
        company: Canonical company model.
        assumptions: Supplies the CAPM inputs and growth rate for the
            justified multiples.

    Returns:
        ValuationMetrics.
    """
    assumptions = assumptions or Assumptions()
    q = company.quote
    inc = company.income
    bs = company.balance
    cf = company.cash_flow
    market_cap = q.market_cap
    ev = company.enterprise_value

    pe = trailing_pe(company)
    forward_pe = q.forward_pe
    if forward_pe is None:
        forward_pe = positive_divide(q.price, q.forward_eps)

    bvps = book_value_per_share(company)

    eps_growth = yoy(history(company.financials, "eps"))
    peg = None
    if pe is not None and pe > 0 and eps_growth is not None and eps_growth > 0:
        peg = pe / (eps_growth * 100.0)

    graham = None
    if q.eps is not None and bvps is not None and q.eps > 0 and bvps > 0:
        graham = math.sqrt(22.5 * q.eps * bvps)

    spread, g = _gordon_spread(company, assumptions)
    payout = positive_divide(cf.dividends_paid, inc.net_income)
    roe = safe_divide(inc.net_income, bs.total_equity)
    justified_pe = safe_divide(safe_multiply(payout, 1.0 + g), spread)
    justified_pb = safe_divide(safe_subtract(roe, g), spread)

    return ValuationMetrics(
        pe_ratio=pe,
        forward_pe=forward_pe,
        book_value_per_share=bvps,
        pb_ratio=positive_divide(q.price, bvps),
        ps_ratio=positive_divide(market_cap, inc.revenue),
        price_to_cash_flow=positive_divide(market_cap, cf.operating_cash_flow),
        price_to_fcf=positive_divide(market_cap, cf.free_cash_flow),
        enterprise_value=ev,
        ev_to_ebitda=positive_divide(ev, inc.ebitda),
        ev_to_sales=positive_divide(ev, inc.revenue),
        ev_to_ebit=positive_divide(ev, inc.ebit),
        ev_to_fcf=positive_divide(ev, cf.free_cash_flow),
        dividend_yield=positive_divide(q.dividend_rate, q.price),
        peg_ratio=peg,
        earnings_yield=positive_divide(q.eps, q.price),
        fcf_yield=positive_divide(cf.free_cash_flow, market_cap),
        justified_pe=justified_pe,
        justified_pb=justified_pb,
        graham_number=graham,
        ncav_per_share=positive_divide(
            safe_subtract(bs.current_assets, bs.total_liabilities), q.shares_outstanding
        ),
        tobins_q=positive_divide(market_cap, bs.total_assets),
        market_cap_to_gdp=positive_divide(market_cap, company.macro.nominal_gdp),
    )
