"""Industry metrics: market share, concentration and peer positioning."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.valuation import trailing_pe
from metrics_engine.numeric import positive_divide, safe_divide, safe_subtract

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndustryMetrics:
    """Industry context metrics.

    Attributes:
        industry_growth_rate: Industry revenue growth (pass-through).
        market_size: Total addressable market (pass-through).
        market_share: Company revenue / industry revenue.
        hhi_index: Herfindahl-Hirschman index over the peer list, shares
            in percent (0-10000).
        cr4: Combined share of the four largest peers (fraction).
        cr8: Combined share of the eight largest peers (fraction).
        peer_count: Number of peers with a known revenue.
        revenue_rank: 1-based revenue rank of the company among its peers.
        market_penetration: Company revenue / market size.
        relative_pe: Company P/E / industry P/E.
        excess_gross_margin: Company gross margin minus industry gross
            margin.
    """

    industry_growth_rate: float | None
    market_size: float | None
    market_share: float | None
    hhi_index: float | None
    cr4: float | None
    cr8: float | None
    peer_count: int | None
    revenue_rank: int | None
    market_penetration: float | None
    relative_pe: float | None
    excess_gross_margin: float | None


def _peer_shares(company: CompanyData) -> list[float]:
    """Peer market shares in percent, largest first.

    The denominator is the larger of the reported industry revenue and
    the summed peer revenue, so shares always total at most 100.
    """
    revenues = [
        p.revenue for p in company.industry_profile.peers
        if p.revenue is not None and p.revenue > 0
    ]
    if not revenues:
        return []
    denominator = max(company.industry_profile.industry_revenue or 0.0, sum(revenues))
    return sorted((r / denominator * 100.0 for r in revenues), reverse=True)


def _concentration(shares: list[float], n: int) -> float | None:
    if not shares:
        return None
    return sum(shares[:n]) / 100.0


def compute_industry(company: CompanyData) -> IndustryMetrics:
    """Compute industry metrics for a single company.

    Args:
        company: Canonical company model.

    Returns:
        IndustryMetrics. Concentration metrics are None without peers.
    """
    profile = company.industry_profile
    revenue = company.income.revenue

    shares = _peer_shares(company)
    if not shares:
        logger.debug("%s: no peer revenues, concentration set to None", company.symbol)
        hhi = None
    else:
        hhi = sum(s * s for s in shares)

    known_peers = [p for p in profile.peers if p.revenue is not None]
    revenue_rank = None
    if revenue is not None and known_peers:
        others = [p for p in known_peers if p.symbol != company.symbol]
        revenue_rank = 1 + sum(1 for p in others if p.revenue > revenue)

    gross_margin = safe_divide(company.income.gross_profit, revenue)

    return IndustryMetrics(
        industry_growth_rate=profile.industry_growth_rate,
        market_size=profile.market_size,
        market_share=positive_divide(revenue, profile.industry_revenue),
        hhi_index=hhi,
        cr4=_concentration(shares, 4),
        cr8=_concentration(shares, 8),
        peer_count=len(known_peers) if profile.peers else None,
        revenue_rank=revenue_rank,
        market_penetration=positive_divide(revenue, profile.market_size),
        relative_pe=positive_divide(trailing_pe(company), profile.industry_pe),
        excess_gross_margin=safe_subtract(gross_margin, profile.industry_gross_margin),
    )
