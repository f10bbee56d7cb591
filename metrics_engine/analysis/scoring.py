"""Composite 0-100 scores built from already-computed metric groups.

Each score is a weighted blend of constituent metrics, each mapped onto
0-100 through a fixed reference band and clamped. Missing constituents
drop out and the remaining weights are renormalised; a score with no
available constituent is None. The total score blends the five scores
the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from metrics_engine.config import ScoreBand, ScoringConfig
from metrics_engine.numeric import normalize_to_scale, to_float, weighted_average

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreMetrics:
    """Composite scores on a 0-100 scale (higher is better).

    Attributes:
        profitability_score: Returns on equity and capital, net margin.
        growth_score: Revenue and EPS growth.
        valuation_score: Cheapness on P/E, P/B and EV/EBITDA.
        risk_score: Low beta, shallow drawdown, low volatility.
        health_score: Liquidity, leverage, coverage and Altman Z.
        total_score: Weighted blend of the five scores.
    """

    profitability_score: float | None
    growth_score: float | None
    valuation_score: float | None
    risk_score: float | None
    health_score: float | None
    total_score: float | None


def _lookup(groups: Mapping[str, object], path: str) -> float | None:
    group_name, _, field_name = path.partition(".")
    group = groups.get(group_name)
    if group is None:
        return None
    return to_float(getattr(group, field_name, None))


def band_score(value: float | None, band: ScoreBand) -> float | None:
    """Score one metric value against its reference band.

    Args:
        value: Metric value, possibly None.
        band: Reference band.

    Returns:
        0-100 score, or None when the metric is missing or excluded by
        the band's positive-only rule.
    """
    if value is None:
        return None
    if band.positive_only and value <= 0:
        return None
    if band.absolute:
        value = abs(value)
    score = normalize_to_scale(value, band.low, band.high)
    if score is None:
        return None
    return 100.0 - score if band.invert else score


def composite_score(
    groups: Mapping[str, object], bands: tuple[ScoreBand, ...]
) -> float | None:
    """Weighted average of the band scores of the available constituents."""
    return weighted_average(
        (band_score(_lookup(groups, band.metric), band), band.weight)
        for band in bands
    )


def compute_scores(
    groups: Mapping[str, object], config: ScoringConfig | None = None
) -> ScoreMetrics:
    """Compute the composite scores from the category metric groups.

    Args:
        groups: Metric groups keyed by category name (``"profitability"``,
            ``"growth"``, ``"valuation"``, ``"risk"``, ``"liquidity"``,
            ``"leverage"``, ``"other"``).
        config: Reference bands and weights.

    Returns:
        ScoreMetrics.
    """
    config = config or ScoringConfig()
    scores = {
        "profitability": composite_score(groups, config.profitability),
        "growth": composite_score(groups, config.growth),
        "valuation": composite_score(groups, config.valuation),
        "risk": composite_score(groups, config.risk),
        "health": composite_score(groups, config.health),
    }
    missing = [name for name, score in scores.items() if score is None]
    if missing:
        logger.debug("Composite scores without constituents: %s", ", ".join(missing))

    total = weighted_average(
        (scores[name], weight) for name, weight in config.total_weights
    )

    return ScoreMetrics(
        profitability_score=scores["profitability"],
        growth_score=scores["growth"],
        valuation_score=scores["valuation"],
        risk_score=scores["risk"],
        health_score=scores["health"],
        total_score=total,
    )
