"""Metrics engine orchestrator.

Builds the canonical model once, runs every category calculator against
it, feeds their outputs into the composite scorer and merges everything
into one CalculatedMetrics record. Calculators are independent and read
only the immutable canonical model, so the order below carries no
meaning.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from metrics_engine.analysis.scoring import compute_scores
from metrics_engine.config import EngineConfig
from metrics_engine.data.builder import build_company
from metrics_engine.data.contracts import GROUP_NAMES, CalculatedMetrics
from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.cash_flow import compute_cash_flow
from metrics_engine.metrics.dcf import compute_dcf
from metrics_engine.metrics.dupont import compute_dupont
from metrics_engine.metrics.efficiency import compute_efficiency
from metrics_engine.metrics.growth import compute_growth
from metrics_engine.metrics.industry import compute_industry
from metrics_engine.metrics.leverage import compute_leverage
from metrics_engine.metrics.liquidity import compute_liquidity
from metrics_engine.metrics.macro import compute_macro
from metrics_engine.metrics.profitability import compute_profitability
from metrics_engine.metrics.quality import compute_other
from metrics_engine.metrics.risk import compute_risk
from metrics_engine.metrics.technical import compute_technical
from metrics_engine.metrics.valuation import compute_valuation

logger = logging.getLogger(__name__)

Calculator = Callable[[CompanyData, EngineConfig], Any]

CALCULATORS: dict[str, Calculator] = {
    "macro": lambda c, cfg: compute_macro(c),
    "industry": lambda c, cfg: compute_industry(c),
    "liquidity": lambda c, cfg: compute_liquidity(c, cfg.assumptions),
    "leverage": lambda c, cfg: compute_leverage(c),
    "efficiency": lambda c, cfg: compute_efficiency(c, cfg.assumptions),
    "profitability": lambda c, cfg: compute_profitability(c, cfg.assumptions),
    "dupont": lambda c, cfg: compute_dupont(c),
    "growth": lambda c, cfg: compute_growth(c),
    "cash_flow": lambda c, cfg: compute_cash_flow(c),
    "valuation": lambda c, cfg: compute_valuation(c, cfg.assumptions),
    "dcf": lambda c, cfg: compute_dcf(c, cfg.assumptions),
    "risk": lambda c, cfg: compute_risk(c, cfg.assumptions),
    "technical": lambda c, cfg: compute_technical(c, cfg.technical),
    "other": lambda c, cfg: compute_other(c),
}

# Groups the composite scorer reads.
SCORE_INPUTS: tuple[str, ...] = (
    "profitability", "growth", "valuation", "risk", "liquidity", "leverage", "other",
)


def _run_groups(
    company: CompanyData, names: tuple[str, ...], config: EngineConfig
) -> dict[str, Any]:
    return {name: CALCULATORS[name](company, config) for name in names}


def calculate_company(
    company: CompanyData, config: EngineConfig | None = None
) -> CalculatedMetrics:
    """Run every calculator against an already-built canonical model.

    Args:
        company: Canonical company model.
        config: Engine configuration. Defaults are used when None.

    Returns:
        CalculatedMetrics for the company.
    """
    config = config or EngineConfig()
    groups = _run_groups(company, tuple(CALCULATORS), config)
    groups["scores"] = compute_scores(groups, config.scoring)

    return CalculatedMetrics(
        symbol=company.symbol,
        company_name=company.company_name,
        sector=company.sector,
        industry_name=company.industry,
        timestamp=company.timestamp,
        **groups,
    )


def calculate_all(
    raw: Mapping[str, Any], config: EngineConfig | None = None
) -> CalculatedMetrics:
    """Compute every metric for one raw financial bundle.

    Deterministic and side-effect free: identical input and configuration
    always produce an identical result.

    Args:
        raw: Raw bundle (market/company record, macro record, industry
            record, timestamp).
        config: Engine configuration. Defaults are used when None.

    Returns:
        CalculatedMetrics.

    Raises:
        TypeError: If the bundle or a required section is not a mapping.
        ValueError: If a required section is missing or the timestamp
            cannot be parsed.
    """
    config = config or EngineConfig()
    start = time.perf_counter()

    company = build_company(raw, config.assumptions)
    result = calculate_company(company, config)

    populated, total = result.metric_counts()
    logger.debug(
        "%s: %d/%d metrics populated in %.2f ms",
        result.symbol, populated, total, (time.perf_counter() - start) * 1000.0,
    )
    return result


def calculate_category(
    raw: Mapping[str, Any], name: str, config: EngineConfig | None = None
) -> Any:
    """Compute a single metric group for one raw bundle.

    Args:
        raw: Raw bundle, as for calculate_all.
        name: Category name, one of GROUP_NAMES.
        config: Engine configuration. Defaults are used when None.

    Returns:
        The metric group dataclass for the category.

    Raises:
        ValueError: If the category name is unknown, or as for
            calculate_all.
    """
    if name not in GROUP_NAMES:
        raise ValueError(
            f"Unknown metric category {name!r}; expected one of {', '.join(GROUP_NAMES)}."
        )
    config = config or EngineConfig()
    company = build_company(raw, config.assumptions)

    if name == "scores":
        groups = _run_groups(company, SCORE_INPUTS, config)
        return compute_scores(groups, config.scoring)
    return CALCULATORS[name](company, config)
