"""Engine output contract.

One immutable record per calculation: identity fields plus one metric
group per category.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, fields
from typing import Any

from metrics_engine.analysis.scoring import ScoreMetrics
from metrics_engine.metrics.cash_flow import CashFlowMetrics
from metrics_engine.metrics.dcf import DCFMetrics
from metrics_engine.metrics.dupont import DupontMetrics
from metrics_engine.metrics.efficiency import EfficiencyMetrics
from metrics_engine.metrics.growth import GrowthMetrics
from metrics_engine.metrics.industry import IndustryMetrics
from metrics_engine.metrics.leverage import LeverageMetrics
from metrics_engine.metrics.liquidity import LiquidityMetrics
from metrics_engine.metrics.macro import MacroMetrics
from metrics_engine.metrics.profitability import ProfitabilityMetrics
from metrics_engine.metrics.quality import OtherMetrics
from metrics_engine.metrics.risk import RiskMetrics
from metrics_engine.metrics.technical import TechnicalMetrics
from metrics_engine.metrics.valuation import ValuationMetrics
from metrics_engine.numeric import round_optional

# Metric groups in output order.
GROUP_NAMES: tuple[str, ...] = (
    "macro",
    "industry",
    "liquidity",
    "leverage",
    "efficiency",
    "profitability",
    "dupont",
    "growth",
    "cash_flow",
    "valuation",
    "dcf",
    "risk",
    "technical",
    "scores",
    "other",
)


@dataclass(frozen=True)
class CalculatedMetrics:
    """Complete engine output for one company.

    Attributes:
        symbol: Ticker symbol.
        company_name: Company name.
        sector: Business sector.
        industry_name: Industry name.
        timestamp: Capture time of the raw bundle.
        macro ... other: One metric group per category, see GROUP_NAMES.
    """

    symbol: str
    company_name: str
    sector: str | None
    industry_name: str | None
    timestamp: datetime.datetime

    macro: MacroMetrics
    industry: IndustryMetrics
    liquidity: LiquidityMetrics
    leverage: LeverageMetrics
    efficiency: EfficiencyMetrics
    profitability: ProfitabilityMetrics
    dupont: DupontMetrics
    growth: GrowthMetrics
    cash_flow: CashFlowMetrics
    valuation: ValuationMetrics
    dcf: DCFMetrics
    risk: RiskMetrics
    technical: TechnicalMetrics
    scores: ScoreMetrics
    other: OtherMetrics

    def groups(self) -> dict[str, Any]:
        """Metric groups keyed by category name, in output order."""
        return {name: getattr(self, name) for name in GROUP_NAMES}

    def to_dict(self, digits: int | None = None) -> dict[str, Any]:
        """Plain-dict view suitable for JSON serialisation.

        Args:
            digits: Round float metrics to this many decimal places.
                None leaves them unrounded.

        Returns:
            Nested dict with identity fields at the top level and one
            sub-dict per metric group.
        """
        result: dict[str, Any] = {
            "symbol": self.symbol,
            "company_name": self.company_name,
            "sector": self.sector,
            "industry_name": self.industry_name,
            "timestamp": self.timestamp.isoformat(),
        }
        for name, group in self.groups().items():
            values: dict[str, Any] = {}
            for f in fields(group):
                value = getattr(group, f.name)
                if isinstance(value, float):
                    value = round_optional(value, digits)
                values[f.name] = value
            result[name] = values
        return result

    def metric_counts(self) -> tuple[int, int]:
        """(populated, total) number of metric fields across all groups."""
        populated = total = 0
        for group in self.groups().values():
            for f in fields(group):
                total += 1
                if getattr(group, f.name) is not None:
                    populated += 1
        return populated, total
