"""Deterministic financial metrics engine for single-issuer public equities."""

from metrics_engine.calculator import calculate_all, calculate_category
from metrics_engine.config import Assumptions, EngineConfig, ScoringConfig, TechnicalConfig
from metrics_engine.data.contracts import CalculatedMetrics

__all__ = [
    "Assumptions",
    "CalculatedMetrics",
    "EngineConfig",
    "ScoringConfig",
    "TechnicalConfig",
    "calculate_all",
    "calculate_category",
]
