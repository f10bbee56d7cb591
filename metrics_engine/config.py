"""Engine configuration dataclasses.

All business assumptions live here and are passed into the calculators
explicitly, so a calculation is fully determined by its raw input and
its configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Assumptions:
    """Valuation and normalisation assumptions.

    Attributes:
        equity_risk_premium: Market risk premium used by CAPM.
        terminal_growth_rate: Perpetuity growth rate for the DCF terminal
            value and the justified multiples.
        projection_years: Explicit DCF projection horizon in years.
        tax_rate: Tax rate override. None uses the effective tax rate
            (income tax / pretax income).
        risk_free_rate: Risk-free rate override. None uses the macro
            10-year treasury yield.
        fcf_growth_rate: First-year FCF growth override for the DCF. None
            uses the historical FCF CAGR, clamped to the projection
            growth bounds.
        min_projection_growth: Lower clamp for historical FCF growth.
        max_projection_growth: Upper clamp for historical FCF growth.
        hurdle_rate: Capital charge for economic profit and ROIC spread.
        trading_days_per_year: Annualisation factor for daily returns.
        days_per_year: Day count for DSO/DIO/DPO and defensive interval.
    """

    equity_risk_premium: float = 0.05
    terminal_growth_rate: float = 0.025
    projection_years: int = 5
    tax_rate: float | None = None
    risk_free_rate: float | None = None
    fcf_growth_rate: float | None = None
    min_projection_growth: float = -0.10
    max_projection_growth: float = 0.20
    hurdle_rate: float = 0.10
    trading_days_per_year: int = 252
    days_per_year: int = 365

    def __post_init__(self) -> None:
        """Validate assumption values."""
        if self.projection_years < 1:
            raise ValueError(
                f"projection_years must be at least 1, got {self.projection_years}."
            )
        if self.trading_days_per_year < 1:
            raise ValueError(
                "trading_days_per_year must be positive, "
                f"got {self.trading_days_per_year}."
            )
        if self.days_per_year < 1:
            raise ValueError(
                f"days_per_year must be positive, got {self.days_per_year}."
            )
        if self.min_projection_growth > self.max_projection_growth:
            raise ValueError(
                f"min_projection_growth ({self.min_projection_growth}) must not "
                f"exceed max_projection_growth ({self.max_projection_growth})."
            )
        if self.tax_rate is not None and not 0 <= self.tax_rate < 1:
            raise ValueError(f"tax_rate must be in [0, 1), got {self.tax_rate}.")


@dataclass(frozen=True)
class TechnicalConfig:
    """Technical indicator look-back periods (in trading days).

    Simple moving averages are always reported for 10, 20, 50, 100 and
    200 days.
    """

    rsi_period: int = 14
    ema_fast: int = 12
    ema_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_width: float = 2.0
    stochastic_period: int = 14
    stochastic_smoothing: int = 3
    williams_period: int = 14
    cci_period: int = 20
    atr_period: int = 14
    mfi_period: int = 14
    support_resistance_period: int = 20
    year_high_low_period: int = 252

    def __post_init__(self) -> None:
        """Validate indicator periods."""
        if self.ema_fast >= self.ema_slow:
            raise ValueError(
                f"ema_fast ({self.ema_fast}) must be shorter than "
                f"ema_slow ({self.ema_slow})."
            )
        periods = (
            self.rsi_period, self.ema_fast, self.ema_slow, self.macd_signal,
            self.bollinger_period, self.stochastic_period,
            self.stochastic_smoothing, self.williams_period, self.cci_period,
            self.atr_period, self.mfi_period, self.support_resistance_period,
            self.year_high_low_period,
        )
        if min(periods) < 1:
            raise ValueError("All technical indicator periods must be positive.")


@dataclass(frozen=True)
class ScoreBand:
    """Linear mapping of one metric onto the 0-100 score scale.

    Attributes:
        metric: Dotted path "<group>.<field>" of the constituent metric.
        low: Metric value mapped to 0 (or 100 when inverted).
        high: Metric value mapped to 100 (or 0 when inverted).
        weight: Relative weight within the composite score.
        invert: True when lower metric values are better.
        positive_only: Skip the constituent when the metric is <= 0
            (e.g. negative P/E is not meaningful).
        absolute: Score the magnitude of the metric (e.g. drawdown).
    """

    metric: str
    low: float
    high: float
    weight: float = 1.0
    invert: bool = False
    positive_only: bool = False
    absolute: bool = False

    def __post_init__(self) -> None:
        if self.high <= self.low:
            raise ValueError(
                f"Band for {self.metric!r}: high ({self.high}) must exceed "
                f"low ({self.low})."
            )
        if self.weight <= 0:
            raise ValueError(
                f"Band for {self.metric!r}: weight must be positive, "
                f"got {self.weight}."
            )


def _profitability_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("profitability.roe", 0.0, 0.20, weight=0.40),
        ScoreBand("profitability.roic", 0.0, 0.20, weight=0.35),
        ScoreBand("profitability.net_profit_margin", 0.0, 0.25, weight=0.25),
    )


def _growth_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("growth.revenue_growth_yoy", -0.20, 0.50, weight=0.35),
        ScoreBand("growth.eps_growth_yoy", -0.20, 0.50, weight=0.35),
        ScoreBand("growth.revenue_3y_cagr", -0.10, 0.30, weight=0.30),
    )


def _valuation_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("valuation.pe_ratio", 0.0, 40.0, weight=0.40,
                  invert=True, positive_only=True),
        ScoreBand("valuation.pb_ratio", 0.0, 10.0, weight=0.30,
                  invert=True, positive_only=True),
        ScoreBand("valuation.ev_to_ebitda", 0.0, 30.0, weight=0.30,
                  invert=True, positive_only=True),
    )


def _risk_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("risk.beta", 0.0, 2.0, weight=0.35, invert=True),
        ScoreBand("risk.max_drawdown", 0.0, 0.50, weight=0.35,
                  invert=True, absolute=True),
        ScoreBand("risk.annualized_volatility", 0.0, 0.60, weight=0.30,
                  invert=True),
    )


def _health_bands() -> tuple[ScoreBand, ...]:
    return (
        ScoreBand("liquidity.current_ratio", 1.0, 3.0, weight=0.25),
        ScoreBand("leverage.debt_to_equity", 0.0, 2.0, weight=0.25, invert=True),
        ScoreBand("leverage.interest_coverage", 0.0, 10.0, weight=0.25),
        ScoreBand("other.altman_z_score", 1.81, 2.99, weight=0.25),
    )


@dataclass(frozen=True)
class ScoringConfig:
    """Reference bands and weights for the composite 0-100 scores.

    Attributes:
        profitability: Constituents of the profitability score.
        growth: Constituents of the growth score.
        valuation: Constituents of the valuation score.
        risk: Constituents of the risk score (higher = less risky).
        health: Constituents of the financial health score.
        total_weights: Weights of the five composite scores in the total
            score, keyed by score name.
    """

    profitability: tuple[ScoreBand, ...] = field(default_factory=_profitability_bands)
    growth: tuple[ScoreBand, ...] = field(default_factory=_growth_bands)
    valuation: tuple[ScoreBand, ...] = field(default_factory=_valuation_bands)
    risk: tuple[ScoreBand, ...] = field(default_factory=_risk_bands)
    health: tuple[ScoreBand, ...] = field(default_factory=_health_bands)
    total_weights: tuple[tuple[str, float], ...] = (
        ("profitability", 0.25),
        ("growth", 0.20),
        ("valuation", 0.20),
        ("risk", 0.15),
        ("health", 0.20),
    )

    def __post_init__(self) -> None:
        names = {name for name, _ in self.total_weights}
        expected = {"profitability", "growth", "valuation", "risk", "health"}
        if names != expected:
            raise ValueError(
                f"total_weights must cover exactly {sorted(expected)}, "
                f"got {sorted(names)}."
            )
        if any(weight <= 0 for _, weight in self.total_weights):
            raise ValueError("total_weights must all be positive.")


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""

    assumptions: Assumptions = field(default_factory=Assumptions)
    technical: TechnicalConfig = field(default_factory=TechnicalConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
