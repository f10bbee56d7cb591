"""Risk metrics from daily price history and an optional benchmark."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import linregress  # type: ignore[import-untyped]

from metrics_engine.config import Assumptions
from metrics_engine.data.models import CompanyData
from metrics_engine.metrics.dcf import risk_free_rate
from metrics_engine.numeric import safe_divide, safe_subtract, sample_std

logger = logging.getLogger(__name__)

VAR_CONFIDENCE = 0.95

# Minimum aligned return pairs for the benchmark regression.
MIN_REGRESSION_POINTS = 3


@dataclass(frozen=True)
class RiskMetrics:
    """Risk metric outputs.

    Volatility, Sharpe, Sortino and the benchmark statistics use daily log
    returns. VaR and CVaR use daily simple returns.

    Attributes:
        beta: Provider beta (pass-through).
        daily_volatility: Sample std of daily log returns.
        annualized_volatility: Daily volatility x sqrt(trading days).
        annualized_return: Mean daily log return x trading days.
        sharpe_ratio: (Annualized return - risk-free rate) / annualized
            volatility. None if volatility is zero.
        sortino_ratio: Excess return / annualized downside deviation.
        max_drawdown: Minimum of (price - running max) / running max, a
            non-positive fraction.
        var_95: Historical 1-day 95% value at risk (5th percentile return).
        cvar_95: Mean of the returns at or below var_95.
        calmar_ratio: Annualized return / |max drawdown|.
        treynor_ratio: Excess return / beta.
        ulcer_index: Root mean square of the drawdown series.
        calculated_beta: Regression slope of stock on benchmark returns.
        alpha: Jensen's alpha, annualized.
        correlation: Pearson correlation with the benchmark.
        r_squared: Regression R-squared.
        tracking_error: Annualized std of active returns.
        information_ratio: Annualized active return / tracking error.
    """

    beta: float | None
    daily_volatility: float | None
    annualized_volatility: float | None
    annualized_return: float | None
    sharpe_ratio: float | None
    sortino_ratio: float | None
    max_drawdown: float | None
    var_95: float | None
    cvar_95: float | None
    calmar_ratio: float | None
    treynor_ratio: float | None
    ulcer_index: float | None

    # Benchmark-relative
    calculated_beta: float | None
    alpha: float | None
    correlation: float | None
    r_squared: float | None
    tracking_error: float | None
    information_ratio: float | None


def _positive_closes(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty or "close" not in frame.columns:
        return frame.iloc[0:0]
    return frame[frame["close"] > 0]


def _log_returns(closes: np.ndarray) -> np.ndarray:
    if closes.size < 2:
        return np.empty(0)
    return np.diff(np.log(closes))


def drawdown_series(closes: np.ndarray) -> np.ndarray:
    """(price - running max) / running max for each point."""
    running_max = np.maximum.accumulate(closes)
    return (closes - running_max) / running_max


def _aligned_returns(
    company: CompanyData, prices: pd.DataFrame
) -> tuple[np.ndarray, np.ndarray] | None:
    """Stock and benchmark log returns on common dates.

    Series with parsed dates are joined on date; otherwise both are
    aligned on their most recent points.
    """
    bench = _positive_closes(company.benchmark_history)
    if bench.empty or prices.empty:
        return None

    dated = (
        pd.api.types.is_datetime64_any_dtype(prices["date"])
        and pd.api.types.is_datetime64_any_dtype(bench["date"])
    )
    if dated:
        merged = prices[["date", "close"]].merge(
            bench[["date", "close"]], on="date", suffixes=("_stock", "_bench")
        )
        stock_closes = merged["close_stock"].to_numpy(dtype=float)
        bench_closes = merged["close_bench"].to_numpy(dtype=float)
    else:
        n = min(len(prices), len(bench))
        stock_closes = prices["close"].to_numpy(dtype=float)[-n:]
        bench_closes = bench["close"].to_numpy(dtype=float)[-n:]

    return _log_returns(stock_closes), _log_returns(bench_closes)


def compute_risk(
    company: CompanyData, assumptions: Assumptions | None = None
) -> RiskMetrics:
    """Compute price-based risk metrics for a single company.

    Args:
        company: Canonical company model.
        assumptions: Supplies the annualisation factor and risk-free rate.

    Returns:
        RiskMetrics. Return-based fields are None with fewer than three
        usable closes; drawdown and ulcer index need only one.
    """
    assumptions = assumptions or Assumptions()
    periods = assumptions.trading_days_per_year
    rf = risk_free_rate(company, assumptions)

    prices = _positive_closes(company.price_history)
    closes = prices["close"].to_numpy(dtype=float) if not prices.empty else np.empty(0)
    returns = _log_returns(closes)

    daily_vol = sample_std(returns.tolist())
    annual_vol = daily_vol * math.sqrt(periods) if daily_vol is not None else None
    annual_return = float(returns.mean()) * periods if returns.size >= 2 else None
    if annual_return is None:
        logger.debug(
            "%s: fewer than 3 usable closes, price risk set to None", company.symbol
        )

    excess_return = safe_subtract(annual_return, rf)
    sharpe = safe_divide(excess_return, annual_vol)

    sortino = None
    if returns.size >= 2:
        downside = np.minimum(returns, 0.0)
        downside_dev = float(np.sqrt(np.mean(downside**2))) * math.sqrt(periods)
        sortino = safe_divide(excess_return, downside_dev)

    max_dd = ulcer = None
    if closes.size:
        drawdowns = drawdown_series(closes)
        max_dd = float(drawdowns.min())
        ulcer = float(np.sqrt(np.mean(drawdowns**2)))

    var_95 = cvar_95 = None
    simple_returns = np.diff(closes) / closes[:-1] if closes.size >= 3 else np.empty(0)
    if simple_returns.size >= 2:
        ordered = np.sort(simple_returns)
        index = int(math.floor(ordered.size * (1.0 - VAR_CONFIDENCE)))
        var_95 = float(ordered[index])
        cvar_95 = float(ordered[ordered <= var_95].mean())

    calmar = None
    if annual_return is not None and max_dd is not None and max_dd < 0:
        calmar = annual_return / abs(max_dd)

    calculated_beta = alpha = correlation = r_squared = None
    tracking_error = information_ratio = None
    aligned = _aligned_returns(company, prices)
    if aligned is not None:
        stock, bench = aligned
        if stock.size >= MIN_REGRESSION_POINTS and np.ptp(bench) > 0 and np.ptp(stock) > 0:
            fit = linregress(bench, stock)
            calculated_beta = float(fit.slope)
            correlation = float(fit.rvalue)
            r_squared = correlation**2

            stock_annual = float(stock.mean()) * periods
            bench_annual = float(bench.mean()) * periods
            if rf is not None:
                alpha = stock_annual - (rf + calculated_beta * (bench_annual - rf))

            active = stock - bench
            active_std = sample_std(active.tolist())
            if active_std is not None:
                tracking_error = active_std * math.sqrt(periods)
                information_ratio = safe_divide(
                    stock_annual - bench_annual, tracking_error
                )
        else:
            logger.debug(
                "%s: benchmark overlap too short or flat, regression set to None",
                company.symbol,
            )

    beta_for_treynor = (
        company.quote.beta if company.quote.beta is not None else calculated_beta
    )

    return RiskMetrics(
        beta=company.quote.beta,
        daily_volatility=daily_vol,
        annualized_volatility=annual_vol,
        annualized_return=annual_return,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        max_drawdown=max_dd,
        var_95=var_95,
        cvar_95=cvar_95,
        calmar_ratio=calmar,
        treynor_ratio=safe_divide(excess_return, beta_for_treynor),
        ulcer_index=ulcer,
        calculated_beta=calculated_beta,
        alpha=alpha,
        correlation=correlation,
        r_squared=r_squared,
        tracking_error=tracking_error,
        information_ratio=information_ratio,
    )
