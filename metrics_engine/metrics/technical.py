"""Technical indicators over the daily price history.

Every indicator is evaluated at the most recent bar. Rolling windows use
pandas rolling/ewm or a single forward pass, so the cost is linear in the
length of the history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from metrics_engine.config import TechnicalConfig
from metrics_engine.data.models import CompanyData
from metrics_engine.numeric import positive_divide, safe_divide, safe_subtract, to_float

logger = logging.getLogger(__name__)

CCI_CONSTANT = 0.015

SMA_PERIODS = (10, 20, 50, 100, 200)


@dataclass(frozen=True)
class TechnicalMetrics:
    """Technical indicator outputs at the latest bar.

    Attributes:
        sma_10, sma_20, sma_50, sma_100, sma_200: Mean of the trailing N
            closes. None with fewer than N closes.
        ema_12, ema_26: Exponential moving averages of the closes.
        macd: Fast EMA - slow EMA.
        macd_signal: EMA of the MACD line.
        macd_histogram: MACD - signal.
        rsi_14: Wilder RSI, 0-100.
        bollinger_upper, bollinger_middle, bollinger_lower: SMA +/- k
            population standard deviations.
        bollinger_width: (Upper - lower) / middle.
        stochastic_k: (Close - lowest low) / (highest high - lowest low)
            x 100.
        stochastic_d: Moving average of %K.
        williams_r: (Highest high - close) / (highest high - lowest low)
            x -100.
        cci: Commodity channel index.
        atr: Wilder average true range.
        atr_percent: ATR / latest close.
        obv: On-balance volume.
        mfi: Money flow index, 0-100.
        vwap: Volume-weighted average typical price over the history.
        relative_volume: Latest volume / average volume.
        price_to_sma_50: Price / 50-day SMA.
        price_to_sma_200: Price / 200-day SMA.
        golden_cross: True when the 50-day SMA is above the 200-day SMA.
        support: Lowest low over the support/resistance window.
        resistance: Highest high over the support/resistance window.
        year_high: Highest high over the trailing year.
        year_low: Lowest low over the trailing year.
        distance_from_year_high: Price / year high - 1.
    """

    sma_10: float | None
    sma_20: float | None
    sma_50: float | None
    sma_100: float | None
    sma_200: float | None
    ema_12: float | None
    ema_26: float | None
    macd: float | None
    macd_signal: float | None
    macd_histogram: float | None
    rsi_14: float | None
    bollinger_upper: float | None
    bollinger_middle: float | None
    bollinger_lower: float | None
    bollinger_width: float | None
    stochastic_k: float | None
    stochastic_d: float | None
    williams_r: float | None
    cci: float | None
    atr: float | None
    atr_percent: float | None
    obv: float | None
    mfi: float | None
    vwap: float | None
    relative_volume: float | None
    price_to_sma_50: float | None
    price_to_sma_200: float | None
    golden_cross: bool | None
    support: float | None
    resistance: float | None
    year_high: float | None
    year_low: float | None
    distance_from_year_high: float | None


def _last(series: pd.Series) -> float | None:
    if series.empty:
        return None
    return to_float(series.iloc[-1])


def sma(closes: pd.Series, period: int) -> float | None:
    """Mean of the trailing ``period`` closes, None if too few."""
    if len(closes) < period:
        return None
    return to_float(closes.iloc[-period:].mean())


def ema_series(values: pd.Series, period: int) -> pd.Series:
    """Recursive EMA with smoothing 2 / (period + 1), seeded on the first value."""
    return values.ewm(span=period, adjust=False).mean()


def _wilder(values: np.ndarray, period: int) -> float | None:
    """Wilder smoothing: seed with the first ``period`` mean, then recurse."""
    if values.size < period:
        return None
    average = float(values[:period].mean())
    for value in values[period:]:
        average = (average * (period - 1) + float(value)) / period
    return average


def rsi(closes: pd.Series, period: int) -> float | None:
    """Wilder RSI of the closes.

    Returns 100 when there were gains but no losses, and None for a flat
    series or fewer than ``period + 1`` closes.
    """
    if len(closes) < period + 1:
        return None
    changes = np.diff(closes.to_numpy(dtype=float))
    avg_gain = _wilder(np.clip(changes, 0.0, None), period)
    avg_loss = _wilder(np.clip(-changes, 0.0, None), period)
    if avg_gain is None or avg_loss is None:
        return None
    if avg_loss == 0:
        return 100.0 if avg_gain > 0 else None
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _macd(
    closes: pd.Series, config: TechnicalConfig
) -> tuple[float | None, float | None, float | None, float | None, float | None]:
    """(fast EMA, slow EMA, MACD, signal, histogram)."""
    n = len(closes)
    fast = _last(ema_series(closes, config.ema_fast)) if n >= config.ema_fast else None
    if n < config.ema_slow:
        return fast, None, None, None, None

    line = ema_series(closes, config.ema_fast) - ema_series(closes, config.ema_slow)
    slow = _last(ema_series(closes, config.ema_slow))
    macd = _last(line)

    # Signal starts once the slow EMA has a full window behind it
    valid = line.iloc[config.ema_slow - 1:]
    if len(valid) < config.macd_signal:
        return fast, slow, macd, None, None
    signal = _last(ema_series(valid, config.macd_signal))
    return fast, slow, macd, signal, safe_subtract(macd, signal)


def _bollinger(
    closes: pd.Series, config: TechnicalConfig
) -> tuple[float | None, float | None, float | None, float | None]:
    period = config.bollinger_period
    if len(closes) < period:
        return None, None, None, None
    window = closes.iloc[-period:].to_numpy(dtype=float)
    middle = float(window.mean())
    deviation = float(window.std(ddof=0))
    upper = middle + config.bollinger_width * deviation
    lower = middle - config.bollinger_width * deviation
    return upper, middle, lower, safe_divide(upper - lower, middle)


def _stochastic(
    frame: pd.DataFrame, config: TechnicalConfig
) -> tuple[float | None, float | None, float | None]:
    """(%K, %D, Williams %R)."""
    k_period = config.stochastic_period
    if len(frame) < k_period:
        return None, None, None

    highest = frame["high"].rolling(k_period).max()
    lowest = frame["low"].rolling(k_period).min()
    span = (highest - lowest).replace(0.0, np.nan)
    k_series = (frame["close"] - lowest) / span * 100.0

    k = _last(k_series)
    d = None
    tail = k_series.dropna()
    if len(tail) >= config.stochastic_smoothing:
        d = to_float(tail.iloc[-config.stochastic_smoothing:].mean())

    w_period = config.williams_period
    williams = None
    if len(frame) >= w_period:
        hh = float(frame["high"].iloc[-w_period:].max())
        ll = float(frame["low"].iloc[-w_period:].min())
        williams = safe_divide(hh - float(frame["close"].iloc[-1]), hh - ll)
        williams = williams * -100.0 if williams is not None else None
    return k, d, williams


def _cci(typical: pd.Series, period: int) -> float | None:
    if len(typical) < period:
        return None
    window = typical.iloc[-period:].to_numpy(dtype=float)
    mean = float(window.mean())
    mean_deviation = float(np.abs(window - mean).mean())
    return safe_divide(float(window[-1]) - mean, CCI_CONSTANT * mean_deviation)


def _atr(frame: pd.DataFrame, period: int) -> float | None:
    if len(frame) < period + 1:
        return None
    high = frame["high"].to_numpy(dtype=float)
    low = frame["low"].to_numpy(dtype=float)
    close = frame["close"].to_numpy(dtype=float)
    prev_close = close[:-1]
    true_range = np.maximum.reduce([
        high[1:] - low[1:],
        np.abs(high[1:] - prev_close),
        np.abs(low[1:] - prev_close),
    ])
    return _wilder(true_range, period)


def _mfi(typical: pd.Series, volume: pd.Series, period: int) -> float | None:
    if len(typical) < period + 1 or volume.isna().any():
        return None
    tp = typical.to_numpy(dtype=float)[-(period + 1):]
    vol = volume.to_numpy(dtype=float)[-(period + 1):]
    flow = tp[1:] * vol[1:]
    direction = np.diff(tp)
    positive = float(flow[direction > 0].sum())
    negative = float(flow[direction < 0].sum())
    if negative == 0:
        return 100.0 if positive > 0 else None
    return 100.0 - 100.0 / (1.0 + positive / negative)


def _obv(closes: pd.Series, volume: pd.Series) -> float | None:
    if len(closes) < 2 or volume.isna().any():
        return None
    direction = np.sign(np.diff(closes.to_numpy(dtype=float)))
    return float(np.sum(direction * volume.to_numpy(dtype=float)[1:]))


def compute_technical(
    company: CompanyData, config: TechnicalConfig | None = None
) -> TechnicalMetrics:
    """Compute technical indicators for a single company.

    Missing highs and lows fall back to the close of the same bar.

    Args:
        company: Canonical company model.
        config: Indicator look-back periods.

    Returns:
        TechnicalMetrics evaluated at the latest bar.
    """
    config = config or TechnicalConfig()
    frame = company.price_history.copy()
    if frame.empty:
        logger.debug("%s: no price history, technical indicators set to None", company.symbol)
    frame["high"] = frame["high"].fillna(frame["close"])
    frame["low"] = frame["low"].fillna(frame["close"])
    closes = frame["close"].astype(float).reset_index(drop=True)
    frame = frame.reset_index(drop=True)

    price = company.quote.price if company.quote.price is not None else _last(closes)

    smas = {period: sma(closes, period) for period in SMA_PERIODS}
    ema_fast, ema_slow, macd, signal, histogram = _macd(closes, config)
    upper, middle, lower, width = _bollinger(closes, config)
    k, d, williams = _stochastic(frame, config)

    typical = (frame["high"] + frame["low"] + frame["close"]) / 3.0
    volume = frame["volume"]
    atr = _atr(frame, config.atr_period)

    vwap = None
    if not frame.empty and not volume.isna().any():
        vwap = safe_divide(float((typical * volume).sum()), float(volume.sum()))

    relative_volume = positive_divide(company.quote.volume, company.quote.average_volume)
    if relative_volume is None and len(volume.dropna()) >= 2:
        recent = volume.dropna()
        relative_volume = positive_divide(
            float(recent.iloc[-1]), float(recent.iloc[-21:-1].mean())
        )

    sr = config.support_resistance_period
    support = to_float(frame["low"].iloc[-sr:].min()) if len(frame) >= sr else None
    resistance = to_float(frame["high"].iloc[-sr:].max()) if len(frame) >= sr else None

    yr = config.year_high_low_period
    year_high = year_low = None
    if not frame.empty:
        year_high = to_float(frame["high"].iloc[-yr:].max())
        year_low = to_float(frame["low"].iloc[-yr:].min())

    golden_cross = None
    if smas[50] is not None and smas[200] is not None:
        golden_cross = smas[50] > smas[200]

    year_high_ratio = positive_divide(price, year_high)

    return TechnicalMetrics(
        sma_10=smas[10],
        sma_20=smas[20],
        sma_50=smas[50],
        sma_100=smas[100],
        sma_200=smas[200],
        ema_12=ema_fast,
        ema_26=ema_slow,
        macd=macd,
        macd_signal=signal,
        macd_histogram=histogram,
        rsi_14=rsi(closes, config.rsi_period),
        bollinger_upper=upper,
        bollinger_middle=middle,
        bollinger_lower=lower,
        bollinger_width=width,
        stochastic_k=k,
        stochastic_d=d,
        williams_r=williams,
        cci=_cci(typical, config.cci_period),
        atr=atr,
        atr_percent=positive_divide(atr, _last(closes)),
        obv=_obv(closes, volume),
        mfi=_mfi(typical, volume, config.mfi_period),
        vwap=vwap,
        relative_volume=relative_volume,
        price_to_sma_50=positive_divide(price, smas[50]),
        price_to_sma_200=positive_divide(price, smas[200]),
        golden_cross=golden_cross,
        support=support,
        resistance=resistance,
        year_high=year_high,
        year_low=year_low,
        distance_from_year_high=safe_subtract(year_high_ratio, 1.0),
    )
