"""Bundled sample company used by the demo command and the test suite.

An Apple-like large-cap with five years of annual history, one year of
synthetic daily bars and a benchmark index. The price path is generated
from a seeded random walk and rescaled so the last close equals the
quoted price, so every call with the same arguments returns the same
bundle.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

SAMPLE_SYMBOL = "AAPL"
SAMPLE_PRICE = 150.0
SAMPLE_END_DATE = "2024-06-28"


def _market_record() -> dict[str, Any]:
    return {
        "symbol": SAMPLE_SYMBOL,
        "companyName": "Apple Inc.",
        "sector": "Technology",
        "industry": "Consumer Electronics",
        # Quote
        "price": SAMPLE_PRICE,
        "previousClose": 148.5,
        "open": 149.0,
        "dayLow": 148.0,
        "dayHigh": 151.0,
        "volume": 50e6,
        "averageVolume": 45e6,
        "marketCap": 2.5e12,
        "beta": 1.2,
        "pe": 25.5,
        "eps": 5.88,
        "forwardPE": 23.0,
        "forwardEPS": 6.52,
        "dividendRate": 0.96,
        "dividendYield": 0.0064,
        "sharesOutstanding": 16.67e9,
        "floatShares": 16.6e9,
        # Income statement
        "revenue": 394e9,
        "costOfRevenue": 223e9,
        "grossProfit": 171e9,
        "operatingExpenses": 51e9,
        "operatingIncome": 120e9,
        "ebitda": 130e9,
        "ebit": 120e9,
        "interestExpense": 3e9,
        "pretaxIncome": 117e9,
        "incomeTax": 19e9,
        "netIncome": 98e9,
        # Balance sheet
        "totalAssets": 352e9,
        "currentAssets": 135e9,
        "cash": 62e9,
        "shortTermInvestments": 20e9,
        "receivables": 28e9,
        "inventory": 6e9,
        "totalLiabilities": 287e9,
        "currentLiabilities": 125e9,
        "shortTermDebt": 15e9,
        "accountsPayable": 54e9,
        "longTermDebt": 109e9,
        "totalDebt": 124e9,
        "totalEquity": 65e9,
        "retainedEarnings": 45e9,
        # Cash flow
        "operatingCashFlow": 104e9,
        "investingCashFlow": -8e9,
        "financingCashFlow": -93e9,
        "capitalExpenditures": -11e9,
        "freeCashFlow": 93e9,
        "dividendsPaid": -15e9,
        # Annual history, oldest first
        "historicalRevenue": [265e9, 274e9, 365e9, 394e9, 383e9, 394e9],
        "historicalNetIncome": [55e9, 59e9, 99e9, 94e9, 95e9, 98e9],
        "historicalEPS": [3.28, 3.57, 5.99, 5.67, 5.72, 5.88],
        "historicalDividends": [0.63, 0.73, 0.82, 0.87, 0.92, 0.96],
        "historicalFCF": [65e9, 70e9, 80e9, 92e9, 99e9, 93e9],
        "historicalFinancials": [
            {
                "revenue": 383e9,
                "netIncome": 95e9,
                "grossProfit": 166e9,
                "operatingCashFlow": 110e9,
                "totalAssets": 353e9,
                "longTermDebt": 96e9,
                "currentAssets": 143e9,
                "currentLiabilities": 145e9,
                "sharesOutstanding": 17.0e9,
            },
            {
                "revenue": 394e9,
                "netIncome": 98e9,
                "grossProfit": 171e9,
                "operatingCashFlow": 104e9,
                "totalAssets": 352e9,
                "longTermDebt": 109e9,
                "currentAssets": 135e9,
                "currentLiabilities": 125e9,
                "sharesOutstanding": 16.67e9,
            },
        ],
    }


def _macro_record() -> dict[str, Any]:
    return {
        "gdpGrowthRate": 0.024,
        "realGDP": 22e12,
        "nominalGDP": 26e12,
        "gdpPerCapita": 76000.0,
        "cpi": 310.5,
        "ppi": 280.2,
        "coreInflation": 0.032,
        "federalFundsRate": 0.053,
        "treasury10Y": 0.044,
        "treasury2Y": 0.047,
        "treasury3M": 0.054,
        "usdIndex": 102.5,
        "unemploymentRate": 0.037,
        "wageGrowth": 0.045,
        "laborProductivity": 105.2,
        "consumerConfidence": 102.0,
        "businessConfidence": 98.5,
    }


def _industry_record() -> dict[str, Any]:
    return {
        "industryName": "Consumer Electronics",
        "sectorName": "Technology",
        "industryRevenue": 1.5e12,
        "industryGrowthRate": 0.08,
        "marketSize": 2e12,
        "industryPE": 28.0,
        "industryROIC": 0.15,
        "industryGrossMargin": 0.38,
        "peers": [
            {"symbol": "AAPL", "revenue": 394e9},
            {"symbol": "MSFT", "revenue": 211e9},
            {"symbol": "GOOGL", "revenue": 307e9},
            {"symbol": "AMZN", "revenue": 514e9},
            {"symbol": "META", "revenue": 134e9},
        ],
    }


def _price_series(
    n_days: int, seed: int
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Synthetic daily bars for the stock and its benchmark."""
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range(end=SAMPLE_END_DATE, periods=n_days)

    bench_returns = rng.normal(0.0004, 0.01, n_days)
    stock_returns = 1.2 * bench_returns + rng.normal(0.0, 0.008, n_days)
    bench_returns[0] = stock_returns[0] = 0.0

    closes = np.exp(np.cumsum(stock_returns))
    closes *= SAMPLE_PRICE / closes[-1]
    bench = 4500.0 * np.exp(np.cumsum(bench_returns))

    opens = np.concatenate(([closes[0]], closes[:-1])) * (1.0 + rng.normal(0.0, 0.002, n_days))
    highs = np.maximum(opens, closes) * (1.0 + np.abs(rng.normal(0.0, 0.006, n_days)))
    lows = np.minimum(opens, closes) * (1.0 - np.abs(rng.normal(0.0, 0.006, n_days)))
    volumes = np.round(45e6 * rng.lognormal(0.0, 0.25, n_days))

    stock_rows = [
        {
            "date": d.strftime("%Y-%m-%d"),
            "open": float(o),
            "high": float(h),
            "low": float(lo),
            "close": float(c),
            "volume": float(v),
        }
        for d, o, h, lo, c, v in zip(dates, opens, highs, lows, closes, volumes)
    ]
    bench_rows = [
        {"date": d.strftime("%Y-%m-%d"), "close": float(c)}
        for d, c in zip(dates, bench)
    ]
    return stock_rows, bench_rows


def sample_bundle(n_days: int = 252, seed: int = 7) -> dict[str, Any]:
    """Build the sample raw bundle.

    Args:
        n_days: Number of daily bars in the price and benchmark history.
        seed: Seed for the synthetic price path.

    Returns:
        A fresh raw bundle dict on every call.
    """
    market = _market_record()
    if n_days > 0:
        market["priceHistory"], market["benchmarkHistory"] = _price_series(n_days, seed)
    else:
        market["priceHistory"], market["benchmarkHistory"] = [], []

    return {
        "market": market,
        "macro": _macro_record(),
        "industry": _industry_record(),
        "timestamp": f"{SAMPLE_END_DATE}T20:00:00+00:00",
    }
