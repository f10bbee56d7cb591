"""Tests for Altman Z, Piotroski F-Score and the other derived metrics."""

from __future__ import annotations

from typing import Any

import pytest

from metrics_engine.data.builder import build_company
from metrics_engine.data.models import CompanyData
from metrics_engine.data.sample import sample_bundle
from metrics_engine.metrics.quality import (
    altman_z_score,
    altman_zone,
    compute_other,
    piotroski_f_score,
)

HISTORY_KEYS = (
    "historicalRevenue",
    "historicalNetIncome",
    "historicalEPS",
    "historicalDividends",
    "historicalFCF",
    "historicalFinancials",
)


def _company(**market: Any) -> CompanyData:
    raw = sample_bundle(n_days=0)
    for key, value in market.items():
        if value is None:
            raw["market"].pop(key, None)
        else:
            raw["market"][key] = value
    return build_company(raw)


def _periods(prior: dict[str, float], current: dict[str, float]) -> list[dict[str, float]]:
    base = {
        "revenue": 100.0,
        "netIncome": 10.0,
        "grossProfit": 40.0,
        "operatingCashFlow": 12.0,
        "totalAssets": 200.0,
        "longTermDebt": 50.0,
        "currentAssets": 80.0,
        "currentLiabilities": 60.0,
        "sharesOutstanding": 10.0,
    }
    return [{**base, **prior}, {**base, **current}]


# ---------------------------------------------------------------------------
# Altman Z-Score
# ---------------------------------------------------------------------------


class TestAltman:

    def test_sample_value(self) -> None:
        expected = (
            1.2 * 10 / 352
            + 1.4 * 45 / 352
            + 3.3 * 120 / 352
            + 0.6 * 2500 / 287
            + 1.0 * 394 / 352
        )
        assert altman_z_score(_company()) == pytest.approx(expected)

    def test_zero_total_assets(self) -> None:
        assert altman_z_score(_company(totalAssets=0)) is None

    def test_missing_component(self) -> None:
        assert altman_z_score(_company(retainedEarnings=None)) is None

    @pytest.mark.parametrize(
        "z, zone",
        [
            (3.5, "safe"),
            (2.99, "grey"),
            (2.0, "grey"),
            (1.81, "grey"),
            (1.2, "distress"),
            (None, None),
        ],
    )
    def test_zones(self, z: float | None, zone: str | None) -> None:
        assert altman_zone(z) == zone


# ---------------------------------------------------------------------------
# Piotroski F-Score
# ---------------------------------------------------------------------------


class TestPiotroski:

    def test_sample_value(self) -> None:
        # Every signal passes except the long-term debt ratio
        assert piotroski_f_score(_company()) == 8

    def test_without_statement_history(self) -> None:
        # Only the current period has balance sheet figures
        assert piotroski_f_score(_company(historicalFinancials=None)) == 3

    def test_single_period(self) -> None:
        company = _company(**{key: None for key in HISTORY_KEYS})
        assert piotroski_f_score(company) is None

    def test_perfect_score(self) -> None:
        periods = _periods(
            prior={"netIncome": 8.0, "longTermDebt": 60.0, "currentAssets": 70.0,
                   "grossProfit": 35.0, "revenue": 90.0, "sharesOutstanding": 11.0},
            current={},
        )
        company = _company(
            **{key: None for key in HISTORY_KEYS[:-1]}, historicalFinancials=periods
        )
        assert piotroski_f_score(company) == 9

    def test_deteriorating_company(self) -> None:
        periods = _periods(
            prior={},
            current={"netIncome": -5.0, "operatingCashFlow": -8.0,
                     "longTermDebt": 70.0, "currentAssets": 50.0,
                     "grossProfit": 30.0, "revenue": 90.0,
                     "sharesOutstanding": 12.0},
        )
        company = _company(
            **{key: None for key in HISTORY_KEYS[:-1]}, historicalFinancials=periods
        )
        assert piotroski_f_score(company) == 0

    def test_score_is_integer(self) -> None:
        score = piotroski_f_score(_company())
        assert isinstance(score, int)
        assert 0 <= score <= 9


# ---------------------------------------------------------------------------
# Other derived metrics
# ---------------------------------------------------------------------------


class TestOther:

    def test_sample_values(self) -> None:
        m = compute_other(_company())
        assert m.altman_zone == "safe"
        assert m.effective_tax_rate == pytest.approx(19 / 117)
        assert m.working_capital == pytest.approx(10e9)
        assert m.invested_capital == pytest.approx(127e9)
        assert m.book_value_per_share == pytest.approx(65 / 16.67)
        assert m.sales_per_share == pytest.approx(394 / 16.67)
        assert m.cash_flow_per_share == pytest.approx(104 / 16.67)

    def test_leverage_degrees(self) -> None:
        m = compute_other(_company())
        assert m.degree_of_operating_leverage == pytest.approx(171 / 120)
        assert m.degree_of_financial_leverage == pytest.approx(120 / 117)
        assert m.total_leverage == pytest.approx(171 / 120 * 120 / 117)

    def test_capital_metrics(self) -> None:
        nopat = 120e9 * (1 - 19 / 117)
        m = compute_other(_company())
        assert m.invested_capital_turnover == pytest.approx(394 / 127)
        assert m.excess_roic == pytest.approx(nopat / 127e9 - 0.15)
