"""Tests for metrics_engine.metrics.growth."""

from __future__ import annotations

from typing import Any

import pandas as pd
import pytest

from metrics_engine.data.builder import build_company
from metrics_engine.data.models import CompanyData
from metrics_engine.data.sample import sample_bundle
from metrics_engine.metrics.growth import compute_growth, history, window_cagr, yoy


def _company(**market: Any) -> CompanyData:
    raw = sample_bundle(n_days=0)
    for key, value in market.items():
        if value is None:
            raw["market"].pop(key, None)
        else:
            raw["market"][key] = value
    return build_company(raw)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:

    def test_history_converts_nan(self) -> None:
        frame = pd.DataFrame({"revenue": [1.0, float("nan"), 3.0]})
        assert history(frame, "revenue") == [1.0, None, 3.0]
        assert history(frame, "eps") == []

    def test_yoy(self) -> None:
        assert yoy([100.0, 110.0]) == pytest.approx(0.10)
        assert yoy([110.0]) is None
        assert yoy([None, 110.0]) is None

    def test_window_cagr_needs_enough_points(self) -> None:
        values = [100.0, 110.0, 121.0]
        assert window_cagr(values, 2) == pytest.approx(0.10)
        assert window_cagr(values, 3) is None

    def test_window_cagr_uses_trailing_window(self) -> None:
        values = [1.0, 100.0, 110.0, 121.0]
        assert window_cagr(values, 2) == pytest.approx(0.10)


# ---------------------------------------------------------------------------
# Growth metrics
# ---------------------------------------------------------------------------


class TestYearOverYear:

    def test_sample_values(self) -> None:
        m = compute_growth(_company())
        assert m.revenue_growth_yoy == pytest.approx((394 - 383) / 383)
        assert m.eps_growth_yoy == pytest.approx((5.88 - 5.72) / 5.72)
        assert m.net_income_growth_yoy == pytest.approx((98 - 95) / 95)
        assert m.dividend_growth_yoy == pytest.approx((0.96 - 0.92) / 0.92)
        assert m.fcf_growth_yoy == pytest.approx((93 - 99) / 99)

    def test_single_period(self) -> None:
        m = compute_growth(
            _company(
                historicalRevenue=None,
                historicalNetIncome=None,
                historicalEPS=None,
                historicalDividends=None,
                historicalFCF=None,
                historicalFinancials=None,
            )
        )
        assert m.revenue_growth_yoy is None
        assert m.revenue_3y_cagr is None
        # Payout figures come from the current statements
        assert m.payout_ratio == pytest.approx(15 / 98)


class TestCagr:

    def test_sample_values(self) -> None:
        m = compute_growth(_company())
        assert m.revenue_3y_cagr == pytest.approx((394 / 365) ** (1 / 3) - 1)
        assert m.revenue_5y_cagr == pytest.approx((394 / 265) ** (1 / 5) - 1)
        assert m.eps_3y_cagr == pytest.approx((5.88 / 5.99) ** (1 / 3) - 1)
        assert m.eps_5y_cagr == pytest.approx((5.88 / 3.28) ** (1 / 5) - 1)
        assert m.fcf_3y_cagr == pytest.approx((93 / 80) ** (1 / 3) - 1)

    def test_flat_revenue_has_zero_cagr(self) -> None:
        m = compute_growth(_company(historicalRevenue=[100.0] * 6))
        assert m.revenue_5y_cagr == 0.0
        assert m.revenue_3y_cagr == 0.0
        assert m.revenue_growth_yoy == 0.0

    def test_non_positive_start(self) -> None:
        m = compute_growth(_company(historicalEPS=[-1.0, 0.5, 1.0, 2.0, 3.0, 4.0]))
        assert m.eps_5y_cagr is None
        assert m.eps_3y_cagr == pytest.approx((4.0 / 1.0) ** (1 / 3) - 1)


class TestReinvestment:

    def test_sample_values(self) -> None:
        m = compute_growth(_company())
        assert m.payout_ratio == pytest.approx(15 / 98)
        assert m.retention_ratio == pytest.approx(83 / 98)
        assert m.sustainable_growth_rate == pytest.approx(83 / 65)
        assert m.internal_growth_rate == pytest.approx(83 / 352)

    def test_loss_making_company(self) -> None:
        m = compute_growth(_company(netIncome=-1e9))
        assert m.payout_ratio is None
        assert m.retention_ratio is None
        assert m.sustainable_growth_rate is None
