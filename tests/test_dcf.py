"""Tests for DCF valuation (metrics_engine.metrics.dcf)."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest

from metrics_engine.config import Assumptions
from metrics_engine.data.builder import build_company
from metrics_engine.data.models import CompanyData
from metrics_engine.data.sample import sample_bundle
from metrics_engine.metrics.dcf import (
    compute_dcf,
    compute_wacc,
    cost_of_equity,
    dcf_sensitivity,
    risk_free_rate,
)

TAX = 19 / 117
RE = 0.044 + 1.2 * 0.05


def _company(**market: Any) -> CompanyData:
    raw = sample_bundle(n_days=0)
    for key, value in market.items():
        if value is None:
            raw["market"].pop(key, None)
        else:
            raw["market"][key] = value
    return build_company(raw)


# ---------------------------------------------------------------------------
# Cost of capital
# ---------------------------------------------------------------------------


class TestCostOfCapital:

    def test_risk_free_rate(self) -> None:
        company = _company()
        assert risk_free_rate(company, Assumptions()) == 0.044
        assert risk_free_rate(company, Assumptions(risk_free_rate=0.03)) == 0.03

    def test_cost_of_equity(self) -> None:
        assert cost_of_equity(_company(), Assumptions()) == pytest.approx(RE)
        assert cost_of_equity(_company(), Assumptions(equity_risk_premium=0.06)) == (
            pytest.approx(0.044 + 1.2 * 0.06)
        )

    def test_cost_of_equity_without_beta(self) -> None:
        assert cost_of_equity(_company(beta=None), Assumptions()) is None

    def test_wacc(self) -> None:
        equity, debt = 2.5e12, 124e9
        kd = 3e9 / debt * (1 - TAX)
        expected = equity / (equity + debt) * RE + debt / (equity + debt) * kd
        m = compute_dcf(_company())
        assert m.wacc == pytest.approx(expected)
        assert m.pre_tax_cost_of_debt == pytest.approx(3 / 124)
        assert m.after_tax_cost_of_debt == pytest.approx(kd)
        assert m.equity_weight + m.debt_weight == pytest.approx(1.0)

    def test_debt_free_wacc_is_cost_of_equity(self) -> None:
        company = _company(totalDebt=0, shortTermDebt=0, longTermDebt=0)
        assert compute_wacc(company, Assumptions()) == pytest.approx(RE)

    def test_wacc_unavailable_without_beta(self) -> None:
        m = compute_dcf(_company(beta=None))
        assert m.wacc is None
        assert m.intrinsic_value is None
        assert m.pv_of_projected_fcf is None


# ---------------------------------------------------------------------------
# Projection growth
# ---------------------------------------------------------------------------


class TestProjectionGrowth:

    def test_historical_cagr(self) -> None:
        m = compute_dcf(_company())
        assert m.projection_growth_rate == pytest.approx((93 / 65) ** (1 / 5) - 1)

    def test_override(self) -> None:
        m = compute_dcf(_company(), Assumptions(fcf_growth_rate=0.35))
        assert m.projection_growth_rate == 0.35

    def test_clamped_high(self) -> None:
        m = compute_dcf(_company(historicalFCF=[10e9, 100e9, 1000e9]))
        assert m.projection_growth_rate == pytest.approx(0.20)

    def test_clamped_low(self) -> None:
        m = compute_dcf(_company(historicalFCF=[100e9, 50e9, 10e9]))
        assert m.projection_growth_rate == pytest.approx(-0.10)

    def test_no_history_uses_terminal_growth(self) -> None:
        m = compute_dcf(_company(historicalFCF=None))
        assert m.projection_growth_rate == pytest.approx(0.025)


# ---------------------------------------------------------------------------
# Intrinsic value
# ---------------------------------------------------------------------------


class TestIntrinsicValue:

    def test_constant_growth_matches_closed_form(self) -> None:
        g = 0.025
        m = compute_dcf(_company(), Assumptions(fcf_growth_rate=g))
        wacc = m.wacc
        years = np.arange(1, 6)
        fcf = 93e9 * (1 + g) ** years
        pv_fcf = float(np.sum(fcf / (1 + wacc) ** years))
        tv = fcf[-1] * (1 + g) / (wacc - g)
        pv_tv = tv / (1 + wacc) ** 5

        assert m.pv_of_projected_fcf == pytest.approx(pv_fcf)
        assert m.terminal_value == pytest.approx(tv)
        assert m.pv_of_terminal_value == pytest.approx(pv_tv)
        assert m.dcf_enterprise_value == pytest.approx(pv_fcf + pv_tv)
        assert m.dcf_equity_value == pytest.approx(pv_fcf + pv_tv - 62e9)
        assert m.intrinsic_value == pytest.approx((pv_fcf + pv_tv - 62e9) / 16.67e9)

    def test_upside_and_margin_of_safety(self) -> None:
        m = compute_dcf(_company())
        iv = m.intrinsic_value
        assert iv is not None and iv < 150
        assert m.upside == pytest.approx((iv - 150) / 150)
        assert m.margin_of_safety == pytest.approx((iv - 150) / iv)

    def test_terminal_growth_at_or_above_wacc(self) -> None:
        m = compute_dcf(_company(), Assumptions(terminal_growth_rate=0.12))
        assert m.terminal_value is None
        assert m.pv_of_terminal_value is None
        assert m.intrinsic_value is None
        assert m.upside is None
        assert m.implied_growth_rate is None
        assert m.pv_of_projected_fcf is not None

    def test_longer_horizon(self) -> None:
        m5 = compute_dcf(_company())
        m10 = compute_dcf(_company(), Assumptions(projection_years=10))
        assert m10.pv_of_projected_fcf > m5.pv_of_projected_fcf

    def test_missing_free_cash_flow(self) -> None:
        m = compute_dcf(_company(freeCashFlow=None, operatingCashFlow=None))
        assert m.intrinsic_value is None
        assert m.wacc is not None

    def test_implied_growth_prices_the_stock(self) -> None:
        implied = compute_dcf(_company()).implied_growth_rate
        assert implied is not None
        m = compute_dcf(_company(), Assumptions(fcf_growth_rate=implied))
        assert m.intrinsic_value == pytest.approx(150.0, rel=1e-6)

    def test_exit_multiple(self) -> None:
        g = 0.025
        m = compute_dcf(_company(), Assumptions(fcf_growth_rate=g))
        terminal_ebitda = 130e9 * (1 + g) ** 5
        assert m.exit_multiple == pytest.approx(m.terminal_value / terminal_ebitda)


# ---------------------------------------------------------------------------
# Sensitivity grid
# ---------------------------------------------------------------------------


class TestSensitivity:

    def test_grid_shape(self) -> None:
        grid = dcf_sensitivity(_company())
        assert grid.shape == (5, 5)
        assert grid.index.name == "wacc"
        assert grid.columns.name == "terminal_growth"

    def test_centre_matches_dcf(self) -> None:
        company = _company()
        grid = dcf_sensitivity(company)
        assert grid.iloc[2, 2] == pytest.approx(compute_dcf(company).intrinsic_value)

    def test_growth_at_or_above_wacc_is_nan(self) -> None:
        company = _company()
        grid = dcf_sensitivity(
            company, wacc_offsets=(-0.08, 0.0), terminal_growth_rates=(0.025,)
        )
        assert np.isnan(grid.iloc[0, 0])
        assert not np.isnan(grid.iloc[1, 0])

    def test_value_falls_as_wacc_rises(self) -> None:
        grid = dcf_sensitivity(_company())
        column = grid[0.025].to_numpy()
        assert np.all(np.diff(column) < 0)

    def test_empty_without_wacc(self) -> None:
        grid = dcf_sensitivity(_company(beta=None))
        assert grid.empty
        assert list(grid.columns) == [0.015, 0.02, 0.025, 0.03, 0.035]
