"""Tests for raw bundle normalisation (metrics_engine.data.builder)."""

from __future__ import annotations

import copy
import datetime
from typing import Any

import pandas as pd
import pytest

from metrics_engine.config import Assumptions
from metrics_engine.data.builder import build_company, validate_raw_data
from metrics_engine.data.sample import sample_bundle


def _raw(**market: Any) -> dict[str, Any]:
    """Sample bundle with market fields replaced (None removes the field)."""
    raw = sample_bundle()
    for key, value in market.items():
        if value is None:
            raw["market"].pop(key, None)
        else:
            raw["market"][key] = value
    return raw


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------


class TestStructure:

    def test_valid_bundle_has_no_problems(self) -> None:
        assert validate_raw_data(sample_bundle()) == []

    def test_problems_are_listed(self) -> None:
        problems = validate_raw_data({"market": [], "timestamp": "2024-01-01"})
        assert len(problems) == 3
        assert any("'macro'" in p for p in problems)

    def test_non_mapping_raises_type_error(self) -> None:
        with pytest.raises(TypeError):
            build_company(["not", "a", "bundle"])  # type: ignore[arg-type]

    def test_missing_section_raises_value_error(self) -> None:
        raw = sample_bundle()
        del raw["macro"]
        with pytest.raises(ValueError, match="macro"):
            build_company(raw)

    def test_section_of_wrong_type_raises_type_error(self) -> None:
        raw = sample_bundle()
        raw["industry"] = "Consumer Electronics"
        with pytest.raises(TypeError, match="industry"):
            build_company(raw)

    def test_bad_timestamp_raises_value_error(self) -> None:
        raw = sample_bundle()
        raw["timestamp"] = "not a date"
        with pytest.raises(ValueError):
            build_company(raw)

    @pytest.mark.parametrize("value", ["now", "today", " Yesterday "])
    def test_relative_timestamp_raises_value_error(self, value: str) -> None:
        raw = sample_bundle()
        raw["timestamp"] = value
        with pytest.raises(ValueError, match="relative timestamp"):
            build_company(raw)

    def test_timestamp_is_reproducible(self) -> None:
        first = build_company(sample_bundle(n_days=0)).timestamp
        second = build_company(sample_bundle(n_days=0)).timestamp
        assert first == second == datetime.datetime(
            2024, 6, 28, 20, 0, tzinfo=datetime.timezone.utc
        )

    def test_alternative_section_names(self) -> None:
        raw = sample_bundle()
        raw["yahoo"] = raw.pop("market")
        raw["fred"] = raw.pop("macro")
        company = build_company(raw)
        assert company.symbol == "AAPL"
        assert company.macro.treasury_10y == pytest.approx(0.044)

    def test_timestamp_accepts_datetime(self) -> None:
        raw = sample_bundle()
        raw["timestamp"] = datetime.date(2024, 6, 28)
        company = build_company(raw)
        assert company.timestamp == datetime.datetime(2024, 6, 28)


# ---------------------------------------------------------------------------
# Field normalisation
# ---------------------------------------------------------------------------


class TestFields:

    def test_identity(self) -> None:
        company = build_company(sample_bundle())
        assert company.company_name == "Apple Inc."
        assert company.sector == "Technology"
        assert company.industry == "Consumer Electronics"

    def test_snake_case_keys_are_accepted(self) -> None:
        raw = _raw(totalAssets=None, total_assets=400e9)
        assert build_company(raw).balance.total_assets == 400e9

    def test_provider_alias(self) -> None:
        raw = _raw(price=None, regularMarketPrice=151.0)
        assert build_company(raw).quote.price == 151.0

    def test_sign_conventions(self) -> None:
        company = build_company(sample_bundle())
        assert company.cash_flow.capital_expenditures == 11e9
        assert company.cash_flow.dividends_paid == 15e9

    def test_non_numeric_values_become_none(self) -> None:
        raw = _raw(beta="n/a", inventory=float("nan"))
        company = build_company(raw)
        assert company.quote.beta is None
        assert company.balance.inventory is None

    def test_derived_statement_fields(self) -> None:
        raw = _raw(marketCap=None, grossProfit=None, totalDebt=None, freeCashFlow=None)
        company = build_company(raw)
        assert company.quote.market_cap == pytest.approx(150.0 * 16.67e9)
        assert company.income.gross_profit == pytest.approx(171e9)
        assert company.balance.total_debt == pytest.approx(124e9)
        assert company.cash_flow.free_cash_flow == pytest.approx(93e9)

    def test_peers(self) -> None:
        peers = build_company(sample_bundle()).industry_profile.peers
        assert [p.symbol for p in peers] == ["AAPL", "MSFT", "GOOGL", "AMZN", "META"]


# ---------------------------------------------------------------------------
# Intermediates
# ---------------------------------------------------------------------------


class TestIntermediates:

    def test_values(self) -> None:
        company = build_company(sample_bundle())
        assert company.effective_tax_rate == pytest.approx(19 / 117)
        assert company.working_capital == pytest.approx(10e9)
        assert company.net_debt == pytest.approx(62e9)
        assert company.invested_capital == pytest.approx(127e9)
        assert company.enterprise_value == pytest.approx(2.562e12)
        assert company.average_total_assets == pytest.approx(352.5e9)

    def test_tax_rate_override(self) -> None:
        company = build_company(sample_bundle(), Assumptions(tax_rate=0.21))
        assert company.effective_tax_rate == 0.21

    def test_negative_pretax_income_has_no_tax_rate(self) -> None:
        company = build_company(_raw(pretaxIncome=-5e9))
        assert company.effective_tax_rate is None

    def test_average_assets_without_history(self) -> None:
        company = build_company(_raw(historicalFinancials=None))
        assert company.average_total_assets == pytest.approx(352e9)


# ---------------------------------------------------------------------------
# History frames
# ---------------------------------------------------------------------------


class TestHistory:

    def test_financials_aligned_on_latest_period(self) -> None:
        financials = build_company(sample_bundle()).financials
        assert len(financials) == 6
        assert financials["revenue"].tolist()[0] == 265e9
        # Statement-only columns are padded at the oldest end
        assert pd.isna(financials["gross_profit"].iloc[0])
        assert financials["gross_profit"].iloc[-2] == 166e9

    def test_arrays_take_precedence_over_statements(self) -> None:
        raw = sample_bundle()
        raw["market"]["historicalFinancials"][0]["revenue"] = 1.0
        financials = build_company(raw).financials
        assert financials["revenue"].iloc[-2] == 383e9

    def test_latest_row_filled_from_statements(self) -> None:
        raw = _raw(historicalRevenue=None, historicalFinancials=None)
        financials = build_company(raw).financials
        assert financials["revenue"].iloc[-1] == 394e9
        assert financials["total_assets"].iloc[-1] == 352e9

    def test_empty_market_gives_single_row(self) -> None:
        raw = {"market": {}, "macro": {}, "industry": {}, "timestamp": "2024-01-01"}
        company = build_company(raw)
        assert len(company.financials) == 1
        assert company.price_history.empty
        assert company.benchmark_history.empty

    def test_price_history_is_sorted_and_cleaned(self) -> None:
        raw = sample_bundle(n_days=5)
        rows = raw["market"]["priceHistory"]
        rows.reverse()
        rows.append({"date": "2024-07-01", "close": None})
        history = build_company(raw).price_history
        assert len(history) == 5
        assert history["date"].is_monotonic_increasing
        assert list(history.columns) == ["date", "open", "high", "low", "close", "volume"]

    def test_price_history_from_dataframe(self) -> None:
        raw = sample_bundle(n_days=10)
        raw["market"]["priceHistory"] = pd.DataFrame(raw["market"]["priceHistory"])
        history = build_company(raw).price_history
        assert len(history) == 10
        assert history["close"].iloc[-1] == pytest.approx(150.0)

    def test_dates_normalised_to_naive_utc(self) -> None:
        raw = sample_bundle(n_days=5)
        for row in raw["market"]["priceHistory"]:
            row["date"] += "T00:00:00Z"
        company = build_company(raw)
        assert company.price_history["date"].dt.tz is None
        assert company.benchmark_history["date"].dt.tz is None
        assert (
            company.price_history["date"].tolist()
            == company.benchmark_history["date"].tolist()
        )

    def test_offset_dates_converted_to_utc(self) -> None:
        raw = sample_bundle(n_days=1)
        raw["market"]["priceHistory"][0]["date"] = "2024-06-28T20:00:00-04:00"
        history = build_company(raw).price_history
        assert history["date"].iloc[0] == pd.Timestamp("2024-06-29 00:00:00")

    def test_duplicate_dates_keep_last_row(self) -> None:
        raw = sample_bundle(n_days=5)
        rows = raw["market"]["priceHistory"]
        rows.append(dict(rows[2], close=1.0))
        history = build_company(raw).price_history
        assert len(history) == 5
        assert history["date"].is_unique
        assert history["close"].iloc[2] == 1.0


def test_build_does_not_mutate_input() -> None:
    raw = sample_bundle()
    snapshot = copy.deepcopy(raw)
    build_company(raw)
    assert raw == snapshot
