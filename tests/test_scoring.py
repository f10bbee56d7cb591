"""Tests for composite scoring (metrics_engine.analysis.scoring)."""

from __future__ import annotations

from dataclasses import fields
from types import SimpleNamespace

import pytest

from metrics_engine.analysis.scoring import band_score, composite_score, compute_scores
from metrics_engine.calculator import calculate_all
from metrics_engine.config import ScoreBand, ScoringConfig
from metrics_engine.data.sample import sample_bundle


def _groups(**groups: dict[str, float | None]) -> dict[str, SimpleNamespace]:
    return {name: SimpleNamespace(**values) for name, values in groups.items()}


# ---------------------------------------------------------------------------
# Band scoring
# ---------------------------------------------------------------------------


class TestBandScore:

    def test_linear_mapping(self) -> None:
        band = ScoreBand("profitability.roe", 0.0, 0.20)
        assert band_score(0.10, band) == pytest.approx(50.0)
        assert band_score(0.50, band) == 100.0
        assert band_score(-0.10, band) == 0.0

    def test_inverted(self) -> None:
        band = ScoreBand("valuation.pe_ratio", 0.0, 40.0, invert=True)
        assert band_score(10.0, band) == pytest.approx(75.0)

    def test_positive_only(self) -> None:
        band = ScoreBand("valuation.pe_ratio", 0.0, 40.0, invert=True, positive_only=True)
        assert band_score(-12.0, band) is None
        assert band_score(0.0, band) is None

    def test_absolute(self) -> None:
        band = ScoreBand("risk.max_drawdown", 0.0, 0.50, invert=True, absolute=True)
        assert band_score(-0.25, band) == pytest.approx(50.0)

    def test_missing_value(self) -> None:
        assert band_score(None, ScoreBand("x.y", 0.0, 1.0)) is None

    def test_invalid_band(self) -> None:
        with pytest.raises(ValueError):
            ScoreBand("x.y", 1.0, 1.0)
        with pytest.raises(ValueError):
            ScoreBand("x.y", 0.0, 1.0, weight=0.0)


# ---------------------------------------------------------------------------
# Composites
# ---------------------------------------------------------------------------


class TestComposite:

    BANDS = (
        ScoreBand("a.x", 0.0, 1.0, weight=0.75),
        ScoreBand("a.y", 0.0, 1.0, weight=0.25),
    )

    def test_weighted(self) -> None:
        groups = _groups(a={"x": 1.0, "y": 0.0})
        assert composite_score(groups, self.BANDS) == pytest.approx(75.0)

    def test_missing_constituent_is_renormalised(self) -> None:
        groups = _groups(a={"x": 0.4, "y": None})
        assert composite_score(groups, self.BANDS) == pytest.approx(40.0)

    def test_missing_group(self) -> None:
        assert composite_score({}, self.BANDS) is None

    def test_total_score_renormalises(self) -> None:
        groups = _groups(
            profitability={"roe": 0.20, "roic": 0.20, "net_profit_margin": 0.25},
        )
        scores = compute_scores(groups)
        assert scores.profitability_score == pytest.approx(100.0)
        assert scores.growth_score is None
        assert scores.total_score == pytest.approx(100.0)

    def test_nothing_available(self) -> None:
        scores = compute_scores({})
        assert all(getattr(scores, f.name) is None for f in fields(scores))

    def test_custom_total_weights(self) -> None:
        config = ScoringConfig(
            total_weights=(
                ("profitability", 1.0),
                ("growth", 1.0),
                ("valuation", 1.0),
                ("risk", 1.0),
                ("health", 1.0),
            )
        )
        groups = _groups(
            profitability={"roe": 0.20, "roic": 0.20, "net_profit_margin": 0.25},
            growth={"revenue_growth_yoy": -0.20, "eps_growth_yoy": -0.20,
                    "revenue_3y_cagr": -0.10},
        )
        assert compute_scores(groups, config).total_score == pytest.approx(50.0)

    def test_total_weights_must_cover_every_score(self) -> None:
        with pytest.raises(ValueError):
            ScoringConfig(total_weights=(("profitability", 1.0),))


def test_sample_scores_in_range() -> None:
    scores = calculate_all(sample_bundle()).scores
    for f in fields(scores):
        value = getattr(scores, f.name)
        assert value is not None, f.name
        assert 0.0 <= value <= 100.0, f.name
