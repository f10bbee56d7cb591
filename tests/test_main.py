"""Tests for CLI entry point (main.py)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from metrics_engine.data.sample import sample_bundle
from metrics_engine.main import _build_assumptions, _parse_args, main


# --- Test fixtures ---


def _write_bundle(path: Path, **market: object) -> Path:
    raw = sample_bundle(n_days=60)
    raw["market"].update(market)
    path.write_text(json.dumps(raw), encoding="utf-8")
    return path


# --- Argument parsing ---


class TestParseArgs:

    def test_calculate_defaults(self) -> None:
        args = _parse_args(["calculate", "bundle.json"])
        assert args.command == "calculate"
        assert args.bundle == Path("bundle.json")
        assert args.output is None
        assert args.digits == 6
        assert args.verbose is False

    def test_assumption_overrides(self) -> None:
        args = _parse_args([
            "calculate", "bundle.json",
            "--erp", "0.06",
            "--terminal-growth", "0.02",
            "--projection-years", "10",
            "--tax-rate", "0.21",
        ])
        assumptions = _build_assumptions(args)
        assert assumptions.equity_risk_premium == 0.06
        assert assumptions.terminal_growth_rate == 0.02
        assert assumptions.projection_years == 10
        assert assumptions.tax_rate == 0.21
        assert assumptions.risk_free_rate is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args([])


# --- Commands ---


class TestCalculate:

    def test_writes_output_file(self, tmp_path: Path) -> None:
        bundle = _write_bundle(tmp_path / "aapl.json")
        output = tmp_path / "out" / "metrics.json"
        main(["calculate", str(bundle), "--output", str(output), "--digits", "3"])

        result = json.loads(output.read_text(encoding="utf-8"))
        assert result["symbol"] == "AAPL"
        assert result["liquidity"]["current_ratio"] == 1.08
        assert set(result) >= {"dcf", "risk", "technical", "scores", "other"}

    def test_prints_to_stdout(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bundle = _write_bundle(tmp_path / "aapl.json")
        main(["calculate", str(bundle)])
        result = json.loads(capsys.readouterr().out)
        assert result["valuation"]["pe_ratio"] == 25.5

    def test_missing_file_exits(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["calculate", str(tmp_path / "missing.json")])
        assert exc.value.code == 1

    def test_invalid_json_exits(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["calculate", str(path)])

    def test_structurally_invalid_bundle_exits(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"market": {}}), encoding="utf-8")
        with pytest.raises(SystemExit):
            main(["calculate", str(path)])


class TestDemo:

    def test_prints_sample_metrics(self, capsys: pytest.CaptureFixture[str]) -> None:
        main(["demo", "--days", "60"])
        result = json.loads(capsys.readouterr().out)
        assert result["company_name"] == "Apple Inc."
        assert result["other"]["altman_zone"] == "safe"


class TestSensitivity:

    def test_prints_grid(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bundle = _write_bundle(tmp_path / "aapl.json")
        main(["sensitivity", str(bundle)])
        out = capsys.readouterr().out
        assert "terminal_growth" in out
        assert "wacc" in out

    def test_no_grid_without_wacc(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bundle = _write_bundle(tmp_path / "aapl.json", beta=None)
        main(["sensitivity", str(bundle)])
        assert capsys.readouterr().out == ""
