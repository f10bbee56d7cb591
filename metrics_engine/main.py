"""CLI entry point for the financial metrics engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

from metrics_engine.calculator import calculate_all
from metrics_engine.config import Assumptions, EngineConfig
from metrics_engine.data.builder import build_company
from metrics_engine.data.contracts import CalculatedMetrics
from metrics_engine.data.sample import sample_bundle
from metrics_engine.metrics.dcf import dcf_sensitivity

logger = logging.getLogger(__name__)


def _add_assumption_args(parser: argparse.ArgumentParser) -> None:
    """Attach the valuation assumption overrides to a subcommand."""
    parser.add_argument(
        "--erp",
        type=float,
        default=None,
        help="Equity risk premium (default: 0.05)",
    )
    parser.add_argument(
        "--terminal-growth",
        type=float,
        default=None,
        help="Terminal growth rate (default: 0.025)",
    )
    parser.add_argument(
        "--projection-years",
        type=int,
        default=None,
        help="DCF projection horizon in years (default: 5)",
    )
    parser.add_argument(
        "--risk-free-rate",
        type=float,
        default=None,
        help="Risk-free rate override (default: macro 10-year yield)",
    )
    parser.add_argument(
        "--tax-rate",
        type=float,
        default=None,
        help="Tax rate override (default: effective tax rate)",
    )


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="metrics-engine",
        description="Financial metrics calculation engine",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # calculate command
    calc_parser = subparsers.add_parser(
        "calculate", help="Calculate all metrics for a raw JSON bundle"
    )
    calc_parser.add_argument("bundle", type=Path, help="Raw bundle JSON file")
    calc_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write metrics JSON to this file (default: stdout)",
    )
    calc_parser.add_argument(
        "--digits",
        type=int,
        default=6,
        help="Decimal places for float metrics (default: 6)",
    )
    _add_assumption_args(calc_parser)
    _add_common_args(calc_parser)

    # demo command
    demo_parser = subparsers.add_parser(
        "demo", help="Calculate metrics for the bundled sample company"
    )
    demo_parser.add_argument(
        "--days",
        type=int,
        default=252,
        help="Days of synthetic price history (default: 252)",
    )
    demo_parser.add_argument(
        "--digits",
        type=int,
        default=4,
        help="Decimal places for float metrics (default: 4)",
    )
    _add_common_args(demo_parser)

    # sensitivity command
    sens_parser = subparsers.add_parser(
        "sensitivity", help="Print a WACC x terminal growth intrinsic value grid"
    )
    sens_parser.add_argument("bundle", type=Path, help="Raw bundle JSON file")
    _add_assumption_args(sens_parser)
    _add_common_args(sens_parser)

    return parser.parse_args(argv)


def _build_assumptions(args: argparse.Namespace) -> Assumptions:
    """Assumptions with any CLI overrides applied."""
    overrides: dict[str, Any] = {}
    if args.erp is not None:
        overrides["equity_risk_premium"] = args.erp
    if args.terminal_growth is not None:
        overrides["terminal_growth_rate"] = args.terminal_growth
    if args.projection_years is not None:
        overrides["projection_years"] = args.projection_years
    if args.risk_free_rate is not None:
        overrides["risk_free_rate"] = args.risk_free_rate
    if args.tax_rate is not None:
        overrides["tax_rate"] = args.tax_rate
    return Assumptions(**overrides)


def _load_bundle(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _write_metrics(
    metrics: CalculatedMetrics, digits: int | None, output: Path | None
) -> None:
    text = json.dumps(metrics.to_dict(digits), indent=2)
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    logger.info("Metrics written to %s", output)


def run_calculate(args: argparse.Namespace) -> None:
    """Execute the calculate command.

    Args:
        args: Parsed CLI arguments.
    """
    config = EngineConfig(assumptions=_build_assumptions(args))
    raw = _load_bundle(args.bundle)
    metrics = calculate_all(raw, config)

    populated, total = metrics.metric_counts()
    logger.info("%s: %d/%d metrics populated", metrics.symbol, populated, total)
    _write_metrics(metrics, args.digits, args.output)


def run_demo(args: argparse.Namespace) -> None:
    """Execute the demo command.

    Args:
        args: Parsed CLI arguments.
    """
    metrics = calculate_all(sample_bundle(n_days=args.days))
    populated, total = metrics.metric_counts()
    logger.info("%s: %d/%d metrics populated", metrics.symbol, populated, total)
    _write_metrics(metrics, args.digits, None)


def run_sensitivity(args: argparse.Namespace) -> None:
    """Execute the sensitivity command.

    Args:
        args: Parsed CLI arguments.
    """
    assumptions = _build_assumptions(args)
    company = build_company(_load_bundle(args.bundle), assumptions)
    grid = dcf_sensitivity(company, assumptions)
    if grid.empty:
        logger.warning("%s: WACC unavailable, no sensitivity grid", company.symbol)
        return
    with pd.option_context("display.float_format", "{:,.2f}".format):
        print(grid.to_string())


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    args = _parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        if args.command == "calculate":
            run_calculate(args)
        elif args.command == "demo":
            run_demo(args)
        elif args.command == "sensitivity":
            run_sensitivity(args)
        else:
            logger.error("Unknown command: %s", args.command)
            sys.exit(1)
    except (OSError, json.JSONDecodeError, TypeError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
