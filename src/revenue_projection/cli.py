from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .compare import CompareConfig, ComparisonResult
from .data import CsvSeriesRepository
from .hybrid import SCENARIOS, HybridConfig
from .pipeline import check_data, compare_methods, generate_prediction
from .smoothing import ALL_METHODS


def summarize_comparison(result: ComparisonResult) -> str:
    rows = []
    for method, outcome in result.outcomes.items():
        metrics = outcome.metrics
        rows.append(
            {
                "method": method,
                "forecast": outcome.forecast,
                "mape": metrics.mape,
                "mae": metrics.mae,
                "rmse": metrics.rmse,
                "akurasi": metrics.akurasi,
                "error": "" if outcome.ok else str(outcome.error),
            }
        )
    table = pd.DataFrame.from_records(rows).set_index("method")

    lines = ["Method comparison:"]
    lines.append(table.to_string(float_format=lambda x: f"{x:,.2f}", na_rep="-"))
    if result.recommendation is not None:
        lines.append(f"\nRecommended method: {result.recommendation}")
    else:
        lines.append("\nNo recommendation: the target period has no actual value to compare against.")
    return "\n".join(lines)


def _write_output(payload: Dict[str, Any], output: Optional[Path]) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output is None:
        print(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    print(f"Saved result to {output}")


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monthly revenue forecasting with exponential smoothing and hybrid scenarios.",
    )
    parser.add_argument(
        "--data",
        type=Path,
        required=True,
        help="Path to the aggregated revenue CSV (columns: tahun, bulan, total_pendapatan[, jenis_kendaraan_id]).",
    )
    parser.add_argument(
        "--category",
        type=int,
        help="Vehicle-type category id (jenis_kendaraan_id) to forecast; all categories when omitted.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Report how much history is available per method.")

    generate = subparsers.add_parser("generate", help="Forecast one period with a single method.")
    generate.add_argument("--method", required=True, type=str.upper, choices=list(ALL_METHODS))
    generate.add_argument("--year", type=int, required=True)
    generate.add_argument("--month", type=int, required=True)
    generate.add_argument("--alpha", type=float)
    generate.add_argument("--beta", type=float)
    generate.add_argument("--gamma", type=float)
    generate.add_argument("--seasonal-periods", type=int, default=12)
    generate.add_argument(
        "--scenario",
        default="base",
        choices=list(SCENARIOS),
        help="Hybrid scenario reported as the prediction (default: base).",
    )
    generate.add_argument(
        "--training-periods",
        type=int,
        help="Fit the hybrid base model on the most recent N months only (default: all history).",
    )
    generate.add_argument("--output", type=Path, help="Optional path to write the result as JSON.")

    compare = subparsers.add_parser("compare", help="Compare SES, DES, TES and Hybrid for one period.")
    compare.add_argument("--year", type=int, required=True)
    compare.add_argument("--month", type=int, required=True)
    compare.add_argument("--seasonal-periods", type=int, default=12)
    compare.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Run the methods on a thread pool of this size (default: 1, sequential).",
    )
    compare.add_argument("--output", type=Path, help="Optional path to write the comparison as JSON.")
    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    repository = CsvSeriesRepository(args.data)

    if args.command == "check":
        report = check_data(repository, category=args.category)
        print(json.dumps(report.as_dict(), indent=2))
        return 0

    if args.command == "generate":
        config = CompareConfig(
            seasonal_periods=args.seasonal_periods,
            hybrid=HybridConfig(selected_scenario=args.scenario, training_periods=args.training_periods),
        )
        outcome = generate_prediction(
            repository,
            args.method,
            args.year,
            args.month,
            category=args.category,
            alpha=args.alpha,
            beta=args.beta,
            gamma=args.gamma,
            seasonal_periods=args.seasonal_periods,
            config=config,
        )
        payload = outcome.as_dict()
        _write_output(payload, args.output)
        return 1 if "error" in payload else 0

    config = CompareConfig(seasonal_periods=args.seasonal_periods, max_workers=args.workers)
    result = compare_methods(repository, args.year, args.month, category=args.category, config=config)
    if isinstance(result, ComparisonResult):
        print(summarize_comparison(result))
        if args.output:
            _write_output(result.as_dict(), args.output)
        return 0
    _write_output(result.as_dict(), args.output)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
