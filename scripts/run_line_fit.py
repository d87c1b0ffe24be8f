"""
RANSAC-style Line Fit over a water-level CSV.

Runs the sampling/voting pipeline and prints the final non-overlapping
segments. Optionally exports every stage to CSV for plotting.

Usage:
    python scripts/run_line_fit.py <path_to_levels.csv> [--seed 42] [--export-dir out]
"""

import argparse
import os
import sys

import numpy as np
import pandas as pd
from loguru import logger

from config import settings
from src.ransac.errors import LineFitError
from src.ransac.loader import load_series
from src.ransac.pipeline import LineFitPipeline
from src.ransac.regression import naive_daily_regression


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fit line segments to a time series with random sampling.")
    parser.add_argument("csv_path", type=str, help="CSV file with a time column and a value column.")
    parser.add_argument("--time-column", default=settings.TIME_COLUMN)
    parser.add_argument("--value-column", default=settings.VALUE_COLUMN)
    parser.add_argument("--samples", type=int, default=None, help="Number of random pairs to draw.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible runs.")
    parser.add_argument(
        "--seed-pair",
        type=int,
        nargs=2,
        action="append",
        default=None,
        metavar=("I", "J"),
        help="Curated index pair to always include (repeatable).",
    )
    parser.add_argument("--export-dir", type=str, default=None, help="Write candidates/peaks/selection CSVs here.")
    return parser


def main():
    parser = build_parser()

    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args()

    logger.add(os.path.join(settings.LOG_DIR, "line_fit_{time}.log"), level="DEBUG")

    overrides = {}
    if args.samples is not None:
        overrides["num_random_samples"] = args.samples
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.seed_pair:
        overrides["seed_pairs"] = tuple(tuple(p) for p in args.seed_pair)
    params = settings.line_fit_params(**overrides)

    print(f"[*] Loading '{args.csv_path}'...")
    try:
        series = load_series(args.csv_path, args.time_column, args.value_column)
        result = LineFitPipeline(params).run(series, progress=True)
    except LineFitError as e:
        print(f"[Error] {e}")
        sys.exit(1)

    print(f"\n=== Selected Segments ({len(result.selection)}) ===")
    for seg in sorted(result.selection, key=lambda s: s.start_time):
        start = pd.Timestamp(seg.start_time, unit="ms", tz="UTC").date()
        end = pd.Timestamp(seg.end_time, unit="ms", tz="UTC").date()
        print(
            f"  - {start} -> {end}: {seg.equation()}  "
            f"(votes={seg.vote_count}, density={seg.density:.1f}, power={seg.power:.0f})"
        )

    try:
        naive = naive_daily_regression(series, params.time_scale)
        print(f"\n[*] Naive daily regression: m={naive.slope:.3f}, b={naive.intercept:.1f}, r={naive.r_value:.3f}")
    except LineFitError as e:
        logger.warning(f"Naive regression skipped: {e}")

    if args.export_dir:
        os.makedirs(args.export_dir, exist_ok=True)
        for stage in ("candidates", "peaks", "selection"):
            out_path = os.path.join(args.export_dir, f"{stage}.csv")
            result.to_frame(stage).to_csv(out_path, index=False)
            print(f"[*] Saved {stage} -> {out_path}")

    best = max(result.candidates, key=lambda c: c.power, default=None)
    if best is not None:
        print(f"\n[Done] Best single sample #{best.index}: power={best.power:.0f}, m={best.m:.3f}")
    else:
        print("\n[Done] No valid samples.")

    # NOTE: 밀도 분포 확인용
    densities = np.array([c.density for c in result.candidates if c.valid])
    if densities.size:
        print(f"[*] Voter density p50={np.median(densities):.1f}, p99={np.percentile(densities, 99):.1f}")


if __name__ == "__main__":
    main()
