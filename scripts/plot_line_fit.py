"""
Line Fit Visualizer.
1) the series coloured by stage, 2) every sampled line over the data,
3) voter power vs slope with the detected peaks and their neighbourhoods,
4) peak spans vs power with the overlap arrows, 5) the final non-overlapping segments.
"""

import argparse
import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from loguru import logger

from config import settings
from src.ransac.core import DatasetContext, assign_epochs
from src.ransac.errors import LineFitError
from src.ransac.loader import load_series, to_epoch_ms
from src.ransac.peaks import flag_peaks
from src.ransac.pipeline import LineFitPipeline
from src.ransac.regression import naive_daily_regression

EPOCH_COLORS = ["red", "green", "orange", "purple", "brown"]


def _dates(epoch_ms):
    return pd.to_datetime(np.asarray(epoch_ms, dtype=float), unit="ms")


def parse_boundaries(raw_values):
    """--epoch 값 (숫자 또는 날짜 문자열) -> 오름차순 경계값 배열"""
    if not raw_values:
        return np.array([], dtype=float)
    try:
        edges = np.array([float(v) for v in raw_values])
    except ValueError:
        edges = to_epoch_ms(pd.Series(raw_values))
        if np.any(np.isnan(edges)):
            raise ValueError(f"Unparseable epoch boundary in {raw_values}")
    return np.sort(edges)


def plot_epochs(ax, series, ctx, boundaries):
    """단계(epoch)별로 색을 나눠 원본 시계열을 그립니다."""
    labels = assign_epochs(series, boundaries)
    edges = np.concatenate([[ctx.min_time], boundaries, [ctx.max_time]])

    for k in range(len(edges) - 1):
        color = EPOCH_COLORS[k % len(EPOCH_COLORS)]
        mask = labels == k
        if np.any(mask):
            ax.plot(_dates(series.time[mask]), series.value[mask], color=color, linewidth=1)
        ax.axvspan(_dates([edges[k]])[0], _dates([edges[k + 1]])[0], color=color, alpha=0.1)

    ax.set_title(f"Series by stage ({len(boundaries) + 1} stages)")
    ax.set_ylabel("Reservoir level (masl)")


def plot_all_samples(ax, series, ctx, result, max_lines=10000):
    """모든 샘플 직선을 반투명하게 겹쳐 그립니다."""
    x = _dates([ctx.min_time, ctx.max_time])
    for c in result.candidates[:max_lines]:
        ax.plot(x, [c.y_start, c.y_end], color="black", linewidth=0.2, alpha=0.05)
    ax.scatter(_dates(series.time), series.value, s=1)
    ax.set_ylim(ctx.min_value, ctx.max_value)
    ax.set_title("All sampled lines")
    ax.set_ylabel("Reservoir level (masl)")


def plot_power_vs_slope(ax, result, params):
    flagged = flag_peaks(result.candidates, params.lookaround, params.min_density, params.power_floor)
    if not flagged:
        ax.set_title("Voter power vs slope (no candidates above floor)")
        return

    m = np.array([c.m for c in flagged])
    power = np.array([c.power for c in flagged])
    peak = np.array([c.is_peak for c in flagged])

    ax.scatter(m[~peak], power[~peak], s=2, color="skyblue", label="candidate")
    ax.scatter(m[peak], power[peak], s=12, color="red", label="peak")
    # ±lookaround 구간 표시
    ax.hlines(power[peak], m[peak] - params.lookaround, m[peak] + params.lookaround, color="red")
    ax.set_xscale("symlog", linthresh=0.2)
    ax.set_yscale("log")
    ax.set_xlabel("Slope m")
    ax.set_ylabel("Voter power")
    ax.set_title("Voter power vs slope")
    ax.legend()


def plot_encompassed_spans(ax, result):
    """피크별 시간 구간과 power, 그리고 big -> small 중첩 화살표"""
    if not result.peaks:
        ax.set_title("Peak spans (no peaks)")
        return

    for peak in result.peaks:
        ax.hlines(peak.power, _dates([peak.start_time])[0], _dates([peak.end_time])[0], color="black")
        mid = _dates([(peak.start_time + peak.end_time) / 2])[0]
        ax.plot(mid, peak.power, "o", color="black", markersize=3)

    for o in result.overlaps:
        ax.annotate(
            "",
            xy=(_dates([o.x2])[0], o.y2),
            xytext=(_dates([o.x1])[0], o.y1),
            arrowprops=dict(arrowstyle="->", color="red", linewidth=1),
        )

    ax.set_yscale("log")
    ax.set_ylabel("Voter power")
    ax.set_title(f"Peak spans ({len(result.overlaps)} overlaps)")


def plot_final_segments(ax, series, ctx, result):
    ax.scatter(_dates(series.time), series.value, s=1, color="gray")

    try:
        naive = naive_daily_regression(series, ctx.time_scale)
    except LineFitError as e:
        logger.warning(f"Naive regression skipped: {e}")
    else:
        x = np.array([ctx.min_time, ctx.max_time])
        ax.plot(_dates(x), [naive.value_at(t, ctx.time_scale) for t in x], "--", color="blue", label="daily-mean OLS")

    for k, seg in enumerate(result.selection):
        t1, y1, t2, y2 = seg.segment()
        ax.plot(_dates([t1, t2]), [y1, y2], color="red", linewidth=2, marker="o", label="segment" if k == 0 else None)
        ax.annotate(seg.equation(), (_dates([t1])[0], y1), color="darkred", xytext=(7, 7), textcoords="offset points")

    ax.set_title("Final non-overlapping segments")
    ax.set_ylabel("Reservoir level (masl)")
    ax.grid(True)
    if ax.get_legend_handles_labels()[0]:
        ax.legend()


def build_figure(series, ctx, result, params, boundaries):
    fig, axs = plt.subplots(5, 1, figsize=(12, 25))
    plot_epochs(axs[0], series, ctx, boundaries)
    plot_all_samples(axs[1], series, ctx, result)
    plot_power_vs_slope(axs[2], result, params)
    plot_encompassed_spans(axs[3], result)
    plot_final_segments(axs[4], series, ctx, result)
    return fig


def main():
    parser = argparse.ArgumentParser(description="Plot the stages of a line fit run.")
    parser.add_argument("csv_path", type=str)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--epoch",
        action="append",
        default=None,
        help="Stage boundary (date or numeric time), repeatable, e.g. --epoch 2025-02-17",
    )
    parser.add_argument("--out", type=str, default=None, help="Save the figure instead of showing it.")
    args = parser.parse_args()

    overrides = {} if args.seed is None else {"random_seed": args.seed}
    params = settings.line_fit_params(**overrides)

    series = load_series(args.csv_path, settings.TIME_COLUMN, settings.VALUE_COLUMN)
    ctx = DatasetContext.from_series(series, params.time_scale)
    result = LineFitPipeline(params).run(series, progress=True)

    build_figure(series, ctx, result, params, parse_boundaries(args.epoch))
    plt.suptitle(f"Line fit of '{os.path.basename(args.csv_path)}'", fontsize=16)
    plt.tight_layout(rect=[0, 0.03, 1, 0.97])

    if args.out:
        plt.savefig(args.out, dpi=150)
        print(f"[*] Saved figure -> {args.out}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
