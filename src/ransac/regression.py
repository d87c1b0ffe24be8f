"""
Naive baseline: ordinary least squares over daily means.
The single global line that the RANSAC segments are compared against.
"""

import pandas as pd
from pydantic import BaseModel
from scipy import stats

from src.ransac.core import TimeSeries
from src.ransac.errors import LineFitError


class RegressionResult(BaseModel):
    slope: float  # value per scaled time unit
    intercept: float
    r_value: float
    p_value: float
    stderr: float
    n_bins: int

    def value_at(self, time: float, time_scale: float) -> float:
        return self.slope * (time / time_scale) + self.intercept


def naive_daily_regression(series: TimeSeries, time_scale: float, interval: str = "1D") -> RegressionResult:
    """
    Bin the series (epoch-ms timestamps) into `interval` means and fit y = mx + b.
    x is the bin start divided by time_scale, so the slope is comparable to CandidateLine.m.
    """
    index = pd.to_datetime(series.time, unit="ms", utc=True)
    binned = pd.Series(series.value, index=index).resample(interval).mean().dropna()

    if len(binned) < 2:
        raise LineFitError(f"Need at least 2 non-empty '{interval}' bins, got {len(binned)}")

    epoch_ms = (binned.index - pd.Timestamp("1970-01-01", tz="UTC")) / pd.Timedelta(milliseconds=1)
    x = epoch_ms.to_numpy(dtype=float) / time_scale

    res = stats.linregress(x, binned.to_numpy(dtype=float))

    return RegressionResult(
        slope=res.slope,
        intercept=res.intercept,
        r_value=res.rvalue,
        p_value=res.pvalue,
        stderr=res.stderr,
        n_bins=len(binned),
    )
