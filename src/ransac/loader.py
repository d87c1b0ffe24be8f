"""
Tabular data loading.
Reads a CSV of timestamped readings into a sorted TimeSeries.
"""

import os

import numpy as np
import pandas as pd
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.ransac.core import TimeSeries
from src.ransac.errors import DataLoadError

_EPOCH = pd.Timestamp("1970-01-01", tz="UTC")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(0.1),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)
def _read_csv(csv_path: str) -> pd.DataFrame:
    skipped = []

    def _skip(bad_line):
        skipped.append(bad_line)
        return None

    # callable on_bad_lines needs the python engine
    df = pd.read_csv(csv_path, engine="python", on_bad_lines=_skip)
    if skipped:
        logger.warning(f"Skipped {len(skipped)} malformed line(s) in {csv_path}, first: {skipped[0]}")
    return df


def to_epoch_ms(column: pd.Series) -> np.ndarray:
    """Datetime-like column -> float epoch milliseconds (NaN where unparseable)"""
    ts = pd.to_datetime(column, errors="coerce", utc=True)
    return ((ts - _EPOCH) / pd.Timedelta(milliseconds=1)).to_numpy(dtype=float, na_value=np.nan)


def series_from_frame(df: pd.DataFrame, time_column: str, value_column: str) -> TimeSeries:
    """
    Numeric time columns are used as-is; anything else is parsed as a datetime.
    Rows with an unparseable time or value are dropped.
    """
    missing = [c for c in (time_column, value_column) if c not in df.columns]
    if missing:
        raise DataLoadError(f"Missing column(s) {missing}; available: {list(df.columns)}")

    if pd.api.types.is_numeric_dtype(df[time_column]):
        time = df[time_column].to_numpy(dtype=float)
    else:
        time = to_epoch_ms(df[time_column])

    value = pd.to_numeric(df[value_column], errors="coerce").to_numpy(dtype=float)

    n_bad = int(np.count_nonzero(~(np.isfinite(time) & np.isfinite(value))))
    if n_bad:
        logger.warning(f"Dropping {n_bad} of {len(df)} rows with invalid time/value")

    series = TimeSeries.from_arrays(time, value)
    if len(series) < 2:
        raise DataLoadError(f"Need at least 2 valid rows, got {len(series)}")
    return series


def load_series(csv_path: str, time_column: str = "Time", value_column: str = "water_level_masl") -> TimeSeries:
    if not os.path.exists(csv_path):
        raise DataLoadError(f"The specified file was not found: '{csv_path}'")

    try:
        df = _read_csv(csv_path)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataLoadError(f"Failed to read CSV file: {csv_path} -> {e}") from e

    series = series_from_frame(df, time_column, value_column)
    logger.info(f"Loaded {len(series)} points from {csv_path}")
    return series
