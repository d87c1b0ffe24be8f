"""
Core data structures for the line-fit analysis.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from src.ransac.models import SamplePoint


@dataclass(frozen=True)
class TimeSeries:
    """
    시계열 데이터 컨테이너 (시간 오름차순 정렬 보장).
    from_arrays()로 생성하면 정렬과 결측치 제거가 한 번에 처리됩니다.
    """

    time: np.ndarray  # ordinal time (epoch ms for datetime sources)
    value: np.ndarray  # measured value (e.g. masl)

    @classmethod
    def from_arrays(cls, time, value) -> "TimeSeries":
        t = np.asarray(time, dtype=float)
        v = np.asarray(value, dtype=float)
        if t.shape != v.shape or t.ndim != 1:
            raise ValueError(
                f"time and value must be 1-D arrays of equal length, got {t.shape} and {v.shape}"
            )

        finite = np.isfinite(t) & np.isfinite(v)
        t, v = t[finite], v[finite]

        # stable sort keeps the source order for equal timestamps
        order = np.argsort(t, kind="stable")
        return cls(time=t[order], value=v[order])

    def __len__(self) -> int:
        return len(self.time)

    def point(self, index: int) -> SamplePoint:
        return SamplePoint(time=float(self.time[index]), value=float(self.value[index]))


@dataclass(frozen=True)
class DatasetContext:
    """
    데이터셋 전역 상수 (최소/최대 시간, 최소/최대 값).
    분석 시작 시 한 번만 계산하고 모든 분석 함수에 명시적으로 전달합니다.
    """

    min_time: float
    max_time: float
    min_value: float
    max_value: float
    time_scale: float  # raw time units per analysis unit

    @classmethod
    def from_series(cls, series: TimeSeries, time_scale: float) -> "DatasetContext":
        if len(series) == 0:
            raise ValueError("Cannot build a context from an empty series")
        if time_scale <= 0:
            raise ValueError(f"time_scale must be positive, got {time_scale}")

        return cls(
            min_time=float(np.min(series.time)),
            max_time=float(np.max(series.time)),
            min_value=float(np.min(series.value)),
            max_value=float(np.max(series.value)),
            time_scale=float(time_scale),
        )

    @property
    def duration(self) -> float:
        """Total covered time in scaled units"""
        return (self.max_time - self.min_time) / self.time_scale


def assign_epochs(series: TimeSeries, boundaries: Sequence[float]) -> np.ndarray:
    """
    Label every point with the index of the stage it falls in.

    A point before boundaries[0] is stage 0, a point in
    [boundaries[0], boundaries[1]) is stage 1, and so on.
    """
    edges = np.asarray(boundaries, dtype=float)
    if edges.ndim != 1:
        raise ValueError("boundaries must be a flat sequence")
    if np.any(np.diff(edges) <= 0):
        raise ValueError("boundaries must be strictly ascending")

    return np.searchsorted(edges, series.time, side="right")
