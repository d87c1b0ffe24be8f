"""
Line-fit parameter and result models.
Pydantic v2 validation for the tunable constants; immutable results.
"""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

# number of millis in 2 days
DEFAULT_TIME_SCALE_MS = 1000.0 * 60 * 60 * 24 * 2


class LineFitParams(BaseModel):
    """
    Tunable constants for one analysis run.
    """

    model_config = ConfigDict(frozen=True)

    buffer_distance: float = Field(1.0, gt=0, description="Perpendicular band half-width")
    num_random_samples: int = Field(3000 - 4, ge=0, description="Random pairs to draw")
    time_scale: float = Field(
        DEFAULT_TIME_SCALE_MS, gt=0, description="Raw time units per analysis unit"
    )
    lookaround: float = Field(0.2, ge=0, description="Peak neighbourhood radius in slope units")
    min_density: float = Field(30.0, ge=0, description="Minimum voter density of a peak")
    power_floor: float = Field(1000.0, ge=0, description="Candidates at or below this power are noise")
    seed_pairs: Tuple[Tuple[int, int], ...] = Field(
        (), description="Curated index pairs always included in the samples"
    )
    random_seed: Optional[int] = None

    @field_validator("seed_pairs")
    @classmethod
    def check_seed_pairs(cls, v: Tuple[Tuple[int, int], ...]) -> Tuple[Tuple[int, int], ...]:
        for i, j in v:
            if i < 0 or j < 0:
                raise ValueError(f"Seed pair ({i}, {j}) has a negative index")
            if i == j:
                raise ValueError(f"Seed pair ({i}, {j}) must reference two distinct points")
        return v


class SamplePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    time: float
    value: float


class CandidateLine(BaseModel):
    """
    Line through two sampled points, with its tolerance band.

    The slope is expressed per scaled time unit, so ``value_at`` divides raw
    time by ``time_scale`` before applying ``m``.
    """

    model_config = ConfigDict(frozen=True)

    m: float
    b: float
    buffer_y: float  # vertical half-width giving a constant perpendicular band
    time_scale: float
    p1: SamplePoint
    p2: SamplePoint
    y_start: float  # line value at the first timestamp of the dataset
    y_end: float  # line value at the last timestamp of the dataset

    @property
    def x1(self) -> float:
        return min(self.p1.time, self.p2.time)

    @property
    def x2(self) -> float:
        return max(self.p1.time, self.p2.time)

    def value_at(self, time):
        return self.m * (np.asarray(time, dtype=float) / self.time_scale) + self.b

    def contains(self, time, value) -> np.ndarray:
        """Boolean mask of the points lying inside the band"""
        return np.abs(np.asarray(value, dtype=float) - self.value_at(time)) <= self.buffer_y

    def equation(self) -> str:
        sign = "+" if self.b > 0 else ""
        return f"y = {self.m:.2f}x{sign}{self.b:.1f}"


class ScoredCandidate(CandidateLine):
    """
    CandidateLine plus its voter statistics.
    Invalid candidates (fewer than two voters or zero span) carry zero density and power.
    """

    index: int  # position in the sample sequence
    vote_count: int
    start_time: float
    end_time: float
    time_span: float  # scaled units
    density: float
    power: float
    valid: bool = True
    is_peak: bool = False

    def segment(self) -> Tuple[float, float, float, float]:
        """(start_time, y at start, end_time, y at end) of the voter-covered stretch"""
        return (
            self.start_time,
            float(self.value_at(self.start_time)),
            self.end_time,
            float(self.value_at(self.end_time)),
        )

    def record(self) -> Dict[str, Any]:
        """Flat dictionary suitable for a DataFrame row"""
        row = self.model_dump(exclude={"p1", "p2"})
        row.update(
            p1_time=self.p1.time,
            p1_value=self.p1.value,
            p2_time=self.p2.time,
            p2_value=self.p2.value,
        )
        return row


class Overlap(BaseModel):
    """A peak whose span and power dominate another peak."""

    model_config = ConfigDict(frozen=True)

    big: ScoredCandidate
    small: ScoredCandidate
    big_pos: int  # positions in the peak list the overlap was found in
    small_pos: int

    @property
    def x1(self) -> float:
        return (self.big.start_time + self.big.end_time) / 2

    @property
    def x2(self) -> float:
        return (self.small.start_time + self.small.end_time) / 2

    @property
    def y1(self) -> float:
        return self.big.power

    @property
    def y2(self) -> float:
        return self.small.power


class LineFitResult(BaseModel):
    """
    Output of one pipeline run. Every list keeps sample order.
    """

    model_config = ConfigDict(frozen=True)

    candidates: List[ScoredCandidate]
    peaks: List[ScoredCandidate]
    overlaps: List[Overlap]
    selection: List[ScoredCandidate]
    skipped: int = 0  # degenerate samples dropped before scoring

    def to_frame(self, stage: str = "selection") -> pd.DataFrame:
        if stage not in ("candidates", "peaks", "selection"):
            raise ValueError(f"Unknown stage '{stage}'")
        rows = [c.record() for c in getattr(self, stage)]
        return pd.DataFrame(rows)
