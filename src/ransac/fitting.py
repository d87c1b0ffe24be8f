"""
Candidate line fitting and voter scoring.
"""

import math

import numpy as np

from src.ransac.core import DatasetContext, TimeSeries
from src.ransac.errors import DegenerateSampleError
from src.ransac.models import CandidateLine, SamplePoint, ScoredCandidate


def fit_line(
    p1: SamplePoint,
    p2: SamplePoint,
    ctx: DatasetContext,
    buffer_distance: float,
) -> CandidateLine:
    """
    Line through p1 and p2 with a band of constant perpendicular half-width.

    Time is divided by ctx.time_scale first: raw milliseconds against metres
    would make every slope ~0 and the cosine correction meaningless.

    :raises DegenerateSampleError: when both points share the same timestamp.
    """
    dt = (p2.time - p1.time) / ctx.time_scale
    if dt == 0:
        raise DegenerateSampleError(f"Points share timestamp {p1.time}; slope is undefined")

    m = (p2.value - p1.value) / dt
    if not math.isfinite(m):
        raise DegenerateSampleError(f"Non-finite slope between {p1} and {p2}")

    # y = mx + b  ->  b = y - mx
    b = p1.value - m * (p1.time / ctx.time_scale)

    # vertical half-width that keeps the perpendicular distance at buffer_distance
    buffer_y = buffer_distance / math.cos(math.atan(m))

    return CandidateLine(
        m=m,
        b=b,
        buffer_y=buffer_y,
        time_scale=ctx.time_scale,
        p1=p1,
        p2=p2,
        y_start=m * (ctx.min_time / ctx.time_scale) + b,
        y_end=m * (ctx.max_time / ctx.time_scale) + b,
    )


def score(candidate: CandidateLine, series: TimeSeries, index: int = 0) -> ScoredCandidate:
    """
    Count the voters of a candidate and rate how compact their support is.

    density = votes / span favours temporally compact support,
    power = votes^2 / span additionally rewards the size of the support
    (P = V^2 / R).
    """
    in_band = candidate.contains(series.time, series.value)
    vote_count = int(np.count_nonzero(in_band))

    if vote_count == 0:
        return ScoredCandidate(
            **candidate.model_dump(include=set(CandidateLine.model_fields)),
            index=index,
            vote_count=0,
            start_time=candidate.x1,
            end_time=candidate.x1,
            time_span=0.0,
            density=0.0,
            power=0.0,
            valid=False,
        )

    voter_times = series.time[in_band]
    start_time = float(np.min(voter_times))
    end_time = float(np.max(voter_times))
    time_span = (end_time - start_time) / candidate.time_scale

    # a single voter (or several at one instant) spans no time
    valid = vote_count >= 2 and time_span > 0

    return ScoredCandidate(
        **candidate.model_dump(include=set(CandidateLine.model_fields)),
        index=index,
        vote_count=vote_count,
        start_time=start_time,
        end_time=end_time,
        time_span=time_span,
        density=vote_count / time_span if valid else 0.0,
        power=vote_count * vote_count / time_span if valid else 0.0,
        valid=valid,
    )
