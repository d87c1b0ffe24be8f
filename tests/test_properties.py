"""
Property-based tests for fitting and scoring using Hypothesis.

1. A fitted line passes through both sample points
2. Both sample points always vote for their own line
3. power == vote_count * density
4. Scoring is a pure function
"""

import numpy as np
import pytest
from hypothesis import assume, given, settings, strategies as st

from src.ransac.core import DatasetContext, TimeSeries
from src.ransac.fitting import fit_line, score


@st.composite
def series_and_pair(draw):
    times = draw(st.lists(st.integers(-10_000, 10_000), min_size=2, max_size=60, unique=True))
    values = draw(
        st.lists(
            st.floats(-1000, 1000, allow_nan=False, allow_infinity=False),
            min_size=len(times),
            max_size=len(times),
        )
    )
    series = TimeSeries.from_arrays(times, values)
    i = draw(st.integers(0, len(series) - 1))
    j = draw(st.integers(0, len(series) - 1))
    assume(i != j)
    return series, i, j


@given(
    case=series_and_pair(),
    time_scale=st.sampled_from([1.0, 10.0, 1000.0]),
    buffer_distance=st.floats(0.01, 5.0),
)
@settings(max_examples=200, deadline=None)
def test_sample_points_lie_on_line_and_vote(case, time_scale, buffer_distance):
    series, i, j = case
    ctx = DatasetContext.from_series(series, time_scale)
    p1, p2 = series.point(i), series.point(j)

    line = fit_line(p1, p2, ctx, buffer_distance)
    assert line.value_at(p1.time) == pytest.approx(p1.value, abs=1e-6)
    assert line.value_at(p2.time) == pytest.approx(p2.value, abs=1e-6)

    scored = score(line, series)
    mask = line.contains(series.time, series.value)
    assert mask[i] and mask[j]
    assert scored.vote_count >= 2
    assert scored.valid
    assert scored.start_time <= min(p1.time, p2.time)
    assert scored.end_time >= max(p1.time, p2.time)


@given(case=series_and_pair())
@settings(max_examples=100, deadline=None)
def test_power_is_votes_times_density(case):
    series, i, j = case
    ctx = DatasetContext.from_series(series, 1.0)
    scored = score(fit_line(series.point(i), series.point(j), ctx, 1.0), series)

    assert scored.density == pytest.approx(scored.vote_count / scored.time_span)
    assert scored.power == pytest.approx(scored.vote_count * scored.density)


@given(case=series_and_pair())
@settings(max_examples=50, deadline=None)
def test_scoring_is_pure(case):
    series, i, j = case
    ctx = DatasetContext.from_series(series, 1.0)
    line = fit_line(series.point(i), series.point(j), ctx, 1.0)
    before = (series.time.copy(), series.value.copy())

    assert score(line, series, index=3) == score(line, series, index=3)
    np.testing.assert_array_equal(series.time, before[0])
    np.testing.assert_array_equal(series.value, before[1])
