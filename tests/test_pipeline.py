import numpy as np
import pytest

from src.ransac.core import TimeSeries
from src.ransac.errors import SamplingError
from src.ransac.models import LineFitParams
from src.ransac.pipeline import LineFitPipeline
from src.ransac.sampling import SeedPairSource


@pytest.fixture
def three_stage_series():
    """Rise (slope 0.5), plateau at 50, drain (slope -0.3); one point per time unit."""
    t = np.arange(300, dtype=float)
    v = np.where(t < 100, 0.5 * t, np.where(t < 200, 50.0, 50.0 - 0.3 * (t - 200)))
    return TimeSeries.from_arrays(t, v)


def make_params(**overrides):
    values = dict(
        buffer_distance=0.5,
        num_random_samples=0,
        time_scale=1.0,
        lookaround=0.1,
        min_density=0.5,
        power_floor=50.0,
        seed_pairs=((10, 90), (120, 180), (220, 280)),
    )
    values.update(overrides)
    return LineFitParams(**values)


def test_seeded_stages_are_all_selected(three_stage_series):
    result = LineFitPipeline(make_params(), rng=np.random.default_rng(0)).run(three_stage_series)

    assert len(result.candidates) == 3
    assert result.skipped == 0
    assert [p.index for p in result.peaks] == [0, 1, 2]
    assert result.overlaps == []

    slopes = [s.m for s in result.selection]
    assert slopes == pytest.approx([0.5, 0.0, -0.3])

    rise, plateau, drain = result.selection
    assert rise.start_time == 0 and rise.end_time == 101
    assert plateau.vote_count == 103
    assert drain.end_time == 299


def test_random_run_is_reproducible(three_stage_series):
    params = make_params(num_random_samples=200)
    a = LineFitPipeline(params, rng=np.random.default_rng(7)).run(three_stage_series)
    b = LineFitPipeline(params, rng=np.random.default_rng(7)).run(three_stage_series)

    assert len(a.candidates) == 203
    assert [c.power for c in a.candidates] == [c.power for c in b.candidates]
    assert [s.index for s in a.selection] == [s.index for s in b.selection]


def test_random_seed_param_is_used(three_stage_series):
    params = make_params(num_random_samples=50, random_seed=11)
    a = LineFitPipeline(params).run(three_stage_series)
    b = LineFitPipeline(params).run(three_stage_series)

    assert [(c.p1, c.p2) for c in a.candidates] == [(c.p1, c.p2) for c in b.candidates]


def test_selection_is_subset_of_peaks_and_keeps_strongest(three_stage_series):
    params = make_params(num_random_samples=300)
    result = LineFitPipeline(params, rng=np.random.default_rng(3)).run(three_stage_series)

    peak_ids = {p.index for p in result.peaks}
    assert {s.index for s in result.selection} <= peak_ids

    top_power = max(p.power for p in result.peaks)
    assert any(s.power == top_power for s in result.selection)


def test_degenerate_samples_are_skipped():
    series = TimeSeries.from_arrays([0, 0, 1, 2, 3], [0.0, 0.2, 1.0, 2.0, 3.0])
    params = make_params(seed_pairs=((0, 1), (0, 4)), power_floor=0.0, min_density=0.0)
    result = LineFitPipeline(params, rng=np.random.default_rng(0)).run(series)

    assert result.skipped == 1
    assert [c.index for c in result.candidates] == [1]


def test_added_source_is_sampled(three_stage_series):
    pipeline = LineFitPipeline(make_params(seed_pairs=()), rng=np.random.default_rng(0))
    pipeline.add_source(SeedPairSource([(10, 90)]))
    result = pipeline.run(three_stage_series)

    assert len(result.candidates) == 1
    assert result.candidates[0].m == pytest.approx(0.5)


def test_seed_out_of_range_fails(three_stage_series):
    params = make_params(seed_pairs=((0, 5000),))
    with pytest.raises(SamplingError):
        LineFitPipeline(params).run(three_stage_series)


def test_frames_for_plotting(three_stage_series):
    result = LineFitPipeline(make_params(), rng=np.random.default_rng(0)).run(three_stage_series)

    frame = result.to_frame("selection")
    assert len(frame) == 3
    assert {"m", "b", "start_time", "end_time", "power", "p1_time", "p2_value"} <= set(frame.columns)

    with pytest.raises(ValueError):
        result.to_frame("overlaps")
