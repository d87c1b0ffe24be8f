import pytest
from pydantic import ValidationError

from config import Settings
from src.ransac.models import DEFAULT_TIME_SCALE_MS


def test_defaults_match_reservoir_analysis():
    params = Settings().line_fit_params()

    assert params.buffer_distance == 1.0
    assert params.num_random_samples == 2996
    assert params.time_scale == DEFAULT_TIME_SCALE_MS == 172_800_000
    assert params.lookaround == 0.2
    assert params.min_density == 30
    assert params.power_floor == 1000


def test_settings_feed_params():
    params = Settings(BUFFER_DISTANCE=2.5, SEED_PAIRS=[(600, 850)], RANDOM_SEED=4).line_fit_params()

    assert params.buffer_distance == 2.5
    assert params.seed_pairs == ((600, 850),)
    assert params.random_seed == 4


def test_overrides_win():
    params = Settings(NUM_RANDOM_SAMPLINGS=10).line_fit_params(num_random_samples=3)
    assert params.num_random_samples == 3


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings(TIME_SCALE_MS=0).line_fit_params()
