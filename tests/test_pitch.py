# tests/test_pitch.py

import pytest
import numpy as np
from numpy.testing import assert_allclose

from vocfeat.config import build_configuration
from vocfeat.core.pitch import (
    pitch_xcorr, find_best_pitch, pitch_downsample, remove_doubling, PitchEstimator, _interp_offset
)
from vocfeat.core.state import StreamState

MAX_PERIOD = 256
MIN_PERIOD = 32
PITCH_FRAME = 320

# --- Test Fixtures ---

@pytest.fixture
def half_rate_sine():
    """Half-rate history with a 40-sample period (80 samples at full rate)."""
    n = (MAX_PERIOD + PITCH_FRAME) // 2
    return 1000.0 * np.sin(2 * np.pi * np.arange(n) / 40.0)

def _sine_frames(period, n_frames, amplitude=5000.0, frame_size=160):
    t = np.arange(n_frames * frame_size)
    signal = (amplitude * np.sin(2 * np.pi * t / period)).astype(np.float32)
    return signal.reshape(n_frames, frame_size)

# --- Correlation kernels ---

def test_pitch_xcorr_matches_brute_force():
    rng = np.random.default_rng(5)
    x = rng.standard_normal(40)
    y = rng.standard_normal(40 + 16)
    expected = [np.dot(x, y[i:i + 40]) for i in range(16)]
    assert_allclose(pitch_xcorr(x, y, 40, 16), expected, rtol=1e-10)

def test_find_best_pitch_orders_candidates():
    """The two strongest positive correlations are returned, best first."""
    xcorr = np.array([0.0, 1.0, 5.0, 2.0, 3.0, -9.0])
    y = np.ones(10 + 6)
    assert find_best_pitch(xcorr, y, 10, 6) == [2, 4]

def test_find_best_pitch_ignores_negative_correlation():
    xcorr = np.array([-4.0, -3.0, 0.5, -2.0])
    assert find_best_pitch(xcorr, np.ones(8), 4, 4)[0] == 2

def test_interp_offset():
    assert _interp_offset(0.0, 1.0, 0.9) == 1
    assert _interp_offset(0.9, 1.0, 0.0) == -1
    assert _interp_offset(0.5, 1.0, 0.5) == 0

def test_pitch_downsample_halves_length():
    x = np.random.default_rng(0).standard_normal(MAX_PERIOD + PITCH_FRAME)
    x_lp = pitch_downsample(x)
    assert x_lp.shape == ((MAX_PERIOD + PITCH_FRAME) // 2,)
    assert np.all(np.isfinite(x_lp))

def test_pitch_downsample_silence():
    assert np.all(pitch_downsample(np.zeros(MAX_PERIOD + PITCH_FRAME)) == 0)

# --- Doubling removal ---

def test_remove_doubling_resolves_double_period(half_rate_sine):
    """A coarse estimate at twice the true period is brought back to the period."""
    period, gain = remove_doubling(half_rate_sine, MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 160, 80, 0.9)
    assert period == 80
    assert gain > 0.9

def test_remove_doubling_without_history(half_rate_sine):
    """On the first frame (no previous period) the result is still a valid period."""
    period, gain = remove_doubling(half_rate_sine, MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 80, 0, 0.0)
    assert period == 80
    assert 0.9 < gain <= 1.0

def test_remove_doubling_keeps_gain_in_range():
    x_lp = np.random.default_rng(9).standard_normal((MAX_PERIOD + PITCH_FRAME) // 2)
    period, gain = remove_doubling(x_lp, MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 150, 100, 0.5)
    assert MIN_PERIOD <= period <= MAX_PERIOD
    assert 0.0 <= gain <= 1.0

def test_remove_doubling_clamps_anticorrelated_gain():
    """A coarse lag landing on a trough gives a zero gain, never a negative one."""
    # Half-rate period of 80, coarse estimate at half of it
    n = (MAX_PERIOD + PITCH_FRAME) // 2
    x_lp = 1000.0 * np.sin(2 * np.pi * np.arange(n) / 80.0)
    _, gain = remove_doubling(x_lp, MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 80, 160, 0.9)
    assert gain == 0.0

def test_remove_doubling_mixed_tones_gain_in_range():
    t = np.arange(MAX_PERIOD + PITCH_FRAME)
    x = 3000.0 * (np.sin(2 * np.pi * t / 160.0) + np.sin(2 * np.pi * t / 80.0))
    period, gain = remove_doubling(pitch_downsample(x), MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 80, 160, 0.9)
    assert MIN_PERIOD <= period <= MAX_PERIOD
    assert 0.0 <= gain <= 1.0

def test_remove_doubling_keeps_half_period_estimate(half_rate_sine):
    """Only sub-multiples are searched: a coarse P/2 is not raised back to P, even with lastPeriod at P."""
    # True period 80 (full rate), coarse estimate 40, previous period 80
    period, _ = remove_doubling(half_rate_sine, MAX_PERIOD, MIN_PERIOD, PITCH_FRAME, 40, 80, 0.9)
    assert abs(period - 40) <= 1

# --- PitchEstimator ---

def test_estimator_tracks_sine_period():
    """A 100 Hz tone (160 samples) is tracked once the history is full."""
    config = build_configuration({})
    estimator = PitchEstimator(config)
    state = StreamState.from_config(config)
    for frame in _sine_frames(160, 10):
        period, gain = estimator.estimate(frame, state)
    assert abs(period - 160) <= 2
    assert gain > 0.8
    assert state.last_period == period
    assert state.last_gain == gain

def test_estimator_silence():
    config = build_configuration({})
    estimator = PitchEstimator(config)
    state = StreamState.from_config(config)
    for _ in range(5):
        period, gain = estimator.estimate(np.zeros(160, dtype=np.float32), state)
    assert MIN_PERIOD <= period <= MAX_PERIOD
    assert gain == 0.0
