# tests/test_alt_pitch.py

import pytest
import numpy as np

from vocfeat.config import build_configuration
from vocfeat.core.alt_pitch import YinPitchEstimator

SR = 16000

# --- Test Fixtures ---

@pytest.fixture
def estimator() -> YinPitchEstimator:
    return YinPitchEstimator(build_configuration({}))

def _tone(freq: float, n: int) -> np.ndarray:
    return 5000.0 * np.sin(2 * np.pi * freq * np.arange(n) / SR)

# --- Test Cases ---

def test_yin_finds_tone_period(estimator):
    period, f0, voicing = estimator.estimate(_tone(160.0, 1024))
    assert abs(period - 100) <= 2
    assert f0 == pytest.approx(160.0, rel=0.03)
    assert voicing > 0.9

def test_yin_period_within_search_range(estimator):
    noise = np.random.default_rng(2).standard_normal(1024)
    period, _, voicing = estimator.estimate(noise)
    assert 32 <= period <= 256
    assert 0.0 <= voicing <= 1.0

def test_yin_silence(estimator):
    period, f0, voicing = estimator.estimate(np.zeros(1024))
    assert 32 <= period <= 256
    assert np.isfinite(f0)
    assert voicing == 0.0

def test_push_keeps_newest_samples(estimator):
    estimator.push(np.ones(160))
    history = estimator.push(np.full(160, 2.0))
    assert history.shape == (1024,)
    assert np.all(history[-160:] == 2.0)
    assert np.all(history[-320:-160] == 1.0)
    assert np.all(history[:-320] == 0.0)

def test_process_tracks_tone_over_frames(estimator):
    tone = _tone(200.0, 160 * 10)
    for frame in tone.reshape(10, 160):
        period, _, _ = estimator.process(frame)
    assert abs(period - 80) <= 2
