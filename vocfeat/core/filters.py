# vocfeat/core/filters.py

"""
Stateful per-sample filters used to condition speech before analysis:
a fixed DC-blocking highpass biquad, a randomized spectral-tilt biquad,
first-order preemphasis, a linear gain ramp and uniform dither.

Every filter takes its memory in and hands the updated memory back, so a
signal filtered frame by frame is identical to the same signal filtered in
one call. scipy.signal.lfilter runs the recursions (transposed direct form II,
float64 accumulation); results are stored as float32.
"""

import logging
from typing import Tuple, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.signal import lfilter

from vocfeat.config import VocfeatConfig
from vocfeat.core.state import StreamState

logger = logging.getLogger(__name__)


def biquad(
    x: NDArray,
    mem: NDArray[np.float32],
    b: Sequence[float],
    a: Sequence[float],
) -> Tuple[NDArray[np.float32], NDArray[np.float32]]:
    """
    Two-pole/two-zero filter with unity leading taps.

    Implements, per sample:
        y = x + m0
        m0 = m1 + b[0]*x - a[0]*y
        m1 = b[1]*x - a[1]*y

    Args:
        x: Input block.
        mem: Filter memory (2 values) left by the previous block.
        b: Numerator taps (b1, b2); b0 is fixed to 1.
        a: Denominator taps (a1, a2); a0 is fixed to 1.

    Returns:
        A tuple (y, new_mem).
    """
    num = np.array([1.0, b[0], b[1]], dtype=np.float64)
    den = np.array([1.0, a[0], a[1]], dtype=np.float64)
    y, zf = lfilter(num, den, np.asarray(x, dtype=np.float64), zi=np.asarray(mem, dtype=np.float64))
    return y.astype(np.float32), zf.astype(np.float32)


def preemphasis(x: NDArray, mem: float, coef: float) -> Tuple[NDArray[np.float32], float]:
    """First-order high-frequency boost: y[i] = x[i] - coef*x[i-1], memory carried across blocks."""
    y, zf = lfilter([1.0, -coef], [1.0], np.asarray(x, dtype=np.float64), zi=[mem])
    return y.astype(np.float32), float(zf[0])


def gain_ramp(x: NDArray, old_gain: float, new_gain: float) -> NDArray[np.float32]:
    """Cross-fades linearly from `old_gain` to `new_gain` over the block."""
    f = np.arange(len(x), dtype=np.float64) / len(x)
    g = f * new_gain + (1.0 - f) * old_gain
    return (np.asarray(x, dtype=np.float64) * g).astype(np.float32)


def random_response(rng: np.random.Generator, scale: float = 0.75) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """
    Draws tilt-filter coefficients uniformly in [-scale/2, scale/2).

    Returns:
        A tuple (a, b) of denominator and numerator taps.
    """
    a = (scale * (rng.random() - 0.5), scale * (rng.random() - 0.5))
    b = (scale * (rng.random() - 0.5), scale * (rng.random() - 0.5))
    return a, b


class SignalConditioner:
    """
    Highpass -> tilt -> preemphasis -> gain ramp -> dither, in that order.

    The tilt coefficients are drawn once when the conditioner is created and
    kept for the whole run, emulating one fixed recording chain. Filter
    memories live in the StreamState handed to `process`.
    """

    def __init__(self, config: VocfeatConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        cond = config.conditioning
        self.preemph_coef = config.analysis.preemphasis
        if cond.tilt:
            self.tilt_a, self.tilt_b = random_response(rng, cond.tilt_scale)
        else:
            self.tilt_a, self.tilt_b = (0.0, 0.0), (0.0, 0.0)
        self.speech_gain = cond.speech_gain
        self.old_speech_gain = cond.speech_gain
        logger.debug(f"Tilt filter: a={self.tilt_a}, b={self.tilt_b}")

    def process(self, frame: NDArray, state: StreamState) -> NDArray[np.float32]:
        """Conditions one frame of raw samples, updating the filter memories in `state`."""
        cond = self.config.conditioning
        x, state.hp_mem = biquad(frame, state.hp_mem, cond.highpass_b, cond.highpass_a)
        x, state.tilt_mem = biquad(x, state.tilt_mem, self.tilt_b, self.tilt_a)
        x, state.preemph_mem = preemphasis(x, state.preemph_mem, self.preemph_coef)
        x = gain_ramp(x, self.old_speech_gain, self.speech_gain)
        if cond.dither:
            x += (self.rng.random(len(x)) - 0.5).astype(np.float32)
        self.old_speech_gain = self.speech_gain
        return x
