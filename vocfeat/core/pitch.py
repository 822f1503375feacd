# vocfeat/core/pitch.py

"""
Open-loop pitch estimation.

The estimator keeps a FIFO of the last `max_period + frame_size` conditioned
samples. Each frame the history is decimated by 2 and whitened, a two-stage
correlation search (4x then 2x decimation) finds a coarse period, and a
sub-multiple search resolves octave errors using the previous frame's
period and gain as a continuity prior. The returned gain is a normalized
correlation in [0, 1] that doubles as a voicing confidence.

All periods handed in or out of this module are in full-rate samples.
"""

import logging
from typing import List, Tuple

import numpy as np
from numpy.typing import NDArray
from numpy.lib.stride_tricks import sliding_window_view
from scipy.signal import lfilter

from vocfeat.config import VocfeatConfig
from vocfeat.core.lpc import autocorr, levinson
from vocfeat.core.state import StreamState

logger = logging.getLogger(__name__)

# Companion multiple checked alongside T0/k for each sub-multiple k
SECOND_CHECK = (0, 0, 3, 2, 3, 2, 5, 2, 3, 2, 3, 2, 5, 2, 3, 2)


def pitch_downsample(x: NDArray) -> NDArray[np.float64]:
    """
    Decimates by 2 with a [.25, .5, .25] smoother, then whitens the result.

    The whitening filter is an order-4 LPC fit (with lag windowing and 0.9
    bandwidth expansion) augmented by an extra zero at 0.8, which flattens
    the formant structure so the correlation search locks onto the
    excitation rather than the vocal tract.
    """
    x = np.asarray(x, dtype=np.float64)
    even = x[0::2]
    odd = x[1::2][:len(even)]
    odd_prev = np.concatenate([[0.0], odd[:-1]])
    x_lp = 0.25 * (odd_prev + odd) + 0.5 * even

    ac = autocorr(x_lp, 4)
    ac[0] *= 1.0001  # noise floor at -40 dB
    i = np.arange(1, 5)
    ac[1:] -= ac[1:] * (0.008 * i) ** 2
    lpc, _ = levinson(ac, 4)
    lpc *= 0.9 ** i

    c1 = 0.8
    taps = np.array([
        1.0,
        lpc[0] + c1,
        lpc[1] + c1 * lpc[0],
        lpc[2] + c1 * lpc[1],
        lpc[3] + c1 * lpc[2],
        c1 * lpc[3],
    ])
    return lfilter(taps, [1.0], x_lp)


def pitch_xcorr(x: NDArray, y: NDArray, length: int, max_pitch: int) -> NDArray[np.float64]:
    """xcorr[i] = sum_j x[j] y[i+j] for i < max_pitch, over `length` samples."""
    frames = sliding_window_view(np.asarray(y[:length + max_pitch - 1], dtype=np.float64), length)
    return frames[:max_pitch] @ np.asarray(x[:length], dtype=np.float64)


def find_best_pitch(xcorr: NDArray, y: NDArray, length: int, max_pitch: int) -> List[int]:
    """
    Returns the two lags with the largest normalized squared correlation.

    Only positive correlations are considered; the normalization is the energy
    of `y` under the lagged window, floored at 1.
    """
    best_num = [-1.0, -1.0]
    best_den = [0.0, 0.0]
    best_pitch = [0, 1]
    syy = 1.0 + float(np.dot(y[:length], y[:length]))
    for i in range(max_pitch):
        if xcorr[i] > 0:
            num = float(xcorr[i]) ** 2
            if num * best_den[1] > best_num[1] * syy:
                if num * best_den[0] > best_num[0] * syy:
                    best_num[1], best_den[1], best_pitch[1] = best_num[0], best_den[0], best_pitch[0]
                    best_num[0], best_den[0], best_pitch[0] = num, syy, i
                else:
                    best_num[1], best_den[1], best_pitch[1] = num, syy, i
        syy += float(y[i + length]) ** 2 - float(y[i]) ** 2
        syy = max(1.0, syy)
    return best_pitch


def _interp_offset(a: float, b: float, c: float) -> int:
    """Pseudo-interpolation: -1, 0 or +1 towards the stronger neighbour of a peak b."""
    if (c - a) > 0.7 * (b - a):
        return 1
    if (a - c) > 0.7 * (b - c):
        return -1
    return 0


def pitch_search(x_lp: NDArray, y: NDArray, length: int, max_pitch: int) -> int:
    """
    Two-stage correlation search on half-rate signals.

    Args:
        x_lp: Half-rate target segment, `length // 2` samples.
        y: Half-rate history, `(length + max_pitch) // 2` samples.
        length: Correlation span in full-rate samples.
        max_pitch: Number of full-rate lags searched.

    Returns:
        The best lag in full-rate samples.
    """
    x_lp = np.asarray(x_lp, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    lag = length + max_pitch

    # Coarse search with 4x decimation
    x_lp4 = x_lp[0::2][:length >> 2]
    y_lp4 = y[0::2][:lag >> 2]
    xcorr = pitch_xcorr(x_lp4, y_lp4, length >> 2, max_pitch >> 2)
    best_pitch = find_best_pitch(xcorr, y_lp4, length >> 2, max_pitch >> 2)

    # Finer search with 2x decimation around the two coarse candidates
    half_len = length >> 1
    xcorr = np.zeros(max_pitch >> 1, dtype=np.float64)
    for i in range(max_pitch >> 1):
        if abs(i - 2 * best_pitch[0]) > 2 and abs(i - 2 * best_pitch[1]) > 2:
            continue
        xcorr[i] = max(-1.0, float(np.dot(x_lp[:half_len], y[i:i + half_len])))
    best_pitch = find_best_pitch(xcorr, y, half_len, max_pitch >> 1)

    best = best_pitch[0]
    if 0 < best < (max_pitch >> 1) - 1:
        offset = _interp_offset(xcorr[best - 1], xcorr[best], xcorr[best + 1])
    else:
        offset = 0
    return 2 * best - offset


def _pitch_gain(xy: float, xx: float, yy: float) -> float:
    return xy / np.sqrt(1.0 + xx * yy)


def remove_doubling(
    x_lp: NDArray,
    max_period: int,
    min_period: int,
    n: int,
    t0: int,
    prev_period: int,
    prev_gain: float,
) -> Tuple[int, float]:
    """
    Replaces a coarse period by one of its sub-multiples when that correlates comparably well.

    Sub-multiples T0/k (k = 2..15) are tested together with a companion
    multiple of each; a candidate within one or two samples of the previous
    period gets the previous gain as a bonus, which keeps the track
    continuous. Very short candidates must clear a stricter threshold since
    short-term correlation alone can make them look periodic.

    Args:
        x_lp: Half-rate history of `(max_period + n) // 2` samples.
        max_period, min_period, n: Full-rate search geometry.
        t0: Coarse period (full rate).
        prev_period: Previously accepted period (0 if none).
        prev_gain: Previously accepted gain.

    Returns:
        A tuple (period, gain) with the period in full-rate samples.
    """
    x_lp = np.asarray(x_lp, dtype=np.float64)
    min_period0 = min_period
    max_period //= 2
    min_period //= 2
    t0 //= 2
    prev_period //= 2
    n //= 2
    if t0 >= max_period:
        t0 = max_period - 1

    base = max_period
    x = x_lp[base:base + n]

    def lagged(t: int) -> NDArray[np.float64]:
        return x_lp[base - t:base - t + n]

    xx = float(np.dot(x, x))
    xy = float(np.dot(x, lagged(t0)))

    # yy_lookup[i]: energy of the window lagged by i
    i = np.arange(1, max_period + 1)
    delta = x_lp[base - i] ** 2 - x_lp[base + n - i] ** 2
    yy_lookup = np.maximum(0.0, np.concatenate([[xx], xx + np.cumsum(delta)]))

    t = t0
    best_xy = xy
    best_yy = float(yy_lookup[t0])
    g = g0 = _pitch_gain(xy, xx, best_yy)

    for k in range(2, 16):
        t1 = (2 * t0 + k) // (2 * k)
        if t1 < min_period:
            break
        if k == 2:
            t1b = t0 if t1 + t0 > max_period else t0 + t1
        else:
            t1b = (2 * SECOND_CHECK[k] * t0 + k) // (2 * k)
        xy = 0.5 * (float(np.dot(x, lagged(t1))) + float(np.dot(x, lagged(t1b))))
        yy = 0.5 * (yy_lookup[t1] + yy_lookup[t1b])
        g1 = _pitch_gain(xy, xx, yy)

        if abs(t1 - prev_period) <= 1:
            cont = prev_gain
        elif abs(t1 - prev_period) <= 2 and 5 * k * k < t0:
            cont = 0.5 * prev_gain
        else:
            cont = 0.0
        if t1 < 3 * min_period:
            thresh = max(0.4, 0.85 * g0 - cont)
        else:
            thresh = max(0.3, 0.7 * g0 - cont)
        if g1 > thresh:
            best_xy, best_yy, t, g = xy, float(yy), t1, g1

    best_xy = max(0.0, best_xy)
    if best_yy <= best_xy:
        pg = 1.0
    else:
        pg = best_xy / (best_yy + 1.0)

    xcorr = [float(np.dot(x, lagged(t + k - 1))) for k in range(3)]
    offset = _interp_offset(xcorr[0], xcorr[1], xcorr[2])
    pg = max(0.0, min(pg, g))
    period = max(2 * t + offset, min_period0)
    return period, float(pg)


class PitchEstimator:
    """Frame-by-frame pitch tracker carrying its history in a StreamState."""

    def __init__(self, config: VocfeatConfig):
        self.pitch = config.pitch
        self.frame_size = config.analysis.frame_size

    def estimate(self, frame: NDArray, state: StreamState) -> Tuple[int, float]:
        """
        Pushes one conditioned frame into the history and returns (period, gain).

        Updates `state.last_period` and `state.last_gain` for the next frame.
        On the first frame `last_period` is 0, so no continuity bonus applies.
        """
        p = self.pitch
        buf = state.pitch_buf
        buf[:-self.frame_size] = buf[self.frame_size:]
        buf[-self.frame_size:] = frame

        x_lp = pitch_downsample(buf)
        lag = pitch_search(x_lp[p.max_period >> 1:], x_lp, p.frame_size, p.max_period - 3 * p.min_period)
        coarse = p.max_period - lag
        period, gain = remove_doubling(
            x_lp, p.max_period, p.min_period, p.frame_size, coarse, state.last_period, state.last_gain
        )
        logger.debug(f"Pitch: coarse={coarse} period={period} gain={gain:.3f}")
        state.last_period = period
        state.last_gain = gain
        return period, gain
