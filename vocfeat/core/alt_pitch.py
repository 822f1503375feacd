# vocfeat/core/alt_pitch.py

"""
Alternate pitch estimator based on YIN (librosa.yin).

It keeps its own rolling history of conditioned samples, independent of the
primary estimator's buffer. Only its period is used by the pipeline: it
overrides the period slot of the feature vector, never the gain.
"""

import logging
from typing import Tuple

import librosa
import numpy as np
from numpy.typing import NDArray

from vocfeat.config import VocfeatConfig

logger = logging.getLogger(__name__)


class YinPitchEstimator:
    """
    Stateful YIN tracker over a fixed-length sample history.

    `estimate` returns (period_index, f0, voicing) where the period is in
    samples at the stream's sample rate and voicing is the normalized
    autocorrelation of the newest history at that period.
    """

    def __init__(self, config: VocfeatConfig):
        self.sample_rate = config.analysis.sample_rate
        self.frame_size = config.analysis.frame_size
        self.min_period = config.pitch.min_period
        self.max_period = config.pitch.max_period
        self.history = np.zeros(config.pitch.alternate_history, dtype=np.float64)
        self.fmin = self.sample_rate / self.max_period
        self.fmax = self.sample_rate / self.min_period

    def push(self, frame: NDArray) -> NDArray[np.float64]:
        """Shifts one frame into the history and returns it."""
        n = len(frame)
        self.history[:-n] = self.history[n:]
        self.history[-n:] = frame
        return self.history

    def estimate(self, history: NDArray) -> Tuple[int, float, float]:
        """Runs YIN over the whole history as a single analysis frame."""
        history = np.asarray(history, dtype=np.float64)
        frame_length = len(history)
        f0 = librosa.yin(
            history,
            fmin=self.fmin,
            fmax=self.fmax,
            sr=self.sample_rate,
            frame_length=frame_length,
            hop_length=frame_length,
            center=False,
        )[-1]
        if not np.isfinite(f0) or f0 <= 0:
            f0 = self.fmin
        period = int(np.clip(round(self.sample_rate / f0), self.min_period, self.max_period))
        return period, float(f0), self._voicing(history, period)

    @staticmethod
    def _voicing(history: NDArray, period: int) -> float:
        x = history[period:]
        y = history[:-period]
        den = np.sqrt(np.dot(x, x) * np.dot(y, y))
        if den <= 0:
            return 0.0
        return float(np.clip(np.dot(x, y) / den, 0.0, 1.0))

    def process(self, frame: NDArray) -> Tuple[int, float, float]:
        """push() followed by estimate()."""
        return self.estimate(self.push(frame))
