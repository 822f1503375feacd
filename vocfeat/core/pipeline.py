# vocfeat/core/pipeline.py

"""
Streaming frame driver.

FeatureExtractor owns one StreamState and runs, per frame: conditioning,
spectral analysis, pitch estimation and cepstral feature assembly, then
optionally lets the YIN estimator override the period slot. Frames must be
fed strictly in arrival order since every stage carries state forward.
"""

import logging
from typing import Iterable, Iterator, Optional

import numpy as np
from numpy.typing import NDArray

from vocfeat.config import VocfeatConfig
from vocfeat.core.alt_pitch import YinPitchEstimator
from vocfeat.core.features import CepstralFeatureBuilder, normalize_period
from vocfeat.core.filters import SignalConditioner
from vocfeat.core.pitch import PitchEstimator
from vocfeat.core.spectral import SpectralAnalyzer
from vocfeat.core.state import StreamState

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    One independent feature pipeline for one stream.

    Args:
        config: Validated configuration. Defaults to the built-in constants.
        seed: Seed of the generator used for tilt coefficients and dither.
              Two extractors with the same seed and input produce identical output.
    """

    def __init__(self, config: Optional[VocfeatConfig] = None, seed: Optional[int] = None):
        self.config = config if config is not None else VocfeatConfig()
        self.rng = np.random.default_rng(seed)
        self.state = StreamState.from_config(self.config)
        self.conditioner = SignalConditioner(self.config, self.rng)
        self.analyzer = SpectralAnalyzer(self.config)
        self.pitch_estimator = PitchEstimator(self.config)
        self.builder = CepstralFeatureBuilder(self.config)
        self.alt_pitch: Optional[YinPitchEstimator] = None
        if self.config.pitch.alternate:
            self.alt_pitch = YinPitchEstimator(self.config)
        logger.debug(f"FeatureExtractor ready: {self.nb_features} features per {self.frame_size}-sample frame")

    @property
    def frame_size(self) -> int:
        return self.config.analysis.frame_size

    @property
    def nb_features(self) -> int:
        return self.config.analysis.nb_features

    def override_pitch(self, features: NDArray, period: int) -> NDArray:
        """Writes `period` into the normalized-period slot only; the gain slot is left alone."""
        features[2 * self.config.analysis.nb_bands] = normalize_period(period, self.config.pitch.reference_period)
        return features

    def process_frame(self, pcm: NDArray) -> NDArray[np.float32]:
        """
        Turns one frame of raw samples into a feature vector.

        Raises:
            ValueError: If the frame does not hold exactly `frame_size` samples.
        """
        if len(pcm) != self.frame_size:
            raise ValueError(f"Expected {self.frame_size} samples, got {len(pcm)}.")
        state = self.state
        x = self.conditioner.process(np.asarray(pcm, dtype=np.float32), state)
        _, band_energy = self.analyzer.analyze(x, state)
        period, gain = self.pitch_estimator.estimate(x, state)
        features = self.builder.build(band_energy, period, gain, state)

        if self.alt_pitch is not None:
            alt_period, f0, voicing = self.alt_pitch.process(x)
            logger.debug(f"Alternate pitch: period={alt_period} f0={f0:.1f} voicing={voicing:.2f} (primary {period})")
            self.override_pitch(features, alt_period)

        state.frame_count += 1
        return features

    def process_stream(self, frames: Iterable[NDArray]) -> Iterator[NDArray[np.float32]]:
        """Yields one feature vector per full frame, in order; stops at the first short block."""
        for pcm in frames:
            if len(pcm) < self.frame_size:
                break
            yield self.process_frame(pcm)
        logger.info(f"Processed {self.state.frame_count} frames.")


def extract_features(
    samples: NDArray,
    config: Optional[VocfeatConfig] = None,
    seed: Optional[int] = None,
) -> NDArray[np.float32]:
    """
    Runs a fresh pipeline over a whole signal.

    Args:
        samples: 1D int16 (or int16-scaled float) samples. Trailing samples that
                 do not fill a frame are ignored.
        config: Optional configuration.
        seed: Random seed for tilt and dither.

    Returns:
        Array of shape (n_frames, nb_features), float32.
    """
    samples = np.asarray(samples)
    if samples.ndim != 1:
        raise ValueError("Input samples must be a 1D array.")
    extractor = FeatureExtractor(config, seed)
    n_frames = len(samples) // extractor.frame_size
    frames = (samples[i * extractor.frame_size:(i + 1) * extractor.frame_size] for i in range(n_frames))
    out = np.zeros((n_frames, extractor.nb_features), dtype=np.float32)
    for i, features in enumerate(extractor.process_stream(frames)):
        out[i] = features
    return out
