# vocfeat/core/features.py

"""
Cepstral / LPC feature assembly.

Band energies are turned into floored log energies, decorrelated with a DCT
into cepstra, and an LPC filter is derived back from the cepstra so that the
predictor matches exactly what a synthesizer would rebuild from the
features. Pitch fields are written into their fixed slots.

Feature layout for B bands and LPC order P:
    [0, B)            cepstrum (c0 offset by -c0_offset)
    [B, 2B)           reserved, zero
    2B                normalized pitch period
    2B + 1            pitch gain
    2B + 2            log10 of the LPC prediction error
    [2B + 3, 2B+3+P)  LPC coefficients
"""

import logging
from typing import Dict

import numpy as np
from numpy.typing import NDArray

from vocfeat.config import VocfeatConfig
from vocfeat.core.lpc import lpc_from_cepstrum
from vocfeat.core.state import StreamState
from vocfeat.core.transforms import dct

logger = logging.getLogger(__name__)

# Smallest prediction error accepted before taking its log
MIN_PREDICTION_GAIN = 1e-10


def floor_log_energies(
    band_energy: NDArray,
    floor: float = 1e-2,
    spread: float = 8.0,
    step: float = 2.5,
) -> NDArray[np.float64]:
    """
    log10 band energies clamped against a running envelope, in band order.

    Each band is raised to at least `log_max - spread` and `follow - step`,
    where `log_max` is the running maximum and `follow` a follower that
    decays by `step` per band. Both trackers start at -2.
    """
    ly = np.log10(floor + np.asarray(band_energy, dtype=np.float64))
    log_max = -2.0
    follow = -2.0
    for i in range(len(ly)):
        ly[i] = max(log_max - spread, max(follow - step, ly[i]))
        log_max = max(log_max, ly[i])
        follow = max(follow - step, ly[i])
    return ly


def normalize_period(period: float, reference: float = 200.0) -> float:
    """Maps a period in samples to the pitch feature 0.01 * (period - reference)."""
    return 0.01 * (period - reference)


def feature_layout(config: VocfeatConfig) -> Dict[str, slice]:
    """Named slices of the feature vector for `config`."""
    nb_bands = config.analysis.nb_bands
    base = 2 * nb_bands
    return {
        "cepstrum": slice(0, nb_bands),
        "reserved": slice(nb_bands, base),
        "pitch_period": slice(base, base + 1),
        "pitch_gain": slice(base + 1, base + 2),
        "lpc_gain": slice(base + 2, base + 3),
        "lpc": slice(base + 3, base + 3 + config.analysis.lpc_order),
    }


class CepstralFeatureBuilder:
    """Builds the feature vector from band energies and the pitch estimate."""

    def __init__(self, config: VocfeatConfig):
        self.analysis = config.analysis
        self.reference_period = config.pitch.reference_period

    def build(self, band_energy: NDArray, period: int, gain: float, state: StreamState) -> NDArray[np.float32]:
        """
        Args:
            band_energy: `nb_bands` band energies of the current frame.
            period: Accepted pitch period (samples).
            gain: Pitch gain in [0, 1].
            state: Stream state; `state.lpc` receives the new predictor.

        Returns:
            A new float32 feature vector.
        """
        a = self.analysis
        nb_bands = a.nb_bands
        features = np.zeros(a.nb_features, dtype=np.float64)

        ly = floor_log_energies(band_energy, a.log_floor, a.log_spread, a.log_step)
        features[:nb_bands] = dct(ly)
        features[0] -= a.c0_offset

        lpc, g = lpc_from_cepstrum(
            features[:nb_bands], a.band_edges, a.compensation, a.freq_size, a.lpc_order,
            c0_offset=a.c0_offset, band_unit=a.band_unit,
        )
        if not g > MIN_PREDICTION_GAIN:
            logger.debug(f"Prediction error {g!r} clamped to {MIN_PREDICTION_GAIN}")
            g = MIN_PREDICTION_GAIN
        state.lpc = lpc.astype(np.float32)

        base = 2 * nb_bands
        features[base] = normalize_period(period, self.reference_period)
        features[base + 1] = gain
        features[base + 2] = np.log10(g)
        features[base + 3:] = lpc
        return features.astype(np.float32)
