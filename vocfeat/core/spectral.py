# vocfeat/core/spectral.py

"""
Windowed spectral analysis of one conditioned frame.
"""

import logging
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from vocfeat.config import VocfeatConfig
from vocfeat.core.state import StreamState
from vocfeat.core.transforms import apply_window, forward_transform, compute_band_energy

logger = logging.getLogger(__name__)


class SpectralAnalyzer:
    """Overlapped Vorbis-windowed FFT followed by triangular band energies."""

    def __init__(self, config: VocfeatConfig):
        self.analysis = config.analysis
        self.lowpass = self.analysis.effective_lowpass
        if self.lowpass < self.analysis.freq_size:
            logger.info(f"Band limiting enabled: bins >= {self.lowpass} are zeroed.")

    def analyze(self, frame: NDArray, state: StreamState) -> Tuple[NDArray[np.complex128], NDArray[np.float64]]:
        """
        Args:
            frame: Conditioned frame of `frame_size` samples.
            state: Stream state; `analysis_mem` is replaced by the frame tail.

        Returns:
            A tuple (X, Ex) of the `freq_size` complex bins and `nb_bands` band energies.
        """
        overlap = self.analysis.overlap_size
        x = np.concatenate([state.analysis_mem, np.asarray(frame, dtype=np.float32)])
        state.analysis_mem = np.array(frame[len(frame) - overlap:], dtype=np.float32)

        X = forward_transform(apply_window(x, overlap))
        X[self.lowpass:] = 0
        Ex = compute_band_energy(X, self.analysis.band_edges, self.analysis.band_unit)
        return X, Ex
