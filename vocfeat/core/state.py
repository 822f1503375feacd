# vocfeat/core/state.py

"""
Per-stream analysis state.

A StreamState is created once per input stream, mutated by every stage of the
pipeline frame after frame, and discarded at end of stream. Independent
streams must use independent instances; nothing in here is shared.
"""

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from vocfeat.config import VocfeatConfig

# Depth of the cepstral history kept for sibling tools (delta cepstra)
CEPS_MEM = 8


@dataclass
class StreamState:
    """Mutable record carried across frames of one stream."""
    analysis_mem: NDArray[np.float32]
    pitch_buf: NDArray[np.float32]
    lpc: NDArray[np.float32]
    hp_mem: NDArray[np.float32] = field(default_factory=lambda: np.zeros(2, dtype=np.float32))
    tilt_mem: NDArray[np.float32] = field(default_factory=lambda: np.zeros(2, dtype=np.float32))
    preemph_mem: float = 0.0
    last_period: int = 0
    last_gain: float = 0.0
    frame_count: int = 0
    # Reserved for tools sharing this record; the feature pipeline never touches them.
    cepstral_mem: NDArray[np.float32] = field(default_factory=lambda: np.zeros((CEPS_MEM, 0), dtype=np.float32))
    exc_mem: int = 0

    @classmethod
    def from_config(cls, config: VocfeatConfig) -> "StreamState":
        """Returns a zero-initialized state sized for `config`."""
        analysis = config.analysis
        return cls(
            analysis_mem=np.zeros(analysis.overlap_size, dtype=np.float32),
            pitch_buf=np.zeros(config.pitch.buf_size, dtype=np.float32),
            lpc=np.zeros(analysis.lpc_order, dtype=np.float32),
            cepstral_mem=np.zeros((CEPS_MEM, analysis.nb_bands), dtype=np.float32),
        )
