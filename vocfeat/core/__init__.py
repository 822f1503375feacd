# vocfeat/core/__init__.py

"""
Core processing package for vocfeat.

Contains modules for:
- Per-stream state
- Signal conditioning filters
- Transform kernels (window, FFT, band energies, DCT)
- Spectral analysis
- Pitch estimation (primary and YIN alternate)
- LPC and cepstral feature assembly
- The streaming frame driver and batch processing
- Stream I/O
"""

from . import state
from . import filters
from . import transforms
from . import spectral
from . import lpc
from . import pitch
from . import alt_pitch
from . import features
from . import pipeline
from . import audio_io
from . import batch_processor

from .pipeline import FeatureExtractor, extract_features

__all__ = [
    "state",
    "filters",
    "transforms",
    "spectral",
    "lpc",
    "pitch",
    "alt_pitch",
    "features",
    "pipeline",
    "audio_io",
    "batch_processor",
    "FeatureExtractor",
    "extract_features",
]
