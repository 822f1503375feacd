# vocfeat/core/transforms.py

"""
Transform kernels shared by the analysis stages: the Vorbis analysis window,
forward/inverse real FFT with the scaling conventions used throughout the
pipeline, triangular band-energy aggregation and its interpolating inverse,
and the orthonormal DCT-II pair used for cepstra.

Uses scipy.fft for the FFT and DCT.
"""

import logging
from functools import lru_cache
from typing import Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.fft import rfft, irfft, dct as _dct, idct as _idct

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def vorbis_half_window(overlap_size: int) -> NDArray[np.float64]:
    """Rising half of the power-complementary Vorbis window."""
    i = np.arange(overlap_size, dtype=np.float64)
    s = np.sin(0.5 * np.pi * (i + 0.5) / overlap_size)
    return np.sin(0.5 * np.pi * s * s)


def apply_window(x: NDArray, overlap_size: int) -> NDArray[np.float32]:
    """
    Tapers both ends of an analysis window with the Vorbis half window.

    The first `overlap_size` samples are multiplied by the rising half and the
    last `overlap_size` by its mirror image; anything in between is untouched.
    """
    if len(x) < 2 * overlap_size:
        raise ValueError(f"Window of {len(x)} samples is shorter than twice the overlap ({overlap_size}).")
    half = vorbis_half_window(overlap_size)
    y = np.array(x, dtype=np.float64)
    y[:overlap_size] *= half
    y[len(y) - overlap_size:] *= half[::-1]
    return y.astype(np.float32)


def forward_transform(x: NDArray) -> NDArray[np.complex128]:
    """Real FFT scaled by 1/N, returning N//2 + 1 bins."""
    return rfft(np.asarray(x, dtype=np.float64)) / len(x)


def inverse_transform(X: NDArray, n: int) -> NDArray[np.float64]:
    """Unnormalized inverse of a half spectrum: N * irfft(X), i.e. the plain inverse DFT sum."""
    return irfft(np.asarray(X, dtype=np.complex128), n=n) * n


@lru_cache(maxsize=8)
def _band_layout(band_edges: Tuple[int, ...], band_unit: int) -> Tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64]]:
    """Bin index, lower band index and interpolation fraction for every bin below the last edge."""
    bins, lower, frac = [], [], []
    for i in range(len(band_edges) - 1):
        band_size = (band_edges[i + 1] - band_edges[i]) * band_unit
        start = band_edges[i] * band_unit
        for j in range(band_size):
            bins.append(start + j)
            lower.append(i)
            frac.append(j / band_size)
    return np.array(bins), np.array(lower), np.array(frac)


def compute_band_energy(X: NDArray, band_edges: Sequence[int], band_unit: int = 4) -> NDArray[np.float64]:
    """
    Aggregates bin powers into overlapping triangular bands.

    Each bin between two band centres splits its power linearly between the
    two bands; the outer bands are doubled since they only receive one side.

    Args:
        X: Complex half spectrum.
        band_edges: Band centres in units of `band_unit` bins.
        band_unit: Bins per band-edge unit.

    Returns:
        Non-negative band energies, one per band edge.
    """
    bins, lower, frac = _band_layout(tuple(band_edges), band_unit)
    power = np.abs(X[bins]) ** 2
    nb_bands = len(band_edges)
    energy = np.bincount(lower, weights=(1.0 - frac) * power, minlength=nb_bands)
    energy += np.bincount(lower + 1, weights=frac * power, minlength=nb_bands)
    energy[0] *= 2
    energy[-1] *= 2
    return energy


def interp_band_gain(band_values: NDArray, band_edges: Sequence[int], freq_size: int, band_unit: int = 4) -> NDArray[np.float64]:
    """Linearly interpolates per-band values back onto FFT bins; bins past the last edge are zero."""
    bins, lower, frac = _band_layout(tuple(band_edges), band_unit)
    band_values = np.asarray(band_values, dtype=np.float64)
    g = np.zeros(freq_size, dtype=np.float64)
    g[bins] = (1.0 - frac) * band_values[lower] + frac * band_values[lower + 1]
    return g


def dct(x: NDArray) -> NDArray[np.float64]:
    """Orthonormal DCT-II."""
    return _dct(np.asarray(x, dtype=np.float64), type=2, norm='ortho')


def idct(x: NDArray) -> NDArray[np.float64]:
    """Inverse of `dct` (orthonormal DCT-III)."""
    return _idct(np.asarray(x, dtype=np.float64), type=2, norm='ortho')
