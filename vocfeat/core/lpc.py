# vocfeat/core/lpc.py

"""
Linear prediction helpers: autocorrelation, Levinson-Durbin recursion and the
conversion from band energies / cepstra to an LPC filter.

The predictor convention is A(z) = 1 + sum_k lpc[k] z^-(k+1), i.e. the
prediction of x[n] is -sum_k lpc[k] x[n-k-1].
"""

import logging
from typing import Tuple, Sequence

import numpy as np
from numpy.typing import NDArray

from vocfeat.core.transforms import idct, interp_band_gain, inverse_transform

logger = logging.getLogger(__name__)


def autocorr(x: NDArray, lag: int) -> NDArray[np.float64]:
    """Biased autocorrelation ac[k] = sum_i x[i] x[i-k] for k = 0..lag."""
    x = np.asarray(x, dtype=np.float64)
    n = len(x)
    return np.array([np.dot(x[k:], x[:n - k]) for k in range(lag + 1)])


def levinson(ac: NDArray, order: int) -> Tuple[NDArray[np.float64], float]:
    """
    Levinson-Durbin recursion.

    Stops early once the residual energy falls below 1e-3 of ac[0]; the
    remaining coefficients are left at zero.

    Args:
        ac: Autocorrelation, at least `order + 1` values.
        order: Predictor order.

    Returns:
        A tuple (lpc, error) of the `order` coefficients and the final
        prediction error energy. An all-zero autocorrelation gives zeros and 0.
    """
    lpc = np.zeros(order, dtype=np.float64)
    error = float(ac[0])
    if ac[0] == 0:
        return lpc, error
    for i in range(order):
        rr = np.dot(lpc[:i], ac[i:0:-1]) + ac[i + 1]
        r = -rr / error
        prev = lpc[:i].copy()
        lpc[:i] = prev + r * prev[::-1]
        lpc[i] = r
        error -= r * r * error
        if error < 1e-3 * ac[0]:
            break
    return lpc, float(error)


def lpc_from_bands(
    band_energy: NDArray,
    band_edges: Sequence[int],
    freq_size: int,
    order: int,
    band_unit: int = 4,
) -> Tuple[NDArray[np.float64], float]:
    """
    Fits an LPC filter to a band-energy envelope.

    The band energies are interpolated back to a power spectrum whose inverse
    FFT is the autocorrelation. A -40 dB noise floor and a Gaussian-like lag
    window keep the recursion well conditioned.

    Returns:
        A tuple (lpc, g) where g is the prediction error energy.
    """
    window_size = 2 * (freq_size - 1)
    Xr = interp_band_gain(band_energy, band_edges, freq_size, band_unit)
    Xr[-1] = 0
    ac = inverse_transform(Xr, window_size)[:order + 1]
    ac[0] += ac[0] * 1e-4 + (window_size // 12) / 38.0
    k = np.arange(1, order + 1)
    ac[1:] *= 1.0 - 6e-5 * k * k
    return levinson(ac, order)


def lpc_from_cepstrum(
    cepstrum: NDArray,
    band_edges: Sequence[int],
    compensation: Sequence[float],
    freq_size: int,
    order: int,
    c0_offset: float = 4.0,
    band_unit: int = 4,
) -> Tuple[NDArray[np.float64], float]:
    """
    Derives LPC coefficients from the first `len(band_edges)` cepstral coefficients.

    Undoes the c0 offset, inverts the DCT back to log10 band energies and
    applies the per-band compensation before fitting.
    """
    nb_bands = len(band_edges)
    c = np.array(cepstrum[:nb_bands], dtype=np.float64)
    c[0] += c0_offset
    band_energy = 10.0 ** idct(c) * np.asarray(compensation, dtype=np.float64)
    return lpc_from_bands(band_energy, band_edges, freq_size, order, band_unit)
