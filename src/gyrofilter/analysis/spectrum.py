"""Magnitude spectrum and peak detection for dynamic notch placement.

:func:`spectrum` evaluates the discrete Fourier transform by direct summation
(``O(n**2)``) for the short buffers used here. Despite the "FFT" naming used by
the plots, the default path is *not* a fast transform; ``method="fft"`` (or
``"auto"`` on long inputs) switches to :func:`numpy.fft.rfft` with identical
bins and values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike

from .coefficients import validate_sample_rate
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)

SpectrumMethod = Literal["auto", "dft", "fft"]

# Added to |X|/n before the log so empty bins do not become -inf.
MAGNITUDE_FLOOR = 1e-10
# Longest input "auto" still runs through the direct DFT.
DIRECT_DFT_MAX_SAMPLES = 4096
# Bins evaluated per block by the direct DFT.
DFT_BLOCK_ROWS = 64


@dataclass(frozen=True)
class SpectralPeak:
    """A local spectral maximum (frequency in Hz, magnitude in dB)."""

    frequency: float
    magnitude: float


@dataclass(frozen=True, eq=False)
class SpectrumResult:
    """One-sided spectrum plus any peaks detected on it."""

    frequencies: np.ndarray
    magnitudes: np.ndarray
    peaks: Tuple[SpectralPeak, ...] = field(default=())

    def with_peaks(self, peaks: Sequence[SpectralPeak]) -> "SpectrumResult":
        return SpectrumResult(self.frequencies, self.magnitudes, tuple(peaks))


def _to_1d_signal(samples: ArrayLike) -> np.ndarray:
    arr = np.asarray(samples, dtype=float)
    if arr.size == 0:
        raise InvalidParameterError("signal must contain at least one sample")
    if arr.ndim != 1:
        raise InvalidParameterError(f"signal must be 1-D, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidParameterError("signal contains non-finite samples")
    return arr


def _direct_dft(arr: np.ndarray, bins: int) -> np.ndarray:
    n = arr.size
    i = np.arange(n)
    out = np.empty(bins, dtype=complex)
    # Rows are summed DFT_BLOCK_ROWS bins at a time so memory stays O(n).
    for start in range(0, bins, DFT_BLOCK_ROWS):
        k = np.arange(start, min(start + DFT_BLOCK_ROWS, bins))[:, None]
        # Reduce k*i modulo n first to keep the angles small and accurate.
        angle = -2.0 * np.pi * ((k * i) % n) / n
        out[start : start + k.shape[0]] = np.exp(1j * angle) @ arr
    return out


def spectrum(
    samples: ArrayLike,
    sample_rate_hz: float,
    *,
    method: SpectrumMethod = "auto",
) -> SpectrumResult:
    """
    Compute the one-sided magnitude spectrum in dB.

    Parameters
    ----------
    samples:
        1-D array-like signal (at least one sample, all finite).
    sample_rate_hz:
        Sampling rate in Hz. Must be > 0.
    method:
        ``"dft"`` for direct summation, ``"fft"`` for :func:`numpy.fft.rfft`,
        ``"auto"`` to use the DFT up to :data:`DIRECT_DFT_MAX_SAMPLES` samples.

    Returns
    -------
    SpectrumResult
        ``n // 2`` bins at ``k * fs / n`` Hz with magnitude
        ``20*log10(|X[k]| / n + 1e-10)``.
    """
    fs = validate_sample_rate(sample_rate_hz)
    arr = _to_1d_signal(samples)
    n = arr.size
    bins = n // 2

    if method == "auto":
        method = "dft" if n <= DIRECT_DFT_MAX_SAMPLES else "fft"
    if method == "dft":
        coeffs = _direct_dft(arr, bins)
    elif method == "fft":
        coeffs = np.fft.rfft(arr)[:bins]
    else:
        raise InvalidParameterError(f"Unknown spectrum method {method!r}")

    freqs = np.arange(bins, dtype=float) * fs / n
    magnitude = 20.0 * np.log10(np.abs(coeffs) / n + MAGNITUDE_FLOOR)
    return SpectrumResult(frequencies=freqs, magnitudes=magnitude)


def detect_peaks(
    frequencies: ArrayLike,
    magnitudes: ArrayLike,
    band: Tuple[float, float],
    count: int,
    *,
    min_magnitude: Optional[float] = None,
) -> List[SpectralPeak]:
    """
    Return up to ``count`` local maxima inside ``band``, strongest first.

    A bin qualifies when its magnitude is strictly greater than both neighbours
    and its frequency lies in ``[band[0], band[1]]``. Equal magnitudes keep
    their spectral order. ``min_magnitude`` optionally drops weaker maxima.
    """
    freqs = np.asarray(frequencies, dtype=float).reshape(-1)
    mags = np.asarray(magnitudes, dtype=float).reshape(-1)
    if freqs.size != mags.size:
        raise InvalidParameterError("frequencies and magnitudes must have the same length")
    min_freq, max_freq = float(band[0]), float(band[1])
    if min_freq > max_freq:
        raise InvalidParameterError(f"band must be (min, max), got {band}")
    if int(count) < 0:
        raise InvalidParameterError(f"count must be >= 0, got {count}")

    peaks: List[SpectralPeak] = []
    for i in range(1, mags.size - 1):
        mag = mags[i]
        if mag > mags[i - 1] and mag > mags[i + 1] and min_freq <= freqs[i] <= max_freq:
            if min_magnitude is not None and mag < min_magnitude:
                continue
            peaks.append(SpectralPeak(frequency=float(freqs[i]), magnitude=float(mag)))

    peaks.sort(key=lambda p: p.magnitude, reverse=True)
    top = peaks[: int(count)]
    logger.debug("detect_peaks: %d candidates in [%s, %s] Hz, keeping %d", len(peaks), min_freq, max_freq, len(top))
    return top


__all__ = [
    "DIRECT_DFT_MAX_SAMPLES",
    "MAGNITUDE_FLOOR",
    "SpectralPeak",
    "SpectrumMethod",
    "SpectrumResult",
    "detect_peaks",
    "spectrum",
]
