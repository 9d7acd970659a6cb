"""Signal level helpers used to summarize what each filter stage removes."""

from __future__ import annotations

from typing import Union

import numpy as np
from numpy.typing import ArrayLike

from .errors import InvalidParameterError

Number = Union[float, np.floating]


def _to_1d_array(samples: ArrayLike) -> np.ndarray:
    """Convert input to a 1D float64 numpy array."""
    arr = np.asarray(samples, dtype=float)
    if arr.size == 0:
        raise InvalidParameterError("signal must contain at least one sample")
    if arr.ndim != 1:
        raise InvalidParameterError(f"signal must be 1-D, got shape {arr.shape}")
    return arr


def rms(samples: ArrayLike) -> Number:
    """
    Compute root-mean-square (RMS) value of a 1-D signal.

    Parameters
    ----------
    samples:
        1-D array-like of samples.

    Returns
    -------
    float
        RMS value of the signal.
    """
    arr = _to_1d_array(samples)
    return float(np.sqrt(np.mean(np.square(arr))))


def relative_level(samples: ArrayLike, reference: ArrayLike) -> Number:
    """
    RMS of ``samples`` divided by the RMS of ``reference``.

    Returns 0.0 when the reference is silent.
    """
    ref = rms(reference)
    if ref == 0.0:
        return 0.0
    return float(rms(samples) / ref)
