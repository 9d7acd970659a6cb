"""Filter design and signal analysis (coefficients, responses, spectra).

This package holds the numeric core: biquad and single-pole filter design,
analytic frequency responses, synthetic test signals, and the spectrum/peak
detector that places dynamic notches. Modules operate on NumPy arrays and stay
free of plotting and file I/O so they can be reused from the CLI, tests, or any
other front end.
"""

from .coefficients import BiquadCoefficients, BiquadType, FilterKind, design_biquad
from .errors import (
    FilterError,
    InvalidParameterError,
    NotchDivisionByZeroError,
    NumericInstabilityError,
)
from .filters import BiquadFilter, SinglePoleCascade, create_filter
from .response import ResponseCurve, cascade_responses, frequency_response
from .signals import SignalKind, generate_signal
from .spectrum import SpectralPeak, SpectrumResult, detect_peaks, spectrum

__all__ = [
    "BiquadCoefficients",
    "BiquadFilter",
    "BiquadType",
    "FilterError",
    "FilterKind",
    "InvalidParameterError",
    "NotchDivisionByZeroError",
    "NumericInstabilityError",
    "ResponseCurve",
    "SignalKind",
    "SinglePoleCascade",
    "SpectralPeak",
    "SpectrumResult",
    "cascade_responses",
    "create_filter",
    "design_biquad",
    "detect_peaks",
    "frequency_response",
    "generate_signal",
    "spectrum",
]
