"""Analytic frequency response of the gyro filter stages.

Responses are evaluated on the unit circle, ``z = exp(j*2*pi*f/fs)``, using the
same coefficients the stateful filters run with. Frequencies never exceed
Nyquist. Magnitudes are in dB and phases in degrees; cascaded stages are
combined by point-wise addition of both sequences, which is exact because the
magnitudes multiply and the phases add for LTI systems in series.

The phase convention matches :func:`scipy.signal.freqz`, i.e. polynomials are
evaluated in ``z^-1``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
from numpy.typing import ArrayLike

from .coefficients import (
    BiquadCoefficients,
    BiquadType,
    FilterKind,
    design_biquad,
    design_decimation,
    design_dynamic_notches,
    lowpass_q,
    validate_q,
    validate_sample_rate,
)
from .errors import InvalidParameterError
from .filters import single_pole_gain

DEFAULT_RESPONSE_POINTS = 2000
MIN_RESPONSE_FREQ_HZ = 1.0
# |H| floor before the log: -240 dB instead of -inf at an exact notch zero.
MAGNITUDE_FLOOR = 1e-12


@dataclass(frozen=True, eq=False)
class ResponseCurve:
    """Index-aligned frequency (Hz), magnitude (dB) and phase (deg) arrays."""

    frequencies: np.ndarray
    magnitudes: np.ndarray
    phases: np.ndarray

    def __post_init__(self) -> None:
        for name in ("frequencies", "magnitudes", "phases"):
            arr = np.array(getattr(self, name), dtype=float).reshape(-1)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        if not (self.frequencies.size == self.magnitudes.size == self.phases.size):
            raise InvalidParameterError("frequencies, magnitudes and phases must have the same length")

    def __len__(self) -> int:
        return int(self.frequencies.size)

    def cascade(self, other: "ResponseCurve") -> "ResponseCurve":
        """Combined response of ``self`` followed by ``other``."""
        return cascade_responses([self, other])

    def magnitude_at(self, frequency_hz: float) -> float:
        """Magnitude (dB) at the grid point closest to ``frequency_hz``."""
        idx = int(np.argmin(np.abs(self.frequencies - float(frequency_hz))))
        return float(self.magnitudes[idx])


def frequency_grid(
    sample_rate_hz: float,
    points: int = DEFAULT_RESPONSE_POINTS,
) -> np.ndarray:
    """Linear grid from 1 Hz to Nyquist (inclusive) with ``points`` entries."""
    fs = validate_sample_rate(sample_rate_hz)
    if int(points) < 2:
        raise InvalidParameterError(f"points must be >= 2, got {points}")
    nyquist = 0.5 * fs
    if nyquist <= MIN_RESPONSE_FREQ_HZ:
        raise InvalidParameterError(
            f"sample_rate_hz must exceed {2 * MIN_RESPONSE_FREQ_HZ} Hz for a response sweep, got {fs}"
        )
    return np.linspace(MIN_RESPONSE_FREQ_HZ, nyquist, int(points))


def _resolve_frequencies(
    sample_rate_hz: float,
    frequencies: Optional[ArrayLike],
    points: int,
) -> np.ndarray:
    if frequencies is None:
        return frequency_grid(sample_rate_hz, points)
    freqs = np.asarray(frequencies, dtype=float).reshape(-1)
    if freqs.size == 0:
        raise InvalidParameterError("frequencies must contain at least one value")
    nyquist = 0.5 * float(sample_rate_hz)
    if not np.all(np.isfinite(freqs)) or np.any(freqs <= 0.0) or np.any(freqs > nyquist):
        raise InvalidParameterError(f"frequencies must lie in (0, {nyquist}] Hz")
    return freqs


def _unit_circle(frequencies: np.ndarray, sample_rate_hz: float) -> np.ndarray:
    """Return ``z^-1`` for each frequency."""
    omega = 2.0 * np.pi * frequencies / float(sample_rate_hz)
    return np.exp(-1j * omega)


def biquad_transfer(coefficients: BiquadCoefficients, z_inv: np.ndarray) -> np.ndarray:
    c = coefficients
    z_inv2 = z_inv * z_inv
    num = c.b0 + c.b1 * z_inv + c.b2 * z_inv2
    den = 1.0 + c.a1 * z_inv + c.a2 * z_inv2
    return num / den


def single_pole_transfer(gain: float, order: int, z_inv: np.ndarray) -> np.ndarray:
    """One-pole section ``g / (1 - (1-g) z^-1)`` multiplied ``order`` times."""
    section = gain / (1.0 - (1.0 - gain) * z_inv)
    h = np.ones_like(section)
    for _ in range(order):
        h = h * section
    return h


def _curve_from_transfer(frequencies: np.ndarray, h: np.ndarray) -> ResponseCurve:
    magnitude = np.maximum(np.abs(h), MAGNITUDE_FLOOR)
    return ResponseCurve(
        frequencies=frequencies,
        magnitudes=20.0 * np.log10(magnitude),
        phases=np.degrees(np.arctan2(h.imag, h.real)),
    )


def frequency_response(
    kind: FilterKind | str,
    cutoff_hz: float,
    sample_rate_hz: float,
    q: float | None = None,
    *,
    points: int = DEFAULT_RESPONSE_POINTS,
    frequencies: Optional[ArrayLike] = None,
) -> ResponseCurve:
    """
    Evaluate the response of one filter stage.

    Parameters
    ----------
    kind:
        :class:`FilterKind` or alias.
    cutoff_hz:
        Cutoff (low-pass flavors) or center frequency (``notch``).
    sample_rate_hz:
        Sampling rate in Hz.
    q:
        Quality factor for ``lowpass`` and ``notch`` (default 1.0). Fixed-Q
        flavors ignore it.
    points:
        Grid size when ``frequencies`` is omitted.
    frequencies:
        Explicit evaluation frequencies, all within ``(0, Nyquist]``.

    Returns
    -------
    ResponseCurve
        Fresh arrays; nothing is cached between calls.
    """
    flavor = FilterKind.parse(kind)
    fs = validate_sample_rate(sample_rate_hz)
    freqs = _resolve_frequencies(fs, frequencies, points)
    z_inv = _unit_circle(freqs, fs)

    if flavor.is_single_pole:
        gain = single_pole_gain(cutoff_hz, fs, flavor.order)
        h = single_pole_transfer(gain, flavor.order, z_inv)
    elif flavor is FilterKind.NOTCH:
        coeffs = design_biquad(BiquadType.NOTCH, cutoff_hz, fs, validate_q(1.0 if q is None else q))
        h = biquad_transfer(coeffs, z_inv)
    elif flavor in (FilterKind.BUTTERWORTH, FilterKind.BESSEL, FilterKind.DAMPED, FilterKind.LOWPASS):
        coeffs = design_biquad(BiquadType.LOWPASS, cutoff_hz, fs, lowpass_q(flavor, q))
        h = biquad_transfer(coeffs, z_inv)
    else:  # pragma: no cover - enum is closed
        raise InvalidParameterError(f"Unsupported filter kind {kind!r}")
    return _curve_from_transfer(freqs, h)


def biquad_response(
    coefficients: BiquadCoefficients,
    sample_rate_hz: float,
    *,
    points: int = DEFAULT_RESPONSE_POINTS,
    frequencies: Optional[ArrayLike] = None,
) -> ResponseCurve:
    """Response of an already designed biquad section."""
    fs = validate_sample_rate(sample_rate_hz)
    freqs = _resolve_frequencies(fs, frequencies, points)
    return _curve_from_transfer(freqs, biquad_transfer(coefficients, _unit_circle(freqs, fs)))


def flat_response(frequencies: ArrayLike) -> ResponseCurve:
    """0 dB / 0 deg response, the identity element of :func:`cascade_responses`."""
    freqs = np.asarray(frequencies, dtype=float).reshape(-1)
    return ResponseCurve(freqs, np.zeros_like(freqs), np.zeros_like(freqs))


def cascade_responses(curves: Iterable[ResponseCurve]) -> ResponseCurve:
    """
    Combine stages in series by adding magnitudes (dB) and phases (deg).

    All curves must share the identical frequency grid.
    """
    items = list(curves)
    if not items:
        raise InvalidParameterError("cascade_responses needs at least one curve")
    freqs = items[0].frequencies
    magnitudes = np.zeros_like(freqs)
    phases = np.zeros_like(freqs)
    for curve in items:
        if not np.array_equal(curve.frequencies, freqs):
            raise InvalidParameterError("cascaded responses must share the same frequency grid")
        magnitudes = magnitudes + curve.magnitudes
        phases = phases + curve.phases
    return ResponseCurve(freqs, magnitudes, phases)


def decimation_response(
    cutoff_hz: float,
    sample_rate_hz: float,
    *,
    points: int = DEFAULT_RESPONSE_POINTS,
    frequencies: Optional[ArrayLike] = None,
) -> ResponseCurve:
    """Response of the 4-pole Bessel decimation filter (two biquads in series)."""
    fs = validate_sample_rate(sample_rate_hz)
    freqs = _resolve_frequencies(fs, frequencies, points)
    stages = design_decimation(cutoff_hz, fs)
    return cascade_responses(biquad_response(c, fs, frequencies=freqs) for c in stages)


def dynamic_notch_response(
    peak_frequencies: Sequence[float],
    q: float,
    sample_rate_hz: float,
    *,
    points: int = DEFAULT_RESPONSE_POINTS,
    frequencies: Optional[ArrayLike] = None,
) -> ResponseCurve:
    """
    Combined response of one notch per peak frequency.

    Without peaks the result is flat (0 dB, 0 deg) on the same grid.
    """
    fs = validate_sample_rate(sample_rate_hz)
    freqs = _resolve_frequencies(fs, frequencies, points)
    notches = design_dynamic_notches(peak_frequencies, q, fs)
    curves = [flat_response(freqs)]
    curves.extend(biquad_response(c, fs, frequencies=freqs) for c in notches)
    return cascade_responses(curves)


__all__ = [
    "DEFAULT_RESPONSE_POINTS",
    "MAGNITUDE_FLOOR",
    "ResponseCurve",
    "biquad_response",
    "biquad_transfer",
    "cascade_responses",
    "decimation_response",
    "dynamic_notch_response",
    "flat_response",
    "frequency_grid",
    "frequency_response",
    "single_pole_transfer",
]
