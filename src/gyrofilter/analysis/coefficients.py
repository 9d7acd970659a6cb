"""Biquad coefficient design for gyro low-pass and notch filters.

All designs follow the RBJ "cookbook" formulas with the leading recursion
coefficient normalized to 1::

    H(z) = (b0 + b1 z^-1 + b2 z^-2) / (1 + a1 z^-1 + a2 z^-2)

The fixed Q and cutoff-scaling constants match the flight-controller firmware
the filters are modelled on. They are exact values, not derived ones.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

from .errors import InvalidParameterError, NotchDivisionByZeroError, NumericInstabilityError

logger = logging.getLogger(__name__)

# 4-pole Bessel decimation filter = two cascaded 2-pole sections.
BESSEL_4A_Q = 0.805538282
BESSEL_4B_Q = 0.521934582
BESSEL_4A_C = 1.603357516
BESSEL_4B_C = 1.430171560

BUTTERWORTH_Q = 0.707106781
BESSEL_Q = 0.577350269
DAMPED_Q = 0.5

DEFAULT_Q = 1.0


class BiquadType(str, Enum):
    """Biquad topologies the designer knows how to build."""

    LOWPASS = "lowpass"
    NOTCH = "notch"


class FilterKind(str, Enum):
    """Filter flavors selectable for a pipeline stage or a response plot."""

    PT1 = "pt1"
    PT2 = "pt2"
    PT3 = "pt3"
    BUTTERWORTH = "butterworth"
    BESSEL = "bessel"
    DAMPED = "damped"
    LOWPASS = "lowpass"
    NOTCH = "notch"

    @property
    def is_single_pole(self) -> bool:
        return self in (FilterKind.PT1, FilterKind.PT2, FilterKind.PT3)

    @property
    def order(self) -> int:
        """Cascade length of a single-pole flavor (biquads report 2)."""
        if self is FilterKind.PT1:
            return 1
        if self is FilterKind.PT2:
            return 2
        if self is FilterKind.PT3:
            return 3
        return 2

    @classmethod
    def parse(cls, value: "FilterKind | str") -> "FilterKind":
        """
        Resolve ``value`` into a :class:`FilterKind`.

        Matching is case-insensitive, treats ``-`` and spaces as ``_`` and
        accepts a few short aliases (``butter``, ``lpf``, ``biquad``).
        """
        if isinstance(value, FilterKind):
            return value
        raw = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
        raw = _FILTER_KIND_ALIASES.get(raw, raw)
        try:
            return cls(raw)
        except ValueError:
            raise InvalidParameterError(f"Unknown filter kind {value!r}") from None


_FILTER_KIND_ALIASES = {
    "butter": "butterworth",
    "bessel2": "bessel",
    "lpf": "lowpass",
    "biquad": "lowpass",
    "low_pass": "lowpass",
    "lowpass_generic": "lowpass",
    "lowpassgeneric": "lowpass",
    "pt_1": "pt1",
    "pt_2": "pt2",
    "pt_3": "pt3",
}


@dataclass(frozen=True)
class BiquadCoefficients:
    """
    Normalized biquad coefficients (``a0 == 1``).

    Instances are immutable and validated on construction: every value must be
    finite and the poles must lie strictly inside the unit circle.
    """

    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    def __post_init__(self) -> None:
        values = self.as_tuple()
        if not all(math.isfinite(v) for v in values):
            raise NumericInstabilityError(f"Non-finite biquad coefficients: {values}")
        # Jury criterion for a second-order denominator.
        if not (abs(self.a2) < 1.0 and abs(self.a1) < 1.0 + self.a2):
            raise NumericInstabilityError(
                f"Biquad poles outside the unit circle (a1={self.a1}, a2={self.a2})"
            )

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        return (self.b0, self.b1, self.b2, self.a1, self.a2)

    @property
    def numerator(self) -> Tuple[float, float, float]:
        return (self.b0, self.b1, self.b2)

    @property
    def denominator(self) -> Tuple[float, float, float]:
        return (1.0, self.a1, self.a2)


def validate_sample_rate(sample_rate_hz: float) -> float:
    """Return ``sample_rate_hz`` as float or raise if it is not a positive number."""
    try:
        fs = float(sample_rate_hz)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"sample_rate_hz must be a number, got {sample_rate_hz!r}") from None
    if not math.isfinite(fs) or fs <= 0.0:
        raise InvalidParameterError(f"sample_rate_hz must be > 0, got {sample_rate_hz}")
    return fs


def validate_cutoff(cutoff_hz: float, sample_rate_hz: float) -> float:
    """Return ``cutoff_hz`` as float, enforcing ``0 < cutoff_hz < Nyquist``."""
    fs = validate_sample_rate(sample_rate_hz)
    try:
        cutoff = float(cutoff_hz)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"cutoff_hz must be a number, got {cutoff_hz!r}") from None
    if not math.isfinite(cutoff) or cutoff <= 0.0:
        raise InvalidParameterError(f"cutoff_hz must be > 0, got {cutoff_hz}")
    nyquist = 0.5 * fs
    if cutoff >= nyquist:
        raise InvalidParameterError(
            f"cutoff_hz must be < Nyquist ({nyquist:.3f} Hz), got {cutoff_hz}"
        )
    return cutoff


def validate_q(q: float) -> float:
    try:
        value = float(q)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"q must be a number, got {q!r}") from None
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidParameterError(f"q must be > 0, got {q}")
    return value


def design_biquad(
    kind: BiquadType | str,
    cutoff_hz: float,
    sample_rate_hz: float,
    q: float = DEFAULT_Q,
) -> BiquadCoefficients:
    """
    Design a low-pass or notch biquad section.

    Parameters
    ----------
    kind:
        :class:`BiquadType` (or its string value).
    cutoff_hz:
        Cutoff (low-pass) or center (notch) frequency in Hz,
        ``0 < cutoff_hz < sample_rate_hz / 2``.
    sample_rate_hz:
        Sampling rate in Hz. Must be > 0.
    q:
        Quality factor. Must be > 0.

    Returns
    -------
    BiquadCoefficients
        Coefficients normalized by ``a0 = 1 + alpha``.
    """
    try:
        biquad_type = BiquadType(kind)
    except ValueError:
        raise InvalidParameterError(f"Unknown biquad type {kind!r}") from None
    fs = validate_sample_rate(sample_rate_hz)
    cutoff = validate_cutoff(cutoff_hz, fs)
    q_val = validate_q(q)

    omega = 2.0 * math.pi * cutoff / fs
    sin_om = math.sin(omega)
    cos_om = math.cos(omega)
    alpha = sin_om / (2.0 * q_val)

    if biquad_type is BiquadType.LOWPASS:
        b1 = 1.0 - cos_om
        b0 = b1 / 2.0
        b2 = b0
        a1 = -2.0 * cos_om
        a2 = 1.0 - alpha
    elif biquad_type is BiquadType.NOTCH:
        b0 = 1.0
        b1 = -2.0 * cos_om
        b2 = 1.0
        a1 = b1
        a2 = 1.0 - alpha
    else:  # pragma: no cover - enum is closed
        raise InvalidParameterError(f"Unknown biquad type {kind!r}")

    a0 = 1.0 + alpha
    return BiquadCoefficients(b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0)


def lowpass_q(kind: FilterKind | str, q: float | None = None) -> float:
    """
    Return the Q used for a biquad low-pass flavor.

    Butterworth, Bessel and damped flavors use their fixed constants; the
    generic low-pass uses ``q`` (default :data:`DEFAULT_Q`).
    """
    flavor = FilterKind.parse(kind)
    if flavor is FilterKind.BUTTERWORTH:
        return BUTTERWORTH_Q
    if flavor is FilterKind.BESSEL:
        return BESSEL_Q
    if flavor is FilterKind.DAMPED:
        return DAMPED_Q
    if flavor is FilterKind.LOWPASS:
        return validate_q(DEFAULT_Q if q is None else q)
    raise InvalidParameterError(f"{flavor.value} is not a biquad low-pass flavor")


def design_decimation(cutoff_hz: float, sample_rate_hz: float) -> Tuple[BiquadCoefficients, BiquadCoefficients]:
    """
    Design the 4-pole Bessel decimation filter as two low-pass sections.

    Both scaled cutoffs (``1.603357516 * cutoff`` and ``1.430171560 * cutoff``)
    must stay below Nyquist.
    """
    stage_a = design_biquad(BiquadType.LOWPASS, BESSEL_4A_C * float(cutoff_hz), sample_rate_hz, BESSEL_4A_Q)
    stage_b = design_biquad(BiquadType.LOWPASS, BESSEL_4B_C * float(cutoff_hz), sample_rate_hz, BESSEL_4B_Q)
    return stage_a, stage_b


def notch_q(center_hz: float, bandwidth_hz: float) -> float:
    """
    Derive notch Q from its center and cutoff/bandwidth parameter.

    ``Q = center * bandwidth / (center**2 - bandwidth**2)``
    """
    center = float(center_hz)
    bandwidth = float(bandwidth_hz)
    denom = center * center - bandwidth * bandwidth
    if denom == 0.0:
        raise NotchDivisionByZeroError(
            f"notch center ({center_hz}) must differ from bandwidth ({bandwidth_hz})"
        )
    return center * bandwidth / denom


def rpm_notch_center(rpm: float, ratio: float) -> float:
    """Return the notch center in Hz for a rotor at ``rpm`` with blade ``ratio``."""
    return float(rpm) * float(ratio) / 60.0


def design_dynamic_notches(
    peak_frequencies: Iterable[float],
    q: float,
    sample_rate_hz: float,
) -> List[BiquadCoefficients]:
    """
    Design one notch per frequency, keeping input order.

    ``q`` and ``sample_rate_hz`` are checked even when there are no peaks.
    """
    q_val = validate_q(q)
    fs = validate_sample_rate(sample_rate_hz)
    notches = [design_biquad(BiquadType.NOTCH, f, fs, q_val) for f in peak_frequencies]
    logger.debug("Designed %d dynamic notches (q=%s, fs=%s)", len(notches), q_val, fs)
    return notches


__all__ = [
    "BESSEL_4A_C",
    "BESSEL_4A_Q",
    "BESSEL_4B_C",
    "BESSEL_4B_Q",
    "BESSEL_Q",
    "BUTTERWORTH_Q",
    "DAMPED_Q",
    "DEFAULT_Q",
    "BiquadCoefficients",
    "BiquadType",
    "FilterKind",
    "design_biquad",
    "design_decimation",
    "design_dynamic_notches",
    "lowpass_q",
    "notch_q",
    "rpm_notch_center",
    "validate_cutoff",
    "validate_q",
    "validate_sample_rate",
]
