"""Stateful filter stages: RBJ biquads and cascaded single-pole (PT1/2/3) filters.

Every stage owns its recursion memory. ``apply`` advances the state by one
sample and is kept free of validation so it can run in tight loops;
``process_block`` filters a whole array with :func:`scipy.signal.lfilter` and
leaves the stage in the same state as the equivalent sequence of ``apply``
calls.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Protocol

import numpy as np
from numpy.typing import ArrayLike
from scipy import signal

from .coefficients import (
    BiquadCoefficients,
    BiquadType,
    FilterKind,
    design_biquad,
    lowpass_q,
    validate_q,
    validate_sample_rate,
)
from .errors import InvalidParameterError, NumericInstabilityError

logger = logging.getLogger(__name__)

# Cutoff correction that keeps the -3 dB point at the nominal cutoff after
# cascading ``order`` identical one-pole sections.
CUTOFF_CORRECTION = {
    1: 1.0,
    2: 1.553773974,
    3: 1.961459177,
}


class FilterStage(Protocol):
    """Interface shared by every stage a :class:`~gyrofilter.core.pipeline.Pipeline` runs."""

    def apply(self, sample: float) -> float:  # pragma: no cover - protocol
        ...

    def process_block(self, samples: ArrayLike) -> np.ndarray:  # pragma: no cover - protocol
        ...

    def reset(self) -> None:  # pragma: no cover - protocol
        ...


def single_pole_gain(cutoff_hz: float, sample_rate_hz: float, order: int = 1) -> float:
    """
    Return the smoothing gain of one section of an ``order``-stage cascade.

    ``gain = c*k / (c*k + fs / 2pi)`` with ``k`` from :data:`CUTOFF_CORRECTION`,
    clamped to at most 1. Cutoffs above Nyquist are allowed here; the gain
    simply saturates towards 1.
    """
    if order not in CUTOFF_CORRECTION:
        raise InvalidParameterError(f"order must be 1, 2 or 3, got {order}")
    fs = validate_sample_rate(sample_rate_hz)
    try:
        cutoff = float(cutoff_hz)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"cutoff_hz must be a number, got {cutoff_hz!r}") from None
    if math.isnan(cutoff) or cutoff <= 0.0:
        raise InvalidParameterError(f"cutoff_hz must be > 0, got {cutoff_hz}")
    if math.isinf(cutoff):
        return 1.0
    scaled = cutoff * CUTOFF_CORRECTION[order]
    gamma = fs / (2.0 * math.pi)
    gain = scaled / (scaled + gamma)
    return min(gain, 1.0)


@dataclass(slots=True)
class SinglePoleCascade:
    """
    ``order`` cascaded exponential-smoothing sections sharing one gain.

    ``order=1`` is the classic PT1, 2 and 3 give PT2 and PT3.
    """

    cutoff_hz: float
    sample_rate_hz: float
    order: int = 1

    gain: float = field(init=False)
    _state: List[float] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.gain = single_pole_gain(self.cutoff_hz, self.sample_rate_hz, self.order)
        if not (math.isfinite(self.gain) and 0.0 < self.gain <= 1.0):
            raise NumericInstabilityError(f"Invalid single-pole gain {self.gain}")
        self._state = [0.0] * self.order
        logger.debug(
            "SinglePoleCascade order=%d cutoff=%.3f Hz fs=%.1f Hz gain=%.6f",
            self.order,
            self.cutoff_hz,
            self.sample_rate_hz,
            self.gain,
        )

    @property
    def state(self) -> tuple[float, ...]:
        return tuple(self._state)

    def reset(self) -> None:
        self._state = [0.0] * self.order

    def apply(self, sample: float) -> float:
        state = self._state
        gain = self.gain
        value = sample
        for i in range(len(state)):
            state[i] += (value - state[i]) * gain
            value = state[i]
        return value

    def process_block(self, samples: ArrayLike) -> np.ndarray:
        out = np.asarray(samples, dtype=float).reshape(-1)
        if out.size == 0:
            return out.copy()
        b = [self.gain]
        a = [1.0, self.gain - 1.0]
        for i, prev in enumerate(self._state):
            zi = [(1.0 - self.gain) * prev]
            out, _ = signal.lfilter(b, a, out, zi=zi)
            self._state[i] = float(out[-1])
        return out


@dataclass(slots=True)
class BiquadFilter:
    """Direct form I biquad section driven by immutable :class:`BiquadCoefficients`."""

    coefficients: BiquadCoefficients

    x1: float = field(init=False, default=0.0)
    x2: float = field(init=False, default=0.0)
    y1: float = field(init=False, default=0.0)
    y2: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        if not isinstance(self.coefficients, BiquadCoefficients):
            raise InvalidParameterError(
                f"coefficients must be BiquadCoefficients, got {type(self.coefficients).__name__}"
            )

    @classmethod
    def design(
        cls,
        kind: BiquadType | str,
        cutoff_hz: float,
        sample_rate_hz: float,
        q: float,
    ) -> "BiquadFilter":
        return cls(design_biquad(kind, cutoff_hz, sample_rate_hz, q))

    def reset(self) -> None:
        self.x1 = self.x2 = 0.0
        self.y1 = self.y2 = 0.0

    def apply(self, sample: float) -> float:
        c = self.coefficients
        output = c.b0 * sample + c.b1 * self.x1 + c.b2 * self.x2 - c.a1 * self.y1 - c.a2 * self.y2
        self.x2 = self.x1
        self.x1 = sample
        self.y2 = self.y1
        self.y1 = output
        return output

    def process_block(self, samples: ArrayLike) -> np.ndarray:
        x = np.asarray(samples, dtype=float).reshape(-1)
        if x.size == 0:
            return x.copy()
        c = self.coefficients
        zi = signal.lfiltic(c.numerator, c.denominator, y=[self.y1, self.y2], x=[self.x1, self.x2])
        y, _ = signal.lfilter(c.numerator, c.denominator, x, zi=zi)

        x_hist = np.concatenate(([self.x2, self.x1], x))
        y_hist = np.concatenate(([self.y2, self.y1], y))
        self.x1, self.x2 = float(x_hist[-1]), float(x_hist[-2])
        self.y1, self.y2 = float(y_hist[-1]), float(y_hist[-2])
        return y


def create_filter(
    kind: FilterKind | str,
    cutoff_hz: float,
    sample_rate_hz: float,
    q: float | None = None,
) -> FilterStage:
    """
    Build a fresh stage for ``kind``.

    Parameters
    ----------
    kind:
        Any :class:`FilterKind` (or alias accepted by :meth:`FilterKind.parse`).
    cutoff_hz:
        Cutoff for low-pass flavors, center frequency for ``notch``.
    sample_rate_hz:
        Sampling rate in Hz.
    q:
        Quality factor for ``lowpass`` and ``notch``; fixed-Q flavors ignore it.
    """
    flavor = FilterKind.parse(kind)
    if flavor.is_single_pole:
        return SinglePoleCascade(cutoff_hz, sample_rate_hz, order=flavor.order)
    if flavor is FilterKind.NOTCH:
        if q is None:
            raise InvalidParameterError("notch filters require an explicit q")
        return BiquadFilter.design(BiquadType.NOTCH, cutoff_hz, sample_rate_hz, validate_q(q))
    if flavor in (FilterKind.BUTTERWORTH, FilterKind.BESSEL, FilterKind.DAMPED, FilterKind.LOWPASS):
        return BiquadFilter.design(BiquadType.LOWPASS, cutoff_hz, sample_rate_hz, lowpass_q(flavor, q))
    raise InvalidParameterError(f"Unsupported filter kind {kind!r}")  # pragma: no cover - enum is closed


__all__ = [
    "CUTOFF_CORRECTION",
    "BiquadFilter",
    "FilterStage",
    "SinglePoleCascade",
    "create_filter",
    "single_pole_gain",
]
