"""Synthetic test signals for exercising the filter chain.

All generators return 1-D float64 arrays of exactly ``length`` samples. The
random ones take an optional ``rng`` (a :class:`numpy.random.Generator` or an
integer seed); without it they draw from fresh OS entropy.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

import numpy as np
from scipy import signal

from .coefficients import validate_sample_rate
from .errors import InvalidParameterError

RandomSource = Union[np.random.Generator, int, None]

DEFAULT_STEP_TIME_S = 0.1
GYRO_BASE_HZ = 50.0
GYRO_ROTOR_HZ = 120.0
GYRO_ROTOR_AMPLITUDE = 0.3
GYRO_NOISE_LEVEL = 0.1


class SignalKind(str, Enum):
    """Input signals selectable for a pipeline simulation."""

    NOISE = "noise"
    STEP = "step"
    SINE = "sine"
    CHIRP = "chirp"
    REALISTIC = "realistic"

    @classmethod
    def parse(cls, value: "SignalKind | str") -> "SignalKind":
        if isinstance(value, SignalKind):
            return value
        raw = str(value or "").strip().lower()
        if raw in {"gyro", "realistic_gyro"}:
            raw = "realistic"
        elif raw in {"white_noise", "white"}:
            raw = "noise"
        try:
            return cls(raw)
        except ValueError:
            raise InvalidParameterError(f"Unknown signal kind {value!r}") from None


def as_generator(rng: RandomSource = None) -> np.random.Generator:
    """Return ``rng`` unchanged if it is a Generator, else seed a new one."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def _check_length(length: int) -> int:
    n = int(length)
    if n <= 0:
        raise InvalidParameterError(f"length must be a positive integer, got {length}")
    return n


def time_axis(length: int, sample_rate_hz: float) -> np.ndarray:
    """Sample times ``i / fs`` in seconds."""
    n = _check_length(length)
    fs = validate_sample_rate(sample_rate_hz)
    return np.arange(n, dtype=float) / fs


def white_noise(length: int, amplitude: float = 1.0, *, rng: RandomSource = None) -> np.ndarray:
    """Uniform noise in ``[-amplitude, amplitude]``."""
    n = _check_length(length)
    amp = abs(float(amplitude))
    return as_generator(rng).uniform(-amp, amp, size=n)


def sine_wave(
    length: int,
    frequency_hz: float,
    sample_rate_hz: float,
    amplitude: float = 1.0,
) -> np.ndarray:
    t = time_axis(length, sample_rate_hz)
    return float(amplitude) * np.sin(2.0 * np.pi * float(frequency_hz) * t)


def step_signal(
    length: int,
    sample_rate_hz: float,
    step_time_s: float = DEFAULT_STEP_TIME_S,
) -> np.ndarray:
    """0 before ``step_time_s``, 1 from the sample at ``floor(step_time_s * fs)`` on."""
    n = _check_length(length)
    fs = validate_sample_rate(sample_rate_hz)
    step_index = int(np.floor(float(step_time_s) * fs))
    return (np.arange(n) >= step_index).astype(float)


def chirp_signal(
    length: int,
    start_hz: float,
    end_hz: float,
    sample_rate_hz: float,
    amplitude: float = 1.0,
) -> np.ndarray:
    """
    Linear sine sweep from ``start_hz`` to ``end_hz`` over the buffer duration.

    The phase is the integral of the instantaneous frequency,
    ``2*pi*(f0*t + (f1 - f0)*t**2 / (2*T))``, so the sweep has no phase jumps.
    """
    t = time_axis(length, sample_rate_hz)
    duration = t.size / validate_sample_rate(sample_rate_hz)
    # phi=-90 turns scipy's cosine sweep into a sine sweep starting at 0.
    sweep = signal.chirp(t, f0=float(start_hz), t1=duration, f1=float(end_hz), method="linear", phi=-90.0)
    return float(amplitude) * sweep


def gyro_like_signal(
    length: int,
    sample_rate_hz: float,
    *,
    base_hz: float = GYRO_BASE_HZ,
    rotor_hz: float = GYRO_ROTOR_HZ,
    rotor_amplitude: float = GYRO_ROTOR_AMPLITUDE,
    noise_level: float = GYRO_NOISE_LEVEL,
    rng: RandomSource = None,
) -> np.ndarray:
    """Base motion sinusoid plus a weaker rotor harmonic plus uniform noise."""
    base = sine_wave(length, base_hz, sample_rate_hz)
    rotor = sine_wave(length, rotor_hz, sample_rate_hz, rotor_amplitude)
    return base + rotor + white_noise(length, noise_level, rng=rng)


def generate_signal(
    kind: SignalKind | str,
    length: int,
    sample_rate_hz: float,
    *,
    frequency_hz: float = 100.0,
    step_time_s: float = DEFAULT_STEP_TIME_S,
    chirp_start_hz: float = 10.0,
    chirp_end_hz: float = 500.0,
    noise_level: float = 0.0,
    rng: RandomSource = None,
) -> np.ndarray:
    """
    Build the input signal selected by ``kind``.

    Parameters
    ----------
    kind:
        :class:`SignalKind` or its string value.
    length, sample_rate_hz:
        Buffer size and sampling rate.
    frequency_hz:
        Frequency of the ``sine`` input.
    step_time_s:
        Step instant of the ``step`` input.
    chirp_start_hz, chirp_end_hz:
        Sweep range of the ``chirp`` input.
    noise_level:
        Amplitude of extra uniform noise added on top of any input (0 disables).
    rng:
        Generator or seed shared by every random draw of this call.
    """
    selected = SignalKind.parse(kind)
    gen = as_generator(rng)
    if selected is SignalKind.NOISE:
        out = white_noise(length, 1.0, rng=gen)
    elif selected is SignalKind.STEP:
        out = step_signal(length, sample_rate_hz, step_time_s)
    elif selected is SignalKind.SINE:
        out = sine_wave(length, frequency_hz, sample_rate_hz)
    elif selected is SignalKind.CHIRP:
        out = chirp_signal(length, chirp_start_hz, chirp_end_hz, sample_rate_hz)
    elif selected is SignalKind.REALISTIC:
        out = gyro_like_signal(length, sample_rate_hz, rng=gen)
    else:  # pragma: no cover - enum is closed
        raise InvalidParameterError(f"Unsupported signal kind {kind!r}")

    if noise_level > 0:
        out = out + white_noise(length, noise_level, rng=gen)
    return out


__all__ = [
    "RandomSource",
    "SignalKind",
    "as_generator",
    "chirp_signal",
    "generate_signal",
    "gyro_like_signal",
    "sine_wave",
    "step_signal",
    "time_axis",
    "white_noise",
]
