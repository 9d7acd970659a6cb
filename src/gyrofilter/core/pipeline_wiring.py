"""High-level helpers that wire configuration, signals, filters and analysis together."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike

from ..analysis.coefficients import design_dynamic_notches, validate_sample_rate
from ..analysis.features import relative_level
from ..analysis.response import (
    DEFAULT_RESPONSE_POINTS,
    ResponseCurve,
    cascade_responses,
    dynamic_notch_response,
    flat_response,
    frequency_grid,
    frequency_response,
)
from ..analysis.signals import RandomSource, as_generator, generate_signal, time_axis
from ..analysis.spectrum import detect_peaks, spectrum
from ..config import GyroFilterConfig
from ..config.stages import StageSpec
from .models import DynamicNotchResult, SimulationResult, TimeSeriesPair
from .pipeline import Pipeline

logger = logging.getLogger(__name__)


def build_pipeline(cfg: GyroFilterConfig) -> Pipeline:
    """Build a :class:`Pipeline` with fresh state from ``cfg.stages``."""
    normalized = cfg.sanitized()
    return Pipeline.from_specs(normalized.stages, normalized.sample_rate_hz)


def pipeline_response(
    specs: Sequence[StageSpec],
    sample_rate_hz: float,
    *,
    points: int = DEFAULT_RESPONSE_POINTS,
) -> ResponseCurve:
    """Analytic response of a whole chain (flat when ``specs`` is empty)."""
    freqs = frequency_grid(sample_rate_hz, points)
    curves = [flat_response(freqs)]
    curves.extend(
        frequency_response(spec.kind, spec.cutoff_hz, sample_rate_hz, spec.q, frequencies=freqs)
        for spec in specs
    )
    return cascade_responses(curves)


def input_signal(cfg: GyroFilterConfig, *, rng: RandomSource = None) -> np.ndarray:
    """Generate the input selected by ``cfg.signal_kind``, plus configured extra noise."""
    normalized = cfg.sanitized()
    return generate_signal(
        normalized.signal_kind,
        normalized.buffer_length,
        normalized.sample_rate_hz,
        frequency_hz=normalized.signal_frequency_hz,
        step_time_s=normalized.step_time_s,
        chirp_start_hz=normalized.chirp_start_hz,
        chirp_end_hz=normalized.chirp_end_hz,
        noise_level=normalized.noise_level,
        rng=rng,
    )


def simulate(
    cfg: GyroFilterConfig,
    *,
    rng: RandomSource = None,
    samples: Optional[ArrayLike] = None,
) -> SimulationResult:
    """
    Run the configured pipeline once on a generated (or supplied) signal.

    Parameters
    ----------
    cfg:
        Runtime configuration; the signal kind is taken from it unless
        ``samples`` is given.
    rng:
        Generator or seed for the random inputs. Falls back to ``cfg.seed``.
    samples:
        Optional explicit input signal.
    """
    normalized = cfg.sanitized()
    fs = normalized.sample_rate_hz
    if samples is None:
        gen = as_generator(normalized.seed if rng is None else rng)
        signal_in = input_signal(normalized, rng=gen)
    else:
        signal_in = np.asarray(samples, dtype=float).reshape(-1)

    pipeline = build_pipeline(normalized)
    per_stage = pipeline.stage_outputs(signal_in)
    signal_out = per_stage[-1] if per_stage else signal_in.copy()

    levels = [("raw", 1.0)]
    levels.extend((name, relative_level(out, signal_in)) for name, out in zip(pipeline.names, per_stage))

    result = SimulationResult(
        series=TimeSeriesPair(time=time_axis(signal_in.size, fs), input=signal_in, output=signal_out),
        input_spectrum=spectrum(signal_in, fs),
        output_spectrum=spectrum(signal_out, fs),
        stage_levels=tuple(levels),
    )
    logger.info(
        "Simulated %d samples through %d stages; output level %.3f of input",
        signal_in.size,
        len(pipeline),
        levels[-1][1],
    )
    return result


def place_dynamic_notches(
    samples: ArrayLike,
    sample_rate_hz: float,
    band: Tuple[float, float],
    count: int,
    q: float,
    *,
    min_magnitude: Optional[float] = None,
    points: int = DEFAULT_RESPONSE_POINTS,
) -> DynamicNotchResult:
    """
    Detect the strongest spectral peaks in ``band`` and put a notch on each.

    ``q`` is validated even when the band holds no peaks.
    """
    fs = validate_sample_rate(sample_rate_hz)
    spec = spectrum(samples, fs)
    peaks = detect_peaks(spec.frequencies, spec.magnitudes, band, count, min_magnitude=min_magnitude)
    centers = [p.frequency for p in peaks]
    notches = design_dynamic_notches(centers, q, fs)
    response = dynamic_notch_response(centers, q, fs, points=points)
    if peaks:
        logger.info("Dynamic notches at %s Hz", ", ".join(f"{f:.1f}" for f in centers))
    else:
        logger.info("No spectral peaks in [%s, %s] Hz; dynamic notches disabled", band[0], band[1])
    return DynamicNotchResult(spectrum=spec.with_peaks(peaks), notches=tuple(notches), response=response)


def dynamic_notches_for(cfg: GyroFilterConfig, samples: ArrayLike) -> DynamicNotchResult:
    """:func:`place_dynamic_notches` using the dynamic notch settings of ``cfg``."""
    normalized = cfg.sanitized()
    return place_dynamic_notches(
        samples,
        normalized.sample_rate_hz,
        normalized.dyn_notch_band,
        normalized.dyn_notch_count,
        normalized.dyn_notch_q,
        min_magnitude=normalized.dyn_notch_min_db,
        points=normalized.response_points,
    )


__all__ = [
    "build_pipeline",
    "dynamic_notches_for",
    "input_signal",
    "pipeline_response",
    "place_dynamic_notches",
    "simulate",
]
