"""Result containers handed to plotting front ends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..analysis.coefficients import BiquadCoefficients
from ..analysis.response import ResponseCurve
from ..analysis.spectrum import SpectralPeak, SpectrumResult


@dataclass(frozen=True, eq=False)
class TimeSeriesPair:
    """Input and filtered output on a shared time axis (seconds)."""

    time: np.ndarray
    input: np.ndarray
    output: np.ndarray


@dataclass(frozen=True, eq=False)
class SimulationResult:
    series: TimeSeriesPair
    input_spectrum: SpectrumResult
    output_spectrum: SpectrumResult
    # (stage label, output RMS relative to the raw input RMS), in chain order.
    stage_levels: Tuple[Tuple[str, float], ...]


@dataclass(frozen=True, eq=False)
class DynamicNotchResult:
    """Spectrum with detected peaks, the notches placed on them and their combined response."""

    spectrum: SpectrumResult
    notches: Tuple[BiquadCoefficients, ...]
    response: ResponseCurve

    @property
    def peaks(self) -> Tuple[SpectralPeak, ...]:
        return self.spectrum.peaks
