"""Pipeline composition and simulation.

This package sits between configuration and the numeric core: it builds the
ordered filter chain from stage descriptors, runs signals through it sample by
sample, and bundles time series, spectra and dynamic notch placements into
result objects for plotting front ends.
"""

from .models import DynamicNotchResult, SimulationResult, TimeSeriesPair
from .pipeline import Pipeline, run_pipeline
from .pipeline_wiring import (
    build_pipeline,
    dynamic_notches_for,
    input_signal,
    pipeline_response,
    place_dynamic_notches,
    simulate,
)

__all__ = [
    "Pipeline",
    "run_pipeline",
    "TimeSeriesPair",
    "SimulationResult",
    "DynamicNotchResult",
    "build_pipeline",
    "dynamic_notches_for",
    "input_signal",
    "pipeline_response",
    "place_dynamic_notches",
    "simulate",
]
