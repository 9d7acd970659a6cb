"""Configuration objects for gyro filter simulations.

This package knows how to load YAML descriptors (see the packaged
``pipeline.yaml``) into typed dataclasses:
- :mod:`runtime` holds sample rate, buffer sizes, input-signal and dynamic
  notch settings.
- :mod:`stages` describes the ordered filter chain a pipeline run builds.
"""

from .runtime import DEFAULT_CONFIG_PATH, GyroFilterConfig, config_from_mapping, load_config
from .stages import StageSpec, default_gyro_stages, pipeline_from_mapping

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "GyroFilterConfig",
    "StageSpec",
    "config_from_mapping",
    "default_gyro_stages",
    "load_config",
    "pipeline_from_mapping",
]
