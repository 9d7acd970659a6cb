"""Runtime configuration for filter simulations and response plots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Tuple

import yaml

from ..analysis.signals import SignalKind
from .stages import StageSpec, default_gyro_stages, pipeline_from_mapping

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).with_name("pipeline.yaml")


@dataclass(slots=True)
class GyroFilterConfig:
    """
    Parameters an external UI would otherwise supply on every change.

    The defaults reproduce the gyro visualizer: a 4 kHz loop, 1000-sample
    buffers and the full decimation/RPM/low-pass/notch chain.
    """

    sample_rate_hz: float = 4000.0
    buffer_length: int = 1000
    response_points: int = 2000

    signal_kind: str = SignalKind.REALISTIC.value
    signal_frequency_hz: float = 100.0
    noise_level_percent: float = 0.0
    chirp_start_hz: float = 10.0
    chirp_end_hz: float = 500.0
    step_time_s: float = 0.1

    dyn_notch_count: int = 3
    dyn_notch_q: float = 3.5
    dyn_notch_min_hz: float = 60.0
    dyn_notch_max_hz: float = 600.0
    # Minimum peak magnitude (dB) for a dynamic notch; None keeps every maximum.
    dyn_notch_min_db: Optional[float] = None

    seed: Optional[int] = None
    stages: Tuple[StageSpec, ...] = field(default_factory=default_gyro_stages)

    @property
    def noise_level(self) -> float:
        """Extra noise amplitude as a fraction of full scale."""
        return max(0.0, float(self.noise_level_percent)) / 100.0

    @property
    def dyn_notch_band(self) -> Tuple[float, float]:
        return (float(self.dyn_notch_min_hz), float(self.dyn_notch_max_hz))

    def sanitized(self) -> GyroFilterConfig:
        """Return a copy with counts and sizes clamped to usable ranges."""
        low, high = sorted((float(self.dyn_notch_min_hz), float(self.dyn_notch_max_hz)))
        return GyroFilterConfig(
            sample_rate_hz=float(self.sample_rate_hz),
            buffer_length=max(1, int(self.buffer_length)),
            response_points=max(2, int(self.response_points)),
            signal_kind=SignalKind.parse(self.signal_kind).value,
            signal_frequency_hz=float(self.signal_frequency_hz),
            noise_level_percent=min(100.0, max(0.0, float(self.noise_level_percent))),
            chirp_start_hz=float(self.chirp_start_hz),
            chirp_end_hz=float(self.chirp_end_hz),
            step_time_s=max(0.0, float(self.step_time_s)),
            dyn_notch_count=max(0, int(self.dyn_notch_count)),
            dyn_notch_q=float(self.dyn_notch_q),
            dyn_notch_min_hz=low,
            dyn_notch_max_hz=high,
            dyn_notch_min_db=None if self.dyn_notch_min_db is None else float(self.dyn_notch_min_db),
            seed=None if self.seed is None else int(self.seed),
            stages=tuple(self.stages),
        )


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`GyroFilterConfig`."""
    return {f.name for f in fields(GyroFilterConfig)} - {"stages"}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``gyrofilter`` block into the root mapping."""
    if "gyrofilter" in data and isinstance(data["gyrofilter"], Mapping):
        merged: MutableMapping[str, Any] = {}
        for key, value in data.items():
            if key == "gyrofilter":
                merged.update(value)
            else:
                merged[key] = value
        return merged
    return dict(data)


def config_from_mapping(data: Mapping[str, Any] | None) -> GyroFilterConfig:
    """Build :class:`GyroFilterConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return GyroFilterConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload: dict[str, Any] = {key: normalized[key] for key in normalized.keys() & known}
    stage_entries = normalized.get("pipeline", normalized.get("stages"))
    if stage_entries is not None:
        payload["stages"] = pipeline_from_mapping(stage_entries)
    return GyroFilterConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> GyroFilterConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`GyroFilterConfig`.
    """
    if path is None:
        return GyroFilterConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.warning("Config file %s not found; using the built-in gyro filter chain", cfg_path)
        return GyroFilterConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    cfg = config_from_mapping(raw)
    logger.debug("Loaded %d pipeline stages at %.1f Hz from %s", len(cfg.stages), cfg.sample_rate_hz, cfg_path)
    return cfg


__all__ = ["DEFAULT_CONFIG_PATH", "GyroFilterConfig", "config_from_mapping", "load_config"]
