"""Pipeline stage descriptors and their mapping (YAML) representation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..analysis.coefficients import (
    BESSEL_4A_C,
    BESSEL_4A_Q,
    BESSEL_4B_C,
    BESSEL_4B_Q,
    FilterKind,
    notch_q,
    rpm_notch_center,
)
from ..analysis.errors import InvalidParameterError
from ..analysis.filters import FilterStage, create_filter


@dataclass(frozen=True)
class StageSpec:
    """
    Read-only description of one pipeline stage.

    ``cutoff_hz`` is the low-pass cutoff, or the center frequency for notches.
    ``q`` is only used by ``lowpass`` and ``notch`` stages.
    """

    kind: FilterKind
    cutoff_hz: float
    q: Optional[float] = None
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", FilterKind.parse(self.kind))

    @property
    def label(self) -> str:
        return self.name or f"{self.kind.value}@{self.cutoff_hz:g}Hz"

    def build(self, sample_rate_hz: float) -> FilterStage:
        """Instantiate a fresh stateful filter for this stage."""
        return create_filter(self.kind, self.cutoff_hz, sample_rate_hz, self.q)


def decimation_stages(cutoff_hz: float, name: str = "decimation") -> Tuple[StageSpec, StageSpec]:
    """The two biquad sections of the 4-pole Bessel decimation filter."""
    cutoff = float(cutoff_hz)
    return (
        StageSpec(FilterKind.LOWPASS, BESSEL_4A_C * cutoff, BESSEL_4A_Q, f"{name}_a"),
        StageSpec(FilterKind.LOWPASS, BESSEL_4B_C * cutoff, BESSEL_4B_Q, f"{name}_b"),
    )


def rpm_notch_stage(rpm: float, ratio: float, q: float, name: str = "rpm") -> StageSpec:
    return StageSpec(FilterKind.NOTCH, rpm_notch_center(rpm, ratio), float(q), name)


def notch_stage_from_bandwidth(center_hz: float, bandwidth_hz: float, name: str = "") -> StageSpec:
    """Notch whose Q is derived from its center and cutoff/bandwidth parameter."""
    return StageSpec(FilterKind.NOTCH, float(center_hz), notch_q(center_hz, bandwidth_hz), name)


def default_gyro_stages() -> Tuple[StageSpec, ...]:
    """
    Full gyro chain: decimation, RPM notch, two PT1 low-passes, two static notches.
    """
    return (
        *decimation_stages(200.0),
        StageSpec(FilterKind.NOTCH, 120.0, 20.0, "rpm"),
        StageSpec(FilterKind.PT1, 200.0, None, "lpf1"),
        StageSpec(FilterKind.PT1, 150.0, None, "lpf2"),
        StageSpec(FilterKind.NOTCH, 150.0, 5.0, "notch1"),
        StageSpec(FilterKind.NOTCH, 250.0, 8.0, "notch2"),
    )


def _require(entry: Mapping[str, Any], key: str, index: int) -> Any:
    if key not in entry or entry[key] is None:
        raise InvalidParameterError(f"pipeline stage #{index} is missing '{key}'")
    return entry[key]


def _float_or_none(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidParameterError(f"Expected a number, got {value!r}") from None


def stages_from_mapping(entry: Mapping[str, Any], index: int = 0) -> List[StageSpec]:
    """
    Parse one stage mapping.

    Supported shapes::

        {type: pt1, cutoff_hz: 200}
        {type: lowpass, cutoff_hz: 300, q: 0.8}
        {type: notch, cutoff_hz: 150, q: 5}
        {type: notch, center_hz: 150, bandwidth_hz: 140}
        {type: rpm_notch, rpm: 3600, ratio: 2, q: 20}
        {type: decimation, cutoff_hz: 200}

    ``decimation`` expands into two stages; every other shape yields one.
    """
    if not isinstance(entry, Mapping):
        raise InvalidParameterError(f"pipeline stage #{index} must be a mapping, got {type(entry).__name__}")
    raw_type = str(_require(entry, "type", index)).strip().lower().replace("-", "_").replace(" ", "_")
    name = str(entry.get("name") or "")

    if raw_type in {"decimation", "bessel4", "bessel_4"}:
        return list(decimation_stages(_float_or_none(_require(entry, "cutoff_hz", index)), name or "decimation"))
    if raw_type in {"rpm", "rpm_notch"}:
        return [
            rpm_notch_stage(
                _float_or_none(_require(entry, "rpm", index)),
                _float_or_none(_require(entry, "ratio", index)),
                _float_or_none(_require(entry, "q", index)),
                name or "rpm",
            )
        ]

    kind = FilterKind.parse(raw_type)
    if kind is FilterKind.NOTCH and "bandwidth_hz" in entry:
        center = entry.get("center_hz", entry.get("cutoff_hz"))
        if center is None:
            raise InvalidParameterError(f"pipeline stage #{index} is missing 'center_hz'")
        return [notch_stage_from_bandwidth(_float_or_none(center), _float_or_none(entry["bandwidth_hz"]), name)]

    cutoff = entry.get("cutoff_hz", entry.get("center_hz"))
    if cutoff is None:
        raise InvalidParameterError(f"pipeline stage #{index} is missing 'cutoff_hz'")
    return [StageSpec(kind, _float_or_none(cutoff), _float_or_none(entry.get("q")), name)]


def pipeline_from_mapping(entries: Iterable[Mapping[str, Any]] | None) -> Tuple[StageSpec, ...]:
    """Parse a ``pipeline:`` list into an ordered tuple of :class:`StageSpec`."""
    if entries is None:
        return ()
    if isinstance(entries, (str, bytes)) or isinstance(entries, Mapping):
        raise InvalidParameterError("pipeline must be a list of stage mappings")
    stages: List[StageSpec] = []
    for index, entry in enumerate(entries):
        stages.extend(stages_from_mapping(entry, index))
    return tuple(stages)


__all__ = [
    "StageSpec",
    "decimation_stages",
    "default_gyro_stages",
    "notch_stage_from_bandwidth",
    "pipeline_from_mapping",
    "rpm_notch_stage",
    "stages_from_mapping",
]
