"""Sequential filter chain applied sample by sample."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
from numpy.typing import ArrayLike

from ..analysis.coefficients import validate_sample_rate
from ..analysis.errors import InvalidParameterError, NumericInstabilityError
from ..analysis.filters import FilterStage
from ..config.stages import StageSpec

__all__ = ["Pipeline", "run_pipeline"]

logger = logging.getLogger(__name__)


def _as_signal(samples: ArrayLike) -> np.ndarray:
    values = np.asarray(samples, dtype=float)
    if values.ndim != 1:
        values = values.reshape(-1)
    if values.size == 0:
        raise InvalidParameterError("signal must contain at least one sample")
    if not np.all(np.isfinite(values)):
        raise InvalidParameterError("signal contains non-finite samples")
    return values


@dataclass(slots=True)
class Pipeline:
    """
    Ordered chain of stateful stages sharing one sample stream.

    Each input sample passes through every stage in declaration order; stage
    ``i`` consumes the output of stage ``i - 1``. The stages own their state,
    so build a new :class:`Pipeline` (see :meth:`from_specs`) for every
    unrelated run.
    """

    stages: List[FilterStage] = field(default_factory=list)
    names: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.names:
            self.names = [f"stage{i}" for i in range(len(self.stages))]
        if len(self.names) != len(self.stages):
            raise InvalidParameterError("names and stages must have the same length.")

    @classmethod
    def from_specs(cls, specs: Sequence[StageSpec], sample_rate_hz: float) -> "Pipeline":
        """Instantiate fresh filter state for every stage in ``specs``."""
        fs = validate_sample_rate(sample_rate_hz)
        stages = [spec.build(fs) for spec in specs]
        names = [spec.label for spec in specs]
        logger.debug("Built pipeline with %d stages at %.1f Hz: %s", len(stages), fs, names)
        return cls(stages=stages, names=names)

    def __len__(self) -> int:
        return len(self.stages)

    def reset(self) -> None:
        for stage in self.stages:
            stage.reset()

    def apply(self, sample: float) -> float:
        """Push one sample through every stage."""
        value = sample
        for stage in self.stages:
            value = stage.apply(value)
        return value

    def run(self, samples: ArrayLike) -> np.ndarray:
        """Filter ``samples`` and return one output sample per input sample."""
        values = _as_signal(samples)
        out = np.empty_like(values)
        stages = self.stages
        for i, sample in enumerate(values.tolist()):
            for stage in stages:
                sample = stage.apply(sample)
            out[i] = sample
        self._check_finite(out)
        return out

    def stage_outputs(self, samples: ArrayLike) -> List[np.ndarray]:
        """
        Run ``samples`` stage by stage and return every stage's output sequence.

        Each stage filters the whole block with ``process_block``, which leaves
        it in the same state as the sample-by-sample path of :meth:`run`.
        """
        current = _as_signal(samples)
        outputs: List[np.ndarray] = []
        for stage in self.stages:
            current = stage.process_block(current)
            self._check_finite(current)
            outputs.append(current)
        return outputs

    @staticmethod
    def _check_finite(values: np.ndarray) -> None:
        if not np.all(np.isfinite(values)):
            raise NumericInstabilityError("pipeline produced non-finite output samples")


def run_pipeline(specs: Sequence[StageSpec], samples: ArrayLike, sample_rate_hz: float) -> np.ndarray:
    """Build a fresh :class:`Pipeline` from ``specs`` and filter ``samples`` once."""
    return Pipeline.from_specs(specs, sample_rate_hz).run(samples)
