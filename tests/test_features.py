import numpy as np
import pytest

from gyrofilter.analysis.errors import InvalidParameterError
from gyrofilter.analysis.features import relative_level, rms


def test_rms_of_constant_and_sine() -> None:
    assert rms([2.0, -2.0, 2.0]) == pytest.approx(2.0)
    t = np.arange(1000) / 1000.0
    assert rms(np.sin(2 * np.pi * 10 * t)) == pytest.approx(1 / np.sqrt(2), rel=1e-9)


def test_relative_level() -> None:
    assert relative_level([0.5, -0.5], [1.0, -1.0]) == pytest.approx(0.5)
    assert relative_level([1.0], [0.0]) == 0.0


def test_rejects_empty_and_2d() -> None:
    with pytest.raises(InvalidParameterError):
        rms([])
    with pytest.raises(InvalidParameterError):
        rms([[1.0, 2.0]])
