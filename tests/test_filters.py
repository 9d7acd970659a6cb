import math

import numpy as np
import pytest
from scipy import signal

from gyrofilter.analysis.coefficients import BUTTERWORTH_Q, BiquadType, FilterKind, design_biquad
from gyrofilter.analysis.errors import InvalidParameterError
from gyrofilter.analysis.filters import (
    CUTOFF_CORRECTION,
    BiquadFilter,
    SinglePoleCascade,
    create_filter,
    single_pole_gain,
)


def _apply_all(stage, samples):
    return np.array([stage.apply(x) for x in samples])


def test_pt1_gain_matches_formula() -> None:
    gain = single_pole_gain(100.0, 4000.0)
    assert gain == pytest.approx(100.0 / (100.0 + 4000.0 / (2.0 * math.pi)), rel=1e-15)
    assert gain == pytest.approx(0.1357, abs=1e-3)


def test_cutoff_correction_constants() -> None:
    assert CUTOFF_CORRECTION == {1: 1.0, 2: 1.553773974, 3: 1.961459177}
    gain = single_pole_gain(100.0, 4000.0, order=3)
    scaled = 100.0 * 1.961459177
    assert gain == pytest.approx(scaled / (scaled + 4000.0 / (2.0 * math.pi)), rel=1e-15)


def test_gain_is_monotonic_and_clamped() -> None:
    cutoffs = np.logspace(-1, 9, 200)
    for order in (1, 2, 3):
        gains = [single_pole_gain(c, 4000.0, order) for c in cutoffs]
        assert all(b >= a for a, b in zip(gains, gains[1:]))
        assert max(gains) <= 1.0
    assert single_pole_gain(float("inf"), 4000.0) == 1.0


def test_gain_rejects_bad_parameters() -> None:
    with pytest.raises(InvalidParameterError):
        single_pole_gain(0.0, 4000.0)
    with pytest.raises(InvalidParameterError):
        single_pole_gain(100.0, 0.0)
    with pytest.raises(InvalidParameterError):
        single_pole_gain(100.0, 4000.0, order=4)
    with pytest.raises(InvalidParameterError):
        SinglePoleCascade(100.0, 4000.0, order=0)


def test_pt1_step_response_matches_recurrence() -> None:
    pt1 = SinglePoleCascade(100.0, 4000.0, order=1)
    gain = pt1.gain
    for n in range(1, 60):
        out = pt1.apply(1.0)
        assert out == pytest.approx(1.0 - (1.0 - gain) ** n, rel=1e-12)


def test_pt2_updates_stages_sequentially() -> None:
    pt2 = SinglePoleCascade(80.0, 4000.0, order=2)
    g = pt2.gain
    s1 = s2 = 0.0
    for x in (1.0, 0.5, -0.25, 2.0):
        s1 += (x - s1) * g
        s2 += (s1 - s2) * g
        assert pt2.apply(x) == pytest.approx(s2, rel=1e-15)
    assert pt2.state == pytest.approx((s1, s2))


def test_single_pole_block_matches_apply() -> None:
    rng = np.random.default_rng(3)
    x = rng.uniform(-1.0, 1.0, 300)
    ref = _apply_all(SinglePoleCascade(150.0, 4000.0, order=3), x)
    stage = SinglePoleCascade(150.0, 4000.0, order=3)
    out = np.concatenate([stage.process_block(x[:100]), stage.process_block(x[100:101]), stage.process_block(x[101:])])
    np.testing.assert_allclose(out, ref, rtol=0, atol=1e-12)


def test_biquad_matches_lfilter() -> None:
    coeffs = design_biquad(BiquadType.LOWPASS, 200.0, 4000.0, BUTTERWORTH_Q)
    rng = np.random.default_rng(7)
    x = rng.standard_normal(500)
    expected = signal.lfilter(coeffs.numerator, coeffs.denominator, x)
    np.testing.assert_allclose(_apply_all(BiquadFilter(coeffs), x), expected, rtol=0, atol=1e-12)


def test_biquad_block_keeps_state_between_calls() -> None:
    coeffs = design_biquad(BiquadType.NOTCH, 150.0, 4000.0, 5.0)
    rng = np.random.default_rng(11)
    x = rng.standard_normal(257)
    ref = _apply_all(BiquadFilter(coeffs), x)
    stage = BiquadFilter(coeffs)
    out = np.concatenate([stage.process_block(x[:1]), stage.process_block(x[1:130]), stage.process_block(x[130:])])
    np.testing.assert_allclose(out, ref, rtol=0, atol=1e-12)
    assert (stage.x1, stage.x2) == (x[-1], x[-2])


def test_reset_clears_all_state() -> None:
    stage = BiquadFilter.design(BiquadType.LOWPASS, 100.0, 4000.0, 0.7)
    first = _apply_all(stage, np.ones(20))
    stage.reset()
    assert (stage.x1, stage.x2, stage.y1, stage.y2) == (0.0, 0.0, 0.0, 0.0)
    np.testing.assert_array_equal(_apply_all(stage, np.ones(20)), first)

    pt = SinglePoleCascade(100.0, 4000.0, order=2)
    pt.apply(1.0)
    pt.reset()
    assert pt.state == (0.0, 0.0)


def test_create_filter_dispatch() -> None:
    pt3 = create_filter("pt3", 90.0, 4000.0)
    assert isinstance(pt3, SinglePoleCascade) and pt3.order == 3

    butter = create_filter(FilterKind.BUTTERWORTH, 250.0, 4000.0, q=5.0)
    assert isinstance(butter, BiquadFilter)
    assert butter.coefficients == design_biquad(BiquadType.LOWPASS, 250.0, 4000.0, BUTTERWORTH_Q)

    notch = create_filter("notch", 150.0, 4000.0, q=5.0)
    assert notch.coefficients == design_biquad(BiquadType.NOTCH, 150.0, 4000.0, 5.0)

    with pytest.raises(InvalidParameterError):
        create_filter("notch", 150.0, 4000.0)
    with pytest.raises(InvalidParameterError):
        create_filter("lowpass", 2500.0, 4000.0, q=1.0)
