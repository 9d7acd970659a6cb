import math
import pathlib
import sys
import unittest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gyrofilter.analysis.coefficients import (  # noqa: E402
    BESSEL_4A_C,
    BESSEL_4A_Q,
    BESSEL_4B_C,
    BESSEL_4B_Q,
    BESSEL_Q,
    BUTTERWORTH_Q,
    DAMPED_Q,
    BiquadCoefficients,
    BiquadType,
    FilterKind,
    design_biquad,
    design_decimation,
    design_dynamic_notches,
    lowpass_q,
    notch_q,
    rpm_notch_center,
)
from gyrofilter.analysis.errors import (  # noqa: E402
    InvalidParameterError,
    NotchDivisionByZeroError,
    NumericInstabilityError,
)


def _gain_at(coeffs: BiquadCoefficients, z_inv: float) -> float:
    num = coeffs.b0 + coeffs.b1 * z_inv + coeffs.b2 * z_inv * z_inv
    den = 1.0 + coeffs.a1 * z_inv + coeffs.a2 * z_inv * z_inv
    return num / den


class DesignBiquadTest(unittest.TestCase):
    def test_lowpass_has_unity_dc_gain_and_zero_at_nyquist(self):
        coeffs = design_biquad(BiquadType.LOWPASS, 100.0, 4000.0, BUTTERWORTH_Q)
        self.assertAlmostEqual(_gain_at(coeffs, 1.0), 1.0, places=12)
        self.assertAlmostEqual(_gain_at(coeffs, -1.0), 0.0, places=12)

    def test_lowpass_matches_cookbook_formulas(self):
        omega = 2 * math.pi * 250.0 / 4000.0
        alpha = math.sin(omega) / (2 * 0.8)
        a0 = 1 + alpha
        coeffs = design_biquad("lowpass", 250.0, 4000.0, 0.8)
        self.assertAlmostEqual(coeffs.b1, (1 - math.cos(omega)) / a0, places=15)
        self.assertAlmostEqual(coeffs.b0, coeffs.b1 / 2, places=15)
        self.assertEqual(coeffs.b0, coeffs.b2)
        self.assertAlmostEqual(coeffs.a1, -2 * math.cos(omega) / a0, places=15)
        self.assertAlmostEqual(coeffs.a2, (1 - alpha) / a0, places=15)

    def test_notch_structure(self):
        coeffs = design_biquad(BiquadType.NOTCH, 150.0, 4000.0, 5.0)
        self.assertEqual(coeffs.b0, coeffs.b2)
        self.assertEqual(coeffs.b1, coeffs.a1)
        self.assertAlmostEqual(_gain_at(coeffs, 1.0), 1.0, places=12)
        self.assertAlmostEqual(_gain_at(coeffs, -1.0), 1.0, places=12)

    def test_design_is_idempotent(self):
        first = design_biquad(BiquadType.NOTCH, 123.4, 4000.0, 3.3)
        second = design_biquad(BiquadType.NOTCH, 123.4, 4000.0, 3.3)
        self.assertEqual(first.as_tuple(), second.as_tuple())
        self.assertEqual(first, second)

    def test_invalid_parameters_are_rejected(self):
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.LOWPASS, 2000.0, 4000.0, 1.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.LOWPASS, 3000.0, 4000.0, 1.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.LOWPASS, 0.0, 4000.0, 1.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.NOTCH, 100.0, 4000.0, 0.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.NOTCH, 100.0, -1.0, 1.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad(BiquadType.NOTCH, float("nan"), 4000.0, 1.0)
        with self.assertRaises(InvalidParameterError):
            design_biquad("highpass", 100.0, 4000.0, 1.0)

    def test_invalid_parameter_is_a_value_error(self):
        with self.assertRaises(ValueError):
            design_biquad(BiquadType.LOWPASS, 2500.0, 4000.0, 1.0)

    def test_coefficients_reject_non_finite_and_unstable_values(self):
        with self.assertRaises(NumericInstabilityError):
            BiquadCoefficients(float("nan"), 0.0, 0.0, 0.0, 0.0)
        with self.assertRaises(NumericInstabilityError):
            BiquadCoefficients(1.0, 0.0, 0.0, 0.0, 1.5)
        with self.assertRaises(NumericInstabilityError):
            BiquadCoefficients(1.0, 0.0, 0.0, -2.5, 0.9)


class DecimationDesignTest(unittest.TestCase):
    def test_bessel_sections_use_fixed_constants(self):
        stage_a, stage_b = design_decimation(200.0, 4000.0)
        self.assertEqual(stage_a, design_biquad(BiquadType.LOWPASS, BESSEL_4A_C * 200.0, 4000.0, BESSEL_4A_Q))
        self.assertEqual(stage_b, design_biquad(BiquadType.LOWPASS, BESSEL_4B_C * 200.0, 4000.0, BESSEL_4B_Q))

    def test_constants_are_exact(self):
        self.assertEqual(BESSEL_4A_C, 1.603357516)
        self.assertEqual(BESSEL_4A_Q, 0.805538282)
        self.assertEqual(BESSEL_4B_C, 1.430171560)
        self.assertEqual(BESSEL_4B_Q, 0.521934582)

    def test_scaled_cutoff_above_nyquist_is_rejected(self):
        with self.assertRaises(InvalidParameterError):
            design_decimation(1500.0, 4000.0)


class NotchHelpersTest(unittest.TestCase):
    def test_notch_q_from_center_and_bandwidth(self):
        self.assertAlmostEqual(notch_q(150.0, 5.0), 750.0 / 22475.0, places=15)
        self.assertAlmostEqual(notch_q(150.0, 5.0), 0.033371, places=5)

    def test_notch_q_division_by_zero(self):
        with self.assertRaises(NotchDivisionByZeroError):
            notch_q(100.0, 100.0)
        with self.assertRaises(ZeroDivisionError):
            notch_q(-50.0, 50.0)

    def test_rpm_notch_center(self):
        self.assertEqual(rpm_notch_center(3600.0, 2.0), 120.0)

    def test_dynamic_notches_keep_order(self):
        notches = design_dynamic_notches([300.0, 120.0], 3.5, 4000.0)
        self.assertEqual(len(notches), 2)
        self.assertEqual(notches[0], design_biquad(BiquadType.NOTCH, 300.0, 4000.0, 3.5))
        self.assertEqual(notches[1], design_biquad(BiquadType.NOTCH, 120.0, 4000.0, 3.5))


class FilterKindTest(unittest.TestCase):
    def test_parse_aliases(self):
        self.assertIs(FilterKind.parse("Butter"), FilterKind.BUTTERWORTH)
        self.assertIs(FilterKind.parse("PT-2"), FilterKind.PT2)
        self.assertIs(FilterKind.parse("lpf"), FilterKind.LOWPASS)
        self.assertIs(FilterKind.parse("LowPassGeneric"), FilterKind.LOWPASS)
        self.assertIs(FilterKind.parse("lowpass generic"), FilterKind.LOWPASS)
        self.assertIs(FilterKind.parse(FilterKind.NOTCH), FilterKind.NOTCH)

    def test_parse_unknown(self):
        with self.assertRaises(InvalidParameterError):
            FilterKind.parse("chebyshev")

    def test_orders(self):
        self.assertEqual([FilterKind.PT1.order, FilterKind.PT2.order, FilterKind.PT3.order], [1, 2, 3])
        self.assertTrue(FilterKind.PT3.is_single_pole)
        self.assertFalse(FilterKind.NOTCH.is_single_pole)

    def test_lowpass_q_flavors(self):
        self.assertEqual(lowpass_q(FilterKind.BUTTERWORTH), BUTTERWORTH_Q)
        self.assertEqual(lowpass_q(FilterKind.BESSEL), BESSEL_Q)
        self.assertEqual(lowpass_q(FilterKind.DAMPED), DAMPED_Q)
        self.assertEqual(lowpass_q(FilterKind.LOWPASS), 1.0)
        self.assertEqual(lowpass_q(FilterKind.LOWPASS, 0.9), 0.9)
        with self.assertRaises(InvalidParameterError):
            lowpass_q(FilterKind.NOTCH)


if __name__ == "__main__":
    unittest.main()
