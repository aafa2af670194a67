#!/usr/bin/env python3
"""
FAIRLENS — Statistical Test Suite Tests

Run: python tests_rng_statistics.py -v

Deterministic batches with known behavior:
  SPREAD      — midpoints of 1000 equal cells (perfectly uniform, sorted)
  ALTERNATING — 0.1, 0.9, 0.1, ... (balanced but perfectly predictable)
  CONSTANT    — one repeated value
"""

import random
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

SPREAD = [(i + 0.5) / 1000 for i in range(1000)]
ALTERNATING = [0.1, 0.9] * 50
CONSTANT = [0.5] * 100


class TestDistributionHelpers(unittest.TestCase):

    def test_erf_odd_and_bounded(self):
        from tools.rng_statistics import erf
        self.assertAlmostEqual(erf(0.0), 0.0, places=6)
        self.assertAlmostEqual(erf(1.0), 0.8427007929, places=6)
        self.assertAlmostEqual(erf(-1.0), -erf(1.0))
        self.assertLessEqual(erf(10.0), 1.0)

    def test_normal_cdf(self):
        from tools.rng_statistics import normal_cdf
        self.assertAlmostEqual(normal_cdf(0.0), 0.5, places=6)
        self.assertAlmostEqual(normal_cdf(1.96), 0.975, places=3)
        self.assertAlmostEqual(normal_cdf(-1.96), 0.025, places=3)

    def test_chi_square_cdf(self):
        from tools.rng_statistics import chi_square_cdf
        self.assertEqual(chi_square_cdf(0.0, 9), 0.0)
        self.assertEqual(chi_square_cdf(-1.0, 9), 0.0)
        # Wilson–Hilferty median of chi2(10)
        self.assertAlmostEqual(chi_square_cdf(10 * (1 - 2 / 90) ** 3, 10), 0.5, places=6)
        # Tabulated 5% critical value for 9 degrees of freedom
        self.assertAlmostEqual(1 - chi_square_cdf(16.919, 9), 0.05, delta=0.005)


class TestChiSquare(unittest.TestCase):

    def test_uniform_batch_passes(self):
        from tools.rng_statistics import chi_square_test
        r = chi_square_test(SPREAD)
        self.assertEqual(r.test_name, "Chi-Square Test")
        self.assertEqual(r.statistic, 0.0)
        self.assertEqual(r.p_value, 1.0)
        self.assertTrue(r.passed)
        self.assertEqual(r.details["observed"], [100] * 10)
        self.assertEqual(r.details["degrees_of_freedom"], 9)

    def test_integer_grid_passes(self):
        from tools.rng_statistics import chi_square_test
        r = chi_square_test([i / 1000 for i in range(1000)])
        self.assertTrue(r.passed)
        self.assertGreater(r.p_value, 0.99)

    def test_constant_batch_fails(self):
        from tools.rng_statistics import chi_square_test
        r = chi_square_test(CONSTANT)
        self.assertAlmostEqual(r.statistic, 900.0)
        self.assertLess(r.p_value, 0.001)
        self.assertFalse(r.passed)

    def test_value_one_lands_in_last_bin(self):
        from tools.rng_statistics import chi_square_test
        r = chi_square_test([1.0] * 30)
        self.assertEqual(r.details["observed"][-1], 30)

    def test_significance_level_is_honored(self):
        from tools.rng_statistics import chi_square_test
        batch = [0.05] * 14 + [(i + 0.5) / 90 for i in range(90)]
        loose = chi_square_test(batch, significance_level=1e-9)
        strict = chi_square_test(batch, significance_level=0.999999)
        self.assertEqual(loose.p_value, strict.p_value)
        self.assertTrue(loose.passed)
        self.assertFalse(strict.passed)


class TestRuns(unittest.TestCase):

    def test_alternating_has_too_many_runs(self):
        from tools.rng_statistics import runs_test
        r = runs_test(ALTERNATING)
        self.assertEqual(r.details["runs"], 100)
        self.assertEqual(r.details["n0"], 50)
        self.assertEqual(r.details["n1"], 50)
        self.assertGreater(r.statistic, 0)
        self.assertFalse(r.passed)

    def test_sorted_has_too_few_runs(self):
        from tools.rng_statistics import runs_test
        r = runs_test(SPREAD)
        self.assertEqual(r.details["runs"], 2)
        self.assertLess(r.statistic, 0)
        self.assertFalse(r.passed)

    def test_insufficient_data(self):
        from tools.rng_statistics import runs_test
        r = runs_test([0.1, 0.2, 0.3])
        self.assertFalse(r.passed)
        self.assertEqual(r.p_value, 1.0)
        self.assertIn("error", r.details)

    def test_constant_batch_is_not_evaluated(self):
        from tools.rng_statistics import runs_test
        r = runs_test(CONSTANT)
        self.assertFalse(r.passed)
        self.assertEqual(r.p_value, 1.0)
        self.assertIn("error", r.details)


class TestSerialCorrelation(unittest.TestCase):

    def test_alternating_is_perfectly_anticorrelated(self):
        from tools.rng_statistics import serial_correlation_test
        r = serial_correlation_test(ALTERNATING)
        self.assertAlmostEqual(r.statistic, -1.0)
        self.assertEqual(r.p_value, 0.0)
        self.assertFalse(r.passed)

    def test_sorted_is_correlated(self):
        from tools.rng_statistics import serial_correlation_test
        r = serial_correlation_test(SPREAD)
        self.assertGreater(r.statistic, 0.99)
        self.assertFalse(r.passed)

    def test_lag_two_on_alternating(self):
        from tools.rng_statistics import serial_correlation_test
        r = serial_correlation_test(ALTERNATING, lag=2)
        self.assertAlmostEqual(r.statistic, 1.0)
        self.assertEqual(r.details["lag"], 2)
        self.assertEqual(r.details["sample_size"], 98)

    def test_insufficient_data_for_lag(self):
        from tools.rng_statistics import serial_correlation_test
        r = serial_correlation_test([0.1] * 10, lag=1)
        self.assertFalse(r.passed)
        self.assertEqual(r.p_value, 1.0)
        self.assertIn("error", r.details)

    def test_zero_variance(self):
        from tools.rng_statistics import serial_correlation_test
        r = serial_correlation_test(CONSTANT)
        self.assertFalse(r.passed)
        self.assertIn("error", r.details)


class TestFrequency(unittest.TestCase):

    def test_balanced_batch(self):
        from tools.rng_statistics import frequency_test
        r = frequency_test(SPREAD)
        self.assertEqual(r.details["count_above"], 500)
        self.assertEqual(r.statistic, 0.0)
        self.assertGreater(r.p_value, 0.99)
        self.assertLessEqual(r.p_value, 1.0)
        self.assertTrue(r.passed)

    def test_one_sided_batch(self):
        from tools.rng_statistics import frequency_test
        r = frequency_test([0.9] * 100)
        self.assertAlmostEqual(r.statistic, 9.9)
        self.assertFalse(r.passed)
        self.assertEqual(r.details["ratio"], 1.0)

    def test_continuity_correction(self):
        """|61 - 60| - 0.5 over sqrt(30)."""
        from tools.rng_statistics import frequency_test
        r = frequency_test([0.9] * 61 + [0.1] * 59)
        self.assertAlmostEqual(r.statistic, 0.5 / 30 ** 0.5)
        self.assertTrue(r.passed)

    def test_custom_threshold(self):
        from tools.rng_statistics import frequency_test
        r = frequency_test([0.3] * 50 + [0.1] * 50, threshold=0.2)
        self.assertEqual(r.details["count_above"], 50)


class TestGap(unittest.TestCase):

    def test_no_hits_is_not_evaluated(self):
        from tools.rng_statistics import gap_test
        r = gap_test([0.9] * 200)
        self.assertFalse(r.passed)
        self.assertEqual(r.p_value, 1.0)
        self.assertIn("error", r.details)

    def test_consecutive_hits_are_not_gaps(self):
        from tools.rng_statistics import gap_test
        r = gap_test(ALTERNATING)
        self.assertEqual(r.details["gaps"], 49)
        self.assertEqual(r.details["max_gap"], 1)
        self.assertEqual(r.details["observed"], [0, 49])
        self.assertFalse(r.passed)

    def test_bins_capped(self):
        from tools.rng_statistics import gap_test
        batch = ([0.1] + [0.9] * 15) * 12
        r = gap_test(batch)
        self.assertEqual(len(r.details["observed"]), 10)
        self.assertEqual(r.details["observed"][-1], r.details["gaps"])
        self.assertAlmostEqual(sum(r.details["expected"]), r.details["gaps"])


class TestEntropy(unittest.TestCase):

    def test_spread_batch_has_high_entropy(self):
        from tools.rng_statistics import entropy_test
        r = entropy_test(SPREAD)
        self.assertTrue(r.passed)
        self.assertGreater(r.details["normalized_entropy"], 0.95)
        self.assertEqual(r.p_value, r.details["normalized_entropy"])
        self.assertEqual(r.details["max_entropy"], 8.0)

    def test_two_values_have_one_bit(self):
        from tools.rng_statistics import entropy_test
        r = entropy_test(ALTERNATING)
        self.assertAlmostEqual(r.statistic, 1.0)
        self.assertAlmostEqual(r.details["normalized_entropy"], 0.125)
        self.assertEqual(r.details["percentage_of_max"], "12.50%")
        self.assertFalse(r.passed)

    def test_constant_has_zero_entropy(self):
        from tools.rng_statistics import entropy_test
        r = entropy_test(CONSTANT)
        self.assertEqual(r.statistic, 0.0)
        self.assertFalse(r.passed)


class TestResultShape(unittest.TestCase):

    def test_p_values_in_unit_interval(self):
        from tools.rng_statistics import (
            chi_square_test, entropy_test, frequency_test, gap_test, runs_test,
            serial_correlation_test,
        )
        rng = random.Random(1234)
        batch = [rng.random() for _ in range(500)]
        for fn in (chi_square_test, runs_test, serial_correlation_test,
                   frequency_test, gap_test, entropy_test):
            r = fn(batch)
            self.assertGreaterEqual(r.p_value, 0.0, r.test_name)
            self.assertLessEqual(r.p_value, 1.0, r.test_name)

    def test_to_dict_and_frozen(self):
        from dataclasses import FrozenInstanceError
        from tools.rng_statistics import chi_square_test
        r = chi_square_test(SPREAD)
        d = r.to_dict()
        self.assertEqual(set(d), {"test_name", "statistic", "p_value", "passed", "details"})
        with self.assertRaises(FrozenInstanceError):
            r.passed = False


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
