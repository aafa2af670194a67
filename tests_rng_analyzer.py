#!/usr/bin/env python3
"""
FAIRLENS — Fairness Aggregator Tests

Run: python tests_rng_analyzer.py -v
"""

import random
import sys
import unittest
from datetime import timezone
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

ALTERNATING = [0.1, 0.9] * 50


def _test(passed: bool):
    from tools.rng_statistics import TestResult
    return TestResult(test_name="t", statistic=0.0, p_value=0.5, passed=passed)


def _anomaly(confidence: float, description: str = "x"):
    from config.fairness_schema import AnomalyType
    from tools.rng_anomaly import AnomalyResult
    return AnomalyResult(detected=True, type=AnomalyType.BIAS,
                         confidence=confidence, description=description)


class TestAnalyze(unittest.TestCase):

    def test_insufficient_data(self):
        from tools.rng_analyzer import analyze
        r = analyze([0.5] * 10)
        self.assertEqual(r.verdict.value, "insufficient_data")
        self.assertEqual(r.overall_score, 0)
        self.assertEqual(r.tests, ())
        self.assertEqual(r.anomalies, ())
        self.assertIn("got 10", r.summary)

    def test_comprehensive_runs_everything(self):
        from tools.rng_analyzer import analyze
        r = analyze(ALTERNATING)
        names = [t.test_name for t in r.tests]
        self.assertEqual(names, ["Chi-Square Test", "Runs Test", "Serial Correlation Test",
                                 "Frequency Test", "Entropy Test", "Gap Test"])
        self.assertEqual([a.type.value for a in r.anomalies], ["bias", "pattern"])
        self.assertEqual(r.overall_score, 0)
        self.assertEqual(r.verdict.value, "concerning")
        self.assertIn("Top concern:", r.summary)

    def test_gap_test_needs_one_hundred(self):
        from tools.rng_analyzer import analyze
        r = analyze(ALTERNATING[:99], {"type": "statistical"})
        self.assertEqual(len(r.tests), 5)
        self.assertNotIn("Gap Test", [t.test_name for t in r.tests])

    def test_statistical_skips_anomalies(self):
        from tools.rng_analyzer import analyze
        r = analyze(ALTERNATING, {"type": "statistical"})
        self.assertEqual(len(r.tests), 6)
        self.assertEqual(r.anomalies, ())

    def test_anomaly_skips_tests(self):
        from tools.rng_analyzer import analyze
        r = analyze(ALTERNATING, {"type": "anomaly"})
        self.assertEqual(r.tests, ())
        self.assertEqual(len(r.anomalies), 2)
        # 100% pass rate when nothing ran, minus 2 × 25, plus the sample bonus
        self.assertEqual(r.overall_score, 60)
        self.assertEqual(r.verdict.value, "suspicious")

    def test_quick(self):
        from tools.rng_analyzer import analyze
        r = analyze(ALTERNATING, {"type": "quick"})
        self.assertEqual([t.test_name for t in r.tests], ["Chi-Square Test", "Frequency Test"])
        self.assertEqual(len(r.anomalies), 2)
        # 1/2 tests passed → 50 − 50 + 10
        self.assertEqual(r.overall_score, 10)
        self.assertEqual(r.verdict.value, "concerning")

    def test_timestamps_enable_timing(self):
        from config.fairness_schema import AnalysisOptions
        from tools.rng_analyzer import analyze
        opts = AnalysisOptions(type="anomaly", timestamps=[i * 500 for i in range(40)])
        r = analyze([0.9] * 40, opts)
        self.assertIn("timing", [a.type.value for a in r.anomalies])

    def test_invalid_options(self):
        from pydantic import ValidationError
        from tools.rng_analyzer import analyze
        with self.assertRaises(ValidationError):
            analyze(ALTERNATING, {"type": "thorough"})
        with self.assertRaises(ValidationError):
            analyze(ALTERNATING, {"significanceLevel": 1.5})

    def test_result_shape(self):
        from tools.rng_analyzer import analyze
        a = analyze(ALTERNATING)
        b = analyze(ALTERNATING)
        self.assertEqual(len(a.id), 32)
        self.assertNotEqual(a.id, b.id)
        self.assertEqual(a.timestamp.tzinfo, timezone.utc)
        self.assertEqual(a.sample_size, 100)

        d = a.to_dict()
        self.assertEqual(d["verdict"], "concerning")
        self.assertEqual(d["analysis_type"], "comprehensive")
        self.assertEqual(len(d["tests"]), 6)
        self.assertEqual(d["anomalies"][0]["type"], "bias")
        self.assertIsInstance(d["timestamp"], str)

    def test_random_batch_bounds(self):
        from tools.rng_analyzer import analyze
        rng = random.Random(2024)
        r = analyze([rng.random() for _ in range(2000)])
        self.assertGreaterEqual(r.overall_score, 0)
        self.assertLessEqual(r.overall_score, 100)
        self.assertIn(r.verdict.value, ("fair", "suspicious", "concerning"))
        for t in r.tests:
            self.assertGreaterEqual(t.p_value, 0.0)
            self.assertLessEqual(t.p_value, 1.0)


class TestScoring(unittest.TestCase):

    def test_all_passed_clamps_to_100(self):
        from tools.rng_analyzer import _assess
        score, verdict, summary = _assess([_test(True)] * 5, [], 1000)
        self.assertEqual(score, 100)
        self.assertEqual(verdict.value, "fair")
        self.assertEqual(summary, "RNG appears fair. 5/5 statistical tests passed.")

    def test_suspicious_boundary(self):
        from tools.rng_analyzer import _assess
        score, verdict, _ = _assess([_test(True), _test(False)], [], 100)
        self.assertEqual(score, 60)
        self.assertEqual(verdict.value, "suspicious")

    def test_concerning(self):
        from tools.rng_analyzer import _assess
        score, verdict, summary = _assess([_test(True), _test(False)], [], 10)
        self.assertEqual(score, 55)
        self.assertEqual(verdict.value, "concerning")
        self.assertTrue(summary.startswith("Significant issues detected. Only 1/2"))

    def test_rounds_half_up(self):
        """100 − 0.5 × 25 + 5 = 92.5 → 93."""
        from tools.rng_analyzer import _assess
        score, _, _ = _assess([_test(True)], [_anomaly(0.5)], 10)
        self.assertEqual(score, 93)

    def test_score_floor(self):
        from tools.rng_analyzer import _assess
        score, verdict, _ = _assess([_test(False)], [_anomaly(1.0)] * 5, 1000)
        self.assertEqual(score, 0)
        self.assertEqual(verdict.value, "concerning")

    def test_top_concern_is_highest_confidence(self):
        from tools.rng_analyzer import _assess
        anomalies = [_anomaly(0.2, "minor"), _anomaly(0.9, "major"), _anomaly(0.5, "middle")]
        _, _, summary = _assess([_test(True)] * 4, anomalies, 1000)
        self.assertTrue(summary.endswith("Top concern: major"))
        # input order untouched
        self.assertEqual([a.description for a in anomalies], ["minor", "major", "middle"])

    def test_nothing_ran(self):
        from tools.rng_analyzer import _assess
        score, verdict, summary = _assess([], [], 1000)
        self.assertEqual(score, 0)
        self.assertEqual(verdict.value, "insufficient_data")
        self.assertEqual(summary, "No tests could be performed.")

    def test_verdict_uses_unrounded_score(self):
        """100 − 30.4 + 10 = 79.6: reported as 80, judged below 80."""
        from tools.rng_analyzer import _assess
        score, verdict, _ = _assess([_test(True)] * 6, [_anomaly(1.0), _anomaly(0.216)], 100)
        self.assertEqual(score, 80)
        self.assertEqual(verdict.value, "suspicious")

        score, verdict, _ = _assess([_test(True)] * 6,
                                    [_anomaly(0.8), _anomaly(0.8), _anomaly(0.416)], 100)
        self.assertEqual(score, 60)
        self.assertEqual(verdict.value, "concerning")

    def test_anomaly_type_on_clean_batch(self):
        from tools.rng_analyzer import analyze
        with patch("tools.rng_analyzer.detect_all_anomalies", return_value=[]):
            r = analyze([0.5] * 100, {"type": "anomaly"})
        self.assertEqual(r.verdict.value, "insufficient_data")
        self.assertEqual(r.overall_score, 0)
        self.assertEqual(r.summary, "No tests could be performed.")

    def test_anomalies_ordered_by_confidence(self):
        from tools.rng_analyzer import analyze
        detected = [_anomaly(0.2, "minor"), _anomaly(0.9, "major"),
                    _anomaly(0.5, "middle"), _anomaly(0.9, "second major")]
        with patch("tools.rng_analyzer.detect_all_anomalies", return_value=detected):
            r = analyze([0.5] * 100, {"type": "anomaly"})
        self.assertEqual([a.description for a in r.anomalies],
                         ["major", "second major", "middle", "minor"])
        self.assertTrue(r.summary.endswith("Top concern: major"))


class TestHelpers(unittest.TestCase):

    def test_quick_check_small_batch(self):
        from tools.rng_analyzer import quick_fairness_check
        self.assertEqual(quick_fairness_check([0.5] * 5),
                         {"fair": True, "confidence": 0.0,
                          "reason": "Insufficient data for assessment"})

    def test_quick_check_biased_batch(self):
        from tools.rng_analyzer import quick_fairness_check
        r = quick_fairness_check(ALTERNATING)
        self.assertFalse(r["fair"])
        self.assertAlmostEqual(r["confidence"], 0.10)
        self.assertTrue(r["reason"].startswith("Significant issues detected"))

    def test_validate_sequence_match(self):
        from tools.rng_analyzer import validate_result_sequence
        r = validate_result_sequence([0.1, 0.2, 0.3], [0.1, 0.20005, 0.3])
        self.assertTrue(r["all_valid"])
        self.assertEqual(r["valid_count"], 3)
        self.assertEqual(r["invalid_indices"], [])

    def test_validate_sequence_mismatch(self):
        from tools.rng_analyzer import validate_result_sequence
        r = validate_result_sequence([0.1, 0.2, 0.3], [0.1, 0.25, 0.3])
        self.assertFalse(r["all_valid"])
        self.assertEqual(r["valid_count"], 2)
        self.assertEqual(r["invalid_indices"], [1])
        self.assertEqual(r["mismatch_details"], [{"index": 1, "expected": 0.2, "actual": 0.25}])

    def test_validate_sequence_length_mismatch(self):
        from tools.rng_analyzer import validate_result_sequence
        r = validate_result_sequence([0.1, 0.2], [0.1])
        self.assertFalse(r["all_valid"])
        self.assertEqual(r["valid_count"], 0)
        self.assertEqual(r["mismatch_details"], [{"index": -1, "expected": 2, "actual": 1}])


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
