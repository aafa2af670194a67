#!/usr/bin/env python3
"""
FAIRLENS — Anomaly Detector Tests

Run: python tests_rng_anomaly.py -v
"""

import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

SPREAD = [(i + 0.5) / 1000 for i in range(1000)]
ALTERNATING = [0.1, 0.9] * 50


class TestStreaks(unittest.TestCase):

    def test_long_winning_streak(self):
        from tools.rng_anomaly import detect_suspicious_streaks
        r = detect_suspicious_streaks([0.9] * 20 + [0.1, 0.9] * 20)
        self.assertTrue(r.detected)
        self.assertEqual(r.type.value, "streak")
        self.assertEqual(r.details["max_win_streak"], 20)
        self.assertEqual(r.details["max_loss_streak"], 1)
        self.assertAlmostEqual(r.details["prob_win_streak"], 41 * 0.5 ** 20)
        self.assertAlmostEqual(r.confidence, 1 - 41 * 0.5 ** 20)
        self.assertIn("20-game winning streak", r.description)

    def test_streak_then_noise(self):
        import random
        from tools.rng_anomaly import detect_suspicious_streaks
        rng = random.Random(99)
        r = detect_suspicious_streaks([0.9] * 20 + [rng.random() for _ in range(80)])
        self.assertTrue(r.detected)
        self.assertGreater(r.confidence, 0.0)
        self.assertGreaterEqual(r.details["max_win_streak"], 20)

    def test_losing_streak_reported_first(self):
        from tools.rng_anomaly import detect_suspicious_streaks
        r = detect_suspicious_streaks([0.1] * 20 + [0.9] * 20)
        self.assertTrue(r.detected)
        self.assertIn("losing streak", r.description)

    def test_alternating_has_no_streak(self):
        from tools.rng_anomaly import detect_suspicious_streaks
        r = detect_suspicious_streaks(ALTERNATING)
        self.assertFalse(r.detected)
        self.assertEqual(r.confidence, 0.0)
        self.assertEqual(r.description, "")

    def test_threshold_is_inclusive_win(self):
        from tools.rng_anomaly import detect_suspicious_streaks
        r = detect_suspicious_streaks([0.5] * 5, win_threshold=0.5)
        self.assertEqual(r.details["max_win_streak"], 5)
        self.assertEqual(r.details["max_loss_streak"], 0)


class TestBias(unittest.TestCase):

    def test_one_quarter_dominates(self):
        from tools.rng_anomaly import detect_distribution_bias
        r = detect_distribution_bias([0.1] * 100)
        self.assertTrue(r.detected)
        self.assertEqual(r.details["observed"], [100, 0, 0, 0])
        self.assertEqual(r.details["max_deviation_bin"], 0)
        self.assertEqual(r.details["deviation_direction"], "high")
        self.assertEqual(r.confidence, 1.0)
        self.assertIn("[0.00-0.25]", r.description)
        self.assertIn("higher than expected", r.description)

    def test_uniform_has_no_bias(self):
        from tools.rng_anomaly import detect_distribution_bias
        r = detect_distribution_bias(SPREAD)
        self.assertFalse(r.detected)
        self.assertEqual(r.details["observed"], [250, 250, 250, 250])
        self.assertEqual(r.details["max_deviation"], 0.0)

    def test_moderate_deviation_below_threshold(self):
        """A 20% excess in one quarter is tolerated."""
        from tools.rng_anomaly import detect_distribution_bias
        batch = [0.1] * 30 + [0.4] * 25 + [0.6] * 25 + [0.9] * 20
        r = detect_distribution_bias(batch)
        self.assertAlmostEqual(r.details["max_deviation"], 0.2)
        self.assertFalse(r.detected)


class TestPatterns(unittest.TestCase):

    def test_alternating_is_periodic(self):
        from tools.rng_anomaly import detect_repeating_patterns
        r = detect_repeating_patterns(ALTERNATING)
        self.assertTrue(r.detected)
        self.assertAlmostEqual(r.details["autocorrelations"][0], -1.0)
        self.assertAlmostEqual(r.details["autocorrelations"][1], 1.0)
        self.assertEqual(len(r.details["significant_lags"]), 20)
        self.assertAlmostEqual(r.details["significance_threshold"], 0.2)
        self.assertEqual(r.confidence, 1.0)
        self.assertIn("lag(s): 1, 2", r.description)

    def test_needs_twice_max_lag(self):
        from tools.rng_anomaly import detect_repeating_patterns
        r = detect_repeating_patterns(ALTERNATING[:39])
        self.assertFalse(r.detected)
        self.assertIn("error", r.details)

    def test_constant_batch(self):
        from tools.rng_anomaly import detect_repeating_patterns
        r = detect_repeating_patterns([0.5] * 50)
        self.assertFalse(r.detected)
        self.assertEqual(r.details["max_correlation"], 0.0)


class TestTiming(unittest.TestCase):

    def test_fast_bets_win_more(self):
        from tools.rng_anomaly import detect_timing_patterns
        r = detect_timing_patterns([0.9] * 40, [i * 500 for i in range(40)])
        self.assertTrue(r.detected)
        self.assertEqual(r.details["fast"]["count"], 39)
        self.assertAlmostEqual(r.details["fast"]["average"], 0.9)
        self.assertEqual(r.details["slow"]["average"], 0.5)
        self.assertEqual(r.confidence, 1.0)
        self.assertIn("40.0%", r.description)

    def test_cohorts_use_following_result(self):
        from tools.rng_anomaly import detect_timing_patterns
        samples = [0.5] * 20
        samples[1] = 1.0                              # played 10s after the first bet
        stamps = [0, 10_000] + [10_000 + 2000 * i for i in range(1, 19)]
        r = detect_timing_patterns(samples, stamps)
        self.assertEqual(r.details["slow"]["count"], 1)
        self.assertEqual(r.details["slow"]["average"], 1.0)
        self.assertEqual(r.details["medium"]["count"], 18)
        self.assertTrue(r.detected)

    def test_mismatched_lengths(self):
        from tools.rng_anomaly import detect_timing_patterns
        r = detect_timing_patterns([0.5] * 40, [0] * 39)
        self.assertFalse(r.detected)
        self.assertIn("error", r.details)

    def test_balanced_timing(self):
        from tools.rng_anomaly import detect_timing_patterns
        r = detect_timing_patterns([0.5] * 40, [i * 3000 for i in range(40)])
        self.assertFalse(r.detected)
        self.assertEqual(r.details["max_deviation"], 0.0)


class TestClustering(unittest.TestCase):

    def test_sorted_values_cluster(self):
        from tools.rng_anomaly import detect_clustering
        r = detect_clustering(SPREAD)
        self.assertTrue(r.detected)
        self.assertEqual(r.details["similar_pairs"], 999)
        self.assertEqual(r.details["total_pairs"], 999)
        self.assertAlmostEqual(r.details["expected_probability"], 0.2)
        self.assertEqual(r.confidence, 1.0)

    def test_alternating_never_clusters(self):
        from tools.rng_anomaly import detect_clustering
        r = detect_clustering(ALTERNATING)
        self.assertFalse(r.detected)
        self.assertEqual(r.details["similar_pairs"], 0)
        self.assertLess(r.details["z_score"], 0)

    def test_minimum_samples(self):
        from tools.rng_anomaly import detect_clustering
        r = detect_clustering([0.5] * 19)
        self.assertFalse(r.detected)
        self.assertIn("error", r.details)

    def test_threshold_out_of_range(self):
        from tools.rng_anomaly import detect_clustering
        r = detect_clustering(SPREAD, cluster_threshold=0.5)
        self.assertFalse(r.detected)
        self.assertIn("error", r.details)


class TestDetectAll(unittest.TestCase):

    def test_only_detections_returned(self):
        from tools.rng_anomaly import detect_all_anomalies
        found = detect_all_anomalies(ALTERNATING)
        self.assertEqual([a.type.value for a in found], ["bias", "pattern"])
        self.assertTrue(all(a.detected for a in found))

    def test_timing_needs_matching_timestamps(self):
        from tools.rng_anomaly import detect_all_anomalies
        batch = [0.9] * 40
        with_times = {a.type.value for a in detect_all_anomalies(batch, [i * 500 for i in range(40)])}
        without = {a.type.value for a in detect_all_anomalies(batch)}
        mismatched = {a.type.value for a in detect_all_anomalies(batch, [0, 1, 2])}
        self.assertIn("timing", with_times)
        self.assertNotIn("timing", without)
        self.assertNotIn("timing", mismatched)
        self.assertTrue({"streak", "bias", "cluster"} <= without)

    def test_confidences_bounded(self):
        from tools.rng_anomaly import detect_all_anomalies
        for batch in (ALTERNATING, SPREAD, [0.9] * 40):
            for a in detect_all_anomalies(batch):
                self.assertGreaterEqual(a.confidence, 0.0)
                self.assertLessEqual(a.confidence, 1.0)

    def test_to_dict(self):
        from tools.rng_anomaly import detect_all_anomalies
        d = detect_all_anomalies(ALTERNATING)[0].to_dict()
        self.assertEqual(d["type"], "bias")
        self.assertEqual(set(d), {"detected", "type", "confidence", "description", "details"})


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
