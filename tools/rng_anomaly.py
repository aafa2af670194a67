"""
FAIRLENS — Anomaly Detection for RNG Patterns

Heuristics that look for the ways a rigged or broken RNG tends to show
itself in practice, rather than formal hypothesis tests:

  • improbable win/loss streaks
  • one range of outcomes favored over the others
  • periodic structure (autocorrelation at short lags)
  • outcomes that depend on how fast the player bets
  • consecutive outcomes that sit unusually close together

Each detector returns an AnomalyResult with a confidence in [0, 1].
detect_all_anomalies() keeps only the detections.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Optional, Sequence

from config.fairness_schema import AnomalyType
from config.settings import AnalysisConfig


@dataclass(frozen=True)
class AnomalyResult:
    detected: bool
    type: AnomalyType
    confidence: float
    description: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["type"] = self.type.value
        return d


def _skipped(kind: AnomalyType, description: str, error: str) -> AnomalyResult:
    return AnomalyResult(
        detected=False, type=kind, confidence=0.0,
        description=description, details={"error": error},
    )


# ═══════════════════════════════════════════════════════════════
# Streaks
# ═══════════════════════════════════════════════════════════════

def _longest_streaks(samples: Sequence[float], win_threshold: float) -> tuple[int, int]:
    max_win = max_loss = 0
    cur_win = cur_loss = 0
    for x in samples:
        if x >= win_threshold:
            cur_win += 1
            cur_loss = 0
            if cur_win > max_win:
                max_win = cur_win
        else:
            cur_loss += 1
            cur_win = 0
            if cur_loss > max_loss:
                max_loss = cur_loss
    return max_win, max_loss


def detect_suspicious_streaks(samples: Sequence[float],
                              win_threshold: float = AnalysisConfig.WIN_THRESHOLD) -> AnomalyResult:
    """Flag a streak whose chance under a fair 50/50 process is below 1%.

    P(streak of length k somewhere in n) ≈ (n - k + 1) * 0.5^k
    """
    n = len(samples)
    max_win, max_loss = _longest_streaks(samples, win_threshold)

    prob_win = (n - max_win + 1) * 0.5 ** max_win
    prob_loss = (n - max_loss + 1) * 0.5 ** max_loss

    limit = AnalysisConfig.STREAK_PROBABILITY_THRESHOLD
    suspicious_win = prob_win < limit
    suspicious_loss = prob_loss < limit
    detected = suspicious_win or suspicious_loss
    confidence = 1 - min(prob_win, prob_loss) if detected else 0.0

    description = ""
    if suspicious_loss:
        description = (f"Detected {max_loss}-game losing streak "
                       f"(probability: {prob_loss * 100:.4f}%)")
    elif suspicious_win:
        description = (f"Detected {max_win}-game winning streak "
                       f"(probability: {prob_win * 100:.4f}%)")

    return AnomalyResult(
        detected=detected,
        type=AnomalyType.STREAK,
        confidence=confidence,
        description=description,
        details={
            "max_win_streak": max_win,
            "max_loss_streak": max_loss,
            "prob_win_streak": prob_win,
            "prob_loss_streak": prob_loss,
            "sample_size": n,
        },
    )


# ═══════════════════════════════════════════════════════════════
# Distribution bias
# ═══════════════════════════════════════════════════════════════

def detect_distribution_bias(samples: Sequence[float],
                             bins: int = AnalysisConfig.BIAS_BINS) -> AnomalyResult:
    """Flag the bin furthest from its uniform share if it is off by > 30%."""
    n = len(samples)
    if n == 0:
        return _skipped(AnomalyType.BIAS, "Insufficient data for bias detection", "No samples")

    expected = n / bins
    observed = [0] * bins
    for x in samples:
        observed[min(max(int(math.floor(x * bins)), 0), bins - 1)] += 1

    max_deviation = 0.0
    max_bin = 0
    direction = ""
    for i, count in enumerate(observed):
        deviation = abs(count - expected) / expected
        if deviation > max_deviation:
            max_deviation = deviation
            max_bin = i
            direction = "high" if count > expected else "low"

    detected = max_deviation > AnalysisConfig.BIAS_THRESHOLD
    confidence = min(max_deviation / 0.5, 1.0) if detected else 0.0

    description = ""
    if detected:
        description = (f"Distribution bias detected: range "
                       f"[{max_bin / bins:.2f}-{(max_bin + 1) / bins:.2f}] is "
                       f"{max_deviation * 100:.1f}% {direction}er than expected")

    return AnomalyResult(
        detected=detected,
        type=AnomalyType.BIAS,
        confidence=confidence,
        description=description,
        details={
            "bins": bins,
            "observed": observed,
            "expected": expected,
            "max_deviation": max_deviation,
            "max_deviation_bin": max_bin,
            "deviation_direction": direction,
        },
    )


# ═══════════════════════════════════════════════════════════════
# Repeating patterns
# ═══════════════════════════════════════════════════════════════

def detect_repeating_patterns(samples: Sequence[float],
                              max_lag: int = AnalysisConfig.PATTERN_MAX_LAG) -> AnomalyResult:
    """Autocorrelation at lags 1..max_lag against the 2/sqrt(n) bound."""
    n = len(samples)
    if n < max_lag * 2:
        return _skipped(AnomalyType.PATTERN,
                        "Insufficient data for pattern detection", "Need more samples")

    mean = sum(samples) / n
    centered = [x - mean for x in samples]

    autocorrelations = []
    for lag in range(1, max_lag + 1):
        num = 0.0
        den = 0.0
        for i in range(n - lag):
            num += centered[i] * centered[i + lag]
            den += centered[i] * centered[i]
        autocorrelations.append(num / den if den else 0.0)

    bound = 2 / math.sqrt(n)
    significant = [
        {"lag": i + 1, "correlation": r}
        for i, r in enumerate(autocorrelations) if abs(r) > bound
    ]

    detected = bool(significant)
    max_corr = max(abs(r) for r in autocorrelations)
    confidence = min(max_corr / 0.3, 1.0) if detected else 0.0

    description = ""
    if detected:
        lags = ", ".join(str(s["lag"]) for s in significant)
        description = f"Detected repeating pattern at lag(s): {lags}"

    return AnomalyResult(
        detected=detected,
        type=AnomalyType.PATTERN,
        confidence=confidence,
        description=description,
        details={
            "autocorrelations": autocorrelations,
            "significance_threshold": bound,
            "significant_lags": significant,
            "max_correlation": max_corr,
        },
    )


# ═══════════════════════════════════════════════════════════════
# Timing
# ═══════════════════════════════════════════════════════════════

def detect_timing_patterns(samples: Sequence[float],
                           timestamps: Sequence[float]) -> AnomalyResult:
    """Compare the outcome after fast (<1s), medium (1-5s) and slow bets.

    Timestamps are Unix milliseconds, one per sample. An empty cohort
    counts as the fair mean 0.5.
    """
    if len(timestamps) != len(samples) or len(timestamps) < AnalysisConfig.TIMING_MIN_SAMPLES:
        return _skipped(AnomalyType.TIMING, "Insufficient timing data",
                        "Need timestamps for all results")

    cohorts = {"fast": [], "medium": [], "slow": []}
    for i in range(1, len(timestamps)):
        delta = timestamps[i] - timestamps[i - 1]
        outcome = samples[i]            # result after the delay
        if delta < AnalysisConfig.TIMING_FAST_MS:
            cohorts["fast"].append(outcome)
        elif delta < AnalysisConfig.TIMING_MEDIUM_MS:
            cohorts["medium"].append(outcome)
        else:
            cohorts["slow"].append(outcome)

    averages = {k: (sum(v) / len(v) if v else 0.5) for k, v in cohorts.items()}
    max_deviation = max(abs(avg - 0.5) for avg in averages.values())

    detected = max_deviation > AnalysisConfig.TIMING_DEVIATION_THRESHOLD
    confidence = min(max_deviation / 0.2, 1.0) if detected else 0.0

    description = ""
    if detected:
        description = (f"Detected timing-based variation: outcomes vary by "
                       f"{max_deviation * 100:.1f}% based on bet timing")

    details = {k: {"count": len(cohorts[k]), "average": averages[k]} for k in cohorts}
    details["max_deviation"] = max_deviation

    return AnomalyResult(
        detected=detected,
        type=AnomalyType.TIMING,
        confidence=confidence,
        description=description,
        details=details,
    )


# ═══════════════════════════════════════════════════════════════
# Clustering
# ═══════════════════════════════════════════════════════════════

def detect_clustering(samples: Sequence[float],
                      cluster_threshold: float = AnalysisConfig.CLUSTER_THRESHOLD) -> AnomalyResult:
    """Too many consecutive pairs closer than cluster_threshold.

    For independent uniforms P(|X - Y| < t) ≈ 2t; compared with a
    one-sided proportion z-test.
    """
    n = len(samples)
    if n < AnalysisConfig.CLUSTER_MIN_SAMPLES:
        return _skipped(AnomalyType.CLUSTER, "Insufficient data for clustering detection",
                        f"Need at least {AnalysisConfig.CLUSTER_MIN_SAMPLES} samples")

    pairs = n - 1
    similar = sum(1 for i in range(1, n) if abs(samples[i] - samples[i - 1]) < cluster_threshold)

    expected_prob = 2 * cluster_threshold
    observed_prob = similar / pairs
    variance = expected_prob * (1 - expected_prob) / pairs
    if variance <= 0:
        return _skipped(AnomalyType.CLUSTER, "Cluster threshold out of range",
                        "cluster_threshold must be below 0.5")

    z = (observed_prob - expected_prob) / math.sqrt(variance)

    detected = z > AnalysisConfig.CLUSTER_Z_THRESHOLD
    confidence = min(z / 4, 1.0) if detected else 0.0

    description = ""
    if detected:
        description = (f"Detected outcome clustering: {observed_prob * 100:.1f}% similar pairs "
                       f"vs expected {expected_prob * 100:.1f}%")

    return AnomalyResult(
        detected=detected,
        type=AnomalyType.CLUSTER,
        confidence=confidence,
        description=description,
        details={
            "similar_pairs": similar,
            "total_pairs": pairs,
            "observed_probability": observed_prob,
            "expected_probability": expected_prob,
            "z_score": z,
            "cluster_threshold": cluster_threshold,
        },
    )


# ═══════════════════════════════════════════════════════════════
# All detectors
# ═══════════════════════════════════════════════════════════════

def detect_all_anomalies(samples: Sequence[float],
                         timestamps: Optional[Sequence[float]] = None) -> list[AnomalyResult]:
    """Run every detector; return only the anomalies that were detected."""
    results = [
        detect_suspicious_streaks(samples),
        detect_distribution_bias(samples),
        detect_repeating_patterns(samples),
        detect_clustering(samples),
    ]
    if timestamps is not None and len(timestamps) == len(samples):
        results.append(detect_timing_patterns(samples, timestamps))
    return [r for r in results if r.detected]
