"""
FAIRLENS — Statistical Tests for RNG Analysis

Six independent tests over a batch of normalized outcomes in [0, 1):

  chi_square_test          — uniformity across equal-width bins
  runs_test                — runs above/below the median
  serial_correlation_test  — Pearson correlation at a lag, Fisher z
  frequency_test           — monobit balance around a threshold
  gap_test                 — gap lengths between hits in a sub-range
  entropy_test             — normalized Shannon entropy (fixed threshold)

Each returns a TestResult and passes when p_value > significance_level.
Under-powered input never raises: it yields a non-passing result with
p_value 1.0 and an "error" detail ("could not evaluate", not "failed").

P-values come from a closed-form normal CDF built on the
Abramowitz & Stegun 7.1.26 erf polynomial (|error| < 1.5e-7). Chi-square
p-values use the Wilson–Hilferty cube-root normal approximation.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Sequence

from config.settings import AnalysisConfig

# Abramowitz & Stegun 7.1.26
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


@dataclass(frozen=True)
class TestResult:
    """Result of one statistical test. Never mutated after construction."""
    __test__ = False    # not a pytest test class

    test_name: str
    statistic: float
    p_value: float
    passed: bool
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


# ═══════════════════════════════════════════════════════════════
# Distribution helpers
# ═══════════════════════════════════════════════════════════════

def erf(x: float) -> float:
    """Error function, A&S 7.1.26 evaluated with Horner's method."""
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf(x: float) -> float:
    """Standard normal CDF."""
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def chi_square_cdf(x: float, df: int) -> float:
    """Chi-square CDF via the Wilson–Hilferty transformation."""
    if x <= 0 or df <= 0:
        return 0.0
    v = 2.0 / (9.0 * df)
    z = ((x / df) ** (1.0 / 3.0) - (1.0 - v)) / math.sqrt(v)
    return normal_cdf(z)


def _two_tailed(z: float) -> float:
    return _clamp_p(2.0 * (1.0 - normal_cdf(abs(z))))


def _clamp_p(p: float) -> float:
    return min(1.0, max(0.0, p))


def _bin_index(value: float, bins: int) -> int:
    return min(max(int(math.floor(value * bins)), 0), bins - 1)


def _not_evaluated(test_name: str, reason: str) -> TestResult:
    return TestResult(
        test_name=test_name,
        statistic=0.0,
        p_value=1.0,
        passed=False,
        details={"error": reason},
    )


# ═══════════════════════════════════════════════════════════════
# Tests
# ═══════════════════════════════════════════════════════════════

def chi_square_test(samples: Sequence[float], bins: int = AnalysisConfig.CHI_SQUARE_BINS,
                    significance_level: float = AnalysisConfig.SIGNIFICANCE_LEVEL) -> TestResult:
    """Chi-square goodness of fit against the uniform distribution."""
    n = len(samples)
    if n == 0:
        return _not_evaluated("Chi-Square Test", "No samples")

    expected = n / bins
    observed = [0] * bins
    for x in samples:
        observed[_bin_index(x, bins)] += 1

    chi2 = sum((o - expected) ** 2 / expected for o in observed)
    df = bins - 1
    p_value = _clamp_p(1.0 - chi_square_cdf(chi2, df))

    return TestResult(
        test_name="Chi-Square Test",
        statistic=chi2,
        p_value=p_value,
        passed=p_value > significance_level,
        details={
            "bins": bins,
            "expected": expected,
            "observed": observed,
            "degrees_of_freedom": df,
        },
    )


def runs_test(samples: Sequence[float],
              significance_level: float = AnalysisConfig.SIGNIFICANCE_LEVEL) -> TestResult:
    """Wald–Wolfowitz runs test around the sample median."""
    n = len(samples)
    if n < AnalysisConfig.RUNS_MIN_SAMPLES:
        return _not_evaluated(
            "Runs Test",
            f"Insufficient data (need at least {AnalysisConfig.RUNS_MIN_SAMPLES} samples)",
        )

    median = sorted(samples)[n // 2]
    binary = [1 if x >= median else 0 for x in samples]

    runs = 1 + sum(1 for i in range(1, n) if binary[i] != binary[i - 1])
    n1 = sum(binary)
    n0 = n - n1

    expected_runs = (2 * n0 * n1) / n + 1
    variance = (2 * n0 * n1 * (2 * n0 * n1 - n)) / (n * n * (n - 1))
    if variance <= 0:
        # Every sample on one side of the median: a single run, no spread
        return TestResult(
            test_name="Runs Test",
            statistic=0.0,
            p_value=1.0,
            passed=False,
            details={"error": "No variation around the median",
                     "runs": runs, "n0": n0, "n1": n1},
        )

    z = (runs - expected_runs) / math.sqrt(variance)
    p_value = _two_tailed(z)

    return TestResult(
        test_name="Runs Test",
        statistic=z,
        p_value=p_value,
        passed=p_value > significance_level,
        details={
            "runs": runs,
            "expected_runs": expected_runs,
            "n0": n0,
            "n1": n1,
            "variance": variance,
        },
    )


def serial_correlation_test(samples: Sequence[float], lag: int = 1,
                            significance_level: float = AnalysisConfig.SIGNIFICANCE_LEVEL) -> TestResult:
    """Correlation between x[i] and x[i + lag], tested with Fisher's z."""
    n = len(samples)
    if n < lag + 10:
        return _not_evaluated("Serial Correlation Test", "Insufficient data for given lag")

    m = n - lag
    head = samples[:m]
    tail = samples[lag:]
    mean1 = sum(head) / m
    mean2 = sum(tail) / m

    num = 0.0
    den1 = 0.0
    den2 = 0.0
    for a, b in zip(head, tail):
        d1 = a - mean1
        d2 = b - mean2
        num += d1 * d2
        den1 += d1 * d1
        den2 += d2 * d2

    if den1 == 0 or den2 == 0:
        return _not_evaluated("Serial Correlation Test", "Zero variance in sample")

    r = num / math.sqrt(den1 * den2)
    if abs(r) >= 1.0:
        z = math.copysign(math.inf, r)
        p_value = 0.0
    else:
        z = 0.5 * math.log((1 + r) / (1 - r)) * math.sqrt(m - 3)
        p_value = _two_tailed(z)

    return TestResult(
        test_name="Serial Correlation Test",
        statistic=r,
        p_value=p_value,
        passed=p_value > significance_level,
        details={
            "lag": lag,
            "correlation": r,
            "z_score": z,
            "sample_size": m,
        },
    )


def frequency_test(samples: Sequence[float], threshold: float = 0.5,
                   significance_level: float = AnalysisConfig.SIGNIFICANCE_LEVEL) -> TestResult:
    """Monobit test: values >= threshold vs below, continuity-corrected."""
    n = len(samples)
    if n == 0:
        return _not_evaluated("Frequency Test", "No samples")

    above = sum(1 for x in samples if x >= threshold)
    below = n - above
    expected = n / 2

    z = max(0.0, abs(above - expected) - 0.5) / math.sqrt(n / 4)
    p_value = _two_tailed(z)

    return TestResult(
        test_name="Frequency Test",
        statistic=z,
        p_value=p_value,
        passed=p_value > significance_level,
        details={
            "count_above": above,
            "count_below": below,
            "expected": expected,
            "ratio": above / n,
        },
    )


def gap_test(samples: Sequence[float], lower_bound: float = 0.0, upper_bound: float = 0.5,
             significance_level: float = AnalysisConfig.SIGNIFICANCE_LEVEL) -> TestResult:
    """Gap lengths between hits in [lower_bound, upper_bound) vs geometric(p).

    Consecutive hits (gap length 0) are not recorded, so bin 0 is always
    empty while its expected count stays p * gaps. Kept as-is to match the
    published reports this suite is compared against.
    """
    gaps = []
    current = 0
    for x in samples:
        if lower_bound <= x < upper_bound:
            if current > 0:
                gaps.append(current)
            current = 0
        else:
            current += 1

    if len(gaps) < AnalysisConfig.GAP_MIN_GAPS:
        return _not_evaluated("Gap Test", "Insufficient gaps found")

    p = upper_bound - lower_bound
    total = len(gaps)
    max_gap = max(gaps)
    bins = min(max_gap + 1, AnalysisConfig.GAP_MAX_BINS)

    observed = [0] * bins
    for g in gaps:
        observed[min(g, bins - 1)] += 1

    expected = []
    cumulative = 0.0
    for k in range(bins - 1):
        prob = p * (1 - p) ** k
        expected.append(prob * total)
        cumulative += prob
    expected.append((1 - cumulative) * total)     # tail bin: gaps >= bins - 1

    chi2 = sum((o - e) ** 2 / e for o, e in zip(observed, expected) if e > 0)
    df = bins - 1
    p_value = _clamp_p(1.0 - chi_square_cdf(chi2, df))

    return TestResult(
        test_name="Gap Test",
        statistic=chi2,
        p_value=p_value,
        passed=p_value > significance_level,
        details={
            "gaps": total,
            "average_gap": sum(gaps) / total,
            "max_gap": max_gap,
            "range": [lower_bound, upper_bound],
            "observed": observed,
            "expected": expected,
        },
    )


def entropy_test(samples: Sequence[float], bins: int = AnalysisConfig.ENTROPY_BINS) -> TestResult:
    """Shannon entropy of the binned batch, normalized by log2(bins).

    Not a hypothesis test: passes above a fixed threshold, and p_value
    carries the normalized entropy so results share one shape.
    """
    n = len(samples)
    if n == 0:
        return _not_evaluated("Entropy Test", "No samples")

    counts = [0] * bins
    for x in samples:
        counts[_bin_index(x, bins)] += 1

    entropy = 0.0
    for c in counts:
        if c > 0:
            q = c / n
            entropy -= q * math.log2(q)

    max_entropy = math.log2(bins)
    normalized = entropy / max_entropy

    return TestResult(
        test_name="Entropy Test",
        statistic=entropy,
        p_value=_clamp_p(normalized),
        passed=normalized > AnalysisConfig.ENTROPY_PASS_THRESHOLD,
        details={
            "max_entropy": max_entropy,
            "normalized_entropy": normalized,
            "bins": bins,
            "percentage_of_max": f"{normalized * 100:.2f}%",
        },
    )
