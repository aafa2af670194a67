"""
FAIRLENS — RNG Fairness Analyzer

Runs the statistical suite and the anomaly detectors over one batch of
normalized outcomes and folds them into a 0-100 score and a verdict.

Score:
    pass_rate * 100  −  Σ(anomaly confidence × 25)  +  min(10, 5·log10(n))
    clamped to [0, 100]; reported rounded half-up.

Verdict (from the unrounded score):
    ≥ 80 fair   ·   ≥ 60 suspicious   ·   otherwise concerning
    fewer than 30 samples, or nothing run and nothing detected → insufficient_data

Usage:
    from tools.rng_analyzer import analyze
    result = analyze(outcomes, {"type": "quick"})
    print(result.verdict, result.overall_score)
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence, Union

from config.fairness_schema import AnalysisOptions, AnalysisType, Verdict
from config.settings import AnalysisConfig
from tools.rng_anomaly import AnomalyResult, detect_all_anomalies
from tools.rng_statistics import (
    TestResult,
    chi_square_test,
    entropy_test,
    frequency_test,
    gap_test,
    runs_test,
    serial_correlation_test,
)

logger = logging.getLogger("fairlens.rng")


@dataclass(frozen=True)
class AnalysisResult:
    id: str
    sample_size: int
    analysis_type: AnalysisType
    timestamp: datetime
    tests: tuple[TestResult, ...] = ()
    anomalies: tuple[AnomalyResult, ...] = ()
    overall_score: int = 0
    verdict: Verdict = Verdict.INSUFFICIENT_DATA
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sample_size": self.sample_size,
            "analysis_type": self.analysis_type.value,
            "timestamp": self.timestamp.isoformat(),
            "tests": [t.to_dict() for t in self.tests],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "overall_score": self.overall_score,
            "verdict": self.verdict.value,
            "summary": self.summary,
        }


def _coerce_options(options) -> AnalysisOptions:
    if options is None:
        return AnalysisOptions()
    if isinstance(options, AnalysisOptions):
        return options
    return AnalysisOptions.model_validate(options)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def analyze(samples: Sequence[float],
            options: Union[AnalysisOptions, dict, None] = None) -> AnalysisResult:
    """Analyze a batch of normalized outcomes for fairness.

    Args:
        samples: Floats in [0, 1), in the order the rounds were played.
        options: AnalysisOptions (or a dict of its fields). Timestamps, if
            given, must be Unix milliseconds with one entry per sample.

    Returns:
        AnalysisResult with anomalies ordered by confidence, highest first
        (ties keep detection order). Under-sized batches return
        insufficient_data with no tests or anomalies rather than raising.
    """
    opts = _coerce_options(options)
    samples = list(samples)
    n = len(samples)
    analysis_id = uuid.uuid4().hex

    if n < AnalysisConfig.MIN_SAMPLE_SIZE:
        logger.info(f"analysis {analysis_id}: {n} samples, below minimum")
        return AnalysisResult(
            id=analysis_id,
            sample_size=n,
            analysis_type=opts.type,
            timestamp=datetime.now(timezone.utc),
            summary=(f"Insufficient data for analysis. Need at least "
                     f"{AnalysisConfig.MIN_SAMPLE_SIZE} samples, got {n}."),
        )

    alpha = opts.significance_level
    tests: list[TestResult] = []
    anomalies: list[AnomalyResult] = []

    if opts.type in (AnalysisType.COMPREHENSIVE, AnalysisType.STATISTICAL):
        tests.append(chi_square_test(samples, AnalysisConfig.CHI_SQUARE_BINS, alpha))
        tests.append(runs_test(samples, alpha))
        tests.append(serial_correlation_test(samples, 1, alpha))
        tests.append(frequency_test(samples, 0.5, alpha))
        tests.append(entropy_test(samples))
        if n >= AnalysisConfig.GAP_TEST_MIN_SAMPLES:
            tests.append(gap_test(samples, 0.0, 0.5, alpha))

    if opts.type in (AnalysisType.COMPREHENSIVE, AnalysisType.ANOMALY):
        anomalies.extend(detect_all_anomalies(samples, opts.timestamps))

    if opts.type == AnalysisType.QUICK:
        tests.append(chi_square_test(samples, AnalysisConfig.CHI_SQUARE_BINS, alpha))
        tests.append(frequency_test(samples, 0.5, alpha))
        anomalies.extend(
            detect_all_anomalies(samples, opts.timestamps)[:AnalysisConfig.QUICK_MAX_ANOMALIES]
        )

    score, verdict, summary = _assess(tests, anomalies, n)
    anomalies.sort(key=lambda a: a.confidence, reverse=True)

    logger.info(
        f"analysis {analysis_id}: type={opts.type.value} n={n} "
        f"tests={sum(t.passed for t in tests)}/{len(tests)} "
        f"anomalies={len(anomalies)} score={score} verdict={verdict.value}"
    )

    return AnalysisResult(
        id=analysis_id,
        sample_size=n,
        analysis_type=opts.type,
        timestamp=datetime.now(timezone.utc),
        tests=tuple(tests),
        anomalies=tuple(anomalies),
        overall_score=score,
        verdict=verdict,
        summary=summary,
    )


def _assess(tests: list[TestResult], anomalies: list[AnomalyResult],
            sample_size: int) -> tuple[int, Verdict, str]:
    if not tests and not anomalies:
        return 0, Verdict.INSUFFICIENT_DATA, "No tests could be performed."

    passed = sum(1 for t in tests if t.passed)
    total = len(tests)
    pass_rate = passed / total if total else 1.0

    penalty = sum(a.confidence * AnalysisConfig.ANOMALY_PENALTY for a in anomalies)
    bonus = min(AnalysisConfig.MAX_SAMPLE_BONUS, math.log10(sample_size) * 5)

    raw = max(0.0, min(100.0, pass_rate * 100 - penalty + bonus))
    score = _round_half_up(raw)

    # verdict from the unrounded score
    if raw >= AnalysisConfig.FAIR_SCORE:
        verdict = Verdict.FAIR
        summary = f"RNG appears fair. {passed}/{total} statistical tests passed."
    elif raw >= AnalysisConfig.SUSPICIOUS_SCORE:
        verdict = Verdict.SUSPICIOUS
        summary = (f"Some concerns detected. {passed}/{total} tests passed, "
                   f"{len(anomalies)} anomalies found.")
    else:
        verdict = Verdict.CONCERNING
        summary = (f"Significant issues detected. Only {passed}/{total} tests passed, "
                   f"{len(anomalies)} anomalies found.")

    if anomalies:
        top = max(anomalies, key=lambda a: a.confidence)
        summary += f" Top concern: {top.description}"

    return score, verdict, summary


def quick_fairness_check(samples: Sequence[float]) -> dict:
    """One-line answer: {"fair", "confidence", "reason"}.

    Small batches are given the benefit of the doubt (fair, confidence 0).
    """
    if len(samples) < AnalysisConfig.MIN_SAMPLE_SIZE:
        return {"fair": True, "confidence": 0.0, "reason": "Insufficient data for assessment"}

    result = analyze(samples, AnalysisOptions(type=AnalysisType.QUICK))
    return {
        "fair": result.verdict == Verdict.FAIR,
        "confidence": result.overall_score / 100,
        "reason": result.summary,
    }


def validate_result_sequence(expected: Sequence[float], actual: Sequence[float],
                             tolerance: float = 1e-4) -> dict:
    """Compare recomputed outcomes against the ones an operator reported.

    A length mismatch is reported as a single mismatch at index -1 whose
    expected/actual are the two lengths.
    """
    if len(expected) != len(actual):
        return {
            "all_valid": False,
            "valid_count": 0,
            "invalid_indices": [],
            "mismatch_details": [
                {"index": -1, "expected": len(expected), "actual": len(actual)},
            ],
        }

    mismatches = [
        {"index": i, "expected": e, "actual": a}
        for i, (e, a) in enumerate(zip(expected, actual))
        if abs(e - a) > tolerance
    ]
    return {
        "all_valid": not mismatches,
        "valid_count": len(expected) - len(mismatches),
        "invalid_indices": [m["index"] for m in mismatches],
        "mismatch_details": mismatches,
    }
