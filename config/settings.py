"""
FAIRLENS — Configuration

Environment-driven settings for the verification engine and the RNG
fairness analyzer. Values are read once at import; a `.env` file in the
working directory is honored.

    SIGNIFICANCE_LEVEL=0.01 python -m tools.fairness_cli analyze results.json
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ============================================================
# Verification
# ============================================================

class VerificationConfig:
    DEFAULT_SCHEME = os.getenv("DEFAULT_SCHEME", "generic")
    DEFAULT_ALGORITHM = os.getenv("DEFAULT_ALGORITHM", "sha256")

    # Bytes of the digest consumed by hash_to_float (4 bytes = 8 hex chars).
    # Operator implementations use 4; changing this breaks interoperability.
    HASH_BYTE_WIDTH = 4

    # Display formulas
    CRASH_HOUSE_EDGE = 0.01
    STAKE_CRASH_MODULUS = 33          # h % 33 == 0 → instant 1.00x
    BC_GAME_LIMBO_MAX = 1_000_000.0


# ============================================================
# RNG Analysis
# ============================================================

class AnalysisConfig:
    SIGNIFICANCE_LEVEL = float(os.getenv("SIGNIFICANCE_LEVEL", "0.05"))

    # Batch limits
    MIN_SAMPLE_SIZE = 30
    MAX_SAMPLE_SIZE = int(os.getenv("MAX_SAMPLE_SIZE", "10000"))
    GAP_TEST_MIN_SAMPLES = 100

    # Statistical tests
    CHI_SQUARE_BINS = 10
    ENTROPY_BINS = 256
    ENTROPY_PASS_THRESHOLD = 0.95
    RUNS_MIN_SAMPLES = 10
    GAP_MIN_GAPS = 10
    GAP_MAX_BINS = 10

    # Anomaly heuristics
    WIN_THRESHOLD = 0.5
    STREAK_PROBABILITY_THRESHOLD = 0.01
    BIAS_BINS = 4
    BIAS_THRESHOLD = 0.30
    PATTERN_MAX_LAG = 20
    TIMING_FAST_MS = 1000
    TIMING_MEDIUM_MS = 5000
    TIMING_DEVIATION_THRESHOLD = 0.1
    TIMING_MIN_SAMPLES = 10
    CLUSTER_THRESHOLD = 0.1
    CLUSTER_MIN_SAMPLES = 20
    CLUSTER_Z_THRESHOLD = 2.0

    # Scoring
    ANOMALY_PENALTY = 25
    MAX_SAMPLE_BONUS = 10
    FAIR_SCORE = 80
    SUSPICIOUS_SCORE = 60
    QUICK_MAX_ANOMALIES = 2
