"""
FAIRLENS — Fairness Schemas

Closed enums shared by the engine, plus the Pydantic request models that
guard the HTTP and CLI edges. The core modules accept either the enum or
its string value.

Usage:
    from config.fairness_schema import VerifyRequest, SchemeName
    req = VerifyRequest.model_validate(payload)
    req.scheme is SchemeName.STAKE
"""

from __future__ import annotations
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config.settings import AnalysisConfig


# ═══════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════

class HashAlgorithm(str, Enum):
    SHA256 = "sha256"
    SHA512 = "sha512"


class SchemeName(str, Enum):
    GENERIC = "generic"
    STAKE = "stake"
    BC_GAME = "bc-game"


class GameType(str, Enum):
    DICE = "dice"
    CRASH = "crash"
    PLINKO = "plinko"
    BLACKJACK = "blackjack"
    ROULETTE = "roulette"
    SLOTS = "slots"
    POKER = "poker"
    BACCARAT = "baccarat"
    KENO = "keno"
    LIMBO = "limbo"
    MINES = "mines"
    OTHER = "other"


class AnalysisType(str, Enum):
    COMPREHENSIVE = "comprehensive"
    QUICK = "quick"
    STATISTICAL = "statistical"
    ANOMALY = "anomaly"


class AnomalyType(str, Enum):
    STREAK = "streak"
    BIAS = "bias"
    PATTERN = "pattern"
    TIMING = "timing"
    CLUSTER = "cluster"


class Verdict(str, Enum):
    FAIR = "fair"
    SUSPICIOUS = "suspicious"
    CONCERNING = "concerning"
    INSUFFICIENT_DATA = "insufficient_data"


# ═══════════════════════════════════════════════════════════════
# Analysis Options
# ═══════════════════════════════════════════════════════════════

class AnalysisOptions(BaseModel):
    """Knobs for a single analyze() call."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: AnalysisType = AnalysisType.COMPREHENSIVE
    significance_level: float = Field(
        AnalysisConfig.SIGNIFICANCE_LEVEL, gt=0.0, lt=1.0, alias="significanceLevel",
    )
    timestamps: Optional[list[float]] = None      # Unix ms, one per sample


# ═══════════════════════════════════════════════════════════════
# API Requests
# ═══════════════════════════════════════════════════════════════

class VerifyRequest(BaseModel):
    """POST /api/v1/verify body."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    server_seed_hash: str = Field(..., min_length=64, max_length=128, alias="serverSeedHash")
    client_seed: str = Field(..., min_length=1, max_length=64, alias="clientSeed")
    nonce: int = Field(..., ge=0)
    server_seed: Optional[str] = Field(None, alias="serverSeed")
    scheme: SchemeName = SchemeName.GENERIC
    algorithm: HashAlgorithm = HashAlgorithm.SHA256
    cursor: int = Field(0, ge=0)
    game_type: Optional[GameType] = Field(None, alias="gameType")
    claimed_hash: Optional[str] = Field(None, alias="claimedHash")

    @field_validator("server_seed_hash", "claimed_hash")
    @classmethod
    def _hex_only(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            bytes.fromhex(v)
        except ValueError:
            raise ValueError("must be a hex string")
        return v


class RngAnalysisRequest(BaseModel):
    """POST /api/v1/rng-analysis body."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    results: list[float] = Field(
        ...,
        min_length=AnalysisConfig.MIN_SAMPLE_SIZE,
        max_length=AnalysisConfig.MAX_SAMPLE_SIZE,
    )
    analysis_type: AnalysisType = Field(AnalysisType.COMPREHENSIVE, alias="analysisType")
    significance_level: float = Field(
        AnalysisConfig.SIGNIFICANCE_LEVEL, gt=0.0, lt=1.0, alias="significanceLevel",
    )
    timestamps: Optional[list[float]] = None
    game_type: Optional[GameType] = Field(None, alias="gameType")

    @field_validator("results")
    @classmethod
    def _unit_interval(cls, v: list[float]) -> list[float]:
        bad = [i for i, x in enumerate(v) if not 0.0 <= x <= 1.0]
        if bad:
            raise ValueError(f"values must lie in [0, 1]; first offending index {bad[0]}")
        return v

    @model_validator(mode="after")
    def _timestamps_match(self) -> "RngAnalysisRequest":
        if self.timestamps is not None and len(self.timestamps) != len(self.results):
            raise ValueError("timestamps must have one entry per result")
        return self

    def to_options(self) -> AnalysisOptions:
        return AnalysisOptions(
            type=self.analysis_type,
            significance_level=self.significance_level,
            timestamps=self.timestamps,
        )
