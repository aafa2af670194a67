"""
FAIRLENS — Base Provably-Fair Scheme

Abstract base for every operator scheme. A scheme fixes two things:
how seed material is laid out into an HMAC (message and key), and how the
resulting digest becomes a normalized float.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from config.fairness_schema import HashAlgorithm
from config.settings import VerificationConfig
from tools.pf_crypto import constant_time_equal, hash_hex, hash_to_float


class MissingSeedError(ValueError):
    """compute_hash was called without any server seed material."""


@dataclass(frozen=True)
class SeedCommitment:
    """Seed material for one round."""
    server_seed_hash: str
    client_seed: str
    nonce: int
    server_seed: Optional[str] = None     # Only known after reveal
    cursor: int = 0                       # Extra draws from one seed pair
    algorithm: HashAlgorithm = HashAlgorithm.SHA256


class BaseScheme(ABC):
    """Stateless strategy shared by all provably-fair schemes."""

    name: str = "base"
    display_name: str = "Base Scheme"
    algorithms: tuple = (HashAlgorithm.SHA256,)
    message_layout: str = ""
    key_layout: str = ""

    @abstractmethod
    def compute_hash(self, commitment: SeedCommitment) -> str:
        """HMAC digest for the round, as lowercase hex."""
        ...

    def hash_to_float(self, digest: str, byte_width: int = VerificationConfig.HASH_BYTE_WIDTH) -> float:
        return hash_to_float(digest, byte_width)

    def verify_commitment(self, server_seed: str, expected_hash: str,
                          algorithm=HashAlgorithm.SHA256) -> bool:
        """True if hash(server_seed) matches the published commitment."""
        computed = hash_hex(self.resolve_algorithm(algorithm), server_seed)
        return constant_time_equal(computed.lower(), expected_hash.lower())

    def resolve_algorithm(self, algorithm) -> HashAlgorithm:
        """The requested algorithm, or the scheme's own if it only supports one."""
        algorithm = HashAlgorithm(algorithm)
        return algorithm if algorithm in self.algorithms else self.algorithms[0]

    @staticmethod
    def _require_seed(commitment: SeedCommitment) -> str:
        if commitment.server_seed is None:
            raise MissingSeedError("Server seed is required for hash computation")
        return commitment.server_seed

    def get_metadata(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "algorithms": [a.value for a in self.algorithms],
            "message": self.message_layout,
            "key": self.key_layout,
        }
