"""
FAIRLENS — Provably Fair Verification Engine

Recomputes a round from its seed material and checks the server seed
against the commitment published before the round.

Verification steps:
    1. If the server seed has been revealed: hash(server_seed) == server_seed_hash
    2. computed_hash = scheme HMAC over the seed material
    3. normalized_float = first 4 bytes of computed_hash / 2^32
    4. (optional) computed_hash == the operator's claimed round hash

Usage:
    from tools.pf_verifier import verify

    result = verify(
        scheme="stake",
        server_seed="b2184b...",
        server_seed_hash="c66564...",
        client_seed="77ecfa...",
        nonce=6,
    )
    print(result.is_valid, result.normalized_float)

Before the reveal, the engine hashes with an empty-string key so the
formula still runs; the digest is meaningless until the seed is known.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from config.fairness_schema import HashAlgorithm, SchemeName
from config.settings import VerificationConfig
from pf_engine.schemes import SeedCommitment, get_scheme
from tools.pf_crypto import constant_time_equal, hash_hex, keyed_hash

logger = logging.getLogger("fairlens.verify")


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one round."""
    is_valid: bool
    computed_hash: str
    normalized_float: float
    server_seed_valid: bool
    hash_matches_claim: Optional[bool] = None   # None when no claim was supplied
    scheme: str = SchemeName.GENERIC.value
    algorithm: str = HashAlgorithm.SHA256.value

    def to_dict(self) -> dict:
        return asdict(self)


def verify(scheme=None, server_seed: Optional[str] = None,
           server_seed_hash: str = "", client_seed: str = "",
           nonce: int = 0, algorithm=None, cursor: int = 0,
           claimed_hash: Optional[str] = None) -> VerificationResult:
    """Verify a provably fair round. Unknown schemes fall back to generic."""
    impl = get_scheme(scheme or VerificationConfig.DEFAULT_SCHEME)
    algo = HashAlgorithm(algorithm or VerificationConfig.DEFAULT_ALGORITHM)

    server_seed_valid = True
    if server_seed:
        server_seed_valid = impl.verify_commitment(server_seed, server_seed_hash, algo)

    computed_hash = impl.compute_hash(SeedCommitment(
        server_seed_hash=server_seed_hash,
        client_seed=client_seed,
        nonce=nonce,
        server_seed=server_seed or "",
        cursor=cursor,
        algorithm=algo,
    ))
    normalized_float = impl.hash_to_float(computed_hash)

    hash_matches_claim = None
    if claimed_hash:
        hash_matches_claim = constant_time_equal(computed_hash.lower(), claimed_hash.lower())

    logger.debug(
        f"verify scheme={impl.name} nonce={nonce} cursor={cursor} "
        f"seed_revealed={bool(server_seed)} seed_valid={server_seed_valid}"
    )

    return VerificationResult(
        is_valid=server_seed_valid,
        computed_hash=computed_hash,
        normalized_float=normalized_float,
        server_seed_valid=server_seed_valid,
        hash_matches_claim=hash_matches_claim,
        scheme=impl.name,
        algorithm=impl.resolve_algorithm(algo).value,
    )


def verify_commitment(commitment: SeedCommitment, scheme=None,
                      claimed_hash: Optional[str] = None) -> VerificationResult:
    """verify() for a SeedCommitment."""
    return verify(
        scheme=scheme,
        server_seed=commitment.server_seed,
        server_seed_hash=commitment.server_seed_hash,
        client_seed=commitment.client_seed,
        nonce=commitment.nonce,
        algorithm=commitment.algorithm,
        cursor=commitment.cursor,
        claimed_hash=claimed_hash,
    )


def verify_server_seed_hash(server_seed: str, expected_hash: str,
                            algorithm=HashAlgorithm.SHA256) -> bool:
    """Check the reveal alone: hash(server_seed) == expected_hash."""
    computed = hash_hex(algorithm, server_seed)
    return constant_time_equal(computed.lower(), expected_hash.lower())


def compute_provably_fair_hash(server_seed: str, client_seed: str, nonce: int,
                               algorithm=HashAlgorithm.SHA256) -> str:
    """HMAC(server_seed, "client_seed:nonce") — the generic round hash."""
    return keyed_hash(algorithm, server_seed, f"{client_seed}:{nonce}")
