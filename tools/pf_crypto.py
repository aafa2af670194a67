"""
FAIRLENS — Cryptographic Primitives

Hashing, HMAC, constant-time comparison and digest → number mapping.
Every provably-fair scheme and the verification engine build on these.

The digest → float mapping is a wire contract with the operators whose
rounds we verify: the first `byte_width` bytes of the hex digest, read
big-endian, divided by 256**byte_width. Truncation, never rounding.
"""

from __future__ import annotations

import hashlib
import hmac

from config.fairness_schema import HashAlgorithm

_HASHES = {
    HashAlgorithm.SHA256: hashlib.sha256,
    HashAlgorithm.SHA512: hashlib.sha512,
}


def _algo(algorithm) -> HashAlgorithm:
    return HashAlgorithm(algorithm)


# ── Plain hashes ──────────────────────────────────────────────

def sha256(data: str) -> str:
    return hashlib.sha256(data.encode()).hexdigest()


def sha512(data: str) -> str:
    return hashlib.sha512(data.encode()).hexdigest()


def hash_hex(algorithm, data: str) -> str:
    """Hex digest of `data` under the given algorithm."""
    return _HASHES[_algo(algorithm)](data.encode()).hexdigest()


# ── Keyed hashes ──────────────────────────────────────────────

def hmac_sha256(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()


def hmac_sha512(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha512).hexdigest()


def keyed_hash(algorithm, key: str, message: str) -> str:
    """HMAC(key, message) as a hex digest."""
    return hmac.new(key.encode(), message.encode(), _HASHES[_algo(algorithm)]).hexdigest()


# ── Comparison ────────────────────────────────────────────────

def constant_time_equal(a: str, b: str) -> bool:
    """Compare two strings without short-circuiting on the first mismatch.

    Lengths are checked up front: both sides are locally computed digests,
    so the length itself is not secret.
    """
    if len(a) != len(b):
        return False
    result = 0
    for x, y in zip(a, b):
        result |= ord(x) ^ ord(y)
    return result == 0


def verify_hash(data: str, expected_hash: str, algorithm=HashAlgorithm.SHA256) -> bool:
    """True if hash(data) equals expected_hash, ignoring hex case."""
    computed = hash_hex(algorithm, data)
    return constant_time_equal(computed.lower(), expected_hash.lower())


# ── Digest → number ───────────────────────────────────────────

def hash_to_float(hex_digest: str, byte_width: int = 4) -> float:
    """Map the first `byte_width` bytes of a hex digest to [0, 1)."""
    segment = hex_digest[:byte_width * 2]
    return int(segment, 16) / (256 ** byte_width)


def hash_to_int(hex_digest: str, min_value: int, max_value: int, byte_width: int = 4) -> int:
    """Map a hex digest to an integer in [min_value, max_value]."""
    f = hash_to_float(hex_digest, byte_width)
    return int(f * (max_value - min_value + 1)) + min_value


def compute_content_hash(file_hashes: list[str]) -> str:
    """Order-independent combined hash of several digests."""
    if not file_hashes:
        return sha256("")
    if len(file_hashes) == 1:
        return file_hashes[0]
    return sha256("".join(sorted(file_hashes)))
