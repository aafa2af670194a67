"""Stake — HMAC(serverSeed, "clientSeed:nonce:cursor"), cursor-based multi-draw."""
import math

from config.fairness_schema import HashAlgorithm
from config.settings import VerificationConfig
from pf_engine.schemes.base import BaseScheme, SeedCommitment
from tools.pf_crypto import keyed_hash

_E = 2 ** 32


class StakeScheme(BaseScheme):
    name = "stake"
    display_name = "Stake"
    algorithms = (HashAlgorithm.SHA256,)
    message_layout = "clientSeed:nonce:cursor"
    key_layout = "serverSeed"

    def compute_hash(self, commitment: SeedCommitment) -> str:
        key = self._require_seed(commitment)
        message = f"{commitment.client_seed}:{commitment.nonce}:{commitment.cursor}"
        return keyed_hash(self.resolve_algorithm(commitment.algorithm), key, message)

    def _round_hash(self, server_seed: str, client_seed: str, nonce: int, cursor: int = 0) -> str:
        return self.compute_hash(SeedCommitment(
            server_seed_hash="",
            client_seed=client_seed,
            nonce=nonce,
            server_seed=server_seed,
            cursor=cursor,
        ))

    def generate_results(self, server_seed: str, client_seed: str,
                         nonce: int, count: int) -> list[float]:
        """One float per cursor 0..count-1 (cards, multi-dice, ...)."""
        return [
            self.hash_to_float(self._round_hash(server_seed, client_seed, nonce, cursor))
            for cursor in range(count)
        ]

    def dice(self, server_seed: str, client_seed: str, nonce: int) -> float:
        """Dice roll 0.00 – 100.00."""
        h = int(self._round_hash(server_seed, client_seed, nonce)[:8], 16)
        result = (h % 10001) / 100
        return math.floor(result * 100) / 100

    def crash(self, server_seed: str, client_seed: str, nonce: int) -> float:
        """Crash point; 1 in 33 rounds busts instantly at 1.00x."""
        h = int(self._round_hash(server_seed, client_seed, nonce)[:8], 16)
        return crash_point_from_int(h)


def crash_point_from_int(h: int) -> float:
    """Shared operator crash formula over a 32-bit integer."""
    if h % VerificationConfig.STAKE_CRASH_MODULUS == 0:
        return 1.0
    point = math.floor((100 * _E - h) / (_E - h)) / 100
    return max(1.0, point)
