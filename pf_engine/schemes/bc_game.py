"""BC.Game — HMAC(clientSeed, "serverSeed:nonce"): key and message swapped."""
import math

from config.fairness_schema import HashAlgorithm
from config.settings import VerificationConfig
from pf_engine.schemes.base import BaseScheme, SeedCommitment
from pf_engine.schemes.stake import crash_point_from_int
from tools.pf_crypto import keyed_hash, sha256


class BCGameScheme(BaseScheme):
    name = "bc-game"
    display_name = "BC.Game"
    algorithms = (HashAlgorithm.SHA256,)
    message_layout = "serverSeed:nonce"
    key_layout = "clientSeed"

    def compute_hash(self, commitment: SeedCommitment) -> str:
        server_seed = self._require_seed(commitment)
        message = f"{server_seed}:{commitment.nonce}"
        return keyed_hash(self.resolve_algorithm(commitment.algorithm),
                          commitment.client_seed, message)

    def _round_hash(self, server_seed: str, client_seed: str, nonce: int) -> str:
        return self.compute_hash(SeedCommitment(
            server_seed_hash="",
            client_seed=client_seed,
            nonce=nonce,
            server_seed=server_seed,
        ))

    def crash(self, server_seed: str, client_seed: str, nonce: int) -> float:
        """Crash uses a plain SHA-256 of "server:client:nonce", not the HMAC."""
        digest = sha256(f"{server_seed}:{client_seed}:{nonce}")
        return crash_point_from_int(int(digest[:8], 16))

    def dice(self, server_seed: str, client_seed: str, nonce: int) -> float:
        """Dice 0.00 – 99.99."""
        h = int(self._round_hash(server_seed, client_seed, nonce)[:8], 16)
        return (h % 10000) / 100

    def limbo(self, server_seed: str, client_seed: str, nonce: int) -> float:
        """Limbo multiplier, capped and floored to 2dp."""
        f = self.hash_to_float(self._round_hash(server_seed, client_seed, nonce))
        multiplier = VerificationConfig.BC_GAME_LIMBO_MAX if f == 0 else min(
            VerificationConfig.BC_GAME_LIMBO_MAX, 1 / f)
        return math.floor(multiplier * 100) / 100
