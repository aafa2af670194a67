"""Generic scheme — HMAC(serverSeed, "clientSeed:nonce"), SHA-256 or SHA-512."""
from config.fairness_schema import HashAlgorithm
from pf_engine.schemes.base import BaseScheme, SeedCommitment
from tools.pf_crypto import keyed_hash


class GenericScheme(BaseScheme):
    name = "generic"
    display_name = "Generic HMAC"
    algorithms = (HashAlgorithm.SHA256, HashAlgorithm.SHA512)
    message_layout = "clientSeed:nonce"
    key_layout = "serverSeed"

    def compute_hash(self, commitment: SeedCommitment) -> str:
        key = self._require_seed(commitment)
        message = f"{commitment.client_seed}:{commitment.nonce}"
        return keyed_hash(self.resolve_algorithm(commitment.algorithm), key, message)
