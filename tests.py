#!/usr/bin/env python3
"""
FAIRLENS — Verification Test Suite

Run: python tests.py
     python tests.py -v              # verbose
     python tests.py TestSchemes     # run specific class

Test categories:
  TestCrypto         — hashes, HMAC, constant-time compare, digest → float
  TestSchemes        — registry, key/message layouts, operator formulas
  TestVerifier       — commitment checks, pre-reveal, cursor, claimed hash
  TestGameOutcomes   — per-game display formulas and fallbacks
  TestSchemas        — pydantic request models
"""

import hashlib
import hmac
import math
import sys
import unittest
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))


def _hmac(key: str, message: str, digest=hashlib.sha256) -> str:
    return hmac.new(key.encode(), message.encode(), digest).hexdigest()


def _sha256(s: str) -> str:
    return hashlib.sha256(s.encode()).hexdigest()


# ============================================================
# Crypto Primitives
# ============================================================

class TestCrypto(unittest.TestCase):

    def test_sha256_known_vectors(self):
        from tools.pf_crypto import sha256
        self.assertEqual(sha256(""),
                         "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855")
        self.assertEqual(sha256("abc"),
                         "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad")

    def test_hmac_rfc4231_case2(self):
        """Key "Jefe", data "what do ya want for nothing?"."""
        from tools.pf_crypto import hmac_sha256, keyed_hash
        expected = "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843"
        self.assertEqual(hmac_sha256("Jefe", "what do ya want for nothing?"), expected)
        self.assertEqual(keyed_hash("sha256", "Jefe", "what do ya want for nothing?"), expected)

    def test_sha512_lengths(self):
        from tools.pf_crypto import hash_hex, hmac_sha512, sha512
        self.assertEqual(len(sha512("x")), 128)
        self.assertEqual(len(hmac_sha512("k", "m")), 128)
        self.assertEqual(hash_hex("sha512", "x"), sha512("x"))

    def test_constant_time_equal(self):
        from tools.pf_crypto import constant_time_equal
        self.assertTrue(constant_time_equal("abcd", "abcd"))
        self.assertFalse(constant_time_equal("abcd", "abce"))
        self.assertFalse(constant_time_equal("abc", "abcd"))
        self.assertTrue(constant_time_equal("", ""))

    def test_verify_hash_ignores_case(self):
        from tools.pf_crypto import verify_hash
        digest = _sha256("seed")
        self.assertTrue(verify_hash("seed", digest.upper()))
        self.assertFalse(verify_hash("other", digest))

    def test_hash_to_float(self):
        from tools.pf_crypto import hash_to_float
        self.assertEqual(hash_to_float("00000000" + "ab" * 28), 0.0)
        self.assertEqual(hash_to_float("80000000" + "00" * 28), 0.5)
        top = hash_to_float("ffffffff" + "ff" * 28)
        self.assertLess(top, 1.0)
        self.assertAlmostEqual(top, 4294967295 / 4294967296)

    def test_hash_to_float_monotonic(self):
        from tools.pf_crypto import hash_to_float
        values = [hash_to_float(f"{n:08x}") for n in (0, 1, 255, 65536, 2 ** 31, 2 ** 32 - 1)]
        self.assertEqual(values, sorted(values))
        self.assertTrue(all(0.0 <= v < 1.0 for v in values))

    def test_hash_to_float_reads_only_prefix(self):
        """Bytes past the first four never change the result."""
        from tools.pf_crypto import hash_to_float
        self.assertEqual(hash_to_float("12345678" + "00" * 28),
                         hash_to_float("12345678" + "ff" * 28))

    def test_hash_to_int_range(self):
        from tools.pf_crypto import hash_to_int
        self.assertEqual(hash_to_int("00000000", 1, 6), 1)
        self.assertEqual(hash_to_int("ffffffff", 1, 6), 6)

    def test_compute_content_hash_order_independent(self):
        from tools.pf_crypto import compute_content_hash, sha256
        a, b = _sha256("a"), _sha256("b")
        self.assertEqual(compute_content_hash([a, b]), compute_content_hash([b, a]))
        self.assertEqual(compute_content_hash([a]), a)
        self.assertEqual(compute_content_hash([]), sha256(""))


# ============================================================
# Scheme Registry
# ============================================================

class TestSchemes(unittest.TestCase):

    def test_registry_lookup(self):
        from config.fairness_schema import SchemeName
        from pf_engine.schemes import BCGameScheme, GenericScheme, StakeScheme, get_scheme
        self.assertIsInstance(get_scheme("generic"), GenericScheme)
        self.assertIsInstance(get_scheme(SchemeName.STAKE), StakeScheme)
        self.assertIsInstance(get_scheme("bc-game"), BCGameScheme)

    def test_unknown_scheme_falls_back_to_generic(self):
        from pf_engine.schemes import GenericScheme, get_scheme
        self.assertIsInstance(get_scheme("no-such-casino"), GenericScheme)

    def test_registry_is_read_only(self):
        from pf_engine.schemes import SCHEMES
        with self.assertRaises(TypeError):
            SCHEMES["new"] = object()

    def test_generic_layout(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=3, server_seed="server")
        self.assertEqual(get_scheme("generic").compute_hash(c), _hmac("server", "client:3"))

    def test_generic_sha512(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=3,
                           server_seed="server", algorithm="sha512")
        self.assertEqual(get_scheme("generic").compute_hash(c),
                         _hmac("server", "client:3", hashlib.sha512))

    def test_stake_layout_includes_cursor(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=3,
                           server_seed="server", cursor=2)
        self.assertEqual(get_scheme("stake").compute_hash(c), _hmac("server", "client:3:2"))

    def test_bc_game_swaps_key_and_message(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=5, server_seed="server")
        self.assertEqual(get_scheme("bc-game").compute_hash(c), _hmac("client", "server:5"))

    def test_single_algorithm_schemes_ignore_sha512(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=0,
                           server_seed="server", algorithm="sha512")
        self.assertEqual(len(get_scheme("stake").compute_hash(c)), 64)
        self.assertEqual(len(get_scheme("bc-game").compute_hash(c)), 64)

    def test_missing_seed_raises(self):
        from pf_engine.schemes import MissingSeedError, SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=0)
        for name in ("generic", "stake", "bc-game"):
            with self.assertRaises(MissingSeedError):
                get_scheme(name).compute_hash(c)

    def test_empty_seed_is_a_valid_key(self):
        from pf_engine.schemes import SeedCommitment, get_scheme
        c = SeedCommitment(server_seed_hash="", client_seed="client", nonce=0, server_seed="")
        self.assertEqual(get_scheme("generic").compute_hash(c), _hmac("", "client:0"))

    def test_verify_commitment(self):
        from pf_engine.schemes import get_scheme
        scheme = get_scheme("generic")
        self.assertTrue(scheme.verify_commitment("seed", _sha256("seed")))
        self.assertTrue(scheme.verify_commitment("seed", _sha256("seed").upper()))
        self.assertFalse(scheme.verify_commitment("seed", _sha256("other")))
        self.assertTrue(scheme.verify_commitment(
            "seed", hashlib.sha512(b"seed").hexdigest(), "sha512"))

    def test_metadata(self):
        from pf_engine.schemes import get_scheme
        meta = get_scheme("bc-game").get_metadata()
        self.assertEqual(meta["name"], "bc-game")
        self.assertEqual(meta["key"], "clientSeed")
        self.assertEqual(meta["message"], "serverSeed:nonce")
        self.assertEqual(meta["algorithms"], ["sha256"])

    def test_crash_point_formula(self):
        from pf_engine.schemes.stake import crash_point_from_int
        self.assertEqual(crash_point_from_int(0), 1.0)          # h % 33 == 0
        self.assertEqual(crash_point_from_int(33), 1.0)
        self.assertEqual(crash_point_from_int(2 ** 31), 1.99)
        self.assertEqual(crash_point_from_int(3 * 2 ** 30), 3.97)
        self.assertGreaterEqual(crash_point_from_int(1), 1.0)

    def test_stake_dice_and_multi_draw(self):
        from pf_engine.schemes import get_scheme
        stake = get_scheme("stake")
        h = int(_hmac("server", "client:7:0")[:8], 16)
        self.assertEqual(stake.dice("server", "client", 7),
                         math.floor((h % 10001) / 100 * 100) / 100)
        draws = stake.generate_results("server", "client", 7, 3)
        self.assertEqual(len(draws), 3)
        self.assertEqual(draws[1], int(_hmac("server", "client:7:1")[:8], 16) / 2 ** 32)
        self.assertEqual(len(set(draws)), 3)

    def test_bc_game_formulas(self):
        from pf_engine.schemes import get_scheme
        from pf_engine.schemes.stake import crash_point_from_int
        bc = get_scheme("bc-game")
        h = int(_hmac("client", "server:4")[:8], 16)
        self.assertEqual(bc.dice("server", "client", 4), (h % 10000) / 100)

        crash_h = int(_sha256("server:client:4")[:8], 16)
        self.assertEqual(bc.crash("server", "client", 4), crash_point_from_int(crash_h))

        limbo = bc.limbo("server", "client", 4)
        self.assertGreaterEqual(limbo, 1.0)
        self.assertLessEqual(limbo, 1_000_000.0)
        self.assertEqual(limbo, math.floor(min(1e6, 2 ** 32 / h) * 100) / 100)


# ============================================================
# Verification Engine
# ============================================================

class TestVerifier(unittest.TestCase):

    SEED = "b2184b4b2ba5f4a3d7c9e1f0a8b6c4d2"
    CLIENT = "my-client-seed"

    def test_revealed_seed_verifies(self):
        from tools.pf_verifier import verify
        result = verify(server_seed=self.SEED, server_seed_hash=_sha256(self.SEED),
                        client_seed=self.CLIENT, nonce=1)
        digest = _hmac(self.SEED, f"{self.CLIENT}:1")
        self.assertTrue(result.is_valid)
        self.assertTrue(result.server_seed_valid)
        self.assertEqual(result.computed_hash, digest)
        self.assertEqual(result.normalized_float, int(digest[:8], 16) / 2 ** 32)
        self.assertEqual(result.scheme, "generic")
        self.assertEqual(result.algorithm, "sha256")
        self.assertIsNone(result.hash_matches_claim)

    def test_known_vector_secret_client_1(self):
        from tools.pf_verifier import verify
        result = verify(server_seed="secret", server_seed_hash=_sha256("secret"),
                        client_seed="client", nonce=1)
        self.assertEqual(result.computed_hash, _hmac("secret", "client:1"))
        again = verify(server_seed="secret", server_seed_hash=_sha256("secret"),
                       client_seed="client", nonce=1)
        self.assertEqual(result.computed_hash, again.computed_hash)

    def test_wrong_commitment_fails(self):
        from tools.pf_verifier import verify
        result = verify(server_seed=self.SEED, server_seed_hash=_sha256("tampered"),
                        client_seed=self.CLIENT, nonce=1)
        self.assertFalse(result.is_valid)
        self.assertFalse(result.server_seed_valid)
        # The round is still recomputed from the seed that was revealed
        self.assertEqual(result.computed_hash, _hmac(self.SEED, f"{self.CLIENT}:1"))

    def test_unrevealed_seed_uses_empty_key(self):
        from tools.pf_verifier import verify
        result = verify(server_seed_hash=_sha256(self.SEED), client_seed=self.CLIENT, nonce=1)
        self.assertTrue(result.is_valid)
        self.assertTrue(result.server_seed_valid)
        self.assertEqual(result.computed_hash, _hmac("", f"{self.CLIENT}:1"))

    def test_uppercase_commitment_accepted(self):
        from tools.pf_verifier import verify
        result = verify(server_seed=self.SEED, server_seed_hash=_sha256(self.SEED).upper(),
                        client_seed=self.CLIENT, nonce=0)
        self.assertTrue(result.is_valid)

    def test_sha512_commitment(self):
        from tools.pf_verifier import verify
        commitment = hashlib.sha512(self.SEED.encode()).hexdigest()
        result = verify(server_seed=self.SEED, server_seed_hash=commitment,
                        client_seed=self.CLIENT, nonce=2, algorithm="sha512")
        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.computed_hash), 128)
        self.assertEqual(result.algorithm, "sha512")

    def test_stake_reports_its_own_algorithm(self):
        from tools.pf_verifier import verify
        result = verify(scheme="stake", server_seed=self.SEED, server_seed_hash=_sha256(self.SEED),
                        client_seed=self.CLIENT, nonce=2, algorithm="sha512")
        self.assertTrue(result.is_valid)
        self.assertEqual(result.algorithm, "sha256")
        self.assertEqual(result.computed_hash, _hmac(self.SEED, f"{self.CLIENT}:2:0"))

    def test_cursor_reaches_stake_only(self):
        from tools.pf_verifier import verify
        args = dict(server_seed=self.SEED, server_seed_hash=_sha256(self.SEED),
                    client_seed=self.CLIENT, nonce=2)
        self.assertNotEqual(verify(scheme="stake", cursor=0, **args).computed_hash,
                            verify(scheme="stake", cursor=1, **args).computed_hash)
        self.assertEqual(verify(scheme="generic", cursor=0, **args).computed_hash,
                         verify(scheme="generic", cursor=1, **args).computed_hash)

    def test_unknown_scheme_verifies_as_generic(self):
        from tools.pf_verifier import verify
        result = verify(scheme="mystery", server_seed=self.SEED,
                        server_seed_hash=_sha256(self.SEED), client_seed=self.CLIENT, nonce=0)
        self.assertEqual(result.scheme, "generic")
        self.assertEqual(result.computed_hash, _hmac(self.SEED, f"{self.CLIENT}:0"))

    def test_claimed_hash(self):
        from tools.pf_verifier import verify
        digest = _hmac(self.SEED, f"{self.CLIENT}:0")
        args = dict(server_seed=self.SEED, server_seed_hash=_sha256(self.SEED),
                    client_seed=self.CLIENT, nonce=0)
        self.assertTrue(verify(claimed_hash=digest.upper(), **args).hash_matches_claim)
        self.assertFalse(verify(claimed_hash="ab" * 32, **args).hash_matches_claim)

    def test_verify_commitment_wrapper(self):
        from pf_engine.schemes import SeedCommitment
        from tools.pf_verifier import verify_commitment
        c = SeedCommitment(server_seed_hash=_sha256(self.SEED), client_seed=self.CLIENT,
                           nonce=9, server_seed=self.SEED, cursor=1)
        result = verify_commitment(c, scheme="stake")
        self.assertTrue(result.is_valid)
        self.assertEqual(result.computed_hash, _hmac(self.SEED, f"{self.CLIENT}:9:1"))

    def test_helpers(self):
        from tools.pf_verifier import compute_provably_fair_hash, verify_server_seed_hash
        self.assertTrue(verify_server_seed_hash(self.SEED, _sha256(self.SEED)))
        self.assertFalse(verify_server_seed_hash(self.SEED, _sha256("x")))
        self.assertEqual(compute_provably_fair_hash(self.SEED, self.CLIENT, 4),
                         _hmac(self.SEED, f"{self.CLIENT}:4"))

    def test_result_to_dict(self):
        from tools.pf_verifier import verify
        d = verify(server_seed_hash=_sha256(self.SEED), client_seed=self.CLIENT, nonce=0).to_dict()
        for key in ("is_valid", "computed_hash", "normalized_float", "server_seed_valid",
                    "hash_matches_claim", "scheme", "algorithm"):
            self.assertIn(key, d)


# ============================================================
# Game Outcome Formatter
# ============================================================

class TestGameOutcomes(unittest.TestCase):

    def test_dice(self):
        from tools.game_outcomes import format_outcome
        out = format_outcome(0.4217, "dice")
        self.assertEqual(out.formatted, "42.17")
        self.assertAlmostEqual(out.raw, 42.17)

    def test_dice_raw_is_scaled_float(self):
        from tools.game_outcomes import format_outcome
        for x in (0.0, 0.123456, 0.5, 0.999999):
            self.assertEqual(format_outcome(x, "dice").raw, x * 100)

    def test_crash(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.5, "crash").formatted, "1.98x")
        self.assertEqual(format_outcome(0.0, "crash").raw, 1.0)
        self.assertGreaterEqual(format_outcome(0.999999, "crash").raw, 1.0)

    def test_limbo(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.5, "limbo").formatted, "2.00x")
        self.assertTrue(math.isinf(format_outcome(0.0, "limbo").raw))

    def test_to_dict_writes_infinite_raw_as_none(self):
        import json
        from tools.game_outcomes import format_outcome
        d = format_outcome(0.0, "limbo").to_dict()
        self.assertIsNone(d["raw"])
        self.assertEqual(d["game_type"], "limbo")
        self.assertNotIn("Infinity", json.dumps(d))
        self.assertEqual(format_outcome(0.5, "limbo").to_dict()["raw"], 2.0)

    def test_plinko(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.3, "plinko").formatted, "left")
        self.assertEqual(format_outcome(0.5, "plinko").formatted, "right")

    def test_mines_keno_roulette(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.0, "mines").formatted, "Tile 1")
        self.assertEqual(format_outcome(0.999, "mines").formatted, "Tile 25")
        self.assertEqual(format_outcome(0.0, "keno").raw, 1)
        self.assertEqual(format_outcome(0.999, "keno").formatted, "#40")
        self.assertEqual(format_outcome(0.4217, "roulette").raw, 15)

    def test_cards(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.0, "blackjack").formatted, "A of Hearts")
        self.assertEqual(format_outcome(0.25, "poker").formatted, "A of Diamonds")
        self.assertEqual(format_outcome(0.999, "baccarat").formatted, "K of Spades")

    def test_raw_and_unknown(self):
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.5, "slots").formatted, "0.50000000")
        out = format_outcome(0.5, "Craps")
        self.assertEqual(out.formatted, "0.50000000")
        self.assertEqual(out.game_type, "craps")

    def test_case_insensitive(self):
        from config.fairness_schema import GameType
        from tools.game_outcomes import format_outcome
        self.assertEqual(format_outcome(0.4217, "DICE").formatted, "42.17")
        self.assertEqual(format_outcome(0.4217, GameType.DICE).formatted, "42.17")


# ============================================================
# Request Schemas
# ============================================================

class TestSchemas(unittest.TestCase):

    def test_verify_request_aliases(self):
        from config.fairness_schema import SchemeName, VerifyRequest
        req = VerifyRequest.model_validate({
            "serverSeedHash": "ab" * 32, "clientSeed": "c", "nonce": 1, "scheme": "stake",
        })
        self.assertEqual(req.scheme, SchemeName.STAKE)
        self.assertEqual(req.cursor, 0)

    def test_verify_request_rejects_bad_input(self):
        from pydantic import ValidationError
        from config.fairness_schema import VerifyRequest
        good = {"server_seed_hash": "ab" * 32, "client_seed": "c", "nonce": 0}
        for patch in ({"server_seed_hash": "ab"}, {"server_seed_hash": "zz" * 32},
                      {"client_seed": ""}, {"client_seed": "c" * 65}, {"nonce": -1},
                      {"scheme": "unknown"}, {"algorithm": "md5"}):
            with self.assertRaises(ValidationError, msg=str(patch)):
                VerifyRequest.model_validate({**good, **patch})

    def test_rng_request_bounds(self):
        from pydantic import ValidationError
        from config.fairness_schema import AnalysisType, RngAnalysisRequest
        req = RngAnalysisRequest.model_validate({"results": [0.5] * 30, "analysisType": "quick"})
        self.assertEqual(req.analysis_type, AnalysisType.QUICK)
        self.assertEqual(req.to_options().type, AnalysisType.QUICK)
        with self.assertRaises(ValidationError):
            RngAnalysisRequest.model_validate({"results": [0.5] * 29})
        with self.assertRaises(ValidationError):
            RngAnalysisRequest.model_validate({"results": [0.5] * 29 + [1.5]})
        with self.assertRaises(ValidationError):
            RngAnalysisRequest.model_validate({"results": [0.5] * 30, "timestamps": [1.0, 2.0]})


# ============================================================
# Main
# ============================================================

if __name__ == "__main__":
    # Configure logging to suppress noise during tests
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
