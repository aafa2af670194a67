#!/usr/bin/env python3
"""
FAIRLENS — HTTP API Tests (Flask test client)

Run: python tests_api.py -v
"""

import hashlib
import hmac
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

SEED = "e5f0c9a7d3b1"
CLIENT = "lucky-client"


def _sha256(s: str) -> str:
    return hashlib.sha256(s.encode()).hexdigest()


def _hmac(key: str, message: str) -> str:
    return hmac.new(key.encode(), message.encode(), hashlib.sha256).hexdigest()


class ApiTestCase(unittest.TestCase):

    def setUp(self):
        from web_app import create_app
        app = create_app()
        app.config["TESTING"] = True
        self.client = app.test_client()

    def assertEnvelope(self, resp, status: int, success: bool):
        self.assertEqual(resp.status_code, status, resp.get_data(as_text=True))
        body = resp.get_json()
        self.assertIs(body["success"], success)
        self.assertIn("timestamp", body["meta"])
        return body


class TestVerifyEndpoint(ApiTestCase):

    def test_verify_revealed_round(self):
        resp = self.client.post("/api/v1/verify", json={
            "serverSeedHash": _sha256(SEED),
            "clientSeed": CLIENT,
            "nonce": 3,
            "serverSeed": SEED,
            "gameType": "dice",
        })
        data = self.assertEnvelope(resp, 201, True)["data"]
        digest = _hmac(SEED, f"{CLIENT}:3")
        self.assertTrue(data["verified"])
        self.assertTrue(data["serverSeedValid"])
        self.assertEqual(data["computedHash"], digest)
        self.assertEqual(data["normalizedResult"], int(digest[:8], 16) / 2 ** 32)
        self.assertEqual(data["gameOutcome"]["gameType"], "dice")
        self.assertEqual(data["gameOutcome"]["formatted"],
                         f"{int(digest[:8], 16) / 2 ** 32 * 100:.2f}")
        self.assertIsNone(data["hashMatchesClaim"])
        self.assertEqual(data["details"]["scheme"], "generic")
        self.assertTrue(data["details"]["serverSeedProvided"])

    def test_verify_snake_case_and_stake(self):
        resp = self.client.post("/api/v1/verify", json={
            "server_seed_hash": _sha256(SEED),
            "client_seed": CLIENT,
            "nonce": 3,
            "server_seed": SEED,
            "scheme": "stake",
            "cursor": 2,
        })
        data = self.assertEnvelope(resp, 201, True)["data"]
        self.assertEqual(data["computedHash"], _hmac(SEED, f"{CLIENT}:3:2"))
        self.assertIsNone(data["gameOutcome"])
        self.assertEqual(data["details"]["cursor"], 2)

    def test_verify_bad_commitment(self):
        resp = self.client.post("/api/v1/verify", json={
            "serverSeedHash": _sha256("something else"),
            "clientSeed": CLIENT,
            "nonce": 0,
            "serverSeed": SEED,
        })
        data = self.assertEnvelope(resp, 201, True)["data"]
        self.assertFalse(data["verified"])
        self.assertFalse(data["serverSeedValid"])

    def test_verify_claimed_hash(self):
        resp = self.client.post("/api/v1/verify", json={
            "serverSeedHash": _sha256(SEED),
            "clientSeed": CLIENT,
            "nonce": 0,
            "serverSeed": SEED,
            "claimedHash": _hmac(SEED, f"{CLIENT}:0"),
        })
        self.assertTrue(self.assertEnvelope(resp, 201, True)["data"]["hashMatchesClaim"])

    def test_verify_validation_error(self):
        resp = self.client.post("/api/v1/verify", json={
            "serverSeedHash": "abc",
            "clientSeed": "",
            "nonce": -1,
        })
        body = self.assertEnvelope(resp, 422, False)
        self.assertEqual(body["error"]["code"], "VALIDATION_ERROR")
        self.assertGreaterEqual(len(body["error"]["details"]), 3)

    def test_malformed_json(self):
        resp = self.client.post("/api/v1/verify", data="{not json",
                                content_type="application/json")
        body = self.assertEnvelope(resp, 400, False)
        self.assertEqual(body["error"]["code"], "BAD_REQUEST")

    def test_unexpected_error_is_500(self):
        with patch("api.fairness_routes.verify", side_effect=RuntimeError("boom")):
            resp = self.client.post("/api/v1/verify", json={
                "serverSeedHash": _sha256(SEED), "clientSeed": CLIENT, "nonce": 0,
            })
        body = self.assertEnvelope(resp, 500, False)
        self.assertEqual(body["error"]["code"], "INTERNAL_ERROR")
        self.assertNotIn("boom", body["error"]["message"])

    def test_infinite_outcome_is_valid_json(self):
        from tools.pf_verifier import VerificationResult
        zero = VerificationResult(is_valid=True, computed_hash="0" * 64,
                                  normalized_float=0.0, server_seed_valid=True)
        with patch("api.fairness_routes.verify", return_value=zero):
            resp = self.client.post("/api/v1/verify", json={
                "serverSeedHash": _sha256(SEED), "clientSeed": CLIENT, "nonce": 0,
                "gameType": "limbo",
            })
        data = self.assertEnvelope(resp, 201, True)["data"]
        self.assertIsNone(data["gameOutcome"]["raw"])
        self.assertEqual(data["gameOutcome"]["gameType"], "limbo")
        self.assertNotIn(b"Infinity", resp.data)


class TestRngAnalysisEndpoint(ApiTestCase):

    def test_analysis(self):
        resp = self.client.post("/api/v1/rng-analysis", json={
            "results": [0.1, 0.9] * 50,
            "analysisType": "comprehensive",
            "gameType": "dice",
        })
        data = self.assertEnvelope(resp, 201, True)["data"]
        self.assertEqual(data["sampleSize"], 100)
        self.assertEqual(data["verdict"], "concerning")
        self.assertEqual(data["gameType"], "dice")
        self.assertEqual(len(data["tests"]), 6)
        self.assertEqual(set(data["tests"][0]), {"testName", "statistic", "pValue", "passed"})
        self.assertEqual([a["type"] for a in data["anomalies"]], ["bias", "pattern"])

    def test_too_few_results(self):
        resp = self.client.post("/api/v1/rng-analysis", json={"results": [0.5] * 10})
        body = self.assertEnvelope(resp, 422, False)
        self.assertEqual(body["error"]["code"], "VALIDATION_ERROR")

    def test_out_of_range_results(self):
        resp = self.client.post("/api/v1/rng-analysis", json={"results": [0.5] * 29 + [2.0]})
        self.assertEnvelope(resp, 422, False)

    def test_unexpected_error_is_500(self):
        with patch("api.fairness_routes.analyze", side_effect=RuntimeError("boom")):
            resp = self.client.post("/api/v1/rng-analysis", json={"results": [0.5] * 30})
        body = self.assertEnvelope(resp, 500, False)
        self.assertEqual(body["error"]["code"], "INTERNAL_ERROR")


class TestSchemesEndpoint(ApiTestCase):

    def test_schemes(self):
        resp = self.client.get("/api/v1/schemes")
        data = self.assertEnvelope(resp, 200, True)["data"]
        self.assertEqual([s["name"] for s in data], ["generic", "stake", "bc-game"])
        self.assertEqual(data[1]["message"], "clientSeed:nonce:cursor")

    def test_health_and_404(self):
        self.assertEqual(self.client.get("/health").status_code, 200)
        resp = self.client.get("/api/v1/nope")
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(resp.get_json()["success"])


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
