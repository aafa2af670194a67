#!/usr/bin/env python3
"""
FAIRLENS — CLI Tests

Run: python tests_cli.py -v
"""

import contextlib
import hashlib
import io
import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

SEED = "cafebabe1234"
CLIENT = "cli-client"


def _sha256(s: str) -> str:
    return hashlib.sha256(s.encode()).hexdigest()


def run_cli(*argv):
    """Run the CLI in-process; returns (exit_code, stdout)."""
    from tools.fairness_cli import main
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


class TestVerifyCommand(unittest.TestCase):

    def test_verified_json(self):
        code, out = run_cli("verify", "--server-seed-hash", _sha256(SEED), "--client-seed", CLIENT,
                            "--nonce", "5", "--server-seed", SEED, "--game", "roulette", "--json")
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertTrue(payload["is_valid"])
        self.assertEqual(payload["scheme"], "generic")
        self.assertEqual(payload["game_outcome"]["game_type"], "roulette")

    def test_verified_table(self):
        code, out = run_cli("verify", "--server-seed-hash", _sha256(SEED), "--client-seed", CLIENT,
                            "--nonce", "5", "--server-seed", SEED, "--scheme", "bc-game")
        self.assertEqual(code, 0)
        self.assertIn("Verified", out)

    def test_bad_commitment_exits_1(self):
        code, _ = run_cli("verify", "--server-seed-hash", _sha256("other"), "--client-seed", CLIENT,
                          "--nonce", "5", "--server-seed", SEED)
        self.assertEqual(code, 1)

    def test_claimed_hash_mismatch_exits_1(self):
        code, out = run_cli("verify", "--server-seed-hash", _sha256(SEED), "--client-seed", CLIENT,
                            "--nonce", "5", "--server-seed", SEED, "--claimed-hash", "00" * 32,
                            "--json")
        self.assertEqual(code, 1)
        self.assertFalse(json.loads(out)["hash_matches_claim"])

    def test_invalid_input_exits_2(self):
        code, _ = run_cli("verify", "--server-seed-hash", "short", "--client-seed", CLIENT,
                          "--nonce", "5")
        self.assertEqual(code, 2)

    def test_unknown_scheme_rejected_by_argparse(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                run_cli("verify", "--server-seed-hash", _sha256(SEED), "--client-seed", CLIENT,
                        "--nonce", "1", "--scheme", "casino-x")
        self.assertEqual(cm.exception.code, 2)


class TestSchemesCommand(unittest.TestCase):

    def test_schemes_json(self):
        code, out = run_cli("schemes", "--json")
        self.assertEqual(code, 0)
        self.assertEqual([s["name"] for s in json.loads(out)], ["generic", "stake", "bc-game"])

    def test_schemes_table(self):
        code, out = run_cli("schemes")
        self.assertEqual(code, 0)
        self.assertIn("Stake", out)


class TestAnalyzeCommand(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _write(self, name: str, text: str) -> str:
        path = Path(self.tmpdir) / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_json_array_input(self):
        path = self._write("r.json", json.dumps([0.1, 0.9] * 50))
        code, out = run_cli("analyze", path, "--json")
        self.assertEqual(code, 1)
        payload = json.loads(out)
        self.assertEqual(payload["verdict"], "concerning")
        self.assertEqual(payload["sample_size"], 100)

    def test_line_input_and_type(self):
        path = self._write("r.txt", "\n".join(["0.1", "0.9"] * 50) + "\n")
        code, out = run_cli("analyze", path, "--type", "quick", "--json")
        self.assertEqual(code, 1)
        payload = json.loads(out)
        self.assertEqual(payload["analysis_type"], "quick")
        self.assertEqual(len(payload["tests"]), 2)

    def test_rich_report(self):
        path = self._write("r.json", json.dumps([0.1, 0.9] * 50))
        code, out = run_cli("analyze", path)
        self.assertEqual(code, 1)
        self.assertIn("concerning", out)
        self.assertIn("Chi-Square Test", out)

    def test_timestamps(self):
        results = self._write("r.json", json.dumps([0.9] * 40))
        stamps = self._write("t.json", json.dumps([i * 500 for i in range(40)]))
        code, out = run_cli("analyze", results, "--type", "anomaly", "--timestamps", stamps, "--json")
        self.assertEqual(code, 1)
        self.assertIn("timing", [a["type"] for a in json.loads(out)["anomalies"]])

    def test_bad_inputs_exit_2(self):
        not_numbers = self._write("bad.txt", "0.1\nabc\n")
        too_few = self._write("few.json", json.dumps([0.5] * 10))
        not_list = self._write("obj.json", '[0.1, {"x": 1}]')
        results = self._write("r.json", json.dumps([0.5] * 40))
        short_stamps = self._write("t.json", json.dumps([1, 2, 3]))
        cases = [
            ("analyze", not_numbers),
            ("analyze", too_few),
            ("analyze", not_list),
            ("analyze", str(Path(self.tmpdir) / "missing.json")),
            ("analyze", results, "--timestamps", short_stamps),
            ("analyze", results, "--significance", "1.5"),
        ]
        for argv in cases:
            code, _ = run_cli(*argv)
            self.assertEqual(code, 2, argv)

    def test_read_floats(self):
        from tools.fairness_cli import read_floats
        path = self._write("f.txt", "  0.25\n\n0.5\n")
        self.assertEqual(read_floats(path), [0.25, 0.5])


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
