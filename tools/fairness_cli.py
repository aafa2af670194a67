#!/usr/bin/env python3
"""
FAIRLENS — Fairness CLI

Usage:
    python -m tools.fairness_cli verify --server-seed-hash c665... --client-seed abc --nonce 6 \\
        --server-seed b218... --scheme stake --game dice
    python -m tools.fairness_cli schemes
    python -m tools.fairness_cli analyze outcomes.json --type quick
    python -m tools.fairness_cli analyze outcomes.txt --timestamps times.txt --json

Exit codes: 0 verified / fair, 1 not verified / not fair, 2 bad input.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.fairness_schema import (
    AnalysisType, GameType, HashAlgorithm, RngAnalysisRequest, SchemeName, Verdict, VerifyRequest,
)
from config.settings import AnalysisConfig
from pf_engine.schemes import SCHEMES
from tools.game_outcomes import format_outcome
from tools.pf_verifier import verify
from tools.rng_analyzer import analyze

logger = logging.getLogger("fairlens.cli")
console = Console()

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_INPUT = 2


class InputError(ValueError):
    """A sample or timestamp file could not be read."""


def _setup_logging(verbose: bool):
    root = logging.getLogger("fairlens")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def read_floats(path) -> list[float]:
    """Load a JSON array of numbers or one number per line."""
    try:
        text = Path(path).read_text(encoding="utf-8").strip()
    except OSError as e:
        raise InputError(f"cannot read {path}: {e}")

    if text.startswith("["):
        try:
            values = json.loads(text)
        except json.JSONDecodeError as e:
            raise InputError(f"{path}: invalid JSON ({e})")
        if not isinstance(values, list):
            raise InputError(f"{path}: expected a JSON array")
    else:
        values = [line.strip() for line in text.splitlines() if line.strip()]

    out = []
    for i, v in enumerate(values):
        try:
            out.append(float(v))
        except (TypeError, ValueError):
            raise InputError(f"{path}: entry {i} is not a number: {v!r}")
    return out


def _validation_message(exc: ValidationError) -> str:
    return "\n".join(
        f"  {'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
        for err in exc.errors()
    )


def _bad_input(message: str) -> int:
    console.print(f"[bold red]❌ Invalid input[/bold red]\n{message}")
    return EXIT_BAD_INPUT


# ═══════════════════════════════════════════════════════════
# Commands
# ═══════════════════════════════════════════════════════════

def cmd_verify(args) -> int:
    try:
        req = VerifyRequest(
            server_seed_hash=args.server_seed_hash,
            client_seed=args.client_seed,
            nonce=args.nonce,
            server_seed=args.server_seed,
            scheme=args.scheme,
            algorithm=args.algorithm,
            cursor=args.cursor,
            game_type=args.game,
            claimed_hash=args.claimed_hash,
        )
    except ValidationError as e:
        return _bad_input(_validation_message(e))

    result = verify(
        scheme=req.scheme,
        server_seed=req.server_seed,
        server_seed_hash=req.server_seed_hash,
        client_seed=req.client_seed,
        nonce=req.nonce,
        algorithm=req.algorithm,
        cursor=req.cursor,
        claimed_hash=req.claimed_hash,
    )
    outcome = format_outcome(result.normalized_float, req.game_type) if req.game_type else None

    ok = result.is_valid and result.hash_matches_claim is not False
    if args.json:
        payload = result.to_dict()
        payload["game_outcome"] = outcome.to_dict() if outcome else None
        print(json.dumps(payload, indent=2))
        return EXIT_OK if ok else EXIT_FAILED

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Scheme", f"{result.scheme} ({result.algorithm})")
    table.add_row("Nonce / cursor", f"{req.nonce} / {req.cursor}")
    if req.server_seed:
        seed_style = "green" if result.server_seed_valid else "red"
        table.add_row("Server seed", f"[{seed_style}]"
                      f"{'matches commitment' if result.server_seed_valid else 'DOES NOT match commitment'}"
                      f"[/{seed_style}]")
    else:
        table.add_row("Server seed", "[yellow]not revealed yet[/yellow]")
    table.add_row("Computed hash", result.computed_hash)
    table.add_row("Normalized", f"{result.normalized_float:.10f}")
    if result.hash_matches_claim is not None:
        table.add_row("Claimed hash", "[green]matches[/green]" if result.hash_matches_claim
                      else "[red]MISMATCH[/red]")
    if outcome:
        table.add_row("Outcome", f"{outcome.formatted} ({outcome.game_type})")

    title = "[bold green]✅ Verified[/bold green]" if ok else "[bold red]❌ Verification failed[/bold red]"
    console.print(Panel(table, title=title, border_style="green" if ok else "red"))
    return EXIT_OK if ok else EXIT_FAILED


def cmd_schemes(args) -> int:
    schemes = [s.get_metadata() for s in SCHEMES.values()]
    if args.json:
        print(json.dumps(schemes, indent=2))
        return EXIT_OK

    table = Table(title="Provably-fair schemes")
    table.add_column("Name", style="cyan")
    table.add_column("Operator")
    table.add_column("Algorithms")
    table.add_column("HMAC key")
    table.add_column("HMAC message")
    for s in schemes:
        table.add_row(s["name"], s["display_name"], ", ".join(s["algorithms"]), s["key"], s["message"])
    console.print(table)
    return EXIT_OK


def cmd_analyze(args) -> int:
    try:
        results = read_floats(args.file)
        timestamps = read_floats(args.timestamps) if args.timestamps else None
        req = RngAnalysisRequest(
            results=results,
            analysis_type=args.type,
            significance_level=args.significance,
            timestamps=timestamps,
        )
    except InputError as e:
        return _bad_input(f"  {e}")
    except ValidationError as e:
        return _bad_input(_validation_message(e))

    analysis = analyze(req.results, req.to_options())
    fair = analysis.verdict == Verdict.FAIR

    if args.json:
        print(json.dumps(analysis.to_dict(), indent=2))
        return EXIT_OK if fair else EXIT_FAILED

    style = {
        Verdict.FAIR: "green",
        Verdict.SUSPICIOUS: "yellow",
        Verdict.CONCERNING: "red",
    }.get(analysis.verdict, "dim")

    console.print(Panel(
        f"[bold]Score:[/bold] {analysis.overall_score}/100\n"
        f"[bold]Verdict:[/bold] [{style}]{analysis.verdict.value}[/{style}]\n"
        f"[bold]Samples:[/bold] {analysis.sample_size} ({analysis.analysis_type.value})\n\n"
        f"{analysis.summary}",
        title="[bold cyan]🎲 RNG Fairness Analysis[/bold cyan]",
        border_style=style,
    ))

    if analysis.tests:
        table = Table(title="Statistical tests")
        table.add_column("Test", style="cyan")
        table.add_column("Statistic", justify="right")
        table.add_column("p-value", justify="right")
        table.add_column("Result")
        for t in analysis.tests:
            if t.details.get("error"):
                status = f"[dim]skipped: {t.details['error']}[/dim]"
            else:
                status = "[green]pass[/green]" if t.passed else "[red]fail[/red]"
            table.add_row(t.test_name, f"{t.statistic:.4f}", f"{t.p_value:.4f}", status)
        console.print(table)

    if analysis.anomalies:
        table = Table(title="Anomalies")
        table.add_column("Type", style="magenta")
        table.add_column("Confidence", justify="right")
        table.add_column("Description")
        for a in analysis.anomalies:
            table.add_row(a.type.value, f"{a.confidence:.2f}", a.description)
        console.print(table)

    return EXIT_OK if fair else EXIT_FAILED


# ═══════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fairlens", description="Verify provably fair rounds and analyze RNG fairness",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("verify", help="Verify one provably fair round")
    p.add_argument("--server-seed-hash", required=True, help="Published commitment (hex)")
    p.add_argument("--client-seed", required=True)
    p.add_argument("--nonce", type=int, required=True)
    p.add_argument("--server-seed", default=None, help="Revealed server seed")
    p.add_argument("--scheme", default=SchemeName.GENERIC.value, choices=[s.value for s in SchemeName])
    p.add_argument("--algorithm", default=HashAlgorithm.SHA256.value,
                   choices=[a.value for a in HashAlgorithm])
    p.add_argument("--cursor", type=int, default=0)
    p.add_argument("--game", default=None, choices=[g.value for g in GameType])
    p.add_argument("--claimed-hash", default=None, help="Round hash reported by the operator")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_verify)

    p = sub.add_parser("schemes", help="List supported schemes")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_schemes)

    p = sub.add_parser("analyze", help="Analyze a batch of normalized outcomes")
    p.add_argument("file", help="JSON array or one float per line")
    p.add_argument("--type", default=AnalysisType.COMPREHENSIVE.value,
                   choices=[t.value for t in AnalysisType])
    p.add_argument("--significance", type=float, default=AnalysisConfig.SIGNIFICANCE_LEVEL)
    p.add_argument("--timestamps", default=None, help="Unix-ms timestamps, same format as FILE")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_analyze)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    logger.debug(f"command={args.command}")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
