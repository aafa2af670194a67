"""
FAIRLENS — Fairness API Routes

POST /api/v1/verify         recompute a round and check the seed commitment
POST /api/v1/rng-analysis   score a batch of outcomes for fairness
GET  /api/v1/schemes        list the supported operator schemes

Every response uses the same envelope:
    {"success": true,  "data": ..., "meta": {"timestamp": ...}}
    {"success": false, "error": {"code", "message", "details"?}, "meta": {...}}
"""

import logging
from datetime import datetime, timezone

from flask import jsonify, request
from pydantic import ValidationError

from api import fairness_bp
from config.fairness_schema import RngAnalysisRequest, VerifyRequest
from pf_engine.schemes import SCHEMES
from tools.game_outcomes import format_outcome
from tools.pf_verifier import verify
from tools.rng_analyzer import analyze

logger = logging.getLogger("fairlens.api")


# ═══════════════════════════════════════════════════════════
# Envelope helpers
# ═══════════════════════════════════════════════════════════

def _meta() -> dict:
    return {"timestamp": datetime.now(timezone.utc).isoformat()}


def success_response(data, status: int = 200):
    return jsonify({"success": True, "data": data, "meta": _meta()}), status


def error_response(code: str, message: str, status: int = 400, details: dict = None):
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return jsonify({"success": False, "error": error, "meta": _meta()}), status


def validation_error(exc: ValidationError):
    details = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "body"
        details.setdefault(field, []).append(err["msg"])
    return error_response("VALIDATION_ERROR", "Invalid request data", 422, details)


def _json_body():
    body = request.get_json(silent=True)
    if body is None:
        return None, error_response("BAD_REQUEST", "Request body must be valid JSON", 400)
    return body, None


# ═══════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════

@fairness_bp.route("/verify", methods=["POST"])
def verify_round():
    body, err = _json_body()
    if err:
        return err

    try:
        req = VerifyRequest.model_validate(body)
    except ValidationError as e:
        return validation_error(e)

    try:
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

        game_outcome = None
        if req.game_type is not None:
            outcome = format_outcome(result.normalized_float, req.game_type).to_dict()
            game_outcome = {
                "raw": outcome["raw"],
                "formatted": outcome["formatted"],
                "gameType": outcome["game_type"],
            }
    except Exception:
        logger.exception("verify failed")
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    logger.info(f"verify scheme={result.scheme} nonce={req.nonce} verified={result.is_valid}")

    return success_response({
        "verified": result.is_valid,
        "serverSeedValid": result.server_seed_valid,
        "computedHash": result.computed_hash,
        "normalizedResult": result.normalized_float,
        "gameOutcome": game_outcome,
        "hashMatchesClaim": result.hash_matches_claim,
        "details": {
            "scheme": result.scheme,
            "algorithm": result.algorithm,
            "cursor": req.cursor,
            "serverSeedProvided": bool(req.server_seed),
        },
    }, 201)


@fairness_bp.route("/rng-analysis", methods=["POST"])
def rng_analysis():
    body, err = _json_body()
    if err:
        return err

    try:
        req = RngAnalysisRequest.model_validate(body)
    except ValidationError as e:
        return validation_error(e)

    try:
        analysis = analyze(req.results, req.to_options())
    except Exception:
        logger.exception("rng analysis failed")
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    return success_response({
        "id": analysis.id,
        "sampleSize": analysis.sample_size,
        "analysisType": analysis.analysis_type.value,
        "gameType": req.game_type.value if req.game_type else None,
        "overallScore": analysis.overall_score,
        "verdict": analysis.verdict.value,
        "summary": analysis.summary,
        "tests": [
            {
                "testName": t.test_name,
                "statistic": t.statistic,
                "pValue": t.p_value,
                "passed": t.passed,
            }
            for t in analysis.tests
        ],
        "anomalies": [
            {
                "type": a.type.value,
                "confidence": a.confidence,
                "description": a.description,
            }
            for a in analysis.anomalies
        ],
        "timestamp": analysis.timestamp.isoformat(),
    }, 201)


@fairness_bp.route("/schemes", methods=["GET"])
def list_schemes():
    return success_response([s.get_metadata() for s in SCHEMES.values()])
