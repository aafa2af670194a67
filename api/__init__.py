"""
FAIRLENS — Public Fairness API

Flask blueprint: /api/v1/*
3 endpoints: verify, rng-analysis, schemes
"""

from flask import Blueprint

fairness_bp = Blueprint("fairness", __name__, url_prefix="/api/v1")

from api import fairness_routes  # noqa: E402, F401
