"""
FAIRLENS — Provably Fair Verification & RNG Fairness API
"""
import logging
import os

from dotenv import load_dotenv
load_dotenv()

from config.settings import LOG_LEVEL

# ── Structured logging ──
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("fairlens")

from flask import Flask, jsonify, request


def create_app() -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False

    from api import fairness_bp
    app.register_blueprint(fairness_bp)
    logger.info("Registered fairness API blueprint at /api/v1/")

    @app.route("/health")
    def health_check():
        return jsonify({"status": "ok"}), 200

    @app.errorhandler(404)
    def error_404(e):
        if request.path.startswith("/api/"):
            return jsonify({"success": False,
                            "error": {"code": "NOT_FOUND", "message": "Resource not found"}}), 404
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def error_405(e):
        return jsonify({"success": False,
                        "error": {"code": "METHOD_NOT_ALLOWED", "message": str(e)}}), 405

    @app.errorhandler(500)
    def error_500(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"success": False,
                        "error": {"code": "INTERNAL_ERROR",
                                  "message": "An unexpected error occurred"}}), 500

    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", 5000))
    logger.info(f"FAIRLENS — http://localhost:{port}")
    create_app().run(debug=os.getenv("FLASK_DEBUG", "false").lower() == "true",
                     host="0.0.0.0", port=port)
