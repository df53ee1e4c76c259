"""
API routes (status endpoints).

Handles:
- /api/printer-status - Availability gate check with countdown
- /health - Health check endpoint
"""

from flask import (
    Blueprint,
    current_app,
)

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/printer-status", methods=["GET"])
def printer_status():
    """
    Check whether the printer is presumed busy.

    Note: reading the gate clears an expired busy window.
    """
    gate = current_app.config["AVAILABILITY_GATE"]
    availability = gate.check_status()
    return availability.to_dict(gate.now())


@api_bp.route("/health", methods=["GET"])
def health():
    """
    Health check endpoint.

    Reports the gate state and which backends are configured.
    """
    gate = current_app.config["AVAILABILITY_GATE"]
    store = current_app.config["WIZARD_STORE"]

    try:
        printer = gate.check_status().to_dict(gate.now())
    except OSError as e:
        logger.error(f"Health check could not read gate: {e}")
        return {"status": "degraded", "error": "Availability gate unreadable"}, 503

    return {
        "status": "ok",
        "printer": printer,
        "relay": current_app.config["SUBMISSION_RELAY"].name,
        "payment": current_app.config["PAYMENT_BACKEND_INSTANCE"].name,
        "activeSessions": len(store),
    }
