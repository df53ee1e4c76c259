"""
PrintKiosk - Flask Application Entry Point.

This is a slim app factory that:
1. Builds the shared availability gate (fail-fast on bad config)
2. Builds the document inspector, submission relay and payment backend
3. Creates the wizard store (one wizard per browser session)
4. Registers route blueprints
5. Sets up error handlers

ARCHITECTURE:
    Flask request threads
    └── WizardStore -> PrintWizard (one per session)
            ├── AvailabilityGate  (shared by every session)
            ├── DocumentInspector (pypdf)
            ├── SubmissionRelay   (email / lp / simulated)
            └── PaymentConfirmation (simulated / UPI)

    WaitingPoller threads (one per waiting wizard)
    └── re-check the gate every WAITING_POLL_INTERVAL_SECONDS
"""

from __future__ import annotations

import atexit
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from core.exceptions import ConfigurationError
from modules.document_inspector import DocumentInspector
from services.availability_gate import AvailabilityGate, InMemoryStore, JsonFileStore, KeyValueStore
from services.payment import build_payment
from services.submission_relay import build_relay
from services.wizard_store import WizardStore
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def build_gate_store(config) -> KeyValueStore:
    """
    Create the shared slot store named by ``config["GATE_BACKEND"]``.

    Raises:
        ConfigurationError: unknown backend
    """
    backend = config.get("GATE_BACKEND", "memory")
    if backend == "memory":
        return InMemoryStore()
    if backend == "file":
        return JsonFileStore(config["GATE_STATE_FILE"])
    raise ConfigurationError("GATE_BACKEND", backend, "Use one of: memory, file")


def create_app(config_object: str = "config.Config", **overrides: Any) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Import path of the config class
        **overrides: Config values applied after the config class
            (tests inject GATE_CLOCK, fake relays, etc. this way)

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If a backend name or its settings are invalid
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        log_dir=app.config.get("LOG_DIR"),
        enable_file_logging=enable_file_logging,
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting PrintKiosk in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SHARED SERVICES (FAIL-FAST)
    # =========================================================================

    try:
        gate = app.config.get("AVAILABILITY_GATE")
        if gate is None:
            gate_kwargs = {"key": app.config["GATE_KEY"]}
            if app.config.get("GATE_CLOCK"):
                gate_kwargs["clock"] = app.config["GATE_CLOCK"]
            gate = AvailabilityGate(build_gate_store(app.config), **gate_kwargs)

        relay = app.config.get("SUBMISSION_RELAY") or build_relay(app.config)
        payment = app.config.get("PAYMENT_BACKEND_INSTANCE") or build_payment(app.config)
    except ConfigurationError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    inspector = app.config.get("DOCUMENT_INSPECTOR") or DocumentInspector()

    app.config["AVAILABILITY_GATE"] = gate
    app.config["SUBMISSION_RELAY"] = relay
    app.config["PAYMENT_BACKEND_INSTANCE"] = payment
    app.config["DOCUMENT_INSPECTOR"] = inspector
    logger.info(f"Backends: gate={app.config['GATE_BACKEND']}, relay={relay.name}, payment={payment.name}")

    store_kwargs = {}
    if app.config.get("WIZARD_CLOCK"):
        store_kwargs["clock"] = app.config["WIZARD_CLOCK"]
    wizard_store = WizardStore(
        gate=gate,
        inspector=inspector,
        relay=relay,
        payment=payment,
        price_per_page=app.config["PRICE_PER_PAGE"],
        busy_duration_ms=app.config["PRINTER_BUSY_DURATION_MS"],
        max_file_size_bytes=app.config["MAX_FILE_SIZE_BYTES"],
        poll_interval_seconds=app.config["WAITING_POLL_INTERVAL_SECONDS"],
        idle_timeout_seconds=app.config["WIZARD_IDLE_TIMEOUT_SECONDS"],
        **store_kwargs,
    )
    app.config["WIZARD_STORE"] = wizard_store

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Stop every waiting poller on shutdown."""
        logger.info("Shutting down...")
        wizard_store.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config["MAX_FILE_SIZE_BYTES"] / (1024 * 1024)
        return {"error": f"File is too large. Maximum size is {max_mb:.0f}MB."}, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "Not found."}, 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(500)
    def handle_server_error(e):
        original = getattr(e, "original_exception", None) or e
        if isinstance(original, HTTPException):
            return original
        logger.error(f"500 error: {original}", exc_info=original)
        return {"error": "An unexpected error occurred. Please try again."}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", debug=app.config.get("DEBUG", False))
