"""
Configuration for PrintKiosk.

Every setting can be overridden from the environment or a .env file.
Backend names (gate, relay, payment) are validated when the app is created.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "print_kiosk_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    LOG_DIR = os.environ.get("LOG_DIR", str(BASE_DIR / "logs"))

    # ==========================================================================
    # Upload acceptance
    # ==========================================================================
    # MAX_FILE_SIZE_BYTES is the per-document limit checked by the wizard.
    # MAX_CONTENT_LENGTH is Werkzeug's hard cap on the whole request body; it
    # leaves room for multipart framing so an exactly-10 MiB file still gets
    # through to the friendlier wizard check.
    MAX_FILE_SIZE_MB = 10
    MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
    MAX_CONTENT_LENGTH = MAX_FILE_SIZE_BYTES + 1024 * 1024

    # ==========================================================================
    # Pricing
    # ==========================================================================
    # cost = pages x copies x PRICE_PER_PAGE
    PRICE_PER_PAGE = float(os.environ.get("PRICE_PER_PAGE", "1"))
    CURRENCY = os.environ.get("CURRENCY", "INR")

    # ==========================================================================
    # Availability gate
    # ==========================================================================
    # GATE_BACKEND:
    #   memory - slot shared by every session in this process
    #   file   - slot stored in GATE_STATE_FILE, shared by every process
    PRINTER_BUSY_DURATION_MS = int(os.environ.get("PRINTER_BUSY_DURATION_MS", str(60 * 1000)))
    WAITING_POLL_INTERVAL_SECONDS = float(os.environ.get("WAITING_POLL_INTERVAL_SECONDS", "1.0"))
    # Wizards of sessions idle this long are discarded (matches the session lifetime)
    WIZARD_IDLE_TIMEOUT_SECONDS = float(os.environ.get("WIZARD_IDLE_TIMEOUT_SECONDS", "3600"))
    GATE_BACKEND = os.environ.get("GATE_BACKEND", "memory")
    GATE_STATE_FILE = os.environ.get(
        "GATE_STATE_FILE", str(BASE_DIR / "instance" / "printer_gate.json")
    )
    GATE_KEY = os.environ.get("GATE_KEY", "printerBusyUntilTimestamp")

    # ==========================================================================
    # Submission relay
    # ==========================================================================
    # RELAY_BACKEND: email | print | simulated
    RELAY_BACKEND = os.environ.get("RELAY_BACKEND", "simulated")

    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", "1")
    SMTP_TIMEOUT_SECONDS = float(os.environ.get("SMTP_TIMEOUT_SECONDS", "30"))
    SENDER_EMAIL = os.environ.get("SENDER_EMAIL", "")
    SENDER_EMAIL_PASS = os.environ.get("SENDER_EMAIL_PASS", "")
    PRINTER_EMAIL = os.environ.get("PRINTER_EMAIL", "")

    PRINTER_NAME = os.environ.get("PRINTER_NAME", "")
    LP_PATH = os.environ.get("LP_PATH", "lp")

    # ==========================================================================
    # Payment
    # ==========================================================================
    # PAYMENT_BACKEND: simulated | upi
    PAYMENT_BACKEND = os.environ.get("PAYMENT_BACKEND", "simulated")
    UPI_ID = os.environ.get("UPI_ID", "")
    UPI_PAYEE_NAME = os.environ.get("UPI_PAYEE_NAME", "Print Kiosk")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour
    GATE_BACKEND = os.environ.get("GATE_BACKEND", "file")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    SECRET_KEY = "test-secret-key"
    GATE_BACKEND = "memory"
    RELAY_BACKEND = "simulated"
    PAYMENT_BACKEND = "simulated"
    PRICE_PER_PAGE = 1.0
    # Background pollers are disabled; tests drive poll_availability() directly
    WAITING_POLL_INTERVAL_SECONDS = 0
