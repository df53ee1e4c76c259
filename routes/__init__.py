"""
Flask route blueprints for PrintKiosk.

This module contains all route handlers organized by functionality:
- main: Plain-text banner
- wizard: JSON wizard actions (upload, options, payment, printing)
- relay: Direct multipart print relay (/api/print)
- api: Status endpoints (printer status, health)

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .wizard import wizard_bp
from .relay import relay_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "wizard_bp",
    "relay_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(wizard_bp)
    app.register_blueprint(relay_bp)
    app.register_blueprint(api_bp)
