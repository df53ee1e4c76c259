"""
Main routes.

Plain-text banner so a browser pointed at the server shows something useful.
"""

from flask import Blueprint

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    return "API is running. Use POST /api/print to upload files, or /api/wizard to place an order."
