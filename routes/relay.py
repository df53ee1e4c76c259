"""
Direct print relay route.

POST /api/print takes a multipart upload and forwards it to the configured
submission relay in one hop: no wizard, no payment, no availability check.
The file is read into memory and never written to the upload area.
"""

from flask import (
    Blueprint,
    current_app,
    request,
)

from core.exceptions import RelayError
from models.print_job import RelayMetadata
from modules.file_validation import sanitize_file_name
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

relay_bp = Blueprint("relay", __name__)


def _pick_file(files):
    """
    Find the uploaded file.

    Clients disagree on the field name, so accept "file", then an unnamed
    field, then whatever file came first.
    """
    for key in ("file", ""):
        uploaded = files.get(key)
        if uploaded is not None and uploaded.filename:
            return uploaded, key
    for key in files:
        uploaded = files.get(key)
        if uploaded is not None and uploaded.filename:
            logger.debug(f"Picked file from key: {key!r}")
            return uploaded, key
    return None, None


@relay_bp.route("/api/print", methods=["POST"])
def print_file():
    uploaded, field_name = _pick_file(request.files)
    if uploaded is None:
        logger.warning("Print request without a file")
        return {"error": "No file uploaded", "fields": sorted(request.files.keys())}, 400

    try:
        metadata = RelayMetadata.from_form(request.form, current_app.config["PRICE_PER_PAGE"])
    except ValueError as e:
        return {"error": "Invalid print settings", "details": str(e)}, 400

    file_name = sanitize_file_name(uploaded.filename) or "document"
    data = uploaded.read()

    relay = current_app.config["SUBMISSION_RELAY"]
    logger.info(f"Relaying {file_name} ({len(data)} bytes) from field {field_name!r} via {relay.name}")

    try:
        ack = relay.submit(data, file_name, metadata)
    except RelayError as e:
        return {"error": e.message, "details": e.detail}, 500

    return {
        "message": ack.message,
        "fileName": ack.file_name,
        "showReceivedButton": True,
    }, 200
