"""
Wizard routes (JSON).

One endpoint per wizard action. Every response carries the wizard snapshot
so the client can render the current step, the job summary, the countdown
and the error banner from a single payload.

Status codes:
    200 - action applied (or ignored as a duplicate, e.g. a refresh while
          one is in flight)
    400 - action rejected; the reason is in "error"
    409 - action not allowed in the current step
"""

from uuid import uuid4

from flask import (
    Blueprint,
    current_app,
    request,
    session,
)

from core.exceptions import InvalidTransitionError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

wizard_bp = Blueprint("wizard", __name__, url_prefix="/api/wizard")


def _current_wizard():
    """Return this browser session's wizard, creating one on first use."""
    store = current_app.config["WIZARD_STORE"]
    wizard_id = session.get("wizard_id")
    if not wizard_id:
        wizard_id = uuid4().hex
        session["wizard_id"] = wizard_id
        session.modified = True
    return store.get_or_create(wizard_id)


def _state(wizard, ok: bool = True):
    return wizard.snapshot().to_dict(), (200 if ok else 400)


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


@wizard_bp.errorhandler(InvalidTransitionError)
def handle_invalid_transition(e: InvalidTransitionError):
    logger.info(f"Rejected request: {e.message}")
    body = {"error": e.message, "step": e.step}
    store = current_app.config["WIZARD_STORE"]
    wizard_id = session.get("wizard_id")
    wizard = store.get(wizard_id) if wizard_id else None
    if wizard is not None:
        body["state"] = wizard.snapshot().to_dict()
    return body, 409


@wizard_bp.route("", methods=["GET"])
def state():
    """Current wizard snapshot (also drives the Waiting countdown)."""
    return _state(_current_wizard())


@wizard_bp.route("/refresh", methods=["POST"])
def refresh():
    """Manual "Refresh status" while waiting for the printer."""
    wizard = _current_wizard()
    wizard.check_printer_status()
    return _state(wizard)


@wizard_bp.route("/upload", methods=["POST"])
def upload():
    """Accept a document (multipart field "file") and inspect it."""
    wizard = _current_wizard()
    uploaded = request.files.get("file")

    if uploaded is None or uploaded.filename == "":
        ok = wizard.upload(b"", "", None)
    else:
        ok = wizard.upload(uploaded.read(), uploaded.filename, uploaded.mimetype)
    return _state(wizard, ok)


@wizard_bp.route("/copies", methods=["POST"])
def set_copies():
    wizard = _current_wizard()
    wizard.set_copies(_payload().get("copies"))
    return _state(wizard)


@wizard_bp.route("/copies/increment", methods=["POST"])
def increment_copies():
    wizard = _current_wizard()
    wizard.increment_copies()
    return _state(wizard)


@wizard_bp.route("/copies/decrement", methods=["POST"])
def decrement_copies():
    wizard = _current_wizard()
    wizard.decrement_copies()
    return _state(wizard)


@wizard_bp.route("/options", methods=["POST"])
def update_options():
    """Change orientation / colorMode / duplexMode (any subset)."""
    wizard = _current_wizard()
    data = _payload()
    ok = wizard.update_options(
        orientation=data.get("orientation"),
        color_mode=data.get("colorMode"),
        duplex_mode=data.get("duplexMode"),
    )
    return _state(wizard, ok)


@wizard_bp.route("/confirm", methods=["POST"])
def confirm():
    wizard = _current_wizard()
    ok = wizard.confirm_details()
    return _state(wizard, ok)


@wizard_bp.route("/cancel", methods=["POST"])
def cancel():
    wizard = _current_wizard()
    wizard.cancel()
    return _state(wizard)


@wizard_bp.route("/payment", methods=["GET"])
def payment():
    """Amount due and how to pay it (UPI link and QR, or simulated notice)."""
    wizard = _current_wizard()
    details = wizard.payment_details()
    body, status = _state(wizard)
    body["payment"] = details
    return body, status


@wizard_bp.route("/pay", methods=["POST"])
def pay():
    """
    Payment confirmation signal.

    For UPI the client posts {"paid": true} when the user taps
    "I have paid". The job is relayed to the printer before responding.
    """
    wizard = _current_wizard()
    ok = wizard.submit_payment(request.get_json(silent=True) or {})
    return _state(wizard, ok)


@wizard_bp.route("/printed", methods=["POST"])
def printed():
    """User tapped "Done" on the print summary."""
    wizard = _current_wizard()
    wizard.acknowledge_printed()
    return _state(wizard)


@wizard_bp.route("/new-job", methods=["POST"])
def new_job():
    """Start over: clear the job and error, release the printer."""
    wizard = _current_wizard()
    wizard.start_new_job()
    return _state(wizard)


@wizard_bp.route("/error", methods=["DELETE"])
def dismiss_error():
    wizard = _current_wizard()
    wizard.dismiss_error()
    return _state(wizard)
