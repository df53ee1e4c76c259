"""
Print-job wizard: the state machine behind one kiosk session.

States and transitions:

    INITIAL_CHECK --busy--> WAITING --gate free--> UPLOAD
    INITIAL_CHECK --free--> UPLOAD
    UPLOAD --inspected--> CONFIRM_DETAILS --confirm--> PAYMENT
    CONFIRM_DETAILS --cancel--> UPLOAD
    PAYMENT --paid + relayed--> PRINTING --acknowledged--> THANK_YOU
    any step --start_new_job--> UPLOAD

Concurrency model:
    - One wizard is one logical actor. Every state change happens under
      ``self._lock`` and completes before the next action is processed.
    - The document inspector and the submission relay run OUTSIDE the lock.
      Each upload and each payment takes a generation ticket first; the
      result only commits if the ticket is still current. A newer upload,
      a cancel or a new job therefore silently supersedes work in flight.
    - While WAITING, a WaitingPoller thread re-checks the gate every
      ``poll_interval_seconds``. It is stopped whenever the wizard leaves
      WAITING and when the wizard is discarded.

Errors never escape as exceptions except InvalidTransitionError (operation
not allowed in the current step). Everything else becomes ``error``, a
single message the UI shows in a dismissible banner.
"""

from __future__ import annotations

import re
import threading
from typing import Any, Mapping, Optional

from core.exceptions import (
    GateError,
    InspectionError,
    InvalidTransitionError,
    PaymentError,
    PrintKioskError,
    RelayError,
    ValidationError,
)
from models.availability import Availability
from models.print_job import ColorMode, DuplexMode, Orientation, PrintJob
from models.wizard_state import WizardSnapshot, WizardStep
from modules.document_inspector import DocumentInspector
from modules.file_validation import resolve_mime_type, sanitize_file_name, validate_upload
from services.availability_gate import AvailabilityGate
from services.payment import PaymentConfirmation
from services.submission_relay import SubmissionRelay
from services.waiting_poller import WaitingPoller
from logging_config import get_logger, get_session_logger


logger = get_logger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

GATE_WRITE_FAILED = "Could not update the printer status. Please try again."


def coerce_copies(value: Any) -> int:
    """
    Turn user input into a copy count of at least 1.

    Leading digits are honoured ("3 copies" -> 3); anything non-numeric,
    zero or negative becomes 1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return max(1, value)
    match = _LEADING_INT.match(str(value)) if value is not None else None
    if not match:
        return 1
    return max(1, int(match.group(1)))


class PrintWizard:
    """
    Drives one user through upload, options, payment and printing.

    Collaborators are injected so the wizard can be exercised headlessly:
    the availability gate (shared with every other session), the document
    inspector, the submission relay and the payment backend.
    """

    def __init__(
        self,
        gate: AvailabilityGate,
        inspector: DocumentInspector,
        relay: SubmissionRelay,
        payment: PaymentConfirmation,
        price_per_page: float = 1.0,
        busy_duration_ms: int = 60 * 1000,
        max_file_size_bytes: int = 10 * 1024 * 1024,
        poll_interval_seconds: float = 0.0,
        session_id: Optional[str] = None,
    ):
        self._gate = gate
        self._inspector = inspector
        self._relay = relay
        self._payment = payment
        self._price_per_page = price_per_page
        self._busy_duration_ms = busy_duration_ms
        self._max_file_size_bytes = max_file_size_bytes
        self._poll_interval = poll_interval_seconds
        self._session_id = session_id or "local"
        self._log = get_session_logger(session_id) if session_id else logger

        self._lock = threading.RLock()

        self._step = WizardStep.INITIAL_CHECK
        self._job: Optional[PrintJob] = None
        self._error: Optional[str] = None
        self._warning: Optional[str] = None
        self._busy_until: Optional[int] = None

        self._is_checking = False
        self._is_submitting = False
        self._holds_gate = False

        self._upload_generation = 0
        self._submit_generation = 0

        self._poller: Optional[WaitingPoller] = None
        self._discarded = False

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def job(self) -> Optional[PrintJob]:
        return self._job

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def warning(self) -> Optional[str]:
        return self._warning

    @property
    def is_polling(self) -> bool:
        return self._poller is not None and self._poller.is_running

    def snapshot(self) -> WizardSnapshot:
        with self._lock:
            seconds_remaining = Availability(self._busy_until).seconds_remaining(self._gate.now())
            return WizardSnapshot(
                step=self._step,
                job=self._job.to_dict() if self._job else None,
                error=self._error,
                warning=self._warning,
                busy_until=self._busy_until,
                seconds_remaining=seconds_remaining,
                is_checking=self._is_checking,
                is_submitting=self._is_submitting,
            )

    # =========================================================================
    # PRINTER AVAILABILITY (INITIAL_CHECK / WAITING)
    # =========================================================================

    def check_printer_status(self) -> bool:
        """
        Query the gate and move to WAITING or UPLOAD.

        Also serves as the manual "Refresh status" action. Returns False
        without doing anything if a check is already in flight.
        """
        with self._lock:
            self._require("check printer status", WizardStep.INITIAL_CHECK, WizardStep.WAITING)
        return self._run_check()

    def poll_availability(self) -> bool:
        """
        Poller tick: refresh the countdown and leave WAITING once the gate
        reports the printer free.

        Returns:
            True while the wizard is still waiting
        """
        with self._lock:
            if self._step != WizardStep.WAITING or self._discarded:
                return False
        self._run_check()
        with self._lock:
            return self._step == WizardStep.WAITING

    def _run_check(self) -> bool:
        with self._lock:
            if self._is_checking:
                return False
            self._is_checking = True

        try:
            availability = self._gate.check_status()
        except OSError as e:
            with self._lock:
                self._is_checking = False
                self._log.error(f"Printer status check failed: {e}")
                self._error = "Could not check printer status. Please try again."
            return True

        with self._lock:
            self._is_checking = False
            # A new job may have been started while the gate was being read
            if self._step not in (WizardStep.INITIAL_CHECK, WizardStep.WAITING):
                return True
            self._busy_until = availability.busy_until
            if availability.is_busy:
                self._enter(WizardStep.WAITING)
            else:
                self._enter(WizardStep.UPLOAD)
        return True

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def upload(self, file_bytes: bytes, file_name: str, mime_type: Optional[str]) -> bool:
        """
        Validate and inspect a document, creating the PrintJob.

        Returns:
            True if the wizard moved to CONFIRM_DETAILS
        """
        file_bytes = file_bytes or b""

        with self._lock:
            self._require("upload a document", WizardStep.UPLOAD)
            self._error = None
            self._warning = None

            display_name = sanitize_file_name(file_name)
            if file_name and not display_name:
                display_name = "document"
            resolved_type = resolve_mime_type(file_name or "", mime_type)

            try:
                validate_upload(display_name, resolved_type, len(file_bytes), self._max_file_size_bytes)
            except ValidationError as e:
                self._fail(e)
                return False

            self._upload_generation += 1
            ticket = self._upload_generation

        self._log.info(f"Inspecting {display_name} ({len(file_bytes)} bytes, {resolved_type})")
        try:
            result = self._inspector.inspect(file_bytes, resolved_type)
        except InspectionError as e:
            with self._lock:
                if not self._upload_is_current(ticket):
                    return False
                self._job = None
                self._fail(e)
            return False

        with self._lock:
            if not self._upload_is_current(ticket):
                return False

            self._job = PrintJob(
                file=file_bytes,
                file_name=display_name,
                mime_type=resolved_type,
                page_count=result.page_count,
                price_per_page=self._price_per_page,
            )
            self._warning = result.warning
            self._log.info(f"Job created: {result.page_count} pages, cost {self._job.cost:.2f}")
            self._enter(WizardStep.CONFIRM_DETAILS)
            return True

    def _upload_is_current(self, ticket: int) -> bool:
        if ticket != self._upload_generation or self._step != WizardStep.UPLOAD:
            self._log.info("Ignoring inspection result for a superseded upload")
            return False
        return True

    # =========================================================================
    # CONFIRM_DETAILS
    # =========================================================================

    def set_copies(self, value: Any) -> int:
        with self._lock:
            self._require("change copies", WizardStep.CONFIRM_DETAILS)
            self._error = None
            self._job.copies = coerce_copies(value)
            return self._job.copies

    def increment_copies(self) -> int:
        with self._lock:
            self._require("change copies", WizardStep.CONFIRM_DETAILS)
            self._error = None
            self._job.copies += 1
            return self._job.copies

    def decrement_copies(self) -> int:
        with self._lock:
            self._require("change copies", WizardStep.CONFIRM_DETAILS)
            self._error = None
            self._job.copies = max(1, self._job.copies - 1)
            return self._job.copies

    def update_options(
        self,
        orientation: Optional[str] = None,
        color_mode: Optional[str] = None,
        duplex_mode: Optional[str] = None,
    ) -> bool:
        """
        Change print options. All given values are applied, or none are.
        """
        with self._lock:
            self._require("change print options", WizardStep.CONFIRM_DETAILS)
            self._error = None

            try:
                new_orientation = _parse_option(Orientation, "orientation", orientation, self._job.orientation)
                new_color = _parse_option(ColorMode, "color mode", color_mode, self._job.color_mode)
                new_duplex = _parse_option(DuplexMode, "duplex mode", duplex_mode, self._job.duplex_mode)
            except ValidationError as e:
                self._fail(e)
                return False

            self._job.orientation = new_orientation
            self._job.color_mode = new_color
            self._job.duplex_mode = new_duplex
            return True

    def confirm_details(self) -> bool:
        with self._lock:
            self._require("confirm details", WizardStep.CONFIRM_DETAILS)
            self._error = None

            if self._job.copies < 1:
                self._fail(ValidationError("Please choose at least one copy."))
                return False

            self._log.info(
                f"Details confirmed: {self._job.copies} copies, "
                f"{self._job.color_mode.value}, {self._job.duplex_mode.value}, "
                f"cost {self._job.cost:.2f}"
            )
            self._enter(WizardStep.PAYMENT)
            return True

    def cancel(self) -> None:
        """Discard the job and return to UPLOAD."""
        with self._lock:
            self._require("cancel", WizardStep.CONFIRM_DETAILS)
            self._upload_generation += 1
            self._job = None
            self._error = None
            self._warning = None
            if self._holds_gate:
                self._release_gate()
            self._enter(WizardStep.UPLOAD)

    # =========================================================================
    # PAYMENT
    # =========================================================================

    def payment_details(self) -> dict:
        with self._lock:
            self._require("show payment details", WizardStep.PAYMENT)
            amount = self._job.cost
        return self._payment.describe(amount)

    def submit_payment(self, signal: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Confirm payment, mark the printer busy and relay the job.

        The job is kept on any failure so the user can retry without
        uploading again.

        Returns:
            True if the wizard moved to PRINTING
        """
        with self._lock:
            self._require("submit payment", WizardStep.PAYMENT)
            if self._is_submitting:
                return False
            self._error = None

            job = self._job
            if not self._payment.confirm(job.cost, signal):
                self._fail(PaymentError("Payment was not confirmed. Complete the payment and try again."))
                return False

            # Unconditional: a concurrent session may have acquired since our last check
            try:
                availability = self._gate.acquire(self._busy_duration_ms)
            except OSError as e:
                self._fail(GateError(GATE_WRITE_FAILED, {"error": str(e)}))
                return False

            self._submit_generation += 1
            ticket = self._submit_generation
            self._is_submitting = True
            self._holds_gate = True
            self._busy_until = availability.busy_until

            metadata = job.freeze()
            file_bytes = job.file
            file_name = job.file_name

        self._log.info(f"Relaying {file_name} via {self._relay.name}")
        failure: Optional[RelayError] = None
        current = False
        try:
            self._relay.submit(file_bytes, file_name, metadata)
        except RelayError as e:
            failure = e
        finally:
            with self._lock:
                current = ticket == self._submit_generation
                if current:
                    self._is_submitting = False

        with self._lock:
            if not current or self._step != WizardStep.PAYMENT:
                self._log.info("Ignoring relay result for a superseded submission")
                return False
            if failure is not None:
                self._fail(failure)
                return False
            # Only the summary is needed from here on
            self._job.release_file()
            self._enter(WizardStep.PRINTING)
            return True

    # =========================================================================
    # PRINTING / THANK_YOU
    # =========================================================================

    def acknowledge_printed(self) -> None:
        with self._lock:
            self._require("acknowledge printing", WizardStep.PRINTING)
            self._error = None
            self._enter(WizardStep.THANK_YOU)

    def start_new_job(self) -> None:
        """
        Reset to UPLOAD from any step.

        Clears job, error and warning, and releases the gate even if this
        session never acquired it. If the gate store cannot be written the
        reset still happens and the failure is shown as the error.
        """
        with self._lock:
            self._upload_generation += 1
            self._submit_generation += 1
            self._job = None
            self._error = None
            self._warning = None
            self._is_submitting = False
            self._release_gate()
            self._enter(WizardStep.UPLOAD)

    def dismiss_error(self) -> None:
        with self._lock:
            self._error = None

    def discard(self) -> None:
        """Tear down background work. The wizard must not be used afterwards."""
        with self._lock:
            self._discarded = True
            self._upload_generation += 1
            self._submit_generation += 1
            poller, self._poller = self._poller, None
        if poller is not None:
            poller.stop()

    # =========================================================================
    # INTERNALS (call with self._lock held)
    # =========================================================================

    def _require(self, operation: str, *steps: WizardStep) -> None:
        if self._step not in steps:
            raise InvalidTransitionError(operation, self._step.value)

    def _fail(self, error: PrintKioskError) -> None:
        message = error.user_message if isinstance(error, RelayError) else error.message
        self._log.warning(f"{type(error).__name__} in step {self._step.value}: {error}")
        self._error = message

    def _release_gate(self) -> None:
        try:
            self._gate.release()
        except OSError as e:
            self._fail(GateError(GATE_WRITE_FAILED, {"error": str(e)}))
        self._holds_gate = False
        self._busy_until = None

    def _enter(self, step: WizardStep) -> None:
        previous = self._step
        self._step = step

        if step == WizardStep.WAITING:
            self._start_poller()
        else:
            self._stop_poller()

        if previous != step:
            self._log.info(f"Wizard step {previous.value} -> {step.value}")

    def _start_poller(self) -> None:
        if self._poll_interval <= 0 or self._discarded:
            return
        if self._poller is not None and self._poller.is_running:
            return
        self._poller = WaitingPoller(
            tick=self.poll_availability,
            interval_seconds=self._poll_interval,
            name=f"Waiting-{self._session_id[:8]}",
        )
        self._poller.start()

    def _stop_poller(self) -> None:
        # No join: the poller thread may be blocked on self._lock
        if self._poller is not None:
            self._poller.stop(join=False)
            self._poller = None


def _parse_option(enum_cls, label: str, value: Optional[str], current):
    if value is None:
        return current
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Unsupported {label}: {value!r}. Choose one of: {allowed}.")
