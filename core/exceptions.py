"""
Custom exceptions for PrintKiosk.

Exception Hierarchy:
    PrintKioskError (base)
    ├── ConfigurationError      - Unknown backend / missing settings (startup failure)
    ├── InvalidTransitionError  - Wizard operation not allowed in the current step
    ├── ValidationError         - Bad file type/size/name or option value
    ├── InspectionError         - Document could not be inspected for page count
    ├── PaymentError            - Payment was not confirmed
    ├── GateError               - Shared printer-busy slot could not be read or written
    └── RelayError              - Job could not be delivered to the printer

Usage:
    Startup errors (ConfigurationError) cause the app to fail fast.
    Every other error is caught by the wizard, turned into the user-visible
    error message, and leaves the session usable.

    There is no exception for two sessions acquiring the
    availability gate at once: the second write silently wins.
"""

from typing import Optional, Dict, Any


class PrintKioskError(Exception):
    """
    Base exception for all PrintKiosk errors.

    ``message`` is safe to show to the user; ``details`` is for logs.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# STARTUP ERRORS - Application will not start if these occur
# =============================================================================

class ConfigurationError(PrintKioskError):
    """
    A configured backend name is unknown or its required settings are missing.

    Typical causes:
    - RELAY_BACKEND=email without SENDER_EMAIL / PRINTER_EMAIL in .env
    - RELAY_BACKEND=print without PRINTER_NAME
    - PAYMENT_BACKEND=upi without UPI_ID
    """

    def __init__(self, setting: str, value: Any, resolution: str):
        message = f"Invalid configuration for {setting}: {value!r}"
        super().__init__(message, {"setting": setting, "value": value, "resolution": resolution})
        self.setting = setting


# =============================================================================
# RUNTIME ERRORS - Session continues, the current operation fails
# =============================================================================

class InvalidTransitionError(PrintKioskError):
    """An operation was requested in a wizard step that does not allow it."""

    def __init__(self, operation: str, step: str):
        message = f"Cannot {operation} while the wizard is in step {step}"
        super().__init__(message, {"operation": operation, "step": step})
        self.operation = operation
        self.step = step


class ValidationError(PrintKioskError):
    """
    User input was rejected before reaching the inspector or relay.

    Recoverable by re-selecting a file or choosing a valid option.
    """


class InspectionError(PrintKioskError):
    """
    The document inspector could not determine a page count.

    The wizard returns to Upload and discards the job.
    """


class PaymentError(PrintKioskError):
    """The payment backend did not confirm payment."""


class GateError(PrintKioskError):
    """
    The availability gate's store failed (unwritable state file, full disk).

    The current action fails; the session stays usable and can retry.
    """


class RelayError(PrintKioskError):
    """
    The submission relay failed to deliver the job.

    ``detail`` is an optional human-readable reason from the transport
    (SMTP error, lp output) shown next to the main message.
    """

    def __init__(self, message: str, detail: Optional[str] = None, backend: Optional[str] = None):
        details: Dict[str, Any] = {}
        if detail:
            details["detail"] = detail
        if backend:
            details["backend"] = backend
        super().__init__(message, details)
        self.detail = detail
        self.backend = backend

    @property
    def user_message(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message
