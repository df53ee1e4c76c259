"""
Core module for PrintKiosk.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    PrintKioskError,
    ConfigurationError,
    InvalidTransitionError,
    ValidationError,
    InspectionError,
    PaymentError,
    GateError,
    RelayError,
)

__all__ = [
    "PrintKioskError",
    "ConfigurationError",
    "InvalidTransitionError",
    "ValidationError",
    "InspectionError",
    "PaymentError",
    "GateError",
    "RelayError",
]
