"""
Data models for PrintKiosk.

This module contains dataclasses for:
- PrintJob: the user's document, options and derived cost
- RelayMetadata: frozen snapshot of a job handed to the submission relay
- Availability: result of one availability gate check
- WizardStep / WizardSnapshot: wizard state for the HTTP layer
"""

from .print_job import (
    ColorMode,
    DuplexMode,
    Orientation,
    PrintJob,
    RelayMetadata,
)
from .availability import Availability
from .wizard_state import WizardSnapshot, WizardStep

__all__ = [
    # Job models
    "PrintJob",
    "RelayMetadata",
    "Orientation",
    "ColorMode",
    "DuplexMode",
    # Gate models
    "Availability",
    # Wizard models
    "WizardStep",
    "WizardSnapshot",
]
