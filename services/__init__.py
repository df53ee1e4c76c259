"""
Services layer for PrintKiosk.

This module contains the business logic services:
- AvailabilityGate: shared printer busy/available slot
- PrintWizard: per-session state machine
- WizardStore: session id -> wizard registry
- WaitingPoller: background gate re-check while a wizard waits
- Submission relays: email / lp / simulated delivery to the printer
- Payment backends: simulated / UPI confirmation

Thread Model:
    Flask request threads
    └── drive wizards through WizardStore
    WaitingPoller threads (one per waiting wizard)
    └── call PrintWizard.poll_availability() every second
"""

from .availability_gate import AvailabilityGate, InMemoryStore, JsonFileStore, KeyValueStore
from .payment import PaymentConfirmation, SimulatedPayment, UpiPayment, build_payment
from .print_wizard import PrintWizard
from .submission_relay import (
    EmailRelay,
    PrintCommandRelay,
    RelayAck,
    SimulatedRelay,
    SubmissionRelay,
    build_relay,
)
from .waiting_poller import WaitingPoller
from .wizard_store import WizardStore

__all__ = [
    "AvailabilityGate",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "PrintWizard",
    "WizardStore",
    "WaitingPoller",
    "SubmissionRelay",
    "RelayAck",
    "EmailRelay",
    "PrintCommandRelay",
    "SimulatedRelay",
    "build_relay",
    "PaymentConfirmation",
    "SimulatedPayment",
    "UpiPayment",
    "build_payment",
]
