"""Shared fixtures for PrintKiosk tests."""

import pytest

from app import create_app
from modules.document_inspector import DocumentInspector
from services.availability_gate import AvailabilityGate, InMemoryStore
from services.payment import SimulatedPayment
from services.print_wizard import PrintWizard
from tests.helpers import BUSY_DURATION_MS, PRICE_PER_PAGE, FakeClock, RecordingRelay


# Fixtures

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def gate(store, clock):
    return AvailabilityGate(store, clock=clock)


@pytest.fixture
def relay():
    return RecordingRelay()


@pytest.fixture
def make_wizard(gate, relay):
    """Factory for wizards sharing one gate; discards them after the test."""
    wizards = []

    def _make(**kwargs):
        params = dict(
            gate=gate,
            inspector=DocumentInspector(),
            relay=relay,
            payment=SimulatedPayment(),
            price_per_page=PRICE_PER_PAGE,
            busy_duration_ms=BUSY_DURATION_MS,
        )
        params.update(kwargs)
        wizard = PrintWizard(**params)
        wizards.append(wizard)
        return wizard

    yield _make

    for wizard in wizards:
        wizard.discard()


@pytest.fixture
def ready_wizard(make_wizard):
    """A wizard that passed its initial check and waits for an upload."""
    wizard = make_wizard()
    wizard.check_printer_status()
    return wizard


@pytest.fixture
def app(clock, relay):
    app = create_app("config.TestingConfig", GATE_CLOCK=clock, SUBMISSION_RELAY=relay)
    yield app
    app.config["WIZARD_STORE"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()
