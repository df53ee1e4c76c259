"""
Per-session wizard registry.

Each browser session owns one PrintWizard, looked up by the ``wizard_id``
kept in the Flask session. The wizards share the availability gate,
inspector, relay and payment backend the store was created with.

Sessions that stop making requests are evicted once they have been idle
for ``idle_timeout_seconds``; the sweep runs on every ``get_or_create``.
A session that comes back after eviction gets a fresh wizard.

Thread Safety:
    - Uses threading.Lock for all registry operations
    - A newly created wizard runs its initial printer check outside the
      registry lock. Concurrent requests for the same session wait for
      that check to finish, so they never see the InitialCheck step.

Usage:
    # At app startup
    store = WizardStore(gate, inspector, relay, payment, price_per_page=1.0)

    # In routes
    wizard = store.get_or_create(session_id)

    # At app shutdown
    store.shutdown()
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from modules.document_inspector import DocumentInspector
from services.availability_gate import AvailabilityGate
from services.payment import PaymentConfirmation
from services.print_wizard import PrintWizard
from services.submission_relay import SubmissionRelay
from logging_config import get_logger


logger = get_logger(__name__)

# Upper bound on how long a second request waits for the first one's check
INITIAL_CHECK_WAIT_SECONDS = 30.0


@dataclass
class _Entry:
    wizard: PrintWizard
    last_seen: float
    ready: threading.Event = field(default_factory=threading.Event)


class WizardStore:

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
        idle_timeout_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._gate = gate
        self._inspector = inspector
        self._relay = relay
        self._payment = payment
        self._price_per_page = price_per_page
        self._busy_duration_ms = busy_duration_ms
        self._max_file_size_bytes = max_file_size_bytes
        self._poll_interval = poll_interval_seconds
        self._idle_timeout = idle_timeout_seconds
        self._clock = clock

        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @property
    def gate(self) -> AvailabilityGate:
        return self._gate

    @property
    def relay(self) -> SubmissionRelay:
        return self._relay

    @property
    def payment(self) -> PaymentConfirmation:
        return self._payment

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, session_id: str) -> Optional[PrintWizard]:
        """Look up a wizard without creating it or counting it as activity."""
        with self._lock:
            entry = self._entries.get(session_id)
            return entry.wizard if entry else None

    def get_or_create(self, session_id: str) -> PrintWizard:
        """
        Return the session's wizard, creating it (and running its initial
        printer check) on first use.

        Every call marks the session active and evicts other sessions that
        have been idle longer than the timeout.
        """
        now = self._clock()
        with self._lock:
            idle = self._pop_idle(now, keep=session_id)
            entry = self._entries.get(session_id)
            created = entry is None
            if created:
                entry = _Entry(wizard=self._build(session_id), last_seen=now)
                self._entries[session_id] = entry
                logger.info(f"Created wizard for session {session_id[:8]}")
            entry.last_seen = now

        for wizard in idle:
            wizard.discard()
        if idle:
            logger.info(f"Evicted {len(idle)} idle wizards")

        if created:
            try:
                entry.wizard.check_printer_status()
            finally:
                entry.ready.set()
        elif not entry.ready.wait(INITIAL_CHECK_WAIT_SECONDS):
            logger.warning(f"Initial check for session {session_id[:8]} still running")
        return entry.wizard

    def evict_idle(self) -> int:
        """
        Discard wizards idle longer than the timeout.

        Returns:
            Number of wizards evicted
        """
        with self._lock:
            idle = self._pop_idle(self._clock())
        for wizard in idle:
            wizard.discard()
        return len(idle)

    def discard(self, session_id: str) -> bool:
        """Remove a session's wizard and stop its background work."""
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is None:
            return False
        entry.wizard.discard()
        logger.info(f"Discarded wizard for session {session_id[:8]}")
        return True

    def shutdown(self) -> int:
        """
        Discard every wizard.

        Returns:
            Number of wizards discarded
        """
        with self._lock:
            wizards = [entry.wizard for entry in self._entries.values()]
            self._entries.clear()
        for wizard in wizards:
            wizard.discard()
        logger.info(f"Discarded {len(wizards)} wizards")
        return len(wizards)

    def _build(self, session_id: str) -> PrintWizard:
        return PrintWizard(
            gate=self._gate,
            inspector=self._inspector,
            relay=self._relay,
            payment=self._payment,
            price_per_page=self._price_per_page,
            busy_duration_ms=self._busy_duration_ms,
            max_file_size_bytes=self._max_file_size_bytes,
            poll_interval_seconds=self._poll_interval,
            session_id=session_id,
        )

    def _pop_idle(self, now: float, keep: Optional[str] = None) -> List[PrintWizard]:
        # Caller holds self._lock
        idle_ids = [
            session_id for session_id, entry in self._entries.items()
            if session_id != keep and now - entry.last_seen > self._idle_timeout
        ]
        return [self._entries.pop(session_id).wizard for session_id in idle_ids]
