"""
Background re-check of printer availability while a wizard is Waiting.

One poller thread per waiting wizard. The thread calls ``tick()`` every
``interval_seconds`` until the tick returns False (the wizard left Waiting)
or ``stop()`` is called.

Thread Safety:
    - The tick function takes the wizard lock itself
    - stop() may be called from the poller thread (the tick that moves the
      wizard out of Waiting); it then signals without joining
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from logging_config import get_logger, set_thread_name


logger = get_logger(__name__)


class WaitingPoller:

    def __init__(self, tick: Callable[[], bool], interval_seconds: float, name: str = "Waiting"):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self._tick = tick
        self._interval = interval_seconds
        self._name = name

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def start(self) -> None:
        """Start ticking. Does nothing if already running."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._thread.start()
        logger.debug(f"Poller {self._name} started ({self._interval}s interval)")

    def stop(self, join: bool = True) -> None:
        """
        Stop ticking. Safe to call repeatedly and from the poller thread.

        Pass join=False when holding a lock the tick function may be
        waiting on.
        """
        self._stop_event.set()

        thread = self._thread
        self._thread = None
        if thread is None:
            return
        if join and thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=5.0)
            if thread.is_alive():
                logger.warning(f"Poller {self._name} did not stop cleanly")

    def _loop(self) -> None:
        set_thread_name(self._name)

        while not self._stop_event.wait(timeout=self._interval):
            try:
                keep_polling = self._tick()
            except Exception as e:
                logger.error(f"Availability poll failed: {e}", exc_info=True)
                keep_polling = True
            if not keep_polling:
                break

        logger.debug(f"Poller {self._name} exiting")
