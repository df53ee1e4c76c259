"""
Printer availability gate.

The gate is a single shared slot holding the epoch-millisecond time until
which the printer is presumed busy. Every wizard session reads and writes the
same slot, through a KeyValueStore injected at construction:

    InMemoryStore  - shared by every session in this process
    JsonFileStore  - shared by every process pointing at the same file

IMPORTANT - this is NOT a lock:
    - check_status() has a side effect: it clears an expired slot (lazy
      expiry). Nothing clears the slot in the background.
    - acquire() writes unconditionally. Two sessions that both observed
      Available and both acquire will race; the last write wins and the
      first busy window is silently overwritten. Nothing reports this.

Usage:
    gate = AvailabilityGate(InMemoryStore())

    availability = gate.check_status()
    if not availability.is_busy:
        gate.acquire(60_000)

    gate.release()
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from models.availability import Availability
from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_GATE_KEY = "printerBusyUntilTimestamp"

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# =============================================================================
# SHARED KEY-VALUE STORES
# =============================================================================

class KeyValueStore(ABC):
    """Minimal string key-value slot storage shared between sessions."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStore(KeyValueStore):
    """Process-wide store. Each operation is atomic; sequences of them are not."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Store backed by a small JSON object on disk.

    Writes go to a temporary file that replaces the original, so readers in
    other processes always see either the old or the new document. The lock
    only serializes writers within this process.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> Dict[str, str]:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Gate state file {self._path} unreadable, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Gate state file {self._path} is not a JSON object, treating as empty")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Dict[str, str]) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


# =============================================================================
# GATE
# =============================================================================

class AvailabilityGate:
    """
    Busy/available signal for the physical printer.

    State machine (as perceived by one caller):
        Available --acquire--> Busy
        Busy --check_status() after expiry--> Available
        Busy --release--> Available
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_GATE_KEY,
        clock: Clock = now_ms,
    ):
        self._store = store
        self._key = key
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    def now(self) -> int:
        return self._clock()

    def _read_busy_until(self) -> Optional[int]:
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Discarding malformed gate value {raw!r}")
            self._store.delete(self._key)
            return None

    def check_status(self) -> Availability:
        """
        Read the shared slot, clearing it if it has expired.

        Returns:
            Availability with busy_until set while the printer is busy
        """
        busy_until = self._read_busy_until()
        if busy_until is None:
            return Availability.available()

        if busy_until <= self._clock():
            self._store.delete(self._key)
            logger.debug("Printer busy window expired, slot cleared")
            return Availability.available()

        return Availability(busy_until)

    def acquire(self, duration_ms: int) -> Availability:
        """
        Mark the printer busy for ``duration_ms`` from now.

        Overwrites any existing value without checking it.
        """
        busy_until = self._clock() + int(duration_ms)
        self._store.set(self._key, str(busy_until))
        logger.info(f"Printer marked busy for {duration_ms / 1000:.0f}s")
        return Availability(busy_until)

    def release(self) -> None:
        """Clear the slot. Safe to call when already available."""
        self._store.delete(self._key)
        logger.debug("Printer busy slot released")
