"""Result of an availability gate check."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Availability:
    """
    Printer availability as seen by one check of the gate.

    ``busy_until`` is an epoch-millisecond timestamp, or None when the
    printer is available.
    """

    busy_until: Optional[int] = None

    @classmethod
    def available(cls) -> "Availability":
        return cls(None)

    @property
    def is_busy(self) -> bool:
        return self.busy_until is not None

    def seconds_remaining(self, now_ms: int) -> int:
        """Whole seconds until the printer frees up, rounded up, never negative."""
        if self.busy_until is None:
            return 0
        return max(0, math.ceil((self.busy_until - now_ms) / 1000))

    def to_dict(self, now_ms: int) -> Dict[str, Any]:
        return {
            "busy": self.is_busy,
            "busyUntil": self.busy_until,
            "secondsRemaining": self.seconds_remaining(now_ms),
        }
