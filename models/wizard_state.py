"""
Wizard step and snapshot models.

WizardSnapshot is what the HTTP layer sees of a wizard: a point-in-time,
read-only copy taken under the wizard lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class WizardStep(Enum):
    """
    Steps of the print-job wizard.

    Lifecycle:
        INITIAL_CHECK -> (WAITING ->) UPLOAD -> CONFIRM_DETAILS -> PAYMENT
        -> PRINTING -> THANK_YOU -> UPLOAD ...
    """

    INITIAL_CHECK = "initial_check"
    WAITING = "waiting"
    UPLOAD = "upload"
    CONFIRM_DETAILS = "confirm_details"
    PAYMENT = "payment"
    PRINTING = "printing"
    THANK_YOU = "thank_you"


# Steps in which the wizard holds a PrintJob
JOB_STEPS = frozenset({
    WizardStep.CONFIRM_DETAILS,
    WizardStep.PAYMENT,
    WizardStep.PRINTING,
    WizardStep.THANK_YOU,
})


@dataclass(frozen=True)
class WizardSnapshot:
    step: WizardStep
    job: Optional[Dict[str, Any]]
    error: Optional[str]
    warning: Optional[str]
    busy_until: Optional[int]
    seconds_remaining: int
    is_checking: bool
    is_submitting: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "job": self.job,
            "error": self.error,
            "warning": self.warning,
            "busyUntil": self.busy_until,
            "secondsRemaining": self.seconds_remaining,
            "isChecking": self.is_checking,
            "isSubmitting": self.is_submitting,
        }
