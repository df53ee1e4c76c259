"""
Payment confirmation backends.

One contract: ``describe(amount)`` returns what the Payment step shows, and
``confirm(amount, signal)`` turns the client's signal into paid / not paid.

Backends (selected by PAYMENT_BACKEND):
    simulated - always paid; nothing is charged
    upi       - static UPI deep link and QR code; paid once the user
                acknowledges with {"paid": true} ("I have paid")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

from core.exceptions import ConfigurationError
from modules.upi import build_upi_url, render_qr_svg
from logging_config import get_logger


logger = get_logger(__name__)


class PaymentConfirmation(ABC):

    name = "payment"

    @abstractmethod
    def describe(self, amount: float) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def confirm(self, amount: float, signal: Optional[Mapping[str, Any]]) -> bool:
        raise NotImplementedError


class SimulatedPayment(PaymentConfirmation):

    name = "simulated"

    def __init__(self, currency: str = "INR"):
        self._currency = currency

    def describe(self, amount: float) -> Dict[str, Any]:
        return {
            "method": self.name,
            "amount": round(amount, 2),
            "currency": self._currency,
            "notice": "This is a simulated payment gateway. No real transaction will occur.",
        }

    def confirm(self, amount: float, signal: Optional[Mapping[str, Any]]) -> bool:
        logger.info(f"Simulated payment of {amount:.2f} {self._currency} accepted")
        return True


class UpiPayment(PaymentConfirmation):
    """
    Pay-to-UPI-ID with a manual acknowledgment.

    There is no callback from the payer's bank, so the wizard trusts the
    user's "I have paid" tap.
    """

    name = "upi"

    def __init__(self, upi_id: str, payee_name: str, currency: str = "INR"):
        self._upi_id = upi_id
        self._payee_name = payee_name
        self._currency = currency

    def describe(self, amount: float) -> Dict[str, Any]:
        upi_url = build_upi_url(self._upi_id, self._payee_name, amount, self._currency)
        return {
            "method": self.name,
            "amount": round(amount, 2),
            "currency": self._currency,
            "upiId": self._upi_id,
            "payeeName": self._payee_name,
            "upiUrl": upi_url,
            "qrSvg": render_qr_svg(upi_url),
        }

    def confirm(self, amount: float, signal: Optional[Mapping[str, Any]]) -> bool:
        paid = bool(signal and signal.get("paid") is True)
        if paid:
            logger.info(f"UPI payment of {amount:.2f} {self._currency} acknowledged by user")
        return paid


def build_payment(config) -> PaymentConfirmation:
    """
    Create the payment backend named by ``config["PAYMENT_BACKEND"]``.

    Raises:
        ConfigurationError: unknown backend or missing UPI settings
    """
    backend = config.get("PAYMENT_BACKEND", "simulated")
    currency = config.get("CURRENCY", "INR")

    if backend == "simulated":
        return SimulatedPayment(currency=currency)

    if backend == "upi":
        if not config.get("UPI_ID"):
            raise ConfigurationError("UPI_ID", config.get("UPI_ID"), "Set UPI_ID in .env")
        return UpiPayment(
            upi_id=config["UPI_ID"],
            payee_name=config.get("UPI_PAYEE_NAME", ""),
            currency=currency,
        )

    raise ConfigurationError("PAYMENT_BACKEND", backend, "Use one of: simulated, upi")
