"""
Submission relays: deliver a finished job to the physical printer.

All relays share one contract:

    relay.submit(file_bytes, file_name, metadata) -> RelayAck
    raises RelayError on failure

Backends (selected by RELAY_BACKEND):
    email      - mail the document as an attachment to the printer's
                 email-print address over SMTP
    print      - hand the document to the local spooler with `lp`
    simulated  - log and acknowledge, nothing is printed

Relays are stateless between calls and never retry. The wizard decides
what a failure means for the session.
"""

from __future__ import annotations

import shutil
import smtplib
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional, Sequence

from core.exceptions import ConfigurationError, RelayError
from models.print_job import ColorMode, DuplexMode, Orientation, RelayMetadata
from logging_config import get_logger


logger = get_logger(__name__)

EMAIL_SUBJECT = "Cloud Print Job"
EMAIL_BODY = "Print job sent from Cloud Print System."


@dataclass(frozen=True)
class RelayAck:
    message: str
    file_name: str


class SubmissionRelay(ABC):
    """Interface for delivering a document plus its print settings."""

    name = "relay"

    @abstractmethod
    def submit(self, file_bytes: bytes, file_name: str, metadata: RelayMetadata) -> RelayAck:
        raise NotImplementedError


class SimulatedRelay(SubmissionRelay):
    """Pretends to print. Used in development and tests."""

    name = "simulated"

    def __init__(self):
        self.submissions: List[RelayMetadata] = []

    def submit(self, file_bytes: bytes, file_name: str, metadata: RelayMetadata) -> RelayAck:
        logger.info(
            f"Pretending to print {file_name} ({len(file_bytes)} bytes, "
            f"{metadata.copies} copies, {metadata.page_count} pages)"
        )
        self.submissions.append(metadata)
        return RelayAck(message="Print job sent", file_name=file_name)


class EmailRelay(SubmissionRelay):
    """
    Send the document to an email-print address.

    Most network printers with cloud print support accept jobs as email
    attachments. The print settings are listed in the message body for the
    operator; the printer itself applies its defaults.
    """

    name = "email"

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        sender: str,
        password: str,
        recipient: str,
        use_tls: bool = True,
        timeout_seconds: float = 30.0,
    ):
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._sender = sender
        self._password = password
        self._recipient = recipient
        self._use_tls = use_tls
        self._timeout = timeout_seconds

    def build_message(self, file_bytes: bytes, file_name: str, metadata: RelayMetadata) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = EMAIL_SUBJECT
        msg["From"] = self._sender
        msg["To"] = self._recipient

        settings = "\n".join(f"{key}: {value}" for key, value in metadata.to_form().items())
        msg.set_content(f"{EMAIL_BODY}\n\n{settings}\n")
        msg.add_attachment(
            file_bytes,
            maintype="application",
            subtype="octet-stream",
            filename=file_name,
        )
        return msg

    def submit(self, file_bytes: bytes, file_name: str, metadata: RelayMetadata) -> RelayAck:
        msg = self.build_message(file_bytes, file_name, metadata)

        logger.info(f"Emailing {file_name} to printer address via {self._smtp_host}:{self._smtp_port}")
        try:
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._password:
                    server.login(self._sender, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to email print job {file_name}: {e}")
            raise RelayError("Failed to send print job", detail=str(e), backend=self.name) from e

        return RelayAck(message="Print job sent successfully!", file_name=file_name)


class PrintCommandRelay(SubmissionRelay):
    """
    Print through the local CUPS spooler with the `lp` command.

    The document is written to a temporary file for the duration of the
    call. Copies are requested with ``-n`` so the printer collates them.
    """

    name = "print"

    _ORIENTATION_OPTIONS = {
        Orientation.PORTRAIT: "orientation-requested=3",
        Orientation.LANDSCAPE: "orientation-requested=4",
    }
    _SIDES_OPTIONS = {
        DuplexMode.SINGLE_SIDED: "sides=one-sided",
        DuplexMode.DOUBLE_SIDED_LONG_EDGE: "sides=two-sided-long-edge",
        DuplexMode.DOUBLE_SIDED_SHORT_EDGE: "sides=two-sided-short-edge",
    }
    _COLOR_OPTIONS = {
        ColorMode.BLACK_AND_WHITE: "print-color-mode=monochrome",
        ColorMode.COLOR: "print-color-mode=color",
    }

    def __init__(
        self,
        printer_name: str,
        lp_path: str = "lp",
        extra_args: Optional[Sequence[str]] = None,
    ):
        self._printer_name = printer_name
        self._lp_path = lp_path
        self._extra_args = list(extra_args or [])

    def build_command(self, file_path: Path, file_name: str, metadata: RelayMetadata) -> List[str]:
        return [
            self._lp_path,
            "-d", self._printer_name,
            "-t", file_name,
            "-n", str(metadata.copies),
            "-o", self._ORIENTATION_OPTIONS[metadata.orientation],
            "-o", self._SIDES_OPTIONS[metadata.duplex_mode],
            "-o", self._COLOR_OPTIONS[metadata.color_mode],
            *self._extra_args,
            str(file_path),
        ]

    def submit(self, file_bytes: bytes, file_name: str, metadata: RelayMetadata) -> RelayAck:
        if shutil.which(self._lp_path) is None:
            raise RelayError(
                "Printing failed",
                detail=f"'{self._lp_path}' not found in PATH",
                backend=self.name,
            )

        suffix = Path(file_name).suffix
        with tempfile.TemporaryDirectory(prefix="print_kiosk_") as tmp_dir:
            file_path = Path(tmp_dir) / f"job{suffix}"
            file_path.write_bytes(file_bytes)

            cmd = self.build_command(file_path, file_name, metadata)
            logger.info(f"Submitting {file_name} to printer {self._printer_name}")
            try:
                proc = subprocess.run(cmd, capture_output=True, text=True)
            except OSError as e:
                raise RelayError("Printing failed", detail=str(e), backend=self.name) from e

        if proc.returncode != 0:
            out = ((proc.stdout or "") + (proc.stderr or "")).strip()
            logger.error(f"lp failed (rc={proc.returncode}): {out}")
            raise RelayError(
                "Printing failed",
                detail=f"lp failed (rc={proc.returncode}): {out}",
                backend=self.name,
            )

        return RelayAck(message="Print job sent", file_name=file_name)


def build_relay(config) -> SubmissionRelay:
    """
    Create the relay named by ``config["RELAY_BACKEND"]``.

    Raises:
        ConfigurationError: unknown backend or missing required settings
    """
    backend = config.get("RELAY_BACKEND", "simulated")

    if backend == "simulated":
        return SimulatedRelay()

    if backend == "email":
        for setting in ("SENDER_EMAIL", "PRINTER_EMAIL"):
            if not config.get(setting):
                raise ConfigurationError(
                    setting, config.get(setting), "Set SENDER_EMAIL and PRINTER_EMAIL in .env"
                )
        return EmailRelay(
            smtp_host=config["SMTP_HOST"],
            smtp_port=config["SMTP_PORT"],
            sender=config["SENDER_EMAIL"],
            password=config.get("SENDER_EMAIL_PASS", ""),
            recipient=config["PRINTER_EMAIL"],
            use_tls=config.get("SMTP_USE_TLS", True),
            timeout_seconds=config.get("SMTP_TIMEOUT_SECONDS", 30.0),
        )

    if backend == "print":
        if not config.get("PRINTER_NAME"):
            raise ConfigurationError(
                "PRINTER_NAME", config.get("PRINTER_NAME"), "Set PRINTER_NAME to a CUPS queue name"
            )
        return PrintCommandRelay(
            printer_name=config["PRINTER_NAME"],
            lp_path=config.get("LP_PATH", "lp"),
        )

    raise ConfigurationError(
        "RELAY_BACKEND", backend, "Use one of: email, print, simulated"
    )
