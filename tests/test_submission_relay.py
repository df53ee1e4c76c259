"""
Unit tests for submission relays.

SMTP and the lp command are mocked; nothing leaves the machine.
"""

import smtplib
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest

from core.exceptions import ConfigurationError, RelayError
from models.print_job import ColorMode, DuplexMode, Orientation, RelayMetadata
from services.submission_relay import (
    EmailRelay,
    PrintCommandRelay,
    SimulatedRelay,
    build_relay,
)


# Fixtures

@pytest.fixture
def metadata():
    return RelayMetadata(
        page_count=3,
        cost=12.0,
        copies=4,
        orientation=Orientation.LANDSCAPE,
        color_mode=ColorMode.COLOR,
        duplex_mode=DuplexMode.DOUBLE_SIDED_LONG_EDGE,
    )


@pytest.fixture
def email_relay():
    return EmailRelay(
        smtp_host="smtp.example.com",
        smtp_port=587,
        sender="kiosk@example.com",
        password="app-password",
        recipient="printer@print.example.com",
    )


@pytest.fixture
def smtp_server():
    """Patch smtplib.SMTP and return the server object used in the with-block."""
    with patch("services.submission_relay.smtplib.SMTP") as mock_smtp:
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server
        server.mock_smtp = mock_smtp
        yield server


# Tests for EmailRelay

class TestEmailRelay:
    """Test the email-print relay."""

    def test_build_message(self, email_relay, metadata):
        """Test subject, body settings and attachment."""
        msg = email_relay.build_message(b"%PDF-data", "report.pdf", metadata)

        assert msg["Subject"] == "Cloud Print Job"
        assert msg["To"] == "printer@print.example.com"

        body = msg.get_body(preferencelist=("plain",)).get_content()
        assert "Print job sent from Cloud Print System." in body
        assert "copies: 4" in body
        assert "duplexMode: double-sided-long-edge" in body

        attachments = list(msg.iter_attachments())
        assert len(attachments) == 1
        assert attachments[0].get_filename() == "report.pdf"
        assert attachments[0].get_content() == b"%PDF-data"

    def test_submit_sends_over_tls(self, email_relay, metadata, smtp_server):
        """Test STARTTLS, login and send happen in order."""
        ack = email_relay.submit(b"%PDF-data", "report.pdf", metadata)

        smtp_server.mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        smtp_server.starttls.assert_called_once()
        smtp_server.login.assert_called_once_with("kiosk@example.com", "app-password")
        smtp_server.send_message.assert_called_once()
        assert ack.message == "Print job sent successfully!"
        assert ack.file_name == "report.pdf"

    def test_submit_without_password_skips_login(self, metadata, smtp_server):
        relay = EmailRelay("localhost", 25, "kiosk@example.com", "", "printer@example.com", use_tls=False)

        relay.submit(b"data", "a.pdf", metadata)

        smtp_server.starttls.assert_not_called()
        smtp_server.login.assert_not_called()

    def test_smtp_failure_raises_relay_error(self, email_relay, metadata, smtp_server):
        """Test SMTP errors become a RelayError with the transport detail."""
        smtp_server.send_message.side_effect = smtplib.SMTPException("mailbox unavailable")

        with pytest.raises(RelayError) as exc_info:
            email_relay.submit(b"data", "a.pdf", metadata)

        assert exc_info.value.message == "Failed to send print job"
        assert exc_info.value.detail == "mailbox unavailable"
        assert exc_info.value.user_message == "Failed to send print job: mailbox unavailable"

    def test_connection_failure_raises_relay_error(self, email_relay, metadata, smtp_server):
        smtp_server.mock_smtp.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(RelayError):
            email_relay.submit(b"data", "a.pdf", metadata)


# Tests for PrintCommandRelay

class TestPrintCommandRelay:
    """Test the lp relay."""

    def test_build_command(self, metadata):
        """Test options map to CUPS job attributes."""
        relay = PrintCommandRelay("Office_Laser")

        cmd = relay.build_command(Path("/tmp/job.pdf"), "report.pdf", metadata)

        assert cmd[:3] == ["lp", "-d", "Office_Laser"]
        assert cmd[cmd.index("-n") + 1] == "4"
        assert "orientation-requested=4" in cmd
        assert "sides=two-sided-long-edge" in cmd
        assert "print-color-mode=color" in cmd
        assert cmd[-1] == "/tmp/job.pdf"

    @patch("services.submission_relay.shutil.which", return_value="/usr/bin/lp")
    @patch("services.submission_relay.subprocess.run")
    def test_submit_writes_file_and_runs_lp(self, mock_run, mock_which, metadata):
        """Test the document is on disk while lp runs."""
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["path"] = Path(cmd[-1])
            seen["bytes"] = seen["path"].read_bytes()
            return Mock(returncode=0, stdout="request id is Office_Laser-7", stderr="")

        mock_run.side_effect = fake_run
        relay = PrintCommandRelay("Office_Laser")

        ack = relay.submit(b"%PDF-data", "report.pdf", metadata)

        assert seen["bytes"] == b"%PDF-data"
        assert seen["path"].suffix == ".pdf"
        assert not seen["path"].exists()
        assert ack.file_name == "report.pdf"

    @patch("services.submission_relay.shutil.which", return_value="/usr/bin/lp")
    @patch("services.submission_relay.subprocess.run")
    def test_lp_failure_raises_relay_error(self, mock_run, mock_which, metadata):
        mock_run.return_value = Mock(returncode=1, stdout="", stderr="lp: The printer or class does not exist.")
        relay = PrintCommandRelay("Missing")

        with pytest.raises(RelayError) as exc_info:
            relay.submit(b"data", "a.pdf", metadata)

        assert exc_info.value.message == "Printing failed"
        assert "rc=1" in exc_info.value.detail
        assert "does not exist" in exc_info.value.detail

    @patch("services.submission_relay.shutil.which", return_value=None)
    def test_missing_lp_raises_relay_error(self, mock_which, metadata):
        with pytest.raises(RelayError) as exc_info:
            PrintCommandRelay("Office_Laser").submit(b"data", "a.pdf", metadata)

        assert "not found" in exc_info.value.detail


# Tests for SimulatedRelay

class TestSimulatedRelay:

    def test_records_submission(self, metadata):
        relay = SimulatedRelay()
        ack = relay.submit(b"data", "a.pdf", metadata)

        assert relay.submissions == [metadata]
        assert ack.message == "Print job sent"


# Tests for build_relay

class TestBuildRelay:

    def test_simulated_by_default(self):
        assert isinstance(build_relay({}), SimulatedRelay)

    def test_email(self):
        relay = build_relay({
            "RELAY_BACKEND": "email",
            "SMTP_HOST": "smtp.gmail.com",
            "SMTP_PORT": 587,
            "SENDER_EMAIL": "kiosk@example.com",
            "SENDER_EMAIL_PASS": "secret",
            "PRINTER_EMAIL": "printer@example.com",
        })
        assert isinstance(relay, EmailRelay)

    def test_email_requires_addresses(self):
        """Test startup fails fast without sender and printer addresses."""
        with pytest.raises(ConfigurationError) as exc_info:
            build_relay({"RELAY_BACKEND": "email", "SMTP_HOST": "smtp.gmail.com", "SMTP_PORT": 587})
        assert exc_info.value.setting == "SENDER_EMAIL"

    def test_print_requires_printer_name(self):
        with pytest.raises(ConfigurationError):
            build_relay({"RELAY_BACKEND": "print"})

    def test_print(self):
        relay = build_relay({"RELAY_BACKEND": "print", "PRINTER_NAME": "Office_Laser"})
        assert isinstance(relay, PrintCommandRelay)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            build_relay({"RELAY_BACKEND": "fax"})
