"""Test doubles and document builders shared by the test modules."""

from io import BytesIO

from pypdf import PdfWriter

from services.availability_gate import InMemoryStore
from services.submission_relay import RelayAck, SubmissionRelay


PRICE_PER_PAGE = 2.0
BUSY_DURATION_MS = 60 * 1000
START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: int = START_MS):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FlakyStore(InMemoryStore):
    """In-memory slot whose next writes or deletes raise OSError."""

    def __init__(self):
        super().__init__()
        self.failing_sets = 0
        self.failing_deletes = 0

    def set(self, key, value):
        if self.failing_sets:
            self.failing_sets -= 1
            raise OSError("disk full")
        super().set(key, value)

    def delete(self, key):
        if self.failing_deletes:
            self.failing_deletes -= 1
            raise OSError("read-only file system")
        super().delete(key)


class RecordingRelay(SubmissionRelay):
    """Relay that records submissions and can be told to fail."""

    name = "recording"

    def __init__(self):
        self.calls = []
        self.fail = None
        self.on_submit = None

    def submit(self, file_bytes, file_name, metadata):
        self.calls.append((file_bytes, file_name, metadata))
        if self.on_submit is not None:
            self.on_submit()
        if self.fail is not None:
            raise self.fail
        return RelayAck(message="Print job sent", file_name=file_name)


def make_pdf(pages: int) -> bytes:
    """Build a real PDF with ``pages`` blank letter-size pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
