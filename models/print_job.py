"""
Print job data models.

A PrintJob is created when the inspector accepts an upload and lives until
the user starts a new job. Its options are edited on the ConfirmDetails
step; its cost is always derived from the current page count and copies.

Thread Safety:
    - PrintJob is mutable and only touched under the wizard lock
    - Use PrintJob.freeze() to create the immutable RelayMetadata handed to
      the submission relay outside the lock
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping

from modules.pricing import compute_cost


class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class ColorMode(Enum):
    BLACK_AND_WHITE = "black-and-white"
    COLOR = "color"


class DuplexMode(Enum):
    SINGLE_SIDED = "single-sided"
    DOUBLE_SIDED_LONG_EDGE = "double-sided-long-edge"
    DOUBLE_SIDED_SHORT_EDGE = "double-sided-short-edge"


DEFAULT_COPIES = 1
DEFAULT_ORIENTATION = Orientation.PORTRAIT
DEFAULT_COLOR_MODE = ColorMode.BLACK_AND_WHITE
DEFAULT_DUPLEX_MODE = DuplexMode.SINGLE_SIDED


@dataclass(frozen=True)
class RelayMetadata:
    """
    Immutable snapshot of a job's print settings for the relay.

    ``to_form()`` produces the field names used on the wire by the
    /api/print endpoint and in relay email bodies.
    """

    page_count: int
    cost: float
    copies: int
    orientation: Orientation
    color_mode: ColorMode
    duplex_mode: DuplexMode

    @classmethod
    def from_form(cls, form: Mapping[str, str], price_per_page: float) -> "RelayMetadata":
        """
        Read metadata posted alongside a file, filling in defaults.

        Raises:
            ValueError: a numeric field is not a number or an option is not
                one of its enum values
        """
        page_count = max(1, int(form.get("pageCount") or 1))
        copies = max(1, int(form.get("copies") or DEFAULT_COPIES))
        raw_cost = form.get("cost")
        cost = float(raw_cost) if raw_cost else compute_cost(page_count, copies, price_per_page)
        return cls(
            page_count=page_count,
            cost=cost,
            copies=copies,
            orientation=Orientation(form.get("orientation") or DEFAULT_ORIENTATION.value),
            color_mode=ColorMode(form.get("colorMode") or DEFAULT_COLOR_MODE.value),
            duplex_mode=DuplexMode(form.get("duplexMode") or DEFAULT_DUPLEX_MODE.value),
        )

    def to_form(self) -> Dict[str, str]:
        return {
            "pageCount": str(self.page_count),
            "cost": f"{self.cost:g}",
            "copies": str(self.copies),
            "orientation": self.orientation.value,
            "colorMode": self.color_mode.value,
            "duplexMode": self.duplex_mode.value,
        }


@dataclass
class PrintJob:
    """
    A user's document plus print options, moving through the wizard.

    ``cost`` is a property, not a field: it cannot drift away from
    ``page_count`` and ``copies``.
    """

    file: bytes = field(repr=False)
    """Raw document bytes, owned by the wizard until relayed."""

    file_name: str
    """Sanitized display name."""

    mime_type: str
    """Declared MIME type of the upload."""

    page_count: int
    """Pages per copy, as reported by the inspector."""

    price_per_page: float
    """Pricing constant in effect when the job was created."""

    copies: int = DEFAULT_COPIES
    orientation: Orientation = DEFAULT_ORIENTATION
    color_mode: ColorMode = DEFAULT_COLOR_MODE
    duplex_mode: DuplexMode = DEFAULT_DUPLEX_MODE

    size_bytes: int = field(init=False, default=0)
    """Upload size, kept after the bytes are released."""

    def __post_init__(self):
        self.size_bytes = len(self.file)

    @property
    def cost(self) -> float:
        return compute_cost(self.page_count, self.copies, self.price_per_page)

    def release_file(self) -> None:
        """Drop the document bytes once the relay has them."""
        self.file = b""

    def freeze(self) -> RelayMetadata:
        """Create the immutable metadata snapshot sent with the file."""
        return RelayMetadata(
            page_count=self.page_count,
            cost=self.cost,
            copies=self.copies,
            orientation=self.orientation,
            color_mode=self.color_mode,
            duplex_mode=self.duplex_mode,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summary for JSON responses. File bytes are never included."""
        return {
            "fileName": self.file_name,
            "mimeType": self.mime_type,
            "sizeBytes": self.size_bytes,
            "pageCount": self.page_count,
            "copies": self.copies,
            "orientation": self.orientation.value,
            "colorMode": self.color_mode.value,
            "duplexMode": self.duplex_mode.value,
            "pricePerPage": self.price_per_page,
            "cost": self.cost,
        }
