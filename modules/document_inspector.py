"""Page counting for uploaded documents."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from pypdf import PdfReader

from core.exceptions import InspectionError
from modules.file_validation import PDF_MIME_TYPE, WORD_MIME_TYPES
from logging_config import get_logger


logger = get_logger(__name__)

WORD_PAGE_COUNT_WARNING = (
    "Page count for Word documents is estimated as 1. Actual print cost may vary."
)


@dataclass(frozen=True)
class InspectionResult:
    page_count: int
    warning: Optional[str] = None


class DocumentInspector:
    """
    Determine how many pages a document will print.

    PDFs are parsed with pypdf. Word documents cannot be paginated without
    a layout engine, so they are priced as a single page and the result
    carries a warning for the user.
    """

    def inspect(self, file_bytes: bytes, mime_type: str) -> InspectionResult:
        if mime_type in WORD_MIME_TYPES:
            return InspectionResult(page_count=1, warning=WORD_PAGE_COUNT_WARNING)

        if mime_type != PDF_MIME_TYPE:
            raise InspectionError(
                "Could not process file. Ensure it is a valid PDF or Word document.",
                {"mime_type": mime_type},
            )

        try:
            reader = PdfReader(BytesIO(file_bytes))
            page_count = len(reader.pages)
        except Exception as exc:
            logger.warning(f"PDF parsing failed: {exc}")
            raise InspectionError(
                "Could not parse PDF. The file might be corrupted or not a valid PDF.",
                {"error": str(exc)},
            ) from exc

        if page_count < 1:
            raise InspectionError("The PDF does not contain any pages.")

        return InspectionResult(page_count=page_count)
