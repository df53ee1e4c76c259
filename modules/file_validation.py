"""
Upload acceptance checks.

Runs before the document inspector. A rejected upload never reaches the
inspector or the relay.
"""

from __future__ import annotations

import mimetypes
from typing import Optional

import bleach
from werkzeug.utils import secure_filename

from core.exceptions import ValidationError


PDF_MIME_TYPE = "application/pdf"
DOC_MIME_TYPE = "application/msword"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

ACCEPTED_MIME_TYPES = frozenset({PDF_MIME_TYPE, DOC_MIME_TYPE, DOCX_MIME_TYPE})
WORD_MIME_TYPES = frozenset({DOC_MIME_TYPE, DOCX_MIME_TYPE})

# Browsers send these when they do not know the type
_GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}

MAX_FILENAME_LENGTH = 255


def sanitize_file_name(file_name: Optional[str]) -> str:
    """
    Make a user-supplied file name safe to display, store and attach.

    HTML is stripped with bleach, then the name is reduced to a safe
    basename. Returns "" when nothing usable remains.
    """
    if not file_name:
        return ""
    text = bleach.clean(file_name.strip(), tags=[], strip=True)
    return secure_filename(text)[:MAX_FILENAME_LENGTH]


def resolve_mime_type(file_name: str, declared: Optional[str]) -> str:
    """
    Return the declared MIME type, falling back to the file extension
    when the client sent a generic or empty one.
    """
    declared = (declared or "").split(";", 1)[0].strip().lower()
    if declared not in _GENERIC_MIME_TYPES:
        return declared
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or declared


def validate_upload(file_name: str, mime_type: str, size_bytes: int, max_size_bytes: int) -> None:
    """
    Check an upload against the acceptance policy.

    Raises:
        ValidationError: missing file, unsupported type or file too large
    """
    if not file_name or size_bytes <= 0:
        raise ValidationError("Please choose a file to upload.")

    if mime_type not in ACCEPTED_MIME_TYPES:
        raise ValidationError(
            "Invalid file type. Only PDF and Word documents are accepted.",
            {"mime_type": mime_type},
        )

    if size_bytes > max_size_bytes:
        max_mb = max_size_bytes / (1024 * 1024)
        raise ValidationError(
            f"File is too large. Maximum size is {max_mb:.0f}MB.",
            {"size_bytes": size_bytes, "max_size_bytes": max_size_bytes},
        )
