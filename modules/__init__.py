"""Helper modules for the PrintKiosk application."""

__all__ = [
    "document_inspector",
    "file_validation",
    "pricing",
    "upi",
]
