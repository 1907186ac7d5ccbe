"""
Exceptions raised by the label and packing slip services.

Exception hierarchy:
    ReelPrintError (base)
    ├── InvalidScanError (scan input rejected before any lookup)
    └── DocumentGenerationError (label / packing slip could not be produced)

Asset load and barcode encode failures are not exceptions: they degrade in
place (blank header, text-only barcode) and are only logged.
"""

from typing import Optional


class ReelPrintError(Exception):
    """Base exception for all label printing errors."""
    pass


class InvalidScanError(ReelPrintError):
    """Raised when scanned or typed input is not a usable barcode."""

    def __init__(self, message: str, raw_input: Optional[str] = None):
        super().__init__(message)
        self.raw_input = raw_input


class DocumentGenerationError(ReelPrintError):
    """
    Raised when a document cannot be generated as a whole.

    No partial document accompanies this error; callers get either a
    complete document or this exception.
    """

    def __init__(self, message: str, document_type: str = "document"):
        super().__init__(message)
        self.document_type = document_type
