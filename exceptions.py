"""Custom exception classes for table finder errors."""

from __future__ import annotations


class TableFinderException(Exception):
    """Base exception for table finder errors."""
    pass


class PDFValidationError(TableFinderException):
    """Raised when PDF path validation fails."""
    pass


class PDFReadError(TableFinderException):
    """Raised when PDF cannot be opened or a page cannot be read."""
    pass


class PageRangeError(PDFReadError):
    """Raised when a requested page number is outside the document."""
    pass


class PDFDecryptionError(TableFinderException):
    """Raised when PDF decryption fails."""
    pass


class GridInvariantError(TableFinderException):
    """Raised when an extracted cell grid is not rectangular."""
    pass


class PDFAnnotationError(TableFinderException):
    """Raised when annotation operations fail."""
    pass


class TableExportError(TableFinderException):
    """Raised when table export fails."""
    pass
