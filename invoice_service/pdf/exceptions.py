class PdfError(Exception):
    """Base exception for PDF handling."""


class InvalidPdfError(PdfError):
    """Raised when bytes cannot be opened as a PDF document."""


class PdfEnrichmentError(PdfError):
    """Raised when stamping or embedding into a PDF fails."""
