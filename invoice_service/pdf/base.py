from abc import ABC, abstractmethod


class BasePdfInspector(ABC):
    """Contract for PDF structural inspection adapters."""

    @abstractmethod
    def page_count(self, pdf_bytes: bytes) -> int:
        """Open the PDF and return its page count.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Number of pages. A document without pages is invalid.

        Raises:
            InvalidPdfError: if the bytes do not open as a PDF with pages.
        """
