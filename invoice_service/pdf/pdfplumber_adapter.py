import io

import pdfplumber

from invoice_service.pdf.base import BasePdfInspector
from invoice_service.pdf.exceptions import InvalidPdfError


class PdfPlumberAdapter(BasePdfInspector):
    """Inspects PDF structure using pdfplumber."""

    def page_count(self, pdf_bytes: bytes) -> int:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = len(pdf.pages)
        except Exception as exc:
            raise InvalidPdfError(f"pdfplumber could not open PDF: {exc}") from exc
        if pages == 0:
            raise InvalidPdfError("PDF has no pages")
        return pages
