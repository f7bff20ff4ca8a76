import pymupdf

from invoice_service.pdf.base import BasePdfInspector
from invoice_service.pdf.exceptions import InvalidPdfError


class PyMuPdfAdapter(BasePdfInspector):
    """Inspects PDF structure using PyMuPDF."""

    def page_count(self, pdf_bytes: bytes) -> int:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                pages = doc.page_count
        except Exception as exc:
            raise InvalidPdfError(f"pymupdf could not open PDF: {exc}") from exc
        if pages == 0:
            raise InvalidPdfError("PDF has no pages")
        return pages
