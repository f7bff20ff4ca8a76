from invoice_service.config.settings import Settings
from invoice_service.logging.logger import Log
from invoice_service.pdf.base import BasePdfInspector
from invoice_service.pdf.pdfplumber_adapter import PdfPlumberAdapter
from invoice_service.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfInspectorFactory:
    """Picks the library that checks submitted PDFs for readability.

    Both inspectors only need to open the document and count its pages;
    ``settings.pdf_engine`` decides which one the extractor gets.
    """

    INSPECTORS: dict[str, type[BasePdfInspector]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfInspector:
        """Raises:
        ValueError: if ``pdf_engine`` names no known inspector.
        """
        engine = settings.pdf_engine.strip().lower()
        inspector_cls = cls.INSPECTORS.get(engine)
        if inspector_cls is None:
            known = ", ".join(sorted(cls.INSPECTORS))
            raise ValueError(f"No PDF inspector for engine '{engine}' (known: {known})")
        Log.debug(f"Inspecting submitted PDFs with {inspector_cls.__name__}")
        return inspector_cls()
