"""Classification and extraction of the main document's content slots."""

from invoice_service.database.repositories.base import InvoicePayloadRepository
from invoice_service.documents.codes import (
    BINARY_PREFIX,
    INVOICE_PREFIX,
    MEDIA_TYPE_PDF,
    STRUCTURED_MEDIA_TYPES,
)
from invoice_service.documents.models import ContentSlot, DocumentRecord, SubmissionMode
from invoice_service.logging.logger import Log
from invoice_service.pdf.base import BasePdfInspector
from invoice_service.pdf.exceptions import InvalidPdfError
from invoice_service.submission.exceptions import (
    BlockingValidationError,
    UnprocessableContentError,
)
from invoice_service.submission.models import (
    ClassifiedSlot,
    ExtractionResult,
    PassThroughSlot,
    PdfSlot,
    StructuredSlot,
)
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.exceptions import InvoiceParseError, NotAnInvoiceError
from invoice_service.validation.invoice_parser import parse_invoice
from invoice_service.validation.models import split_messages


def classify(document: DocumentRecord) -> tuple[ClassifiedSlot, ...]:
    """Tag every slot once. Only inline slots with a media type are examined."""
    classified: list[ClassifiedSlot] = []
    for index, slot in enumerate(document.content):
        if slot.data is None or not slot.content_type:
            classified.append(PassThroughSlot(index, slot))
        elif slot.content_type in STRUCTURED_MEDIA_TYPES:
            classified.append(StructuredSlot(index, slot))
        elif slot.content_type == MEDIA_TYPE_PDF:
            classified.append(PdfSlot(index, slot))
        else:
            classified.append(PassThroughSlot(index, slot))
    return tuple(classified)


def enforce_size_limit(slot: ContentSlot, index: int, max_size_bytes: int) -> None:
    size = len(slot.data or b"")
    if size > max_size_bytes:
        raise UnprocessableContentError(
            f"Content slot {index} is {size} bytes, limit is {max_size_bytes}"
        )


def reject_store_reference(slot: ContentSlot, index: int) -> None:
    """Submitted slots may not point at binaries or payloads this service stores."""
    url = slot.url or ""
    if url.startswith((BINARY_PREFIX, INVOICE_PREFIX)):
        raise UnprocessableContentError(f"Content slot {index} references stored object '{url}'")


class ContentExtractor:
    """Validates and extracts structured invoices and PDFs from the main document.

    Any malformed or blocking slot aborts the whole submission.
    """

    def __init__(
        self,
        validator: BaseDocumentValidator,
        pdf_inspector: BasePdfInspector,
        payload_repo: InvoicePayloadRepository,
        max_slot_size_bytes: int,
    ) -> None:
        self._validator = validator
        self._pdf_inspector = pdf_inspector
        self._payload_repo = payload_repo
        self._max_slot_size_bytes = max_slot_size_bytes

    def extract(self, document: DocumentRecord, mode: SubmissionMode) -> ExtractionResult:
        """Raises:
        BlockingValidationError: if an invoice has fatal or error findings.
        UnprocessableContentError: if a slot is oversized, malformed, not a PDF
            or references a stored object.
        """
        result = ExtractionResult()
        for classified in classify(document):
            reject_store_reference(classified.slot, classified.index)
            match classified:
                case StructuredSlot(index=index, slot=slot):
                    self._extract_structured(index, slot, mode, result)
                case PdfSlot(index=index, slot=slot):
                    self._extract_pdf(index, slot, mode, result)
                case PassThroughSlot(index=index, slot=slot):
                    Log.debug(f"Slot {index} ({slot.content_type}) passed through")
        return result

    def _extract_structured(
        self,
        index: int,
        slot: ContentSlot,
        mode: SubmissionMode,
        result: ExtractionResult,
    ) -> None:
        enforce_size_limit(slot, index, self._max_slot_size_bytes)
        try:
            payload = parse_invoice(slot.data or b"", slot.content_type or "")
        except NotAnInvoiceError as exc:
            Log.info(f"Slot {index} passed through: {exc}")
            return
        except InvoiceParseError as exc:
            raise UnprocessableContentError(f"Content slot {index}: {exc}") from exc

        blocking, non_blocking = split_messages(
            self._validator.validate("Invoice", payload.resource)
        )
        if blocking:
            raise BlockingValidationError(blocking)
        result.warnings.extend(non_blocking)

        if result.subject_reference is None and payload.subject_reference:
            result.subject_reference = payload.subject_reference
        if result.signing_payload is None:
            result.signing_payload = payload.raw

        if mode is SubmissionMode.NORMAL:
            payload = self._payload_repo.create(payload)
            result.payload_urls[index] = f"{INVOICE_PREFIX}{payload.id}"
            Log.info(f"Stored structured invoice from slot {index} as {payload.id}")
        result.payloads.append(payload)

    def _extract_pdf(
        self,
        index: int,
        slot: ContentSlot,
        mode: SubmissionMode,
        result: ExtractionResult,
    ) -> None:
        enforce_size_limit(slot, index, self._max_slot_size_bytes)
        pdf_bytes = slot.data or b""
        try:
            pages = self._pdf_inspector.page_count(pdf_bytes)
        except InvalidPdfError as exc:
            raise UnprocessableContentError(f"Content slot {index}: {exc}") from exc
        Log.debug(f"Slot {index} holds a valid {pages}-page PDF")

        if result.signing_pdf is None:
            result.signing_pdf = pdf_bytes
            if mode is SubmissionMode.NORMAL:
                result.enrichment_pdf_index = index

