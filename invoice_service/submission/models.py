from dataclasses import dataclass, field

from invoice_service.documents.models import ContentSlot, DocumentRecord, InvoicePayload
from invoice_service.validation.models import ValidationMessage, ValidationOutcome


@dataclass(frozen=True)
class StructuredSlot:
    """Inline structured invoice content (FHIR JSON or XML)."""

    index: int
    slot: ContentSlot


@dataclass(frozen=True)
class PdfSlot:
    """Inline PDF rendition."""

    index: int
    slot: ContentSlot


@dataclass(frozen=True)
class PassThroughSlot:
    """Any other slot. Left untouched by the pipeline."""

    index: int
    slot: ContentSlot


ClassifiedSlot = StructuredSlot | PdfSlot | PassThroughSlot


@dataclass
class ExtractionResult:
    """What the content extractor found in the main document."""

    warnings: list[ValidationMessage] = field(default_factory=list)
    payloads: list[InvoicePayload] = field(default_factory=list)
    payload_urls: dict[int, str] = field(default_factory=dict)
    subject_reference: str | None = None
    signing_pdf: bytes | None = None
    signing_payload: bytes | None = None
    enrichment_pdf_index: int | None = None


@dataclass(frozen=True)
class ProcessedAttachment:
    record: DocumentRecord
    outcome: ValidationOutcome | None = None


@dataclass(frozen=True)
class AttachmentBatchResult:
    processed: tuple[ProcessedAttachment, ...] = ()
    messages: tuple[ValidationMessage, ...] = ()


@dataclass(frozen=True)
class SubmissionResult:
    """Returned to the caller of a submit operation."""

    outcome: ValidationOutcome | None
    transformed: DocumentRecord | None = None
    attachments: tuple[ProcessedAttachment, ...] = ()
