from dataclasses import dataclass

from invoice_service.documents.models import DocumentRecord, InvoicePayload, Signature


@dataclass(frozen=True)
class RetrievalSelector:
    """Which parts of a document the caller wants back."""

    metadata: bool = False
    structured: bool = False
    original_pdf: bool = False
    enriched_pdf: bool = False
    signature: bool = False


@dataclass(frozen=True)
class RetrievalResult:
    token: str
    metadata: DocumentRecord | None = None
    structured: InvoicePayload | None = None
    original_pdf: bytes | None = None
    enriched_pdf: bytes | None = None
    signature: Signature | None = None
