from invoice_service.audit.models import AuditAction
from invoice_service.audit.service import AuditService
from invoice_service.database.repositories.base import (
    BinaryRepository,
    DocumentRepository,
    InvoicePayloadRepository,
)
from invoice_service.documents.codes import (
    BINARY_PREFIX,
    DOCUMENT_PREFIX,
    INVOICE_PREFIX,
    MEDIA_TYPE_PDF,
)
from invoice_service.documents.models import (
    CallerIdentity,
    ContentSlot,
    DocumentRecord,
    InvoicePayload,
)
from invoice_service.lifecycle.lookup import get_transformed
from invoice_service.logging.logger import Log
from invoice_service.retrieval.models import RetrievalResult, RetrievalSelector


class RetrievalService:
    """Resolves a token into the parts the caller selected.

    Each part is looked up independently. An unselected part is never read.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        binary_repo: BinaryRepository,
        payload_repo: InvoicePayloadRepository,
        audit: AuditService,
    ) -> None:
        self._doc_repo = doc_repo
        self._binary_repo = binary_repo
        self._payload_repo = payload_repo
        self._audit = audit

    def retrieve(
        self, token: str, selector: RetrievalSelector, caller: CallerIdentity
    ) -> RetrievalResult:
        """Raises:
        DocumentNotFoundError: if the token, or a selected part it links to, is unknown.
        """
        record = get_transformed(self._doc_repo, token)
        result = RetrievalResult(
            token=token,
            metadata=record if selector.metadata else None,
            structured=self._structured(record) if selector.structured else None,
            original_pdf=self._original_pdf(record) if selector.original_pdf else None,
            enriched_pdf=self._enriched_pdf(record) if selector.enriched_pdf else None,
            signature=record.signature if selector.signature else None,
        )
        Log.info(f"Retrieved document parts: {self._describe(selector)}")
        self._audit.record(
            AuditAction.READ,
            "retrieve",
            f"{DOCUMENT_PREFIX}{token}",
            caller.telematik_id,
            description=self._describe(selector),
        )
        return result

    def _structured(self, record: DocumentRecord) -> InvoicePayload | None:
        for slot in record.content:
            if slot.url and slot.url.startswith(INVOICE_PREFIX):
                return self._payload_repo.get(slot.url[len(INVOICE_PREFIX):])
        return None

    def _enriched_pdf(self, record: DocumentRecord) -> bytes | None:
        for slot in record.content:
            if slot.content_type == MEDIA_TYPE_PDF and slot.url:
                return self._slot_bytes(slot)
        return None

    def _original_pdf(self, record: DocumentRecord) -> bytes | None:
        original_id = record.transforms_target
        if original_id is None:
            return None
        original = self._doc_repo.get(original_id)
        for slot in original.content:
            if slot.content_type == MEDIA_TYPE_PDF:
                return self._slot_bytes(slot)
        return None

    def _slot_bytes(self, slot: ContentSlot) -> bytes | None:
        if slot.data is not None:
            return slot.data
        if slot.url and slot.url.startswith(BINARY_PREFIX):
            return self._binary_repo.get(slot.url[len(BINARY_PREFIX):]).data
        return None

    def _describe(self, selector: RetrievalSelector) -> str:
        parts = [name for name, wanted in vars(selector).items() if wanted]
        return ", ".join(parts) or "nothing"
