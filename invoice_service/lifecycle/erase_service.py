from collections.abc import Callable
from dataclasses import dataclass, field

from invoice_service.audit.models import AuditAction
from invoice_service.audit.service import AuditService
from invoice_service.database.repositories.base import (
    BinaryRepository,
    DocumentRepository,
    InvoicePayloadRepository,
)
from invoice_service.documents.codes import BINARY_PREFIX, DOCUMENT_PREFIX, INVOICE_PREFIX
from invoice_service.documents.exceptions import DocumentConflictError, DocumentNotFoundError
from invoice_service.documents.models import (
    CallerIdentity,
    DocumentKind,
    DocumentRecord,
    DocumentStatus,
)
from invoice_service.lifecycle.lookup import get_transformed
from invoice_service.lifecycle.models import EraseConfirmation
from invoice_service.logging.logger import Log


@dataclass
class _ErasePlan:
    binaries: list[str] = field(default_factory=list)
    payloads: list[str] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)
    originals: list[str] = field(default_factory=list)


class EraseService:
    """Irreversibly deletes a trashed record and everything it references.

    Leaves go first (binaries, invoice payloads), then attachment records,
    then the original, and the transformed record last.
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

    def erase(self, token: str, caller: CallerIdentity) -> EraseConfirmation:
        """Raises:
        DocumentNotFoundError: if the token is unknown or already erased.
        DocumentConflictError: if the record is not trashed.
        """
        record = get_transformed(self._doc_repo, token)
        if record.status_tag != DocumentStatus.TRASHED.value:
            raise DocumentConflictError(
                f"Only documents with status '{DocumentStatus.TRASHED.value}' can be erased"
            )

        plan = _ErasePlan()
        self._collect_slots(record, plan)
        self._collect_attachments(record, plan)
        self._collect_original(record, plan)

        deleted: list[str] = []
        self._delete_each(plan.binaries, BINARY_PREFIX, self._binary_repo.delete, deleted)
        self._delete_each(plan.payloads, INVOICE_PREFIX, self._payload_repo.delete, deleted)
        self._delete_each(plan.attachments, DOCUMENT_PREFIX, self._doc_repo.delete, deleted)
        self._delete_each(plan.originals, DOCUMENT_PREFIX, self._doc_repo.delete, deleted)
        self._doc_repo.delete(token)
        deleted.append(f"{DOCUMENT_PREFIX}{token}")

        Log.info(f"Erased document and {len(deleted) - 1} referenced objects")
        self._audit.record(
            AuditAction.DELETE,
            "erase",
            f"{DOCUMENT_PREFIX}{token}",
            caller.telematik_id,
            description=f"{len(deleted)} objects deleted",
        )
        return EraseConfirmation(token=token, deleted=tuple(deleted))

    def _collect_slots(self, record: DocumentRecord, plan: _ErasePlan) -> None:
        for slot in record.content:
            url = slot.url or ""
            if url.startswith(BINARY_PREFIX):
                plan.binaries.append(url[len(BINARY_PREFIX):])
            elif url.startswith(INVOICE_PREFIX):
                plan.payloads.append(url[len(INVOICE_PREFIX):])

    def _collect_attachments(self, record: DocumentRecord, plan: _ErasePlan) -> None:
        """Only attachments stored with this record and linking back to it are erased."""
        back_link = f"{DOCUMENT_PREFIX}{record.id}"
        for reference in dict.fromkeys(record.related):
            if not reference.startswith(DOCUMENT_PREFIX):
                continue
            attachment_id = reference[len(DOCUMENT_PREFIX):]
            try:
                attachment = self._doc_repo.get(attachment_id)
            except DocumentNotFoundError:
                Log.warning(f"Linked attachment {attachment_id} is already gone")
                continue
            owned = attachment.kind is DocumentKind.ATTACHMENT and back_link in attachment.related
            if not owned:
                Log.warning(f"{reference} is not an attachment of this document, keeping it")
                continue
            plan.attachments.append(attachment_id)
            self._collect_slots(attachment, plan)

    def _collect_original(self, record: DocumentRecord, plan: _ErasePlan) -> None:
        original_id = record.transforms_target
        if original_id is None:
            return
        try:
            original = self._doc_repo.get(original_id)
        except DocumentNotFoundError:
            Log.warning(f"Original document {original_id} is already gone")
            return
        plan.originals.append(original_id)
        self._collect_slots(original, plan)

    def _delete_each(
        self,
        ids: list[str],
        prefix: str,
        delete: Callable[[str], None],
        deleted: list[str],
    ) -> None:
        for object_id in ids:
            try:
                delete(object_id)
            except DocumentNotFoundError:
                Log.warning(f"{prefix}{object_id} was already deleted")
                continue
            deleted.append(f"{prefix}{object_id}")
