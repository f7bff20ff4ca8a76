from dataclasses import replace

from invoice_service.database.repositories.base import BinaryRepository, DocumentRepository
from invoice_service.documents.codes import (
    BINARY_PREFIX,
    DOCUMENT_PREFIX,
    MEDIA_TYPE_OCTET_STREAM,
)
from invoice_service.documents.models import (
    CallerIdentity,
    ContentSlot,
    DocumentKind,
    DocumentRecord,
    SubmissionMode,
)
from invoice_service.documents.serialization import record_to_dict
from invoice_service.logging.logger import Log
from invoice_service.submission.classifier import enforce_size_limit, reject_store_reference
from invoice_service.submission.exceptions import UnprocessableContentError
from invoice_service.submission.models import AttachmentBatchResult, ProcessedAttachment
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.models import (
    Severity,
    ValidationMessage,
    ValidationOutcome,
    split_messages,
)


class AttachmentProcessor:
    """Validates and stores side documents, one at a time.

    A rejected attachment is reported and skipped. It never fails the batch
    or the main submission.
    """

    def __init__(
        self,
        validator: BaseDocumentValidator,
        doc_repo: DocumentRepository,
        binary_repo: BinaryRepository,
        max_slot_size_bytes: int,
    ) -> None:
        self._validator = validator
        self._doc_repo = doc_repo
        self._binary_repo = binary_repo
        self._max_slot_size_bytes = max_slot_size_bytes

    def process(
        self,
        attachments: tuple[DocumentRecord, ...],
        mode: SubmissionMode,
        transformed_token: str,
        caller: CallerIdentity,
    ) -> AttachmentBatchResult:
        if mode is not SubmissionMode.NORMAL or not attachments:
            return AttachmentBatchResult()

        processed: list[ProcessedAttachment] = []
        messages: list[ValidationMessage] = []
        for position, attachment in enumerate(attachments):
            blocking, non_blocking = split_messages(
                self._validator.validate("DocumentReference", record_to_dict(attachment))
            )
            if blocking:
                Log.warning(f"Attachment {position} rejected with {len(blocking)} issues")
                messages.extend(_located(position, m) for m in blocking)
                continue
            try:
                saved = self._store(attachment, transformed_token, caller)
            except UnprocessableContentError as exc:
                Log.warning(f"Attachment {position} rejected: {exc}")
                messages.append(
                    ValidationMessage(Severity.ERROR, str(exc), f"attachments[{position}]")
                )
                continue
            Log.info(f"Stored attachment {position} as {saved.id}")
            processed.append(
                ProcessedAttachment(
                    record=saved,
                    outcome=ValidationOutcome.from_messages(non_blocking),
                )
            )
        return AttachmentBatchResult(processed=tuple(processed), messages=tuple(messages))

    def _store(
        self,
        attachment: DocumentRecord,
        transformed_token: str,
        caller: CallerIdentity,
    ) -> DocumentRecord:
        for index, slot in enumerate(attachment.content):
            reject_store_reference(slot, index)
            if slot.is_inline:
                enforce_size_limit(slot, index, self._max_slot_size_bytes)

        content: list[ContentSlot] = []
        for slot in attachment.content:
            if not slot.is_inline:
                content.append(slot)
                continue
            binary = self._binary_repo.create(
                slot.data or b"", slot.content_type or MEDIA_TYPE_OCTET_STREAM
            )
            content.append(replace(slot, data=None, url=f"{BINARY_PREFIX}{binary.id}"))

        return self._doc_repo.create(
            replace(
                attachment,
                id=None,
                kind=DocumentKind.ATTACHMENT,
                content=tuple(content),
                related=(f"{DOCUMENT_PREFIX}{transformed_token}",),
                author=caller.telematik_id,
            )
        )


def _located(position: int, message: ValidationMessage) -> ValidationMessage:
    location = f"attachments[{position}]"
    if message.location:
        location = f"{location}.{message.location}"
    return ValidationMessage(message.severity, message.message, location)
