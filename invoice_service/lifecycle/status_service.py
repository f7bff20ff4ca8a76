from collections.abc import Callable
from dataclasses import replace
from datetime import date

from invoice_service.audit.models import AuditAction
from invoice_service.audit.service import AuditService
from invoice_service.database.repositories.base import DocumentRepository
from invoice_service.documents.codes import DOCUMENT_PREFIX
from invoice_service.documents.exceptions import DocumentConflictError, InvalidRequestError
from invoice_service.documents.models import CallerIdentity, DocumentStatus
from invoice_service.lifecycle.lookup import get_transformed
from invoice_service.lifecycle.models import StatusChange
from invoice_service.lifecycle.retention import next_status_change_date
from invoice_service.logging.logger import Log


def parse_status(code: str) -> DocumentStatus:
    try:
        return DocumentStatus(code)
    except ValueError as exc:
        valid = [s.value for s in DocumentStatus]
        raise InvalidRequestError(
            f"Unknown status '{code}'. Choose from: {valid}"
        ) from exc


class StatusService:
    """Moves a record through open, done and trashed.

    Trashed is terminal. The tag, both retention dates and the document
    status are written in one update, so no reader sees the old tag removed
    without the new one added.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        audit: AuditService,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._doc_repo = doc_repo
        self._audit = audit
        self._today = today

    def change_status(self, token: str, target_code: str, caller: CallerIdentity) -> StatusChange:
        """Raises:
        InvalidRequestError: if ``target_code`` is not a known status.
        DocumentNotFoundError: if the token is unknown.
        DocumentConflictError: if the transition is not allowed.
        """
        target = parse_status(target_code)
        record = get_transformed(self._doc_repo, token)
        current = record.status_tag or DocumentStatus.OPEN.value

        if current == target.value:
            raise DocumentConflictError(f"Document already has status '{current}'")
        if current == DocumentStatus.TRASHED.value:
            raise DocumentConflictError(
                f"Status '{DocumentStatus.TRASHED.value}' is terminal, "
                "no further status changes are allowed"
            )

        changed = self._today()
        next_change = next_status_change_date(target, changed)
        doc_status = "entered-in-error" if target is DocumentStatus.TRASHED else "current"
        self._doc_repo.update(
            replace(
                record,
                status_tag=target.value,
                status_changed_date=changed,
                next_status_change_date=next_change,
                doc_status=doc_status,
            )
        )
        Log.info(f"Document status changed from '{current}' to '{target.value}'")
        self._audit.record(
            AuditAction.UPDATE,
            "change-status",
            f"{DOCUMENT_PREFIX}{token}",
            caller.telematik_id,
            description=f"{current} -> {target.value}",
        )
        return StatusChange(
            token=token,
            status=target,
            status_changed_date=changed,
            next_status_change_date=next_change,
            doc_status=doc_status,
        )
