from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from invoice_service.audit.models import AuditAction
from invoice_service.audit.service import AuditService
from invoice_service.database.repositories.base import DocumentRepository
from invoice_service.documents.codes import DOCUMENT_PREFIX
from invoice_service.documents.exceptions import InvalidRequestError
from invoice_service.documents.models import (
    CallerIdentity,
    DocumentRecord,
    FlagCode,
    ProcessingFlag,
)
from invoice_service.lifecycle.lookup import get_transformed
from invoice_service.logging.logger import Log


def build_flag(
    code: str,
    timestamp: datetime,
    details: str | None = None,
    archive_kind: str | None = None,
) -> ProcessingFlag:
    """Validate the marking input and build the flag.

    Raises:
        InvalidRequestError: for an unknown code or an archive flag without a kind.
    """
    try:
        flag_code = FlagCode(code)
    except ValueError as exc:
        raise InvalidRequestError(
            f"Unknown flag '{code}'. Choose from: {[c.value for c in FlagCode]}"
        ) from exc
    if flag_code is FlagCode.ARCHIVED and not archive_kind:
        raise InvalidRequestError("An archive flag requires the kind of archiving")
    return ProcessingFlag(
        code=flag_code,
        timestamp=timestamp,
        details=details,
        read=True if flag_code is FlagCode.READ else None,
        archive_kind=archive_kind if flag_code is not FlagCode.READ else None,
    )


class FlagService:
    """Sets processing markings on a token-addressed record."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        audit: AuditService,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._doc_repo = doc_repo
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def set_flag(
        self,
        token: str,
        code: str,
        caller: CallerIdentity,
        details: str | None = None,
        archive_kind: str | None = None,
    ) -> DocumentRecord:
        flag = build_flag(code, self._clock(), details=details, archive_kind=archive_kind)
        record = get_transformed(self._doc_repo, token)
        flags = tuple(f for f in record.flags if f.code is not flag.code) + (flag,)
        updated = self._doc_repo.update(replace(record, flags=flags))
        Log.info(f"Flag '{flag.code.value}' set on document")
        self._audit.record(
            AuditAction.UPDATE,
            "flag",
            f"{DOCUMENT_PREFIX}{token}",
            caller.telematik_id,
            description=flag.code.value,
        )
        return updated
