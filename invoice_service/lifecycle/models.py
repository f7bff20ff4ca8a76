from dataclasses import dataclass
from datetime import date

from invoice_service.documents.models import DocumentStatus


@dataclass(frozen=True)
class StatusChange:
    """Metadata returned after a status transition."""

    token: str
    status: DocumentStatus
    status_changed_date: date
    next_status_change_date: date
    doc_status: str


@dataclass(frozen=True)
class EraseConfirmation:
    token: str
    deleted: tuple[str, ...]
