from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from invoice_service.documents.codes import (
    DOCUMENT_TYPE_SYSTEM,
    INVOICE_TYPE_CODE,
    RELATION_TRANSFORMS,
)


class DocumentStatus(str, Enum):
    """Retention status carried in the record's status tag."""

    OPEN = "offen"
    DONE = "erledigt"
    TRASHED = "papierkorb"


class DocumentKind(str, Enum):
    ORIGINAL = "original"
    TRANSFORMED = "transformed"
    ATTACHMENT = "attachment"


class SubmissionMode(str, Enum):
    NORMAL = "normal"
    TEST = "test"


class FlagCode(str, Enum):
    READ = "gelesen"
    ARCHIVED = "archiviert"
    PERSONAL = "persoenlich"


@dataclass(frozen=True)
class Coding:
    """A code drawn from a coding system."""

    system: str
    code: str
    display: str | None = None


@dataclass(frozen=True)
class ContentSlot:
    """A typed payload position holding inline bytes or a URL, never both."""

    content_type: str | None
    data: bytes | None = None
    url: str | None = None
    title: str | None = None
    format_code: Coding | None = None

    def __post_init__(self) -> None:
        if self.data is not None and self.url is not None:
            raise ValueError("Content slot cannot carry inline data and a URL at once")

    @property
    def is_inline(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class RelatesTo:
    code: str
    target: str


@dataclass(frozen=True)
class Signature:
    """Detached signature attached to a transformed record."""

    type: Coding
    when: datetime
    who: str
    media_type: str
    data: bytes


@dataclass(frozen=True)
class ProcessingFlag:
    """A marking set on a record, e.g. read or archived."""

    code: FlagCode
    timestamp: datetime
    details: str | None = None
    read: bool | None = None
    archive_kind: str | None = None


@dataclass(frozen=True)
class DocumentRecord:
    """Immutable snapshot of a stored document.

    Transformed records use their token as ``id`` and ``identifier``.
    Derived records are produced with ``dataclasses.replace`` or the
    transformed record builder, never by mutation.
    """

    id: str | None
    kind: DocumentKind = DocumentKind.ORIGINAL
    type_codings: tuple[Coding, ...] = ()
    subject: str | None = None
    description: str | None = None
    content: tuple[ContentSlot, ...] = ()
    relates_to: tuple[RelatesTo, ...] = ()
    related: tuple[str, ...] = ()
    status_tag: str | None = None
    status_changed_date: date | None = None
    next_status_change_date: date | None = None
    doc_status: str = "current"
    author: str | None = None
    identifier: str | None = None
    profiles: tuple[str, ...] = ()
    flags: tuple[ProcessingFlag, ...] = ()
    signature: Signature | None = None

    @property
    def is_invoice(self) -> bool:
        return any(
            c.system == DOCUMENT_TYPE_SYSTEM and c.code == INVOICE_TYPE_CODE
            for c in self.type_codings
        )

    @property
    def transforms_target(self) -> str | None:
        for link in self.relates_to:
            if link.code == RELATION_TRANSFORMS:
                return link.target
        return None


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller, as resolved by the outer authorization layer."""

    telematik_id: str
    display_name: str | None = None


@dataclass(frozen=True)
class Submission:
    """Ephemeral input bundle for a single submit call."""

    document: DocumentRecord
    attachments: tuple[DocumentRecord, ...] = field(default_factory=tuple)
    mode: SubmissionMode = SubmissionMode.NORMAL
    enrich: bool = True


@dataclass(frozen=True)
class BinaryObject:
    id: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class InvoicePayload:
    """Parsed structured invoice plus the exact bytes it was parsed from."""

    content_type: str
    raw: bytes
    resource: dict[str, object]
    subject_reference: str | None = None
    id: str | None = None
