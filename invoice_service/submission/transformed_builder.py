from dataclasses import replace
from datetime import datetime, timezone

from invoice_service.documents.codes import (
    ATTACHMENT_FORMAT_SYSTEM,
    FORMAT_ENRICHED_PDF,
    FORMAT_STRUCTURED,
    RELATION_TRANSFORMS,
    TRANSFORMED_PROFILE,
)
from invoice_service.documents.models import (
    CallerIdentity,
    Coding,
    ContentSlot,
    DocumentKind,
    DocumentRecord,
    DocumentStatus,
    FlagCode,
    ProcessingFlag,
    RelatesTo,
    Signature,
)

STRUCTURED_FORMAT = Coding(ATTACHMENT_FORMAT_SYSTEM, FORMAT_STRUCTURED, "Rechnungsinhalt")
ENRICHED_PDF_FORMAT = Coding(ATTACHMENT_FORMAT_SYSTEM, FORMAT_ENRICHED_PDF, "E-Rechnung")


class TransformedRecordBuilder:
    """Derives the public, token-identified record from a stored original.

    The original is an immutable snapshot; every ``with_*`` call records a
    change and ``build`` produces a fresh DocumentRecord. The original is
    never touched.
    """

    def __init__(self, original: DocumentRecord, caller: CallerIdentity) -> None:
        if original.id is None:
            raise ValueError("Original record must be persisted before transformation")
        self._original = original
        self._caller = caller
        self._token: str | None = None
        self._slot_urls: dict[int, tuple[str, Coding | None]] = {}
        self._related: list[str] = []
        self._signature: Signature | None = None
        self._created_at = datetime.now(timezone.utc)

    @property
    def token(self) -> str | None:
        return self._token

    def with_token(self, token: str) -> "TransformedRecordBuilder":
        self._token = token
        return self

    def with_subject_reference(self, reference: str | None) -> "TransformedRecordBuilder":
        if reference and reference not in self._related:
            self._related.append(reference)
        return self

    def with_structured_url(self, index: int, url: str) -> "TransformedRecordBuilder":
        self._slot_urls[index] = (url, STRUCTURED_FORMAT)
        return self

    def with_enriched_pdf_url(self, index: int, url: str) -> "TransformedRecordBuilder":
        self._slot_urls[index] = (url, ENRICHED_PDF_FORMAT)
        return self

    def with_attachment(self, reference: str) -> "TransformedRecordBuilder":
        if reference not in self._related:
            self._related.append(reference)
        return self

    def with_signature(self, signature: Signature) -> "TransformedRecordBuilder":
        self._signature = signature
        return self

    def build(self) -> DocumentRecord:
        original = self._original
        return DocumentRecord(
            id=self._token,
            kind=DocumentKind.TRANSFORMED,
            type_codings=original.type_codings,
            subject=original.subject,
            description=original.description,
            content=self._content(),
            relates_to=(RelatesTo(code=RELATION_TRANSFORMS, target=original.id or ""),),
            related=tuple(self._related),
            status_tag=DocumentStatus.OPEN.value,
            status_changed_date=None,
            next_status_change_date=None,
            doc_status="current",
            author=self._caller.telematik_id,
            identifier=self._token,
            profiles=(TRANSFORMED_PROFILE,),
            flags=(
                ProcessingFlag(
                    code=FlagCode.PERSONAL,
                    timestamp=self._created_at,
                    archive_kind=FlagCode.PERSONAL.value,
                ),
            ),
            signature=self._signature,
        )

    def _content(self) -> tuple[ContentSlot, ...]:
        slots: list[ContentSlot] = []
        for index, slot in enumerate(self._original.content):
            rewrite = self._slot_urls.get(index)
            if rewrite is None:
                slots.append(slot)
                continue
            url, format_code = rewrite
            slots.append(replace(slot, data=None, url=url, format_code=format_code))
        return tuple(slots)
