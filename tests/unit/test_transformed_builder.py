from datetime import datetime, timezone

import pytest

from invoice_service.documents.codes import (
    FORMAT_ENRICHED_PDF,
    FORMAT_STRUCTURED,
    MEDIA_TYPE_FHIR_JSON,
    MEDIA_TYPE_PDF,
    TRANSFORMED_PROFILE,
)
from invoice_service.documents.models import (
    CallerIdentity,
    Coding,
    ContentSlot,
    DocumentKind,
    DocumentRecord,
    FlagCode,
    Signature,
)
from invoice_service.submission.transformed_builder import TransformedRecordBuilder

CALLER = CallerIdentity("5-2-123456789")


def _make_original() -> DocumentRecord:
    return DocumentRecord(
        id="orig-1",
        kind=DocumentKind.ORIGINAL,
        type_codings=(Coding("http://dvmd.de/fhir/CodeSystem/kdl", "AM010106"),),
        subject="Patient/P-1",
        description="Rechnung",
        content=(
            ContentSlot(MEDIA_TYPE_FHIR_JSON, data=b"{}", title="Rechnung"),
            ContentSlot(MEDIA_TYPE_PDF, data=b"%PDF", title="Rechnung PDF"),
            ContentSlot("image/png", data=b"png"),
        ),
    )


class TestTransformedRecordBuilder:
    def test_requires_persisted_original(self) -> None:
        with pytest.raises(ValueError, match="persisted"):
            TransformedRecordBuilder(DocumentRecord(id=None), CALLER)

    def test_build_sets_token_and_relation(self) -> None:
        record = TransformedRecordBuilder(_make_original(), CALLER).with_token("tok").build()

        assert record.id == "tok"
        assert record.identifier == "tok"
        assert record.kind is DocumentKind.TRANSFORMED
        assert record.transforms_target == "orig-1"
        assert record.status_tag == "offen"
        assert record.author == CALLER.telematik_id
        assert record.profiles == (TRANSFORMED_PROFILE,)
        assert record.is_invoice

    def test_build_marks_record_personal(self) -> None:
        record = TransformedRecordBuilder(_make_original(), CALLER).with_token("tok").build()

        assert [f.code for f in record.flags] == [FlagCode.PERSONAL]
        assert record.flags[0].archive_kind == "persoenlich"

    def test_rewrites_slots_to_urls(self) -> None:
        record = (
            TransformedRecordBuilder(_make_original(), CALLER)
            .with_token("tok")
            .with_structured_url(0, "Invoice/p-1")
            .with_enriched_pdf_url(1, "Binary/b-1")
            .build()
        )

        structured, pdf, other = record.content
        assert structured.data is None
        assert structured.url == "Invoice/p-1"
        assert structured.format_code is not None
        assert structured.format_code.code == FORMAT_STRUCTURED
        assert structured.title == "Rechnung"
        assert pdf.url == "Binary/b-1"
        assert pdf.format_code is not None
        assert pdf.format_code.code == FORMAT_ENRICHED_PDF
        assert other.data == b"png"

    def test_related_references_are_unique(self) -> None:
        record = (
            TransformedRecordBuilder(_make_original(), CALLER)
            .with_token("tok")
            .with_subject_reference("Patient/P-1")
            .with_attachment("DocumentReference/a-1")
            .with_attachment("DocumentReference/a-1")
            .with_subject_reference(None)
            .build()
        )

        assert record.related == ("Patient/P-1", "DocumentReference/a-1")

    def test_carries_signature(self) -> None:
        signature = Signature(
            type=Coding("urn:x", "1"),
            when=datetime(2025, 1, 1, tzinfo=timezone.utc),
            who="svc",
            media_type="application/pkcs7-mime",
            data=b"sig",
        )
        record = (
            TransformedRecordBuilder(_make_original(), CALLER)
            .with_token("tok")
            .with_signature(signature)
            .build()
        )

        assert record.signature == signature

    def test_original_is_left_untouched(self) -> None:
        original = _make_original()

        TransformedRecordBuilder(original, CALLER).with_token("tok").with_structured_url(
            0, "Invoice/p-1"
        ).build()

        assert original.content[0].data == b"{}"
        assert original.content[0].url is None
        assert original.id == "orig-1"
