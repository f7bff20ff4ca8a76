import pymupdf
import pytest

from invoice_service.pdf.enricher import PdfEnricher
from invoice_service.pdf.exceptions import PdfEnrichmentError
from invoice_service.pdf.qr import render_qr_pdf

TOKEN = "ab" * 32


@pytest.fixture()
def enricher() -> PdfEnricher:
    return PdfEnricher(dpi=72)


class TestPdfEnricher:
    def test_first_page_grows_by_band(self, enricher, sample_pdf_bytes, invoice_json_bytes) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=sample_pdf_bytes, filetype="pdf") as source, pymupdf.open(
            stream=enriched, filetype="pdf"
        ) as doc:
            assert doc.page_count == 1
            assert doc[0].rect.width == pytest.approx(source[0].rect.width)
            assert doc[0].rect.height == pytest.approx(
                source[0].rect.height + PdfEnricher.BAND_HEIGHT
            )

    def test_remaining_pages_keep_their_size(
        self, enricher, multi_page_pdf_bytes, invoice_json_bytes
    ) -> None:
        enriched = enricher.enrich(multi_page_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            assert doc.page_count == 2
            assert doc[1].rect.width == pytest.approx(612)
            assert doc[1].rect.height == pytest.approx(792)

    def test_single_page_pdf_is_enriched(
        self, enricher, sample_pdf_bytes, invoice_json_bytes
    ) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            assert doc.page_count == 1
            assert doc.embfile_get(PdfEnricher.ATTACHMENT_NAME) == invoice_json_bytes

    def test_caption_sits_below_qr_code(
        self, enricher, sample_pdf_bytes, invoice_json_bytes
    ) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            page = doc[0]
            hits = page.search_for(PdfEnricher.CAPTION)
            qr_left = page.rect.width - PdfEnricher.QR_RIGHT_MARGIN - PdfEnricher.QR_SIZE
            qr_bottom = (PdfEnricher.BAND_HEIGHT + PdfEnricher.QR_SIZE) / 2
            assert len(hits) == 1
            assert hits[0].x0 == pytest.approx(qr_left, abs=1)
            assert hits[0].y0 >= qr_bottom

    def test_payload_is_embedded_byte_for_byte(
        self, enricher, sample_pdf_bytes, invoice_json_bytes
    ) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            assert doc.embfile_names() == [PdfEnricher.ATTACHMENT_NAME]
            assert doc.embfile_get(PdfEnricher.ATTACHMENT_NAME) == invoice_json_bytes

    def test_payload_is_an_associated_file(
        self, enricher, sample_pdf_bytes, invoice_json_bytes
    ) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            kind, value = doc.xref_get_key(doc.pdf_catalog(), "AF")
            assert kind == "array"
            filespec = int(value.strip("[]").split()[0])
            assert doc.xref_get_key(filespec, "Type") == ("name", "/Filespec")
            assert doc.xref_get_key(filespec, "AFRelationship") == ("name", "/Source")
            kind, stream_ref = doc.xref_get_key(filespec, "EF/F")
            assert kind == "xref"
            stream = int(stream_ref.split()[0])
            assert doc.xref_get_key(stream, "Subtype") == ("name", "/application#2Ffhir+json")
            assert doc.xref_stream(stream) == invoice_json_bytes

    def test_archival_metadata(self, enricher, sample_pdf_bytes, invoice_json_bytes) -> None:
        enriched = enricher.enrich(sample_pdf_bytes, TOKEN, invoice_json_bytes)

        with pymupdf.open(stream=enriched, filetype="pdf") as doc:
            assert "<pdfaid:part>3</pdfaid:part>" in doc.get_xml_metadata()
            assert doc.metadata["producer"] == PdfEnricher.PRODUCER

    def test_invalid_pdf_raises(self, enricher, invoice_json_bytes) -> None:
        with pytest.raises(PdfEnrichmentError):
            enricher.enrich(b"not a pdf", TOKEN, invoice_json_bytes)


class TestRenderQrPdf:
    def test_renders_single_page_of_requested_size(self) -> None:
        with pymupdf.open(stream=render_qr_pdf(TOKEN, 85), filetype="pdf") as doc:
            assert doc.page_count == 1
            assert doc[0].rect.width == pytest.approx(85)
            assert doc[0].rect.height == pytest.approx(85)
