"""Stamps the token onto a PDF and embeds the structured invoice.

The first page gets a white band on top holding a QR code of the token,
so the token survives print and scan. The structured payload is attached
as an associated file with PDF/A-3 metadata, so it stays byte-for-byte
recoverable from the PDF alone.
"""

import re

import pymupdf

from invoice_service.documents.codes import MEDIA_TYPE_FHIR_JSON
from invoice_service.logging.logger import Log
from invoice_service.pdf.exceptions import PdfEnrichmentError
from invoice_service.pdf.qr import render_qr_pdf

_XREF_PATTERN = re.compile(r"(\d+) 0 R")
_INLINE_STREAM_PATTERN = re.compile(r"/EF\s*<<\s*/F\s+(\d+)\s+0\s+R")

_XMP_TEMPLATE = """<?xpacket begin="﻿" id="W5M0MpCehiHzreSzNTczkc9d"?>
<x:xmpmeta xmlns:x="adobe:ns:meta/">
  <rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">
    <rdf:Description rdf:about=""
        xmlns:pdfaid="http://www.aiim.org/pdfa/ns/id/"
        xmlns:dc="http://purl.org/dc/elements/1.1/"
        xmlns:pdf="http://ns.adobe.com/pdf/1.3/">
      <pdfaid:part>3</pdfaid:part>
      <pdfaid:conformance>B</pdfaid:conformance>
      <dc:title><rdf:Alt><rdf:li xml:lang="x-default">{title}</rdf:li></rdf:Alt></dc:title>
      <pdf:Producer>{producer}</pdf:Producer>
    </rdf:Description>
  </rdf:RDF>
</x:xmpmeta>
<?xpacket end="w"?>"""


class PdfEnricher:
    """Produces the archival rendition of an invoice PDF."""

    BAND_HEIGHT = 100.0
    QR_SIZE = 85.0
    QR_RIGHT_MARGIN = 40.0
    CAPTION = "E-Rechnung-Token"
    CAPTION_FONT_SIZE = 8
    CAPTION_OFFSET = 15.0
    ATTACHMENT_NAME = "invoice.json"
    PRODUCER = "invoice-service"

    def __init__(self, dpi: int = 300) -> None:
        self._dpi = dpi

    def enrich(self, pdf_bytes: bytes, token: str, payload_bytes: bytes) -> bytes:
        """Return a new PDF carrying the token QR code and the embedded payload.

        Raises:
            PdfEnrichmentError: if any PDF manipulation step fails.
        """
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as source:  # type: ignore[no-untyped-call]
                if source.page_count == 0:
                    raise PdfEnrichmentError("Source PDF has no pages")
                with pymupdf.open() as target:  # type: ignore[no-untyped-call]
                    self._stamp_first_page(source, target, token)
                    self._copy_remaining_pages(source, target)
                    self._embed_payload(target, payload_bytes)
                    self._write_archival_metadata(target)
                    enriched = target.tobytes(garbage=3, deflate=True)
        except PdfEnrichmentError:
            raise
        except Exception as exc:
            raise PdfEnrichmentError(f"PDF enrichment failed: {exc}") from exc

        Log.debug(f"Enriched PDF: {len(pdf_bytes)} -> {len(enriched)} bytes")
        return enriched

    def _stamp_first_page(
        self, source: pymupdf.Document, target: pymupdf.Document, token: str
    ) -> None:
        page = source[0]
        width, height = page.rect.width, page.rect.height
        pixmap = page.get_pixmap(dpi=self._dpi)

        stamped = target.new_page(width=width, height=height + self.BAND_HEIGHT)
        stamped.insert_image(
            pymupdf.Rect(0, self.BAND_HEIGHT, width, self.BAND_HEIGHT + height),
            pixmap=pixmap,
        )
        stamped.draw_rect(
            pymupdf.Rect(0, 0, width, self.BAND_HEIGHT),
            color=(1, 1, 1),
            fill=(1, 1, 1),
        )

        qr_left = width - self.QR_RIGHT_MARGIN - self.QR_SIZE
        qr_top = (self.BAND_HEIGHT - self.QR_SIZE) / 2
        qr_rect = pymupdf.Rect(qr_left, qr_top, qr_left + self.QR_SIZE, qr_top + self.QR_SIZE)
        with pymupdf.open(stream=render_qr_pdf(token, self.QR_SIZE), filetype="pdf") as qr_doc:  # type: ignore[no-untyped-call]
            stamped.show_pdf_page(qr_rect, qr_doc, 0)

        stamped.insert_text(
            (qr_left, qr_top + self.QR_SIZE + self.CAPTION_OFFSET),
            self.CAPTION,
            fontname="helv",
            fontsize=self.CAPTION_FONT_SIZE,
            color=(0, 0, 0),
        )

    def _copy_remaining_pages(self, source: pymupdf.Document, target: pymupdf.Document) -> None:
        for index in range(1, source.page_count):
            page = source[index]
            pixmap = page.get_pixmap(dpi=self._dpi)
            copy = target.new_page(width=page.rect.width, height=page.rect.height)
            copy.insert_image(copy.rect, pixmap=pixmap)

    def _embed_payload(self, target: pymupdf.Document, payload_bytes: bytes) -> None:
        target.embfile_add(
            self.ATTACHMENT_NAME,
            payload_bytes,
            filename=self.ATTACHMENT_NAME,
            ufilename=self.ATTACHMENT_NAME,
            desc="Structured invoice payload",
        )
        catalog = target.pdf_catalog()
        stream_xref = self._embedded_stream_xref(target, catalog)
        subtype = MEDIA_TYPE_FHIR_JSON.replace("/", "#2F")
        target.xref_set_key(stream_xref, "Subtype", f"/{subtype}")

        # /AF needs an indirect file specification shared with the name tree.
        filespec_xref = target.get_new_xref()
        target.update_object(
            filespec_xref,
            f"<</Type/Filespec/F({self.ATTACHMENT_NAME})/UF({self.ATTACHMENT_NAME})"
            f"/Desc(Structured invoice payload)/AFRelationship/Source"
            f"/EF<</F {stream_xref} 0 R/UF {stream_xref} 0 R>>>>",
        )
        _set_nested_key(
            target,
            catalog,
            "Names/EmbeddedFiles/Names",
            f"[({self.ATTACHMENT_NAME}) {filespec_xref} 0 R]",
        )
        target.xref_set_key(catalog, "AF", f"[{filespec_xref} 0 R]")

    def _embedded_stream_xref(self, target: pymupdf.Document, catalog: int) -> int:
        """Find the EmbeddedFile stream, whether the file spec is inline or indirect."""
        kind, names = target.xref_get_key(catalog, "Names/EmbeddedFiles/Names")
        if kind != "array":
            raise PdfEnrichmentError("Embedded payload was not registered in the catalog")
        inline = _INLINE_STREAM_PATTERN.search(names)
        if inline:
            return int(inline.group(1))
        found = _XREF_PATTERN.search(names)
        if found is None:
            raise PdfEnrichmentError("Embedded payload was not registered in the catalog")
        kind, stream_ref = target.xref_get_key(int(found.group(1)), "EF/F")
        if kind != "xref":
            raise PdfEnrichmentError("Embedded payload file specification has no stream")
        return int(stream_ref.split()[0])

    def _write_archival_metadata(self, target: pymupdf.Document) -> None:
        title = "E-Rechnung"
        target.set_metadata({"title": title, "producer": self.PRODUCER, "creator": self.PRODUCER})
        target.set_xml_metadata(_XMP_TEMPLATE.format(title=title, producer=self.PRODUCER))


def _set_nested_key(doc: pymupdf.Document, xref: int, path: str, value: str) -> None:
    """Set ``path`` below ``xref``, stepping into indirect objects on the way."""
    parts = path.split("/")
    prefix: list[str] = []
    for part in parts[:-1]:
        prefix.append(part)
        kind, ref = doc.xref_get_key(xref, "/".join(prefix))
        if kind == "xref":
            xref = int(ref.split()[0])
            prefix = []
    doc.xref_set_key(xref, "/".join([*prefix, parts[-1]]), value)
