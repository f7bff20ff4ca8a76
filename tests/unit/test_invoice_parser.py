import json

import pytest

from invoice_service.validation.exceptions import InvoiceParseError, NotAnInvoiceError
from invoice_service.validation.invoice_parser import parse_invoice


class TestParseJson:
    def test_parses_resource_and_subject(self, invoice_json_bytes: bytes) -> None:
        payload = parse_invoice(invoice_json_bytes, "application/fhir+json")
        assert payload.resource["resourceType"] == "Invoice"
        assert payload.subject_reference == "Patient/P-123"

    def test_keeps_raw_bytes_untouched(self, invoice_json_bytes: bytes) -> None:
        payload = parse_invoice(invoice_json_bytes, "application/fhir+json")
        assert payload.raw is invoice_json_bytes

    def test_missing_subject_gives_none(self) -> None:
        raw = json.dumps({"resourceType": "Invoice", "status": "issued"}).encode()
        assert parse_invoice(raw, "application/fhir+json").subject_reference is None

    def test_malformed_json_raises(self) -> None:
        with pytest.raises(InvoiceParseError, match="malformed"):
            parse_invoice(b'{"resourceType": ', "application/fhir+json")

    def test_json_array_raises(self) -> None:
        with pytest.raises(InvoiceParseError, match="object"):
            parse_invoice(b"[]", "application/fhir+json")

    def test_other_resource_type_is_not_an_invoice(self) -> None:
        raw = json.dumps({"resourceType": "Patient"}).encode()
        with pytest.raises(NotAnInvoiceError, match="Patient"):
            parse_invoice(raw, "application/fhir+json")

    def test_invalid_utf8_raises(self) -> None:
        with pytest.raises(InvoiceParseError, match="UTF-8"):
            parse_invoice(b"\xff\xfe\x00garbage", "application/fhir+json")


class TestParseXml:
    def test_parses_resource_and_subject(self, invoice_xml_bytes: bytes) -> None:
        payload = parse_invoice(invoice_xml_bytes, "application/fhir+xml")
        assert payload.resource["resourceType"] == "Invoice"
        assert payload.resource["status"] == "issued"
        assert payload.resource["totalGross"] == {"value": "42.0", "currency": "EUR"}
        assert payload.subject_reference == "Patient/P-456"

    def test_repeated_elements_become_lists(self) -> None:
        raw = (
            b'<Invoice xmlns="http://hl7.org/fhir"><status value="issued"/>'
            b'<note><text value="a"/></note><note><text value="b"/></note></Invoice>'
        )
        payload = parse_invoice(raw, "application/fhir+xml")
        assert payload.resource["note"] == [{"text": "a"}, {"text": "b"}]

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(InvoiceParseError, match="malformed"):
            parse_invoice(b"<Invoice><status", "application/fhir+xml")


class TestUnsupportedMediaType:
    def test_raises(self, invoice_json_bytes: bytes) -> None:
        with pytest.raises(InvoiceParseError, match="Unsupported"):
            parse_invoice(invoice_json_bytes, "text/plain")
