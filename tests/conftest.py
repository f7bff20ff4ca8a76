import io
import json
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID
from reportlab.lib.pagesizes import A4, letter
from reportlab.pdfgen import canvas

from invoice_service.audit.models import AuditEvent
from invoice_service.audit.service import AuditService
from invoice_service.audit.sink import AuditSink
from invoice_service.database.repositories.base import (
    BinaryRepository,
    DocumentRepository,
    InvoicePayloadRepository,
)
from invoice_service.documents.exceptions import DocumentNotFoundError, DuplicateIdentifierError
from invoice_service.documents.models import BinaryObject, DocumentRecord, InvoicePayload
from invoice_service.signing.key_loader import SigningKey

INVOICE_RESOURCE = {
    "resourceType": "Invoice",
    "status": "issued",
    "subject": {"reference": "Patient/P-123"},
    "totalGross": {"value": 119.0, "currency": "EUR"},
}

INVOICE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Invoice xmlns="http://hl7.org/fhir">
  <status value="issued"/>
  <subject>
    <reference value="Patient/P-456"/>
  </subject>
  <totalGross>
    <value value="42.0"/>
    <currency value="EUR"/>
  </totalGross>
</Invoice>
"""


class InMemoryDocumentRepository(DocumentRepository):
    def __init__(self) -> None:
        self.records: dict[str, DocumentRecord] = {}
        self.reserved: set[str] = set()

    def create(self, record: DocumentRecord) -> DocumentRecord:
        stored = record if record.id is not None else replace(record, id=str(uuid.uuid4()))
        assert stored.id is not None
        taken = {r.identifier for r in self.records.values() if r.identifier}
        if stored.id in self.records or (stored.identifier and stored.identifier in taken):
            raise DuplicateIdentifierError(f"Document {stored.id} already exists")
        self.records[stored.id] = stored
        return stored

    def get(self, document_id: str) -> DocumentRecord:
        if document_id not in self.records:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return self.records[document_id]

    def exists(self, identifier: str) -> bool:
        return identifier in self.records or any(
            r.identifier == identifier for r in self.records.values()
        )

    def reserve_identifier(self, identifier: str) -> bool:
        if identifier in self.reserved:
            return False
        self.reserved.add(identifier)
        return True

    def update(self, record: DocumentRecord) -> DocumentRecord:
        if record.id not in self.records:
            raise DocumentNotFoundError(f"Document {record.id} not found")
        self.records[record.id] = record
        return record

    def delete(self, document_id: str) -> None:
        if self.records.pop(document_id, None) is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")


class InMemoryBinaryRepository(BinaryRepository):
    def __init__(self) -> None:
        self.objects: dict[str, BinaryObject] = {}

    def create(self, data: bytes, content_type: str) -> BinaryObject:
        binary = BinaryObject(id=str(uuid.uuid4()), content_type=content_type, data=data)
        self.objects[binary.id] = binary
        return binary

    def get(self, binary_id: str) -> BinaryObject:
        if binary_id not in self.objects:
            raise DocumentNotFoundError(f"Binary {binary_id} not found")
        return self.objects[binary_id]

    def delete(self, binary_id: str) -> None:
        if self.objects.pop(binary_id, None) is None:
            raise DocumentNotFoundError(f"Binary {binary_id} not found")


class InMemoryInvoicePayloadRepository(InvoicePayloadRepository):
    def __init__(self) -> None:
        self.payloads: dict[str, InvoicePayload] = {}

    def create(self, payload: InvoicePayload) -> InvoicePayload:
        stored = replace(payload, id=str(uuid.uuid4()))
        assert stored.id is not None
        self.payloads[stored.id] = stored
        return stored

    def get(self, payload_id: str) -> InvoicePayload:
        if payload_id not in self.payloads:
            raise DocumentNotFoundError(f"Invoice {payload_id} not found")
        return self.payloads[payload_id]

    def delete(self, payload_id: str) -> None:
        if self.payloads.pop(payload_id, None) is None:
            raise DocumentNotFoundError(f"Invoice {payload_id} not found")


class RecordingAuditSink(AuditSink):
    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def emit(self, event: AuditEvent) -> None:
        self.events.append(event)


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.drawString(72, 720, "Rechnung Nr. 2024-001")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with different page sizes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.setPageSize(letter)
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def invoice_json_bytes() -> bytes:
    return json.dumps(INVOICE_RESOURCE, indent=2).encode("utf-8")


@pytest.fixture()
def invoice_xml_bytes() -> bytes:
    return INVOICE_XML.encode("utf-8")


@pytest.fixture(scope="session")
def signing_key() -> SigningKey:
    """Self-signed RSA key pair for sealing tests."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "invoice-service test")])
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return SigningKey(private_key=key, certificate=certificate)


@pytest.fixture(scope="session")
def pkcs12_bytes(signing_key: SigningKey) -> bytes:
    return pkcs12.serialize_key_and_certificates(
        b"seal",
        signing_key.private_key,
        signing_key.certificate,
        None,
        serialization.BestAvailableEncryption(b"changeit"),
    )


@pytest.fixture()
def doc_repo() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository()


@pytest.fixture()
def binary_repo() -> InMemoryBinaryRepository:
    return InMemoryBinaryRepository()


@pytest.fixture()
def payload_repo() -> InMemoryInvoicePayloadRepository:
    return InMemoryInvoicePayloadRepository()


@pytest.fixture()
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture()
def audit(audit_sink: RecordingAuditSink) -> AuditService:
    return AuditService(audit_sink)
