"""Coding systems, codes and profile markers of the e-invoice document profile."""

TOKEN_IDENTIFIER_SYSTEM = "https://gematik.de/fhir/sid/erg-token"
TELEMATIK_ID_SYSTEM = "https://gematik.de/fhir/sid/telematik-id"

STATUS_SYSTEM = "https://gematik.de/fhir/erg/CodeSystem/erg-rechnungsstatus-cs"
FLAG_SYSTEM = "https://gematik.de/fhir/erg/CodeSystem/erg-dokument-artderarchivierung-cs"
ATTACHMENT_FORMAT_SYSTEM = "https://gematik.de/fhir/erg/CodeSystem/erg-attachment-format-cs"

TRANSFORMED_PROFILE = (
    "https://gematik.de/fhir/erg/StructureDefinition/erg-dokumentenmetadaten|1.1.0-RC1"
)

DOCUMENT_TYPE_SYSTEM = "http://dvmd.de/fhir/CodeSystem/kdl"
INVOICE_TYPE_CODE = "AM010106"

FORMAT_ENRICHED_PDF = "erechnung"
FORMAT_STRUCTURED = "rechnungsinhalt"

MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPE_FHIR_JSON = "application/fhir+json"
MEDIA_TYPE_FHIR_XML = "application/fhir+xml"
MEDIA_TYPE_OCTET_STREAM = "application/octet-stream"
STRUCTURED_MEDIA_TYPES = frozenset({MEDIA_TYPE_FHIR_JSON, MEDIA_TYPE_FHIR_XML})

RELATION_TRANSFORMS = "transforms"

BINARY_PREFIX = "Binary/"
INVOICE_PREFIX = "Invoice/"
DOCUMENT_PREFIX = "DocumentReference/"

SERVICE_TELEMATIK_ID = "ERechnungFachdienst"
