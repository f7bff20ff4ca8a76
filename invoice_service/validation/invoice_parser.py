"""Parses structured invoice content (FHIR JSON or XML) into InvoicePayload."""

import json
import xml.etree.ElementTree as ET
from typing import Any

from invoice_service.documents.codes import MEDIA_TYPE_FHIR_JSON, MEDIA_TYPE_FHIR_XML
from invoice_service.documents.models import InvoicePayload
from invoice_service.validation.exceptions import InvoiceParseError, NotAnInvoiceError

_FHIR_NS = "{http://hl7.org/fhir}"


def parse_invoice(raw: bytes, content_type: str) -> InvoicePayload:
    """Decode and parse an invoice, keeping the original bytes.

    Raises:
        InvoiceParseError: on malformed encoding or unparsable content.
        NotAnInvoiceError: if the content parses but is not an Invoice.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvoiceParseError(f"Invoice content is not valid UTF-8: {exc}") from exc

    if content_type == MEDIA_TYPE_FHIR_JSON:
        resource = _parse_json(text)
    elif content_type == MEDIA_TYPE_FHIR_XML:
        resource = _parse_xml(text)
    else:
        raise InvoiceParseError(f"Unsupported invoice media type '{content_type}'")

    if resource.get("resourceType") != "Invoice":
        raise NotAnInvoiceError(
            f"Expected an Invoice resource, got '{resource.get('resourceType')}'"
        )
    return InvoicePayload(
        content_type=content_type,
        raw=raw,
        resource=resource,
        subject_reference=_subject_reference(resource),
    )


def _parse_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvoiceParseError(f"Invoice JSON is malformed: {exc}") from exc
    if not isinstance(data, dict):
        raise InvoiceParseError("Invoice JSON must be an object")
    return data


def _parse_xml(text: str) -> dict[str, Any]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise InvoiceParseError(f"Invoice XML is malformed: {exc}") from exc
    resource = _element_to_dict(root)
    resource["resourceType"] = _local_name(root.tag)
    return resource


def _element_to_dict(element: ET.Element) -> dict[str, Any]:
    """Map FHIR XML (value attributes, nested elements) onto the JSON shape."""
    result: dict[str, Any] = {}
    for child in element:
        name = _local_name(child.tag)
        value: Any = child.get("value") if len(child) == 0 else _element_to_dict(child)
        if name in result:
            existing = result[name]
            result[name] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            result[name] = value
    return result


def _local_name(tag: str) -> str:
    return tag[len(_FHIR_NS):] if tag.startswith(_FHIR_NS) else tag


def _subject_reference(resource: dict[str, Any]) -> str | None:
    subject = resource.get("subject")
    if isinstance(subject, dict):
        reference = subject.get("reference")
        return reference if isinstance(reference, str) and reference else None
    return None
