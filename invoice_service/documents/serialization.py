"""Conversion between DocumentRecord values and their JSON bodies.

The same shape is used for the JSONB column in the document store, the
submission files read by the CLI and the resources handed to validators.
Inline slot data is carried as base64 text.
"""

import base64
import binascii
from datetime import date, datetime
from typing import Any

from invoice_service.documents.exceptions import InvalidRequestError
from invoice_service.documents.models import (
    Coding,
    ContentSlot,
    DocumentKind,
    DocumentRecord,
    FlagCode,
    ProcessingFlag,
    RelatesTo,
    Signature,
    Submission,
    SubmissionMode,
)


def record_to_dict(record: DocumentRecord) -> dict[str, Any]:
    body: dict[str, Any] = {
        "resourceType": "DocumentReference",
        "id": record.id,
        "kind": record.kind.value,
        "type": [_coding_to_dict(c) for c in record.type_codings],
        "subject": record.subject,
        "description": record.description,
        "content": [_slot_to_dict(s) for s in record.content],
        "relatesTo": [{"code": r.code, "target": r.target} for r in record.relates_to],
        "related": list(record.related),
        "statusTag": record.status_tag,
        "statusChangedDate": _date_or_none(record.status_changed_date),
        "nextStatusChangeDate": _date_or_none(record.next_status_change_date),
        "docStatus": record.doc_status,
        "author": record.author,
        "identifier": record.identifier,
        "profiles": list(record.profiles),
        "flags": [_flag_to_dict(f) for f in record.flags],
        "signature": _signature_to_dict(record.signature),
    }
    return body


def record_from_dict(body: dict[str, Any]) -> DocumentRecord:
    """Build a DocumentRecord from a JSON body.

    Raises:
        InvalidRequestError: if the body is malformed.
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Document body must be an object")
    try:
        return DocumentRecord(
            id=body.get("id"),
            kind=DocumentKind(body.get("kind") or DocumentKind.ORIGINAL.value),
            type_codings=tuple(_coding_from_dict(c) for c in body.get("type") or []),
            subject=body.get("subject"),
            description=body.get("description"),
            content=tuple(_slot_from_dict(s) for s in body.get("content") or []),
            relates_to=tuple(
                RelatesTo(code=r["code"], target=r["target"])
                for r in body.get("relatesTo") or []
            ),
            related=tuple(body.get("related") or []),
            status_tag=body.get("statusTag"),
            status_changed_date=_parse_date(body.get("statusChangedDate")),
            next_status_change_date=_parse_date(body.get("nextStatusChangeDate")),
            doc_status=body.get("docStatus") or "current",
            author=body.get("author"),
            identifier=body.get("identifier"),
            profiles=tuple(body.get("profiles") or []),
            flags=tuple(_flag_from_dict(f) for f in body.get("flags") or []),
            signature=_signature_from_dict(body.get("signature")),
        )
    except InvalidRequestError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidRequestError(f"Malformed document body: {exc}") from exc


def submission_from_dict(body: Any) -> Submission:
    """Build a Submission from ``{"document", "attachments", "mode", "enrich"}``."""
    if not isinstance(body, dict):
        raise InvalidRequestError("Submission must be a JSON object")
    if not isinstance(body.get("document"), dict):
        raise InvalidRequestError("Submission is missing 'document'")
    attachments = body.get("attachments") or []
    if not isinstance(attachments, list) or not all(isinstance(a, dict) for a in attachments):
        raise InvalidRequestError("Submission 'attachments' must be a list of objects")
    try:
        mode = SubmissionMode(body.get("mode") or SubmissionMode.NORMAL.value)
    except ValueError as exc:
        raise InvalidRequestError(f"Unknown submission mode: {body.get('mode')}") from exc
    return Submission(
        document=record_from_dict(body["document"]),
        attachments=tuple(record_from_dict(a) for a in attachments),
        mode=mode,
        enrich=bool(body.get("enrich", True)),
    )


def encode_data(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_data(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequestError(f"Content data is not valid base64: {exc}") from exc


def _coding_to_dict(coding: Coding) -> dict[str, Any]:
    return {"system": coding.system, "code": coding.code, "display": coding.display}


def _coding_from_dict(raw: dict[str, Any]) -> Coding:
    return Coding(system=raw["system"], code=raw["code"], display=raw.get("display"))


def _slot_to_dict(slot: ContentSlot) -> dict[str, Any]:
    return {
        "contentType": slot.content_type,
        "data": encode_data(slot.data) if slot.data is not None else None,
        "url": slot.url,
        "title": slot.title,
        "format": _coding_to_dict(slot.format_code) if slot.format_code else None,
    }


def _slot_from_dict(raw: dict[str, Any]) -> ContentSlot:
    data = raw.get("data")
    fmt = raw.get("format")
    return ContentSlot(
        content_type=raw.get("contentType"),
        data=decode_data(data) if data is not None else None,
        url=raw.get("url"),
        title=raw.get("title"),
        format_code=_coding_from_dict(fmt) if fmt else None,
    )


def _flag_to_dict(flag: ProcessingFlag) -> dict[str, Any]:
    return {
        "code": flag.code.value,
        "timestamp": flag.timestamp.isoformat(),
        "details": flag.details,
        "read": flag.read,
        "archiveKind": flag.archive_kind,
    }


def _flag_from_dict(raw: dict[str, Any]) -> ProcessingFlag:
    return ProcessingFlag(
        code=FlagCode(raw["code"]),
        timestamp=datetime.fromisoformat(raw["timestamp"]),
        details=raw.get("details"),
        read=raw.get("read"),
        archive_kind=raw.get("archiveKind"),
    )


def _signature_to_dict(signature: Signature | None) -> dict[str, Any] | None:
    if signature is None:
        return None
    return {
        "type": _coding_to_dict(signature.type),
        "when": signature.when.isoformat(),
        "who": signature.who,
        "sigFormat": signature.media_type,
        "data": encode_data(signature.data),
    }


def _signature_from_dict(raw: dict[str, Any] | None) -> Signature | None:
    if raw is None:
        return None
    return Signature(
        type=_coding_from_dict(raw["type"]),
        when=datetime.fromisoformat(raw["when"]),
        who=raw["who"],
        media_type=raw["sigFormat"],
        data=decode_data(raw["data"]),
    )


def _date_or_none(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(raw: str | None) -> date | None:
    return date.fromisoformat(raw) if raw else None
