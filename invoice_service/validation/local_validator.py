"""Network-free structural validator.

Checks the minimum shape the pipeline depends on. Deployments that need
full profile validation configure the HTTP validator instead.
"""

from typing import Any

from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.models import Severity, ValidationMessage


class LocalDocumentValidator(BaseDocumentValidator):
    """Validates document and invoice resources without leaving the process."""

    def validate(self, resource_type: str, resource: dict[str, Any]) -> list[ValidationMessage]:
        if resource_type == "DocumentReference":
            return self._validate_document(resource)
        if resource_type == "Invoice":
            return self._validate_invoice(resource)
        return [
            ValidationMessage(
                Severity.ERROR,
                f"Unsupported resource type '{resource_type}'",
                resource_type,
            )
        ]

    def _validate_document(self, resource: dict[str, Any]) -> list[ValidationMessage]:
        messages: list[ValidationMessage] = []
        if not resource.get("type"):
            messages.append(
                ValidationMessage(
                    Severity.ERROR,
                    "Document type is required",
                    "DocumentReference.type",
                )
            )
        content = resource.get("content") or []
        if not content:
            messages.append(
                ValidationMessage(
                    Severity.ERROR,
                    "At least one content slot is required",
                    "DocumentReference.content",
                )
            )
        for index, slot in enumerate(content):
            location = f"DocumentReference.content[{index}]"
            if not slot.get("contentType"):
                messages.append(
                    ValidationMessage(
                        Severity.ERROR,
                        "Content slot has no media type",
                        f"{location}.contentType",
                    )
                )
            if slot.get("data") is None and slot.get("url") is None:
                messages.append(
                    ValidationMessage(
                        Severity.ERROR,
                        "Content slot carries neither data nor url",
                        location,
                    )
                )
            if not slot.get("title"):
                messages.append(
                    ValidationMessage(
                        Severity.INFORMATION,
                        "Content slot has no title",
                        f"{location}.title",
                    )
                )
        if not resource.get("subject"):
            messages.append(
                ValidationMessage(
                    Severity.WARNING,
                    "Document has no subject reference",
                    "DocumentReference.subject",
                )
            )
        return messages

    def _validate_invoice(self, resource: dict[str, Any]) -> list[ValidationMessage]:
        messages: list[ValidationMessage] = []
        if resource.get("resourceType") != "Invoice":
            messages.append(
                ValidationMessage(
                    Severity.FATAL,
                    f"Expected an Invoice, got '{resource.get('resourceType')}'",
                    "Invoice",
                )
            )
            return messages
        if not resource.get("status"):
            messages.append(
                ValidationMessage(Severity.ERROR, "Invoice status is required", "Invoice.status")
            )
        if not resource.get("subject"):
            messages.append(
                ValidationMessage(
                    Severity.WARNING,
                    "Invoice has no subject reference",
                    "Invoice.subject",
                )
            )
        if "totalGross" not in resource:
            messages.append(
                ValidationMessage(
                    Severity.WARNING,
                    "Invoice has no gross total",
                    "Invoice.totalGross",
                )
            )
        return messages
