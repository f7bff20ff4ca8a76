from typing import Any

import httpx

from invoice_service.logging.logger import Log
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.exceptions import ValidationServiceError
from invoice_service.validation.models import Severity, ValidationMessage


class HttpDocumentValidator(BaseDocumentValidator):
    """Validator adapter for a remote ``$validate`` endpoint answering OperationOutcomes."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout_seconds)

    def validate(self, resource_type: str, resource: dict[str, Any]) -> list[ValidationMessage]:
        try:
            response = self._client.post(
                f"/{resource_type}/$validate",
                json=resource,
                headers={"Accept": "application/fhir+json"},
            )
        except httpx.HTTPError as exc:
            raise ValidationServiceError(f"Validator request failed: {exc}") from exc

        if response.status_code >= 500:
            raise ValidationServiceError(
                f"Validator answered HTTP {response.status_code}"
            )
        try:
            outcome = response.json()
        except ValueError as exc:
            raise ValidationServiceError(f"Validator returned invalid JSON: {exc}") from exc

        messages = [self._to_message(issue) for issue in outcome.get("issue") or []]
        Log.debug(f"Validator returned {len(messages)} issues for {resource_type}")
        return messages

    def close(self) -> None:
        self._client.close()

    def _to_message(self, issue: dict[str, Any]) -> ValidationMessage:
        try:
            severity = Severity(issue.get("severity", "error"))
        except ValueError:
            severity = Severity.ERROR
        expression = issue.get("expression") or []
        return ValidationMessage(
            severity=severity,
            message=issue.get("diagnostics") or issue.get("code") or "",
            location=expression[0] if expression else None,
        )
