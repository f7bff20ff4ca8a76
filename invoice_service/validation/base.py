from abc import ABC, abstractmethod
from typing import Any

from invoice_service.validation.models import ValidationMessage


class BaseDocumentValidator(ABC):
    """Contract for all validator adapters."""

    @abstractmethod
    def validate(self, resource_type: str, resource: dict[str, Any]) -> list[ValidationMessage]:
        """Validate a resource against its profile.

        Args:
            resource_type: "DocumentReference" or "Invoice".
            resource: JSON-shaped resource body.

        Returns:
            Findings of every severity. An empty list means no findings.

        Raises:
            ValidationServiceError: if the validator cannot produce a verdict.
        """
