from invoice_service.config.settings import Settings
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.http_validator import HttpDocumentValidator
from invoice_service.validation.local_validator import LocalDocumentValidator


class ValidatorFactory:
    """Creates the configured validator adapter."""

    PROVIDERS = ("local", "http")

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentValidator:
        provider = settings.validator_provider.lower()
        if provider == "local":
            return LocalDocumentValidator()
        if provider == "http":
            url = settings.validator_base_url.strip()
            if not url:
                raise ValueError("validator_base_url is required for validator_provider=http")
            return HttpDocumentValidator(
                base_url=url,
                timeout_seconds=settings.validator_timeout_seconds,
            )
        raise ValueError(
            f"Unknown validator provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
