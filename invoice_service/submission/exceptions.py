from invoice_service.validation.models import ValidationMessage


class SubmissionError(Exception):
    """Base exception for submission pipeline errors."""


class BlockingValidationError(SubmissionError):
    """Raised when the main document carries fatal or error findings."""

    def __init__(self, messages: list[ValidationMessage]) -> None:
        self.messages = tuple(messages)
        summary = "; ".join(
            f"{m.location}: {m.message}" if m.location else m.message for m in self.messages
        )
        super().__init__(f"Submission rejected: {summary}")


class UnprocessableContentError(SubmissionError):
    """Raised when content is malformed, oversized or cannot be parsed."""


class InternalProcessingError(SubmissionError):
    """Raised when a store, PDF or crypto operation fails mid-pipeline."""


class TokenGenerationError(InternalProcessingError):
    """Raised when no free token could be issued."""
