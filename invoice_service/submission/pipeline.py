from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from invoice_service.documents.models import CallerIdentity, DocumentRecord, Submission
from invoice_service.submission.models import ExtractionResult, ProcessedAttachment
from invoice_service.submission.transformed_builder import TransformedRecordBuilder
from invoice_service.validation.models import ValidationMessage


@dataclass(slots=True)
class SubmissionContext:
    submission: Submission
    caller: CallerIdentity
    warnings: list[ValidationMessage] = field(default_factory=list)
    extraction: ExtractionResult | None = None
    original: DocumentRecord | None = None
    builder: TransformedRecordBuilder | None = None
    token: str | None = None
    attachments: tuple[ProcessedAttachment, ...] = ()
    transformed: DocumentRecord | None = None
    halted: bool = False


class SubmissionStep(ABC):
    @abstractmethod
    def run(self, context: SubmissionContext) -> SubmissionContext:
        raise NotImplementedError
