from invoice_service.audit.service import AuditService
from invoice_service.config.settings import Settings
from invoice_service.database.repositories.base import (
    BinaryRepository,
    DocumentRepository,
    InvoicePayloadRepository,
)
from invoice_service.documents.models import CallerIdentity, Submission
from invoice_service.logging.logger import Log
from invoice_service.pdf.enricher import PdfEnricher
from invoice_service.pdf.factory import PdfInspectorFactory
from invoice_service.signing.sealer import Sealer
from invoice_service.submission.attachments import AttachmentProcessor
from invoice_service.submission.classifier import ContentExtractor
from invoice_service.submission.exceptions import InternalProcessingError, SubmissionError
from invoice_service.submission.models import SubmissionResult
from invoice_service.submission.pipeline import SubmissionContext, SubmissionStep
from invoice_service.submission.steps import (
    AuditSubmissionStep,
    BuildTransformedStep,
    EnrichPdfStep,
    ExtractContentStep,
    PersistOriginalStep,
    PersistTransformedStep,
    ProcessAttachmentsStep,
    RewriteStructuredSlotsStep,
    SealStep,
    ValidateDocumentStep,
)
from invoice_service.submission.token_generator import TokenGenerator
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.models import ValidationOutcome


class SubmissionProcessor:
    """Runs a submission through its steps, strictly in order.

    Pipeline: validate -> extract -> (test mode stops) -> persist original ->
    build transformed -> rewrite slots -> enrich PDF -> attachments -> seal ->
    persist transformed -> audit.

    A failing step aborts the rest. Records already stored by earlier steps
    are left in place and logged.
    """

    def __init__(self, steps: list[SubmissionStep]) -> None:
        self._steps = steps

    def process(self, submission: Submission, caller: CallerIdentity) -> SubmissionResult:
        """Raises:
        BlockingValidationError: if the main document is rejected.
        UnprocessableContentError: if main document content is malformed.
        InternalProcessingError: if a store, PDF or crypto operation fails.
        """
        Log.info(
            f"Processing {submission.mode.value} submission from {caller.telematik_id} "
            f"with {len(submission.attachments)} attachments"
        )
        context = SubmissionContext(submission=submission, caller=caller)
        for step in self._steps:
            if context.halted:
                break
            try:
                context = step.run(context)
            except SubmissionError as exc:
                self._log_abort(context, type(step).__name__, exc)
                raise
            except Exception as exc:
                self._log_abort(context, type(step).__name__, exc)
                raise InternalProcessingError(
                    f"{type(step).__name__} failed: {exc}"
                ) from exc

        return SubmissionResult(
            outcome=ValidationOutcome.from_messages(context.warnings),
            transformed=context.transformed,
            attachments=context.attachments,
        )

    def _log_abort(self, context: SubmissionContext, step_name: str, exc: Exception) -> None:
        Log.error(f"Submission aborted in {step_name}: {exc}")
        if context.original is not None:
            Log.warning(
                f"Original document {context.original.id} stays stored after abort"
            )


def build_submission_processor(
    settings: Settings,
    doc_repo: DocumentRepository,
    binary_repo: BinaryRepository,
    payload_repo: InvoicePayloadRepository,
    validator: BaseDocumentValidator,
    sealer: Sealer,
    audit: AuditService,
) -> SubmissionProcessor:
    """Wire the submission steps around the given ports."""
    extractor = ContentExtractor(
        validator=validator,
        pdf_inspector=PdfInspectorFactory.create(settings),
        payload_repo=payload_repo,
        max_slot_size_bytes=settings.max_slot_size_bytes,
    )
    attachment_processor = AttachmentProcessor(
        validator=validator,
        doc_repo=doc_repo,
        binary_repo=binary_repo,
        max_slot_size_bytes=settings.max_slot_size_bytes,
    )
    token_generator = TokenGenerator(doc_repo, max_attempts=settings.token_max_attempts)
    steps: list[SubmissionStep] = [
        ValidateDocumentStep(validator),
        ExtractContentStep(extractor),
        PersistOriginalStep(doc_repo),
        BuildTransformedStep(token_generator),
        RewriteStructuredSlotsStep(),
        EnrichPdfStep(PdfEnricher(dpi=settings.enrichment_dpi), binary_repo),
        ProcessAttachmentsStep(attachment_processor),
        SealStep(sealer),
        PersistTransformedStep(doc_repo),
        AuditSubmissionStep(audit),
    ]
    return SubmissionProcessor(steps=steps)
