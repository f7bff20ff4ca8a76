from dataclasses import replace

from invoice_service.audit.models import AuditAction
from invoice_service.audit.service import AuditService
from invoice_service.database.repositories.base import BinaryRepository, DocumentRepository
from invoice_service.documents.codes import BINARY_PREFIX, DOCUMENT_PREFIX, MEDIA_TYPE_PDF
from invoice_service.documents.models import DocumentKind, SubmissionMode
from invoice_service.documents.serialization import record_to_dict
from invoice_service.logging.logger import Log
from invoice_service.pdf.enricher import PdfEnricher
from invoice_service.signing.sealer import Sealer
from invoice_service.submission.attachments import AttachmentProcessor
from invoice_service.submission.classifier import ContentExtractor
from invoice_service.submission.exceptions import BlockingValidationError
from invoice_service.submission.pipeline import SubmissionContext, SubmissionStep
from invoice_service.submission.token_generator import TokenGenerator
from invoice_service.submission.transformed_builder import TransformedRecordBuilder
from invoice_service.validation.base import BaseDocumentValidator
from invoice_service.validation.models import split_messages


def _require_builder(context: SubmissionContext) -> TransformedRecordBuilder:
    if context.builder is None or context.token is None:
        raise ValueError("SubmissionContext.builder must be set before this step")
    return context.builder


class ValidateDocumentStep(SubmissionStep):
    def __init__(self, validator: BaseDocumentValidator) -> None:
        self._validator = validator

    def run(self, context: SubmissionContext) -> SubmissionContext:
        messages = self._validator.validate(
            "DocumentReference", record_to_dict(context.submission.document)
        )
        blocking, non_blocking = split_messages(messages)
        if blocking:
            raise BlockingValidationError(blocking)
        context.warnings.extend(non_blocking)
        return context


class ExtractContentStep(SubmissionStep):
    """Extracts content and halts the pipeline for test-mode submissions."""

    def __init__(self, extractor: ContentExtractor) -> None:
        self._extractor = extractor

    def run(self, context: SubmissionContext) -> SubmissionContext:
        mode = context.submission.mode
        extraction = self._extractor.extract(context.submission.document, mode)
        context.extraction = extraction
        context.warnings.extend(extraction.warnings)
        Log.info(
            f"Extracted {len(extraction.payloads)} structured payloads "
            f"with {len(extraction.warnings)} warnings"
        )
        if mode is SubmissionMode.TEST:
            Log.info("Test submission validated, nothing persisted")
            context.halted = True
        return context


class PersistOriginalStep(SubmissionStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: SubmissionContext) -> SubmissionContext:
        document = replace(context.submission.document, id=None, kind=DocumentKind.ORIGINAL)
        context.original = self._doc_repo.create(document)
        Log.info(f"Stored original document {context.original.id}")
        return context


class BuildTransformedStep(SubmissionStep):
    def __init__(self, token_generator: TokenGenerator) -> None:
        self._token_generator = token_generator

    def run(self, context: SubmissionContext) -> SubmissionContext:
        if context.original is None or context.extraction is None:
            raise ValueError("SubmissionContext.original must be set before transformation")
        token = self._token_generator.generate()
        context.token = token
        context.builder = (
            TransformedRecordBuilder(context.original, context.caller)
            .with_token(token)
            .with_subject_reference(context.extraction.subject_reference)
        )
        Log.info(f"Issued token for original document {context.original.id}")
        return context


class RewriteStructuredSlotsStep(SubmissionStep):
    def run(self, context: SubmissionContext) -> SubmissionContext:
        builder = _require_builder(context)
        if context.extraction is None:
            raise ValueError("SubmissionContext.extraction must be set before slot rewrite")
        for index, url in context.extraction.payload_urls.items():
            builder.with_structured_url(index, url)
        return context


class EnrichPdfStep(SubmissionStep):
    """Stores the first PDF, stamped and with the payload embedded when enrichment applies."""

    def __init__(self, enricher: PdfEnricher, binary_repo: BinaryRepository) -> None:
        self._enricher = enricher
        self._binary_repo = binary_repo

    def run(self, context: SubmissionContext) -> SubmissionContext:
        builder = _require_builder(context)
        extraction = context.extraction
        if extraction is None or extraction.enrichment_pdf_index is None:
            return context
        pdf_bytes = extraction.signing_pdf or b""

        if context.submission.enrich and extraction.signing_payload is not None:
            pdf_bytes = self._enricher.enrich(
                pdf_bytes, context.token or "", extraction.signing_payload
            )
        else:
            Log.info("PDF stored without enrichment")

        binary = self._binary_repo.create(pdf_bytes, MEDIA_TYPE_PDF)
        builder.with_enriched_pdf_url(
            extraction.enrichment_pdf_index, f"{BINARY_PREFIX}{binary.id}"
        )
        return context


class ProcessAttachmentsStep(SubmissionStep):
    def __init__(self, attachment_processor: AttachmentProcessor) -> None:
        self._attachment_processor = attachment_processor

    def run(self, context: SubmissionContext) -> SubmissionContext:
        builder = _require_builder(context)
        batch = self._attachment_processor.process(
            context.submission.attachments,
            context.submission.mode,
            context.token or "",
            context.caller,
        )
        for processed in batch.processed:
            builder.with_attachment(f"{DOCUMENT_PREFIX}{processed.record.id}")
        context.attachments = batch.processed
        context.warnings.extend(batch.messages)
        return context


class SealStep(SubmissionStep):
    """Signs the enrichment inputs of invoice documents. Other types are skipped."""

    def __init__(self, sealer: Sealer) -> None:
        self._sealer = sealer

    def run(self, context: SubmissionContext) -> SubmissionContext:
        builder = _require_builder(context)
        if not context.submission.document.is_invoice:
            Log.info("Document type is not an invoice, skipping seal")
            return context
        extraction = context.extraction
        if (
            extraction is None
            or extraction.signing_pdf is None
            or extraction.signing_payload is None
        ):
            Log.warning("Invoice lacks a PDF or structured payload, skipping seal")
            return context
        signature = self._sealer.seal(extraction.signing_pdf, extraction.signing_payload)
        builder.with_signature(signature)
        return context


class PersistTransformedStep(SubmissionStep):
    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def run(self, context: SubmissionContext) -> SubmissionContext:
        builder = _require_builder(context)
        context.transformed = self._doc_repo.create(builder.build())
        Log.info(f"Stored transformed document with {len(context.transformed.content)} slots")
        return context


class AuditSubmissionStep(SubmissionStep):
    def __init__(self, audit: AuditService) -> None:
        self._audit = audit

    def run(self, context: SubmissionContext) -> SubmissionContext:
        self._audit.record(
            AuditAction.CREATE,
            "submit",
            f"{DOCUMENT_PREFIX}{context.token}",
            context.caller.telematik_id,
            description=f"{len(context.attachments)} attachments",
        )
        return context
