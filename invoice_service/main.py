"""Command-line entry point for the invoice service.

Usage examples:
    invoice-service init-db
    invoice-service submit submission.json --telematik-id 5-2-123456789
    invoice-service retrieve <token> --telematik-id 5-2-123456789 --metadata --structured
    invoice-service change-status <token> erledigt --telematik-id 5-2-123456789
    invoice-service erase <token> --telematik-id 5-2-123456789
"""

import json
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import typer

from invoice_service.audit.service import AuditService, AuditSinkFactory
from invoice_service.config.settings import Settings
from invoice_service.database.connection import apply_schema, close_pool, init_pool
from invoice_service.database.repositories.binary_repository import PostgresBinaryRepository
from invoice_service.database.repositories.document_repository import PostgresDocumentRepository
from invoice_service.database.repositories.invoice_payload_repository import (
    PostgresInvoicePayloadRepository,
)
from invoice_service.documents.exceptions import (
    DocumentConflictError,
    DocumentNotFoundError,
    InvalidRequestError,
)
from invoice_service.documents.models import CallerIdentity, SubmissionMode
from invoice_service.documents.serialization import record_to_dict, submission_from_dict
from invoice_service.lifecycle.erase_service import EraseService
from invoice_service.lifecycle.flag_service import FlagService
from invoice_service.lifecycle.status_service import StatusService
from invoice_service.logging.logger import Log
from invoice_service.retrieval.models import RetrievalSelector
from invoice_service.retrieval.retrieval_service import RetrievalService
from invoice_service.signing.sealer import build_sealer
from invoice_service.submission.exceptions import (
    BlockingValidationError,
    InternalProcessingError,
    UnprocessableContentError,
)
from invoice_service.submission.models import SubmissionResult
from invoice_service.submission.processor import SubmissionProcessor, build_submission_processor
from invoice_service.validation.factory import ValidatorFactory
from invoice_service.validation.models import ValidationMessage, ValidationOutcome

app = typer.Typer(help="Invoice submission, retrieval and lifecycle CLI.")

EXIT_INTERNAL = 1
EXIT_INVALID = 2
EXIT_NOT_FOUND = 3
EXIT_CONFLICT = 4


@dataclass
class Services:
    submission: SubmissionProcessor
    retrieval: RetrievalService
    status: StatusService
    erase: EraseService
    flags: FlagService


def build_services(settings: Settings) -> Services:
    """Wire every service against the PostgreSQL repositories."""
    doc_repo = PostgresDocumentRepository()
    binary_repo = PostgresBinaryRepository()
    payload_repo = PostgresInvoicePayloadRepository()
    audit = AuditService(AuditSinkFactory.create(settings))
    return Services(
        submission=build_submission_processor(
            settings,
            doc_repo=doc_repo,
            binary_repo=binary_repo,
            payload_repo=payload_repo,
            validator=ValidatorFactory.create(settings),
            sealer=build_sealer(settings),
            audit=audit,
        ),
        retrieval=RetrievalService(doc_repo, binary_repo, payload_repo, audit),
        status=StatusService(doc_repo, audit),
        erase=EraseService(doc_repo, binary_repo, payload_repo, audit),
        flags=FlagService(doc_repo, audit),
    )


@contextmanager
def _services() -> Generator[Services, None, None]:
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)
    try:
        yield build_services(settings)
    except BlockingValidationError as exc:
        typer.echo(json.dumps({"error": str(exc), "issues": _messages(exc.messages)}), err=True)
        raise typer.Exit(code=EXIT_INVALID) from exc
    except (InvalidRequestError, UnprocessableContentError) as exc:
        typer.echo(f"Invalid request: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID) from exc
    except DocumentNotFoundError as exc:
        typer.echo(f"Not found: {exc}", err=True)
        raise typer.Exit(code=EXIT_NOT_FOUND) from exc
    except DocumentConflictError as exc:
        typer.echo(f"Conflict: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFLICT) from exc
    except InternalProcessingError as exc:
        Log.exception(f"Command aborted: {exc}")
        typer.echo(f"Internal error: {exc}", err=True)
        raise typer.Exit(code=EXIT_INTERNAL) from exc
    finally:
        close_pool()


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidRequestError(f"{path.name} is not valid JSON: {exc}") from exc


@app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)
    try:
        apply_schema()
    finally:
        close_pool()


@app.command()
def submit(
    path: Path = typer.Argument(..., help="JSON file with document, attachments and mode."),
    telematik_id: str = typer.Option(..., "--telematik-id", help="Submitting provider."),
    test: bool = typer.Option(False, "--test", help="Validate only, persist nothing."),
    enrich: bool = typer.Option(True, "--enrich/--no-enrich", help="Stamp and embed the PDF."),
) -> None:
    """Submit an invoice document with optional attachments."""
    if not path.is_file():
        typer.echo(f"Submission file not found: {path}", err=True)
        raise typer.Exit(code=EXIT_INVALID)
    with _services() as services:
        submission = submission_from_dict(_read_json(path))
        submission = replace(
            submission,
            mode=SubmissionMode.TEST if test else submission.mode,
            enrich=enrich and submission.enrich,
        )
        result = services.submission.process(submission, CallerIdentity(telematik_id))
        typer.echo(json.dumps(_submission_result(result), indent=2))


@app.command()
def retrieve(
    token: str = typer.Argument(...),
    telematik_id: str = typer.Option(..., "--telematik-id"),
    metadata: bool = typer.Option(False, "--metadata"),
    structured: bool = typer.Option(False, "--structured"),
    original_pdf: bool = typer.Option(False, "--original-pdf"),
    enriched_pdf: bool = typer.Option(False, "--enriched-pdf"),
    signature: bool = typer.Option(False, "--signature"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", help="Where binary parts go."),
) -> None:
    """Fetch the selected parts of a document by token."""
    selector = RetrievalSelector(
        metadata=metadata,
        structured=structured,
        original_pdf=original_pdf,
        enriched_pdf=enriched_pdf,
        signature=signature,
    )
    with _services() as services:
        result = services.retrieval.retrieve(token, selector, CallerIdentity(telematik_id))

    output_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, str] = {}
    if result.structured is not None:
        suffix = "xml" if result.structured.content_type.endswith("xml") else "json"
        written["structured"] = _write(output_dir / f"invoice.{suffix}", result.structured.raw)
    if result.original_pdf is not None:
        written["original_pdf"] = _write(output_dir / "original.pdf", result.original_pdf)
    if result.enriched_pdf is not None:
        written["enriched_pdf"] = _write(output_dir / "enriched.pdf", result.enriched_pdf)
    if result.signature is not None:
        written["signature"] = _write(output_dir / "signature.p7s", result.signature.data)
    body: dict[str, Any] = {"token": token, "files": written}
    if result.metadata is not None:
        body["metadata"] = record_to_dict(result.metadata)
    typer.echo(json.dumps(body, indent=2))


@app.command("change-status")
def change_status(
    token: str = typer.Argument(...),
    status: str = typer.Argument(..., help="offen, erledigt or papierkorb."),
    telematik_id: str = typer.Option(..., "--telematik-id"),
) -> None:
    """Move a document to another retention status."""
    with _services() as services:
        change = services.status.change_status(token, status, CallerIdentity(telematik_id))
        typer.echo(
            json.dumps(
                {
                    "token": change.token,
                    "status": change.status.value,
                    "statusChangedDate": change.status_changed_date.isoformat(),
                    "nextStatusChangeDate": change.next_status_change_date.isoformat(),
                },
                indent=2,
            )
        )


@app.command()
def erase(
    token: str = typer.Argument(...),
    telematik_id: str = typer.Option(..., "--telematik-id"),
) -> None:
    """Irreversibly delete a trashed document and everything it references."""
    with _services() as services:
        confirmation = services.erase.erase(token, CallerIdentity(telematik_id))
        typer.echo(json.dumps({"erased": confirmation.token, "deleted": list(confirmation.deleted)}))


@app.command()
def flag(
    token: str = typer.Argument(...),
    code: str = typer.Argument(..., help="gelesen, archiviert or persoenlich."),
    telematik_id: str = typer.Option(..., "--telematik-id"),
    details: str | None = typer.Option(None, "--details"),
    archive_kind: str | None = typer.Option(None, "--archive-kind"),
) -> None:
    """Set a processing flag on a document."""
    with _services() as services:
        record = services.flags.set_flag(
            token,
            code,
            CallerIdentity(telematik_id),
            details=details,
            archive_kind=archive_kind,
        )
        typer.echo(json.dumps({"token": token, "flags": record_to_dict(record)["flags"]}))


def _submission_result(result: SubmissionResult) -> dict[str, Any]:
    return {
        "outcome": _outcome(result.outcome),
        "token": result.transformed.id if result.transformed else None,
        "transformed": record_to_dict(result.transformed) if result.transformed else None,
        "attachments": [
            {"record": record_to_dict(a.record), "outcome": _outcome(a.outcome)}
            for a in result.attachments
        ],
    }


def _outcome(outcome: ValidationOutcome | None) -> list[dict[str, Any]] | None:
    return _messages(outcome.messages) if outcome is not None else None


def _messages(messages: tuple[ValidationMessage, ...]) -> list[dict[str, Any]]:
    return [
        {"severity": m.severity.value, "message": m.message, "location": m.location}
        for m in messages
    ]


def _write(path: Path, data: bytes) -> str:
    path.write_bytes(data)
    return str(path)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
