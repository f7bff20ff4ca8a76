from pathlib import Path

from invoice_service.audit.models import AuditAction, AuditEvent
from invoice_service.audit.sink import AuditSink, AuditSinkError, JsonlFileAuditSink, LogAuditSink
from invoice_service.config.settings import Settings
from invoice_service.logging.logger import Log


class AuditService:
    """Fire-and-forget front for an AuditSink.

    A sink failure is logged and does not fail the audited operation.
    """

    def __init__(self, sink: AuditSink) -> None:
        self._sink = sink

    def record(
        self,
        action: AuditAction,
        subtype: str,
        entity: str,
        agent: str,
        description: str | None = None,
    ) -> None:
        event = AuditEvent(
            action=action,
            subtype=subtype,
            entity=entity,
            agent=agent,
            description=description,
        )
        try:
            self._sink.emit(event)
        except AuditSinkError as exc:
            Log.error(f"Audit event {subtype} for {entity} was not recorded: {exc}")


class AuditSinkFactory:
    """Creates the audit sink selected by settings."""

    SINKS = ("log", "jsonl")

    @classmethod
    def create(cls, settings: Settings) -> AuditSink:
        kind = settings.audit_sink.lower()
        if kind == "log":
            return LogAuditSink()
        if kind == "jsonl":
            return JsonlFileAuditSink(Path(settings.audit_log_path))
        raise ValueError(f"Unknown audit sink '{kind}'. Choose from: {list(cls.SINKS)}")
