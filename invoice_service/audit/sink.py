"""Audit event sinks.

Sinks are append-only and fail closed: any problem raises AuditSinkError.
Whether that failure matters is decided by AuditService, not the sink.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from invoice_service.audit.models import AuditEvent
from invoice_service.logging.logger import Log


class AuditSinkError(Exception):
    """Raised when an audit event cannot be written."""


class AuditSink(ABC):
    """Contract for audit event destinations."""

    @abstractmethod
    def emit(self, event: AuditEvent) -> None:
        """Raises:
        AuditSinkError: if the event could not be recorded.
        """


class LogAuditSink(AuditSink):
    """Writes audit events to the service log."""

    def emit(self, event: AuditEvent) -> None:
        Log.info(
            f"AUDIT {event.action.value} {event.subtype} {event.entity} "
            f"by {event.agent}: {event.outcome}"
        )


class JsonlFileAuditSink(AuditSink):
    """Appends one canonical JSON line per event. Never truncates."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        return self._file_path

    def emit(self, event: AuditEvent) -> None:
        try:
            line = json.dumps(event.to_dict(), sort_keys=True, separators=(",", ":")) + "\n"
        except (TypeError, ValueError) as exc:
            raise AuditSinkError(f"Failed to serialize audit event: {exc}") from exc

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, mode="a", encoding="utf-8") as f:
                f.write(line)
        except OSError as exc:
            raise AuditSinkError(
                f"Failed to write audit event to {self._file_path}: {exc}"
            ) from exc
