from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"

    @property
    def is_blocking(self) -> bool:
        return self in (Severity.FATAL, Severity.ERROR)


@dataclass(frozen=True)
class ValidationMessage:
    """A single validator finding."""

    severity: Severity
    message: str
    location: str | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    """Non-blocking findings returned to the caller alongside a result."""

    messages: tuple[ValidationMessage, ...]

    @classmethod
    def from_messages(cls, messages: list[ValidationMessage]) -> "ValidationOutcome | None":
        return cls(messages=tuple(messages)) if messages else None


def split_messages(
    messages: list[ValidationMessage],
) -> tuple[list[ValidationMessage], list[ValidationMessage]]:
    """Partition messages into (blocking, non_blocking)."""
    blocking = [m for m in messages if m.severity.is_blocking]
    non_blocking = [m for m in messages if not m.severity.is_blocking]
    return blocking, non_blocking
