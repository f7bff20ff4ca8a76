from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditAction(str, Enum):
    CREATE = "C"
    READ = "R"
    UPDATE = "U"
    DELETE = "D"


@dataclass(frozen=True)
class AuditEvent:
    """One audited operation on a document."""

    action: AuditAction
    subtype: str
    entity: str
    agent: str
    outcome: str = "success"
    description: str | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "subtype": self.subtype,
            "entity": self.entity,
            "agent": self.agent,
            "outcome": self.outcome,
            "description": self.description,
            "recorded_at": self.recorded_at.isoformat(),
        }
