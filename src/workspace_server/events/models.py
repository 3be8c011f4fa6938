"""Domain models for workspace audit events."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class AuditAction(str, Enum):
    """Actions recorded on the audit stream."""

    PROVISION_RESOURCE = "PROVISION_RESOURCE"
    DEPROVISION_RESOURCE = "DEPROVISION_RESOURCE"
    REPAIR_RESOURCE = "REPAIR_RESOURCE"


class AuditOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass
class AuditEvent:
    """Audit event payload as published on the message bus."""

    key: str
    action: AuditAction
    outcome: AuditOutcome
    timestamp: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "resourceKey": self.key,
            "action": self.action.value,
            "outcome": self.outcome.value,
            "details": self.details,
        }


__all__ = ["AuditAction", "AuditOutcome", "AuditEvent"]
