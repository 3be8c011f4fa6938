"""Naming scheme binding a workspace resource record to its cluster objects."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import WorkloadConfig
from ..db.tables import WorkspaceResource

UNBOUNDED = "0"


def is_unbounded(value: Optional[str]) -> bool:
    """Return whether a cpu or memory value means "no limit"."""

    return value is None or value.strip() in ("", UNBOUNDED)


@dataclass(frozen=True)
class WorkspaceStack:
    """Resolved description of the four objects owned by one record.

    Objects are found by name only: ``<key>-pvc`` for the claim and ``<key>``
    for the deployment, service and ingress, all inside ``namespace``.
    """

    key: str
    namespace: str
    ingress_class: str
    host: str
    cpu: Optional[str] = None
    memory: Optional[str] = None

    @classmethod
    def from_resource(cls, resource: WorkspaceResource, workload: WorkloadConfig) -> "WorkspaceStack":
        return cls(
            key=resource.key,
            namespace=resource.namespace or workload.default_namespace,
            ingress_class=resource.ingress_class or workload.default_ingress_class,
            host=f"{resource.key}.{workload.domain}",
            cpu=resource.cpu,
            memory=resource.memory,
        )

    @property
    def claim_name(self) -> str:
        return f"{self.key}-pvc"

    @property
    def deployment_name(self) -> str:
        return self.key

    @property
    def service_name(self) -> str:
        return self.key

    @property
    def ingress_name(self) -> str:
        return self.key

    @property
    def pod_labels(self) -> dict:
        return {"app": self.key}


__all__ = ["WorkspaceStack", "UNBOUNDED", "is_unbounded"]
