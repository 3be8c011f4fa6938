"""Check whether the cluster footprint of a workspace resource is complete."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from ..config import WorkloadConfig
from ..db.tables import WorkspaceResource
from .cluster import ClusterClient, ClusterOutcome, ObjectKind
from .provisioner import OBJECT_SEQUENCE, object_name
from .stack import WorkspaceStack

LOGGER = logging.getLogger(__name__)


@dataclass
class Verification:
    key: str
    objects: Dict[ObjectKind, ClusterOutcome] = field(default_factory=dict)

    @property
    def present(self) -> bool:
        """True only when every object was read successfully.

        Partial presence and read errors both count as missing.
        """
        return bool(self.objects) and all(
            outcome == ClusterOutcome.FOUND for outcome in self.objects.values()
        )

    def as_dict(self) -> Dict[str, str]:
        return {kind.value: outcome.value for kind, outcome in self.objects.items()}


class ExistenceVerifier:
    """Read the claim, deployment, service and ingress of a record."""

    def __init__(self, cluster: ClusterClient, workload: WorkloadConfig) -> None:
        self._cluster = cluster
        self._workload = workload

    def check(self, resource: WorkspaceResource) -> Verification:
        stack = WorkspaceStack.from_resource(resource, self._workload)
        verification = Verification(key=stack.key)
        for kind, _ in OBJECT_SEQUENCE:
            name = object_name(stack, kind)
            result = self._cluster.read(kind, name, stack.namespace)
            if result.outcome == ClusterOutcome.ERROR:
                LOGGER.warning(
                    "Failed to read object; treating as missing",
                    extra={
                        "key": stack.key,
                        "kind": kind.value,
                        "object_name": name,
                        "status": result.status_code,
                        "error": str(result.error),
                    },
                )
            verification.objects[kind] = result.outcome
        return verification

    def verify(self, resource: WorkspaceResource) -> bool:
        return self.check(resource).present


__all__ = ["ExistenceVerifier", "Verification"]
