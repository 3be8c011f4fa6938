"""Create and delete the cluster objects belonging to a workspace resource."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Tuple

from ..config import WorkloadConfig
from ..db.tables import WorkspaceResource
from ..errors import DeprovisioningError, ProvisioningError
from .cluster import ClusterClient, ClusterOutcome, ClusterResult, ObjectKind
from .manifests.network import build_ingress, build_service
from .manifests.storage import build_namespace, build_volume_claim
from .manifests.workspace import build_deployment
from .stack import WorkspaceStack

LOGGER = logging.getLogger(__name__)

ManifestBuilder = Callable[[WorkspaceStack, WorkloadConfig], Dict[str, Any]]

# Creation order; deletion runs in reverse.
OBJECT_SEQUENCE: List[Tuple[ObjectKind, ManifestBuilder]] = [
    (ObjectKind.VOLUME_CLAIM, build_volume_claim),
    (ObjectKind.DEPLOYMENT, build_deployment),
    (ObjectKind.SERVICE, build_service),
    (ObjectKind.INGRESS, build_ingress),
]


def object_name(stack: WorkspaceStack, kind: ObjectKind) -> str:
    if kind == ObjectKind.VOLUME_CLAIM:
        return stack.claim_name
    if kind == ObjectKind.DEPLOYMENT:
        return stack.deployment_name
    if kind == ObjectKind.SERVICE:
        return stack.service_name
    if kind == ObjectKind.INGRESS:
        return stack.ingress_name
    raise ValueError(f"{kind.value} is not owned by a workspace resource")


class ResourceProvisioner:
    """Submit the object set of one record, or its deletion."""

    def __init__(self, cluster: ClusterClient, workload: WorkloadConfig) -> None:
        self._cluster = cluster
        self._workload = workload

    def stack_for(self, resource: WorkspaceResource) -> WorkspaceStack:
        return WorkspaceStack.from_resource(resource, self._workload)

    # ------------------------------------------------------------------
    # Create path
    # ------------------------------------------------------------------
    def provision(self, resource: WorkspaceResource) -> List[ClusterResult]:
        """Bring all four objects into existence.

        Each object is created only if it is absent, so a record left half
        provisioned by an earlier failure resumes at its first missing object.
        Any failure other than absence aborts the remaining steps.
        """

        stack = self.stack_for(resource)
        LOGGER.info("Provisioning workspace resource", extra={"key": stack.key, "namespace": stack.namespace})
        self.ensure_namespace(stack)
        results = [
            self._ensure_object(stack, kind, builder(stack, self._workload))
            for kind, builder in OBJECT_SEQUENCE
        ]
        LOGGER.info(
            "Workspace resource provisioned",
            extra={"key": stack.key, "created_objects": [r.name for r in results if r.outcome == ClusterOutcome.CREATED]},
        )
        return results

    def ensure_namespace(self, stack: WorkspaceStack) -> ClusterResult:
        result = self._cluster.create(ObjectKind.NAMESPACE, build_namespace(stack.namespace))
        if result.outcome == ClusterOutcome.CONFLICT:
            LOGGER.info("Namespace already exists", extra={"namespace": stack.namespace})
        elif result.outcome != ClusterOutcome.CREATED:
            raise ProvisioningError(stack.key, ObjectKind.NAMESPACE.value, stack.namespace, result.error)
        else:
            LOGGER.info("Created namespace", extra={"namespace": stack.namespace})
        return result

    def _ensure_object(self, stack: WorkspaceStack, kind: ObjectKind, body: Dict[str, Any]) -> ClusterResult:
        name = object_name(stack, kind)
        extra = {"key": stack.key, "kind": kind.value, "object_name": name, "namespace": stack.namespace}
        existing = self._cluster.read(kind, name, stack.namespace)
        if existing.outcome == ClusterOutcome.FOUND:
            LOGGER.debug("Object already present", extra=extra)
            return existing
        if existing.outcome != ClusterOutcome.NOT_FOUND:
            raise ProvisioningError(stack.key, kind.value, name, existing.error)

        result = self._cluster.create(kind, body, stack.namespace)
        if result.outcome == ClusterOutcome.CREATED:
            LOGGER.info("Created object", extra=extra)
            return result
        if result.outcome == ClusterOutcome.CONFLICT:
            # Created concurrently between the read and the create.
            LOGGER.info("Object appeared concurrently", extra=extra)
            return ClusterResult(kind, name, stack.namespace, ClusterOutcome.FOUND)
        raise ProvisioningError(stack.key, kind.value, name, result.error)

    # ------------------------------------------------------------------
    # Delete path
    # ------------------------------------------------------------------
    def deprovision(self, resource: WorkspaceResource) -> List[ClusterResult]:
        """Delete ingress, service, deployment and claim, in that order.

        Absent objects are skipped. Any other failure aborts the remaining
        deletes and propagates.
        """

        stack = self.stack_for(resource)
        LOGGER.info("Deprovisioning workspace resource", extra={"key": stack.key, "namespace": stack.namespace})
        results: List[ClusterResult] = []
        for kind, _ in reversed(OBJECT_SEQUENCE):
            name = object_name(stack, kind)
            result = self._cluster.delete(kind, name, stack.namespace)
            if result.outcome == ClusterOutcome.NOT_FOUND:
                LOGGER.info(
                    "Object not found; nothing to delete",
                    extra={"key": stack.key, "kind": kind.value, "object_name": name},
                )
            elif result.outcome != ClusterOutcome.DELETED:
                raise DeprovisioningError(stack.key, kind.value, name, result.error)
            results.append(result)
        LOGGER.info("Workspace resource deprovisioned", extra={"key": stack.key})
        return results


__all__ = ["ResourceProvisioner", "OBJECT_SEQUENCE", "object_name"]
