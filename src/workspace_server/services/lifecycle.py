"""Lifecycle gateway between the CRUD API, the store and the provisioner."""
from __future__ import annotations

import logging
import random
import time
from typing import Any, Dict, List, Optional

from ..db.tables import WorkspaceResource
from ..errors import (
    ClusterOperationError,
    DeprovisioningError,
    ProvisioningError,
    ResourceKeyConflictError,
    ResourceNotFoundError,
)
from ..events.models import AuditAction, AuditOutcome
from ..events.publisher import AuditEventPublisher
from ..orchestration.provisioner import ResourceProvisioner
from .resource_store import ResourceStore
from .state_manager import SyncStateManager, SyncStatus

LOGGER = logging.getLogger(__name__)


def generate_key(prefix: str) -> str:
    """Return ``<prefix>-<epoch millis>-<0..999>``."""

    timestamp = int(time.time() * 1000)
    return f"{prefix}-{timestamp}-{random.randint(0, 999)}"


class WorkspaceResourceService:
    """Create, read, update and remove workspace resources.

    ``create`` persists before provisioning and ``remove`` deprovisions before
    deleting. Neither is transactional across the two systems: a failed
    provisioning leaves the row committed for the reconciliation loop to
    converge, and a failed deprovisioning keeps the row so removal can be
    retried.
    """

    def __init__(
        self,
        store: ResourceStore,
        provisioner: ResourceProvisioner,
        key_prefix: str = "langflow",
        state_manager: Optional[SyncStateManager] = None,
        audit_publisher: Optional[AuditEventPublisher] = None,
    ) -> None:
        self._store = store
        self._provisioner = provisioner
        self._key_prefix = key_prefix
        self._state_manager = state_manager
        self._audit_publisher = audit_publisher

    def find_all(self) -> List[WorkspaceResource]:
        return self._store.list_all()

    def find_one(self, resource_id: int) -> WorkspaceResource:
        resource = self._store.get(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    def create(self, data: Dict[str, Any]) -> WorkspaceResource:
        payload = dict(data)
        if not payload.get("key"):
            payload["key"] = generate_key(self._key_prefix)
        resource = self._store.insert(payload)
        LOGGER.info("Created workspace resource record", extra={"resource_id": resource.id, "key": resource.key})
        try:
            self._provisioner.provision(resource)
        except ProvisioningError as exc:
            LOGGER.error(
                "Failed to provision resources; record kept for reconciliation",
                extra={"resource_id": resource.id, "key": resource.key, "error": str(exc)},
            )
            self._on_failure(resource.key, AuditAction.PROVISION_RESOURCE, SyncStatus.PROVISIONING_FAILED, exc)
            raise
        self._record(resource.key, SyncStatus.PROVISIONED)
        self._audit(resource.key, AuditAction.PROVISION_RESOURCE, AuditOutcome.SUCCESS, {"namespace": resource.namespace})
        return resource

    def update(self, resource_id: int, data: Dict[str, Any]) -> WorkspaceResource:
        """Update record metadata. The cluster is never touched."""

        current = self.find_one(resource_id)
        payload = dict(data)
        requested_key = payload.pop("key", None)
        if requested_key is not None and requested_key != current.key:
            raise ResourceKeyConflictError(resource_id, current.key, requested_key)
        resource = self._store.update(resource_id, payload)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    def remove(self, resource_id: int) -> None:
        resource = self.find_one(resource_id)
        try:
            self._provisioner.deprovision(resource)
        except DeprovisioningError as exc:
            LOGGER.error(
                "Failed to deprovision resources; record kept",
                extra={"resource_id": resource_id, "key": resource.key, "error": str(exc)},
            )
            self._on_failure(resource.key, AuditAction.DEPROVISION_RESOURCE, SyncStatus.DEPROVISION_FAILED, exc)
            raise
        if not self._store.delete(resource_id):
            raise ResourceNotFoundError(resource_id)
        LOGGER.info("Removed workspace resource", extra={"resource_id": resource_id, "key": resource.key})
        if self._state_manager is not None:
            try:
                self._state_manager.clear(resource.key)
            except Exception:
                LOGGER.exception("Failed to clear sync state", extra={"key": resource.key})
        self._audit(resource.key, AuditAction.DEPROVISION_RESOURCE, AuditOutcome.SUCCESS, {})

    def sync_state(self, resource_id: int) -> Dict[str, Any]:
        """Return the cached sync state of a record."""

        resource = self.find_one(resource_id)
        if self._state_manager is None:
            return {"id": resource.id, "key": resource.key, "status": None, "objects": None, "history": []}
        return {
            "id": resource.id,
            "key": resource.key,
            "status": self._state_manager.get_status(resource.key),
            "objects": self._state_manager.get_objects(resource.key),
            "history": self._state_manager.get_history(resource.key),
        }

    def _on_failure(
        self, key: str, action: AuditAction, status: SyncStatus, error: ClusterOperationError
    ) -> None:
        self._record(key, status, str(error))
        self._audit(key, action, AuditOutcome.FAILURE, {"kind": error.kind, "name": error.name, "error": str(error)})

    def _record(self, key: str, status: SyncStatus, detail: Optional[str] = None) -> None:
        if self._state_manager is None:
            return
        try:
            self._state_manager.set_status(key, status, detail)
        except Exception:
            LOGGER.exception("Failed to record sync status", extra={"key": key, "status": status.value})

    def _audit(self, key: str, action: AuditAction, outcome: AuditOutcome, details: Dict[str, Any]) -> None:
        if self._audit_publisher is not None:
            self._audit_publisher.publish(key, action, outcome, details)


__all__ = ["WorkspaceResourceService", "generate_key"]
