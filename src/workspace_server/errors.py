"""Exception hierarchy for the workspace resource server."""
from __future__ import annotations

from typing import Optional


class WorkspaceServerError(Exception):
    """Base class for all errors raised by the service."""


class ResourceNotFoundError(WorkspaceServerError):
    """Raised when a workspace resource record does not exist in the store."""

    def __init__(self, resource_id: int) -> None:
        super().__init__(f"Resource with ID {resource_id} not found")
        self.resource_id = resource_id


class ResourceKeyConflictError(WorkspaceServerError):
    """Raised when an update would change the immutable key of a record."""

    def __init__(self, resource_id: int, current_key: str, requested_key: str) -> None:
        super().__init__(
            f"Resource {resource_id} is bound to key '{current_key}'; changing it to '{requested_key}' is not allowed"
        )
        self.resource_id = resource_id
        self.current_key = current_key
        self.requested_key = requested_key


class ResourceKeyExistsError(WorkspaceServerError):
    """Raised when a new record would reuse the key of an existing one."""

    def __init__(self, key: str) -> None:
        super().__init__(f"A resource with key '{key}' already exists")
        self.key = key


class ClusterOperationError(WorkspaceServerError):
    """Common base for failures of a single cluster object operation."""

    verb = "operate on"

    def __init__(self, key: str, kind: str, name: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {self.verb} {kind} '{name}' for resource '{key}'{detail}")
        self.key = key
        self.kind = kind
        self.name = name
        self.cause = cause


class ProvisioningError(ClusterOperationError):
    """Raised when the create path cannot bring an object into existence."""

    verb = "provision"


class DeprovisioningError(ClusterOperationError):
    """Raised when the delete path fails for a reason other than absence."""

    verb = "deprovision"


__all__ = [
    "WorkspaceServerError",
    "ResourceNotFoundError",
    "ResourceKeyConflictError",
    "ResourceKeyExistsError",
    "ClusterOperationError",
    "ProvisioningError",
    "DeprovisioningError",
]
