"""Request and response models for the workspace resource API."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# The key names Kubernetes objects and becomes a DNS label of the ingress host;
# "-pvc" is appended for the claim.
KEY_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
KEY_MAX_LENGTH = 59
NAMESPACE_MAX_LENGTH = 63


def _validate_namespace(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if len(value) > NAMESPACE_MAX_LENGTH or not KEY_PATTERN.match(value):
        raise ValueError(
            f"namespace must be a lowercase DNS label of at most {NAMESPACE_MAX_LENGTH} characters"
        )
    return value


class WorkspaceResourceFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    namespace: Optional[str] = Field(None, max_length=63)
    cpu: Optional[str] = Field(None, description='CPU quantity; "0" means unbounded')
    memory: Optional[str] = Field(None, description='Memory quantity; "0" means unbounded')
    ingress_class: Optional[str] = Field(None, alias="ingressClass")
    label: Optional[str] = None
    description: Optional[str] = None


class WorkspaceResourceCreate(WorkspaceResourceFields):
    key: Optional[str] = Field(None, description="Generated when omitted")

    @field_validator("key")
    def _validate_key(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        if len(value) > KEY_MAX_LENGTH or not KEY_PATTERN.match(value):
            raise ValueError(
                f"key must be a lowercase DNS label of at most {KEY_MAX_LENGTH} characters"
            )
        return value

    @field_validator("namespace")
    def _check_namespace(cls, value: Optional[str]) -> Optional[str]:
        return _validate_namespace(value)


class WorkspaceResourceUpdate(WorkspaceResourceFields):
    key: Optional[str] = Field(None, description="Must equal the current key when given")

    @field_validator("namespace")
    def _check_namespace(cls, value: Optional[str]) -> Optional[str]:
        return _validate_namespace(value)


class WorkspaceResourceRead(WorkspaceResourceFields):
    id: int
    key: str
    created_at: datetime
    updated_at: datetime


class SyncStateRead(BaseModel):
    id: int
    key: str
    status: Optional[str] = None
    objects: Optional[Dict[str, str]] = None
    history: List[Dict[str, Any]] = Field(default_factory=list)


__all__ = [
    "WorkspaceResourceCreate",
    "WorkspaceResourceUpdate",
    "WorkspaceResourceRead",
    "SyncStateRead",
]
