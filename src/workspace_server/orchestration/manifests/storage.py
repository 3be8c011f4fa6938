"""Manifest builders for the namespace and the workspace volume claim."""
from __future__ import annotations

from typing import Any, Dict

from ...config import WorkloadConfig
from ..stack import WorkspaceStack


def build_namespace(name: str) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": name},
    }


def build_volume_claim(stack: WorkspaceStack, workload: WorkloadConfig) -> Dict[str, Any]:
    """Build the single-access-mode claim backing the workload's data directory."""

    spec: Dict[str, Any] = {
        "accessModes": [workload.access_mode],
        "resources": {"requests": {"storage": workload.volume_size}},
    }
    if workload.storage_class:
        spec["storageClassName"] = workload.storage_class
    return {
        "apiVersion": "v1",
        "kind": "PersistentVolumeClaim",
        "metadata": {"name": stack.claim_name, "namespace": stack.namespace},
        "spec": spec,
    }


__all__ = ["build_namespace", "build_volume_claim"]
