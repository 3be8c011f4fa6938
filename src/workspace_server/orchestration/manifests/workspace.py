"""Manifest builder for the workspace deployment."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...config import WorkloadConfig
from ..stack import WorkspaceStack, is_unbounded


def build_resource_requirements(cpu: Optional[str], memory: Optional[str]) -> Dict[str, Dict[str, str]]:
    """Set requests and limits equal for each bounded dimension.

    Unbounded dimensions (``"0"``) are left out entirely rather than encoded
    as a zero quantity.
    """

    requests: Dict[str, str] = {}
    limits: Dict[str, str] = {}
    for dimension, value in (("cpu", cpu), ("memory", memory)):
        if is_unbounded(value):
            continue
        requests[dimension] = value
        limits[dimension] = value
    return {"requests": requests, "limits": limits}


def _build_env(workload: WorkloadConfig) -> List[dict]:
    return [
        {"name": "LANGFLOW_SUPERUSER", "value": workload.superuser},
        {"name": "LANGFLOW_SUPERUSER_PASSWORD", "value": workload.superuser_password},
    ]


def build_deployment(stack: WorkspaceStack, workload: WorkloadConfig) -> Dict[str, Any]:
    """Build the single-replica deployment running the managed workload."""

    container = {
        "name": workload.container_name,
        "image": workload.image,
        "ports": [{"containerPort": workload.container_port}],
        "volumeMounts": [{"name": workload.volume_name, "mountPath": workload.mount_path}],
        "resources": build_resource_requirements(stack.cpu, stack.memory),
        "env": _build_env(workload),
    }
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": stack.deployment_name, "namespace": stack.namespace},
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": stack.pod_labels},
            "template": {
                "metadata": {"labels": stack.pod_labels},
                "spec": {
                    "containers": [container],
                    "volumes": [
                        {
                            "name": workload.volume_name,
                            "persistentVolumeClaim": {"claimName": stack.claim_name},
                        }
                    ],
                },
            },
        },
    }


__all__ = ["build_deployment", "build_resource_requirements"]
