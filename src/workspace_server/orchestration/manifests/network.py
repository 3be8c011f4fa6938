"""Manifest builders for the workspace service and ingress route."""
from __future__ import annotations

from typing import Any, Dict

from ...config import WorkloadConfig
from ..stack import WorkspaceStack

INGRESS_CLASS_ANNOTATION = "kubernetes.io/ingress.class"


def build_service(stack: WorkspaceStack, workload: WorkloadConfig) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": stack.service_name, "namespace": stack.namespace},
        "spec": {
            "selector": stack.pod_labels,
            "ports": [{"port": workload.service_port, "targetPort": workload.container_port}],
        },
    }


def build_ingress(stack: WorkspaceStack, workload: WorkloadConfig) -> Dict[str, Any]:
    """Route ``<key>.<domain>/`` to the workspace service."""

    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": stack.ingress_name,
            "namespace": stack.namespace,
            "annotations": {INGRESS_CLASS_ANNOTATION: stack.ingress_class},
        },
        "spec": {
            "rules": [
                {
                    "host": stack.host,
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": stack.service_name,
                                        "port": {"number": workload.service_port},
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        },
    }


__all__ = ["build_service", "build_ingress", "INGRESS_CLASS_ANNOTATION"]
