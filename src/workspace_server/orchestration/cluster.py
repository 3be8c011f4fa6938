"""Thin wrapper around the Kubernetes API with explicit outcome classification.

Reads, creates and deletes never raise. Each call returns a ``ClusterResult``
whose ``outcome`` says whether the object was found, created, deleted, absent,
already present, or whether the call failed for any other reason. Callers
decide which outcomes are fatal.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from ..config import KubernetesConfig

LOGGER = logging.getLogger(__name__)


class ObjectKind(str, Enum):
    """Object kinds managed for a workspace resource."""

    NAMESPACE = "Namespace"
    VOLUME_CLAIM = "PersistentVolumeClaim"
    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    INGRESS = "Ingress"


class ClusterOutcome(str, Enum):
    FOUND = "FOUND"
    CREATED = "CREATED"
    DELETED = "DELETED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ClusterResult:
    """Classified result of a single cluster call."""

    kind: ObjectKind
    name: str
    namespace: Optional[str]
    outcome: ClusterOutcome
    error: Optional[BaseException] = None

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.error, "status", None)


# kind -> (api attribute, method suffix, namespaced)
_DISPATCH: Dict[ObjectKind, Tuple[str, str, bool]] = {
    ObjectKind.NAMESPACE: ("_core", "namespace", False),
    ObjectKind.VOLUME_CLAIM: ("_core", "namespaced_persistent_volume_claim", True),
    ObjectKind.DEPLOYMENT: ("_apps", "namespaced_deployment", True),
    ObjectKind.SERVICE: ("_core", "namespaced_service", True),
    ObjectKind.INGRESS: ("_networking", "namespaced_ingress", True),
}


def load_cluster_config(settings: KubernetesConfig) -> None:
    """Load the in-cluster configuration or the local kubeconfig."""

    if settings.in_cluster:
        config.load_incluster_config()
        return
    if settings.in_cluster is None:
        try:
            config.load_incluster_config()
            LOGGER.info("Loaded in-cluster Kubernetes configuration")
            return
        except config.ConfigException:
            LOGGER.debug("Not running in a cluster; falling back to kubeconfig")
    config.load_kube_config(context=settings.context)
    LOGGER.info("Loaded kubeconfig", extra={"context": settings.context})


class ClusterClient:
    """Typed read/create/delete access to the five managed object kinds."""

    def __init__(
        self,
        core_api: Any,
        apps_api: Any,
        networking_api: Any,
        request_timeout: Optional[float] = None,
    ) -> None:
        self._core = core_api
        self._apps = apps_api
        self._networking = networking_api
        self._request_timeout = request_timeout

    @classmethod
    def from_config(cls, settings: KubernetesConfig) -> "ClusterClient":
        load_cluster_config(settings)
        return cls(
            client.CoreV1Api(),
            client.AppsV1Api(),
            client.NetworkingV1Api(),
            request_timeout=settings.request_timeout,
        )

    def read(self, kind: ObjectKind, name: str, namespace: Optional[str] = None) -> ClusterResult:
        method, namespaced = self._method("read", kind)
        args: Dict[str, Any] = {"name": name}
        if namespaced:
            args["namespace"] = namespace
        return self._call(kind, name, namespace, ClusterOutcome.FOUND, method, args)

    def create(self, kind: ObjectKind, body: Dict[str, Any], namespace: Optional[str] = None) -> ClusterResult:
        method, namespaced = self._method("create", kind)
        name = body.get("metadata", {}).get("name", "")
        args: Dict[str, Any] = {"body": body}
        if namespaced:
            args["namespace"] = namespace
        return self._call(kind, name, namespace, ClusterOutcome.CREATED, method, args)

    def delete(self, kind: ObjectKind, name: str, namespace: Optional[str] = None) -> ClusterResult:
        method, namespaced = self._method("delete", kind)
        args: Dict[str, Any] = {"name": name}
        if namespaced:
            args["namespace"] = namespace
        return self._call(kind, name, namespace, ClusterOutcome.DELETED, method, args)

    def _method(self, verb: str, kind: ObjectKind):
        api_attr, suffix, namespaced = _DISPATCH[kind]
        return getattr(getattr(self, api_attr), f"{verb}_{suffix}"), namespaced

    def _call(
        self,
        kind: ObjectKind,
        name: str,
        namespace: Optional[str],
        success: ClusterOutcome,
        method: Any,
        args: Dict[str, Any],
    ) -> ClusterResult:
        if self._request_timeout is not None:
            args["_request_timeout"] = self._request_timeout
        try:
            method(**args)
        except ApiException as exc:
            return ClusterResult(kind, name, namespace, _classify(exc), exc)
        except Exception as exc:
            LOGGER.debug(
                "Cluster transport error",
                extra={"kind": kind.value, "object_name": name, "namespace": namespace},
                exc_info=exc,
            )
            return ClusterResult(kind, name, namespace, ClusterOutcome.ERROR, exc)
        return ClusterResult(kind, name, namespace, success)


def _classify(exc: ApiException) -> ClusterOutcome:
    if exc.status == 404:
        return ClusterOutcome.NOT_FOUND
    if exc.status == 409:
        return ClusterOutcome.CONFLICT
    return ClusterOutcome.ERROR


__all__ = ["ClusterClient", "ClusterOutcome", "ClusterResult", "ObjectKind", "load_cluster_config"]
