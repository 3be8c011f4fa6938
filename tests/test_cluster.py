from __future__ import annotations

from workspace_server.orchestration.cluster import ClusterClient, ClusterOutcome, ObjectKind

from fakes import CLAIM, NAMESPACE, api_error


def test_read_found_and_not_found(cluster, fake_api):
    fake_api.add(CLAIM, "a-pvc")
    assert cluster.read(ObjectKind.VOLUME_CLAIM, "a-pvc", "workspace").outcome == ClusterOutcome.FOUND
    missing = cluster.read(ObjectKind.VOLUME_CLAIM, "b-pvc", "workspace")
    assert missing.outcome == ClusterOutcome.NOT_FOUND
    assert missing.status_code == 404


def test_create_conflict(cluster, fake_api):
    body = {"metadata": {"name": "workspace"}}
    assert cluster.create(ObjectKind.NAMESPACE, body).outcome == ClusterOutcome.CREATED
    assert cluster.create(ObjectKind.NAMESPACE, body).outcome == ClusterOutcome.CONFLICT
    assert fake_api.calls[0] == ("create", NAMESPACE, "workspace", None)


def test_api_error_is_classified(cluster, fake_api):
    fake_api.failures[("read", CLAIM, "a-pvc")] = api_error(403, "Forbidden")
    result = cluster.read(ObjectKind.VOLUME_CLAIM, "a-pvc", "workspace")
    assert result.outcome == ClusterOutcome.ERROR
    assert result.status_code == 403


def test_transport_error_is_classified(cluster, fake_api):
    fake_api.failures[("delete", CLAIM, "a-pvc")] = ConnectionRefusedError("connection refused")
    result = cluster.delete(ObjectKind.VOLUME_CLAIM, "a-pvc", "workspace")
    assert result.outcome == ClusterOutcome.ERROR
    assert isinstance(result.error, ConnectionRefusedError)
    assert result.status_code is None


def test_delete(cluster, fake_api):
    fake_api.add(CLAIM, "a-pvc")
    assert cluster.delete(ObjectKind.VOLUME_CLAIM, "a-pvc", "workspace").outcome == ClusterOutcome.DELETED
    assert cluster.delete(ObjectKind.VOLUME_CLAIM, "a-pvc", "workspace").outcome == ClusterOutcome.NOT_FOUND


def test_request_timeout_is_forwarded(fake_api):
    cluster = ClusterClient(fake_api, fake_api, fake_api, request_timeout=3.0)
    cluster.read(ObjectKind.SERVICE, "a", "workspace")
    assert fake_api.kwargs[-1] == {"_request_timeout": 3.0}


def test_no_request_timeout_by_default(cluster, fake_api):
    cluster.read(ObjectKind.SERVICE, "a", "workspace")
    assert fake_api.kwargs[-1] == {}
