from __future__ import annotations

import re

import pytest

from workspace_server.errors import (
    DeprovisioningError,
    ProvisioningError,
    ResourceKeyConflictError,
    ResourceKeyExistsError,
    ResourceNotFoundError,
)
from workspace_server.events.models import AuditAction, AuditOutcome
from workspace_server.services.lifecycle import generate_key
from workspace_server.services.state_manager import SyncStatus

from fakes import CLAIM, DEPLOYMENT, INGRESS, NAMESPACE, SERVICE, api_error

KEY_PATTERN = re.compile(r"^langflow-(\d+)-(\d{1,3})$")

FIELDS = ("namespace", "cpu", "memory", "ingress_class", "label", "description")


def test_generate_key_format():
    for _ in range(50):
        match = KEY_PATTERN.match(generate_key("langflow"))
        assert match
        assert 0 <= int(match.group(2)) <= 999


def test_create_generates_key_and_persists(resource_service):
    data = {"label": "demo", "namespace": "workspace", "cpu": "0", "memory": "512Mi", "ingress_class": "nginx"}
    created = resource_service.create(data)

    records = resource_service.find_all()
    assert len(records) == 1
    (record,) = records
    assert record.id == created.id
    assert KEY_PATTERN.match(record.key)
    for field in FIELDS:
        assert getattr(record, field) == data.get(field)
    assert record.created_at is not None
    assert record.updated_at is not None


def test_create_keeps_given_key(resource_service, fake_api):
    created = resource_service.create({"key": "demo-key"})
    assert created.key == "demo-key"
    assert fake_api.has(DEPLOYMENT, "demo-key")


def test_create_rejects_duplicate_key(resource_service, fake_api):
    resource_service.create({"key": "demo-key"})
    fake_api.reset_calls()

    with pytest.raises(ResourceKeyExistsError):
        resource_service.create({"key": "demo-key", "label": "second"})

    assert [r.key for r in resource_service.find_all()] == ["demo-key"]
    assert fake_api.calls == []


def test_create_does_not_mutate_input(resource_service):
    data = {"label": "demo"}
    resource_service.create(data)
    assert data == {"label": "demo"}


def test_create_and_remove_end_to_end(resource_service, fake_api, audit_publisher):
    created = resource_service.create({"label": "demo", "namespace": "workspace"})
    key = created.key
    assert fake_api.verb_calls("create") == [
        (NAMESPACE, "workspace"),
        (CLAIM, f"{key}-pvc"),
        (DEPLOYMENT, key),
        (SERVICE, key),
        (INGRESS, key),
    ]
    audit_publisher.publish.assert_called_with(
        key, AuditAction.PROVISION_RESOURCE, AuditOutcome.SUCCESS, {"namespace": "workspace"}
    )

    resource_service.remove(created.id)

    assert fake_api.verb_calls("delete") == [
        (INGRESS, key),
        (SERVICE, key),
        (DEPLOYMENT, key),
        (CLAIM, f"{key}-pvc"),
    ]
    assert resource_service.find_all() == []
    with pytest.raises(ResourceNotFoundError):
        resource_service.find_one(created.id)


def test_provisioning_failure_keeps_record(resource_service, fake_api, redis_client, audit_publisher):
    fake_api.failures[("create", SERVICE, "demo-key")] = api_error(500)

    with pytest.raises(ProvisioningError):
        resource_service.create({"key": "demo-key"})

    (record,) = resource_service.find_all()
    assert record.key == "demo-key"
    redis_client.set.assert_any_call("workspace:demo-key:status", SyncStatus.PROVISIONING_FAILED.value)
    action, outcome = audit_publisher.publish.call_args.args[1:3]
    assert (action, outcome) == (AuditAction.PROVISION_RESOURCE, AuditOutcome.FAILURE)


def test_reconciliation_converges_failed_create(resource_service, reconciler, fake_api):
    fake_api.failures[("create", SERVICE, "demo-key")] = api_error(500)
    with pytest.raises(ProvisioningError):
        resource_service.create({"key": "demo-key"})
    del fake_api.failures[("create", SERVICE, "demo-key")]

    report = reconciler.run_cycle()

    assert report.repaired == ["demo-key"]
    assert fake_api.has(INGRESS, "demo-key")


def test_find_one_missing(resource_service):
    with pytest.raises(ResourceNotFoundError) as exc_info:
        resource_service.find_one(42)
    assert exc_info.value.resource_id == 42


def test_update_is_store_only(resource_service, fake_api):
    created = resource_service.create({"key": "demo-key", "cpu": "1"})
    fake_api.reset_calls()

    updated = resource_service.update(created.id, {"cpu": "2", "label": "renamed"})

    assert updated.cpu == "2"
    assert updated.label == "renamed"
    assert updated.key == "demo-key"
    assert fake_api.calls == []


def test_update_rejects_key_change(resource_service):
    created = resource_service.create({"key": "demo-key"})
    with pytest.raises(ResourceKeyConflictError):
        resource_service.update(created.id, {"key": "other-key"})
    assert resource_service.find_one(created.id).key == "demo-key"


def test_update_accepts_same_key(resource_service):
    created = resource_service.create({"key": "demo-key"})
    updated = resource_service.update(created.id, {"key": "demo-key", "description": "d"})
    assert updated.description == "d"


def test_update_missing(resource_service):
    with pytest.raises(ResourceNotFoundError):
        resource_service.update(7, {"label": "x"})


def test_remove_missing(resource_service, fake_api):
    with pytest.raises(ResourceNotFoundError):
        resource_service.remove(7)
    assert fake_api.calls == []


def test_remove_after_external_teardown(resource_service, fake_api):
    created = resource_service.create({"key": "demo-key"})
    fake_api.objects.clear()

    resource_service.remove(created.id)

    assert resource_service.find_all() == []


def test_deprovision_failure_keeps_record(resource_service, fake_api, redis_client):
    created = resource_service.create({"key": "demo-key"})
    fake_api.failures[("delete", DEPLOYMENT, "demo-key")] = api_error(500)

    with pytest.raises(DeprovisioningError):
        resource_service.remove(created.id)

    assert resource_service.find_one(created.id).key == "demo-key"
    redis_client.set.assert_any_call("workspace:demo-key:status", SyncStatus.DEPROVISION_FAILED.value)
    redis_client.delete.assert_not_called()


def test_remove_clears_sync_state(resource_service, redis_client):
    created = resource_service.create({"key": "demo-key"})
    resource_service.remove(created.id)
    redis_client.delete.assert_called_once_with(
        "workspace:demo-key:status", "workspace:demo-key:history", "workspace:demo-key:objects"
    )


def test_sync_state(resource_service, redis_client):
    created = resource_service.create({"key": "demo-key"})
    redis_client.get.side_effect = lambda name: {
        "workspace:demo-key:status": "PRESENT",
        "workspace:demo-key:objects": '{"Deployment": "FOUND"}',
    }.get(name)
    redis_client.lrange.return_value = ['{"status": "PRESENT", "timestamp": "t"}']

    state = resource_service.sync_state(created.id)

    assert state == {
        "id": created.id,
        "key": "demo-key",
        "status": "PRESENT",
        "objects": {"Deployment": "FOUND"},
        "history": [{"status": "PRESENT", "timestamp": "t"}],
    }
