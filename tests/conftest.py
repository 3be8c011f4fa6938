"""Shared fixtures: a fake cluster, a SQLite-backed store and mocked side channels."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from workspace_server.config import AppConfig, WorkloadConfig
from workspace_server.db.engine import create_engine, create_session_factory, init_schema
from workspace_server.events.publisher import AuditEventPublisher
from workspace_server.orchestration.cluster import ClusterClient
from workspace_server.orchestration.provisioner import ResourceProvisioner
from workspace_server.orchestration.reconciler import ReconciliationLoop
from workspace_server.orchestration.verifier import ExistenceVerifier
from workspace_server.services.lifecycle import WorkspaceResourceService
from workspace_server.services.resource_store import ResourceStore
from workspace_server.services.state_manager import SyncStateManager

from fakes import FakeKubernetesApi


@pytest.fixture
def workload() -> WorkloadConfig:
    return WorkloadConfig()


@pytest.fixture
def fake_api() -> FakeKubernetesApi:
    return FakeKubernetesApi()


@pytest.fixture
def cluster(fake_api: FakeKubernetesApi) -> ClusterClient:
    return ClusterClient(fake_api, fake_api, fake_api)


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://")
    init_schema(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> ResourceStore:
    return ResourceStore(session_factory)


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.get.return_value = None
    client.lrange.return_value = []
    return client


@pytest.fixture
def state_manager(redis_client: MagicMock) -> SyncStateManager:
    return SyncStateManager(redis_client, history_limit=10)


@pytest.fixture
def audit_publisher() -> MagicMock:
    return MagicMock(spec=AuditEventPublisher)


@pytest.fixture
def provisioner(cluster: ClusterClient, workload: WorkloadConfig) -> ResourceProvisioner:
    return ResourceProvisioner(cluster, workload)


@pytest.fixture
def verifier(cluster: ClusterClient, workload: WorkloadConfig) -> ExistenceVerifier:
    return ExistenceVerifier(cluster, workload)


@pytest.fixture
def resource_service(store, provisioner, state_manager, audit_publisher) -> WorkspaceResourceService:
    return WorkspaceResourceService(
        store,
        provisioner,
        key_prefix="langflow",
        state_manager=state_manager,
        audit_publisher=audit_publisher,
    )


@pytest.fixture
def reconciler(store, verifier, provisioner, state_manager, audit_publisher) -> ReconciliationLoop:
    return ReconciliationLoop(
        store,
        verifier,
        provisioner,
        state_manager=state_manager,
        audit_publisher=audit_publisher,
        interval_seconds=0.05,
    )


@pytest.fixture
def settings() -> AppConfig:
    return AppConfig(
        reconcile={"enabled": False},
        disable_events=True,
    )
