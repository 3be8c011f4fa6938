"""Application entrypoint for the Workspace Resource Server."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis
from fastapi import FastAPI
from sqlalchemy.orm import Session, sessionmaker

from .api.routes import router as api_router
from .config import AppConfig, get_settings
from .db.engine import create_engine, create_session_factory, init_schema
from .events.publisher import AuditEventPublisher, RabbitMQPublisher
from .orchestration.cluster import ClusterClient
from .orchestration.provisioner import ResourceProvisioner
from .orchestration.reconciler import ReconciliationLoop
from .orchestration.verifier import ExistenceVerifier
from .services.lifecycle import WorkspaceResourceService
from .services.resource_store import ResourceStore
from .services.state_manager import SyncStateManager

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: AppConfig = app.state.settings
    reconciler: ReconciliationLoop = app.state.reconciler
    LOGGER.info("Starting Workspace Resource Server", extra={"service": settings.service_name})
    if settings.reconcile.enabled:
        reconciler.start()
    else:
        LOGGER.warning("Reconciliation loop disabled; cluster drift will not be repaired")
    yield
    LOGGER.info("Shutting down Workspace Resource Server")
    reconciler.stop()
    app.state.redis.close()
    if app.state.engine is not None:
        app.state.engine.dispose()


def create_app(
    settings: Optional[AppConfig] = None,
    *,
    cluster: Optional[ClusterClient] = None,
    session_factory: Optional[sessionmaker[Session]] = None,
    redis_client: Optional[redis.Redis] = None,
    audit_publisher: Optional[AuditEventPublisher] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators that are not passed in are built from *settings*.
    """

    settings = settings or get_settings()
    logging.basicConfig(level=settings.logging.level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    engine = None
    if session_factory is None:
        engine = create_engine(settings.database.url, echo=settings.database.echo)
        init_schema(engine)
        session_factory = create_session_factory(engine)
    if redis_client is None:
        redis_client = redis.from_url(settings.redis.url, decode_responses=settings.redis.decode_responses)
    if cluster is None:
        cluster = ClusterClient.from_config(settings.kubernetes)
    if audit_publisher is None:
        event_publisher = None if settings.disable_events else RabbitMQPublisher(settings)
        audit_publisher = AuditEventPublisher(
            event_publisher,
            routing_key=settings.rabbitmq.audit_routing_key,
            enabled=not settings.disable_events,
        )

    store = ResourceStore(session_factory)
    state_manager = SyncStateManager(redis_client, history_limit=settings.redis.history_limit)
    provisioner = ResourceProvisioner(cluster, settings.workload)
    verifier = ExistenceVerifier(cluster, settings.workload)
    resource_service = WorkspaceResourceService(
        store,
        provisioner,
        key_prefix=settings.workload.key_prefix,
        state_manager=state_manager,
        audit_publisher=audit_publisher,
    )
    reconciler = ReconciliationLoop(
        store,
        verifier,
        provisioner,
        state_manager=state_manager,
        audit_publisher=audit_publisher,
        interval_seconds=settings.reconcile.interval_seconds,
    )

    app = FastAPI(
        title="Workspace Resource Server",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(api_router, prefix=settings.api_prefix)

    app.state.settings = settings
    app.state.engine = engine
    app.state.redis = redis_client
    app.state.state_manager = state_manager
    app.state.resource_service = resource_service
    app.state.reconciler = reconciler
    app.state.audit_publisher = audit_publisher

    return app


def run() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run("workspace_server.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":  # pragma: no cover
    run()
