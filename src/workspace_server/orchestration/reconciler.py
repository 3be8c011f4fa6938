"""Periodic reconciliation of desired workspace resources against the cluster."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..db.tables import WorkspaceResource
from ..errors import ClusterOperationError
from ..events.models import AuditAction, AuditOutcome
from ..events.publisher import AuditEventPublisher
from ..services.resource_store import ResourceStore
from ..services.state_manager import SyncStateManager, SyncStatus
from .provisioner import ResourceProvisioner
from .verifier import ExistenceVerifier, Verification

LOGGER = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Summary of one reconciliation cycle."""

    checked: int = 0
    present: List[str] = field(default_factory=list)
    repaired: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    aborted: bool = False


class ReconciliationLoop:
    """Background ticker that repairs records whose objects have gone missing.

    At most one cycle runs at a time. A tick that arrives while a cycle is
    still in flight is dropped, not queued.
    """

    def __init__(
        self,
        store: ResourceStore,
        verifier: ExistenceVerifier,
        provisioner: ResourceProvisioner,
        state_manager: Optional[SyncStateManager] = None,
        audit_publisher: Optional[AuditEventPublisher] = None,
        interval_seconds: float = 5.0,
    ) -> None:
        self._store = store
        self._verifier = verifier
        self._provisioner = provisioner
        self._state_manager = state_manager
        self._audit_publisher = audit_publisher
        self._interval = interval_seconds
        self._cycle_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._cycle_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked()

    def start(self) -> None:
        """Start the ticker in a daemon thread."""

        if self.is_running:
            LOGGER.debug("Reconciliation loop already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="reconciliation-ticker", daemon=True)
        self._thread.start()
        LOGGER.info("Reconciliation loop started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the ticker to stop and wait for the in-flight cycle."""

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
        if self._cycle_thread:
            self._cycle_thread.join(timeout=timeout)
        LOGGER.info("Reconciliation loop stopped")

    def run_cycle(self) -> Optional[CycleReport]:
        """Run one cycle on the calling thread; return ``None`` if one is already in flight."""

        if not self._cycle_lock.acquire(blocking=False):
            LOGGER.debug("Reconciliation cycle already in flight; skipping")
            return None
        try:
            return self._cycle()
        finally:
            self._cycle_lock.release()

    def tick(self) -> bool:
        """Start a cycle on a worker thread unless one is in flight.

        Returns whether a cycle was started.
        """

        if not self._cycle_lock.acquire(blocking=False):
            LOGGER.debug("Reconciliation cycle still running; tick dropped")
            return False
        self._cycle_thread = threading.Thread(
            target=self._locked_cycle, name="reconciliation-cycle", daemon=True
        )
        self._cycle_thread.start()
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.tick()

    def _locked_cycle(self) -> None:
        try:
            self._cycle()
        except Exception as exc:  # pragma: no cover - keeps the ticker alive
            LOGGER.exception("Unhandled exception in reconciliation cycle", exc_info=exc)
        finally:
            self._cycle_lock.release()

    def _cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            resources = self._store.list_all()
        except Exception as exc:
            LOGGER.exception("Failed to list workspace resources; cycle aborted", exc_info=exc)
            report.aborted = True
            return report

        for resource in resources:
            report.checked += 1
            self._reconcile_one(resource, report)

        if report.repaired or report.failed:
            LOGGER.info(
                "Reconciliation cycle finished",
                extra={"checked": report.checked, "repaired": report.repaired, "failed": list(report.failed)},
            )
        return report

    def _reconcile_one(self, resource: WorkspaceResource, report: CycleReport) -> None:
        try:
            verification = self._verifier.check(resource)
            if verification.present:
                report.present.append(resource.key)
                self._record(resource.key, SyncStatus.PRESENT, verification)
                return
            LOGGER.info(
                "Resource not found in cluster, recreating",
                extra={"key": resource.key, "objects": verification.as_dict()},
            )
            self._provisioner.provision(resource)
        except ClusterOperationError as exc:
            LOGGER.error("Failed to repair resource", extra={"key": resource.key, "error": str(exc)})
            report.failed[resource.key] = str(exc)
            self._record(resource.key, SyncStatus.REPAIR_FAILED, detail=str(exc))
            self._audit(resource.key, AuditOutcome.FAILURE, {"error": str(exc), "kind": exc.kind})
            return
        except Exception as exc:
            LOGGER.exception("Failed to sync resource", extra={"key": resource.key}, exc_info=exc)
            report.failed[resource.key] = str(exc)
            self._record(resource.key, SyncStatus.REPAIR_FAILED, detail=str(exc))
            self._audit(resource.key, AuditOutcome.FAILURE, {"error": str(exc)})
            return
        report.repaired.append(resource.key)
        missing = [kind for kind, outcome in verification.as_dict().items() if outcome != "FOUND"]
        self._record(resource.key, SyncStatus.REPAIRED, detail=f"recreated missing: {', '.join(missing)}")
        self._audit(resource.key, AuditOutcome.SUCCESS, {"missing": verification.as_dict()})

    def _record(
        self,
        key: str,
        status: SyncStatus,
        verification: Optional[Verification] = None,
        detail: Optional[str] = None,
    ) -> None:
        if self._state_manager is None:
            return
        try:
            self._state_manager.set_status(key, status, detail)
            if verification is not None:
                self._state_manager.set_objects(key, verification.as_dict())
        except Exception:
            LOGGER.exception("Failed to record sync status", extra={"key": key, "status": status.value})

    def _audit(self, key: str, outcome: AuditOutcome, details: Dict[str, object]) -> None:
        if self._audit_publisher is not None:
            self._audit_publisher.publish(key, AuditAction.REPAIR_RESOURCE, outcome, details)


__all__ = ["ReconciliationLoop", "CycleReport"]
