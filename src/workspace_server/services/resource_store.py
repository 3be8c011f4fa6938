"""SQLAlchemy-backed store of desired workspace resources."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..db.tables import WorkspaceResource
from ..errors import ResourceKeyExistsError

LOGGER = logging.getLogger(__name__)

MUTABLE_FIELDS = ("key", "namespace", "cpu", "memory", "ingress_class", "label", "description")


class ResourceStore:
    """Durable CRUD over ``workspace_resources`` rows.

    Every call opens and commits its own short-lived session so the store can be
    shared between request threads and the reconciliation thread.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def list_all(self) -> List[WorkspaceResource]:
        with self._session_factory() as session:
            rows = session.scalars(select(WorkspaceResource).order_by(WorkspaceResource.id)).all()
        LOGGER.debug("Listed workspace resources", extra={"count": len(rows)})
        return list(rows)

    def get(self, resource_id: int) -> Optional[WorkspaceResource]:
        with self._session_factory() as session:
            return session.get(WorkspaceResource, resource_id)

    def insert(self, data: Dict[str, Any]) -> WorkspaceResource:
        """Persist a new row. A duplicate key raises ``ResourceKeyExistsError``."""

        resource = WorkspaceResource(**_filter_fields(data))
        key = resource.key
        with self._session_factory() as session:
            session.add(resource)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ResourceKeyExistsError(key) from exc
            session.refresh(resource)
        LOGGER.debug("Inserted workspace resource", extra={"resource_id": resource.id, "key": resource.key})
        return resource

    def update(self, resource_id: int, data: Dict[str, Any]) -> Optional[WorkspaceResource]:
        """Apply *data* to the row and return it, or ``None`` when it does not exist."""

        with self._session_factory() as session:
            resource = session.get(WorkspaceResource, resource_id)
            if resource is None:
                return None
            for field, value in _filter_fields(data).items():
                setattr(resource, field, value)
            session.commit()
            session.refresh(resource)
        LOGGER.debug("Updated workspace resource", extra={"resource_id": resource_id})
        return resource

    def delete(self, resource_id: int) -> bool:
        """Delete the row; return whether a row was removed."""

        with self._session_factory() as session:
            result = session.execute(delete(WorkspaceResource).where(WorkspaceResource.id == resource_id))
            session.commit()
        deleted = bool(result.rowcount)
        LOGGER.debug("Deleted workspace resource", extra={"resource_id": resource_id, "deleted": deleted})
        return deleted


def _filter_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {field: value for field, value in data.items() if field in MUTABLE_FIELDS}


__all__ = ["ResourceStore", "MUTABLE_FIELDS"]
