"""SQLAlchemy ORM model for desired-state workspace resources.

Every cluster object belonging to a record is located by a name derived from
``key`` (``<key>-pvc`` for the claim, ``<key>`` for the deployment, service
and ingress). No object identifiers are stored, so ``key`` must never change
once the record has been provisioned.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

TimestampTZ = DateTime(timezone=True)


class Base(DeclarativeBase):
    """Declarative base with naming convention for constraints."""

    pass


Base.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class WorkspaceResource(Base):
    __tablename__ = "workspace_resources"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    namespace: Mapped[Optional[str]] = mapped_column(String(63))
    cpu: Mapped[Optional[str]] = mapped_column(String(32))
    memory: Mapped[Optional[str]] = mapped_column(String(32))
    ingress_class: Mapped[Optional[str]] = mapped_column(String(255))
    label: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(TimestampTZ, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"WorkspaceResource(id={self.id!r}, key={self.key!r}, namespace={self.namespace!r})"


__all__ = ["Base", "WorkspaceResource"]
