"""
Project model - the portal's view of a CRM service record.

Upserted on every sync that sees the matching service; the service id is
the sole idempotency key. Rows are never deleted by the sync.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from portal_sync.db.base import Base


class ProjectStatus(str, enum.Enum):
    """Normalized project status shown in the portal."""

    OPEN = "Open"
    CLOSED = "Closed"


class Project(Base):
    """
    SQLAlchemy model for projects.

    All mapped columns are overwritten on conflict (last sync wins).
    """

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    hubspot_service_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="HubSpot service id (upsert conflict target)",
    )

    name: Mapped[str] = mapped_column(String(512), nullable=False)

    status: Mapped[ProjectStatus | None] = mapped_column(
        Enum(
            ProjectStatus,
            name="project_status",
            create_constraint=True,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=True,
        comment="Open/Closed, null when the CRM has no status",
    )

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Owner snapshot
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Last time a sync wrote this row",
    )

    __table_args__ = (
        Index("ix_projects_client_status", "client_id", "status"),
        {"comment": "Projects mirrored from HubSpot services"},
    )

    def __repr__(self) -> str:
        status = self.status.value if self.status else None
        return f"<Project(id={self.id}, hubspot_service_id='{self.hubspot_service_id}', status={status})>"
