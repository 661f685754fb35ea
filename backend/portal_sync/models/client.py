"""
Client model - a customer company imported from the CRM.

Created the first time a CRM company id is seen during a sync; later syncs
resolve to the same row by that id.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from portal_sync.db.base import Base


class Client(Base):
    """SQLAlchemy model for portal clients."""

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )

    hubspot_company_id: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="HubSpot company id (find-or-create key)",
    )

    name: Mapped[str | None] = mapped_column(String(512), nullable=True)

    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        {"comment": "Customer companies, one row per HubSpot company"},
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, hubspot_company_id='{self.hubspot_company_id}', name='{self.name}')>"
