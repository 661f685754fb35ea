"""
Abstract CRM Source Interface.
Defines the contract the sync pipeline needs from a remote CRM, plus the
read-only record types it hands back.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class RemoteOwner:
    """CRM user that owns a service record."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class RemoteCompany:
    """CRM company a service record is associated with."""
    id: str
    name: Optional[str] = None
    domain: Optional[str] = None


@dataclass(frozen=True)
class RemoteRecord:
    """
    One CRM "service" entity as fetched during a run.

    Never mutated locally; the external id is the idempotency key for the
    project row it reconciles into.
    """
    id: str
    name: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = None
    target_end_date: Optional[str] = None
    owner_id: Optional[str] = None
    company_ids: List[str] = field(default_factory=list)

    @property
    def company_count(self) -> int:
        return len(self.company_ids)


class CRMSource(ABC):
    """
    Abstract base class for the remote side of the sync pipeline.

    Implementations raise on any retrieval failure; they never return a
    partial page set as if it were complete.
    """

    @abstractmethod
    async def collect_records(self, page_size: int, max_pages: int) -> List[RemoteRecord]:
        """
        Walks the paginated listing and returns every record seen.

        Stops when the listing has no continuation token or after
        ``max_pages`` pages, whichever comes first.
        """

    @abstractmethod
    async def get_company(self, company_id: str) -> RemoteCompany:
        """Fetches a single company by external id."""

    @abstractmethod
    async def get_owner(self, owner_id: str) -> RemoteOwner:
        """Fetches a single owner by external id."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Returns the name of the CRM provider (e.g. "HubSpot")."""

    async def close(self) -> None:
        """Releases transport resources. No-op by default."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
