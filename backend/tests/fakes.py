"""
In-memory CRM source used across the sync tests.
"""

import asyncio
from collections import Counter
from typing import Dict, Iterable, List, Optional

from portal_sync.core.interfaces.crm import CRMSource, RemoteCompany, RemoteOwner, RemoteRecord
from portal_sync.integrations.hubspot.client import HubSpotAPIError, HubSpotErr


def make_record(
    record_id: str,
    company_ids: Iterable[str] = ("c-1",),
    owner_id: Optional[str] = "o-1",
    name: Optional[str] = None,
    status: Optional[str] = "IN_PROGRESS",
) -> RemoteRecord:
    return RemoteRecord(
        id=record_id,
        name=name if name is not None else f"Project {record_id}",
        status=status,
        start_date="2024-01-15",
        target_end_date="2024-06-30",
        owner_id=owner_id,
        company_ids=list(company_ids),
    )


class FakeCRMSource(CRMSource):
    """
    CRMSource backed by dicts.

    Records every lookup, tracks peak in-flight lookups, and can be told to
    fail specific ids or the collection itself.
    """

    def __init__(
        self,
        records: Optional[List[RemoteRecord]] = None,
        failing_companies: Iterable[str] = (),
        failing_owners: Iterable[str] = (),
        collect_error: Optional[Exception] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.records = records or []
        self.companies: Dict[str, RemoteCompany] = {}
        self.owners: Dict[str, RemoteOwner] = {}
        self.failing_companies = set(failing_companies)
        self.failing_owners = set(failing_owners)
        self.collect_error = collect_error
        self.delays = delays or {}
        self.calls: Counter = Counter()
        self.company_calls: List[str] = []
        self.owner_calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def collect_records(self, page_size: int, max_pages: int) -> List[RemoteRecord]:
        self.calls["collect"] += 1
        if self.collect_error is not None:
            raise self.collect_error
        return list(self.records)

    async def _lookup(self, key: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(key, 0.01))
        finally:
            self.in_flight -= 1

    async def get_company(self, company_id: str) -> RemoteCompany:
        self.company_calls.append(company_id)
        await self._lookup(company_id)
        if company_id in self.failing_companies:
            raise HubSpotAPIError(HubSpotErr(reason="HTTP 404 Not Found", status_code=404))
        return self.companies.get(company_id) or RemoteCompany(
            id=company_id,
            name=f"Company {company_id}",
            domain=f"{company_id}.example.com",
        )

    async def get_owner(self, owner_id: str) -> RemoteOwner:
        self.owner_calls.append(owner_id)
        await self._lookup(owner_id)
        if owner_id in self.failing_owners:
            raise HubSpotAPIError(HubSpotErr(reason="HTTP 404 Not Found", status_code=404))
        return self.owners.get(owner_id) or RemoteOwner(
            id=owner_id,
            first_name="Ada",
            last_name="Lovelace",
            email=f"{owner_id}@example.com",
        )

    def get_provider_name(self) -> str:
        return "Fake"

    async def close(self) -> None:
        self.closed = True
