"""
HubSpot CRM Provider Implementation.

Thin orchestration layer that delegates to specialized modules:
- client.py: HTTP transport, retry and backoff
- schema.py: endpoints and property projections
- fetchers.py: pagination and single-object lookups
- processors.py: payload to record mapping
"""

import logging
from typing import List

from portal_sync.core.interfaces.crm import CRMSource, RemoteCompany, RemoteOwner, RemoteRecord
from portal_sync.integrations.hubspot.client import HubSpotClient
from portal_sync.integrations.hubspot.fetchers import (
    collect_service_records,
    fetch_company,
    fetch_owner,
)

logger = logging.getLogger(__name__)


class HubSpotCRMProvider(CRMSource):
    """HubSpot integration for the project sync pipeline."""

    def __init__(self, client: HubSpotClient):
        self.client = client
        logger.info(f"HubSpotCRMProvider initialized (url: {client.api_base_url})")

    async def collect_records(self, page_size: int, max_pages: int) -> List[RemoteRecord]:
        return await collect_service_records(self.client, page_size=page_size, max_pages=max_pages)

    async def get_company(self, company_id: str) -> RemoteCompany:
        return await fetch_company(self.client, company_id)

    async def get_owner(self, owner_id: str) -> RemoteOwner:
        return await fetch_owner(self.client, owner_id)

    def get_provider_name(self) -> str:
        return "HubSpot"

    async def close(self) -> None:
        await self.client.close()
