"""
Data Fetching Logic for HubSpot CRM.

Handles cursor-based pagination of the services listing and single-object
lookups. Any failed call is raised as HubSpotAPIError.
"""

import logging
from typing import Any, Dict, List, Optional

from portal_sync.core.interfaces.crm import RemoteCompany, RemoteOwner, RemoteRecord
from portal_sync.integrations.hubspot.client import HubSpotAPIError, HubSpotClient, HubSpotResult
from portal_sync.integrations.hubspot.processors import (
    process_company,
    process_owner,
    process_service_record,
)
from portal_sync.integrations.hubspot.schema import (
    COMPANY_ENDPOINT,
    OWNER_ENDPOINT,
    SERVICES_ENDPOINT,
    company_params,
    service_list_params,
)

logger = logging.getLogger(__name__)


def _unwrap(result: HubSpotResult) -> Any:
    if not result.ok:
        raise HubSpotAPIError(result)
    return result.data


def next_cursor(payload: Dict[str, Any]) -> Optional[str]:
    """Continuation token of a listing page (``paging.next.after``), if any."""
    paging = payload.get("paging") or {}
    after = (paging.get("next") or {}).get("after")
    return str(after) if after else None


async def collect_service_records(
    client: HubSpotClient,
    page_size: int,
    max_pages: int,
) -> List[RemoteRecord]:
    """
    Fetches service records page by page.

    Pages are requested strictly in sequence since each cursor comes from the
    previous page. Stops when no continuation token is returned or after
    ``max_pages`` pages.

    Args:
        client: HubSpotClient instance
        page_size: Records per page
        max_pages: Page-count ceiling (>= 1)

    Returns:
        All records seen, in listing order

    Raises:
        HubSpotAPIError: On any failed page; nothing partial is returned
    """
    records: List[RemoteRecord] = []
    cursor: Optional[str] = None
    page = 1

    while True:
        logger.debug(f"Fetching {SERVICES_ENDPOINT} page {page}...")
        payload = _unwrap(
            await client.get(SERVICES_ENDPOINT, params=service_list_params(page_size, cursor))
        ) or {}

        results = payload.get("results") or []
        records.extend(process_service_record(raw) for raw in results)
        logger.info(f"  Page {page}: Fetched {len(results)} services (Total: {len(records)})")

        cursor = next_cursor(payload)
        if not cursor:
            break

        if page >= max_pages:
            logger.info(f"  Stopping after {max_pages} pages (max_pages limit)")
            break

        page += 1

    logger.info(f"Total services fetched: {len(records)} records")
    return records


async def fetch_company(client: HubSpotClient, company_id: str) -> RemoteCompany:
    """Fetches a single company by id."""
    endpoint = COMPANY_ENDPOINT.format(company_id=company_id)
    payload = _unwrap(await client.get(endpoint, params=company_params())) or {}
    return process_company(payload, company_id)


async def fetch_owner(client: HubSpotClient, owner_id: str) -> RemoteOwner:
    """Fetches a single owner by id."""
    endpoint = OWNER_ENDPOINT.format(owner_id=owner_id)
    payload = _unwrap(await client.get(endpoint)) or {}
    return process_owner(payload, owner_id)
