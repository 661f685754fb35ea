"""
Data Processing Logic for HubSpot Records.

Turns raw HubSpot API payloads into the read-only record types the sync
pipeline works with.
"""

import logging
from typing import Any, Dict, List, Optional

from portal_sync.core.interfaces.crm import RemoteCompany, RemoteOwner, RemoteRecord

logger = logging.getLogger(__name__)


def _clean(value: Any) -> Optional[str]:
    """HubSpot sends unset properties as null or ""; both mean absent."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_company_ids(raw: Dict[str, Any]) -> List[str]:
    """
    Reads associated company ids from a record's associations block.

    HubSpot lists one association row per association type, so the same
    company can appear twice (e.g. primary + unlabeled). Ids are
    de-duplicated, first occurrence wins.
    """
    associations = raw.get("associations") or {}
    rows = (associations.get("companies") or {}).get("results") or []

    company_ids: List[str] = []
    for row in rows:
        company_id = _clean((row or {}).get("id"))
        if company_id and company_id not in company_ids:
            company_ids.append(company_id)
    return company_ids


def process_service_record(raw: Dict[str, Any]) -> RemoteRecord:
    """
    Maps a raw HubSpot service object to a RemoteRecord.

    Args:
        raw: One item of the listing's ``results`` array

    Returns:
        RemoteRecord

    Raises:
        ValueError: If the object has no id
    """
    record_id = _clean(raw.get("id"))
    if not record_id:
        raise ValueError(f"HubSpot returned a service without 'id': {raw}")

    props = raw.get("properties") or {}
    return RemoteRecord(
        id=record_id,
        name=_clean(props.get("hs_name")),
        status=_clean(props.get("hs_status")),
        start_date=_clean(props.get("hs_start_date")),
        target_end_date=_clean(props.get("hs_target_end_date")),
        owner_id=_clean(props.get("hubspot_owner_id")),
        company_ids=extract_company_ids(raw),
    )


def process_company(raw: Dict[str, Any], company_id: str) -> RemoteCompany:
    props = raw.get("properties") or {}
    return RemoteCompany(
        id=_clean(raw.get("id")) or company_id,
        name=_clean(props.get("name")),
        domain=_clean(props.get("domain")),
    )


def process_owner(raw: Dict[str, Any], owner_id: str) -> RemoteOwner:
    # Owners endpoint is flat, unlike CRM objects
    return RemoteOwner(
        id=_clean(raw.get("id")) or owner_id,
        first_name=_clean(raw.get("firstName")),
        last_name=_clean(raw.get("lastName")),
        email=_clean(raw.get("email")),
    )
