"""
HubSpot CRM Schema Configuration.

Endpoints, property projections and association names consumed by the sync.
Each listing request declares exactly the fields it needs.
"""

from typing import List

# HubSpot "Services" object type id
SERVICE_OBJECT_TYPE = "0-162"

SERVICES_ENDPOINT = f"/crm/v3/objects/{SERVICE_OBJECT_TYPE}"
COMPANY_ENDPOINT = "/crm/v3/objects/companies/{company_id}"
OWNER_ENDPOINT = "/crm/v3/owners/{owner_id}"

SERVICE_PROPERTIES: List[str] = [
    "hs_object_id",
    "hs_name",
    "hs_status",
    "hs_start_date",
    "hs_target_end_date",
    "hubspot_owner_id",
]

SERVICE_ASSOCIATIONS: List[str] = ["companies"]

COMPANY_PROPERTIES: List[str] = [
    "hs_object_id",
    "name",
    "domain",
]


def service_list_params(page_size: int, after: str | None = None) -> dict:
    """Query parameters for one page of the services listing."""
    return {
        "limit": page_size,
        "after": after,
        "properties": ",".join(SERVICE_PROPERTIES),
        "associations": ",".join(SERVICE_ASSOCIATIONS),
        "archived": "false",
    }


def company_params() -> dict:
    return {"properties": ",".join(COMPANY_PROPERTIES)}
