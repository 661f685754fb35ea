"""
CRM Provider Factory.
Builds the configured CRM source from settings.
"""

import logging
from typing import Optional

import httpx

from portal_sync.core.config import Settings, get_settings
from portal_sync.core.exceptions import CRMConfigurationError
from portal_sync.core.interfaces.crm import CRMSource

logger = logging.getLogger(__name__)


def build_crm_provider(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CRMSource:
    """
    Build a HubSpot provider for one sync run.

    A new provider (and HTTP connection pool) is built per run; callers
    close it with ``async with``.

    Raises:
        CRMConfigurationError: If HUBSPOT_PRIVATE_APP_TOKEN is not configured

    Example:
        >>> async with build_crm_provider() as provider:
        ...     records = await provider.collect_records(page_size=50, max_pages=1)
    """
    settings = settings or get_settings()

    if not settings.hubspot_private_app_token:
        raise CRMConfigurationError("HUBSPOT_PRIVATE_APP_TOKEN not configured")

    # Import here to avoid loading integration code if not needed
    from portal_sync.integrations.hubspot import HubSpotClient, HubSpotCRMProvider

    client = HubSpotClient(
        access_token=settings.hubspot_private_app_token,
        api_base_url=settings.hubspot_api_base_url,
        timeout=settings.hubspot_timeout_seconds,
        max_attempts=settings.hubspot_max_attempts,
        backoff_floor=settings.hubspot_backoff_floor_seconds,
        transport=transport,
    )
    return HubSpotCRMProvider(client)


def is_crm_configured(settings: Optional[Settings] = None) -> bool:
    """Quick check whether a HubSpot credential is present."""
    settings = settings or get_settings()
    return bool(settings.hubspot_private_app_token)
