"""
HubSpot CRM integration.
"""

from .client import ErrorKind, HubSpotAPIError, HubSpotClient, HubSpotErr, HubSpotOk, HubSpotResult
from .provider import HubSpotCRMProvider

__all__ = [
    "ErrorKind",
    "HubSpotAPIError",
    "HubSpotClient",
    "HubSpotCRMProvider",
    "HubSpotErr",
    "HubSpotOk",
    "HubSpotResult",
]
