"""
Project Portal Sync - HubSpot to portal storage synchronization service.
"""

__version__ = "0.1.0"
