"""
Health and Status Endpoints for Monitoring.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal_sync.core.config import Settings, get_settings
from portal_sync.db.session import get_session_factory
from portal_sync.services.crm_factory import is_crm_configured

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database_connected: bool
    crm_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Health check covering storage reachability and CRM configuration.

    Returns:
        Health status
    """
    crm_configured = is_crm_configured(settings)

    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        database_connected = True
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        database_connected = False

    return HealthResponse(
        status="healthy" if database_connected and crm_configured else "unhealthy",
        database_connected=database_connected,
        crm_configured=crm_configured,
    )
