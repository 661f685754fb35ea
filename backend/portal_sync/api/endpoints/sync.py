"""
CRM Sync API Endpoints.

Trigger for the HubSpot -> portal sync and real-time status monitoring.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal_sync.core.config import Settings, get_settings
from portal_sync.core.exceptions import CollectionError, CRMConfigurationError
from portal_sync.core.interfaces.crm import CRMSource
from portal_sync.db.session import get_session_factory
from portal_sync.services.crm_factory import build_crm_provider
from portal_sync.services.crm_sync import SyncOrchestrator, SyncParams
from portal_sync.services.sync_status import sync_status

router = APIRouter()
logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either form."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncWarning(CamelModel):
    """Record excluded from reconciliation."""
    id: str
    company_count: int


class RecordErrorItem(CamelModel):
    """Record-scoped failure."""
    id: str
    error: str


class SyncParamsResponse(CamelModel):
    page_size: int
    max_pages: int
    concurrency: int


class SyncRunResponse(CamelModel):
    """Run summary returned by the sync trigger."""
    success: bool
    fetched: int
    valid: int
    invalid: int
    updated: int
    warnings: List[SyncWarning] = []
    enrichment_errors: List[RecordErrorItem] = []
    project_errors: List[RecordErrorItem] = []
    elapsed_ms: int
    params: SyncParamsResponse | None = None


class SyncStatusResponse(BaseModel):
    """Sync status response."""
    phase: str
    started_at: str | None
    current_step: str
    completed_at: str | None
    error: str | None
    last_result: Dict[str, Any] | None
    is_running: bool


async def get_crm_source(
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncGenerator[CRMSource, None]:
    """Provides a CRM source for one request; 503 when not configured."""
    try:
        provider = build_crm_provider(settings)
    except CRMConfigurationError as e:
        logger.error(f"❌ CRM not available: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    async with provider:
        yield provider


@router.get("/sync", response_model=SyncRunResponse)
async def run_sync(
    source: Annotated[CRMSource, Depends(get_crm_source)],
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    limit: Annotated[str | None, Query(description="Page size")] = None,
    pages: Annotated[str | None, Query(description="Maximum pages to fetch")] = None,
    concurrency: Annotated[str | None, Query(description="Enrichment workers")] = None,
):
    """
    Runs one HubSpot -> portal sync pass.

    Query parameters are lenient: bad or out-of-range values fall back to
    their defaults (or ceiling) instead of failing the request.

    Returns:
        200 with the run summary, ``success`` false on per-record errors;
        500 only when the record listing could not be collected.

    Example:
        GET /api/v1/sync?limit=50&pages=2&concurrency=5
    """
    params = SyncParams.from_raw(limit=limit, pages=pages, concurrency=concurrency, settings=settings)

    orchestrator = SyncOrchestrator(
        source,
        session_factory,
        closed_status=settings.hubspot_closed_status,
    )

    try:
        result = await orchestrator.run(params)
    except CollectionError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )

    return SyncRunResponse.model_validate(result.to_dict())


@router.get("/sync/status", response_model=SyncStatusResponse)
async def get_sync_status() -> SyncStatusResponse:
    """
    Get current sync status.

    Poll during a run to follow the phase; after a run it holds the last
    summary.
    """
    current = sync_status.get_status()

    return SyncStatusResponse(
        phase=current["phase"].value,
        started_at=current["started_at"],
        current_step=current["current_step"],
        completed_at=current["completed_at"],
        error=current["error"],
        last_result=current["last_result"],
        is_running=sync_status.is_running(),
    )
