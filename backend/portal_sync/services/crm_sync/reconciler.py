"""
Reconciler for CRM Sync.

Maps enriched records to local rows and writes them idempotently:
find-or-create the client by company id, then upsert the project by
service id. Each record runs in its own transaction so one bad record
never aborts the run.
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal_sync.core.exceptions import ReconciliationError
from portal_sync.core.interfaces.crm import RemoteCompany
from portal_sync.models import Client, Project, ProjectStatus
from portal_sync.services.crm_sync.error_tracker import STAGE_RECONCILIATION, ErrorTracker
from portal_sync.services.crm_sync.types import EnrichedRecord, ReconcileResult

logger = logging.getLogger(__name__)

DEFAULT_CLOSED_STATUS = "COMPLETED"

# Overwritten on conflict: every mapped column (full replace, not merge)
PROJECT_UPSERT_COLUMNS = [
    "name",
    "status",
    "start_date",
    "target_end_date",
    "owner_id",
    "owner_first_name",
    "owner_last_name",
    "owner_email",
    "client_id",
    "synced_at",
]

_INSERTS: Dict[str, Callable] = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def map_status(remote_status: Optional[str], closed_status: str = DEFAULT_CLOSED_STATUS) -> Optional[ProjectStatus]:
    """
    Translates a remote status to the local vocabulary.

    Total over all inputs: the one closed value -> Closed, any other text ->
    Open, absent (None or blank) -> None.
    """
    if remote_status is None or not remote_status.strip():
        return None
    if remote_status.strip() == closed_status:
        return ProjectStatus.CLOSED
    return ProjectStatus.OPEN


def parse_remote_date(value: Optional[str]) -> Optional[date]:
    """
    Parses HubSpot date properties.

    Accepts plain dates ("2024-05-01", "20240115"), ISO datetimes and epoch
    milliseconds; anything else is treated as absent.
    """
    if not value:
        return None
    text = value.strip()
    if text.isdigit():
        # 8 digits is a basic-format ISO date, not a 1970 timestamp
        if len(text) == 8:
            try:
                return date.fromisoformat(text)
            except ValueError:
                pass
        try:
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            logger.warning(f"⚠️ Out-of-range timestamp from CRM: {value!r}")
            return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning(f"⚠️ Unparseable date from CRM: {value!r}")
        return None


def build_project_row(item: EnrichedRecord, client_id: uuid.UUID, closed_status: str, synced_at: datetime) -> Dict[str, Any]:
    """Maps one enriched record to a ``projects`` row."""
    record = item.record
    owner = item.owner
    return {
        "hubspot_service_id": record.id,
        "name": record.name,
        "status": map_status(record.status, closed_status),
        "start_date": parse_remote_date(record.start_date),
        "target_end_date": parse_remote_date(record.target_end_date),
        "owner_id": record.owner_id,
        "owner_first_name": owner.first_name if owner else None,
        "owner_last_name": owner.last_name if owner else None,
        "owner_email": owner.email if owner else None,
        "client_id": client_id,
        "synced_at": synced_at,
    }


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect not in _INSERTS:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")
    return _INSERTS[dialect]


class ProjectReconciler:
    """
    Writes enriched records into ``clients`` and ``projects``.

    Features:
    - Status normalization (Open/Closed)
    - Client find-or-create by company id, no update path
    - Project upsert keyed on service id, last sync wins
    - Per-record transactions and error isolation
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        error_tracker: Optional[ErrorTracker] = None,
        closed_status: str = DEFAULT_CLOSED_STATUS,
    ):
        """
        Initialize reconciler.

        Args:
            session_factory: Factory for per-record sessions
            error_tracker: Tracker receiving per-record reconciliation errors
            closed_status: Remote status value that maps to Closed
        """
        self.session_factory = session_factory
        self.error_tracker = error_tracker or ErrorTracker()
        self.closed_status = closed_status

    async def reconcile(self, records: List[EnrichedRecord]) -> ReconcileResult:
        """
        Reconcile enriched records sequentially.

        Args:
            records: Enriched records, in the order they should be written

        Returns:
            ReconcileResult with the number of projects written and failed ids
        """
        result = ReconcileResult()
        synced_at = datetime.now(timezone.utc)

        logger.info(f"💾 Reconciling {len(records)} projects")

        for item in records:
            try:
                await self._reconcile_one(item, synced_at)
                result.updated += 1
            except Exception as e:
                self.error_tracker.track_record_error(
                    item.record.id,
                    STAGE_RECONCILIATION,
                    e,
                    context={"company_id": item.company.id},
                )
                result.failed_ids.append(item.record.id)

        logger.info(f"✅ Reconciled {result.updated} projects, {len(result.failed_ids)} failed")
        return result

    async def _reconcile_one(self, item: EnrichedRecord, synced_at: datetime) -> None:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    client_id = await self.resolve_client(session, item.company)
                    await self.upsert_project(session, item, client_id, synced_at)
            except SQLAlchemyError as e:
                raise ReconciliationError(item.record.id, str(e.orig) if getattr(e, "orig", None) else str(e)) from e

    async def resolve_client(self, session: AsyncSession, company: RemoteCompany) -> uuid.UUID:
        """
        Find-or-create the client for a company id.

        Existing rows are returned untouched. A concurrent insert of the same
        company is absorbed by ON CONFLICT DO NOTHING followed by a re-read.
        """
        client_id = await self._find_client_id(session, company.id)
        if client_id is not None:
            return client_id

        insert = _insert_for(session)
        stmt = insert(Client).values(
            id=uuid.uuid4(),
            hubspot_company_id=company.id,
            name=company.name,
            domain=company.domain,
        ).on_conflict_do_nothing(index_elements=[Client.hubspot_company_id])
        await session.execute(stmt)
        logger.info(f"🆕 Created client for company {company.id} ({company.name})")

        client_id = await self._find_client_id(session, company.id)
        if client_id is None:
            raise ReconciliationError(company.id, f"Client for company {company.id} missing after insert")
        return client_id

    async def _find_client_id(self, session: AsyncSession, company_id: str) -> Optional[uuid.UUID]:
        result = await session.execute(
            select(Client.id).where(Client.hubspot_company_id == company_id)
        )
        return result.scalar_one_or_none()

    async def upsert_project(
        self,
        session: AsyncSession,
        item: EnrichedRecord,
        client_id: uuid.UUID,
        synced_at: datetime,
    ) -> None:
        """Single-row upsert keyed on the service id."""
        row = build_project_row(item, client_id, self.closed_status, synced_at)
        insert = _insert_for(session)
        stmt = insert(Project).values(id=uuid.uuid4(), **row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Project.hubspot_service_id],
            set_={col: stmt.excluded[col] for col in PROJECT_UPSERT_COLUMNS},
        )
        await session.execute(stmt)
