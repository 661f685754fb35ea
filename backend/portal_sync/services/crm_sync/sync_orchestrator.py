"""
CRM Sync Orchestrator.

Wires collection, enrichment and reconciliation into one run and builds
the run summary. Retries live in the HubSpot client, not here.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal_sync.core.exceptions import CollectionError
from portal_sync.core.interfaces.crm import CRMSource, RemoteRecord
from portal_sync.services.crm_sync.enrichment import EnrichmentFanout, RunCaches
from portal_sync.services.crm_sync.error_tracker import (
    STAGE_ENRICHMENT,
    STAGE_RECONCILIATION,
    ErrorTracker,
)
from portal_sync.services.crm_sync.params import SyncParams
from portal_sync.services.crm_sync.reconciler import DEFAULT_CLOSED_STATUS, ProjectReconciler
from portal_sync.services.crm_sync.types import InvalidRecord
from portal_sync.services.sync_status import SyncPhase, SyncStatusTracker, sync_status

logger = logging.getLogger(__name__)


@dataclass
class SyncRunResult:
    """Summary of one sync run. Not persisted."""
    fetched: int
    valid: int
    invalid: int
    updated: int
    warnings: List[InvalidRecord] = field(default_factory=list)
    enrichment_errors: List[Dict[str, str]] = field(default_factory=list)
    project_errors: List[Dict[str, str]] = field(default_factory=list)
    elapsed_ms: int = 0
    params: Optional[SyncParams] = None

    @property
    def success(self) -> bool:
        """True only when no record failed enrichment or reconciliation."""
        return not self.project_errors and not self.enrichment_errors

    @property
    def reconciliation_attempts(self) -> int:
        return self.updated + len(self.project_errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "fetched": self.fetched,
            "valid": self.valid,
            "invalid": self.invalid,
            "updated": self.updated,
            "warnings": [{"id": w.id, "companyCount": w.company_count} for w in self.warnings],
            "enrichmentErrors": list(self.enrichment_errors),
            "projectErrors": list(self.project_errors),
            "elapsedMs": self.elapsed_ms,
            "params": self.params.as_camel_dict() if self.params else None,
        }


class SyncOrchestrator:
    """
    Orchestrates one HubSpot -> portal sync run.

    Responsibilities:
    - Collect records (failure aborts the run)
    - Enrich eligible records with run-scoped caches
    - Reconcile enriched records into storage
    - Aggregate counts, warnings and per-record errors
    """

    def __init__(
        self,
        source: CRMSource,
        session_factory: async_sessionmaker[AsyncSession],
        closed_status: str = DEFAULT_CLOSED_STATUS,
        status_tracker: Optional[SyncStatusTracker] = None,
    ):
        """
        Initialize CRM sync orchestrator.

        Args:
            source: Remote CRM source
            session_factory: Factory for storage sessions
            closed_status: Remote status value that maps to Closed
            status_tracker: Progress tracker (process-wide singleton by default)
        """
        self.source = source
        self.session_factory = session_factory
        self.closed_status = closed_status
        self.status_tracker = status_tracker or sync_status

    async def run(self, params: SyncParams) -> SyncRunResult:
        """
        Execute one sync run.

        Workflow:
        1. Collect all pages (bounded by params.max_pages)
        2. Partition + enrich with params.concurrency workers
        3. Reconcile enriched records
        4. Build summary

        Args:
            params: Clamped run parameters

        Returns:
            SyncRunResult

        Raises:
            CollectionError: If the listing could not be fully retrieved
        """
        started = time.perf_counter()
        provider_name = self.source.get_provider_name()
        error_tracker = ErrorTracker()

        logger.info(f"🔄 CRM Sync: Starting synchronization with {provider_name} ({params})")
        self.status_tracker.start_run(params.as_dict())

        # === PHASE 1: Collect ===
        try:
            records = await self.source.collect_records(
                page_size=params.page_size,
                max_pages=params.max_pages,
            )
        except Exception as e:
            logger.error(f"❌ CRM sync aborted during collection: {e}", exc_info=True)
            self.status_tracker.complete_run(error=str(e))
            raise CollectionError(f"Failed to collect records from {provider_name}: {e}") from e
        except BaseException as e:
            self.status_tracker.complete_run(error=str(e) or e.__class__.__name__)
            raise

        logger.info(f"✅ Collected {len(records)} records from {provider_name}")

        try:
            result = await self._enrich_and_reconcile(records, params, error_tracker, started)
        except BaseException as e:
            # Cancellation included: the tracker must not stay in a running phase
            self.status_tracker.complete_run(error=str(e) or e.__class__.__name__)
            raise

        self.status_tracker.complete_run(summary=result.to_dict())
        logger.info(
            f"{'✅' if result.success else '⚠️'} Sync finished in {result.elapsed_ms}ms: "
            f"fetched={result.fetched} valid={result.valid} invalid={result.invalid} "
            f"updated={result.updated} enrichment_errors={len(result.enrichment_errors)} "
            f"project_errors={len(result.project_errors)}"
        )
        return result

    async def _enrich_and_reconcile(
        self,
        records: List[RemoteRecord],
        params: SyncParams,
        error_tracker: ErrorTracker,
        started: float,
    ) -> SyncRunResult:
        # === PHASE 2: Enrich ===
        self.status_tracker.update_phase(
            SyncPhase.ENRICHING, f"Enriching {len(records)} records..."
        )
        fanout = EnrichmentFanout(self.source, error_tracker)
        enrichment = await fanout.enrich(records, params.concurrency, caches=RunCaches())

        # === PHASE 3: Reconcile ===
        self.status_tracker.update_phase(
            SyncPhase.RECONCILING, f"Writing {len(enrichment.enriched)} projects..."
        )
        reconciler = ProjectReconciler(
            self.session_factory,
            error_tracker=error_tracker,
            closed_status=self.closed_status,
        )
        reconciled = await reconciler.reconcile(enrichment.enriched)

        # === PHASE 4: Build Result ===
        result = SyncRunResult(
            fetched=len(records),
            valid=len(records) - len(enrichment.invalid),
            invalid=len(enrichment.invalid),
            updated=reconciled.updated,
            warnings=enrichment.invalid,
            enrichment_errors=[e.as_summary() for e in error_tracker.errors_for(STAGE_ENRICHMENT)],
            project_errors=[e.as_summary() for e in error_tracker.errors_for(STAGE_RECONCILIATION)],
            elapsed_ms=int((time.perf_counter() - started) * 1000),
            params=params,
        )
        return result
