"""
Enrichment Fan-out for CRM Sync.

Resolves each eligible record's company and owner with a bounded worker
pool, memoizing lookups for the lifetime of one run.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from portal_sync.core.exceptions import EnrichmentError
from portal_sync.core.interfaces.crm import CRMSource, RemoteCompany, RemoteOwner, RemoteRecord
from portal_sync.services.crm_sync.error_tracker import STAGE_ENRICHMENT, ErrorTracker
from portal_sync.services.crm_sync.types import EnrichedRecord, EnrichmentResult, InvalidRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RunCaches:
    """
    Owner and company lookups for one run, keyed by external id.

    Values are the lookup tasks themselves, so concurrent workers asking for
    the same id share one remote call. Build a fresh instance per run and
    drop it when the run ends; there is no expiry.
    """
    owners: Dict[str, "asyncio.Task[RemoteOwner]"] = field(default_factory=dict)
    companies: Dict[str, "asyncio.Task[RemoteCompany]"] = field(default_factory=dict)


async def _memoized(
    cache: Dict[str, "asyncio.Task[T]"],
    key: str,
    fetch: Callable[[str], Awaitable[T]],
) -> T:
    task = cache.get(key)
    if task is None:
        task = asyncio.ensure_future(fetch(key))
        cache[key] = task
    # shield: a cancelled waiter must not cancel the lookup other records share
    return await asyncio.shield(task)


def partition_records(records: List[RemoteRecord]) -> Tuple[List[RemoteRecord], List[InvalidRecord]]:
    """Splits records into exactly-one-company (eligible) and the rest (invalid)."""
    eligible: List[RemoteRecord] = []
    invalid: List[InvalidRecord] = []

    for record in records:
        if record.company_count == 1:
            eligible.append(record)
        else:
            invalid.append(InvalidRecord(id=record.id, company_count=record.company_count))

    return eligible, invalid


class EnrichmentFanout:
    """
    Attaches owner and company to records.

    Features:
    - Up-front partition; invalid records cost no remote calls
    - Fixed-size worker pool pulling from a shared index
    - Owner and company resolved in parallel per record
    - Isolated failures: one failed lookup fails one record only
    - Output keeps input order
    """

    def __init__(self, source: CRMSource, error_tracker: Optional[ErrorTracker] = None):
        """
        Initialize enrichment fan-out.

        Args:
            source: CRM source used for owner/company lookups
            error_tracker: Tracker receiving per-record enrichment errors
        """
        self.source = source
        self.error_tracker = error_tracker or ErrorTracker()

    async def enrich(
        self,
        records: List[RemoteRecord],
        concurrency: int,
        caches: Optional[RunCaches] = None,
    ) -> EnrichmentResult:
        """
        Enrich records with a bounded number of concurrent workers.

        Args:
            records: Records from the collector
            concurrency: Upper bound on simultaneously processed records
            caches: Run-scoped lookup caches; a fresh one is used when omitted

        Returns:
            EnrichmentResult
        """
        caches = caches if caches is not None else RunCaches()
        eligible, invalid = partition_records(records)

        for item in invalid:
            logger.warning(f"⚠️ Skipping service {item.id}: expected 1 company, found {item.company_count}")

        slots: List[Optional[EnrichedRecord]] = [None] * len(eligible)
        failures: List[Optional[Exception]] = [None] * len(eligible)
        next_index = 0

        async def worker() -> None:
            nonlocal next_index
            while next_index < len(eligible):
                index = next_index
                next_index += 1
                try:
                    slots[index] = await self._enrich_one(eligible[index], caches)
                except Exception as e:
                    failures[index] = e

        pool_size = min(max(1, concurrency), len(eligible))
        logger.info(f"🔎 Enriching {len(eligible)} services with {pool_size} workers")
        await asyncio.gather(*(worker() for _ in range(pool_size)))

        result = EnrichmentResult(invalid=invalid)
        for record, enriched, error in zip(eligible, slots, failures):
            if error is not None:
                self.error_tracker.track_record_error(
                    record.id,
                    STAGE_ENRICHMENT,
                    error,
                    context={"company_id": record.company_ids[0], "owner_id": record.owner_id},
                )
                result.failed_ids.append(record.id)
            elif enriched is not None:
                result.enriched.append(enriched)

        logger.info(
            f"✅ Enrichment done: {len(result.enriched)} enriched, "
            f"{len(result.invalid)} invalid, {len(result.failed_ids)} failed "
            f"({len(caches.owners)} owners, {len(caches.companies)} companies looked up)"
        )
        return result

    async def _enrich_one(self, record: RemoteRecord, caches: RunCaches) -> EnrichedRecord:
        company_lookup = _memoized(caches.companies, record.company_ids[0], self.source.get_company)
        if record.owner_id:
            owner_lookup = _memoized(caches.owners, record.owner_id, self.source.get_owner)
        else:
            owner_lookup = _no_owner()

        company, owner = await asyncio.gather(company_lookup, owner_lookup, return_exceptions=True)

        for outcome in (company, owner):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                raise EnrichmentError(record.id, str(outcome) or outcome.__class__.__name__) from outcome

        return EnrichedRecord(record=record, company=company, owner=owner)


async def _no_owner() -> None:
    return None
