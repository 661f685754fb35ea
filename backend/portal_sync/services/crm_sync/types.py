"""
Value types passed between the sync stages.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from portal_sync.core.interfaces.crm import RemoteCompany, RemoteOwner, RemoteRecord


@dataclass(frozen=True)
class EnrichedRecord:
    """A service record with its one company and optional owner resolved."""
    record: RemoteRecord
    company: RemoteCompany
    owner: Optional[RemoteOwner] = None


@dataclass(frozen=True)
class InvalidRecord:
    """A record excluded from reconciliation because it has company-count != 1."""
    id: str
    company_count: int


@dataclass
class EnrichmentResult:
    """
    Output of the enrichment fan-out.

    ``enriched`` keeps the input order of eligible records; records whose
    lookups failed are left out of it and listed in ``failed_ids``.
    """
    enriched: List[EnrichedRecord] = field(default_factory=list)
    invalid: List[InvalidRecord] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Output of the reconciler."""
    updated: int = 0
    failed_ids: List[str] = field(default_factory=list)
