"""
CRM Sync Services.

Modular services for the HubSpot -> portal synchronization pipeline.
"""

from .enrichment import EnrichmentFanout, RunCaches, partition_records
from .error_tracker import ErrorTracker, RecordError
from .params import SyncParams, clamp_param
from .reconciler import ProjectReconciler, map_status
from .sync_orchestrator import SyncOrchestrator, SyncRunResult
from .types import EnrichedRecord, EnrichmentResult, InvalidRecord, ReconcileResult

__all__ = [
    "EnrichedRecord",
    "EnrichmentFanout",
    "EnrichmentResult",
    "ErrorTracker",
    "InvalidRecord",
    "ProjectReconciler",
    "ReconcileResult",
    "RecordError",
    "RunCaches",
    "SyncOrchestrator",
    "SyncParams",
    "SyncRunResult",
    "clamp_param",
    "map_status",
    "partition_records",
]
