"""
Error Tracker for CRM Sync Operations.

Collects per-record failures so a run can finish and report them instead
of aborting on the first bad record.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STAGE_ENRICHMENT = "enrichment"
STAGE_RECONCILIATION = "reconciliation"


@dataclass
class RecordError:
    """Details about a single record failure."""
    record_id: str
    stage: str
    error: str
    context: Dict[str, Any] = field(default_factory=dict)

    def as_summary(self) -> Dict[str, str]:
        return {"id": self.record_id, "error": self.error}


class ErrorTracker:
    """
    Tracks record-scoped errors during one sync run.

    Features:
    - Stage tagging (enrichment / reconciliation)
    - Detailed context for debugging
    """

    def __init__(self):
        """Initialize error tracker."""
        self.record_errors: List[RecordError] = []

    def track_record_error(
        self,
        record_id: str,
        stage: str,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
    ) -> RecordError:
        """
        Track an individual record error.

        Args:
            record_id: CRM id of the failed record
            stage: Pipeline stage the error happened in
            error: Exception that occurred
            context: Additional context (e.g., company id)
        """
        record_error = RecordError(
            record_id=record_id,
            stage=stage,
            error=str(error) or error.__class__.__name__,
            context=context or {},
        )
        self.record_errors.append(record_error)

        logger.error(
            f"❌ {stage} error for record {record_id}: {record_error.error}",
            extra={"record_id": record_id, "stage": stage, "context": context},
        )
        return record_error

    def errors_for(self, stage: str) -> List[RecordError]:
        """All errors tracked for one stage, in the order they happened."""
        return [err for err in self.record_errors if err.stage == stage]
