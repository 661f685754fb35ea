"""
Real-time Sync Status Tracking.
Allows monitoring of the current sync run and the last run summary via API.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SyncPhase(str, Enum):
    """Sync phases."""
    IDLE = "idle"
    COLLECTING = "collecting"
    ENRICHING = "enriching"
    RECONCILING = "reconciling"
    COMPLETED = "completed"
    ERROR = "error"


class SyncStatusTracker:
    """
    Singleton to track sync status across requests.

    Holds progress counters and the last summary only, never CRM data.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize status tracking."""
        self.status: Dict[str, Any] = {
            "phase": SyncPhase.IDLE,
            "started_at": None,
            "current_step": "Waiting to start...",
            "completed_at": None,
            "error": None,
            "last_result": None,
        }

    def reset(self):
        """Back to idle, forgetting the last run."""
        self._initialize()

    def start_run(self, params: Dict[str, int]):
        """Mark a run as started."""
        self.status.update({
            "phase": SyncPhase.COLLECTING,
            "started_at": datetime.now(timezone.utc).isoformat(),
            "current_step": f"Starting HubSpot sync {params}...",
            "completed_at": None,
            "error": None,
        })
        logger.info("🚀 SYNC STARTED - Status tracking enabled")

    def update_phase(self, phase: SyncPhase, step: str):
        """Update current phase."""
        self.status["phase"] = phase
        self.status["current_step"] = step
        logger.info(f"📍 PHASE: {phase.value.upper()} - {step}")

    def complete_run(self, summary: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        """Mark the run as finished, successfully or not."""
        self.status["phase"] = SyncPhase.ERROR if error else SyncPhase.COMPLETED
        self.status["completed_at"] = datetime.now(timezone.utc).isoformat()
        self.status["error"] = error
        if summary is not None:
            self.status["last_result"] = summary

        if error:
            self.status["current_step"] = "❌ Sync failed"
            logger.error(f"❌ SYNC FAILED: {error}")
        else:
            self.status["current_step"] = "✅ Sync completed"
            logger.info("✅ SYNC COMPLETED")

    def get_status(self) -> Dict[str, Any]:
        """Get current status."""
        return self.status.copy()

    def is_running(self) -> bool:
        """Check if a run is currently in progress."""
        return self.status["phase"] not in [SyncPhase.IDLE, SyncPhase.COMPLETED, SyncPhase.ERROR]


# Singleton instance
sync_status = SyncStatusTracker()
