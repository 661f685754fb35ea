"""
Typed errors for the CRM sync pipeline.

Each failure site maps to one class so callers branch on type instead of
matching message strings.
"""


class SyncError(Exception):
    """Base class for all sync pipeline errors."""


class CRMConfigurationError(SyncError):
    """Raised at startup when a required credential or connection setting is missing."""


class CollectionError(SyncError):
    """Raised when the paginated listing cannot be fully retrieved. Aborts the run."""


class EnrichmentError(SyncError):
    """Raised when an owner or company lookup fails for one record."""

    def __init__(self, record_id: str, message: str):
        super().__init__(f"Enrichment failed for {record_id}: {message}")
        self.record_id = record_id


class ReconciliationError(SyncError):
    """Raised when a record cannot be written to local storage."""

    def __init__(self, record_id: str, message: str):
        super().__init__(message)
        self.record_id = record_id
