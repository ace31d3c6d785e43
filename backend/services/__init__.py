"""Services package - reconciliation, storage and ingestion."""

from .reconciliation_service import normalize, reconcile, find_fleet_match
from .search_index import build_search_index
from .storage_service import StorageService
from .audit_service import AuditService
from .pipeline_service import PipelineService

__all__ = [
    "normalize",
    "reconcile",
    "find_fleet_match",
    "build_search_index",
    "StorageService",
    "AuditService",
    "PipelineService",
]
