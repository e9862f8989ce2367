# ============================================================================
# src/health_ingestion/core/__init__.py
# ============================================================================
"""
Core data model, consolidation and job tracking.

The pipeline lives in core.pipeline and is imported from there directly
(it depends on the extractors, which depend on core.models).
"""

from .models import (
    BacterialEntry,
    FungalEntry,
    Biomarker,
    PageExtraction,
    ConsolidatedReport,
    dedupe_by_key,
    sort_by_percentage,
)
from .consolidator import Consolidator
from .job_store import (
    JobStore,
    InMemoryJobStore,
    SQLiteJobStore,
    new_job,
    JOB_PENDING,
    JOB_PROCESSING,
    JOB_COMPLETED,
    JOB_FAILED,
)

__all__ = [
    "BacterialEntry",
    "FungalEntry",
    "Biomarker",
    "PageExtraction",
    "ConsolidatedReport",
    "dedupe_by_key",
    "sort_by_percentage",
    "Consolidator",
    "JobStore",
    "InMemoryJobStore",
    "SQLiteJobStore",
    "new_job",
    "JOB_PENDING",
    "JOB_PROCESSING",
    "JOB_COMPLETED",
    "JOB_FAILED",
]
