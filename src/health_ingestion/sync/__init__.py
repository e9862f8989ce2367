"""
WHOOP incremental sync: fetch, merge and persist per data type.
"""

from .record_merger import (
    MergeResult,
    merge_records,
    sort_records,
    compute_date_range,
    next_start_param,
    parse_timestamp,
    format_timestamp,
)
from .file_store import FileStore, empty_data, empty_metadata
from .incremental_fetcher import IncrementalFetcher, FetchResult
from .sync_service import SyncService, resolve_access_token, parse_data_types

__all__ = [
    'MergeResult',
    'merge_records',
    'sort_records',
    'compute_date_range',
    'next_start_param',
    'parse_timestamp',
    'format_timestamp',
    'FileStore',
    'empty_data',
    'empty_metadata',
    'IncrementalFetcher',
    'FetchResult',
    'SyncService',
    'resolve_access_token',
    'parse_data_types',
]
