# ============================================================================
# src/health_ingestion/sync/record_merger.py
# ============================================================================
"""
Record Merging

Pure functions for combining stored WHOOP records with freshly fetched ones:
- dedupe by id (cycle_id for recovery); stored records win, so a record
  already on disk is never altered by a re-fetch
- sort newest first by created_at, then start, then cycle_id
- date range and incremental start parameter
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..constants.data_types import WhoopDataType

TIMESTAMP_FIELDS = ("created_at", "start")


@dataclass
class MergeResult:
    records: List[Dict[str, Any]] = field(default_factory=list)
    added: int = 0
    duplicates: int = 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp ("...Z" accepted). Naive values are UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix: 2024-01-15T07:30:00.000Z"""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def record_timestamp(record: Dict[str, Any]) -> Optional[datetime]:
    for name in TIMESTAMP_FIELDS:
        parsed = parse_timestamp(record.get(name))
        if parsed is not None:
            return parsed
    return None


def record_id(record: Dict[str, Any], data_type: WhoopDataType) -> Any:
    return record.get(data_type.id_field)


def sort_key(record: Dict[str, Any]) -> float:
    """
    Epoch seconds used for newest-first ordering.

    created_at / start when parseable; otherwise a numeric cycle_id read as
    epoch milliseconds; records with neither sort last.
    """
    timestamp = record_timestamp(record)
    if timestamp is not None:
        return timestamp.timestamp()

    cycle_id = record.get("cycle_id")
    if isinstance(cycle_id, (int, float)) and not isinstance(cycle_id, bool):
        return cycle_id / 1000.0

    return -math.inf


def sort_records(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first; ties keep their input order."""
    return sorted(records, key=sort_key, reverse=True)


def merge_records(
    existing: Iterable[Dict[str, Any]],
    fetched: Iterable[Dict[str, Any]],
    data_type: WhoopDataType,
) -> MergeResult:
    """
    Merge fetched records into the stored ones.

    Stored records come first, so on an id collision the stored copy is kept.
    Records without an id cannot be matched and are always kept.

    Returns:
        MergeResult with the sorted records and how many ids were new
    """
    seen = set()
    merged = []
    result = MergeResult()

    for record in existing:
        key = record_id(record, data_type)
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        merged.append(record)

    for record in fetched:
        key = record_id(record, data_type)
        if key is not None:
            if key in seen:
                result.duplicates += 1
                continue
            seen.add(key)
        merged.append(record)
        result.added += 1

    result.records = sort_records(merged)
    return result


def _display_timestamp(record: Dict[str, Any]) -> Optional[str]:
    for name in TIMESTAMP_FIELDS:
        if record.get(name):
            return record[name]
    return None


def compute_date_range(sorted_records: List[Dict[str, Any]]) -> Dict[str, Optional[str]]:
    """Earliest/latest timestamps of newest-first records."""
    if not sorted_records:
        return {"earliest": None, "latest": None}
    return {
        "earliest": _display_timestamp(sorted_records[-1]),
        "latest": _display_timestamp(sorted_records[0]),
    }


def latest_timestamp(records: Iterable[Dict[str, Any]]) -> Optional[datetime]:
    timestamps = [ts for ts in (record_timestamp(r) for r in records) if ts is not None]
    return max(timestamps) if timestamps else None


def next_start_param(records: Iterable[Dict[str, Any]]) -> Optional[str]:
    """
    ``start`` for the next incremental fetch: latest stored timestamp + 1s.

    None when nothing is stored (full historical pull).
    """
    latest = latest_timestamp(records)
    if latest is None:
        return None
    return format_timestamp(latest + timedelta(seconds=1))
