# ============================================================================
# FILE: tests/unit/test_record_merger.py
# ============================================================================
"""
Unit tests for WHOOP record merging
"""

from datetime import datetime, timezone

from src.health_ingestion.constants import WhoopDataType
from src.health_ingestion.sync import (
    compute_date_range,
    format_timestamp,
    merge_records,
    next_start_param,
    parse_timestamp,
    sort_records,
)


def test_parse_timestamp_z_suffix():
    """Test 'Z' and naive timestamps parse as UTC"""
    assert parse_timestamp("2024-01-15T07:30:00.000Z") == datetime(2024, 1, 15, 7, 30, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T07:30:00") == datetime(2024, 1, 15, 7, 30, tzinfo=timezone.utc)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_format_timestamp():
    """Test millisecond Z format"""
    value = datetime(2024, 1, 15, 7, 30, 1, 250000, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2024-01-15T07:30:01.250Z"


def test_next_start_param_is_latest_plus_one_second():
    """Test start = newest stored timestamp + 1s"""
    records = [
        {"id": 1, "created_at": "2024-01-14T22:00:00.000Z"},
        {"id": 2, "created_at": "2024-01-15T07:30:00.000Z"},
        {"id": 3, "start": "2024-01-13T22:00:00.000Z"},
    ]
    assert next_start_param(records) == "2024-01-15T07:30:01.000Z"


def test_next_start_param_empty():
    """Test nothing stored means a full pull"""
    assert next_start_param([]) is None
    assert next_start_param([{"id": 1}]) is None


def test_merge_dedup_by_id():
    """Test length is stored count plus genuinely new ids"""
    existing = [
        {"id": 1, "created_at": "2024-01-01T00:00:00.000Z"},
        {"id": 2, "created_at": "2024-01-02T00:00:00.000Z"},
    ]
    fetched = [
        {"id": 2, "created_at": "2024-01-02T00:00:00.000Z", "changed": True},
        {"id": 3, "created_at": "2024-01-03T00:00:00.000Z"},
    ]

    result = merge_records(existing, fetched, WhoopDataType.SLEEP)

    assert len(result.records) == 3
    assert result.added == 1
    assert result.duplicates == 1
    assert [r["id"] for r in result.records] == [3, 2, 1]


def test_merge_keeps_stored_copy():
    """Test a stored record is never altered by a re-fetch"""
    existing = [{"id": 7, "created_at": "2024-01-01T00:00:00.000Z", "score": 1}]
    fetched = [{"id": 7, "created_at": "2024-01-01T00:00:00.000Z", "score": 99}]

    result = merge_records(existing, fetched, WhoopDataType.STRAIN)

    assert result.records == existing


def test_merge_recovery_uses_cycle_id():
    """Test recovery records dedupe on cycle_id"""
    existing = [{"cycle_id": 100, "created_at": "2024-01-01T00:00:00.000Z"}]
    fetched = [
        {"cycle_id": 100, "created_at": "2024-01-01T00:00:00.000Z"},
        {"cycle_id": 101, "created_at": "2024-01-02T00:00:00.000Z"},
    ]

    result = merge_records(existing, fetched, WhoopDataType.RECOVERY)

    assert [r["cycle_id"] for r in result.records] == [101, 100]


def test_merge_keeps_records_without_id():
    """Test records without an id cannot be matched and are kept"""
    result = merge_records([{"created_at": "2024-01-01T00:00:00.000Z"}],
                           [{"created_at": "2024-01-01T00:00:00.000Z"}],
                           WhoopDataType.SLEEP)
    assert len(result.records) == 2


def test_sort_records_fallbacks():
    """Test created_at, then start, then cycle_id ordering"""
    records = [
        {"id": "a", "start": "2024-01-01T00:00:00.000Z"},
        {"id": "b", "created_at": "2024-01-03T00:00:00.000Z"},
        {"id": "c"},
        {"id": "d", "cycle_id": 1704153600000},  # 2024-01-02 in epoch ms
    ]

    assert [r["id"] for r in sort_records(records)] == ["b", "d", "a", "c"]


def test_compute_date_range():
    """Test earliest/latest of newest-first records"""
    records = sort_records([
        {"id": 1, "created_at": "2024-01-01T00:00:00.000Z"},
        {"id": 2, "created_at": "2024-01-05T00:00:00.000Z"},
    ])

    assert compute_date_range(records) == {
        "earliest": "2024-01-01T00:00:00.000Z",
        "latest": "2024-01-05T00:00:00.000Z",
    }
    assert compute_date_range([]) == {"earliest": None, "latest": None}
