# ============================================================================
# src/health_ingestion/constants/data_types.py
# ============================================================================
"""
WHOOP Data Types
- Synced record collections and their API endpoints
- Dedup key field and storage file per type
"""

from enum import Enum


class WhoopDataType(str, Enum):
    """
    Record collections kept in the incremental store.
    Each maps to one WHOOP endpoint and one JSON file.
    """
    SLEEP = "sleep"
    STRAIN = "strain"
    RECOVERY = "recovery"

    @property
    def endpoint(self) -> str:
        return ENDPOINTS[self]

    @property
    def id_field(self) -> str:
        # Recovery records are keyed by the cycle they belong to
        return "cycle_id" if self is WhoopDataType.RECOVERY else "id"

    @property
    def file_name(self) -> str:
        return f"{self.value}-data.json"


ENDPOINTS = {
    WhoopDataType.SLEEP: "activity/sleep",
    WhoopDataType.STRAIN: "activity/workout",
    WhoopDataType.RECOVERY: "recovery",
}

# Sync order for an all-type run
SYNC_ORDER = (WhoopDataType.SLEEP, WhoopDataType.STRAIN, WhoopDataType.RECOVERY)

METADATA_FILE_NAME = "metadata.json"
