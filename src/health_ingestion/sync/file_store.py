# ============================================================================
# src/health_ingestion/sync/file_store.py
# ============================================================================
"""
WHOOP File Store

One JSON file per data type plus a shared metadata.json:

    <data_dir>/sleep-data.json     {records, lastUpdate, totalCount, date_range, ...}
    <data_dir>/strain-data.json
    <data_dir>/recovery-data.json
    <data_dir>/metadata.json       {lastFetch: {type: ts}, dateRanges: {type: range}}

Reads of a missing or corrupt file give an empty default. Write failures are
logged and reported as False, never raised.

lock(data_type) returns the per-type asyncio.Lock that guards one
read-merge-write cycle within this process. Writers in other processes are
not coordinated.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..constants.data_types import WhoopDataType, SYNC_ORDER, METADATA_FILE_NAME
from src.utils.file_utils import ensure_directory, read_json, write_json

logger = logging.getLogger(__name__)


def empty_data() -> Dict[str, Any]:
    return {
        "records": [],
        "lastUpdate": None,
        "totalCount": 0,
        "date_range": {"earliest": None, "latest": None},
    }


def empty_metadata() -> Dict[str, Any]:
    return {"lastFetch": {}, "dateRanges": {}}


class FileStore:
    """
    JSON persistence for synced records.
    """

    def __init__(self, data_dir: Union[Path, str]):
        self.data_dir = Path(data_dir)
        self.metadata_path = self.data_dir / METADATA_FILE_NAME
        self._locks: Dict[WhoopDataType, asyncio.Lock] = {}
        ensure_directory(self.data_dir)

    def path_for(self, data_type: WhoopDataType) -> Path:
        return self.data_dir / WhoopDataType(data_type).file_name

    def lock(self, data_type: WhoopDataType) -> asyncio.Lock:
        data_type = WhoopDataType(data_type)
        if data_type not in self._locks:
            self._locks[data_type] = asyncio.Lock()
        return self._locks[data_type]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def _read(self, path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        if not path.exists():
            return default

        try:
            data = read_json(path)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Could not read {path}, using empty default: {e}")
            return default

        if not isinstance(data, dict):
            logger.error(f"Unexpected content in {path}, using empty default")
            return default

        return data

    def read_data(self, data_type: WhoopDataType) -> Dict[str, Any]:
        data = self._read(self.path_for(data_type), empty_data())
        if not isinstance(data.get("records"), list):
            data["records"] = []
        data.setdefault("totalCount", len(data["records"]))
        data.setdefault("lastUpdate", None)
        data.setdefault("date_range", {"earliest": None, "latest": None})
        return data

    def read_metadata(self) -> Dict[str, Any]:
        metadata = self._read(self.metadata_path, empty_metadata())
        for key in ("lastFetch", "dateRanges"):
            if not isinstance(metadata.get(key), dict):
                if key in metadata:
                    logger.warning(f"Ignoring malformed {key} in {self.metadata_path}")
                metadata[key] = {}
        return metadata

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def _write(self, path: Path, data: Dict[str, Any]) -> bool:
        try:
            write_json(data, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write {path}: {e}")
            return False
        return True

    def write_data(self, data_type: WhoopDataType, data: Dict[str, Any]) -> bool:
        ok = self._write(self.path_for(data_type), data)
        if ok:
            logger.info(f"Saved {data.get('totalCount', 0)} {WhoopDataType(data_type).value} records")
        return ok

    def update_metadata(
        self,
        data_type: WhoopDataType,
        last_fetch: str,
        date_range: Optional[Dict[str, Any]]
    ) -> bool:
        data_type = WhoopDataType(data_type)
        metadata = self.read_metadata()
        metadata["lastFetch"][data_type.value] = last_fetch
        metadata["dateRanges"][data_type.value] = date_range
        return self._write(self.metadata_path, metadata)

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------
    def summary(self) -> Dict[str, Dict[str, Any]]:
        """Per-type record count, last update, date range and hasData."""
        result = {}
        for data_type in SYNC_ORDER:
            data = self.read_data(data_type)
            count = len(data["records"])
            result[data_type.value] = {
                "recordCount": count,
                "lastUpdate": data.get("lastUpdate"),
                "dateRange": data.get("date_range"),
                "hasData": count > 0,
            }
        return result
