# ============================================================================
# src/health_ingestion/sync/sync_service.py
# ============================================================================
"""
WHOOP Sync Service

Drives IncrementalFetcher across data types and applies the degradation
policy:

- AuthenticationError is fatal for the whole sync (re-auth required)
- any other SyncError for one type falls back to that type's stored data,
  annotated with ``error``; remaining types still sync
- rate-limit exhaustion additionally sets ``rateLimited`` and the number of
  records that had been fetched before giving up (not persisted)

Types run strictly one after another with INTER_TYPE_DELAY_SECONDS between.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

from ..config import SyncSettings, base_settings, sync_settings
from ..constants.data_types import SYNC_ORDER, WhoopDataType
from .file_store import FileStore
from .incremental_fetcher import IncrementalFetcher
from src.utils.exceptions import (
    AuthenticationError,
    RateLimitExceededError,
    SyncError,
)

logger = logging.getLogger(__name__)


def resolve_access_token(
    cookie_token: Optional[str] = None,
    authorization: Optional[str] = None,
    settings: Optional[SyncSettings] = None,
) -> Optional[str]:
    """
    Pick the bearer token for a sync request.

    Order: ``access_token`` cookie, ``Authorization: Bearer`` header,
    WHOOP_ACCESS_TOKEN setting.
    """
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()

    if authorization:
        scheme, _, value = authorization.strip().partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()

    settings = settings or sync_settings
    return settings.WHOOP_ACCESS_TOKEN or None


def parse_data_types(value: Optional[str]) -> Sequence[WhoopDataType]:
    """
    ``None``/``"all"`` -> every type in sync order; otherwise one type.

    Raises:
        ValueError: unknown type name
    """
    if value is None or value.strip().lower() in ("", "all"):
        return SYNC_ORDER
    return (WhoopDataType(value.strip().lower()),)


class SyncService:
    """
    Sequential multi-type WHOOP sync over one FileStore.
    """

    def __init__(
        self,
        store: Optional[FileStore] = None,
        fetcher: Optional[IncrementalFetcher] = None,
        settings: Optional[SyncSettings] = None,
        sleep=None,
    ):
        self.logger = logging.getLogger(__name__)
        self.settings = settings or sync_settings
        self.store = store or FileStore(base_settings.WHOOP_DATA_DIR)
        self._sleep = sleep or asyncio.sleep
        self.fetcher = fetcher or IncrementalFetcher(
            self.store, settings=self.settings, sleep=self._sleep
        )

    async def close(self):
        await self.fetcher.close()

    async def sync_type(
        self,
        data_type: WhoopDataType,
        access_token: str,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Sync one type; on a non-auth failure return the stored data instead.

        Raises:
            AuthenticationError: token rejected
        """
        data_type = WhoopDataType(data_type)

        try:
            return await self.fetcher.fetch_incremental(
                data_type, access_token, force_refresh=force_refresh
            )

        except AuthenticationError:
            self.logger.error(f"Authentication failed while syncing {data_type.value}")
            raise

        except RateLimitExceededError as e:
            self.logger.warning(
                f"{data_type.value}: rate limit retries exhausted, "
                f"{len(e.partial_records)} records fetched and discarded"
            )
            fallback = self.store.read_data(data_type)
            fallback["error"] = str(e)
            fallback["rateLimited"] = True
            fallback["partialRecordsFetched"] = len(e.partial_records)
            return fallback

        except SyncError as e:
            self.logger.error(f"{data_type.value} sync failed, serving stored data: {e}")
            fallback = self.store.read_data(data_type)
            fallback["error"] = str(e)
            return fallback

    async def sync(
        self,
        access_token: str,
        data_types: Optional[Sequence[WhoopDataType]] = None,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Sync several types in order.

        Returns:
            {"results": {type: data}, "errors": {type: message}, "summary": {...}}

        Raises:
            AuthenticationError: token rejected (remaining types are skipped)
        """
        data_types = list(data_types or SYNC_ORDER)
        results: Dict[str, Any] = {}
        errors: Dict[str, str] = {}

        for index, data_type in enumerate(data_types):
            if index > 0:
                await self._sleep(self.settings.INTER_TYPE_DELAY_SECONDS)

            data = await self.sync_type(data_type, access_token, force_refresh)
            results[WhoopDataType(data_type).value] = data
            if data.get("error"):
                errors[WhoopDataType(data_type).value] = data["error"]

        self.logger.info(
            f"Sync finished for {', '.join(results)}"
            + (f" ({len(errors)} failed)" if errors else "")
        )
        return {
            "results": results,
            "errors": errors,
            "summary": self.store.summary(),
        }

    async def sync_all(self, access_token: str, force_refresh: bool = False) -> Dict[str, Any]:
        return await self.sync(access_token, SYNC_ORDER, force_refresh)

    def stored_data(self, data_type: Optional[WhoopDataType] = None) -> Dict[str, Any]:
        """Stored records without touching the network."""
        if data_type is not None:
            return self.store.read_data(data_type)
        return {
            "results": {t.value: self.store.read_data(t) for t in SYNC_ORDER},
            "summary": self.store.summary(),
        }

    def summary(self) -> Dict[str, Dict[str, Any]]:
        return self.store.summary()
