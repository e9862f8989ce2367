# ============================================================================
# src/health_ingestion/sync/incremental_fetcher.py
# ============================================================================
"""
Incremental WHOOP Fetcher

Per data type:

    determine start -> page loop {fetch -> retry/abort -> accumulate -> next_token}
                    -> merge with stored records -> persist

- start = newest stored timestamp + 1s (unset when nothing is stored)
- pages follow next_token / nextToken, capped at MAX_PAGES, with
  INTER_PAGE_DELAY_SECONDS between requests
- 429: bounded retries with exponential backoff (Retry-After honored),
  then RateLimitExceededError carrying the partial records
- 5xx / connection errors: bounded retries, then SyncHTTPError
- 401: AuthenticationError (caller must re-authenticate)
- other non-2xx: SyncHTTPError immediately

Nothing is persisted unless the whole page loop succeeds.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from ..config import SyncSettings, sync_settings
from ..constants.data_types import WhoopDataType
from .file_store import FileStore
from .record_merger import compute_date_range, merge_records, next_start_param
from src.utils.exceptions import (
    AuthenticationError,
    RateLimitExceededError,
    SyncHTTPError,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class FetchResult:
    """Raw outcome of one page loop."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    pages: int = 0
    start: Optional[str] = None
    truncated: bool = False  # page cap reached with a next_token left


class IncrementalFetcher:
    """
    Pages through the WHOOP API and merges results into a FileStore.

    Args:
        store: Destination FileStore
        settings: SyncSettings (tests pass zero delays)
        session: Optional aiohttp-compatible session; created lazily otherwise
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        store: FileStore,
        settings: Optional[SyncSettings] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.settings = settings or sync_settings
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep or asyncio.sleep

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self._session is None or (self._owns_session and self._session.closed):
            timeout = aiohttp.ClientTimeout(total=self.settings.REQUEST_TIMEOUT_SECONDS)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def endpoint_url(self, data_type: WhoopDataType) -> str:
        return f"{self.settings.WHOOP_API_BASE.rstrip('/')}/{data_type.endpoint}"

    def _headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "User-Agent": self.settings.USER_AGENT,
        }

    # ------------------------------------------------------------------
    # Merge + persist
    # ------------------------------------------------------------------
    async def fetch_incremental(
        self,
        data_type: WhoopDataType,
        access_token: str,
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Fetch records newer than the stored ones, merge and persist.

        With force_refresh the full history is pulled and replaces the stored
        records, but only once the pull has succeeded.

        Returns:
            The persisted data dict plus newRecordsFetched / newRecordsAdded

        Raises:
            AuthenticationError, RateLimitExceededError, SyncHTTPError
        """
        data_type = WhoopDataType(data_type)

        async with self.store.lock(data_type):
            existing = self.store.read_data(data_type)
            stored_records = existing["records"]

            start = None if force_refresh else next_start_param(stored_records)
            if start:
                self.logger.info(f"Incremental {data_type.value} fetch from {start} ({len(stored_records)} stored)")
            else:
                self.logger.info(f"Full {data_type.value} fetch (no start date)")

            result = await self.fetch_pages(data_type, access_token, start)

            base = [] if force_refresh else stored_records
            merged = merge_records(base, result.records, data_type)
            now = datetime.now(timezone.utc).isoformat()

            final = {
                "records": merged.records,
                "lastUpdate": now,
                "totalCount": len(merged.records),
                "date_range": compute_date_range(merged.records),
                "newRecordsFetched": len(result.records),
                "newRecordsAdded": merged.added,
                "incrementalUpdate": start is not None,
                "pagesFetched": result.pages,
                "truncated": result.truncated,
            }

            self.store.write_data(data_type, final)
            self.store.update_metadata(data_type, now, final["date_range"])

        self.logger.info(
            f"{data_type.value}: fetched {len(result.records)}, added {merged.added}, "
            f"total {final['totalCount']}"
        )
        return final

    # ------------------------------------------------------------------
    # Page loop
    # ------------------------------------------------------------------
    async def fetch_pages(
        self,
        data_type: WhoopDataType,
        access_token: str,
        start: Optional[str] = None,
    ) -> FetchResult:
        """
        Fetch every page after ``start``, following the pagination token.
        """
        data_type = WhoopDataType(data_type)
        url = self.endpoint_url(data_type)
        headers = self._headers(access_token)
        result = FetchResult(start=start)
        next_token: Optional[str] = None

        while True:
            params = {"limit": str(self.settings.PAGE_SIZE)}
            if start:
                params["start"] = start
            if next_token:
                params["nextToken"] = next_token

            payload = await self._fetch_page(url, params, headers, data_type, result.records)
            records = payload.get("records") or []
            result.records.extend(records)
            result.pages += 1

            next_token = payload.get("next_token") or payload.get("nextToken")
            self.logger.debug(
                f"{data_type.value} page {result.pages}: {len(records)} records, "
                f"next_token={'yes' if next_token else 'no'}"
            )

            if not next_token:
                break

            if result.pages >= self.settings.MAX_PAGES:
                result.truncated = True
                self.logger.warning(
                    f"{data_type.value}: stopped at page cap ({self.settings.MAX_PAGES}) "
                    f"with more pages available"
                )
                break

            await self._sleep(self.settings.INTER_PAGE_DELAY_SECONDS)

        return result

    def _backoff(self, attempt: int, retry_after: Optional[str] = None) -> float:
        if retry_after:
            try:
                return min(float(retry_after), self.settings.BACKOFF_MAX_SECONDS)
            except ValueError:
                pass
        delay = self.settings.RATE_LIMIT_DELAY_SECONDS * (2 ** attempt)
        return min(delay, self.settings.BACKOFF_MAX_SECONDS)

    async def _fetch_page(
        self,
        url: str,
        params: Dict[str, str],
        headers: Dict[str, str],
        data_type: WhoopDataType,
        records_so_far: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        GET one page with the retry policy.

        Returns:
            Parsed JSON body
        """
        session = await self._get_session()
        rate_limit_retries = 0
        server_retries = 0

        while True:
            try:
                async with session.get(url, params=params, headers=headers) as response:
                    status = response.status

                    if 200 <= status < 300:
                        payload = await response.json(content_type=None)
                        return payload if isinstance(payload, dict) else {}

                    body = await response.text()

                    if status == 401:
                        raise AuthenticationError(
                            f"WHOOP rejected the access token for {data_type.value}: {body[:200]}",
                            data_type=data_type.value
                        )

                    if status == 429:
                        if rate_limit_retries >= self.settings.MAX_RATE_LIMIT_RETRIES:
                            raise RateLimitExceededError(
                                f"Rate limited on {data_type.value} after "
                                f"{rate_limit_retries} retries",
                                data_type=data_type.value,
                                attempts=rate_limit_retries + 1,
                                partial_records=list(records_so_far),
                            )
                        wait = self._backoff(rate_limit_retries, response.headers.get("Retry-After"))
                        rate_limit_retries += 1
                        self.logger.warning(
                            f"Rate limited on {data_type.value}, waiting {wait:.1f}s "
                            f"(retry {rate_limit_retries}/{self.settings.MAX_RATE_LIMIT_RETRIES})"
                        )
                        await self._sleep(wait)
                        continue

                    if status >= 500 and server_retries < self.settings.MAX_SERVER_ERROR_RETRIES:
                        wait = self._backoff(server_retries)
                        server_retries += 1
                        self.logger.warning(
                            f"HTTP {status} on {data_type.value}, retry "
                            f"{server_retries}/{self.settings.MAX_SERVER_ERROR_RETRIES} in {wait:.1f}s"
                        )
                        await self._sleep(wait)
                        continue

                    raise SyncHTTPError(
                        f"HTTP {status}: {response.reason} - {body[:500]}",
                        data_type=data_type.value,
                        status=status,
                        body=body,
                    )

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if server_retries >= self.settings.MAX_SERVER_ERROR_RETRIES:
                    raise SyncHTTPError(
                        f"Request to {url} failed: {e}",
                        data_type=data_type.value,
                    ) from e
                wait = self._backoff(server_retries)
                server_retries += 1
                self.logger.warning(
                    f"Connection error on {data_type.value} ({e}), retry "
                    f"{server_retries}/{self.settings.MAX_SERVER_ERROR_RETRIES} in {wait:.1f}s"
                )
                await self._sleep(wait)
