#!/usr/bin/env python3
"""
WHOOP Sync

Runs one incremental sync cycle against the WHOOP API and stores the results
under WHOOP_DATA_DIR. Meant to be run from cron or another scheduler.

The access token is read from WHOOP_ACCESS_TOKEN (environment or .env).

Usage:
    python scripts/sync_whoop.py
    python scripts/sync_whoop.py --type sleep
    python scripts/sync_whoop.py --force-refresh
"""

import asyncio
import sys
import argparse
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.health_ingestion.config import sync_settings
from src.health_ingestion.sync import SyncService, parse_data_types
from src.utils.exceptions import AuthenticationError
from src.utils.logging import setup_logging_from_settings


async def run(data_types, force_refresh: bool) -> int:
    service = SyncService()
    try:
        result = await service.sync(
            sync_settings.WHOOP_ACCESS_TOKEN,
            data_types,
            force_refresh=force_refresh,
        )
    except AuthenticationError as e:
        print(f"ERROR: {e}. Refresh WHOOP_ACCESS_TOKEN and retry.", file=sys.stderr)
        return 2
    finally:
        await service.close()

    print("=" * 60)
    for name, info in result["summary"].items():
        marker = "!" if name in result["errors"] else " "
        date_range = info["dateRange"] or {}
        print(
            f"{marker} {name:<9} {info['recordCount']:>6} records  "
            f"{date_range.get('earliest') or '-'} .. {date_range.get('latest') or '-'}"
        )
    for name, message in result["errors"].items():
        print(f"  {name}: {message}")
    print("=" * 60)

    return 1 if result["errors"] else 0


def main():
    parser = argparse.ArgumentParser(description="Incremental WHOOP sync")
    parser.add_argument(
        "--type",
        type=str,
        choices=["sleep", "strain", "recovery", "all"],
        default="all",
        help="Data type to sync"
    )
    parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Re-fetch the full history and replace stored records"
    )
    args = parser.parse_args()

    setup_logging_from_settings()

    if not sync_settings.WHOOP_ACCESS_TOKEN:
        print("ERROR: WHOOP_ACCESS_TOKEN is not set", file=sys.stderr)
        return 2

    return asyncio.run(run(parse_data_types(args.type), args.force_refresh))


if __name__ == "__main__":
    sys.exit(main())
