"""Cosmos DB vector data seeder.

Loads pre-embedded sample documents from a local JSON file, adds the
category-based partition key, and creates them in the target Cosmos DB
container. Documents that already exist are skipped, so re-running is safe.

Usage:
  python -m cosmos_seeder.ingestion.seed_cosmos --endpoint https://<account>.documents.azure.com:443/

Configuration:
- Target: cosmos_seeder.config.settings (COSMOS_DB_ENDPOINT, COSMOS_DATABASE, COSMOS_CONTAINER);
  without an endpoint, the active azd environment is asked for one
- Seed file: settings.SEED_FILE, searched in the working directory and settings.SEED_DATA_DIR
- Batching: settings.SEED_BATCH_SIZE, settings.SEED_BATCH_DELAY_SECONDS
- Credentials: Azure credential chain (az login locally, managed identity in Azure)

Without --yes (or FORCE=true) the target is shown and confirmation is requested.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
import shutil
import subprocess
import sys
from typing import Callable, List, Optional

from cosmos_seeder.config import settings
from cosmos_seeder.errors import SeederError
from cosmos_seeder.pipeline import run_seed
from cosmos_seeder.schemas import UploadSummary
from cosmos_seeder.store import build_credential

logger = logging.getLogger(__name__)

TROUBLESHOOTING = [
    "Your Cosmos DB connection is configured correctly",
    "The identity running the seeder has data-plane permissions on the account",
    "Database '{database}' and container '{container}' exist",
    "Vector search is enabled on your Cosmos DB account",
]


def positive_int(value: str) -> int:
    """argparse type for --batch-size: an integer of at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed sample vector documents into Azure Cosmos DB.")
    parser.add_argument("--endpoint", default=None, help="Cosmos DB endpoint (default: COSMOS_DB_ENDPOINT)")
    parser.add_argument("--file", default=None, help=f"Seed file (default: {settings.SEED_FILE})")
    parser.add_argument("--database", default=None, help=f"Database name (default: {settings.COSMOS_DATABASE})")
    parser.add_argument("--container", default=None, help=f"Container name (default: {settings.COSMOS_CONTAINER})")
    parser.add_argument("--batch-size", type=positive_int, default=None, help="Concurrent writes per batch")
    parser.add_argument("--delay", type=float, default=None, help="Pause in seconds between batches")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def confirm(database: str, container: str, ask: Optional[Callable[[str], str]] = None) -> bool:
    """Ask the operator to confirm the upload target. Only 'y' / 'Y' proceeds."""
    ask = ask or input
    print("\nThis will upload sample vector data to your Cosmos DB container.")
    print(f"   Database: {database}")
    print(f"   Container: {container}")
    reply = ask("Continue? (y/N): ").strip()
    return reply[:1] in ("y", "Y")


def endpoint_from_azd() -> Optional[str]:
    """Return the Cosmos endpoint from `azd env get-values`, or None when unavailable."""
    if shutil.which("azd") is None:
        return None
    try:
        result = subprocess.run(
            ["azd", "env", "get-values"], capture_output=True, text=True, timeout=30, check=True
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("Could not read the azd environment: %s", e)
        return None

    for line in result.stdout.splitlines():
        key, sep, value = line.partition("=")
        if sep and re.search(r"COSMOS.*ENDPOINT", key, re.IGNORECASE):
            return value.strip().strip('"') or None
    return None


async def _seed(**kwargs) -> UploadSummary:
    credential = build_credential(settings)
    try:
        return await run_seed(report=print, credential=credential, **kwargs)
    finally:
        await credential.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    database = args.database or settings.COSMOS_DATABASE
    container = args.container or settings.COSMOS_CONTAINER
    endpoint = args.endpoint or settings.COSMOS_DB_ENDPOINT
    if not endpoint:
        endpoint = endpoint_from_azd()

    print("=== Azure Cosmos DB Vector Data Seeder ===")
    if endpoint:
        print(f"Cosmos DB Endpoint: {endpoint}")

    force = os.environ.get("FORCE", "").lower() == "true"
    if not (args.yes or force) and not confirm(database, container):
        print("Operation cancelled.")
        return 0

    try:
        summary = asyncio.run(
            _seed(
                seed_file=args.file,
                endpoint=endpoint,
                database=database,
                container=container,
                batch_size=args.batch_size,
                batch_delay=args.delay,
            )
        )
    except SeederError as e:
        logger.debug("Seeding failed", exc_info=True)
        print(f"\nError: {e}")
        print("\nPlease check:")
        for item in TROUBLESHOOTING:
            print("- " + item.format(database=database, container=container))
        return 1

    if summary.cancelled:
        print("\nData seeding was cancelled before completion.")
        return 1
    print("\nData seeding completed successfully!")
    if summary.errors:
        print(f"{summary.errors} documents failed; re-run to retry them (existing documents are skipped).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
