from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from clientscan.config.settings import Settings, get_settings
from clientscan.exceptions import LogSourceError
from clientscan.server.plugins import build_scan_service, create_logging_config
from clientscan.services.inventory import write_inventory_csv, write_inventory_json

load_dotenv()

logger = logging.getLogger("clientscan")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments. Flags override the environment settings."""
    parser = argparse.ArgumentParser(
        prog="clientscan",
        description="Build a Kafka client inventory from broker TRACE logs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Scan broker logs once and write the inventory")
    scan.add_argument(
        "--location",
        help="S3 URI (e.g. s3://my-bucket/kafka-logs/2025-08-04-06/) or local directory",
    )
    scan.add_argument("--region", help="AWS region of the log bucket")
    scan.add_argument("--output-csv", type=Path, help="Path of the CSV inventory")
    scan.add_argument("--output-json", type=Path, help="Path of the JSON inventory")

    subparsers.add_parser("serve", help="Serve the inventory API")

    return parser.parse_args(argv)


async def run_scan(settings: Settings, args: argparse.Namespace) -> int:
    """Run one scan and write its outputs. Returns the process exit code."""
    scan_service = build_scan_service(settings, location=args.location, region=args.region)
    if scan_service is None:
        logger.error("No log location given: use --location or set SOURCE_LOCATION")
        return 1

    try:
        inventory = await scan_service.run()
    except LogSourceError as e:
        logger.error("Client inventory scan failed: %s", e)
        return 1

    await write_inventory_csv(inventory, args.output_csv or settings.scanner.output_csv)
    output_json = args.output_json or settings.scanner.output_json
    if output_json:
        await write_inventory_json(inventory, output_json)

    for failure in scan_service.failures:
        logger.warning("Skipped %s: %s", failure.file_id, failure.error)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "clientscan.server.core:create_app",
            factory=True,
            host=settings.api.host,
            port=settings.api.port,
            reload=settings.api.reload,
            workers=settings.api.workers,
            log_level=settings.api.log_level.lower(),
        )
        return 0

    create_logging_config(settings).configure()
    return asyncio.run(run_scan(settings, args))


if __name__ == "__main__":
    sys.exit(main())
