#!/usr/bin/env python3
"""
CLI script for forwarding exported Cloudflare tail events to Coralogix.

Reads tail events captured with `wrangler tail --format json` (or any
JSON / NDJSON export, optionally gzip-compressed), normalizes them into
Coralogix log records, and posts them to the Singles API.

Usage:
    # Forward using settings from config.enc.yaml or environment variables
    python scripts/forward_tail_events.py --input data/tail-events.ndjson

    # Explicit endpoint / key
    python scripts/forward_tail_events.py --input events.json \\
        --endpoint https://ingress.eu2.coralogix.com/logs/v1/singles --api-key $KEY

    # Region instead of endpoint
    python scripts/forward_tail_events.py --input events.json --region EU2

    # Print normalized records without sending
    python scripts/forward_tail_events.py --input events.json --dry-run

    # Check configuration and exit
    python scripts/forward_tail_events.py --check-config
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tail_forwarder.config import (
    Settings,
    check_sops_installed,
    get_settings,
    resolve_endpoint,
)
from tail_forwarder.exceptions import ConfigurationError, ParseError
from tail_forwarder.ingestion import read_tail_events
from tail_forwarder.normalization import FieldResolver, LogNormalizer, RandomSampler
from tail_forwarder.pipeline import build_records, forward_tail_events, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_DELIVERY_FAILED = 2


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of loaded settings."""
    overrides = {}
    if args.api_key:
        overrides["coralogix_api_key"] = args.api_key
    if args.endpoint:
        overrides["coralogix_endpoint"] = args.endpoint
    elif args.region:
        overrides["coralogix_endpoint"] = resolve_endpoint(args.region)
    if args.application_name:
        overrides["application_name"] = args.application_name
    if args.subsystem_name:
        overrides["subsystem_name"] = args.subsystem_name
    if args.batch_size is not None:
        overrides["batch_size"] = args.batch_size
    return dataclasses.replace(settings, **overrides)


def check_config(settings: Settings) -> int:
    """Print configuration status. Returns exit code."""
    print("Configuration:")
    for key, value in settings.to_dict().items():
        print(f"  {key}: {value}")

    print(f"\nSOPS installed: {'yes' if check_sops_installed() else 'no'}")

    errors = settings.validate()
    if errors:
        print("\nConfiguration errors:")
        for error in errors:
            print(f"  - {error}")
        return EXIT_CONFIG_ERROR

    print("\nConfiguration is valid")
    return EXIT_OK


def dry_run(events: list[dict], settings: Settings) -> int:
    """Print normalized records as NDJSON without delivering them."""
    normalizer = LogNormalizer(
        settings,
        resolver=FieldResolver(RandomSampler(settings.diagnostic_sample_rate)),
    )
    count = 0
    for event in events:
        for record in build_records(event, normalizer):
            print(json.dumps(record.to_dict(), ensure_ascii=False))
            count += 1
    logger.info(f"Dry run: {count} records from {len(events)} tail events")
    return EXIT_OK


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Forward Cloudflare tail events to Coralogix",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/forward_tail_events.py --input data/tail-events.ndjson
  python scripts/forward_tail_events.py --input events.json --region EU2 --api-key KEY
  python scripts/forward_tail_events.py --input events.json --dry-run
  python scripts/forward_tail_events.py --check-config
        """,
    )

    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="File of tail events (JSON array, JSON object, or NDJSON; .gz ok)",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to SOPS-encrypted config file (default: config.enc.yaml)",
    )
    parser.add_argument("--endpoint", type=str, help="Coralogix Singles API endpoint")
    parser.add_argument("--api-key", type=str, help="Coralogix Send-Your-Data API key")
    parser.add_argument(
        "--region",
        type=str,
        help="Coralogix region (EU1, EU2, US1, US2, AP1, AP2, AP3); ignored if --endpoint is set",
    )
    parser.add_argument("--application-name", type=str, help="applicationName override")
    parser.add_argument("--subsystem-name", type=str, help="Default subsystemName")
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Tail events per delivery request (default: 100)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first invalid record in the input file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print normalized records instead of sending them",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.batch_size is not None and args.batch_size <= 0:
        parser.error("--batch-size must be greater than 0")

    settings = apply_overrides(get_settings(args.config), args)

    if args.check_config:
        return check_config(settings)

    if not args.input:
        parser.error("--input is required (unless using --check-config)")

    try:
        events = read_tail_events(args.input, strict=args.strict)
    except (FileNotFoundError, ParseError) as e:
        logger.error(f"Cannot read tail events: {e}")
        return EXIT_CONFIG_ERROR

    if args.dry_run:
        return dry_run(events, settings)

    try:
        settings.require()
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    results = forward_tail_events(events, settings)
    failed = [r for r in results if not r.success]
    sent = sum(r.records_sent for r in results)

    logger.info(
        f"Delivered {sent} records in {len(results) - len(failed)}/{len(results)} requests"
    )
    if failed:
        return EXIT_DELIVERY_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
