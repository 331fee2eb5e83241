#!/usr/bin/env python3
"""
CLI script to ingest downloaded AWS access-log objects.

Converts every not-yet-processed object under the input directory into
events, samples them per key and sends them to Honeycomb. Objects are
deleted after ingestion and remembered in <state-dir>/<service>-state.json.

Usage:
    # ELB access logs
    python scripts/ingest_logs.py --format aws_elb --input downloads/elb/ --writekey $KEY

    # CloudFront web distribution logs, 1-in-20 on average
    python scripts/ingest_logs.py --format aws_cf_web --input downloads/cf/ --sample-rate 20

    # Settings from a YAML (or SOPS-encrypted .enc.yaml) file
    python scripts/ingest_logs.py --format aws_elb --input downloads/elb/ --config config.enc.yaml

    # List supported formats
    python scripts/ingest_logs.py --list-formats
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from access_log_pipeline.config import FORMAT_SERVICES, Settings, load_settings
from access_log_pipeline.ingestion import (
    EstimatorStartError,
    LocalObjectSource,
    UnknownFormatError,
    list_formats,
)
from access_log_pipeline.pipeline import create_ingestor, ingest_objects, setup_logging
from access_log_pipeline.state import FileStater, StorageError

logger = logging.getLogger(__name__)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of loaded settings."""
    if args.state_dir:
        settings = dataclasses.replace(settings, state_dir=str(args.state_dir))

    honeycomb = settings.honeycomb
    if args.writekey:
        honeycomb = dataclasses.replace(honeycomb, write_key=args.writekey)
    if args.dataset:
        honeycomb = dataclasses.replace(honeycomb, dataset=args.dataset)

    sampling = settings.sampling
    if args.sample_rate is not None:
        sampling = dataclasses.replace(sampling, goal_sample_rate=args.sample_rate)

    return dataclasses.replace(settings, honeycomb=honeycomb, sampling=sampling)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Ingest AWS access logs into Honeycomb",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # ELB access logs
  python scripts/ingest_logs.py --format aws_elb --input downloads/elb/ --writekey $KEY

  # CloudFront logs with a goal sample rate of 20
  python scripts/ingest_logs.py --format aws_cf_web --input downloads/cf/ --sample-rate 20
        """,
    )

    parser.add_argument(
        "--format",
        "-f",
        type=str,
        help=f"Log format. Available: {', '.join(list_formats())}",
    )
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Directory of downloaded log objects (plain or gzip)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to YAML config file (default: config.enc.yaml, then environment)",
    )
    parser.add_argument(
        "--state-dir",
        type=Path,
        help="Directory holding the processed-objects state file",
    )
    parser.add_argument(
        "--writekey",
        type=str,
        help="Honeycomb write key (default: HONEYCOMB_WRITE_KEY)",
    )
    parser.add_argument(
        "--dataset",
        type=str,
        help="Honeycomb dataset; $SERVICE is replaced by elb or cloudfront",
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        help="Goal sample rate averaged over all keys (default: 1, no sampling)",
    )
    parser.add_argument(
        "--list-formats",
        action="store_true",
        help="List supported log formats and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.list_formats:
        print("Available formats:")
        for format_name in list_formats():
            print(f"  {format_name} (service: {FORMAT_SERVICES[format_name]})")
        return 0

    # Validate arguments
    if not args.format:
        parser.error("--format is required (unless using --list-formats)")
    if not args.input:
        parser.error("--input is required (unless using --list-formats)")
    if args.format not in FORMAT_SERVICES:
        parser.error(
            f"Unknown format '{args.format}'. Available formats: {', '.join(list_formats())}"
        )

    settings = apply_overrides(load_settings(args.config), args)
    errors = settings.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return 1

    service = FORMAT_SERVICES[args.format]
    logger.debug(f"Settings: {settings.to_dict()}")

    stater = FileStater(
        settings.state_dir,
        service,
        max_processed_objects=settings.max_processed_objects,
    )

    try:
        ingestor = create_ingestor(args.format, settings, stater=stater)
    except EstimatorStartError as e:
        logger.error(str(e))
        return 1
    except UnknownFormatError as e:
        parser.error(str(e))

    print()
    print("Access Log Ingestion")
    print("=" * 50)
    print(f"  Format: {args.format}")
    print(f"  Input: {args.input}")
    print(f"  Dataset: {settings.dataset_for(service)}")
    print(f"  Goal Sample Rate: {settings.sampling.goal_sample_rate}")
    print(f"  State File: {stater.state_file}")
    print()

    sender = ingestor.pipeline.sender
    estimator = ingestor.pipeline.sampler.estimator
    try:
        source = LocalObjectSource(args.input, stater)
        summary = ingest_objects(source, ingestor)
    except (FileNotFoundError, StorageError) as e:
        logger.error(f"Cannot list objects to ingest: {e}")
        return 1
    finally:
        sender.close()
        estimator.stop()

    logger.debug(f"Summary: {summary.to_dict()}")

    print()
    print("Ingestion Summary")
    print("=" * 50)
    print(f"  Objects Published: {summary.published:,}")
    print(f"  Objects Failed: {summary.failed:,}")
    print(f"  Events Sent: {summary.events_sent:,}")
    if summary.failed_objects:
        print("  Failed Objects (will be retried on the next run):")
        for object_id in summary.failed_objects:
            print(f"    {object_id}")

    return 0 if summary.success else 1


if __name__ == "__main__":
    sys.exit(main())
