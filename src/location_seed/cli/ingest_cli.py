"""
Command-line interface for loading a location CSV into Elasticsearch.

Usage:
    location-seed ingest --input data/places.csv --es-url http://localhost:9200 --index places
    location-seed checkpoint show --input data/places.csv
    location-seed checkpoint reset --input data/places.csv
"""

import argparse
import json
import signal
import sys
import time
from pathlib import Path

from location_seed.batch.checkpoint import CheckpointStore
from location_seed.batch.pipeline import IngestPipeline
from location_seed.config import load_config, merge_sources, resolve_tracker_file
from location_seed.core.errors import ConfigError, IngestError
from location_seed.observability.logger import get_logger, setup_logger
from location_seed.observability.metrics import start_metrics_server
from location_seed.sink.client import ElasticsearchSink

logger = get_logger(__name__)

# Set by the signal handler; polled between batches and after the run
_shutdown_requested = False


def signal_handler(signum, frame):  # type: ignore[no-untyped-def]
    """
    Record SIGINT/SIGTERM. An in-flight bulk request is never interrupted;
    a running ingest stops after its next committed batch.
    """
    global _shutdown_requested
    signal_name = signal.Signals(signum).name
    logger.info(f"Received {signal_name} signal")
    _shutdown_requested = True


def install_signal_handlers() -> None:
    global _shutdown_requested
    _shutdown_requested = False
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def shutdown_requested() -> bool:
    return _shutdown_requested


def wait_for_shutdown(poll_interval: float = 1.0) -> None:
    """Block until a shutdown signal has been received."""
    while not _shutdown_requested:
        time.sleep(poll_interval)


def _error_output(error: Exception) -> str:
    return json.dumps({"status": "error", "error_type": type(error).__name__, "error": str(error)})


def build_overrides(args: argparse.Namespace) -> dict:
    """Map CLI flags onto config fields; unset flags are None."""
    return {
        "csv_file": args.input,
        "es_url": args.es_url,
        "es_index": args.index,
        "tracker_file": args.tracker_file,
        "batch_size_bytes": args.batch_size,
        "request_timeout": args.request_timeout,
        "strict_item_errors": False if args.lenient_item_errors else None,
        "checkpoint_on_drain": False if args.no_checkpoint_on_drain else None,
        "wait_for_signal": True if args.wait_for_signal else None,
        "log_level": args.log_level,
        "log_format": args.log_format,
        "metrics_port": args.metrics_port,
    }


def ingest_command(args: argparse.Namespace) -> int:
    """
    Run the ingestion pipeline.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    install_signal_handlers()

    try:
        config = load_config(
            config_path=args.config,
            env_file=args.env_file,
            overrides=build_overrides(args),
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        print(_error_output(e), file=sys.stderr)
        return 1

    setup_logger(level=config.log_level, format_type=config.log_format)

    if config.metrics_port:
        start_metrics_server(config.metrics_port)
        logger.info(f"Serving metrics on port {config.metrics_port}")

    logger.info(
        f"Loading {config.csv_file} into index {config.es_index}",
        extra={"es_url": config.es_url, "batch_size_bytes": config.batch_size_bytes},
    )

    sink = None
    try:
        sink = ElasticsearchSink.from_config(config)
        pipeline = IngestPipeline(config=config, sink=sink, stop_requested=shutdown_requested)
        summary = pipeline.run()
    except IngestError as e:
        logger.error(f"Ingestion aborted: {e}")
        print(_error_output(e), file=sys.stderr)
        return 1
    finally:
        if sink is not None:
            sink.close()

    if summary.interrupted:
        print(json.dumps({"status": "interrupted", **summary.model_dump()}, indent=2))
        return 1

    print(json.dumps({"status": "complete", **summary.model_dump()}, indent=2))

    if config.wait_for_signal:
        logger.info("Waiting for interrupt signal (press Ctrl+C to exit)...")
        wait_for_shutdown()
        logger.info("Interrupt signal received, shutting down...")

    return 0


def _resolve_tracker(args: argparse.Namespace) -> Path | None:
    values = merge_sources(
        config_path=args.config,
        env_file=args.env_file,
        overrides={"csv_file": args.input, "tracker_file": args.tracker_file},
    )
    return resolve_tracker_file(values)


def checkpoint_command(args: argparse.Namespace) -> int:
    """
    Show or reset the checkpoint for an input file.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        tracker = _resolve_tracker(args)
    except ConfigError as e:
        print(_error_output(e), file=sys.stderr)
        return 1

    if tracker is None:
        print(
            "Either --input or --tracker-file is required (or CSV_FILE / TRACKER_FILE, or a --config file)",
            file=sys.stderr,
        )
        return 2

    store = CheckpointStore(tracker)
    try:
        if args.action == "show":
            output = {"tracker_file": str(tracker), "last_id": store.load()}
        else:
            removed = store.clear()
            logger.info(f"Checkpoint {'removed' if removed else 'not present'}: {tracker}")
            output = {"tracker_file": str(tracker), "removed": removed}
    except IngestError as e:
        print(_error_output(e), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="location-seed",
        description="Resumable bulk loader for geocoded location CSV files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load a file, resuming from the last committed row if a tracker exists
  location-seed ingest --input data/places.csv --es-url http://localhost:9200 --index places

  # Settings from a YAML file and a larger batch
  location-seed ingest --config config/ingest.yaml --batch-size 5242880

  # Inspect or reset the resume checkpoint
  location-seed checkpoint show --input data/places.csv
  location-seed checkpoint reset --input data/places.csv

Signals:
  SIGINT/SIGTERM never cut a bulk request short. A running ingest stops after
  its next committed batch and exits 1; rerunning resumes from that batch.
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Load a CSV file into the index")
    ingest_parser.add_argument("--input", help="Path to input CSV file (env: CSV_FILE)")
    ingest_parser.add_argument("--es-url", help="Elasticsearch address (env: ES_URL)")
    ingest_parser.add_argument("--index", help="Target index name (env: ES_INDEX)")
    ingest_parser.add_argument("--config", help="Path to YAML configuration file")
    ingest_parser.add_argument("--env-file", default=".env", help="dotenv file to load (default: .env)")
    ingest_parser.add_argument("--tracker-file", help="Checkpoint file (default: derived from --input)")
    ingest_parser.add_argument(
        "--batch-size",
        type=int,
        help="Flush when the encoded batch exceeds this many bytes (default: 400)"
    )
    ingest_parser.add_argument("--request-timeout", type=float, help="Request timeout in seconds")
    ingest_parser.add_argument(
        "--lenient-item-errors",
        action="store_true",
        help="Only fail on bulk request errors, log individual rejected documents"
    )
    ingest_parser.add_argument(
        "--no-checkpoint-on-drain",
        action="store_true",
        help="Do not save the checkpoint after the final flush"
    )
    ingest_parser.add_argument(
        "--wait-for-signal",
        action="store_true",
        help="Stay alive after completion until SIGINT/SIGTERM"
    )
    ingest_parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    ingest_parser.add_argument("--log-format", choices=["json", "text"])
    ingest_parser.add_argument("--metrics-port", type=int, help="Serve Prometheus metrics on this port")

    # Checkpoint command
    checkpoint_parser = subparsers.add_parser("checkpoint", help="Inspect or reset the resume checkpoint")
    checkpoint_parser.add_argument("action", choices=["show", "reset"])
    checkpoint_parser.add_argument("--input", help="Path to input CSV file (env: CSV_FILE)")
    checkpoint_parser.add_argument("--tracker-file", help="Checkpoint file (env: TRACKER_FILE)")
    checkpoint_parser.add_argument("--config", help="Path to YAML configuration file")
    checkpoint_parser.add_argument("--env-file", default=".env", help="dotenv file to load (default: .env)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    if args.command == "ingest":
        return ingest_command(args)
    return checkpoint_command(args)


if __name__ == "__main__":
    sys.exit(main())
