"""Command-line interface for timeline-sync.

Sub-commands:

- ``download`` -- save the production snapshot to a file.
- ``export``   -- save the local database as a snapshot file.
- ``sync``     -- make production match a snapshot file (incremental).
- ``replace``  -- delete all production projects and recreate them.
- ``status``   -- show production contents and a schema check.

Reports go to stdout; logs and errors go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import Config, load_config, resolve_flag
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import LoggingConfig, build_config, yaml_fallbacks
from .errors import PreconditionError, ReplaceInterruptedError, TimelineSyncError
from .file_handler import write_file_atomic
from .gateways import create_gateway
from .logger import setup_logging
from .sync.confirm import Confirmer, ConsoleConfirmer
from .sync.executor import SyncExecutor
from .sync.reconcile import compute_plan
from .sync.replace import ReplaceWorkflow
from .sync.reporter import (
    format_execution_report,
    format_replace_report,
    format_snapshot_summary,
    report_to_json,
)
from .sync.snapshot import SnapshotStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 3
EXIT_INTERRUPTED = 130

LOCAL_ONLY_COMMANDS = frozenset({"export"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="timeline-sync",
        description="Synchronise timeline projects between the local database and production",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export the local database, preview, then sync
  timeline-sync export
  timeline-sync sync --dry-run
  timeline-sync sync

  # Create and update only, never delete production projects
  timeline-sync sync --keep-remote

  # Full replace (writes a backup first and asks twice)
  timeline-sync replace

  # Restore production from a backup file
  timeline-sync replace --source production-backup-2026-01-31T10-15-00-123Z.json

Configuration precedence: CLI arguments > environment (.env) > config file > defaults.
        """,
    )
    parser.add_argument(
        "--api-url",
        help="Production API base URL (takes precedence over TIMELINE_API_URL and config files)",
    )
    parser.add_argument(
        "--local-db",
        help="Local SQLite database (takes precedence over TIMELINE_LOCAL_DB)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        help="Log output format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"timeline-sync version {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    download = commands.add_parser("download", help="Save the production snapshot to a file")
    download.add_argument("--output", help="Output file (default: backup-data.json)")

    export = commands.add_parser("export", help="Save the local database as a snapshot file")
    export.add_argument("--output", help="Output file (default: local-data.json)")

    sync = commands.add_parser("sync", help="Apply a snapshot file to production")
    sync.add_argument("--source", help="Source snapshot (default: local-data.json)")
    sync.add_argument("--confirm", action="store_true", help="Skip the confirmation prompt")
    sync.add_argument("--dry-run", action="store_true", help="Show the plan and exit")
    sync.add_argument(
        "--keep-remote",
        action="store_true",
        help="Never delete production projects missing from the source",
    )
    sync.add_argument("--report", help="Write a JSON report to this file")

    replace = commands.add_parser(
        "replace", help="Replace every production project with a snapshot file"
    )
    replace.add_argument("--source", help="Source snapshot (default: local-data.json)")
    replace.add_argument(
        "--confirm", action="store_true", help="Skip both confirmation phrases"
    )
    replace.add_argument("--backup-dir", help="Directory for the pre-replace backup")
    replace.add_argument("--report", help="Write a JSON report to this file")

    commands.add_parser("status", help="Show production contents and check its schema")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _write_report(path: str | None, report) -> None:
    """Write the JSON report; a failure here never changes the exit status."""
    if not path:
        return
    try:
        size = write_file_atomic(
            Path(path), json.dumps(report_to_json(report), indent=2) + "\n"
        )
    except OSError as e:
        logger.error("Could not write report %s: %s", path, e)
        print(f"ERROR: Could not write report {path}: {e}", file=sys.stderr)
        return
    logger.info("Report written to %s (%d bytes)", path, size)


def _load_source(store: SnapshotStore, args: argparse.Namespace, config: Config):
    source = Path(args.source or config.local_data_file)
    logger.info("Loading source snapshot from %s", source)
    return store.load(source, hint="run 'timeline-sync export' first")


def cmd_download(args, config: Config, confirmer: Confirmer, store: SnapshotStore) -> int:
    snapshot = create_gateway(config, "remote").fetch_all()
    output = Path(args.output or config.download_file)
    size = store.save(output, snapshot)
    print(format_snapshot_summary(snapshot, f"Downloaded production data to {output}", size=size))
    return EXIT_OK


def cmd_export(args, config: Config, confirmer: Confirmer, store: SnapshotStore) -> int:
    snapshot = create_gateway(config, "local").fetch_all()
    output = Path(args.output or config.local_data_file)
    size = store.save(output, snapshot)
    print(format_snapshot_summary(snapshot, f"Exported local data to {output}", size=size))
    return EXIT_OK


def cmd_sync(args, config: Config, confirmer: Confirmer, store: SnapshotStore) -> int:
    local = _load_source(store, args, config)
    gateway = create_gateway(config, "remote")
    production = gateway.fetch_all()

    plan = compute_plan(local, production, include_deletes=not args.keep_remote)
    executor = SyncExecutor(gateway, confirmer, delay=config.request_delay)
    report = executor.execute(plan, args.confirm, dry_run=args.dry_run)

    print(format_execution_report(report))
    _write_report(args.report, report)
    return EXIT_PARTIAL if report.failed else EXIT_OK


def cmd_replace(args, config: Config, confirmer: Confirmer, store: SnapshotStore) -> int:
    local = _load_source(store, args, config)
    workflow = ReplaceWorkflow(
        create_gateway(config, "remote"),
        store,
        confirmer,
        backup_dir=Path(args.backup_dir or config.backup_dir),
        delay=config.request_delay,
    )
    report = workflow.run(local, args.confirm)

    print(format_replace_report(report))
    _write_report(args.report, report)
    if report.failed or report.verification_error:
        return EXIT_PARTIAL
    return EXIT_OK


def cmd_status(args, config: Config, confirmer: Confirmer, store: SnapshotStore) -> int:
    snapshot = create_gateway(config, "remote").fetch_all()
    print(
        format_snapshot_summary(
            snapshot, f"Production at {config.api_url}", check_schema=True
        )
    )
    return EXIT_OK


COMMANDS: dict[str, Callable[..., int]] = {
    "download": cmd_download,
    "export": cmd_export,
    "sync": cmd_sync,
    "replace": cmd_replace,
    "status": cmd_status,
}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def _load_file_config():
    """Read the YAML config file(s), if any.

    Returns:
        Tuple of (fallbacks for ``load_config``, ``LoggingConfig``).
    """
    if not discover_config_files():
        return None, LoggingConfig()
    unified = build_config(load_hierarchical_config())
    return yaml_fallbacks(unified), unified.logging


def main(argv: list[str] | None = None, confirmer: Confirmer | None = None) -> int:
    """Parse *argv*, run the command and return the exit status."""
    args = build_parser().parse_args(argv)

    # .env is loaded before YAML so ${VAR} interpolation can use its values
    load_dotenv()

    try:
        fallbacks, log_config = _load_file_config()
    except (yaml.YAMLError, ValidationError) as e:
        print(f"ERROR: Invalid config file: {e}", file=sys.stderr)
        return EXIT_FATAL

    # Logging starts before load_config, so the debug flag is resolved here
    debug = resolve_flag(args.debug, "TIMELINE_DEBUG", log_config.debug)
    setup_logging(
        debug=debug,
        log_file=args.log_file or log_config.file,
        log_format=args.log_format or log_config.format,
        level=log_config.level,
    )

    try:
        config = load_config(
            api_url=args.api_url,
            local_db=args.local_db,
            insecure=args.insecure,
            debug=args.debug,
            yaml_fallbacks=fallbacks,
            require_remote=args.command not in LOCAL_ONLY_COMMANDS,
        )
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL

    handler = COMMANDS[args.command]
    try:
        return handler(args, config, confirmer or ConsoleConfirmer(), SnapshotStore())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except ReplaceInterruptedError as e:
        logger.error("%s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FATAL
    except PreconditionError as e:
        logger.error("%s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        print("No changes were made.", file=sys.stderr)
        return EXIT_FATAL
    except (TimelineSyncError, OSError) as e:
        logger.error("%s", e)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FATAL


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
