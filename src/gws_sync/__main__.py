"""Entry point for ``python -m gws_sync``.

Provides a CLI that syncs Google Workspace directory users into the
employee database.  Uses stdlib :mod:`argparse` for argument parsing.

Subcommands:
    sync-users -- Sync a domain: every user (``--all``), an explicit list
                  (``--emails``), or users modified since a timestamp
                  (``--since``).
    scheduled  -- Run the scheduled job (``recent`` or ``all``), resuming
                  from the stored checkpoint when one is configured.
    monitor    -- Check that the directory answers for a domain and print
                  the API call, cache and error metrics of that check.

Exit codes:
    0 -- Sync completed (individual record errors are reported, not fatal).
    1 -- An error occurred (configuration, credentials, directory failure,
         or no sync mode given).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import sys

from gws_sync.config import ConfigError, load_settings
from gws_sync.directory.exceptions import DirectoryAPIError
from gws_sync.exceptions import SyncFailure
from gws_sync.log import setup_logging
from gws_sync.report_output import print_key_results, print_metrics, print_report
from gws_sync.scheduled import SYNC_TYPES, ScheduledSync
from gws_sync.service import SyncService, build_sync_service


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands.

    Returns:
        Configured :class:`argparse.ArgumentParser` with ``sync-users``,
        ``scheduled`` and ``monitor`` subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="gws-sync",
        description="Sync Google Workspace directory users into the employee database.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "sync-users" subcommand --------------------------------------
    sync_parser = subparsers.add_parser(
        "sync-users",
        help="Sync users from a Workspace domain.",
    )
    sync_parser.add_argument(
        "domain",
        type=str,
        help="Workspace domain to sync (e.g. example.com).",
    )
    mode = sync_parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Sync every user in the domain.",
    )
    mode.add_argument(
        "--emails",
        type=str,
        default=None,
        help="Comma-separated list of emails to sync.",
    )
    mode.add_argument(
        "--since",
        type=str,
        default=None,
        help="Sync users modified since this RFC 3339 timestamp.",
    )
    sync_parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Users per directory page (defaults to SYNC_BATCH_SIZE, 100).",
    )
    sync_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds between pages (defaults to SYNC_DELAY_SECONDS, 1).",
    )
    _add_common_arguments(sync_parser)

    # --- "scheduled" subcommand ---------------------------------------
    scheduled_parser = subparsers.add_parser(
        "scheduled",
        help="Run the scheduled sync job once.",
    )
    scheduled_parser.add_argument(
        "domain",
        type=str,
        help="Workspace domain to sync.",
    )
    scheduled_parser.add_argument(
        "--type",
        dest="sync_type",
        choices=sorted(SYNC_TYPES),
        default="recent",
        help="'recent' (default) for users modified since the last run, 'all' for everyone.",
    )
    _add_common_arguments(scheduled_parser)

    # --- "monitor" subcommand -----------------------------------------
    monitor_parser = subparsers.add_parser(
        "monitor",
        help="Check directory connectivity and show API metrics.",
    )
    monitor_parser.add_argument(
        "domain",
        type=str,
        help="Workspace domain to check.",
    )
    monitor_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        default=False,
        help="Print the raw metrics as JSON.",
    )
    monitor_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Classify users without writing to the employee database.",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        default=False,
        help="Print directory API metrics after the pass.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )


def _load_service(args: argparse.Namespace) -> SyncService | None:
    """Load settings and build the sync service, reporting failures.

    ``LOG_LEVEL`` from the settings applies unless ``--verbose`` was given.

    Returns:
        The service, or ``None`` after printing the error to stderr.
    """
    try:
        settings = load_settings()
        if not args.verbose:
            setup_logging(settings.log_level)
        return build_sync_service(settings, dry_run=getattr(args, "dry_run", False))
    except (ConfigError, DirectoryAPIError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _handle_sync_users(args: argparse.Namespace) -> int:
    """Execute the ``sync-users`` subcommand.

    Args:
        args: Parsed arguments from the ``sync-users`` subparser.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    if not (args.all or args.emails or args.since):
        print(
            "Error: Please specify --all, --emails, or --since",
            file=sys.stderr,
        )
        return 1

    if args.batch_size is not None and args.batch_size < 1:
        print("Error: --batch-size must be at least 1", file=sys.stderr)
        return 1

    service = _load_service(args)
    if service is None:
        return 1
    settings = service.settings

    batch_size = args.batch_size or settings.batch_size
    delay = args.delay if args.delay is not None else settings.delay_seconds
    runner = service.runner

    # --- Run the requested pass ---------------------------------------
    try:
        if args.emails:
            emails = [e.strip() for e in args.emails.split(",") if e.strip()]
            print(f"Syncing {len(emails)} specific user(s) from {args.domain}...")
            results = runner.run_for_keys(args.domain, emails)
            print_key_results(results)
            _print_pass_metrics(args, service)
            return 0

        if args.since:
            print(f"Syncing users from {args.domain} modified since {args.since}...")
            report = runner.run_since(args.domain, args.since, batch_size, delay)
        else:
            print(f"Syncing all users from {args.domain}...")
            report = runner.run_full(args.domain, batch_size, delay)
    except SyncFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        _print_pass_metrics(args, service)
        return 1

    print_report(report, domain=args.domain, dry_run=args.dry_run)
    _print_pass_metrics(args, service)
    return 0


def _handle_scheduled(args: argparse.Namespace) -> int:
    """Execute the ``scheduled`` subcommand.

    Args:
        args: Parsed arguments from the ``scheduled`` subparser.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    service = _load_service(args)
    if service is None:
        return 1
    settings = service.settings

    job = ScheduledSync(
        domain=args.domain,
        sync_type=args.sync_type,
        options={
            "batch_size": settings.batch_size,
            "delay_between_batches": settings.delay_seconds,
        },
        # A dry run must not move the checkpoint forward.
        checkpoints=None if args.dry_run else service.checkpoints,
    )

    try:
        report = job.run(service.runner)
    except SyncFailure as exc:
        print(f"Error: {exc}", file=sys.stderr)
        _print_pass_metrics(args, service)
        return 1

    print_report(report, domain=args.domain, dry_run=args.dry_run)
    _print_pass_metrics(args, service)
    return 0


def _handle_monitor(args: argparse.Namespace) -> int:
    """Execute the ``monitor`` subcommand.

    Lists a single user of the domain through the configured client, then
    prints the metrics the monitor collected for that call.

    Args:
        args: Parsed arguments from the ``monitor`` subparser.

    Returns:
        Exit code: ``0`` when the directory answered, ``1`` otherwise.
    """
    service = _load_service(args)
    if service is None:
        return 1
    if service.directory is None:
        print("Error: No directory client is configured", file=sys.stderr)
        return 1

    exit_code = 0
    try:
        service.directory.list_users(args.domain, max_results=1)
        print(f"Directory API: OK ({args.domain})")
    except DirectoryAPIError as exc:
        print(f"Directory API: FAILED ({args.domain}): {exc}", file=sys.stderr)
        exit_code = 1

    print_metrics(service.monitor.metrics(), as_json=args.as_json)
    return exit_code


def _print_pass_metrics(args: argparse.Namespace, service: SyncService) -> None:
    if args.metrics:
        print_metrics(service.monitor.metrics())


def main(argv: list[str] | None = None) -> int:
    """Run the gws-sync CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help(sys.stderr)
        return 1

    # --- Configure logging --------------------------------------------
    log_level = "DEBUG" if args.verbose else "INFO"
    setup_logging(log_level)

    # --- Dispatch to subcommand handler -------------------------------
    if args.command == "scheduled":
        return _handle_scheduled(args)
    if args.command == "monitor":
        return _handle_monitor(args)

    return _handle_sync_users(args)


if __name__ == "__main__":
    raise SystemExit(main())
