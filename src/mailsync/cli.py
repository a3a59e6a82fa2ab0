"""Command-line entry point for mailsync.

Subcommands:

- ``plan``      -- print the operations needed to reconcile a profile.
- ``snapshot``  -- record the current state of both sides as baseline.
- ``init``      -- write a starter config file.

Plan output goes to stdout; logs and errors go to stderr.
"""

import argparse
import json
import logging
import sys

import yaml
from dotenv import load_dotenv
from imapclient.exceptions import IMAPClientError

from . import __version__
from .config import load_config
from .config_loader import ensure_config, read_config_file
from .config_schema import SyncProfileConfig, UnifiedConfig, build_config
from .core.client import MailboxClient
from .errors import CorruptBaselineError, SnapshotError
from .logger import setup_logging
from .sync.planner import SyncPlanner
from .sync.reporter import format_plan_report, plan_to_json

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SYNC_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mailsync",
        description="Plan IMAP/Maildir synchronisation from cached baselines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would change for the 'inbox' profile
  mailsync plan

  # Same, as JSON for an executor
  mailsync --profile work plan --json

  # Ad-hoc profile without a config file
  mailsync --host imap.example.com --username alice \\
      --maildir ~/Mail/INBOX plan

  # Record the converged state after applying a plan
  mailsync snapshot

The IMAP password is read from MAILSYNC_PASSWORD (or a .env file) or the
'imap.password' config key.
        """,
    )
    parser.add_argument(
        "--profile",
        default="inbox",
        help="Sync profile name from the config file (default: inbox)",
    )
    parser.add_argument(
        "--host",
        help="Override IMAP host (takes precedence over MAILSYNC_HOST and config files)",
    )
    parser.add_argument(
        "--port", type=int, help="Override IMAP port"
    )
    parser.add_argument(
        "--username",
        help="Override IMAP username (takes precedence over MAILSYNC_USERNAME and config files)",
    )
    parser.add_argument(
        "--no-ssl",
        action="store_true",
        help="Connect without implicit TLS (use only for development)",
    )
    parser.add_argument(
        "--folder", help="IMAP folder, overrides the profile's folder"
    )
    parser.add_argument(
        "--maildir", help="Maildir path, overrides the profile's maildir"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument("--log-file", help="Also append logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"mailsync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    plan = sub.add_parser("plan", help="Print the sync plan")
    plan.add_argument(
        "--json", action="store_true", help="Print the plan as JSON"
    )
    sub.add_parser(
        "snapshot", help="Record the current state as the new baseline"
    )
    sub.add_parser("init", help="Create a starter config file")
    return parser


def resolve_profile(
    unified: UnifiedConfig, args: argparse.Namespace
) -> SyncProfileConfig:
    """Pick the configured profile and apply CLI overrides.

    Raises:
        ValueError: If the profile is unknown and no ``--maildir`` was
            given.
    """
    overrides = {}
    if args.folder:
        overrides["folder"] = args.folder
    if args.maildir:
        overrides["maildir"] = args.maildir

    if args.profile in unified.sync:
        profile = unified.get_profile(args.profile)
        return profile.model_copy(update=overrides)
    if args.maildir:
        return SyncProfileConfig(**overrides)
    return unified.get_profile(args.profile)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)

    if args.command == "init":
        path = ensure_config()
        print(f"Config file: {path}")
        return EXIT_OK

    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    try:
        unified = build_config(read_config_file())
    except (ValueError, OSError, yaml.YAMLError) as exc:
        print(f"ERROR: Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format,
        default_level=unified.logging.level,
    )

    try:
        profile = resolve_profile(unified, args)
        config = load_config(
            host=args.host,
            username=args.username,
            port=args.port,
            no_ssl=args.no_ssl,
            yaml_fallbacks={
                k: v
                for k, v in unified.imap.model_dump().items()
                if v is not None
            },
        )
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"ERROR: Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        with MailboxClient(config) as client:
            planner = SyncPlanner(client, profile, args.profile)
            if args.command == "plan":
                report = planner.plan()
                if args.json:
                    print(json.dumps(plan_to_json(report), indent=2))
                else:
                    print(format_plan_report(report))
            else:
                remote, local = planner.record_baseline()
                print(
                    f"Recorded baseline for '{args.profile}': "
                    f"{len(remote)} remote, {len(local)} local messages"
                )
    except (SnapshotError, CorruptBaselineError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_SYNC_ERROR
    except (IMAPClientError, OSError) as exc:
        logger.error("IMAP error: %s", exc)
        print(f"ERROR: IMAP error: {exc}", file=sys.stderr)
        return EXIT_SYNC_ERROR

    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
