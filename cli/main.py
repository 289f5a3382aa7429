"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys

from cli.auth_handlers import login, run_check, run_holdings
from cli.status_display import show_store_status
from config import load_settings
from kite_auth import KiteSessionManager
from utils.debug_console import create_debug_console, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Kite Connect session keeper")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-file",
        default=None,
        help="Credential .env file (default: KITE_ENV_FILE or .env)"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    auth_parser = subparsers.add_parser("auth", help="Log in and store a new access token")
    auth_parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Only print the login URL, don't try to open a browser"
    )
    subparsers.add_parser("check", help="Validate the stored token, refreshing it if possible")
    subparsers.add_parser("status", help="Show which tokens are stored")
    subparsers.add_parser("holdings", help="Validate the session and show portfolio holdings")
    return parser


def main(argv=None) -> int:
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = load_settings(args.env_file)
    debug_logger = setup_logging(level=settings.log_level, debug=args.debug)
    console = create_debug_console(debug_enabled=args.debug, debug_logger=debug_logger)

    session = KiteSessionManager(settings)

    try:
        if args.command == "auth":
            return asyncio.run(login(session, console, open_browser=not args.no_browser))
        if args.command == "check":
            return asyncio.run(run_check(session, console))
        if args.command == "status":
            show_store_status(session.store, console)
            return 0
        if args.command == "holdings":
            return asyncio.run(run_holdings(session, console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 1

    parser.error(f"unknown command: {args.command}")
    return 2


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
