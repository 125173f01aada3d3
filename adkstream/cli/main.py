"""
Main CLI entry point for adkstream.

Talks to a coordinator agent from the terminal.
"""

import argparse
import os
import sys

from adkstream import __version__

from .._exceptions import AdkStreamError
from ..client import CoordinatorClient
from .commands import COMMANDS
from .util import configure_logging, graceful_main


def create_client(
    base_url: str | None = None, app_name: str | None = None, timeout: float | None = None
) -> CoordinatorClient:
    """Create the client, exiting with a message on bad configuration."""
    try:
        return CoordinatorClient(base_url=base_url, app_name=app_name, timeout=timeout)
    except AdkStreamError as e:
        print(f"❌ {e.message}")
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="adkstream",
        description="Chat with an ADK coordinator agent",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global arguments
    parser.add_argument(
        "--base-url", help="Agent server URL (or set ADKSTREAM_BASE_URL environment variable)"
    )
    parser.add_argument("--app", help="Agent app name (default: coordinator)")
    parser.add_argument(
        "--timeout", type=float, help="Seconds to wait for each read of the reply stream"
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Use local development server (http://127.0.0.1:8000, or port from ADKSTREAM_PORT)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for command in COMMANDS:
        subparser = subparsers.add_parser(
            command.name, aliases=command.aliases, help=command.description
        )
        command.add_arguments(subparser)
    return parser


def _real_main(argv: list[str]) -> int:
    """Real main CLI logic that handles command parsing and execution."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(verbose=args.verbose)

    base_url = args.base_url
    if args.dev:
        dev_port = os.getenv("ADKSTREAM_PORT", "8000")
        base_url = f"http://127.0.0.1:{dev_port}"

    command = next((c for c in COMMANDS if args.command in c.get_all_names()), None)
    if command is None:
        print(f"❌ Unknown command: {args.command}")
        return 1

    client = create_client(base_url, args.app, args.timeout)
    with client:
        return command.execute(args, client)


def main() -> None:
    """Main CLI entry point with graceful interrupt handling."""
    code = graceful_main(_real_main, sys.argv[1:])
    raise SystemExit(code)


if __name__ == "__main__":
    main()
