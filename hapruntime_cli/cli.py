"""haproxy-runtime-cli entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from hapruntime import __version__
from hapruntime.help import MalformedHelpLine, parse_help
from hapruntime.pages import HELP_COMMAND
from hapruntime.router import FatalError, PageRouter
from hapruntime.state import SHOW_SERVERS_STATE, MalformedField, parse_backends
from hapruntime.transport import (
    TransportConfig,
    TransportError,
    connection_factory,
    execute,
    execute_nonempty,
    parse_tcp_address,
)

from .output import format_backends, format_help_listing
from .repl import RuntimeREPL

LOG = logging.getLogger("hapruntime_cli.cli")

SOCKET_ENV = "HAPROXY_RUNTIME_SOCKET"
LOG_ENV = "HAPROXY_RUNTIME_LOG"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HAProxy runtime API client")
    parser.add_argument(
        "socket",
        nargs="?",
        default=os.environ.get(SOCKET_ENV),
        help=f"HAProxy stats socket path or host:port (default ${SOCKET_ENV})",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=os.environ.get(LOG_ENV, "INFO"), help="Logging level (default INFO)")
    parser.add_argument(
        "-c",
        "--command",
        help="Execute a single runtime command non-interactively and print the response",
    )
    parser.add_argument("--help-listing", action="store_true", help="Print the parsed 'help' listing and exit")
    parser.add_argument("--servers", action="store_true", help="Print the server state table and exit")
    parser.add_argument("--connect-timeout", type=float, help="Socket connect timeout in seconds (default none)")
    parser.add_argument("--read-timeout", type=float, help="Socket read timeout in seconds (default none)")
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".haproxy-runtime-cli-history",
        help="Path to command history file (prompt_toolkit mode)",
    )
    parser.add_argument("--plain", action="store_true", help="Read input with input() instead of prompt_toolkit")
    return parser


def validate_socket(address: Optional[str]) -> Optional[str]:
    """Return an error message when *address* cannot be a runtime socket."""
    if not address:
        return "Please specify a haproxy socket as argument"
    if parse_tcp_address(address) is not None:
        return None
    path = Path(address[len("unix@"):] if address.startswith("unix@") else address)
    if not path.exists():
        return f"{path}: no such file"
    if path.is_dir():
        return f"{path} is not a valid haproxy socket"
    return None


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    problem = validate_socket(args.socket)
    if problem:
        print(f"error: {problem}", file=sys.stderr)
        return 2
    config = TransportConfig(
        address=args.socket,
        connect_timeout=args.connect_timeout,
        read_timeout=args.read_timeout,
    )
    connect = connection_factory(config)
    try:
        if args.command:
            print(execute(connect, args.command))
            return 0
        if args.help_listing:
            print(format_help_listing(parse_help(execute_nonempty(connect, HELP_COMMAND))))
            return 0
        if args.servers:
            print(format_backends(parse_backends(execute(connect, SHOW_SERVERS_STATE))))
            return 0
    except (TransportError, MalformedField, MalformedHelpLine) as exc:
        LOG.debug("command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    router = PageRouter.for_socket(connect)
    repl = RuntimeREPL(router, history_path=str(args.history), plain=args.plain)
    try:
        return repl.run()
    except FatalError as exc:
        LOG.error("session terminated: %s", exc.error)
        print(f"error: {exc.error}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
        return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
