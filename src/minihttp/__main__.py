"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

    # Serve the current directory on 0.0.0.0:4221
    python -m minihttp

    # Serve /tmp/files
    python -m minihttp --directory /tmp/files

    # Local only, another port, verbose
    python -m minihttp --host 127.0.0.1 --port 8080 --log-level DEBUG

    # Log live session and thread counts every second
    DEBUG=1 python -m minihttp

Environment variables (see ServerConfig.from_env) provide the defaults;
flags override them.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .app import create_app
from .config import LOG_LEVELS, ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Minimal HTTP/1.1 server on raw TCP sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttp                          # 0.0.0.0:4221, files from .
  python -m minihttp --directory /tmp/files   # files from /tmp/files
  python -m minihttp --port 8080 --debug      # custom port, session monitor
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=defaults.directory,
        help="Directory served by the /files/ routes (default: %(default)s)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help="Address to bind (default: %(default)s)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help="Port to listen on (default: %(default)s)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # DIAGNOSTICS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help="Logging level (default: %(default)s)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=defaults.debug,
        help="Log live session and thread counts every second",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="minihttp {}".format(__version__),
    )

    return parser


def parse_config(argv: Optional[List[str]] = None) -> ServerConfig:
    """Environment defaults overridden by command-line flags."""
    config = ServerConfig.from_env()
    args = build_parser(config).parse_args(argv)

    config.directory = args.directory
    config.host = args.host
    config.port = args.port
    config.log_level = args.log_level
    config.debug = args.debug
    return config


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_config(argv)

    try:
        server = create_app(config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
