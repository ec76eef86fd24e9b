"""
=============================================================================
STATICSERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 0.0.0.0:7878
    python -m staticserver

    # Another directory and port
    python -m staticserver --root ./public --port 3000

    # Serve connections concurrently on 8 worker threads
    python -m staticserver --workers 8

    # JSON access log, verbose diagnostics
    python -m staticserver --log-format json --log-level DEBUG

Settings not given on the command line come from STATIC_* environment
variables (see ServerConfig.from_env), then from the defaults.

=============================================================================
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import ServerConfig, LOG_FORMATS
from .server import StaticServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Minimal HTTP/1.1 static file server built on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                       # Serve cwd on 0.0.0.0:7878
  python -m staticserver --root ./public       # Serve another directory
  python -m staticserver --port 3000           # Custom port
  python -m staticserver --workers 8           # 8 worker threads
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 7878)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-connection socket timeout in seconds (default: none)",
    )

    parser.add_argument(
        "--max-header-size",
        type=int,
        default=None,
        help="Reject requests whose header block exceeds this many bytes (default: no limit)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILES AND CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Directory to serve (default: current directory)",
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads; 0 serves connections one at a time (default: 0)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment config with any command-line values laid over it."""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "timeout": args.timeout,
        "max_header_size": args.max_header_size,
        "root_dir": args.root,
        "workers": args.workers,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, build the server, run it. Returns the exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = StaticServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
