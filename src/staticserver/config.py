"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver --port 3000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATIC_PORT=3000 python -m staticserver                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

Validation happens once at startup: a bad port or log level should stop
the process before it binds, not surface on the first request.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from .handlers.static import DEFAULT_FALLBACK_PAGE


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK         host, port, backlog, buffer_size, timeout
    FRAMING         max_header_size
    FILES           root_dir, fallback_page
    CONCURRENCY     workers, queue_size, shutdown_timeout
    LOGGING         log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. All interfaces by default."""

    port: int = 7878
    """Port to listen on. 0 lets the OS pick one (tests)."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 1024
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = block forever on a silent client (one slow client stalls
    everyone when workers == 0).
    """

    # ─────────────────────────────────────────────────────────────────────
    # FRAMING
    # ─────────────────────────────────────────────────────────────────────

    max_header_size: Optional[int] = None
    """
    Upper bound on the whole header block in bytes, request line and CRLFs
    included. None = unbounded.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    root_dir: Optional[str] = None
    """Serving root. None = current working directory."""

    fallback_page: str = DEFAULT_FALLBACK_PAGE
    """Body of every 404 response, relative to root_dir."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 0
    """
    Worker threads. 0 handles each connection on the accept loop, one at
    a time. N > 0 hands connections to a pool of N threads.
    """

    queue_size: int = 100
    """Connections waiting for a worker before new ones are dropped."""

    shutdown_timeout: float = 30.0
    """
    Seconds to let queued connections finish on shutdown. Connections
    still queued after that are closed unanswered.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        STATIC_HOST        Bind address (default: 0.0.0.0)
        STATIC_PORT        Port (default: 7878)
        STATIC_ROOT        Serving root (default: cwd)
        STATIC_WORKERS     Worker threads (default: 0)
        STATIC_TIMEOUT     Socket timeout in seconds (default: none)
        STATIC_MAX_HEADER_SIZE  Header block limit in bytes (default: none)
        STATIC_LOG_LEVEL   Logging level (default: INFO)
        STATIC_LOG_FORMAT  Access log format (default: text)
        """
        timeout = os.getenv("STATIC_TIMEOUT")
        max_header_size = os.getenv("STATIC_MAX_HEADER_SIZE")
        return cls(
            host=os.getenv("STATIC_HOST", "0.0.0.0"),
            port=int(os.getenv("STATIC_PORT", "7878")),
            root_dir=os.getenv("STATIC_ROOT"),
            workers=int(os.getenv("STATIC_WORKERS", "0")),
            timeout=float(timeout) if timeout else None,
            max_header_size=int(max_header_size) if max_header_size else None,
            log_level=os.getenv("STATIC_LOG_LEVEL", "INFO"),
            log_format=os.getenv("STATIC_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_header_size is not None and self.max_header_size < 1:
            raise ValueError("max_header_size must be >= 1")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be > 0")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f"Unknown log format: {self.log_format}. Use one of {LOG_FORMATS}."
            )
