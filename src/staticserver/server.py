"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the pieces together and drives each connection through the pipeline.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer ──accept──► Connection                               │
    │                                │                                     │
    │                    (inline, or via ThreadPool)                       │
    │                                ▼                                     │
    │   StaticServer.handle_connection(conn)                               │
    │       │                                                              │
    │       ├─► conn.read_header_lines()   LineFramer   → lines            │
    │       ├─► RequestParser.parse()                   → HTTPRequest      │
    │       ├─► StaticFileHandler.resolve()             → ResponsePlan     │
    │       ├─► HTTPResponse.to_bytes()    format_response → bytes         │
    │       └─► conn.send_response()  →  close                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FAILURE POLICY
=============================================================================

    Failure                          Client sees           Server
    ───────────────────────────────  ────────────────────  ────────────────
    Stream ends before blank line    nothing, closed       logs, continues
    Malformed / empty request        nothing, closed       logs, continues
    Socket timeout or error          nothing, closed       logs, continues
    File missing / unreadable        404 + fallback page   logs, continues
    Fallback page unreadable         nothing, closed       logs, continues

No failure in one connection ever reaches another one or the accept loop.

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .http import (
    RequestParser,
    HTTPParseError,
    FramingError,
    HTTPResponse,
)
from .handlers import StaticFileHandler, FallbackPageError
from .accesslog import RequestLog, log_request, now_timestamp


logger = logging.getLogger(__name__)


class StaticServer:
    """
    HTTP/1.1 static file server, one request per connection.

    Usage:
        server = StaticServer(ServerConfig(port=7878, root_dir="./public"))
        server.run()   # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if omitted.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()
        self._handler = StaticFileHandler(
            root_dir=self.config.root_dir,
            fallback_page=self.config.fallback_page,
        )

        self._thread_pool: Optional[ThreadPool] = None
        if self.config.workers > 0:
            self._thread_pool = ThreadPool(
                workers=self.config.workers,
                queue_size=self.config.queue_size,
            )

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections."""
        return self._socket_server.wait_until_bound(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._setup_logging()
        logger.info(f"Serving files from {self._handler.root_dir}")

        if self._thread_pool is not None:
            self._thread_pool.start()

        try:
            self._socket_server.start(self._dispatch)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask the accept loop to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("staticserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")

        if self._thread_pool is not None:
            discarded = self._thread_pool.shutdown(
                wait=True,
                timeout=self.config.shutdown_timeout,
            )
            for task in discarded:
                conn = task.args[0]
                logger.warning(f"[{conn.id}] Closing unserved connection")
                conn.close()

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _dispatch(self, conn: Connection):
        """Serve inline, or hand the connection to the worker pool."""
        if self._thread_pool is None:
            try:
                self.handle_connection(conn)
            except Exception as e:
                # Keep the accept loop alive; workers do the same for pooled tasks
                logger.exception(f"[{conn.id}] Unhandled error: {e}")
            return

        if not self._thread_pool.submit(self.handle_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Thread pool full, dropping connection")
            conn.close()

    def handle_connection(self, conn: Connection) -> Optional[HTTPResponse]:
        """
        Serve one connection from first byte to close.

        Returns:
            The response sent, or None if the connection was abandoned.
        """
        started = time.time()

        with conn:
            try:
                lines = conn.read_header_lines()
                request = self._parser.parse(lines, conn.address)
            except (FramingError, HTTPParseError) as e:
                logger.warning(f"[{conn.id}] Request failed: {e}")
                return None
            except OSError as e:
                # Includes socket.timeout when a timeout is configured
                logger.warning(f"[{conn.id}] Request failed: {e!r}")
                return None

            logger.info(
                f"[{conn.id}] Received request: {request.method} {request.path} "
                f"{request.protocol} headers={dict(request.headers)}"
            )

            try:
                plan = self._handler.resolve(request)
            except FallbackPageError as e:
                logger.error(f"[{conn.id}] Request failed: {e}")
                return None

            response = HTTPResponse.from_plan(plan)
            if not conn.send_response(response.to_bytes()):
                return None

            log_request(
                RequestLog(
                    request_id=conn.id,
                    client_ip=conn.client_ip,
                    method=request.method,
                    path=request.path,
                    protocol=request.protocol,
                    status_code=int(response.status),
                    content_length=response.content_length,
                    duration_ms=(time.time() - started) * 1000,
                    timestamp=now_timestamp(),
                ),
                self.config.log_format,
            )

            return response
