"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Every accepted client is
wrapped in a Connection and handed to a callback.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create the listening socket
    2. bind()      Reserve HOST:PORT (0.0.0.0:7878 by default)
    3. listen()    OS starts queueing incoming connections
    4. accept()    Take one queued connection → new client socket
    5. close()     Release the listening socket on shutdown

=============================================================================
INTERRUPTIBLE ACCEPT
=============================================================================

accept() would block forever, so the listening socket gets a 1 second
timeout. Each timeout is a chance to check the running flag:

    while running:
        try:
            accept()          # at most 1 s
        except timeout:
            continue          # re-check running

SIGINT (Ctrl+C) and SIGTERM (docker stop, systemd) clear the flag, so the
server exits after the connection it is currently handling.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, ...).

        The socket is created in start(), not here.
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound = threading.Event()
        self._previous_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """True between a successful bind and shutdown()."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After start() this reports the real port, which matters when the
        configured port is 0.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def wait_until_bound(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. For tests and embedders."""
        return self._bound.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting right after a stop would otherwise hit TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Small responses go out immediately
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # Poll interval for the running flag
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers for graceful shutdown.

        Python only allows this from the main thread; when the server runs
        in a background thread (tests) shutdown() must be called directly.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name  # SIGINT or SIGTERM
            logger.info(f"Caught {signal_name}, stopping after the current connection")
            self.shutdown()

        self._previous_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._previous_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Put back the handlers that were installed before start()."""
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called once per accepted connection. With
                                no worker pool the whole request is served
                                inside this call.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Cannot bind {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._bound.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                # Usually means the socket was closed during shutdown
                if self._running:
                    logger.error(f"accept() failed: {e}")
                break

            logger.debug(f"Accepted {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_header_size=self.config.max_header_size,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Stop accepting connections.

        Idempotent; callable from a signal handler or another thread.
        """
        if self._running:
            logger.info("Stopping accept loop")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._bound.clear()
        logger.info("Listening socket closed")
