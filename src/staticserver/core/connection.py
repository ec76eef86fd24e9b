"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: buffered reading of the header block,
writing the response, and a clean close.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED │
    │              │             │                                  ▲      │
    │              └─────────────┴── framing / parse error ─────────┘      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no keep-alive. After the response is written (or after any
failure) the socket is shut down and closed. Nothing read after the blank
line that ends the headers is ever looked at.

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..http.framer import read_header_lines


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Reading the header block
    PROCESSING = "processing"  # Parsing and resolving
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier for log lines.
        state: Current lifecycle state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes requested per recv().
        timeout: Socket timeout; None blocks forever.
        max_header_size: Bound on buffered header bytes; None is unbounded.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = None
    max_header_size: Optional[int] = None

    bytes_received: int = field(default=0, repr=False)
    bytes_sent: int = field(default=0, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_header_lines(self) -> List[str]:
        """
        Read until the blank line that ends the header block.

        Returns:
            Header lines, request line first.

        Raises:
            EndOfStreamError: If the client closes before the blank line.
            HeaderTooLargeError: If max_header_size is exceeded.
            socket.timeout: If a timeout is configured and expires.
        """
        self.state = ConnectionState.READING
        lines = read_header_lines(self._recv, max_size=self.max_header_size)
        self.state = ConnectionState.PROCESSING
        return lines

    def _recv(self) -> bytes:
        """
        Receive one chunk.

        A reset or broken pipe is reported as end of stream (b"").
        """
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.bytes_received += len(data)
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the whole response.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

        self.bytes_sent += len(data)
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) sends FIN so the client sees end of response,
        then the descriptor is released. Safe to call twice.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed "
            f"({self.bytes_received} bytes in, {self.bytes_sent} bytes out)"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
