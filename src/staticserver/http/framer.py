"""
=============================================================================
LINE FRAMER
=============================================================================

Turns the raw byte stream of a connection into request header lines.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

recv() returns whatever the kernel has buffered, so a request line can
arrive in pieces, and a CRLF can even be split between two reads:

    recv() → b"GET /index.ht"
    recv() → b"ml HTTP/1.1\r"
    recv() → b"\nHost: localhost\r\n\r\n"

The framer keeps unconsumed bytes in a buffer and only emits a line once
its terminating CRLF has arrived. Because lines are cut from the buffer
(never from a single chunk), the output is the same no matter how the
bytes were split:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        FRAMING STATE MACHINE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    feed(chunk) ──► buffer += chunk                                  │
    │                       │                                              │
    │                       ▼                                              │
    │              ┌─────────────────┐   no                               │
    │              │ CRLF in buffer? │ ──────► return lines so far        │
    │              └────────┬────────┘                                    │
    │                       │ yes                                          │
    │                       ▼                                              │
    │              ┌─────────────────┐   yes                              │
    │              │  line is empty? │ ──────► complete = True, stop      │
    │              └────────┬────────┘                                    │
    │                       │ no                                           │
    │                       ▼                                              │
    │              append line, drop it and its CRLF from buffer          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The empty line that ends the header block is never part of the output.
Anything after it stays in the buffer and is ignored: the server reads no
request bodies and serves one request per connection.

=============================================================================
"""

import logging
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

CRLF = b"\r\n"


class FramingError(Exception):
    """Raised when a complete header block cannot be read."""


class EndOfStreamError(FramingError):
    """The peer closed the stream before the blank line was received."""


class HeaderTooLargeError(FramingError):
    """The buffered header block grew past the configured limit."""


class LineFramer:
    """
    Incremental CRLF line splitter for one connection.

    Usage:
        framer = LineFramer()
        lines = []
        while not framer.complete:
            lines.extend(framer.feed(sock.recv(1024)))
    """

    def __init__(self, max_size: Optional[int] = None):
        """
        Args:
            max_size: Upper bound for the whole header block in bytes,
                      CRLFs included. None means unbounded.
        """
        self.max_size = max_size
        self._buffer = b""
        self._framed_bytes = 0
        self._complete = False

    @property
    def complete(self) -> bool:
        """True once the blank line ending the header block was seen."""
        return self._complete

    @property
    def header_size(self) -> int:
        """Bytes of the header block seen so far, framed or not."""
        if self._complete:
            return self._framed_bytes
        return self._framed_bytes + len(self._buffer)

    @property
    def pending(self) -> bytes:
        """Bytes received but not consumed as a line."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[str]:
        """
        Append a chunk and drain every complete line from the buffer.

        Once the header block is complete, further chunks are kept in the
        buffer but never framed.

        Returns:
            The lines completed by this chunk, in order.

        Raises:
            HeaderTooLargeError: If max_size is set and exceeded.
        """
        self._buffer += chunk
        lines: List[str] = []

        while not self._complete:
            index = self._buffer.find(CRLF)
            if index == -1:
                break

            line = self._buffer[:index]
            self._buffer = self._buffer[index + len(CRLF):]
            self._framed_bytes += index + len(CRLF)

            if not line:
                self._complete = True
                break

            lines.append(line.decode("utf-8", errors="replace"))

        if self.max_size is not None and self.header_size > self.max_size:
            raise HeaderTooLargeError(
                f"Header block too large: {self.header_size} bytes"
            )

        return lines


def read_header_lines(
    recv: Callable[[], bytes],
    max_size: Optional[int] = None,
) -> List[str]:
    """
    Read from a byte source until the header block is complete.

    Args:
        recv: Returns the next chunk; b"" means the stream ended.
        max_size: Optional bound on the header block size in bytes.

    Returns:
        Header lines in arrival order, without the terminating blank line.

    Raises:
        EndOfStreamError: If the stream ends before the blank line.
        HeaderTooLargeError: If max_size is exceeded.
    """
    framer = LineFramer(max_size=max_size)
    lines: List[str] = []

    while not framer.complete:
        chunk = recv()
        if not chunk:
            raise EndOfStreamError(
                f"Stream ended after {len(lines)} header lines"
            )
        lines.extend(framer.feed(chunk))

    logger.debug(f"Framed {len(lines)} header lines")
    return lines
