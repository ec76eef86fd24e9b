"""
=============================================================================
HTTP RESPONSE FORMATTER
=============================================================================

Builds the exact bytes written back to the client.

=============================================================================
WIRE LAYOUT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  HTTP/1.1 200 OK\r\n                    ← status line               │
    │  Content-Length: 27\r\n                 ← ONLY header, byte count   │
    │  \r\n                                   ← end of headers            │
    │  <html>...</html>                       ← body, UTF-8               │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Type, Date, Server or Connection header. Clients find
the end of the body from Content-Length alone, so the length must be the
UTF-8 byte count, not the character count:

    "héllo"  →  5 characters, 6 bytes  →  Content-Length: 6

=============================================================================
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .status_codes import HTTPStatus

if TYPE_CHECKING:
    from ..handlers.static import ResponsePlan


def format_response(status_line: str, contents: str) -> bytes:
    """
    Serialize a status line and body into a response.

    Args:
        status_line: e.g. "HTTP/1.1 200 OK" (no trailing CRLF).
        contents: Body text.

    Returns:
        status_line CRLF "Content-Length: N" CRLF CRLF body, as bytes.
    """
    body = contents.encode("utf-8")
    head = f"{status_line}\r\nContent-Length: {len(body)}\r\n\r\n"
    return head.encode("utf-8") + body


@dataclass(frozen=True)
class HTTPResponse:
    """
    A response ready to be written to the socket.

        Handler result           to_bytes()             Socket
        HTTPResponse    ─────►   format_response ─────► sendall()
    """

    status: HTTPStatus = HTTPStatus.OK
    body: str = ""

    @property
    def status_line(self) -> str:
        """Status line, e.g. "HTTP/1.1 404 NOT FOUND"."""
        return self.status.status_line

    @property
    def content_length(self) -> int:
        """Body length in bytes as it will appear on the wire."""
        return len(self.body.encode("utf-8"))

    def to_bytes(self) -> bytes:
        """Serialize for socket.sendall()."""
        return format_response(self.status_line, self.body)

    @classmethod
    def from_plan(cls, plan: "ResponsePlan") -> "HTTPResponse":
        """Build the response for a resolved plan."""
        return cls(status=plan.status, body=plan.body)
