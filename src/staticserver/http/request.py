"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Converts the header lines produced by the framer into an HTTPRequest.

=============================================================================
REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /index.html HTTP/1.1          ← request line (exactly 3 tokens) │
    │  ─┬─ ─────┬───── ────┬───                                           │
    │ Method   Path    Protocol                                           │
    │                                                                      │
    │  Host: example.com                 ← header: split at FIRST ':'     │
    │  ──┬─  ─────┬─────                                                  │
    │   Key     Value (trimmed)                                           │
    └─────────────────────────────────────────────────────────────────────┘

Header keys are kept exactly as received: no trimming, no case folding. A
repeated header replaces the earlier value (last occurrence wins).

The parser is purely syntactic. "DELETE" or "HTTP/9.9" parse fine; deciding
what to do with them is the static handler's job.

=============================================================================
PARSE ERRORS
=============================================================================

    HTTPParseError
      ├── EmptyRequestError          no lines at all
      ├── MalformedRequestLineError  request line is not 3 tokens
      └── MalformedHeaderError       header line without ':' or key

A client that sends a malformed request gets no response; the connection
driver logs the error and closes the socket.

=============================================================================
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple


class HTTPParseError(Exception):
    """Raised when header lines do not form a well-formed request."""


class EmptyRequestError(HTTPParseError):
    """No request line was received."""

    def __init__(self, message: str = "empty request"):
        super().__init__(message)


class MalformedRequestLineError(HTTPParseError):
    """The request line is not METHOD SP PATH SP PROTOCOL."""


class MalformedHeaderError(HTTPParseError):
    """A header line has no ':' separator or an empty key."""


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request line plus its headers.

    Frozen: a request is built once per connection and never changed.
    headers is copied into a read-only mapping, so the request is hashable
    on (method, path, protocol) and its headers cannot be edited in place.

    Attributes:
        method:   Request method as sent ("GET", "POST", ...).
        path:     Request target as sent ("/index.html").
        protocol: Protocol token as sent ("HTTP/1.1").
        headers:  Header name → value, names case-preserved.
        client_address: (ip, port) of the peer, for logging only.
    """

    method: str
    path: str
    protocol: str
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    client_address: Tuple[str, int] = field(default=("", 0), compare=False)

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def get_header(self, name: str, default: str = "") -> str:
        """
        Look up a header by its exact name.

        Keys are not case-normalized, so "host" does not find "Host".
        """
        return self.headers.get(name, default)


class RequestParser:
    """
    Parses framed header lines into HTTPRequest objects.

    The parser holds no per-request state and can be shared.
    """

    def parse(
        self,
        lines: Sequence[str],
        client_address: Tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse an ordered sequence of header lines.

        Args:
            lines: Non-empty lines from the framer, request line first.
            client_address: Peer (ip, port), carried through for logging.

        Returns:
            The parsed request.

        Raises:
            EmptyRequestError: If lines is empty.
            MalformedRequestLineError: If the first line is not 3 tokens.
            MalformedHeaderError: If a header line is malformed.
        """
        if not lines:
            raise EmptyRequestError()

        method, path, protocol = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            protocol=protocol,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> Tuple[str, str, str]:
        # Single-space separator: "GET  / HTTP/1.1" yields 4 tokens and fails
        parts = line.split(" ")
        if len(parts) != 3:
            raise MalformedRequestLineError(
                f"malformed request line: expected 3 tokens, got {len(parts)}: {line!r}"
            )
        method, path, protocol = parts
        return method, path, protocol

    def _parse_headers(self, lines: Sequence[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}

        for line in lines:
            key, sep, value = line.partition(":")
            if not sep:
                raise MalformedHeaderError(f"malformed header, no ':': {line!r}")
            if not key:
                raise MalformedHeaderError(f"malformed header, empty name: {line!r}")
            headers[key] = value.strip()

        return headers


def parse_request(
    lines: List[str],
    client_address: Tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Convenience function to parse header lines in one call.

    Args:
        lines: Header lines from the framer.
        client_address: Peer (ip, port).

    Returns:
        Parsed HTTPRequest.
    """
    return RequestParser().parse(lines, client_address)
