"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The protocol side of the server, leaf-first:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ LINE FRAMER (framer.py)                                             │
    │   bytes from recv()  ──►  ["GET / HTTP/1.1", "Host: x"]             │
    ├─────────────────────────────────────────────────────────────────────┤
    │ REQUEST PARSER (request.py)                                         │
    │   header lines       ──►  HTTPRequest(method, path, protocol, ...)  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ RESPONSE FORMATTER (response.py)                                    │
    │   status line + body ──►  b"HTTP/1.1 200 OK\\r\\nContent-Length..."   │
    ├─────────────────────────────────────────────────────────────────────┤
    │ STATUS CODES (status_codes.py)                                      │
    │   HTTPStatus.OK, HTTPStatus.NOT_FOUND and their status lines        │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .framer import (
    LineFramer,
    read_header_lines,
    FramingError,
    EndOfStreamError,
    HeaderTooLargeError,
)
from .request import (
    HTTPRequest,
    RequestParser,
    parse_request,
    HTTPParseError,
    EmptyRequestError,
    MalformedRequestLineError,
    MalformedHeaderError,
)
from .response import HTTPResponse, format_response
from .status_codes import HTTPStatus

__all__ = [
    # Framing
    "LineFramer",
    "read_header_lines",
    "FramingError",
    "EndOfStreamError",
    "HeaderTooLargeError",

    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    "HTTPParseError",
    "EmptyRequestError",
    "MalformedRequestLineError",
    "MalformedHeaderError",

    # Response formatting
    "HTTPResponse",
    "format_response",

    # Status codes
    "HTTPStatus",
]
