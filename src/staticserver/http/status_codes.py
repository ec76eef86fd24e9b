"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with two status lines:

    ┌────────┬──────────────────────────────────────────────────────────┐
    │  200   │ HTTP/1.1 200 OK          - file found and readable       │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  404   │ HTTP/1.1 404 NOT FOUND   - everything else (fallback)    │
    └────────┴──────────────────────────────────────────────────────────┘

The reason phrase for 404 is upper-case on the wire ("NOT FOUND"), not the
RFC 7231 spelling ("Not Found"). Clients only look at the code, but the
exact bytes are part of the response contract, so the phrases live here.

=============================================================================
"""

from enum import IntEnum


HTTP_VERSION = "HTTP/1.1"


class HTTPStatus(IntEnum):
    """
    Status codes produced by the server.

    IntEnum, so members compare equal to their integer code:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.status_line
        'HTTP/1.1 404 NOT FOUND'
    """

    OK = 200          # Requested file was read successfully
    NOT_FOUND = 404   # Bad method, unsafe path or unreadable file

    @property
    def phrase(self) -> str:
        """Reason phrase written after the status code."""
        return _STATUS_PHRASES[self]

    @property
    def status_line(self) -> str:
        """
        Full status line without the trailing CRLF.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        """
        return f"{HTTP_VERSION} {int(self)} {self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "NOT FOUND",
}
