"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Decides what a request gets back: the requested file with 200 OK, or the
fallback page with 404 NOT FOUND.

=============================================================================
RESOLUTION FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   HTTPRequest                                                        │
    │       │                                                              │
    │       ▼                                                              │
    │   method != GET  or  ".." in path ? ──── yes ───┐                   │
    │       │ no                                       │                   │
    │       ▼                                          │                   │
    │   root / path.removeprefix("/")                  │                   │
    │       │                                          │                   │
    │       ▼                                          │                   │
    │   resolve(), still inside root? ──── no ────────┤                   │
    │       │ yes                                      │                   │
    │       ▼                                          │                   │
    │   read as UTF-8 ok? ──── no (log it) ───────────┤                   │
    │       │ yes                                      ▼                   │
    │       ▼                               404 NOT FOUND + fallback page │
    │   200 OK + file contents                         │                   │
    │                                                  ▼                   │
    │                                  fallback unreadable? ──► raise     │
    │                                                   FallbackPageError │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PATH TRAVERSAL
=============================================================================

Two independent guards:

1. Any ".." in the raw path is rejected outright. Crude (it also rejects
   "/notes..txt"), but cheap and checked before touching the disk.

2. The joined path is canonicalised with Path.resolve() (following
   symlinks) and must still be inside the serving root. This catches what
   the substring check cannot, e.g. "//etc/passwd", which pathlib joins
   as an absolute path, or a symlink pointing out of the root.

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_PAGE = "standard_resp/404.html"


class FallbackPageError(Exception):
    """The 404 fallback page itself could not be read."""


@dataclass(frozen=True)
class ResponsePlan:
    """
    What to send for one request.

    Attributes:
        status: HTTPStatus.OK or HTTPStatus.NOT_FOUND.
        file_path: The file whose contents make up the body.
        body: Contents of file_path, decoded as UTF-8.
    """

    status: HTTPStatus
    file_path: Path
    body: str


class StaticFileHandler:
    """
    Resolves requests against a serving root.

    Usage:
        handler = StaticFileHandler("/var/www")
        plan = handler.resolve(request)
        conn.send_response(HTTPResponse.from_plan(plan).to_bytes())
    """

    def __init__(
        self,
        root_dir: Optional[Union[str, Path]] = None,
        fallback_page: Union[str, Path] = DEFAULT_FALLBACK_PAGE,
    ):
        """
        Args:
            root_dir: Directory to serve. Defaults to the current working
                      directory at construction time.
            fallback_page: Body for every 404, relative to root_dir unless
                           absolute.
        """
        self.root_dir = Path(root_dir if root_dir is not None else os.getcwd()).resolve()
        self.fallback_path = self.root_dir / fallback_page

    def resolve(self, request: HTTPRequest) -> ResponsePlan:
        """
        Build the response plan for a request.

        Raises:
            FallbackPageError: If the request ends up as a 404 and the
                               fallback page cannot be read either.
        """
        if request.method != "GET" or ".." in request.path:
            logger.info(f"Refusing {request.method} {request.path}")
            return self._fallback()

        file_path = self._target_path(request.path)
        if file_path is None:
            logger.warning(f"Path escapes serving root: {request.path}")
            return self._fallback()

        try:
            body = _read_text(file_path)
        except (OSError, ValueError) as e:
            logger.warning(f"Read file {file_path} failed: {e}")
            return self._fallback()

        return ResponsePlan(status=HTTPStatus.OK, file_path=file_path, body=body)

    def _target_path(self, request_path: str) -> Optional[Path]:
        """Join, canonicalise and confine; None if outside the root."""
        relative = request_path[1:] if request_path.startswith("/") else request_path

        try:
            full_path = (self.root_dir / relative).resolve()
            full_path.relative_to(self.root_dir)
        except (OSError, ValueError, RuntimeError):
            # ValueError: outside root or NUL byte; RuntimeError: symlink loop
            return None

        return full_path

    def _fallback(self) -> ResponsePlan:
        try:
            body = _read_text(self.fallback_path)
        except (OSError, ValueError) as e:
            logger.error(f"Read fallback page {self.fallback_path} failed: {e}")
            raise FallbackPageError(
                f"Cannot read fallback page {self.fallback_path}"
            ) from e

        return ResponsePlan(
            status=HTTPStatus.NOT_FOUND,
            file_path=self.fallback_path,
            body=body,
        )


def _read_text(path: Path) -> str:
    # read_bytes + decode: read_text() would translate \r\n and change the length
    return path.read_bytes().decode("utf-8")
