"""
=============================================================================
REQUEST HANDLERS
=============================================================================

Handlers turn a parsed HTTPRequest into something to send back.

    from staticserver.handlers import StaticFileHandler

    handler = StaticFileHandler("/var/www")
    plan = handler.resolve(request)      # ResponsePlan(status, file_path, body)

=============================================================================
"""

from .static import (
    StaticFileHandler,
    ResponsePlan,
    FallbackPageError,
    DEFAULT_FALLBACK_PAGE,
)

__all__ = [
    "StaticFileHandler",
    "ResponsePlan",
    "FallbackPageError",
    "DEFAULT_FALLBACK_PAGE",
]
