"""
=============================================================================
ACCESS LOG
=============================================================================

One record per answered request on the "staticserver.access" logger,
kept apart from diagnostics so it can be routed to its own handler:

    logging.getLogger("staticserver.access").addHandler(file_handler)

Two formats:

    text   127.0.0.1 - - [2026-10-19T12:00:00+00:00] "GET /index.html HTTP/1.1" 200 512 0.84ms
    json   {"request_id": "1a2b3c4d", "method": "GET", "path": "/index.html", ...}

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timezone


logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    request_id: str
    client_ip: str
    method: str
    path: str
    protocol: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        """Apache-style single line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path} {self.protocol}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def now_timestamp() -> str:
    """Current UTC time, ISO 8601, second precision."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def log_request(entry: RequestLog, log_format: str = "text") -> None:
    """Emit an access log record in the configured format."""
    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())
