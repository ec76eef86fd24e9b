"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import StaticServer, ServerConfig


FALLBACK_HTML = "<!DOCTYPE html>\n<html><body><h1>Oops!</h1></body></html>\n"
INDEX_HTML = "<!DOCTYPE html>\n<html><body><h1>Hello!</h1></body></html>\n"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /index.html HTTP/1.1\r\n"
        b"Host: example.com\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def serve_root(tmp_path: Path) -> Path:
    """
    A serving root with a few files and a fallback page.

        tmp_path/
        ├── secret.txt              (outside the root)
        └── www/
            ├── index.html
            ├── sub/page.html
            └── standard_resp/404.html
    """
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")

    root = tmp_path / "www"
    (root / "standard_resp").mkdir(parents=True)
    (root / "sub").mkdir()

    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (root / "sub" / "page.html").write_text("<p>sub page</p>", encoding="utf-8")
    (root / "standard_resp" / "404.html").write_text(FALLBACK_HTML, encoding="utf-8")

    return root


class ServerThread:
    """Runs a StaticServer in a background thread."""

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read until the server closes the connection."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            return recv_all(s)


def recv_all(sock: socket.socket) -> bytes:
    """Read until EOF; a reset counts as EOF."""
    chunks = []
    while True:
        try:
            chunk = sock.recv(4096)
        except ConnectionResetError:
            break
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def _start(root: Path, **overrides) -> ServerThread:
    config = ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root_dir=str(root),
        log_level="WARNING",
        **overrides,
    )
    server_thread = ServerThread(StaticServer(config))
    server_thread.start()
    return server_thread


@pytest.fixture
def test_server(serve_root: Path) -> Generator[ServerThread, None, None]:
    """A sequential server (no worker pool) over serve_root."""
    server_thread = _start(serve_root)
    yield server_thread
    server_thread.stop()


@pytest.fixture
def pooled_server(serve_root: Path) -> Generator[ServerThread, None, None]:
    """A server with a two-thread worker pool over serve_root."""
    server_thread = _start(serve_root, workers=2, timeout=5.0)
    yield server_thread
    server_thread.stop()
