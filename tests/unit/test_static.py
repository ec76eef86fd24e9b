"""
Unit tests for path resolution and the 404 fallback.
"""

import logging
import os
from pathlib import Path

import pytest

from staticserver.handlers.static import (
    StaticFileHandler,
    ResponsePlan,
    FallbackPageError,
)
from staticserver.http.request import HTTPRequest
from staticserver.http.status_codes import HTTPStatus

from conftest import FALLBACK_HTML, INDEX_HTML


def get(path: str, method: str = "GET") -> HTTPRequest:
    return HTTPRequest(method=method, path=path, protocol="HTTP/1.1")


@pytest.fixture
def handler(serve_root: Path) -> StaticFileHandler:
    return StaticFileHandler(serve_root)


def assert_not_found(plan: ResponsePlan):
    assert plan.status == HTTPStatus.NOT_FOUND
    assert plan.body == FALLBACK_HTML


class TestServeFile:
    """Requests that resolve to a readable file."""

    def test_existing_file(self, handler: StaticFileHandler, serve_root: Path):
        """Test a plain GET for an existing file."""
        plan = handler.resolve(get("/index.html"))

        assert plan.status == HTTPStatus.OK
        assert plan.body == INDEX_HTML
        assert plan.file_path == (serve_root / "index.html").resolve()

    def test_nested_file(self, handler: StaticFileHandler):
        """Test a file in a subdirectory."""
        plan = handler.resolve(get("/sub/page.html"))

        assert plan.status == HTTPStatus.OK
        assert plan.body == "<p>sub page</p>"

    def test_path_without_leading_slash(self, handler: StaticFileHandler):
        """Test that a relative request target is joined the same way."""
        assert handler.resolve(get("index.html")).status == HTTPStatus.OK

    def test_crlf_preserved(self, handler: StaticFileHandler, serve_root: Path):
        """Test that file bytes are served without newline translation."""
        (serve_root / "crlf.txt").write_bytes(b"one\r\ntwo\r\n")

        plan = handler.resolve(get("/crlf.txt"))

        assert plan.body == "one\r\ntwo\r\n"

    def test_fallback_page_is_servable(self, handler: StaticFileHandler):
        """Test that the fallback page itself can be requested with 200."""
        plan = handler.resolve(get("/standard_resp/404.html"))

        assert plan.status == HTTPStatus.OK
        assert plan.body == FALLBACK_HTML

    def test_default_root_is_cwd(self, serve_root: Path, monkeypatch):
        """Test that the serving root defaults to the working directory."""
        monkeypatch.chdir(serve_root)
        handler = StaticFileHandler()

        assert handler.root_dir == serve_root.resolve()
        assert handler.resolve(get("/index.html")).status == HTTPStatus.OK


class TestPolicyGuard:
    """Requests refused before touching the requested file."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD", "get"])
    def test_non_get_method(self, handler: StaticFileHandler, method: str):
        """Test that only an exact GET is served."""
        assert_not_found(handler.resolve(get("/index.html", method=method)))

    def test_parent_traversal(self, handler: StaticFileHandler, serve_root: Path):
        """Test that an existing file above the root is not served."""
        assert (serve_root.parent / "secret.txt").is_file()

        assert_not_found(handler.resolve(get("/../secret.txt")))

    def test_dotdot_inside_root(self, handler: StaticFileHandler):
        """Test that '..' is refused even when it stays inside the root."""
        assert_not_found(handler.resolve(get("/sub/../index.html")))

    def test_absolute_path_escape(self, handler: StaticFileHandler, serve_root: Path):
        """Test that '//abs/path' cannot escape through pathlib's join."""
        secret = (serve_root.parent / "secret.txt").resolve()

        assert_not_found(handler.resolve(get("/" + str(secret))))

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_escape(self, handler: StaticFileHandler, serve_root: Path):
        """Test that a symlink pointing out of the root is not followed."""
        (serve_root / "link.txt").symlink_to(serve_root.parent / "secret.txt")

        assert_not_found(handler.resolve(get("/link.txt")))

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlink_inside_root(self, handler: StaticFileHandler, serve_root: Path):
        """Test that a symlink to a file inside the root is served."""
        (serve_root / "alias.html").symlink_to(serve_root / "index.html")

        plan = handler.resolve(get("/alias.html"))

        assert plan.status == HTTPStatus.OK
        assert plan.body == INDEX_HTML


class TestReadFailures:
    """Requests whose file cannot be read fall back to 404."""

    def test_missing_file(self, handler: StaticFileHandler, serve_root: Path):
        """Test a file that does not exist."""
        plan = handler.resolve(get("/missing.html"))

        assert_not_found(plan)
        assert plan.file_path == serve_root.resolve() / "standard_resp/404.html"

    def test_missing_file_logged(self, handler: StaticFileHandler, caplog):
        """Test that the failed path is logged."""
        caplog.set_level(logging.WARNING, logger="staticserver.handlers.static")

        handler.resolve(get("/missing.html"))

        assert "missing.html" in caplog.text

    def test_directory(self, handler: StaticFileHandler):
        """Test that a directory is not readable as a file."""
        assert_not_found(handler.resolve(get("/")))
        assert_not_found(handler.resolve(get("/sub")))

    def test_invalid_utf8(self, handler: StaticFileHandler, serve_root: Path):
        """Test that a non-UTF-8 file falls back to 404."""
        (serve_root / "image.bin").write_bytes(b"\x89PNG\r\n\x1a\n\xff\xfe")

        assert_not_found(handler.resolve(get("/image.bin")))

    def test_nul_byte_in_path(self, handler: StaticFileHandler):
        """Test that an embedded NUL byte does not raise."""
        assert_not_found(handler.resolve(get("/index\x00.html")))


class TestFallbackPage:
    """Behaviour when the fallback page itself is unavailable."""

    def test_missing_fallback_for_missing_file(self, serve_root: Path):
        """Test that a 404 without a fallback page raises."""
        handler = StaticFileHandler(serve_root, fallback_page="nope/404.html")

        with pytest.raises(FallbackPageError):
            handler.resolve(get("/missing.html"))

    def test_missing_fallback_for_refused_method(self, serve_root: Path):
        """Test that a refused request without a fallback page raises."""
        handler = StaticFileHandler(serve_root, fallback_page="nope/404.html")

        with pytest.raises(FallbackPageError):
            handler.resolve(get("/index.html", method="POST"))

    def test_missing_fallback_not_needed_for_ok(self, serve_root: Path):
        """Test that a found file does not depend on the fallback page."""
        handler = StaticFileHandler(serve_root, fallback_page="nope/404.html")

        assert handler.resolve(get("/index.html")).status == HTTPStatus.OK

    def test_custom_fallback_page(self, serve_root: Path):
        """Test a fallback page in a non-default location."""
        (serve_root / "oops.html").write_text("custom 404", encoding="utf-8")
        handler = StaticFileHandler(serve_root, fallback_page="oops.html")

        plan = handler.resolve(get("/missing.html"))

        assert plan.status == HTTPStatus.NOT_FOUND
        assert plan.body == "custom 404"
