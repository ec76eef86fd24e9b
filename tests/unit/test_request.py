"""
Unit tests for HTTP request parsing.
"""

import dataclasses

import pytest

from staticserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    EmptyRequestError,
    MalformedRequestLineError,
    MalformedHeaderError,
    parse_request,
)
from staticserver.http.framer import LineFramer


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        """Test parsing a simple GET request from framed bytes."""
        lines = LineFramer().feed(b"GET /index.html HTTP/1.1\r\nHost: example.com\r\n\r\n")
        request = RequestParser().parse(lines)

        assert request == HTTPRequest(
            method="GET",
            path="/index.html",
            protocol="HTTP/1.1",
            headers={"Host": "example.com"},
        )

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that every header line is parsed."""
        request = parse_request(LineFramer().feed(sample_get_request))

        assert request.headers == {"Host": "example.com", "User-Agent": "pytest"}

    def test_parse_no_headers(self):
        """Test parsing a request with only a request line."""
        request = parse_request(["GET / HTTP/1.1"])

        assert request.method == "GET"
        assert request.path == "/"
        assert request.protocol == "HTTP/1.1"
        assert request.headers == {}

    def test_client_address(self):
        """Test that the peer address is carried through."""
        request = RequestParser().parse(["GET / HTTP/1.1"], ("127.0.0.1", 12345))

        assert request.client_address == ("127.0.0.1", 12345)

    def test_empty_request(self):
        """Test that no lines is an explicit error, not a blank request."""
        with pytest.raises(EmptyRequestError) as exc_info:
            parse_request([])

        assert "empty request" in str(exc_info.value)

    @pytest.mark.parametrize("line", [
        "GET",
        "GET /index.html",
        "GET /index.html HTTP/1.1 extra",
        "GET  /index.html HTTP/1.1",   # double space yields an empty token
        "",
    ])
    def test_malformed_request_line(self, line: str):
        """Test that anything other than 3 tokens is rejected."""
        with pytest.raises(MalformedRequestLineError):
            parse_request([line, "Host: a"])

    def test_malformed_header_no_colon(self):
        """Test a header line without a separator."""
        with pytest.raises(MalformedHeaderError):
            parse_request(["GET / HTTP/1.1", "Host example.com"])

    def test_malformed_header_empty_name(self):
        """Test a header line with nothing before the colon."""
        with pytest.raises(MalformedHeaderError):
            parse_request(["GET / HTTP/1.1", ": value"])

    def test_parse_errors_share_a_base(self):
        """Test the error hierarchy."""
        for error in (EmptyRequestError, MalformedRequestLineError, MalformedHeaderError):
            assert issubclass(error, HTTPParseError)

    def test_header_value_trimmed(self):
        """Test that surrounding whitespace is stripped from values."""
        request = parse_request(["GET / HTTP/1.1", "Accept:   text/html  "])

        assert request.headers["Accept"] == "text/html"

    def test_header_without_space_after_colon(self):
        """Test that OWS after the colon is optional."""
        request = parse_request(["GET / HTTP/1.1", "Accept:text/html"])

        assert request.headers["Accept"] == "text/html"

    def test_header_split_at_first_colon(self):
        """Test that colons in the value are kept."""
        request = parse_request(["GET / HTTP/1.1", "Host: localhost:7878"])

        assert request.headers["Host"] == "localhost:7878"

    def test_header_empty_value(self):
        """Test that an empty value is allowed."""
        request = parse_request(["GET / HTTP/1.1", "X-Empty:"])

        assert request.headers["X-Empty"] == ""

    def test_header_keys_not_normalized(self):
        """Test that keys keep their case and surrounding whitespace."""
        request = parse_request([
            "GET / HTTP/1.1",
            "content-type: text/html",
            "Host : example.com",
        ])

        assert "content-type" in request.headers
        assert "Content-Type" not in request.headers
        assert request.headers["Host "] == "example.com"

    def test_duplicate_header_last_wins(self):
        """Test that a repeated header replaces the earlier value."""
        request = parse_request([
            "GET / HTTP/1.1",
            "Accept: text/html",
            "Accept: application/json",
        ])

        assert request.headers == {"Accept": "application/json"}

    def test_no_method_or_protocol_validation(self):
        """Test that unknown methods and protocols still parse."""
        request = parse_request(["BREW /pot HTCPCP/1.0"])

        assert request.method == "BREW"
        assert request.protocol == "HTCPCP/1.0"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_immutable(self):
        """Test that a parsed request cannot be changed."""
        request = HTTPRequest(method="GET", path="/", protocol="HTTP/1.1")

        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/other"

    def test_get_header_exact_name(self):
        """Test header lookup by exact name."""
        request = HTTPRequest(
            method="GET",
            path="/",
            protocol="HTTP/1.1",
            headers={"Host": "example.com"},
        )

        assert request.get_header("Host") == "example.com"
        assert request.get_header("host") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_equality_ignores_client_address(self):
        """Test that the peer address is metadata only."""
        a = HTTPRequest("GET", "/", "HTTP/1.1", client_address=("10.0.0.1", 1))
        b = HTTPRequest("GET", "/", "HTTP/1.1", client_address=("10.0.0.2", 2))

        assert a == b

    def test_headers_read_only(self):
        """Test that headers cannot be edited after parsing."""
        request = parse_request(["GET / HTTP/1.1", "Host: example.com"])

        with pytest.raises(TypeError):
            request.headers["Host"] = "evil.example"

        assert request.get_header("Host") == "example.com"

    def test_headers_copied_from_input(self):
        """Test that changing the original dict does not leak into the request."""
        source = {"Host": "example.com"}
        request = HTTPRequest("GET", "/", "HTTP/1.1", headers=source)

        source["Host"] = "changed"

        assert request.headers["Host"] == "example.com"

    def test_hashable(self):
        """Test that a request can be used as a dict key or set member."""
        a = parse_request(["GET / HTTP/1.1", "Host: a"])
        b = parse_request(["GET / HTTP/1.1", "Host: a"])

        assert hash(a) == hash(b)
        assert len({a, b}) == 1
