"""
Unit tests for the HTTP request frame scanner.
"""

import pytest

from minihttp.http.request import (
    FrameScanner,
    HTTPParseError,
    HTTPRequest,
    IncompleteRequestError,
    ScanState,
    parse_request,
)


class TestParseRequest:
    """Tests for single, complete requests."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.method == "get"
        assert request.url == "/echo/abc?x=1"
        assert request.path == "/echo/abc"
        assert request.query_string == "x=1"
        assert request.version == "HTTP/1.1"
        assert request.body == b""

    def test_headers_lowercased_and_trimmed(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:4221"
        assert request.headers["user-agent"] == "pytest"
        assert request.user_agent == "pytest"
        assert request.accept_encoding == "gzip"
        assert all(name == name.lower() for name in request.headers)

    def test_get_header_is_case_insensitive(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.get_header("USER-AGENT") == "pytest"
        assert request.get_header("x-missing") == ""
        assert request.get_header("x-missing", "fallback") == "fallback"

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "post"
        assert request.path == "/files/notes.txt"
        assert request.body == b"hello world"

    def test_method_is_lowercased(self):
        request = parse_request(b"DeLeTe /x HTTP/1.1\r\n\r\n")
        assert request.method == "delete"

    def test_version_kept_as_sent(self):
        request = parse_request(b"GET / HTTP/1.0\r\n\r\n")
        assert request.version == "HTTP/1.0"

    def test_last_duplicate_header_wins(self):
        raw = b"GET / HTTP/1.1\r\nX-Tag: one\r\nx-tag: two\r\n\r\n"
        assert parse_request(raw).headers["x-tag"] == "two"

    def test_header_without_colon_has_empty_value(self):
        raw = b"GET / HTTP/1.1\r\nWeird\r\n\r\n"
        assert parse_request(raw).headers["weird"] == ""

    def test_header_value_may_contain_colons(self):
        raw = b"GET / HTTP/1.1\r\nHost: example.com:8080\r\n\r\n"
        assert parse_request(raw).headers["host"] == "example.com:8080"

    @pytest.mark.parametrize("value", [b"abc", b"-5", b""])
    def test_unusable_content_length_is_zero(self, value: bytes):
        raw = b"POST /files/a HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"
        request = parse_request(raw)
        assert request.body == b""

    def test_body_is_exactly_content_length(self):
        raw = b"POST /x HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcdef"
        scanner = FrameScanner()
        requests = scanner.feed(raw)

        assert len(requests) == 1
        assert requests[0].body == b"abc"
        assert scanner.has_partial_frame  # "def" waits as the next request line

    @pytest.mark.parametrize("line", [
        b"GET\r\n\r\n",
        b"GET /\r\n\r\n",
        b"GET / HTTP/1.1 extra\r\n\r\n",
        b"GET  / HTTP/1.1\r\n\r\n",
    ])
    def test_malformed_request_line(self, line: bytes):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(line)
        assert exc_info.value.status_code == 400

    def test_incomplete_request(self):
        with pytest.raises(IncompleteRequestError):
            parse_request(b"GET / HTTP/1.1\r\nHost: x\r\n")


class TestFrameScanner:
    """Tests for incremental, multi-request scanning."""

    def test_byte_at_a_time(self, sample_post_request: bytes):
        scanner = FrameScanner()
        completed = []
        for i in range(len(sample_post_request)):
            completed.extend(scanner.feed(sample_post_request[i:i + 1]))

        assert len(completed) == 1
        assert completed[0].body == b"hello world"
        assert scanner.state is ScanState.STATUS_LINE
        assert not scanner.has_partial_frame

    def test_state_transitions(self):
        scanner = FrameScanner()
        assert scanner.state is ScanState.STATUS_LINE

        scanner.feed(b"POST /x HTTP/1.1\r\n")
        assert scanner.state is ScanState.HEADERS

        scanner.feed(b"Content-Length: 4\r\n\r\n")
        assert scanner.state is ScanState.BODY

        assert scanner.feed(b"data")[0].body == b"data"
        assert scanner.state is ScanState.STATUS_LINE

    def test_two_requests_in_one_chunk(self):
        raw = (
            b"GET /a HTTP/1.1\r\n\r\n"
            b"POST /b HTTP/1.1\r\nContent-Length: 2\r\n\r\nhi"
        )
        requests = FrameScanner().feed(raw)

        assert [r.path for r in requests] == ["/a", "/b"]
        assert requests[1].body == b"hi"

    def test_malformed_request_after_complete_one(self):
        scanner = FrameScanner()
        requests = scanner.feed(b"GET / HTTP/1.1\r\n\r\nBAD\r\n\r\n")

        assert [r.path for r in requests] == ["/"]
        assert scanner.pending_error is not None
        assert scanner.pending_error.status_code == 400
        with pytest.raises(HTTPParseError):
            scanner.feed(b"GET /more HTTP/1.1\r\n\r\n")

    def test_body_spanning_many_reads(self):
        body = bytes(range(256)) * 64  # 16 KiB
        raw = b"POST /files/big HTTP/1.1\r\nContent-Length: %d\r\n\r\n" % len(body) + body

        scanner = FrameScanner()
        completed = []
        for start in range(0, len(raw), 4096):
            completed.extend(scanner.feed(raw[start:start + 4096]))

        assert len(completed) == 1
        assert completed[0].body == body

    def test_leading_blank_lines_are_skipped(self):
        requests = FrameScanner().feed(b"\r\n\r\nGET / HTTP/1.1\r\n\r\n")
        assert len(requests) == 1
        assert requests[0].path == "/"

    def test_blank_lines_alone_are_not_a_partial_frame(self):
        scanner = FrameScanner()
        assert scanner.feed(b"\r\n") == []
        assert not scanner.has_partial_frame

    def test_partial_frame_tracking(self):
        scanner = FrameScanner()
        assert not scanner.has_partial_frame

        scanner.feed(b"GE")
        assert scanner.has_partial_frame

        scanner.feed(b"T / HTTP/1.1\r\n\r\n")
        assert not scanner.has_partial_frame

    def test_headers_do_not_leak_between_requests(self):
        raw = (
            b"GET /a HTTP/1.1\r\nConnection: close\r\n\r\n"
            b"GET /b HTTP/1.1\r\n\r\n"
        )
        first, second = FrameScanner().feed(raw)

        assert first.wants_close
        assert not second.wants_close
        assert second.headers == {}


class TestLimits:
    """Tests for the header and body size bounds."""

    def test_body_over_limit_is_413(self):
        scanner = FrameScanner(max_body_size=10)
        with pytest.raises(HTTPParseError) as exc_info:
            scanner.feed(b"POST /x HTTP/1.1\r\nContent-Length: 11\r\n\r\n")
        assert exc_info.value.status_code == 413

    def test_body_at_limit_is_accepted(self):
        scanner = FrameScanner(max_body_size=10)
        requests = scanner.feed(b"POST /x HTTP/1.1\r\nContent-Length: 10\r\n\r\n0123456789")
        assert requests[0].body == b"0123456789"

    def test_oversized_header_line_is_431(self):
        scanner = FrameScanner(max_header_size=64)
        with pytest.raises(HTTPParseError) as exc_info:
            scanner.feed(b"GET / HTTP/1.1\r\nX-Big: " + b"a" * 100)
        assert exc_info.value.status_code == 431

    def test_too_many_headers_is_431(self):
        scanner = FrameScanner(max_header_size=64)
        raw = b"GET / HTTP/1.1\r\n" + b"X-A: 1\r\n" * 20
        with pytest.raises(HTTPParseError) as exc_info:
            scanner.feed(raw)
        assert exc_info.value.status_code == 431

    def test_head_limit_resets_per_request(self):
        scanner = FrameScanner(max_header_size=64)
        one = b"GET / HTTP/1.1\r\nX-A: 1\r\n\r\n"
        requests = scanner.feed(one * 10)
        assert len(requests) == 10


class TestHTTPRequest:
    """Tests for HTTPRequest accessors."""

    def test_wants_close_any_case(self):
        request = HTTPRequest("get", "/", headers={"connection": "Close"})
        assert request.wants_close

    def test_keep_alive_by_default(self):
        assert not HTTPRequest("get", "/").wants_close

    def test_accept_encoding_absent_is_none(self):
        assert HTTPRequest("get", "/").accept_encoding is None

    def test_path_without_query(self):
        request = HTTPRequest("get", "/files/a.txt?download=1")
        assert request.path == "/files/a.txt"
        assert request.query_string == "download=1"
