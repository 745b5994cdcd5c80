"""
Unit tests for HTTP responses and their serialization.
"""

import io

from minihttp.http.response import (
    HTTPResponse,
    ResponseBuilder,
    created,
    error_response,
    forbidden,
    internal_error,
    not_found,
    ok,
)
from minihttp.http.status_codes import HTTPStatus, reason_phrase


class TestHTTPResponse:
    """Tests for HTTPResponse."""

    def test_default_status_text(self):
        assert HTTPResponse(status=404).status_text == "Not Found"
        assert HTTPResponse(status=201).status_text == "Created"

    def test_custom_status_text(self):
        response = HTTPResponse(status=500, status_text="Internal Error")
        assert response.status_line == "HTTP/1.1 500 Internal Error"

    def test_serialize_without_body(self):
        assert HTTPResponse().to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_serialize_with_body(self):
        response = ok("hello")
        data = response.to_bytes()

        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Content-Type: text/plain\r\n" in data
        assert b"Content-Length: 5\r\n" in data
        assert data.endswith(b"\r\n\r\nhello")

    def test_header_lookup_is_case_insensitive(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"})

        assert response.get_header("content-type") == "text/plain"
        assert response.get_header("x-missing") is None
        assert response.get_header("x-missing", "d") == "d"

    def test_set_header_replaces_any_case(self):
        response = HTTPResponse(headers={"content-length": "3"})
        response.set_header("Content-Length", "7")

        assert response.headers == {"Content-Length": "7"}

    def test_remove_header(self):
        response = HTTPResponse(headers={"Vary": "Accept-Encoding"})
        response.remove_header("vary")
        assert response.headers == {}

    def test_content_length_computed_when_missing(self):
        response = HTTPResponse(body=io.BytesIO(b"abcdef"))
        assert b"Content-Length: 6\r\n" in response.head_bytes()

    def test_content_length_of_partially_read_body(self):
        body = io.BytesIO(b"0123456789")
        body.seek(4)
        response = HTTPResponse(body=body)

        response.ensure_content_length()
        assert response.get_header("Content-Length") == "6"

    def test_content_length_of_unseekable_body(self):
        class Pipe(io.RawIOBase):
            def __init__(self, data):
                self._data = io.BytesIO(data)

            def readable(self):
                return True

            def readinto(self, buffer):
                chunk = self._data.read(len(buffer))
                buffer[:len(chunk)] = chunk
                return len(chunk)

        response = HTTPResponse(body=io.BufferedReader(Pipe(b"streamed")))
        data = response.to_bytes()

        assert b"Content-Length: 8\r\n" in data
        assert data.endswith(b"streamed")

    def test_set_body_variants(self):
        response = HTTPResponse()

        response.set_body("héllo")
        assert response.get_header("Content-Length") == str(len("héllo".encode("utf-8")))

        response.set_body(b"xy")
        assert response.get_header("Content-Length") == "2"

        response.set_body(None)
        assert response.body is None
        assert response.get_header("Content-Length") is None

    def test_iter_chunks_streams_body(self):
        payload = b"x" * 10
        response = ResponseBuilder().body(payload).build()

        chunks = list(response.iter_chunks(chunk_size=4))

        assert chunks[0].endswith(b"\r\n\r\n")
        assert chunks[1:] == [b"xxxx", b"xxxx", b"xx"]

    def test_streams_file_body(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x00\x01\x02" * 1000)

        with path.open("rb") as source:
            response = ResponseBuilder().stream(source).build()
            assert response.get_header("Content-Length") == "3000"
            assert response.to_bytes().endswith(b"\x00\x01\x02" * 1000)

    def test_close_releases_body(self):
        body = io.BytesIO(b"abc")
        HTTPResponse(body=body).close()
        assert body.closed


class TestResponseBuilder:
    """Tests for ResponseBuilder."""

    def test_build_text(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("hi")
            .header("X-Custom", "1")
            .build())

        assert response.status == 200
        assert response.headers == {
            "Content-Length": "2",
            "Content-Type": "text/plain",
            "X-Custom": "1",
        }
        assert response.body.read() == b"hi"

    def test_custom_reason_phrase(self):
        response = ResponseBuilder().status(500, "Internal Error").build()
        assert response.status_text == "Internal Error"

    def test_close_connection(self):
        response = ResponseBuilder().close_connection().build()
        assert response.get_header("Connection") == "close"

    def test_stream_with_explicit_length_and_type(self):
        response = (ResponseBuilder()
            .stream(io.BytesIO(b"abc"), length=3, content_type="application/octet-stream")
            .build())

        assert response.get_header("Content-Length") == "3"
        assert response.get_header("Content-Type") == "application/octet-stream"


class TestConvenienceFunctions:
    """Tests for the response helpers."""

    def test_ok_without_body(self):
        response = ok()
        assert response.status == 200
        assert response.body is None
        assert response.to_bytes() == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_ok_with_empty_text(self):
        response = ok("")
        assert response.get_header("Content-Length") == "0"

    def test_bodiless_helpers(self):
        for helper, status in [
            (created, 201),
            (forbidden, 403),
            (not_found, 404),
            (internal_error, 500),
        ]:
            response = helper()
            assert response.status == status
            assert response.body is None

    def test_error_response_closes(self):
        response = error_response(413)
        assert response.status_line == "HTTP/1.1 413 Payload Too Large"
        assert response.get_header("Connection") == "close"


class TestStatusCodes:
    """Tests for HTTPStatus and reason phrases."""

    def test_phrase(self):
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE == 431

    def test_reason_phrase_unknown_code(self):
        assert reason_phrase(299) == "Unknown"
        assert reason_phrase(200) == "OK"
