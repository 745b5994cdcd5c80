"""
=============================================================================
HTTP RESPONSE
=============================================================================

Holds a response and serializes it to HTTP/1.1 wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  HTTP/1.1 200 OK\r\n                      ← status line             │
    │  ────┬─── ─┬─ ─┬─                                                   │
    │   version code phrase                                               │
    │                                                                      │
    │  Content-Type: application/octet-stream\r\n   ← headers             │
    │  Content-Length: 1048576\r\n                                        │
    │  \r\n                                     ← blank line              │
    │  <1048576 bytes read from the file>       ← body (streamed)         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LAZY BODIES
=============================================================================

The body is a binary file-like object, not a bytes value:

    io.BytesIO(b"hello")          small in-memory bodies
    open(path, "rb")              static files, streamed in chunks

Only the head is built in memory; the body is copied to the socket chunk
by chunk, so serving a large file never loads it whole. The one exception
is gzip, which has to read the full body before the compressed length is
known (see compression.py).

Content-Length is required whenever a body is present. It is computed
from the body when the handler did not set it.

=============================================================================
"""

import io
import os
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterator, Optional, Union

from .status_codes import HTTPStatus, reason_phrase


CHUNK_SIZE = 64 * 1024


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be written to a client.

    Attributes:
        status: Status code.
        status_text: Reason phrase. Filled from the status code when empty.
        headers: Header name → value. Names keep their case on the wire.
        body: Binary file-like object, or None for no body.
        version: Protocol version for the status line.
    """

    status: int = HTTPStatus.OK
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[BinaryIO] = None
    version: str = "HTTP/1.1"

    def __post_init__(self):
        if not self.status_text:
            self.status_text = reason_phrase(self.status)

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 404 Not Found"."""
        return "{} {} {}".format(self.version, int(self.status), self.status_text)

    # =========================================================================
    # HEADERS
    # =========================================================================

    def _header_key(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        key = self._header_key(name)
        return self.headers[key] if key is not None else default

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """
        Set a header, replacing any existing one with the same name in any
        case. Returns self for chaining.
        """
        key = self._header_key(name)
        if key is not None:
            del self.headers[key]
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> None:
        key = self._header_key(name)
        if key is not None:
            del self.headers[key]

    # =========================================================================
    # BODY
    # =========================================================================

    def set_body(self, body: Union[str, bytes, BinaryIO, None]) -> "HTTPResponse":
        """
        Replace the body and update Content-Length.

        Strings are UTF-8 encoded. File objects are taken as they are and
        their remaining size is measured when possible.
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        if isinstance(body, bytes):
            body = io.BytesIO(body)

        self.body = body
        self.remove_header("Content-Length")
        if body is not None:
            length = _remaining_length(body)
            if length is not None:
                self.set_header("Content-Length", str(length))
        return self

    def ensure_content_length(self) -> None:
        """
        Make sure a present body has a Content-Length header.

        Seekable bodies are measured in place. Unseekable ones are read
        into memory once so their length is known.
        """
        if self.body is None or self.get_header("Content-Length") is not None:
            return

        length = _remaining_length(self.body)
        if length is None:
            data = self.body.read()
            self.body.close()
            self.body = io.BytesIO(data)
            length = len(data)
        self.set_header("Content-Length", str(length))

    def close(self) -> None:
        """Release the body source (closes open files)."""
        if self.body is not None:
            self.body.close()

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def head_bytes(self) -> bytes:
        """
        Status line, headers and the blank line, as bytes.

            HTTP/1.1 200 OK\\r\\n
            Content-Length: 5\\r\\n
            \\r\\n
        """
        self.ensure_content_length()
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append("{}: {}".format(name, value))
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("latin-1")

    def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yield the head, then the body in chunks of at most chunk_size.

        The body is read lazily; nothing beyond one chunk is held at once.
        """
        yield self.head_bytes()
        if self.body is None:
            return
        while True:
            chunk = self.body.read(chunk_size)
            if not chunk:
                break
            yield chunk

    def to_bytes(self) -> bytes:
        """The complete response as one bytes value (consumes the body)."""
        return b"".join(self.iter_chunks())


def _remaining_length(body: BinaryIO) -> Optional[int]:
    """Bytes left between the current position and the end, if knowable."""
    try:
        if isinstance(body, io.BytesIO):
            return len(body.getbuffer()) - body.tell()
        fileno = body.fileno()
        return os.fstat(fileno).st_size - body.tell()
    except (AttributeError, OSError, io.UnsupportedOperation):
        pass
    try:
        position = body.tell()
        end = body.seek(0, io.SEEK_END)
        body.seek(position)
        return end - position
    except (AttributeError, OSError, io.UnsupportedOperation):
        return None


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Example:
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("hello")
            .build())

        response = (ResponseBuilder()
            .stream(open(path, "rb"), content_type="application/octet-stream")
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._status_text = ""
        self._headers: Dict[str, str] = {}
        self._body: Optional[BinaryIO] = None

    def status(self, status: int, text: str = "") -> "ResponseBuilder":
        """Set the status code and, optionally, a custom reason phrase."""
        self._status = status
        self._status_text = text
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, data: bytes) -> "ResponseBuilder":
        """Raw bytes body; Content-Length is set from its size."""
        self._body = io.BytesIO(data)
        self._headers["Content-Length"] = str(len(data))
        return self

    def text(self, text: str, content_type: str = "text/plain") -> "ResponseBuilder":
        """UTF-8 text body with the given Content-Type."""
        self.body(text.encode("utf-8"))
        return self.content_type(content_type)

    def stream(
        self,
        source: BinaryIO,
        length: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> "ResponseBuilder":
        """
        Body read lazily from a file-like object.

        Args:
            source: Open binary file or stream. Closed after writing.
            length: Byte count; measured from the source when omitted.
            content_type: Optional Content-Type header.
        """
        self._body = source
        if length is None:
            length = _remaining_length(source)
        if length is not None:
            self._headers["Content-Length"] = str(length)
        if content_type:
            self.content_type(content_type)
        return self

    def close_connection(self) -> "ResponseBuilder":
        """Mark the response with "Connection: close"."""
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            status_text=self._status_text,
            headers=self._headers,
            body=self._body,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
#     return ok("hello")          200 with a text/plain body
#     return ok()                 200 with no body at all
#     return not_found()          404, no body
#
# =============================================================================

def ok(body: Union[str, bytes, None] = None, content_type: str = "text/plain") -> HTTPResponse:
    """
    200 OK.

    With no argument the response has no body and no Content-Length.
    Strings and bytes become a body with the given Content-Type.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if body is not None:
        data = body.encode("utf-8") if isinstance(body, str) else body
        builder.body(data).content_type(content_type)
    return builder.build()


def created() -> HTTPResponse:
    """201 Created, no body."""
    return HTTPResponse(status=HTTPStatus.CREATED)


def forbidden() -> HTTPResponse:
    """403 Forbidden, no body."""
    return HTTPResponse(status=HTTPStatus.FORBIDDEN)


def not_found() -> HTTPResponse:
    """404 Not Found, no body. The router's answer to unmatched requests."""
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, no body."""
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)


def error_response(status: int) -> HTTPResponse:
    """
    Bare error response that also closes the connection.

    Used for protocol errors where the rest of the stream can no longer
    be trusted.
    """
    return ResponseBuilder().status(status).close_connection().build()
