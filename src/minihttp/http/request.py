"""
=============================================================================
HTTP REQUEST FRAME SCANNER
=============================================================================

Turns the raw byte stream of one TCP connection into complete HTTPRequest
objects. TCP has no message boundaries, so the scanner is incremental:
bytes are fed in whatever chunks recv() returns and requests come out
once they are complete.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  POST /files/notes.txt HTTP/1.1\r\n      ← request line              │
    │  ──┬─ ────────┬─────── ────┬───                                      │
    │  method      url        version                                      │
    │                                                                      │
    │  Host: localhost:4221\r\n                ← headers                   │
    │  Content-Length: 5\r\n                   ← body length               │
    │  \r\n                                    ← blank line                │
    │  hello                                   ← exactly 5 bytes of body   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SCANNER STATE MACHINE
=============================================================================

    ┌─────────────┐   CRLF    ┌─────────────┐  empty line  ┌─────────────┐
    │ STATUS_LINE │ ────────► │   HEADERS   │ ───────────► │    BODY     │
    └─────────────┘           └─────────────┘              └──────┬──────┘
           ▲                    │  CRLF: one header               │
           │                    └──────┘                          │
           │                                                      │
           └───────────── Content-Length bytes captured ──────────┘
                          (request emitted, state reset)

The reset after each request is what lets one persistent connection carry
many requests: whatever follows the body in the buffer is scanned as the
next request line.

=============================================================================
BUFFERING POLICY
=============================================================================

The scanner never assumes one recv() holds a whole request. It keeps
accumulating until the declared body length is available, so a body can
span any number of reads. Two limits bound memory per connection:

    max_header_size   request line + headers        → 431 when exceeded
    max_body_size     declared Content-Length       → 413 when exceeded

=============================================================================
INTERVIEW QUESTIONS ABOUT REQUEST PARSING
=============================================================================

Q: "How do you know where one HTTP request ends on a keep-alive socket?"
A: "Headers end at the first empty line (CRLF CRLF). After that the body
   is exactly Content-Length bytes. Anything left in the buffer belongs
   to the next request."

Q: "What if Content-Length is garbage?"
A: "We treat it as zero, so the request completes at the blank line and
   nothing is read as body."

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)

CRLF = b"\r\n"


class HTTPParseError(Exception):
    """
    Raised when the byte stream is not a well-formed HTTP request.

    The status code is the one used for the best-effort error response
    written before the connection is dropped:

        400 Bad Request                      malformed request line
        413 Payload Too Large                body over max_body_size
        431 Request Header Fields Too Large  head over max_header_size
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class IncompleteRequestError(HTTPParseError):
    """The peer closed the connection in the middle of a request."""


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method: Lower-cased method token ("get", "post", ...).
        url: Raw request target, path plus query string.
        version: Protocol token exactly as sent ("HTTP/1.1").
        headers: Lower-cased header name → trimmed value.
        body: Exactly Content-Length bytes (b"" when absent).
    """

    method: str
    url: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def path(self) -> str:
        """URL without its query string."""
        return self.url.split("?", 1)[0]

    @property
    def query_string(self) -> str:
        """Raw query string (without the '?'), or "" if there is none."""
        _, _, query = self.url.partition("?")
        return query

    def get_header(self, name: str, default: str = "") -> str:
        """
        Look up a header by name, case-insensitively.

        Args:
            name: Header name in any case.
            default: Returned when the header is absent.
        """
        return self.headers.get(name.lower(), default)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def accept_encoding(self) -> Optional[str]:
        """Raw Accept-Encoding value, or None if the client sent none."""
        return self.headers.get("accept-encoding")

    @property
    def wants_close(self) -> bool:
        """True if the client sent "Connection: close" (any case)."""
        return self.headers.get("connection", "").lower() == "close"


class ScanState(Enum):
    """Which part of the current request the scanner is reading."""
    STATUS_LINE = "status_line"
    HEADERS = "headers"
    BODY = "body"


class FrameScanner:
    """
    Incremental HTTP/1.1 request parser for one connection.

    Usage:
        scanner = FrameScanner()
        while True:
            data = sock.recv(4096)
            if not data:
                break
            for request in scanner.feed(data):
                handle(request)

    A scanner holds per-connection state and must not be shared between
    connections.
    """

    def __init__(
        self,
        max_body_size: int = 10 * 1024 * 1024,
        max_header_size: int = 64 * 1024,
    ):
        self.max_body_size = max_body_size
        self.max_header_size = max_header_size

        self._buffer = bytearray()
        self.pending_error: Optional[HTTPParseError] = None
        self._reset()

    def _reset(self) -> None:
        self.state = ScanState.STATUS_LINE
        self._method = ""
        self._url = ""
        self._version = ""
        self._headers: Dict[str, str] = {}
        self._content_length = 0
        self._head_size = 0

    @property
    def has_partial_frame(self) -> bool:
        """
        True if an unfinished request has been started.

        Blank lines waiting in front of a request line do not count: a peer
        that closes after them ends the session cleanly.
        """
        if self.state is not ScanState.STATUS_LINE:
            return True
        return bool(self._buffer.lstrip(b"\r\n"))

    def feed(self, data: bytes) -> List[HTTPRequest]:
        """
        Consume bytes and return every request they complete.

        Args:
            data: Bytes just read from the socket.

        Returns:
            Completed requests in wire order (possibly empty).

        Raises:
            HTTPParseError: If the stream is malformed or over a limit.

        Requests completed before a malformed one in the same chunk are
        still returned. The error is then kept in pending_error and raised
        by the next call.
        """
        if self.pending_error is not None:
            raise self.pending_error

        self._buffer += data
        completed: List[HTTPRequest] = []

        try:
            self._scan(completed)
        except HTTPParseError as e:
            if not completed:
                raise
            self.pending_error = e
        return completed

    def _scan(self, completed: List[HTTPRequest]) -> None:
        while True:
            if self.state is ScanState.BODY:
                request = self._take_body()
                if request is None:
                    break
                completed.append(request)
                continue

            line = self._take_line()
            if line is None:
                break

            if self.state is ScanState.STATUS_LINE:
                if not line:
                    continue  # stray CRLF between requests
                self._parse_request_line(line)
                self.state = ScanState.HEADERS
            elif line:
                self._parse_header(line)
            else:
                # Empty line: end of the header section.
                self.state = ScanState.BODY

    # =========================================================================
    # SECTION READERS
    # =========================================================================

    def _take_line(self) -> Optional[bytes]:
        """
        Remove and return the next CRLF-terminated line (without CRLF).

        Returns None while the line is still incomplete.
        """
        end = self._buffer.find(CRLF)
        if end == -1:
            if self._head_size + len(self._buffer) > self.max_header_size:
                raise HTTPParseError(
                    "Request head exceeds {} bytes".format(self.max_header_size),
                    status_code=431,
                )
            return None

        line = bytes(self._buffer[:end])
        del self._buffer[:end + 2]

        if self.state is not ScanState.STATUS_LINE or line:
            self._head_size += end + 2
            if self._head_size > self.max_header_size:
                raise HTTPParseError(
                    "Request head exceeds {} bytes".format(self.max_header_size),
                    status_code=431,
                )
        return line

    def _take_body(self) -> Optional[HTTPRequest]:
        """Emit the request once Content-Length bytes are buffered."""
        if len(self._buffer) < self._content_length:
            return None

        body = bytes(self._buffer[:self._content_length])
        del self._buffer[:self._content_length]

        request = HTTPRequest(
            method=self._method,
            url=self._url,
            version=self._version,
            headers=self._headers,
            body=body,
        )
        self._reset()
        return request

    # =========================================================================
    # LINE PARSERS
    # =========================================================================

    def _parse_request_line(self, line: bytes) -> None:
        """
        Split "METHOD SP URL SP VERSION" on single spaces.

        Raises:
            HTTPParseError: If the line does not have exactly three parts.
        """
        text = line.decode("latin-1")
        parts = text.split(" ")
        if len(parts) != 3 or not all(parts):
            raise HTTPParseError("Malformed request line: {!r}".format(text))

        method, url, version = parts
        self._method = method.lower()
        self._url = url
        self._version = version

    def _parse_header(self, line: bytes) -> None:
        """
        Store one "Name: value" line.

        The name is lower-cased, the value trimmed, and a repeated name
        overwrites the earlier value. A line without a colon becomes a
        header with an empty value.
        """
        text = line.decode("latin-1")
        name, _, value = text.partition(":")
        name = name.strip().lower()
        value = value.strip()
        self._headers[name] = value

        if name == "content-length":
            self._content_length = _parse_content_length(value)
            if self._content_length > self.max_body_size:
                raise HTTPParseError(
                    "Body of {} bytes exceeds {} bytes".format(
                        self._content_length, self.max_body_size
                    ),
                    status_code=413,
                )


def _parse_content_length(value: str) -> int:
    """Non-negative integer value of Content-Length, 0 when unusable."""
    try:
        length = int(value)
    except ValueError:
        logger.debug("Ignoring non-numeric Content-Length %r", value)
        return 0
    return length if length >= 0 else 0


def parse_request(data: bytes, **limits: int) -> HTTPRequest:
    """
    Parse exactly one complete request from a byte string.

    Convenience wrapper around FrameScanner for tests and tools.

    Args:
        data: Raw bytes holding one full request.
        **limits: max_body_size / max_header_size overrides.

    Raises:
        IncompleteRequestError: If data ends before the request does.
        HTTPParseError: If the request is malformed.
    """
    scanner = FrameScanner(**limits)
    requests = scanner.feed(data)
    if not requests:
        raise IncompleteRequestError("Incomplete request")
    return requests[0]


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. FrameScanner.feed() accepts arbitrary recv() chunks
# 2. Request line → headers → body, then reset for the next request
# 3. Header names lower-cased, values trimmed, last duplicate wins
# 4. Content-Length drives the body; bad values count as 0
# 5. Header and body sizes are bounded per connection
# =============================================================================
