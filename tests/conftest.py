"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Dict, Generator, Optional, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import HTTPServer, ServerConfig, create_app
from minihttp.http import HTTPRequest, RouteMatch


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /echo/abc?x=1 HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept-Encoding: gzip\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b"hello world"
    return (
        b"POST /files/notes.txt HTTP/1.1\r\n"
        b"Host: localhost:4221\r\n"
        b"Content-Type: application/octet-stream\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def empty_match() -> RouteMatch:
    """A RouteMatch with no captures, for calling handlers directly."""
    from minihttp.http import Route
    return RouteMatch(route=Route("get", None, None), groups=())


def make_request(method: str = "get", url: str = "/", **headers: str) -> HTTPRequest:
    """Build an HTTPRequest; header kwargs use underscores for dashes."""
    return HTTPRequest(
        method=method,
        url=url,
        headers={k.replace("_", "-").lower(): v for k, v in headers.items()},
    )


# =============================================================================
# LIVE SERVER
# =============================================================================

class TestServer:
    """Runs an HTTPServer in a background thread on an ephemeral port."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "TestServer":
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")
        return self

    def connect(self, timeout: float = 5.0) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=timeout)
        return sock

    def stop(self) -> None:
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "files"
    directory.mkdir()
    return directory


@pytest.fixture
def config(files_dir: Path) -> ServerConfig:
    """Test configuration: loopback, ephemeral port, temp directory."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        directory=str(files_dir),
        log_level="WARNING",
    )


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """The standard application running in the background."""
    srv = TestServer(create_app(config)).start()
    yield srv
    srv.stop()


# =============================================================================
# CLIENT HELPERS
# =============================================================================

class RawResponse:
    """A response read off a socket by read_response()."""

    __test__ = False

    def __init__(self, status: int, reason: str, headers: Dict[str, str], body: bytes):
        self.status = status
        self.reason = reason
        self.headers = headers
        self.body = body

    def __repr__(self) -> str:
        return f"RawResponse({self.status} {self.reason}, {self.headers}, {self.body!r})"


class SocketReader:
    """Buffered reader over a client socket that keeps leftover bytes."""

    __test__ = False

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._buffer = b""

    def _fill(self) -> bool:
        chunk = self.sock.recv(65536)
        if not chunk:
            return False
        self._buffer += chunk
        return True

    def read_until(self, marker: bytes) -> bytes:
        while marker not in self._buffer:
            if not self._fill():
                raise ConnectionError("connection closed before {!r}".format(marker))
        head, _, self._buffer = self._buffer.partition(marker)
        return head

    def read_exactly(self, n: int) -> bytes:
        while len(self._buffer) < n:
            if not self._fill():
                raise ConnectionError("connection closed mid-body")
        data, self._buffer = self._buffer[:n], self._buffer[n:]
        return data

    def read_response(self) -> RawResponse:
        head = self.read_until(b"\r\n\r\n").decode("latin-1")
        lines = head.split("\r\n")
        version, status, reason = lines[0].split(" ", 2)
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(":")
            headers[name.strip().lower()] = value.strip()
        length = int(headers.get("content-length", "0"))
        body = self.read_exactly(length)
        return RawResponse(int(status), reason, headers, body)

    def at_eof(self) -> bool:
        """True if the server closed the connection (no more bytes)."""
        if self._buffer:
            return False
        try:
            return not self._fill()
        except ConnectionResetError:
            return True


def exchange(srv: TestServer, raw: bytes) -> Tuple[RawResponse, SocketReader]:
    """Send raw bytes on a new connection and read one response."""
    sock = srv.connect()
    sock.sendall(raw)
    reader = SocketReader(sock)
    return reader.read_response(), reader
