"""
=============================================================================
CONNECTION
=============================================================================

Thin wrapper around one accepted client socket: identity, state, and the
two byte-level operations a session needs (receive a chunk, send a
chunk).

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    What the client sends:               What recv(4096) may return:

    POST /files/a HTTP/1.1\r\n           "POST /files/a HT"
    Content-Length: 5\r\n                "TP/1.1\r\nContent-Length: 5\r\n\r\nhel"
    \r\n                                 "lo"
    hello

recv() returns whatever the kernel has buffered. Finding request
boundaries is the FrameScanner's job (http/request.py); this class only
moves bytes.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► PARSING ──► DISPATCHING ──► WRITING ──┐
               ▲                                   │ keep-alive
               └───────────────────────────────────┤
                                                   │ close / error / EOF
                                                   ▼
                                                 CLOSED

=============================================================================
CLOSING FROM ANOTHER THREAD
=============================================================================

A session's reader thread may be blocked inside recv() when the session
decides to end. close() calls shutdown(SHUT_RDWR) before close(): the
shutdown wakes the blocked recv() with b"" so the reader can exit, which
a plain close() does not guarantee.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)

DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Lifecycle of one connection, used for logging and tests."""
    NEW = "new"                  # Just accepted
    PARSING = "parsing"          # Waiting for the next complete request
    DISPATCHING = "dispatching"  # Handler running
    WRITING = "writing"          # Sending the response
    CLOSED = "closed"            # Socket released


@dataclass
class Connection:
    """
    One accepted TCP connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique id that tags every log line of this connection.
        state: Current lifecycle state.
        created_at: Accept timestamp.
        requests_handled: Responses written so far.
        buffer_size: Bytes requested per recv().
        timeout: Socket timeout in seconds; None blocks forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 4096
    timeout: Optional[float] = None

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def peer(self) -> str:
        """"ip:port" of the client, for log lines."""
        return "{}:{}".format(self.address[0], self.address[1])

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    # =========================================================================
    # I/O
    # =========================================================================

    def recv(self) -> bytes:
        """
        Read up to buffer_size bytes.

        Returns:
            The bytes read; b"" when the peer closed its side.

        Raises:
            OSError: On reset, timeout or any other transport failure.
        """
        return self.socket.recv(self.buffer_size)

    def send_all(self, data: bytes) -> None:
        """
        Write every byte of data.

        sendall() loops until the kernel has accepted everything, unlike
        send() which may write only part of it.

        Raises:
            OSError: If the peer went away.
        """
        self.socket.sendall(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self, drain: bool = False) -> None:
        """
        Shut down both directions and release the socket.

        Args:
            drain: Send FIN first and discard what the peer still sends
                   for up to DRAIN_TIMEOUT seconds. Closing with unread
                   bytes in the kernel buffer makes the OS answer with a
                   RST, which can destroy a response the client has not
                   read yet.

        Safe to call more than once and from any thread.

        ┌─────────────────────────────────────────────────────────────────┐
        │   Server                              Client                     │
        │      │   FIN ──────────────────────────► │  (shutdown SHUT_WR)  │
        │      │ ◄────────────── leftover bytes    │  (drained, dropped)  │
        │      │ ◄───────────────────────── FIN   │  (client closes)      │
        │   (socket closed)                                                │
        └─────────────────────────────────────────────────────────────────┘
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED

        if drain:
            self._drain()

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(
            "[%s] Connection closed after %d requests (%.3fs)",
            self.id, self.requests_handled, self.age,
        )

    def _drain(self) -> None:
        try:
            self.socket.shutdown(socket.SHUT_WR)
            deadline = time.monotonic() + DRAIN_TIMEOUT
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(self.buffer_size):
                    break
        except OSError:
            pass  # Timed out or peer gone; closing anyway

